# render_surface.py

import pygame
import constants


class RenderSurface:
    """
    The drawing capabilities the World depends on.

    Implementations draw into some host surface. Positions are surface-local
    pixels; colors are (R, G, B) tuples.
    """
    def clear(self):
        raise NotImplementedError

    def fill_circle(self, center: tuple, radius: float, color: tuple):
        raise NotImplementedError

    def stroke_circle(self, center: tuple, radius: float, color: tuple, width: int):
        raise NotImplementedError

    def text(self, message: str, position: tuple, color: tuple, centered: bool = False):
        raise NotImplementedError


class PygameSurface(RenderSurface):
    """
    RenderSurface backed by a pygame.Surface (usually the display surface).

    The font is created on first use so that the surface can be built before
    pygame.font is initialized.
    """
    def __init__(self, surface: pygame.Surface, background: tuple = constants.BACKGROUND_COLOR, font_size: int = constants.DEBUG_FONT_SIZE):
        self.surface = surface
        self.background = background
        self.font_size = font_size
        self._font = None

    @property
    def font(self) -> pygame.font.Font:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.SysFont(None, self.font_size)
        return self._font

    def set_surface(self, surface: pygame.Surface):
        """Swaps the target surface, e.g. after the display was resized."""
        self.surface = surface

    def clear(self):
        self.surface.fill(self.background)

    def fill_circle(self, center, radius, color):
        pygame.draw.circle(self.surface, color, (int(center[0]), int(center[1])), int(radius))

    def stroke_circle(self, center, radius, color, width):
        pygame.draw.circle(self.surface, color, (int(center[0]), int(center[1])), int(radius), width)

    def text(self, message, position, color, centered=False):
        rendered = self.font.render(message, True, color)
        if centered:
            rect = rendered.get_rect(center=(int(position[0]), int(position[1])))
        else:
            rect = rendered.get_rect(topleft=(int(position[0]), int(position[1])))
        self.surface.blit(rendered, rect)
