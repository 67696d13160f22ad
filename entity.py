# entity.py

import math
import logging
import numpy as np
import numba
from constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

# --- JIT-Compiled Hit Testing ---
# Always called with float64 arguments so a single signature is compiled.
# cache=True keeps the compiled code on disk between runs.

@numba.jit(nopython=True, cache=True)
def _within_radius_jit(cx, cy, radius, px, py, tolerance):
    """True if (px, py) is strictly closer to (cx, cy) than radius * tolerance."""
    dx = cx - px
    dy = cy - py
    return np.sqrt(dx * dx + dy * dy) < radius * tolerance


def warm_up_hit_test():
    """Compiles the hit test ahead of the first click."""
    _within_radius_jit(0.0, 0.0, 1.0, 0.0, 0.0, 1.0)


class EntityStateError(ArithmeticError):
    """Raised when an entity's position or velocity stops being finite."""


class Entity:
    """
    Represents a single bouncing ball in the simulation.

    Data Contract:
    - Inputs:
        - x, y (float): Centre position in surface-local pixels.
        - vx, vy (float): Velocity in pixels per frame.
        - radius (float): Ball radius in pixels.
        - color (tuple): (R, G, B) fill color, each channel 0-255.
        - gravity (float): Constant acceleration added to vy every frame.
    - Invariants: After step(), the centre lies within [radius, extent - radius]
      on both axes, provided the extent is at least twice the radius.
    """
    def __init__(self, x: float, y: float, vx: float, vy: float, radius: float, color: tuple, gravity: float = 0.2):
        self.x = float(x)
        self.y = float(y)
        self.vx = float(vx)
        self.vy = float(vy)
        self.radius = float(radius)
        self.color = tuple(int(c) for c in color)
        self.gravity = float(gravity)

    def __repr__(self):
        return (f"Entity(x={self.x:.1f}, y={self.y:.1f}, vx={self.vx:.2f}, vy={self.vy:.2f}, "
                f"radius={self.radius:.1f}, color={self.color})")

    @classmethod
    def spawn(cls, x: float, y: float, bounds: tuple, rng: np.random.Generator, params: dict):
        """
        Creates a ball at (x, y) with randomized size, launch velocity and color.

        The radius is radius_base + radius_scale * U[0.5, 1.5), capped at half the
        smaller bound so the ball always fits. Horizontal velocity is symmetric
        around zero; vertical velocity is always upward (negative y).

        - Inputs:
            - x, y (float): Spawn position.
            - bounds (tuple): (width, height) of the simulation area.
            - rng (np.random.Generator): The world's random number generator.
            - params (dict): The 'simulation' section of the config file.
        """
        radius = params.get('radius_base', 10.0) + (rng.random() + 0.5) * params.get('radius_scale', 20.0)
        radius = min(radius, min(bounds) / 2)
        vx = (rng.random() - 0.5) * 12
        vy = (rng.random() + 0.5) * -6
        color = tuple(int(c) for c in rng.integers(0, 256, size=3))
        entity = cls(x, y, vx, vy, radius, color, params.get('gravity', 0.2))
        logger.debug(f"Entity spawned: {entity}")
        return entity

    def step(self, bounds: tuple):
        """
        Advances the ball by one frame and reflects it off the boundaries.
        x_new = x + vx
        vy_new = vy + gravity
        y_new = y + vy_new

        The increment is one frame unit, independent of the real frame time.

        - Inputs:
            - bounds (tuple): (width, height) of the simulation area.
        - Raises: EntityStateError if the resulting state is not finite.
        """
        self.x += self.vx
        self.vy += self.gravity
        self.y += self.vy
        self.check_boundary_collision(*bounds)

        if not all(math.isfinite(v) for v in (self.x, self.y, self.vx, self.vy)):
            raise EntityStateError(f"Non-finite entity state: {self!r}")

    def check_boundary_collision(self, width: float, height: float):
        """
        Checks for and handles collisions with the screen boundaries.
        Reverses velocity and clamps the ball exactly onto the bound if it crossed it.

        - Inputs:
            - width (float): The width of the simulation area.
            - height (float): The height of the simulation area.
        """
        # Left boundary
        if self.x - self.radius < 0:
            self.x = self.radius
            self.vx *= -1
        # Right boundary
        elif self.x + self.radius > width:
            self.x = width - self.radius
            self.vx *= -1

        # Top boundary
        if self.y - self.radius < 0:
            self.y = self.radius
            self.vy *= -1
        # Bottom boundary
        elif self.y + self.radius > height:
            self.y = height - self.radius
            self.vy *= -1

    def contains(self, px: float, py: float, tolerance: float = 1.0) -> bool:
        """True if (px, py) is strictly closer to the centre than radius * tolerance."""
        return bool(_within_radius_jit(self.x, self.y, self.radius, float(px), float(py), float(tolerance)))

    def rescale(self, trend: float, min_radius: float, max_radius: float, rate: float):
        """
        Grows the radius toward max_radius on a positive trend and shrinks it
        toward min_radius on a negative one. The result is always clamped into
        [min_radius, max_radius].
        """
        if trend > 0:
            self.radius += rate
        elif trend < 0:
            self.radius -= rate
        self.radius = float(np.clip(self.radius, min_radius, max_radius))

    def clamp_to(self, width: float, height: float):
        """
        Pulls the centre back into [radius, extent - radius] without touching
        the velocity. Used after a rescale so a grown ball is not drawn past a wall.
        """
        self.x = float(np.clip(self.x, self.radius, max(self.radius, width - self.radius)))
        self.y = float(np.clip(self.y, self.radius, max(self.radius, height - self.radius)))

    def render(self, surface, outline: tuple = None, label: str = None, outline_width: int = 2, label_color: tuple = (255, 255, 255)):
        """
        Draws the ball on a render surface.
        """
        center = (self.x, self.y)
        surface.fill_circle(center, self.radius, self.color)
        if outline is not None:
            surface.stroke_circle(center, self.radius, outline, outline_width)
        if label:
            surface.text(label, center, label_color, centered=True)
