# frame_loop.py

import logging
import pygame
from constants import LOGGER_NAME, FPS

logger = logging.getLogger(LOGGER_NAME)


class FrameLoop:
    """
    Cooperative frame scheduler.

    Holds at most one pending frame callback. A callback is expected to
    request the next frame itself before returning; if it does not, the
    chain ends. Missed frames are never replayed.

    Data Contract:
    - Inputs: clock (callable) - Returns the current timestamp in milliseconds.
    - Invariants: A callback never runs while another one is running.
    """
    def __init__(self, clock):
        self.clock = clock
        self._pending = None
        self.frames_run = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def request_frame(self, callback):
        self._pending = callback

    def cancel(self):
        """Drops the pending callback, which ends the chain."""
        if self._pending is not None:
            logger.info("Frame loop cancelled.")
        self._pending = None

    def run_frame(self) -> bool:
        """
        Invokes the pending callback with the current timestamp.
        Returns False if there was nothing to run.
        """
        callback = self._pending
        if callback is None:
            return False
        self._pending = None
        callback(self.clock())
        self.frames_run += 1
        return True

    def run(self, max_frames: int = None):
        while max_frames is None or self.frames_run < max_frames:
            if not self.run_frame():
                break


class PygameFrameLoop(FrameLoop):
    """
    Frame loop driven by the pygame display.

    Host events are pumped through before_frame ahead of every frame and the
    display is flipped afterwards; pygame.time.Clock caps the rate. Timestamps
    come from pygame.time.get_ticks unless another clock is given.
    """
    def __init__(self, fps: int = FPS, before_frame=None, after_frame=None, clock=None):
        super().__init__(clock=clock if clock is not None else pygame.time.get_ticks)
        self.fps = fps
        self.before_frame = before_frame
        self.after_frame = after_frame if after_frame is not None else pygame.display.flip
        self.host_clock = pygame.time.Clock()

    def run_frame(self) -> bool:
        if self.before_frame is not None:
            self.before_frame()
        if not super().run_frame():
            return False
        self.after_frame()
        self.host_clock.tick(self.fps)
        return True
