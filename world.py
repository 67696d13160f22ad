# world.py

import logging
import queue
import numpy as np
import constants
from entity import Entity, warm_up_hit_test
from sample_source import SampleTracker

logger = logging.getLogger(constants.LOGGER_NAME)


class World:
    """
    Owns every ball and drives the per-frame update and render.

    Data Contract:
    - Inputs:
        - bounds (tuple): (width, height) of the simulation area, kept in sync with the window.
        - config (dict): The 'simulation' section of the config file.
        - rng (np.random.Generator): The master seeded random number generator.
        - surface (RenderSurface): Where frames are drawn.
        - frame_loop (FrameLoop, optional): Scheduler that tick() re-requests itself from.
        - sample_queue (queue.Queue, optional): SampleEvents from the pollers.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Draws onto the surface every tick.
    - Invariants: len(entities) <= capacity. Insertion order is render order;
      entities[0] is always the oldest ball.
    """
    def __init__(self, bounds: tuple, config: dict, rng: np.random.Generator, surface, frame_loop=None, sample_queue=None):
        self.bounds = (float(bounds[0]), float(bounds[1]))
        self.config = config
        self.rng = rng
        self.surface = surface
        self.frame_loop = frame_loop
        self.sample_queue = sample_queue if sample_queue is not None else queue.Queue()

        self.capacity = config['capacity']
        self.overlap_factor = config.get('overlap_factor', 1.0)
        self.min_radius = config.get('min_radius', 10.0)
        self.max_radius = config.get('max_radius', 50.0)
        self.radius_rate = config.get('radius_rate', 0.5)
        self.decorated = config.get('decorated', False)
        self.throughput_spawning = config.get('throughput_spawning', False)
        self.trend_endpoint = config.get('trend_endpoint')
        self.bulk_spawn_key = config.get('bulk_spawn_key', constants.BULK_SPAWN_KEY)
        self.bulk_spawn_count = config.get('bulk_spawn_count', 10)

        self.entities = []
        self.samples = SampleTracker()

        # --- Frame timing ---
        self.last_timestamp = None
        self.fps = 0.0
        self.running = False

        warm_up_hit_test()

        logger.info(f"World created with bounds {self.bounds} and capacity {self.capacity}.")

    # --- Collection management ---

    def add_entity(self, x: float = None, y: float = None) -> bool:
        """
        Spawns a ball at (x, y), defaulting to the centre of the bounds.
        Returns False, without raising, if the world is already at capacity.
        """
        if len(self.entities) >= self.capacity:
            logger.debug(f"Spawn refused: at capacity ({self.capacity}).")
            return False
        if x is None:
            x = self.bounds[0] / 2
        if y is None:
            y = self.bounds[1] / 2
        self.entities.append(Entity.spawn(x, y, self.bounds, self.rng, self.config))
        return True

    def add_multiple(self, n: int = 10) -> int:
        """Spawns up to n balls at random positions. Returns how many were added."""
        added = 0
        for _ in range(n):
            x = self.rng.random() * self.bounds[0]
            y = self.rng.random() * self.bounds[1]
            if self.add_entity(x, y):
                added += 1
        logger.info(f"Bulk spawn: {added}/{n} added, {len(self.entities)} balls total.")
        return added

    def remove_at(self, px: float, py: float) -> int:
        """
        Removes every ball within radius * overlap_factor of (px, py).
        Survivors keep their order. Returns the number removed.
        """
        if not self.entities:
            return 0
        # Single pass, compacting survivors in place.
        write = 0
        for entity in self.entities:
            if not entity.contains(px, py, self.overlap_factor):
                self.entities[write] = entity
                write += 1
        removed = len(self.entities) - write
        del self.entities[write:]

        if removed:
            logger.debug(f"Removed {removed} balls at ({px:.0f}, {py:.0f}).")
        return removed

    def evict_oldest(self):
        """Removes and returns the earliest-inserted ball, or None if there are none."""
        if not self.entities:
            return None
        return self.entities.pop(0)

    def resize(self, width: float, height: float):
        """
        Updates the bounds. Balls outside the new bounds are pulled back in by
        their next step, not here.
        """
        self.bounds = (float(width), float(height))
        logger.info(f"World resized to {self.bounds}.")

    # --- Input ---

    def handle_click(self, px: float, py: float) -> int:
        """
        A click deletes the balls under the pointer, or spawns one there if it
        hit nothing. Returns the number removed.
        """
        removed = self.remove_at(px, py)
        if removed == 0:
            self.add_entity(px, py)
        return removed

    def handle_key(self, key: str) -> int:
        """Bulk-spawns on the configured key. Returns the number of balls added."""
        if key != self.bulk_spawn_key:
            return 0
        return self.add_multiple(self.bulk_spawn_count)

    # --- Sample-driven decoration ---

    def _primary_endpoint(self):
        if self.trend_endpoint is not None:
            return self.trend_endpoint
        for endpoint in self.samples.endpoints():
            if endpoint not in ('upload', 'download'):
                return endpoint
        return None

    def _latency_trend(self) -> float:
        endpoint = self._primary_endpoint()
        return 0.0 if endpoint is None else self.samples.trend(endpoint)

    def _outline_for(self, trend: float) -> tuple:
        if trend > 0:
            return constants.OUTLINE_RISING
        if trend < 0:
            return constants.OUTLINE_FALLING
        return constants.OUTLINE_FLAT

    def _label(self):
        endpoint = self._primary_endpoint()
        if endpoint is None:
            return None
        return f"{self.samples.current(endpoint):.0f}"

    def _react_to_throughput(self, events: list):
        """
        A faster download adds a ball, a slower one evicts the oldest. Only
        fresh download samples trigger a reaction.
        """
        if not any(event.endpoint == 'download' for event in events):
            return
        trend = self.samples.trend('download')
        if trend < 0:
            self.add_entity(self.rng.random() * self.bounds[0], self.rng.random() * self.bounds[1])
        elif trend > 0:
            self.evict_oldest()

    def debug_lines(self) -> list:
        lines = [f"Balls: {len(self.entities)}", f"FPS: {self.fps:.1f}"]
        for endpoint in self.samples.endpoints():
            value = self.samples.current(endpoint)
            if endpoint in ('upload', 'download'):
                lines.append(f"{endpoint.capitalize()}: {value:.0f} ms")
            else:
                lines.append(f"Ping {endpoint}: {value:.0f} ms")
        return lines

    # --- Frame loop ---

    def start(self):
        """Schedules the first frame."""
        self.running = True
        if self.frame_loop is not None:
            self.frame_loop.request_frame(self.tick)

    def stop(self):
        """Stops rescheduling. The frame in progress, if any, still completes."""
        self.running = False
        if self.frame_loop is not None:
            self.frame_loop.cancel()
        logger.info("World stopped.")

    def tick(self, timestamp: float):
        """
        Runs one frame: consume samples, step and draw every ball, update FPS,
        draw debug text, then request the next frame.

        A ball that raises while stepping or drawing is logged and removed
        after the frame; the remaining balls are still processed.
        """
        # --- 1. Samples queued since the last frame ---
        events = self.samples.drain(self.sample_queue)

        # --- 2. Entities ---
        self.surface.clear()
        trend = self._latency_trend() if self.decorated else 0.0
        outline = self._outline_for(trend) if self.decorated else None
        label = self._label() if self.decorated else None

        failed = []
        for entity in self.entities:
            try:
                entity.step(self.bounds)
                if self.decorated:
                    entity.rescale(trend, self.min_radius, self.max_radius, self.radius_rate)
                    entity.clamp_to(*self.bounds)
                entity.render(self.surface, outline, label, constants.OUTLINE_WIDTH, constants.LABEL_COLOR)
            except Exception:
                logger.exception(f"Dropping ball after failed frame: {entity!r}")
                failed.append(entity)
        if failed:
            failed_ids = {id(e) for e in failed}
            self.entities = [e for e in self.entities if id(e) not in failed_ids]

        if self.throughput_spawning and events:
            self._react_to_throughput(events)

        # --- 3. Frame timing ---
        if self.last_timestamp is not None:
            delta = timestamp - self.last_timestamp
            if delta > 0:
                self.fps = 1000.0 / delta
        self.last_timestamp = timestamp

        # --- 4. Debug text ---
        x, y = constants.DEBUG_TEXT_ORIGIN
        for i, line in enumerate(self.debug_lines()):
            self.surface.text(line, (x, y + i * constants.DEBUG_LINE_HEIGHT), constants.DEBUG_TEXT_COLOR)

        # --- 5. Continuation ---
        if self.running and self.frame_loop is not None:
            self.frame_loop.request_frame(self.tick)
