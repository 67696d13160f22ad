import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import queue

import numpy as np
import pytest

from render_surface import RenderSurface
from world import World


class RecordingSurface(RenderSurface):
    """Render surface that records every draw call instead of drawing."""
    def __init__(self):
        self.calls = []

    def clear(self):
        self.calls.append(("clear",))

    def fill_circle(self, center, radius, color):
        self.calls.append(("fill_circle", center, radius, color))

    def stroke_circle(self, center, radius, color, width):
        self.calls.append(("stroke_circle", center, radius, color, width))

    def text(self, message, position, color, centered=False):
        self.calls.append(("text", message, position, color, centered))

    def of_kind(self, kind):
        return [call for call in self.calls if call[0] == kind]

    def reset(self):
        self.calls.clear()


class ManualClock:
    """Millisecond clock that advances by a fixed step on every read."""
    def __init__(self, start=0.0, step=16.0):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def sim_config():
    return {
        "capacity": 50,
        "gravity": 0.2,
        "radius_base": 10.0,
        "radius_scale": 20.0,
        "min_radius": 10.0,
        "max_radius": 50.0,
        "radius_rate": 0.5,
        "overlap_factor": 1.0,
        "bulk_spawn_count": 10,
        "bulk_spawn_key": "space",
        "decorated": False,
        "throughput_spawning": False,
    }


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def sample_queue():
    return queue.Queue()


@pytest.fixture
def world(sim_config, rng, surface, sample_queue):
    return World((800, 600), sim_config, rng, surface, sample_queue=sample_queue)
