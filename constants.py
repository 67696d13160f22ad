# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework.
These are not expected to change between runs. Run-specific tuning (capacity,
gravity, radius ranges, sampling endpoints) lives in config.json.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Initial window dimensions. The window is resizable; the World tracks the live size.
WIDTH = 1280  # Pixels
HEIGHT = 720  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
RED = (255, 0, 0)
GREEN = (0, 255, 0)

# Window Title
TITLE = "Bouncing Balls"

# Background the surface is cleared to every frame.
BACKGROUND_COLOR = BLACK

# Debug Text
DEBUG_FONT_SIZE = 18  # Points
DEBUG_TEXT_COLOR = WHITE
DEBUG_TEXT_ORIGIN = (10, 10)  # Pixels, top-left of the first line
DEBUG_LINE_HEIGHT = 20  # Pixels between debug lines

# Entity Decoration
# Outline color by sign of the latency trend: rising, falling, flat.
OUTLINE_RISING = RED
OUTLINE_FALLING = GREEN
OUTLINE_FLAT = WHITE
OUTLINE_WIDTH = 2  # Pixels
LABEL_COLOR = WHITE

# Default key name that triggers a bulk spawn when config.json does not set one.
BULK_SPAWN_KEY = "space"

# Name of the application's dedicated logger.
LOGGER_NAME = "bouncing_balls"
