# main.py

import pygame
import constants
import json
import logging
import queue
import logger_setup
import numpy as np
from frame_loop import PygameFrameLoop
from render_surface import PygameSurface
from sample_source import build_pollers
from world import World

# Get the application's dedicated logger
logger = logging.getLogger(constants.LOGGER_NAME)


def make_event_handler(world: World, surface: PygameSurface, pollers: list):
    """
    Builds the callback that drains pygame's event queue before every frame.

    Clicks and key presses mutate the world directly; they run on the frame
    loop's thread between frames, so they never overlap a tick.
    """
    def handle_events():
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logger.info("Quit requested.")
                world.stop()
                for poller in pollers:
                    poller.stop(timeout=0)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                world.handle_click(*event.pos)
            elif event.type == pygame.KEYDOWN:
                world.handle_key(pygame.key.name(event.key))
            elif event.type == pygame.VIDEORESIZE:
                surface.set_surface(pygame.display.get_surface())
                world.resize(event.w, event.h)
    return handle_events


def main():
    """
    Main function to initialize and run the bouncing ball window.
    """
    # --- Setup ---
    logger_setup.setup_logging()

    with open('config.json', 'r') as f:
        config = json.load(f)
    sim_config = config['simulation']

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(constants.TITLE)
    surface = PygameSurface(screen)

    sample_queue = queue.Queue()
    pollers = build_pollers(config.get('sampling', {}), sample_queue)

    frame_loop = PygameFrameLoop(fps=constants.FPS)
    world = World(
        bounds=screen.get_size(),
        config=sim_config,
        rng=rng,
        surface=surface,
        frame_loop=frame_loop,
        sample_queue=sample_queue
    )
    frame_loop.before_frame = make_event_handler(world, surface, pollers)

    # Initial ball at the centre of the window
    world.add_entity()

    for poller in pollers:
        poller.start()

    # --- Run ---
    world.start()
    frame_loop.run()

    logger.info(f"Application shutting down after {frame_loop.frames_run} frames.")
    pygame.quit()

if __name__ == "__main__":
    main()
