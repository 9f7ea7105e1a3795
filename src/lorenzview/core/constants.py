"""Compiled-in constants for the Lorenz viewer."""

LORENZ_SIGMA = 10.0  # Lorenz sigma
LORENZ_RHO = 28.0    # Lorenz rho
LORENZ_BETA = 8.0 / 3.0  # Lorenz beta
LORENZ_DT = 0.001

SEED_STATE = (0.0, 1.0, 1.05)
STEPS_PER_TICK = 200
TICK_PERIOD_MS = 100

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 1200
CANVAS_DPI = 100

BACKGROUND_RGB = (32, 32, 32)
FOREGROUND_RGB = (255, 255, 255)
BOLD_GRID_ALPHA = 0.3
LIGHT_GRID_ALPHA = 0.15

GRID_STEP = 0.1
MAX_BOLD_LINES = 10
MAX_LIGHT_LINES = 3

PROJECTION_YAW = 0.1
PROJECTION_PITCH = 0.1
PROJECTION_SCALE = 0.9

SERIES_LABEL = "Line"
ON_ERROR_POLICIES = ("halt", "skip")
