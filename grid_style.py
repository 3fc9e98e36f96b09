# Nurikabe Grid Style Definitions

# Cell States
COLOR_NUMBER = (255, 255, 255)
COLOR_WHITE = (235, 235, 235)   # Island cell without a number
COLOR_BLACK = (128, 128, 128)   # Sea
COLOR_UNKNOWN = (192, 192, 192)

# Cells changed by the displayed step
COLOR_NEW_WHITE = (255, 255, 0)
COLOR_NEW_BLACK = (0, 128, 128)

# Lines and Outlines
COLOR_GRID_LINES = (0, 0, 0)
COLOR_FAILED_GUESS = (200, 30, 30)  # Thick outline for cells whose guesses got stuck

# Text
COLOR_TEXT_NUMBER = (0, 0, 0)
COLOR_TEXT_WHITE = (90, 90, 90)

# Application
COLOR_BG = (30, 30, 30)
BASE_CELL_SIZE = 48
