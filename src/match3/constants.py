DEFAULT_SIDE = 8
# Parameter range exposed by the match-3 template's controls.
GRID_SIZE_MIN = 6
GRID_SIZE_MAX = 10

DEFAULT_KIND_COUNT = 5
# Fewer kinds make a match-free initial grid ungenerateable.
MIN_KIND_COUNT = 3
# Default gem art, in template order.
DEFAULT_KIND_NAMES = ('red', 'blue', 'green', 'yellow', 'purple', 'orange')

POINTS_PER_CELL = 10

# Generation safety bounds. A cell redraws at most MAX_DRAWS_PER_CELL times
# before the whole layout is thrown away; after MAX_GENERATION_ATTEMPTS
# layouts generation fails.
MAX_DRAWS_PER_CELL = 64
MAX_GENERATION_ATTEMPTS = 50
