"""Domain business rules and constants."""

from typing import Final

# Business Rules - Core domain constraints
MAX_NAME_LENGTH: Final = 200
COORDINATE_TOLERANCE: Final = 0.01
MAX_HISTORY_LENGTH: Final = 50

MIN_ANIMATION_SPEED: Final = 0.5
MAX_ANIMATION_SPEED: Final = 2.0
DEFAULT_SEARCH_DEBOUNCE_MS: Final = 50
DEFAULT_TRIP_COLOR: Final = "#3B82F6"

# Persisted payload format
EXPORT_VERSION: Final = "1.0"
