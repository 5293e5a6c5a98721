"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
EXPORT_FILENAME_PREFIX: Final = "traveled-world"
PERSISTENCE_KEY: Final = "userData"
