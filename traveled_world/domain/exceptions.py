"""Domain-specific exceptions."""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    pass


class DuplicateCityError(DomainError):
    """Raised when a new city collides with a stored one.

    Carries the id of the stored city so callers can point the user at it.
    """

    def __init__(self, existing_id: str, city_name: str):
        self.existing_id = existing_id
        self.city_name = city_name
        super().__init__(f'City "{city_name}" is already in your list')


class MalformedImportError(DomainError):
    """Raised when an imported payload cannot be turned into store state."""

    pass
