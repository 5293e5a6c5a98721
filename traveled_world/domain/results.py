"""Tagged result of adding a city.

`TravelStore.try_add_city` returns one of these instead of raising, so callers
can branch with `match`:

    match store.try_add_city(city):
        case CityAdded(city=added):
            ...
        case DuplicateConflict(existing_id=existing_id):
            ...
"""

from dataclasses import dataclass

from .entities import City
from .exceptions import DuplicateCityError


@dataclass(frozen=True)
class CityAdded:
    city: City


@dataclass(frozen=True)
class DuplicateConflict:
    existing_id: str
    candidate: City

    def to_error(self) -> DuplicateCityError:
        """Build the exception form of this conflict."""
        return DuplicateCityError(self.existing_id, self.candidate.name)


AddCityResult = CityAdded | DuplicateConflict
