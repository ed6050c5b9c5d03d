"""Place search client port."""

from abc import ABC, abstractmethod
from typing import Optional

from app.application.dtos.place import PlaceCandidate, PlaceDetails, PlacePrediction


class PlaceSearchClient(ABC):
    """Port interface for the external place-search service."""

    @abstractmethod
    async def predictions(self, text: str) -> list[PlacePrediction]:
        """
        Autocomplete predictions for free text.

        Args:
            text: Raw input, e.g. a school name

        Returns:
            Predictions in service order (empty when nothing matches)

        Raises:
            PlaceSearchError: If the service call fails
        """
        pass

    @abstractmethod
    async def details(self, place_id: str) -> Optional[PlaceDetails]:
        """
        Fetch details for a single place.

        Args:
            place_id: Place identifier from a prediction or search result

        Returns:
            Place details, or None if the service returned no result

        Raises:
            PlaceSearchError: If the service call fails
        """
        pass

    @abstractmethod
    async def text_search(self, query: str) -> list[PlaceCandidate]:
        """
        Free-text place search.

        Args:
            query: Search text

        Returns:
            Candidate places

        Raises:
            PlaceSearchError: If the service call fails
        """
        pass


class PlaceSearchError(Exception):
    """Raised when the place-search service cannot be reached or rejects a call."""
