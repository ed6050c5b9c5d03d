"""No-op place search client adapter."""

from typing import Optional

from app.application.dtos.place import PlaceCandidate, PlaceDetails, PlacePrediction
from app.application.ports.place_search_client import PlaceSearchClient


class NoOpPlaceSearchClient(PlaceSearchClient):
    """Place search client used when no API key is configured: nothing ever matches."""

    async def predictions(self, text: str) -> list[PlacePrediction]:
        return []

    async def details(self, place_id: str) -> Optional[PlaceDetails]:
        return None

    async def text_search(self, query: str) -> list[PlaceCandidate]:
        return []
