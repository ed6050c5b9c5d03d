"""Place search DTOs."""

from typing import Optional

from app.application.dtos.base import DTO


class PlacePrediction(DTO):
    """Autocomplete prediction returned by the place-search service."""

    place_id: str
    description: str
    main_text: str

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "place_id": "ChIJ0b8X7z4WrjsR2wN7tV3pY1E",
                "description": "Greenwood High, Sarjapur Road, Bengaluru, Karnataka, India",
                "main_text": "Greenwood High",
            }
        }


class AddressComponent(DTO):
    """Structured address component of a place."""

    long_name: str
    short_name: str = ""
    types: list[str] = []


class PlaceDetails(DTO):
    """Details of a single place."""

    place_id: str
    name: str
    formatted_address: str = ""
    formatted_phone_number: Optional[str] = None
    address_components: list[AddressComponent] = []
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PlaceCandidate(DTO):
    """Free-text search result."""

    place_id: str
    name: str
    formatted_address: str = ""
    rating: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address_components: list[AddressComponent] = []
