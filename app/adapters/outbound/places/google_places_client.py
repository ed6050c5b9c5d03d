"""Google Places web service client adapter."""

from typing import Any, Optional

import httpx

from app.application.dtos.place import (
    AddressComponent,
    PlaceCandidate,
    PlaceDetails,
    PlacePrediction,
)
from app.application.ports.place_search_client import PlaceSearchClient, PlaceSearchError
from app.infrastructure.logging.logger import logger

DETAILS_FIELDS = (
    "place_id,name,formatted_address,formatted_phone_number,address_components,geometry"
)


class GooglePlacesClient(PlaceSearchClient):
    """Google Places adapter using the autocomplete, details and textsearch JSON endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout_seconds: float = 10,
        country: str = "in",
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize Google Places client.

        Args:
            api_key: Google Maps API key
            base_url: Places web service base URL
            timeout_seconds: Per-request timeout
            country: ISO country code predictions are restricted to
            http_client: Pre-built client (tests inject one with a mock transport)
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._country = country
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def _call(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """
        Call a Places endpoint and check the service status.

        Args:
            endpoint: Endpoint name (autocomplete, details, textsearch)
            params: Query parameters without the key

        Returns:
            Decoded JSON body (status OK or ZERO_RESULTS)

        Raises:
            PlaceSearchError: On transport failures or a non-OK service status
        """
        url = f"{self._base_url}/{endpoint}/json"
        try:
            response = await self._get_client().get(url, params={**params, "key": self._api_key})
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Places {endpoint} request failed: {str(e)}")
            raise PlaceSearchError(f"Places {endpoint} request failed") from e

        status = body.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.error(
                f"Places {endpoint} returned status {status}: {body.get('error_message', '')}"
            )
            raise PlaceSearchError(f"Places {endpoint} returned status {status}")
        return body

    @staticmethod
    def _address_components(items: list[dict[str, Any]]) -> list[AddressComponent]:
        return [
            AddressComponent(
                long_name=item.get("long_name", ""),
                short_name=item.get("short_name", ""),
                types=list(item.get("types", [])),
            )
            for item in items
        ]

    @staticmethod
    def _location(result: dict[str, Any]) -> tuple[Optional[float], Optional[float]]:
        location = (result.get("geometry") or {}).get("location") or {}
        return location.get("lat"), location.get("lng")

    async def predictions(self, text: str) -> list[PlacePrediction]:
        """
        Autocomplete predictions for school names.

        Args:
            text: Raw input

        Returns:
            Predictions in service order
        """
        if not text.strip():
            return []
        body = await self._call(
            "autocomplete",
            {"input": text, "types": "school", "components": f"country:{self._country}"},
        )
        return [
            PlacePrediction(
                place_id=item["place_id"],
                description=item.get("description", ""),
                main_text=(item.get("structured_formatting") or {}).get(
                    "main_text", item.get("description", "")
                ),
            )
            for item in body.get("predictions", [])
        ]

    async def details(self, place_id: str) -> Optional[PlaceDetails]:
        """
        Fetch details for a single place.

        Args:
            place_id: Place identifier

        Returns:
            Place details, or None if the service returned no result
        """
        body = await self._call("details", {"place_id": place_id, "fields": DETAILS_FIELDS})
        result = body.get("result")
        if not result:
            return None
        latitude, longitude = self._location(result)
        return PlaceDetails(
            place_id=result.get("place_id", place_id),
            name=result.get("name", ""),
            formatted_address=result.get("formatted_address", ""),
            formatted_phone_number=result.get("formatted_phone_number"),
            address_components=self._address_components(result.get("address_components", [])),
            latitude=latitude,
            longitude=longitude,
        )

    async def text_search(self, query: str) -> list[PlaceCandidate]:
        """
        Free-text place search.

        Args:
            query: Search text

        Returns:
            Candidate places
        """
        body = await self._call("textsearch", {"query": query, "region": self._country})
        candidates = []
        for result in body.get("results", []):
            latitude, longitude = self._location(result)
            candidates.append(
                PlaceCandidate(
                    place_id=result["place_id"],
                    name=result.get("name", ""),
                    formatted_address=result.get("formatted_address", ""),
                    rating=result.get("rating"),
                    latitude=latitude,
                    longitude=longitude,
                    address_components=self._address_components(
                        result.get("address_components", [])
                    ),
                )
            )
        return candidates

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
