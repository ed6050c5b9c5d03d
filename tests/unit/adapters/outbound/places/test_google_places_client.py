"""Unit tests for Google Places client adapter."""

import httpx
import pytest

from app.adapters.outbound.places.google_places_client import GooglePlacesClient
from app.adapters.outbound.places.noop_place_search_client import NoOpPlaceSearchClient
from app.application.ports.place_search_client import PlaceSearchError

BASE_URL = "https://places.test/api/place"


def make_client(handler) -> GooglePlacesClient:
    """Build a client whose HTTP traffic goes to the given handler."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GooglePlacesClient(api_key="test-key", base_url=BASE_URL, http_client=http_client)


@pytest.mark.asyncio
async def test_predictions_restricted_to_schools_in_country():
    """Test autocomplete parameters and prediction mapping."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "predictions": [
                    {
                        "place_id": "place_greenwood",
                        "description": "Greenwood High, Sarjapur Road, Bengaluru",
                        "structured_formatting": {"main_text": "Greenwood High"},
                    },
                    {"place_id": "place_oak", "description": "Oakridge International"},
                ],
            },
        )

    client = make_client(handler)
    predictions = await client.predictions("greenwood")

    assert seen["path"] == "/api/place/autocomplete/json"
    assert seen["params"]["input"] == "greenwood"
    assert seen["params"]["types"] == "school"
    assert seen["params"]["components"] == "country:in"
    assert seen["params"]["key"] == "test-key"
    assert [p.main_text for p in predictions] == ["Greenwood High", "Oakridge International"]


@pytest.mark.asyncio
async def test_blank_prediction_input_skips_the_service():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await make_client(handler).predictions("   ") == []


@pytest.mark.asyncio
async def test_details_maps_address_components_and_location():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["place_id"] == "place_greenwood"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "result": {
                    "place_id": "place_greenwood",
                    "name": "Greenwood High School",
                    "formatted_address": "Sarjapur Road, Bengaluru, Karnataka 560001, India",
                    "formatted_phone_number": "080 1234 5678",
                    "address_components": [
                        {"long_name": "560001", "short_name": "560001", "types": ["postal_code"]}
                    ],
                    "geometry": {"location": {"lat": 12.9, "lng": 77.6}},
                },
            },
        )

    details = await make_client(handler).details("place_greenwood")

    assert details.name == "Greenwood High School"
    assert details.address_components[0].types == ["postal_code"]
    assert details.latitude == 12.9
    assert details.longitude == 77.6


@pytest.mark.asyncio
async def test_zero_results_is_not_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    client = make_client(handler)

    assert await client.text_search("nowhere school") == []
    assert await client.details("missing") is None


@pytest.mark.asyncio
async def test_service_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"status": "REQUEST_DENIED", "error_message": "API key invalid"}
        )

    with pytest.raises(PlaceSearchError):
        await make_client(handler).text_search("greenwood")


@pytest.mark.asyncio
async def test_http_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(PlaceSearchError):
        await make_client(handler).predictions("greenwood")


@pytest.mark.asyncio
async def test_noop_client_never_matches():
    client = NoOpPlaceSearchClient()

    assert await client.predictions("greenwood") == []
    assert await client.details("place_greenwood") is None
    assert await client.text_search("greenwood") == []
