"""Client utilities for the Google Places API (New) text search."""

import logging
from typing import Any, Dict, List

import requests

from vetfinder.core.errors import UpstreamError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://places.googleapis.com/v1"
_FIELD_MASK = ",".join(
    (
        "places.displayName",
        "places.formattedAddress",
        "places.rating",
        "places.userRatingCount",
        "places.internationalPhoneNumber",
        "places.location",
        "places.websiteUri",
        "places.currentOpeningHours",
    )
)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "unknown error"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason or "unknown error"


def search_text(
    text_query: str,
    api_key: str,
    radius_meters: float,
    open_now: bool = True,
    timeout: float = 10,
) -> List[Dict[str, Any]]:
    """Run a Places text search and return the raw ``places`` list."""
    body = {
        "textQuery": text_query,
        "openNow": open_now,
        "locationBias": {"circle": {"radius": radius_meters}},
    }
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": _FIELD_MASK,
    }
    try:
        response = _SESSION.post(f"{_BASE_URL}/places:searchText", json=body, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("search_text transport failure: %s", exc)
        raise UpstreamError(f"Failed to reach the Places API: {exc}") from exc

    if not response.ok:
        message = _error_message(response)
        logger.error("search_text failed: status=%s, error_message=%s", response.status_code, message)
        raise UpstreamError(f"Failed to fetch vet clinics: {message}", status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError("Places API returned a non-JSON payload") from exc
    if not isinstance(payload, dict):
        raise UpstreamError("Places API returned an unexpected payload")
    places = payload.get("places") or []
    return places if isinstance(places, list) else []
