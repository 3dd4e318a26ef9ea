import sys
from pathlib import Path

import pytest

# Ensure the `vetfinder` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class DummySettings:
    def __init__(self, api_key="test-key"):
        self.google_api_key = api_key
        self.places_timeout = 10
        self.dedupe_clinics = True
        self.server_port = 8080


class RecordingGateway:
    """Stand-in for the Places search that replays canned batches and counts calls."""

    def __init__(self, *batches):
        self.batches = list(batches)
        self.calls = []

    def __call__(self, text_query, api_key, radius_meters, open_now=True, timeout=10):
        self.calls.append(
            {"text_query": text_query, "api_key": api_key, "radius_meters": radius_meters, "open_now": open_now}
        )
        index = len(self.calls) - 1
        return list(self.batches[index]) if index < len(self.batches) else []


def make_place(name, address="1 Main St, Seattle, WA 98102", rating=None, lat=None, lng=None, **extra):
    place = {"displayName": {"text": name}, "formattedAddress": address}
    if rating is not None:
        place["rating"] = rating
    if lat is not None and lng is not None:
        place["location"] = {"latitude": lat, "longitude": lng}
    place.update(extra)
    return place


@pytest.fixture
def gateway_factory():
    return RecordingGateway
