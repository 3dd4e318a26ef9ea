"""Core data models shared by the clinic discovery pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

SEARCH_PHRASE = "Emergency vet / pet clinic open now"


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class ClinicQuery:
    """Canonical search request sent to the Places API."""

    zip_code: str
    radius_meters: float
    open_now_only: bool = True

    @property
    def text_query(self) -> str:
        return f"{SEARCH_PHRASE} {self.zip_code}"

    def widened(self, factor: float) -> "ClinicQuery":
        return replace(self, radius_meters=self.radius_meters * factor)


@dataclass(slots=True)
class ClinicRecord:
    """Normalized snapshot of a clinic returned by the Places API.

    Optional attributes stay ``None`` when the upstream omitted them; they are
    never back-filled with zeros or empty strings.
    """

    name: str
    address: str
    rating: Optional[float] = None
    rating_count: Optional[int] = None
    phone: Optional[str] = None
    location: Optional[Location] = None
    website: Optional[str] = None
    hours: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation; absent attributes are left out entirely."""
        payload: Dict[str, Any] = {"name": self.name, "address": self.address}
        optional = {
            "rating": self.rating,
            "ratingCount": self.rating_count,
            "phone": self.phone,
            "location": self.location.to_dict() if self.location else None,
            "website": self.website,
            "hours": self.hours,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass
class SearchResult:
    records: List[ClinicRecord] = field(default_factory=list)
    recommended: Optional[ClinicRecord] = None

    def clinics_payload(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records]
