"""Utilities for transforming Places API responses into clinic records."""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from vetfinder.core.errors import MalformedRecord
from vetfinder.models import ClinicRecord, Location

logger = logging.getLogger(__name__)


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities are treated as absent.
    return result if math.isfinite(result) else None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _display_name(raw: Dict[str, Any]) -> Optional[str]:
    display_name = raw.get("displayName")
    if isinstance(display_name, dict):
        display_name = display_name.get("text")
    return _strip_or_none(display_name)


def parse_location(value: Any) -> Optional[Location]:
    """Accept both ``lat/lng`` and ``latitude/longitude`` coordinate keys."""
    if not isinstance(value, dict):
        return None
    lat = _safe_float(value.get("lat", value.get("latitude")))
    lng = _safe_float(value.get("lng", value.get("longitude")))
    if lat is None or lng is None:
        return None
    return Location(lat=lat, lng=lng)


def parse_hours(raw: Dict[str, Any]) -> Optional[str]:
    for key in ("currentOpeningHours", "regularOpeningHours"):
        hours = raw.get(key)
        if isinstance(hours, str):
            return _strip_or_none(hours)
        if isinstance(hours, dict):
            descriptions = [str(line) for line in hours.get("weekdayDescriptions") or [] if line]
            if descriptions:
                return "; ".join(descriptions)
    return None


def to_clinic_record(raw: Dict[str, Any]) -> ClinicRecord:
    name = _display_name(raw)
    if not name:
        raise MalformedRecord("place has no display name")
    address = _strip_or_none(raw.get("formattedAddress"))
    if not address:
        raise MalformedRecord(f"place {name!r} has no formatted address")

    return ClinicRecord(
        name=name,
        address=address,
        rating=_safe_float(raw.get("rating")),
        rating_count=_safe_int(raw.get("userRatingCount")),
        phone=_strip_or_none(raw.get("internationalPhoneNumber")),
        location=parse_location(raw.get("location")),
        website=_strip_or_none(raw.get("websiteUri")),
        hours=parse_hours(raw),
    )


def normalize_places(places: Iterable[Any]) -> List[ClinicRecord]:
    """Map raw places to clinic records, skipping entries that cannot be used."""
    records: List[ClinicRecord] = []
    for raw in places or []:
        if not isinstance(raw, dict):
            logger.debug("Skipping non-object place entry: %r", raw)
            continue
        try:
            records.append(to_clinic_record(raw))
        except MalformedRecord as exc:
            logger.debug("Skipping malformed place: %s", exc)
    return records


def _identity(record: ClinicRecord) -> Tuple[str, str]:
    return (" ".join(record.name.lower().split()), " ".join(record.address.lower().split()))


def dedupe_clinics(records: Iterable[ClinicRecord]) -> List[ClinicRecord]:
    """Drop repeats of an earlier (name, address) pair, keeping first occurrences."""
    seen = set()
    unique: List[ClinicRecord] = []
    for record in records:
        key = _identity(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
