"""Ordering and recommendation helpers for normalized clinic records."""

from functools import cmp_to_key
from typing import List, Optional, Sequence

from vetfinder.models import ClinicRecord, Location


def _rating(record: ClinicRecord) -> float:
    # Absent ratings compare as zero; the record itself keeps ``None``.
    return record.rating if record.rating is not None else 0.0


def _origin_magnitude(location: Location) -> float:
    # Squared distance from (0, 0), not from the caller.
    return location.lat ** 2 + location.lng ** 2


def compare_clinics(a: ClinicRecord, b: ClinicRecord) -> int:
    rating_a, rating_b = _rating(a), _rating(b)
    if rating_a != rating_b:
        return -1 if rating_a > rating_b else 1
    if a.location is not None and b.location is not None:
        magnitude_a = _origin_magnitude(a.location)
        magnitude_b = _origin_magnitude(b.location)
        if magnitude_a != magnitude_b:
            return -1 if magnitude_a < magnitude_b else 1
    return 0


def rank_clinics(records: Sequence[ClinicRecord]) -> List[ClinicRecord]:
    """Return a new list ordered by rating (desc), then by proximity proxy (asc)."""
    return sorted(records, key=cmp_to_key(compare_clinics))


def select_recommendation(records: Sequence[ClinicRecord]) -> Optional[ClinicRecord]:
    best: Optional[ClinicRecord] = None
    for record in records:
        if best is None or _rating(record) > _rating(best):
            best = record
    return best
