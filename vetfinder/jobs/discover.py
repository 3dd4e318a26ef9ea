"""Clinic discovery pipeline and its command line entrypoint."""

import argparse
import json
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from vetfinder.core.config import get_settings
from vetfinder.core.errors import ConfigError, DiscoveryError, MalformedInput
from vetfinder.etl.ranking import rank_clinics, select_recommendation
from vetfinder.etl.transform import dedupe_clinics, normalize_places
from vetfinder.models import ClinicQuery, SearchResult
from vetfinder.vendors import google_places

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34
DEFAULT_RADIUS_METERS = 8046.72
MIN_RESULTS_BEFORE_EXPANSION = 2
EXPANSION_FACTOR = 2

Gateway = Callable[..., List[Dict[str, Any]]]


def build_query(zip_code: Any, radius_miles: Optional[float] = None) -> ClinicQuery:
    if not isinstance(zip_code, str) or not zip_code.strip():
        raise MalformedInput("USA Zip code of the caller is required. Please specify zipCode parameter.")

    if radius_miles is None:
        radius_meters = DEFAULT_RADIUS_METERS
    else:
        if isinstance(radius_miles, bool) or not isinstance(radius_miles, (int, float)):
            raise MalformedInput("radius must be numeric")
        if not math.isfinite(radius_miles) or radius_miles <= 0:
            raise MalformedInput("radius must be a positive number of miles")
        radius_meters = radius_miles * METERS_PER_MILE

    return ClinicQuery(zip_code=zip_code.strip(), radius_meters=radius_meters)


def search_with_expansion(
    query: ClinicQuery,
    *,
    api_key: str,
    gateway: Gateway,
    timeout: float = 10,
) -> List[Dict[str, Any]]:
    """Search once, and once more at double the radius when results are sparse."""

    def _call(current: ClinicQuery) -> List[Dict[str, Any]]:
        places = gateway(
            text_query=current.text_query,
            api_key=api_key,
            radius_meters=current.radius_meters,
            open_now=current.open_now_only,
            timeout=timeout,
        )
        logger.info("Places search radius=%.2fm returned %d places", current.radius_meters, len(places))
        return list(places)

    places = _call(query)
    if len(places) >= MIN_RESULTS_BEFORE_EXPANSION:
        return places

    logger.info("Only %d places for zip=%s; widening search once", len(places), query.zip_code)
    return places + _call(query.widened(EXPANSION_FACTOR))


def discover(
    zip_code: Any,
    radius_miles: Optional[float] = None,
    *,
    api_key: Optional[str],
    gateway: Optional[Gateway] = None,
    dedupe: bool = True,
    timeout: float = 10,
) -> SearchResult:
    if not api_key:
        raise ConfigError("Places API key is not configured. Set GOOGLE_API_KEY.")

    query = build_query(zip_code, radius_miles)
    places = search_with_expansion(
        query,
        api_key=api_key,
        gateway=gateway or google_places.search_text,
        timeout=timeout,
    )

    records = normalize_places(places)
    if dedupe:
        records = dedupe_clinics(records)
    ranked = rank_clinics(records)
    logger.info("Ranked %d clinics for zip=%s", len(ranked), query.zip_code)
    return SearchResult(records=ranked, recommended=select_recommendation(ranked))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find open emergency vet clinics near a zip code")
    parser.add_argument("--zip", dest="zip_code", required=True, help="Caller zip code")
    parser.add_argument("--radius", dest="radius_miles", type=float, help="Search radius in miles (default 5)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)
    settings = get_settings()

    try:
        result = discover(
            args.zip_code,
            args.radius_miles,
            api_key=settings.google_api_key,
            dedupe=settings.dedupe_clinics,
            timeout=settings.places_timeout,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except DiscoveryError as exc:
        logger.error("Clinic discovery failed: %s", exc)
        return 1

    recommended = result.recommended.to_dict() if result.recommended else None
    print(json.dumps({"clinics": result.clinics_payload(), "recommended": recommended}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
