"""HTTP entrypoint exposing clinic discovery to the web app and voice webhooks."""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Flask, Response, jsonify, make_response, request

from vetfinder.core.config import get_settings
from vetfinder.core.errors import DiscoveryError
from vetfinder.jobs import protocols
from vetfinder.jobs.discover import discover

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reports whether the Places key is configured."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "places_key_configured": bool(settings.google_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/api/nearby-vets")
def nearby_vets() -> Response:
    """Query-string search: ``zipCode`` required, ``radius`` in miles optional."""
    return _handle(protocols.QUERY, request.args)


@app.route("/api/vapi/nearby-vets", methods=["POST", "OPTIONS"])
def vapi_function_call() -> Response:
    if request.method == "OPTIONS":
        return _preflight()
    return _handle(protocols.FUNCTION_CALL, request.get_json(silent=True))


@app.route("/api/vapi/tool-call", methods=["POST", "OPTIONS"])
def vapi_tool_call() -> Response:
    if request.method == "OPTIONS":
        return _preflight()
    return _handle(protocols.TOOL_CALL, request.get_json(silent=True))


@app.route("/api/vapi/tool-calls", methods=["POST", "OPTIONS"])
def vapi_tool_calls() -> Response:
    if request.method == "OPTIONS":
        return _preflight()
    return _handle(protocols.TOOL_CALLS, request.get_json(silent=True))


# ---------- Internals ----------


def _with_cors(response: Response) -> Response:
    response.headers.update(CORS_HEADERS)
    return response


def _preflight() -> Response:
    return _with_cors(make_response(jsonify({}), 200))


def _handle(protocol: protocols.Protocol, payload: Any) -> Response:
    correlation_id = None
    try:
        correlation_id = protocol.correlation_id(payload)
        clinic_request = protocol.parse(payload)
        settings = get_settings()
        result = discover(
            clinic_request.zip_code,
            clinic_request.radius_miles,
            api_key=settings.google_api_key,
            dedupe=settings.dedupe_clinics,
            timeout=settings.places_timeout,
        )
        body, status = protocol.render(result, correlation_id), 200
    except DiscoveryError as exc:
        logger.warning("%s request rejected (%s): %s", protocol.name, exc.http_status, exc)
        body, status = protocol.render_error(str(exc), correlation_id), exc.http_status
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s request failed: %s", protocol.name, exc)
        body, status = protocol.render_error(f"Server error: {exc}", correlation_id), 500

    response = make_response(jsonify(body), status)
    return _with_cors(response) if protocol.cors else response


def main() -> None:
    """Bind on ``PORT`` (Cloud Run injects it), 8080 when unset."""
    port = get_settings().server_port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
