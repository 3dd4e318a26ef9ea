"""Request/response envelopes for the clinic search endpoints.

Every endpoint funnels into the same ``discover`` call. A protocol only knows
how to pull ``(zipCode, radius)`` and an optional correlation id out of its
inbound payload, and how to wrap a ``SearchResult`` (or an error message) in
the shape its caller expects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from vetfinder.core.errors import MalformedInput
from vetfinder.models import SearchResult

FOUND_MESSAGE = "Nearby open clinics found successfully."
EMPTY_MESSAGE = "No open emergency vet clinics were found nearby."


@dataclass(frozen=True)
class ClinicRequest:
    zip_code: Any
    radius_miles: Optional[float] = None


@dataclass(frozen=True)
class RawArguments:
    value: Dict[str, Any]

    def resolve(self) -> Dict[str, Any]:
        return self.value


@dataclass(frozen=True)
class EncodedArguments:
    text: str

    def resolve(self) -> Dict[str, Any]:
        if not self.text.strip():
            return {}
        decoded = json.loads(self.text)
        if not isinstance(decoded, dict):
            raise MalformedInput("tool call arguments must encode a JSON object")
        return decoded


ToolArguments = Union[RawArguments, EncodedArguments]


def parse_tool_arguments(value: Any) -> ToolArguments:
    if isinstance(value, str):
        return EncodedArguments(value)
    if value is None:
        return RawArguments({})
    if isinstance(value, dict):
        return RawArguments(value)
    raise MalformedInput("tool call arguments must be an object or a JSON string")


def coerce_radius(value: Any) -> Optional[float]:
    """Turn an inbound radius (number or numeric string, in miles) into a float."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise MalformedInput("radius must be numeric")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise MalformedInput("radius must be numeric") from None
    raise MalformedInput("radius must be numeric")


def request_from_parameters(parameters: Any) -> ClinicRequest:
    if not isinstance(parameters, Mapping):
        raise MalformedInput("parameters must be an object carrying zipCode")
    zip_code = parameters.get("zipCode")
    if not isinstance(zip_code, str) or not zip_code.strip():
        raise MalformedInput("zipCode is required and must be a string")
    return ClinicRequest(zip_code=zip_code, radius_miles=coerce_radius(parameters.get("radius")))


def summarize(result: SearchResult) -> str:
    if result.recommended is None:
        return EMPTY_MESSAGE
    best = result.recommended
    return f"Found {len(result.records)} open clinics. Recommended: {best.name}, {best.address}."


def _require_object(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedInput("request body must be a JSON object")
    return payload


class Protocol:
    """Base envelope; subclasses override parsing and rendering."""

    name = "base"
    cors = False

    def correlation_id(self, payload: Any) -> Optional[str]:
        return None

    def parse(self, payload: Any) -> ClinicRequest:
        raise NotImplementedError

    def render(self, result: SearchResult, correlation_id: Optional[str]) -> Any:
        raise NotImplementedError

    def render_error(self, message: str, correlation_id: Optional[str]) -> Any:
        raise NotImplementedError


class QueryProtocol(Protocol):
    """``GET ?zipCode=..&radius=..`` returning ``{"clinics": [...]}``."""

    name = "query"

    def parse(self, payload: Any) -> ClinicRequest:
        return request_from_parameters(_require_object(payload))

    def render(self, result: SearchResult, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {"clinics": result.clinics_payload()}

    def render_error(self, message: str, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {"error": message}


class FunctionCallProtocol(Protocol):
    """Voice assistant ``function-call`` message envelope."""

    name = "function-call"
    cors = True

    def parse(self, payload: Any) -> ClinicRequest:
        message = _require_object(_require_object(payload).get("message"))
        message_type = message.get("type")
        function_call = message.get("functionCall")
        if message_type != "function-call" or not function_call:
            raise MalformedInput(f"Unhandled message type: {message_type}")
        return request_from_parameters(_require_object(function_call).get("parameters"))

    def render(self, result: SearchResult, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {"result": FOUND_MESSAGE, "clinics": result.clinics_payload()}

    def render_error(self, message: str, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {"message": message}


class ToolCallProtocol(Protocol):
    """Single tool call carrying ``toolCallId`` next to ``parameters``."""

    name = "tool-call"
    cors = True

    @staticmethod
    def _envelope(payload: Any) -> Mapping[str, Any]:
        body = _require_object(payload)
        nested = body.get("message")
        return nested if isinstance(nested, Mapping) and "toolCallId" in nested else body

    def correlation_id(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, Mapping):
            return None
        return self._envelope(payload).get("toolCallId")

    def parse(self, payload: Any) -> ClinicRequest:
        return request_from_parameters(self._envelope(payload).get("parameters"))

    def render(self, result: SearchResult, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {
            "toolCallId": correlation_id,
            "message": summarize(result),
            "clinics": result.clinics_payload(),
        }

    def render_error(self, message: str, correlation_id: Optional[str]) -> Dict[str, Any]:
        return {"toolCallId": correlation_id, "message": message, "clinics": []}


class ToolCallListProtocol(Protocol):
    """``message.toolCalls[0]`` envelope answered with a flat text result."""

    name = "tool-calls"
    cors = True

    @staticmethod
    def _first_call(payload: Any) -> Mapping[str, Any]:
        message = _require_object(_require_object(payload).get("message"))
        tool_calls = message.get("toolCalls")
        if not isinstance(tool_calls, list) or not tool_calls:
            raise MalformedInput("message.toolCalls must contain at least one tool call")
        return _require_object(tool_calls[0])

    def correlation_id(self, payload: Any) -> Optional[str]:
        try:
            return self._first_call(payload).get("id")
        except MalformedInput:
            return None

    def parse(self, payload: Any) -> ClinicRequest:
        function = self._first_call(payload).get("function") or {}
        arguments = parse_tool_arguments(_require_object(function).get("arguments"))
        return request_from_parameters(arguments.resolve())

    @staticmethod
    def _results(message: str, correlation_id: Optional[str]) -> List[Dict[str, Any]]:
        return [{"toolCallId": correlation_id, "result": {"message": message}}]

    def render(self, result: SearchResult, correlation_id: Optional[str]) -> List[Dict[str, Any]]:
        # The integration only reads text, so the clinic list travels serialized inside it.
        message = summarize(result)
        if result.records:
            message = f"{message} Clinics: {json.dumps(result.clinics_payload())}"
        return self._results(message, correlation_id)

    def render_error(self, message: str, correlation_id: Optional[str]) -> List[Dict[str, Any]]:
        return self._results(message, correlation_id)


QUERY = QueryProtocol()
FUNCTION_CALL = FunctionCallProtocol()
TOOL_CALL = ToolCallProtocol()
TOOL_CALLS = ToolCallListProtocol()
