import pytest

from conftest import DummySettings, RecordingGateway, make_place
from vetfinder.core.errors import UpstreamError
from vetfinder.jobs import server
from vetfinder.vendors import google_places


CORS_ORIGIN = "Access-Control-Allow-Origin"


@pytest.fixture
def gateway(monkeypatch):
    recorder = RecordingGateway(
        [
            make_place("Good Vet", "1 Main St", rating=4.2, internationalPhoneNumber="+1 206-555-0100"),
            make_place("Best Vet", "2 Main St", rating=4.9),
        ]
    )
    monkeypatch.setattr(server, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(google_places, "search_text", recorder)
    return recorder


@pytest.fixture
def client():
    return server.app.test_client()


def test_health_endpoint(client, monkeypatch):
    monkeypatch.setattr(server, "get_settings", lambda: DummySettings())
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"
    assert response.get_json()["places_key_configured"] is True


def test_query_endpoint_returns_ranked_clinics(client, gateway):
    response = client.get("/api/nearby-vets?zipCode=98102&radius=3")

    assert response.status_code == 200
    clinics = response.get_json()["clinics"]
    assert [clinic["name"] for clinic in clinics] == ["Best Vet", "Good Vet"]
    assert clinics[1]["phone"] == "+1 206-555-0100"
    assert gateway.calls[0]["radius_meters"] == pytest.approx(3 * 1609.34)
    assert CORS_ORIGIN not in response.headers


def test_query_endpoint_requires_zip(client, gateway):
    response = client.get("/api/nearby-vets")

    assert response.status_code == 400
    assert "error" in response.get_json()
    assert gateway.calls == []


def test_query_endpoint_rejects_bad_radius(client, gateway):
    response = client.get("/api/nearby-vets?zipCode=98102&radius=far")

    assert response.status_code == 400
    assert gateway.calls == []


def test_missing_key_is_a_config_error_with_no_gateway_calls(client, gateway, monkeypatch):
    monkeypatch.setattr(server, "get_settings", lambda: DummySettings(api_key=""))

    response = client.get("/api/nearby-vets?zipCode=98102")

    assert response.status_code == 400
    assert "GOOGLE_API_KEY" in response.get_json()["error"]
    assert gateway.calls == []


def test_function_call_webhook(client, gateway):
    payload = {"message": {"type": "function-call", "functionCall": {"parameters": {"zipCode": "98102"}}}}

    response = client.post("/api/vapi/nearby-vets", json=payload)

    assert response.status_code == 200
    body = response.get_json()
    assert body["result"] == "Nearby open clinics found successfully."
    assert body["clinics"][0]["name"] == "Best Vet"
    assert response.headers[CORS_ORIGIN] == "*"


def test_function_call_webhook_unhandled_type_keeps_cors(client, gateway):
    response = client.post("/api/vapi/nearby-vets", json={"message": {"type": "status-update"}})

    assert response.status_code == 400
    assert response.get_json() == {"message": "Unhandled message type: status-update"}
    assert response.headers[CORS_ORIGIN] == "*"


@pytest.mark.parametrize("path", ["/api/vapi/nearby-vets", "/api/vapi/tool-call", "/api/vapi/tool-calls"])
def test_webhook_preflight(client, path):
    response = client.open(path, method="OPTIONS")

    assert response.status_code == 200
    assert response.headers[CORS_ORIGIN] == "*"
    assert "OPTIONS" in response.headers["Access-Control-Allow-Methods"]


def test_tool_call_echoes_id(client, gateway):
    response = client.post("/api/vapi/tool-call", json={"toolCallId": "tc-1", "parameters": {"zipCode": "98102"}})

    assert response.status_code == 200
    body = response.get_json()
    assert body["toolCallId"] == "tc-1"
    assert "Best Vet" in body["message"]
    assert len(body["clinics"]) == 2


def test_tool_call_malformed_input_echoes_id(client, gateway):
    response = client.post("/api/vapi/tool-call", json={"toolCallId": "tc-2", "parameters": {"zipCode": 98102}})

    assert response.status_code == 400
    body = response.get_json()
    assert body["toolCallId"] == "tc-2"
    assert body["clinics"] == []
    assert gateway.calls == []


def test_tool_calls_accepts_encoded_arguments(client, gateway):
    payload = {"message": {"toolCalls": [{"id": "call_1", "function": {"arguments": '{"zipCode":"98102"}'}}]}}

    response = client.post("/api/vapi/tool-calls", json=payload)

    assert response.status_code == 200
    body = response.get_json()
    assert body[0]["toolCallId"] == "call_1"
    assert "Best Vet" in body[0]["result"]["message"]
    assert response.headers[CORS_ORIGIN] == "*"


def test_tool_calls_bad_json_arguments_is_server_error(client, gateway):
    payload = {"message": {"toolCalls": [{"id": "call_2", "function": {"arguments": "{zipCode"}}]}}

    response = client.post("/api/vapi/tool-calls", json=payload)

    assert response.status_code == 500
    body = response.get_json()
    assert body[0]["toolCallId"] == "call_2"
    assert body[0]["result"]["message"].startswith("Server error:")
    assert response.headers[CORS_ORIGIN] == "*"


def test_tool_calls_missing_zip_echoes_id(client, gateway):
    payload = {"message": {"toolCalls": [{"id": "call_3", "function": {"arguments": {}}}]}}

    response = client.post("/api/vapi/tool-calls", json=payload)

    assert response.status_code == 400
    assert response.get_json()[0]["toolCallId"] == "call_3"


def test_upstream_status_is_propagated(client, monkeypatch):
    def failing_gateway(**kwargs):
        raise UpstreamError("Failed to fetch vet clinics: quota", status_code=429)

    monkeypatch.setattr(server, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(google_places, "search_text", failing_gateway)

    response = client.post("/api/vapi/tool-call", json={"toolCallId": "tc-3", "parameters": {"zipCode": "98102"}})

    assert response.status_code == 429
    assert response.get_json()["toolCallId"] == "tc-3"
    assert response.headers[CORS_ORIGIN] == "*"


def test_non_json_body_is_malformed_input(client, gateway):
    response = client.post("/api/vapi/tool-calls", data="not json", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()[0]["toolCallId"] is None


@pytest.mark.parametrize("parameters", [{}, {"zipCode": 98102}, {"radius": 5}])
def test_function_call_webhook_rejects_missing_or_non_string_zip(client, gateway, parameters):
    payload = {"message": {"type": "function-call", "functionCall": {"parameters": parameters}}}

    response = client.post("/api/vapi/nearby-vets", json=payload)

    assert response.status_code == 400
    assert "zipCode" in response.get_json()["message"]
    assert response.headers[CORS_ORIGIN] == "*"
    assert gateway.calls == []
