"""End-to-end tests for the callable endpoints through the Flask test client."""
import pytest

from agora_callables.core.agora import AccessToken, ServiceChat, ServiceRtc

CALLABLES = ["generateAgoraChatToken", "testAuth", "addAgoraUser", "addUser", "getRtcToken"]


def call(client, name, data=None, token=None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return client.post(f"/{name}", json={"data": data if data is not None else {}}, headers=headers)


@pytest.fixture()
def known_caller(id_tokens):
    id_tokens["token-known"] = "AbC123"
    return "token-known"


@pytest.fixture()
def unknown_caller(id_tokens):
    id_tokens["token-unknown"] = "Stranger"
    return "token-unknown"


# ─────────────────────────────────────────────────────────────────────────────
# Protocol
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("name", CALLABLES)
def test_anonymous_calls_are_unauthenticated(client, id_tokens, name):
    response = call(client, name, {"channelName": "room1"})

    assert response.status_code == 401
    assert response.get_json() == {
        "error": {"status": "UNAUTHENTICATED", "message": "User must be authenticated"}
    }


@pytest.mark.parametrize("name", CALLABLES)
def test_invalid_token_is_rejected_before_handler(client, id_tokens, name):
    response = call(client, name, {"channelName": "room1"}, token="forged")

    assert response.status_code == 401
    assert response.get_json()["error"]["status"] == "UNAUTHENTICATED"


@pytest.mark.parametrize("name", CALLABLES)
def test_get_is_bad_request(client, name):
    response = client.get(f"/{name}")

    assert response.status_code == 400
    assert response.get_json() == {"error": {"status": "INVALID_ARGUMENT", "message": "Bad Request"}}


def test_body_without_data_is_bad_request(client, known_caller):
    response = client.post(
        "/generateAgoraChatToken",
        json={"channelName": "room1"},
        headers={"Authorization": f"Bearer {known_caller}"},
    )

    assert response.status_code == 400
    assert response.get_json()["error"]["status"] == "INVALID_ARGUMENT"


def test_unknown_callable_is_not_found(client):
    response = client.post("/deleteEverything", json={"data": {}})

    assert response.status_code == 404
    assert response.get_json()["error"]["status"] == "NOT_FOUND"


# ─────────────────────────────────────────────────────────────────────────────
# Chat tokens
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("name", ["generateAgoraChatToken", "testAuth"])
def test_chat_token_for_known_caller(client, clock, known_caller, name):
    response = call(client, name, token=known_caller)

    assert response.status_code == 200
    result = response.get_json()["result"]
    assert result["userId"] == "abc123"
    assert result["expirationTime"] == int(clock.now) + 3600
    chat = AccessToken.from_string(result["token"]).services[ServiceChat.type]
    assert chat.user_id == "abc123"


def test_chat_token_for_unknown_caller(client, unknown_caller):
    response = call(client, "generateAgoraChatToken", token=unknown_caller)

    assert response.status_code == 404
    assert response.get_json() == {
        "error": {"status": "NOT_FOUND", "message": "User not found in database"}
    }


def test_chat_token_store_outage_is_internal(client, user_store, known_caller):
    user_store.error = ConnectionError("firestore unreachable")

    response = call(client, "generateAgoraChatToken", token=known_caller)

    assert response.status_code == 500
    assert response.get_json() == {
        "error": {"status": "INTERNAL", "message": "Failed to generate chat token"}
    }


# ─────────────────────────────────────────────────────────────────────────────
# RTC tokens
# ─────────────────────────────────────────────────────────────────────────────
def test_rtc_token_for_known_caller(client, known_caller):
    response = call(client, "getRtcToken", {"channelName": "room1"}, token=known_caller)

    assert response.status_code == 200
    result = response.get_json()["result"]
    assert result["channelName"] == "room1"
    assert result["uid"] == 0
    rtc = AccessToken.from_string(result["token"]).services[ServiceRtc.type]
    assert rtc.channel_name == "room1"


def test_rtc_token_without_channel(client, user_store, known_caller):
    response = call(client, "getRtcToken", {}, token=known_caller)

    assert response.status_code == 400
    assert response.get_json() == {
        "error": {"status": "INVALID_ARGUMENT", "message": "channelName is required"}
    }
    assert user_store.lookups == []


def test_rtc_token_for_unknown_caller(client, unknown_caller):
    response = call(client, "getRtcToken", {"channelName": "room1"}, token=unknown_caller)

    assert response.status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Provisioning
# ─────────────────────────────────────────────────────────────────────────────
def test_add_user_creates_then_reports_existing(client, agora_api, known_caller):
    agora_api.queue(200, {"entities": [{"username": "abc123"}]})
    agora_api.queue(400, {"error": "duplicate_unique_property_exists"})

    first = call(client, "addUser", token=known_caller)
    second = call(client, "addUser", token=known_caller)

    assert first.status_code == 200
    assert first.get_json()["result"]["isExisting"] is False
    assert first.get_json()["result"]["agoraResponse"] == {"entities": [{"username": "abc123"}]}
    assert second.status_code == 200
    assert second.get_json()["result"] == {
        "success": True,
        "message": "User already exists",
        "userId": "abc123",
        "isExisting": True,
    }
    assert agora_api.calls[0]["url"] == "https://chat.example.test/61234567/demoapp/users"


def test_add_agora_user_uses_legacy_endpoint(client, agora_api, unknown_caller):
    agora_api.queue(200, {"entities": []})

    response = call(client, "addAgoraUser", token=unknown_caller)

    assert response.status_code == 200
    assert response.get_json()["result"]["userId"] == "stranger"
    assert agora_api.calls[0]["url"] == "https://chat.example.test/users"


def test_add_user_platform_failure_is_internal(client, agora_api, known_caller):
    agora_api.queue(500, "upstream exploded")

    response = call(client, "addUser", token=known_caller)

    assert response.status_code == 500
    assert response.get_json() == {
        "error": {"status": "INTERNAL", "message": "Failed to create Agora user"}
    }
