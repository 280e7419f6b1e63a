from __future__ import annotations

from chain.rpc import SignerNotConfiguredError

from tests.addresses import OTHER, USER


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["llm_enabled"] is False
    assert body["signer_configured"] is False
    assert body["payment_chain_id"] == 84532
    assert body["ens_chain_id"] == 11155111


def test_availability(client):
    resp = client.get("/v1/ens/names/alice.eth/available")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["available"] is True
    assert body["data"]["cost_eth"] == "0.01"


def test_invalid_name_is_not_an_http_error(client, ens_manager):
    resp = client.get("/v1/ens/names/not_a_name/available")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["error"].startswith("Invalid format")
    assert ens_manager.method_calls == []


def test_price(client, ens_manager):
    resp = client.get("/v1/ens/names/alice.eth/price", params={"duration": 730})
    assert resp.json()["data"]["total"] == "0.01"
    ens_manager.rent_price.assert_called_once_with("alice.eth", 730 * 86400)


def test_text_and_address_records(client, ens_manager):
    ens_manager.text.return_value = "@alice"
    ens_manager.addr.return_value = USER
    text = client.get("/v1/ens/names/alice.eth/records/com.twitter").json()
    assert text["data"]["value"] == "@alice"
    addr = client.get("/v1/ens/names/alice.eth/records/addr", params={"coin_type": 60}).json()
    assert addr["data"]["value"] == USER
    ens_manager.addr.assert_called_once_with("alice.eth", 60)


def test_reverse_resolve(client, ens_manager):
    ens_manager.reverse.return_value = "alice.eth"
    body = client.get(f"/v1/ens/addresses/{OTHER}/resolve").json()
    assert body["data"]["name"] == "alice.eth"


def test_commit_without_signer(client, ens_manager):
    ens_manager.commit.side_effect = SignerNotConfiguredError("No signer private key configured")
    resp = client.post("/v1/ens/names/alice.eth/register", json={"owner": USER})
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Signer required for registration"


def test_commit_returns_reveal_data(client):
    body = client.post("/v1/ens/names/alice.eth/register", json={"owner": USER, "duration_days": 365}).json()
    assert body["success"] is True
    assert body["data"]["kind"] == "ens_commit"
    assert body["data"]["wait_seconds"] == 60


def test_reveal_requires_commit_data(client):
    resp = client.post("/v1/ens/names/alice.eth/register", json={"owner": USER, "step": "reveal"})
    assert resp.status_code == 422


def test_short_registration_rejected_by_schema(client):
    resp = client.post("/v1/ens/names/alice.eth/register", json={"owner": USER, "duration_days": 7})
    assert resp.status_code == 422


def test_set_record(client, ens_manager):
    resp = client.post(
        "/v1/ens/names/alice.eth/records",
        json={"key": "com.github", "value": "alice"},
    )
    assert resp.json()["success"] is True
    ens_manager.set_text.assert_called_once_with("alice.eth", "com.github", "alice")


def test_transfer_records_activity(client):
    resp = client.post("/v1/ens/names/alice.eth/transfer", json={"new_owner": OTHER})
    assert resp.json()["data"]["kind"] == "ens_operation"
    feed = client.get("/v1/activities").json()["data"]
    assert feed[0]["type"] == "ens_update"
    assert feed[0]["ens_name"] == "alice.eth"


def test_chat_and_history_by_session_header(client):
    headers = {"X-Session-Id": "abc"}
    resp = client.post("/v1/ens/chat", json={"message": "is alice.eth available?"}, headers=headers)
    body = resp.json()
    assert body["success"] is True
    assert "alice.eth is available for registration" in body["message"]

    history = client.get("/v1/ens/chat/history", headers=headers).json()["data"]
    assert history["session_id"] == "abc"
    assert [m["role"] for m in history["messages"]] == ["user", "assistant"]

    stats = client.get("/v1/ens/agent/stats", headers=headers).json()["data"]
    assert stats["last_ens_name"] == "alice.eth"

    client.delete("/v1/ens/chat/history", headers=headers)
    history = client.get("/v1/ens/chat/history", headers=headers).json()["data"]
    assert history["messages"] == []


def test_chat_rejects_empty_message(client):
    assert client.post("/v1/ens/chat", json={"message": ""}).status_code == 422


def test_agent_info(client):
    status = client.get("/v1/ens/agent/status").json()["data"]
    assert status["agent"] == "ens"
    assert status["contracts"]["registry"].startswith("0x")
    assert "ENS" in client.get("/v1/ens/agent/help").json()["data"]["help"]
    assert client.get("/v1/ens/agent/suggestions").json()["data"]["suggestions"]


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-Id": "req-123"})
    assert resp.headers["X-Request-Id"] == "req-123"
    assert len(client.get("/healthz").headers["X-Request-Id"]) == 12
