"""
API tests for the swap form surface.

The price feed is stubbed with httpx.MockTransport (sessions) or by patching
PriceFeedClient.fetch_prices (stateless endpoints).
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from tokenswap.api.swap import registry_dependency
from tokenswap.main import app
from tokenswap.providers.price_feed import NetworkFetchError, PriceFeedClient, PriceObservation
from tokenswap.services.sessions import SessionRegistry


@pytest.fixture
def registry(make_client, feed_payload):
    # Long settlement so the submitting phase is observable between requests
    return SessionRegistry(client=make_client(feed_payload), submit_latency=60, success_display=0)


@pytest.fixture
def client(registry):
    app.dependency_overrides[registry_dependency] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
        # Dispose on the app's event loop so pending settlements are cancelled there
        test_client.portal.call(registry.close_all)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    resp = client.post("/sessions")
    assert resp.status_code == 201, resp.json()
    return resp.json()["id"]


def post(client, path, payload=None, status=200):
    resp = client.post(path, json=payload)
    assert resp.status_code == status, resp.json()
    return resp.json()


def test_root(client):
    assert client.get("/").json()["name"] == "Token Swap API"


def test_create_session_loads_catalog(client):
    body = post(client, "/sessions", status=201)

    assert body["status"] == "ready"
    assert body["tokens"] == 2
    assert body["form"]["phase"] == "idle"
    assert body["form"]["selectors"]["from"]["placeholder"] == "Select token"


def test_unknown_session(client):
    assert client.get("/sessions/missing").status_code == 404


def test_full_swap_flow(client, session_id):
    base = f"/sessions/{session_id}"

    opened = post(client, f"{base}/selectors/from/open")
    options = opened["session"]["form"]["selectors"]["from"]["options"]
    assert [o["currency"] for o in options] == ["BTC", "ETH"]

    post(client, f"{base}/selectors/from/search", {"text": "et"})
    post(client, f"{base}/selectors/from/select", {"currency": "ETH"})
    post(client, f"{base}/selectors/to/select", {"currency": "BTC"})
    body = post(client, f"{base}/amount", {"text": "2"})

    form = body["session"]["form"]
    assert form["receiveAmount"] == "0.125000"
    assert form["rateLabel"] == "1 ETH = 0.062500 BTC"
    assert form["selectors"]["from"]["open"] is False

    submitted = post(client, f"{base}/submit")
    assert submitted["accepted"] is True
    assert submitted["session"]["form"]["phase"] == "submitting"
    assert submitted["session"]["form"]["inputsDisabled"] is True

    again = client.post(f"{base}/submit")
    assert again.status_code == 409
    assert client.post(f"{base}/amount", json={"text": "3"}).status_code == 409


def test_submit_validation_errors_are_data(client, session_id):
    body = post(client, f"/sessions/{session_id}/submit")

    assert body["accepted"] is False
    assert set(body["session"]["form"]["errors"]) == {"from_token", "to_token", "from_amount"}


def test_rejected_amount(client, session_id):
    resp = client.post(f"/sessions/{session_id}/amount", json={"text": "12a"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["reason"] == "Amount rejected"


def test_opposite_currency_cannot_be_selected(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/from/select", {"currency": "ETH"})

    assert client.post(f"{base}/selectors/to/select", json={"currency": "ETH"}).status_code == 409
    assert client.post(f"{base}/selectors/to/select", json={"currency": "DOGE"}).status_code == 404


def test_outside_interaction_closes_selector(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/to/open")

    body = post(client, f"{base}/interactions", {"target": "amount-input"})

    assert body["session"]["form"]["selectors"]["to"]["open"] is False


def test_hover_outside_keeps_selector_open(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/to/open")

    body = post(client, f"{base}/interactions", {"target": "amount-input", "kind": "pointerover"})

    assert body["session"]["form"]["selectors"]["to"]["open"] is True


def test_unknown_interaction_kind_is_rejected(client, session_id):
    resp = client.post(f"/sessions/{session_id}/interactions", json={"target": "x", "kind": "wheel"})
    assert resp.status_code == 422


def test_reload_while_submitting_keeps_submitted_tokens(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/from/select", {"currency": "ETH"})
    post(client, f"{base}/selectors/to/select", {"currency": "BTC"})
    post(client, f"{base}/amount", {"text": "2"})
    post(client, f"{base}/submit")

    btc_only = [PriceObservation(currency="BTC", date="2024-02-01T00:00:00Z", price=42000)]
    with patch.object(PriceFeedClient, "fetch_prices", AsyncMock(return_value=btc_only)):
        body = post(client, f"{base}/reload")

    assert body["tokens"] == 1
    assert body["form"]["phase"] == "submitting"
    assert body["form"]["fromToken"]["currency"] == "ETH"
    assert body["form"]["toToken"]["currency"] == "BTC"


def test_swap_direction(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/from/select", {"currency": "ETH"})
    post(client, f"{base}/amount", {"text": "4"})

    form = post(client, f"{base}/swap-direction")["session"]["form"]

    assert form["fromToken"] is None
    assert form["toToken"]["currency"] == "ETH"
    assert form["fromAmount"] == "4"


def test_icon_error_switches_to_fallback(client, session_id):
    base = f"/sessions/{session_id}"
    post(client, f"{base}/selectors/from/select", {"currency": "BTC"})

    body = post(client, f"{base}/selectors/from/icon-error", {"currency": "BTC"})

    icon = body["session"]["form"]["selectors"]["from"]["selectedIcon"]
    assert icon == {"kind": "fallback", "src": None, "glyph": "B", "alt": "BTC"}


def test_delete_session(client, session_id, registry):
    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert registry.get(session_id) is None
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_failed_feed_reports_and_blocks_form(make_client):
    registry = SessionRegistry(client=make_client({"oops": True}, status=500))
    app.dependency_overrides[registry_dependency] = lambda: registry
    try:
        with TestClient(app) as client:
            body = post(client, "/sessions", status=201)
            assert body["status"] == "failed"
            assert body["error"]["kind"] == "network"
            assert body["form"] is None

            resp = client.post(f"/sessions/{body['id']}/amount", json={"text": "1"})
            assert resp.status_code == 409
    finally:
        app.dependency_overrides.clear()
        registry.close_all()


class TestStatelessEndpoints:

    @pytest.fixture
    def observations(self, feed_payload):
        return [PriceObservation(**item) for item in feed_payload]

    def test_tokens_filtered(self, observations):
        with patch.object(PriceFeedClient, "fetch_prices", AsyncMock(return_value=observations)):
            with TestClient(app) as client:
                body = client.get("/tokens", params={"search": "t", "exclude": "BTC"}).json()

        assert [t["currency"] for t in body["tokens"]] == ["ETH"]
        assert body["total"] == 2

    def test_tokens_feed_failure_is_bad_gateway(self):
        failing = AsyncMock(side_effect=NetworkFetchError(status_code=503))
        with patch.object(PriceFeedClient, "fetch_prices", failing):
            with TestClient(app) as client:
                resp = client.get("/tokens")

        assert resp.status_code == 502
        assert resp.json()["detail"]["kind"] == "network"

    def test_healthz(self, observations):
        with patch.object(PriceFeedClient, "fetch_prices", AsyncMock(return_value=observations)):
            with TestClient(app) as client:
                body = client.get("/healthz").json()

        assert body["status"] == "healthy"
        assert body["providers"]["price_feed"]["observations"] == 3
