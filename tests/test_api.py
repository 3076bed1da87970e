"""
BeeMiner API Test Suite
=======================

Endpoint tests for the game API using FastAPI's TestClient.

Author: jetgause
Created: 2026-10-18
"""

import random

import pytest
from fastapi.testclient import TestClient

from api_server import create_app
from beeminer.economy import EconomyEngine
from beeminer.economy.errors import PersistenceError
from beeminer.notifications import DeliveryOutcome, EmailProvider, NotificationService, NotificationSettings
from beeminer.storage import InMemoryStateStore


class RecordingProvider(EmailProvider):
    """Provider that keeps sent messages in memory."""

    name = "recording"

    def __init__(self):
        super().__init__(NotificationSettings(provider="console"))
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return DeliveryOutcome(success=True, provider=self.name)


class BrokenStore(InMemoryStateStore):
    """Store whose reads always fail."""

    def load(self, user_id):
        raise PersistenceError("database unavailable")


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def notifier(provider):
    service = NotificationService(provider)
    yield service
    service.shutdown()


@pytest.fixture
def engine():
    return EconomyEngine(InMemoryStateStore(), rng=random.Random(7), allow_test_grants=True)


@pytest.fixture
def client(engine, notifier):
    """Create a test client for the API."""
    return TestClient(create_app(engine=engine, notifier=notifier))


def grant(client, user_id="player_1", **resources):
    response = client.post(f"/api/game/{user_id}/add-test-resources", json=resources)
    assert response.status_code == 200
    return response.json()["gameState"]


class TestGameState:
    """Tests for reading and updating the game state."""

    def test_get_creates_default_state(self, client):
        """First visit returns the default document."""
        response = client.get("/api/game/player_1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        state = body["gameState"]
        assert state["userId"] == "player_1"
        assert state["honey"] == 0
        assert state["bees"] == {"baby": 0, "worker": 0, "elite": 0, "royal": 0, "queen": 0}
        assert state["alveoles"]["1"] is True
        assert state["alveoles"]["6"] is False

    def test_put_rejects_server_fields(self, client):
        """PUT cannot overwrite server-computed fields."""
        response = client.put("/api/game/player_1", json={"diamonds": 1000000})

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["reason"] == "ForbiddenField"
        assert client.get("/api/game/player_1").json()["gameState"]["diamonds"] == 0

    def test_put_updates_client_fields(self, client):
        """PUT sets whitelisted client fields."""
        response = client.put(
            "/api/game/player_1",
            json={"contactEmail": "player@example.com", "preferences": {"sound": False}},
        )

        assert response.status_code == 200
        state = response.json()["gameState"]
        assert state["contactEmail"] == "player@example.com"
        assert state["preferences"] == {"sound": False}

    def test_catalog(self, client):
        """Catalog endpoint exposes the static tables."""
        response = client.get("/api/catalog")

        assert response.status_code == 200
        catalog = response.json()["catalog"]
        assert len(catalog["roulette"]["prizes"]) == 16
        assert len(catalog["missions"]) == 7

    def test_user_named_catalog(self, client):
        """A player whose id is 'catalog' can read their own state."""
        response = client.get("/api/game/catalog")

        assert response.status_code == 200
        assert response.json()["gameState"]["userId"] == "catalog"

    def test_referral_fields_are_read_only(self, client):
        """Referral bookkeeping is returned but cannot be set by the client."""
        state = client.get("/api/game/player_1").json()["gameState"]
        assert state["referrals"] == []
        assert state["totalReferralEarnings"] == 0
        assert state["hasPendingFunds"] is False

        response = client.put("/api/game/player_1", json={"hasPendingFunds": True})

        assert response.status_code == 403
        assert response.json()["reason"] == "ForbiddenField"

    def test_health(self, client):
        """Health endpoint reports notification status."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["testResources"] is True
        assert body["notifications"]["success"] is True

    def test_shutdown_closes_notifier(self, engine, notifier):
        """Leaving the app lifespan stops email delivery."""
        with TestClient(create_app(engine=engine, notifier=notifier)) as client:
            assert client.get("/health").status_code == 200

        assert notifier.notify("player@example.com", "Hello", "<p>Hi</p>") is None


class TestEconomyEndpoints:
    """Tests for economy transition endpoints."""

    def test_buy_bee_flow(self, client):
        """Buy a baby bee, then fail to afford a queen."""
        grant(client, flowers=10000)

        response = client.post("/api/game/player_1/buy-bee", json={"beeTypeId": "baby"})
        assert response.status_code == 200
        state = response.json()["gameState"]
        assert state["flowers"] == 8000
        assert state["bees"]["baby"] == 1

        response = client.post("/api/game/player_1/buy-bee", json={"beeTypeId": "queen"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "PreconditionFailed"
        assert body["reason"] == "InsufficientFunds"
        assert body["retryable"] is False

    def test_buy_bee_requires_type(self, client):
        """Missing bee type is rejected."""
        response = client.post("/api/game/player_1/buy-bee", json={})

        assert response.status_code == 400
        assert response.json()["reason"] == "UnknownTier"

    def test_sell_honey(self, client):
        """Selling 950 honey pays three lots."""
        grant(client, honey=1000)

        response = client.post("/api/game/player_1/sell-honey", json={"amount": 950})

        assert response.status_code == 200
        body = response.json()
        assert body["rewards"] == {"diamonds": 3, "flowers": 3, "bvr": 6}
        assert body["discarded"] == 50
        assert body["gameState"]["honey"] == 50
        assert body["gameState"]["bvrCoins"] == 6
        assert body["gameState"]["diamondsThisYear"] == 3

    def test_sell_honey_minimum(self, client):
        """Sales under 300 are invalid input."""
        grant(client, honey=1000)

        response = client.post("/api/game/player_1/sell-honey", json={"amount": 299})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInput"

    def test_upgrade_alveole_notifies(self, client, notifier, provider):
        """Unlocking an alveole emails players who left an address."""
        client.put("/api/game/player_1", json={"contactEmail": "player@example.com"})
        grant(client, flowers=200000)

        response = client.post("/api/game/player_1/upgrade-alveole", json={"level": 2})
        assert response.status_code == 200
        assert response.json()["alveole"]["level"] == 2

        response = client.post("/api/game/player_1/upgrade-alveole", json={"level": 2})
        assert response.status_code == 400
        assert response.json()["reason"] == "AlreadyUnlocked"

        notifier.shutdown(wait=True)
        assert len(provider.sent) == 1
        assert provider.sent[0]["to"] == "player@example.com"

    def test_spin_roulette(self, client):
        """Spinning needs a ticket and consumes exactly one."""
        response = client.post("/api/game/player_1/spin-roulette")
        assert response.status_code == 400
        assert response.json()["reason"] == "NoTicketsAvailable"

        grant(client, tickets=1)
        response = client.post("/api/game/player_1/spin-roulette")

        assert response.status_code == 200
        body = response.json()
        assert 0 <= body["prize"]["index"] < 16
        assert body["gameState"]["tickets"] == 0

    def test_claim_mission(self, client, engine, notifier, provider):
        """Missions pay once when the referral count is reached."""
        engine.store.set_invited_friends("player_1", 3)

        response = client.post("/api/game/player_1/claim-mission", json={"missionId": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["mission"]["flowersReward"] == 1500
        assert body["gameState"]["claimedMissions"] == [2]

        response = client.post("/api/game/player_1/claim-mission", json={"missionId": 2})
        assert response.status_code == 400
        assert response.json()["reason"] == "AlreadyClaimed"

        response = client.post("/api/game/player_1/claim-mission", json={"missionId": 3})
        assert response.json()["reason"] == "RequirementNotMet"

        notifier.shutdown(wait=True)
        # No contact email on file
        assert provider.sent == []


class TestErrorMapping:
    """Tests for disabled features and storage failures."""

    def test_test_resources_hidden_when_disabled(self, notifier):
        """Grant endpoint answers 404 when test grants are off."""
        engine = EconomyEngine(InMemoryStateStore(), allow_test_grants=False)
        client = TestClient(create_app(engine=engine, notifier=notifier))

        response = client.post("/api/game/player_1/add-test-resources", json={"honey": 1000})

        assert response.status_code == 404

    def test_persistence_failure_is_500(self, notifier):
        """Storage failures map to a retryable 500."""
        client = TestClient(create_app(engine=EconomyEngine(BrokenStore()), notifier=notifier))

        response = client.post("/api/game/player_1/sell-honey", json={"amount": 300})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "PersistenceFailure"
        assert body["retryable"] is True
