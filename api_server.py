"""
BeeMiner Game API - FastAPI Server
REST endpoints over the economy engine: game state, bees, honey sales,
alveoles, roulette, missions and test resources
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import random
from datetime import datetime
import uvicorn
import logging

# Import internal modules
from config import *
from beeminer import __version__
from beeminer.economy import EconomyEngine, TransitionResult
from beeminer.economy.catalog import catalog_to_dict
from beeminer.notifications import (
    NotificationService,
    NotificationSettings,
    alveole_unlocked_email,
    create_provider,
    mission_claimed_email,
)
from beeminer.storage import build_store

# Setup logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Wire names accepted by PUT, mapped to engine field names
CLIENT_FIELD_ALIASES = {
    "contactEmail": "contact_email",
    "preferences": "preferences",
}

TEST_RESOURCE_ALIASES = {
    "honey": "honey",
    "flowers": "flowers",
    "tickets": "tickets",
    "diamonds": "diamonds",
    "bvrCoins": "secondary_coin",
}


# REQUEST MODELS
class BuyBeeRequest(BaseModel):
    beeTypeId: Optional[str] = Field(default=None, description="Bee tier: baby, worker, elite, royal or queen")


class SellHoneyRequest(BaseModel):
    amount: Optional[int] = Field(default=None, description="Honey to sell, minimum 300")


class UpgradeAlveoleRequest(BaseModel):
    level: Optional[int] = Field(default=None, description="Alveole level to unlock (1-6)")


class ClaimMissionRequest(BaseModel):
    missionId: Optional[int] = Field(default=None, description="Referral mission ID (1-7)")


class GrantResourcesRequest(BaseModel):
    honey: Optional[int] = None
    flowers: Optional[int] = None
    tickets: Optional[int] = None
    diamonds: Optional[int] = None
    bvrCoins: Optional[int] = None


def build_engine() -> EconomyEngine:
    return EconomyEngine(
        build_store(DATABASE_URL),
        rng=random.SystemRandom(),
        allow_test_grants=TEST_RESOURCES_ENABLED,
        max_retries=STATE_SAVE_RETRIES,
    )


def build_notifier() -> NotificationService:
    settings = NotificationSettings(
        provider=EMAIL_PROVIDER,
        sender_email=EMAIL_FROM,
        sender_name=EMAIL_SENDER_NAME,
        brevo_api_key=BREVO_API_KEY,
        smtp_host=SMTP_HOST,
        smtp_port=SMTP_PORT,
        smtp_username=SMTP_USERNAME,
        smtp_password=SMTP_PASSWORD,
    )
    return NotificationService(create_provider(settings))


def _respond(result: TransitionResult, message: str, **payload_keys: str) -> JSONResponse:
    """Map a transition result to the game client's JSON envelope."""
    if not result.ok:
        rejection = result.rejection
        return JSONResponse(
            status_code=rejection.http_status,
            content={"success": False, **rejection.to_dict()},
        )

    body: Dict[str, Any] = {"success": True, "message": message}
    for body_key, payload_key in payload_keys.items():
        if payload_key in result.payload:
            body[body_key] = result.payload[payload_key]
    body["gameState"] = result.state.to_dict()
    return JSONResponse(status_code=200, content=body)


def create_app(
    engine: Optional[EconomyEngine] = None,
    notifier: Optional[NotificationService] = None,
) -> FastAPI:
    """Build the API around an engine and a notification service."""
    engine = engine or build_engine()
    notifier = notifier or build_notifier()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        notifier.shutdown(wait=False)

    app = FastAPI(
        title="BeeMiner Game API",
        description="Idle game economy backend",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.notifier = notifier

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Liveness plus notification provider status."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
            "environment": ENVIRONMENT,
            "testResources": engine.allow_test_grants,
            "notifications": notifier.verify(),
        }

    @app.get("/api/catalog")
    def get_catalog():
        """Static bee, alveole, roulette and mission tables"""
        return {"success": True, "catalog": catalog_to_dict()}

    @app.get("/api/game/{user_id}")
    def get_game_state(user_id: str):
        """Get game state for user, creating it on first visit"""
        try:
            result = engine.get_state(user_id)
            return _respond(result, "Game state loaded")
        except Exception as e:
            logger.error(f"Get game state error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error fetching game state")

    @app.put("/api/game/{user_id}")
    def update_game_state(user_id: str, updates: Dict[str, Any]):
        """Update client-owned fields (contactEmail, preferences) only"""
        fields = {CLIENT_FIELD_ALIASES.get(key, key): value for key, value in updates.items()}
        try:
            result = engine.update_client_fields(user_id, fields)
            return _respond(result, "Game state updated successfully")
        except Exception as e:
            logger.error(f"Update game state error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error updating game state")

    @app.post("/api/game/{user_id}/buy-bee")
    def buy_bee(user_id: str, request: BuyBeeRequest):
        """Buy a bee with flowers"""
        try:
            result = engine.purchase_bee(user_id, request.beeTypeId)
            return _respond(result, f"Successfully purchased {request.beeTypeId} bee", bee="bee")
        except Exception as e:
            logger.error(f"Buy bee error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error purchasing bee")

    @app.post("/api/game/{user_id}/sell-honey")
    def sell_honey(user_id: str, request: SellHoneyRequest):
        """Sell honey for diamonds, flowers, and BVR coins"""
        try:
            result = engine.sell_honey(user_id, request.amount)
            return _respond(
                result,
                f"Successfully sold {request.amount} honey",
                rewards="rewards",
                discarded="discarded",
            )
        except Exception as e:
            logger.error(f"Sell honey error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error selling honey")

    @app.post("/api/game/{user_id}/upgrade-alveole")
    def upgrade_alveole(user_id: str, request: UpgradeAlveoleRequest):
        """Unlock the next storage tier"""
        try:
            result = engine.unlock_alveole(user_id, request.level)
            response = _respond(result, f"Alveole level {request.level} unlocked", alveole="alveole")
        except Exception as e:
            logger.error(f"Upgrade alveole error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error upgrading alveole")

        if result.ok:
            email = alveole_unlocked_email(result.payload["alveole"])
            notifier.notify(result.state.contact_email, email["subject"], email["html"])
        return response

    @app.post("/api/game/{user_id}/spin-roulette")
    def spin_roulette(user_id: str):
        """Spend one ticket on the prize wheel"""
        try:
            result = engine.spin_roulette(user_id)
            return _respond(result, "Roulette spun", prize="prize")
        except Exception as e:
            logger.error(f"Spin roulette error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error spinning roulette")

    @app.post("/api/game/{user_id}/claim-mission")
    def claim_mission(user_id: str, request: ClaimMissionRequest):
        """Claim a referral mission reward"""
        try:
            result = engine.claim_mission(user_id, request.missionId)
            response = _respond(result, f"Mission {request.missionId} claimed", mission="mission")
        except Exception as e:
            logger.error(f"Claim mission error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error claiming mission")

        if result.ok:
            email = mission_claimed_email(result.payload["mission"])
            notifier.notify(result.state.contact_email, email["subject"], email["html"])
        return response

    @app.post("/api/game/{user_id}/add-test-resources")
    def add_test_resources(user_id: str, request: GrantResourcesRequest):
        """Grant resources for testing (disabled in production)"""
        if not engine.allow_test_grants:
            raise HTTPException(status_code=404, detail="Not found")

        deltas = {
            TEST_RESOURCE_ALIASES[key]: value
            for key, value in request.model_dump(exclude_none=True).items()
        }
        try:
            result = engine.grant_test_resources(user_id, deltas)
            return _respond(result, "Test resources added", granted="granted")
        except Exception as e:
            logger.error(f"Add test resources error: {str(e)}")
            raise HTTPException(status_code=500, detail="Error adding test resources")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "api_server:app",
        host=API_HOST,
        port=API_PORT,
        workers=API_WORKERS,
        reload=False,
        log_level=LOG_LEVEL.lower()
    )
