from __future__ import annotations

from types import SimpleNamespace

from fastapi import FastAPI

from api.v1.activities import router as activities_router
from api.v1.ens import router as ens_router
from api.v1.payment import router as payment_router
from app.chat.ens_chat import ENSChatIntegration
from app.chat.formatter import ResponseFormatter
from app.chat.llm import ChatFallback
from app.chat.payment_chat import PaymentChatIntegration
from app.chat.prompts import ENS_SYSTEM_PROMPT, PAYMENT_SYSTEM_PROMPT, ens_fallback, payment_fallback
from app.chat.state_store import SessionStore
from app.config import Settings, get_settings
from app.core.logging import configure_logging
from app.core.middleware import SessionContextMiddleware
from app.services.activities import ActivityManager
from app.services.ens_agent import ENSAgent
from app.services.payments import PaymentAgent
from chain.ens import ENSAddresses, ENSContractManager
from chain.pay import BasePayService
from db.session import SessionLocal


def build_services(
    settings: Settings,
    *,
    ens_manager: ENSContractManager | None = None,
    pay: BasePayService | None = None,
) -> SimpleNamespace:
    """
    Wire every service once. Nothing here talks to the network.
    """
    activities = ActivityManager(session_factory=SessionLocal, limit=settings.activity_limit)
    formatter = ResponseFormatter(activities=activities)

    ens_manager = ens_manager or ENSContractManager(
        chain_id=settings.ENS_CHAIN_ID,
        addresses=ENSAddresses.from_settings(settings),
    )
    ens_agent = ENSAgent(manager=ens_manager)
    payment_agent = PaymentAgent(
        pay=pay or BasePayService(chain_id=settings.PAYMENT_CHAIN_ID, settings=settings),
        ens=ens_manager,
        settings=settings,
    )

    ens_chat = ENSChatIntegration(
        store=SessionStore(ttl_seconds=settings.SESSION_TTL_S),
        formatter=formatter,
        fallback=ChatFallback(settings=settings, system_prompt=ENS_SYSTEM_PROMPT, canned=ens_fallback),
        ens_agent=ens_agent,
    )
    payment_chat = PaymentChatIntegration(
        store=SessionStore(ttl_seconds=settings.SESSION_TTL_S),
        formatter=formatter,
        fallback=ChatFallback(settings=settings, system_prompt=PAYMENT_SYSTEM_PROMPT, canned=payment_fallback),
        ens_agent=ens_agent,
        payment_agent=payment_agent,
    )
    return SimpleNamespace(
        activities=activities,
        ens_agent=ens_agent,
        payment_agent=payment_agent,
        ens_chat=ens_chat,
        payment_chat=payment_chat,
    )


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()

    app = FastAPI(title="Web3 Assistant Service", version="0.1.0")
    app.add_middleware(SessionContextMiddleware)
    app.state.services = build_services(settings)

    app.include_router(ens_router, prefix="/v1")
    app.include_router(payment_router, prefix="/v1")
    app.include_router(activities_router, prefix="/v1")

    @app.get("/healthz")
    async def healthz():
        s = get_settings()
        return {
            "ok": True,
            "llm_enabled": s.LLM_ENABLED,
            "llm_model": s.LLM_MODEL,
            "db_configured": bool(s.DATABASE_URL),
            "signer_configured": bool(s.SIGNER_PRIVATE_KEY),
            "gasless_enabled": s.GASLESS_ENABLED,
            "payment_chain_id": s.PAYMENT_CHAIN_ID,
            "ens_chain_id": s.ENS_CHAIN_ID,
        }

    return app
app = create_app()
