from __future__ import annotations

from fastapi import Request

from app.chat.ens_chat import ENSChatIntegration
from app.chat.payment_chat import PaymentChatIntegration
from app.services.activities import ActivityManager
from app.services.ens_agent import ENSAgent
from app.services.payments import PaymentAgent

ANONYMOUS_SESSION = "anonymous"


def get_ens_chat(request: Request) -> ENSChatIntegration:
    return request.app.state.services.ens_chat


def get_payment_chat(request: Request) -> PaymentChatIntegration:
    return request.app.state.services.payment_chat


def get_ens_agent(request: Request) -> ENSAgent:
    return request.app.state.services.ens_agent


def get_payment_agent(request: Request) -> PaymentAgent:
    return request.app.state.services.payment_agent


def get_activities(request: Request) -> ActivityManager:
    return request.app.state.services.activities


def resolve_session_id(request: Request, user_address: str | None = None) -> str:
    """
    X-Session-Id header, else the user's address, else a shared anonymous session.
    """
    header = request.headers.get("X-Session-Id")
    if header:
        return header
    if user_address:
        return user_address.lower()
    return ANONYMOUS_SESSION
