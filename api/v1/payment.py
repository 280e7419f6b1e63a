from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.schemas.common import chat_response, data_response, result_response
from api.schemas.payment import SendRequest
from app.chat.contracts import ChatRequest
from app.chat.extract import TX_HASH_RE, is_valid_ens_name
from app.chat.payment_chat import PaymentChatIntegration, requires_wallet
from app.contracts.operations import PaymentRequest
from app.contracts.results import AgentResponse, ErrorResult
from app.deps import get_payment_agent, get_payment_chat, resolve_session_id
from app.services.payments import PaymentAgent

router = APIRouter(prefix="/payment", tags=["payment"])
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=AgentResponse)
def payment_chat(
    payload: ChatRequest,
    request: Request,
    chat: PaymentChatIntegration = Depends(get_payment_chat),
) -> AgentResponse:
    if not payload.user_address and requires_wallet(payload.message) and not payload.is_confirmation:
        raise HTTPException(status_code=400, detail="Please connect your wallet to send payments or check balances")

    session_id = resolve_session_id(request, payload.user_address)
    reply = chat.process_message(session_id, payload)
    return chat_response(reply)


@router.get("/chat", response_model=AgentResponse)
def payment_chat_info(
    request: Request,
    user_address: str | None = Query(None),
    chat: PaymentChatIntegration = Depends(get_payment_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    return data_response(
        {
            "history": chat.get_history(session_id).model_dump(mode="json"),
            "status": chat.get_status(),
            "suggested_prompts": chat.get_suggestions(),
            "help": chat.get_help(),
        }
    )


@router.delete("/chat", response_model=AgentResponse)
def payment_chat_clear(
    request: Request,
    user_address: str | None = Query(None),
    chat: PaymentChatIntegration = Depends(get_payment_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    chat.clear_history(session_id)
    return data_response({"session_id": session_id}, message="Chat history cleared")


@router.get("/balance/{address}", response_model=AgentResponse)
def get_balance(address: str, agent: PaymentAgent = Depends(get_payment_agent)) -> AgentResponse:
    return result_response(agent.get_balance(address))


@router.post("/send", response_model=AgentResponse)
def send_payment(
    payload: SendRequest,
    request: Request,
    chat: PaymentChatIntegration = Depends(get_payment_chat),
    agent: PaymentAgent = Depends(get_payment_agent),
) -> AgentResponse:
    ens_name = None
    to = payload.to
    if is_valid_ens_name(to):
        ens_name = to.lower()
        to = agent.resolve_recipient(ens_name)
        if not to:
            error = f'Could not resolve ENS name "{ens_name}". Please check the name and try again.'
            return result_response(ErrorResult(error=error))

    req = PaymentRequest(to=to, amount=payload.amount, token=payload.token, ens_name=ens_name, message=payload.message)
    result = agent.send_payment(req)
    chat.formatter.record_activity(result, session_id=resolve_session_id(request))
    response = result_response(result)
    if result.kind == "payment" and (result.tx_hash or result.unsigned_tx):
        response.transaction = {
            "status": result.status,
            "tx_hash": result.tx_hash,
            "tx": result.unsigned_tx,
            "explorer_url": result.explorer_url,
        }
    return response


@router.get("/tx/{tx_hash}", response_model=AgentResponse)
def get_transaction(tx_hash: str, agent: PaymentAgent = Depends(get_payment_agent)) -> AgentResponse:
    if not TX_HASH_RE.fullmatch(tx_hash):
        raise HTTPException(status_code=422, detail="tx_hash must be 0x followed by 64 hex characters")
    return result_response(agent.get_transaction_status(tx_hash))
