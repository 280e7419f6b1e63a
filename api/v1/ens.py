from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.schemas.common import chat_response, data_response, result_response
from api.schemas.ens import RecordUpdateRequest, RegisterRequest, RenewRequest, TransferRequest
from app.chat.contracts import ChatRequest
from app.chat.ens_chat import ENSChatIntegration
from app.chat.extract import SECONDS_PER_DAY
from app.contracts.operations import ENSOperation
from app.contracts.results import AgentResponse
from app.deps import get_ens_agent, get_ens_chat, resolve_session_id
from app.services.ens_agent import ENSAgent
from chain.ens import ETH_COIN_TYPE

router = APIRouter(prefix="/ens", tags=["ens"])
logger = logging.getLogger(__name__)

_ADDRESS_KEYS = {"addr", "address"}


# ---------------------------
# Chat
# ---------------------------


@router.post("/chat", response_model=AgentResponse)
def ens_chat(
    payload: ChatRequest,
    request: Request,
    chat: ENSChatIntegration = Depends(get_ens_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, payload.user_address)
    reply = chat.process_message(session_id, payload)
    return chat_response(reply)


@router.get("/chat/history", response_model=AgentResponse)
def ens_chat_history(
    request: Request,
    user_address: str | None = Query(None),
    chat: ENSChatIntegration = Depends(get_ens_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    return data_response(chat.get_history(session_id).model_dump(mode="json"))


@router.delete("/chat/history", response_model=AgentResponse)
def ens_clear_history(
    request: Request,
    user_address: str | None = Query(None),
    chat: ENSChatIntegration = Depends(get_ens_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    chat.clear_history(session_id)
    return data_response({"session_id": session_id}, message="Chat history cleared")


# ---------------------------
# Names (reads)
# ---------------------------


@router.get("/names/{name}", response_model=AgentResponse)
def get_name(name: str, agent: ENSAgent = Depends(get_ens_agent)) -> AgentResponse:
    return result_response(agent.get_name_info(name))


@router.get("/names/{name}/available", response_model=AgentResponse)
def name_available(name: str, agent: ENSAgent = Depends(get_ens_agent)) -> AgentResponse:
    return result_response(agent.check_availability(name))


@router.get("/names/{name}/resolve", response_model=AgentResponse)
def resolve_name(name: str, agent: ENSAgent = Depends(get_ens_agent)) -> AgentResponse:
    return result_response(agent.resolve_name(name))


@router.get("/names/{name}/price", response_model=AgentResponse)
def name_price(
    name: str,
    duration: int = Query(365, ge=1, description="registration length in days"),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    return result_response(agent.get_price(name, duration * SECONDS_PER_DAY))


@router.get("/names/{name}/records/{key}", response_model=AgentResponse)
def get_record(
    name: str,
    key: str,
    coin_type: int = Query(ETH_COIN_TYPE, ge=0),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    if key.lower() in _ADDRESS_KEYS:
        return result_response(agent.get_address_record(name, coin_type))
    return result_response(agent.get_text_record(name, key))


@router.get("/addresses/{address}/resolve", response_model=AgentResponse)
def reverse_resolve(address: str, agent: ENSAgent = Depends(get_ens_agent)) -> AgentResponse:
    return result_response(agent.resolve_address(address))


# ---------------------------
# Names (writes)
# ---------------------------


def _execute(
    op: ENSOperation,
    request: Request,
    chat: ENSChatIntegration,
    agent: ENSAgent,
) -> AgentResponse:
    result = agent.execute_operation(op)
    chat.formatter.record_activity(result, session_id=resolve_session_id(request))
    return result_response(result)


@router.post("/names/{name}/records", response_model=AgentResponse)
def set_record(
    name: str,
    payload: RecordUpdateRequest,
    request: Request,
    chat: ENSChatIntegration = Depends(get_ens_chat),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    op = ENSOperation(type="setRecord", name=name, data=payload.model_dump())
    return _execute(op, request, chat, agent)


@router.post("/names/{name}/register", response_model=AgentResponse)
def register_name(
    name: str,
    payload: RegisterRequest,
    request: Request,
    chat: ENSChatIntegration = Depends(get_ens_chat),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    data = {"owner": payload.owner, "duration": payload.duration_days * SECONDS_PER_DAY}
    if payload.step == "commit":
        return _execute(ENSOperation(type="commit", name=name, data=data), request, chat, agent)

    if not payload.secret or payload.ready_at is None:
        raise HTTPException(status_code=422, detail="step=reveal requires secret and ready_at from the commit step")
    data.update(secret=payload.secret, ready_at=payload.ready_at)
    return _execute(ENSOperation(type="reveal", name=name, data=data), request, chat, agent)


@router.post("/names/{name}/renew", response_model=AgentResponse)
def renew_name(
    name: str,
    payload: RenewRequest,
    request: Request,
    chat: ENSChatIntegration = Depends(get_ens_chat),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    op = ENSOperation(type="renew", name=name, data={"duration": payload.duration_days * SECONDS_PER_DAY})
    return _execute(op, request, chat, agent)


@router.post("/names/{name}/transfer", response_model=AgentResponse)
def transfer_name(
    name: str,
    payload: TransferRequest,
    request: Request,
    chat: ENSChatIntegration = Depends(get_ens_chat),
    agent: ENSAgent = Depends(get_ens_agent),
) -> AgentResponse:
    op = ENSOperation(type="transfer", name=name, data={"new_owner": payload.new_owner})
    return _execute(op, request, chat, agent)


# ---------------------------
# Agent info
# ---------------------------


@router.get("/agent/status", response_model=AgentResponse)
def agent_status(chat: ENSChatIntegration = Depends(get_ens_chat)) -> AgentResponse:
    return data_response(chat.get_status())


@router.get("/agent/help", response_model=AgentResponse)
def agent_help(chat: ENSChatIntegration = Depends(get_ens_chat)) -> AgentResponse:
    return data_response({"help": chat.get_help()})


@router.get("/agent/suggestions", response_model=AgentResponse)
def agent_suggestions(
    request: Request,
    user_address: str | None = Query(None),
    chat: ENSChatIntegration = Depends(get_ens_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    return data_response({"suggestions": chat.get_suggestions(session_id)})


@router.get("/agent/stats", response_model=AgentResponse)
def agent_stats(
    request: Request,
    user_address: str | None = Query(None),
    chat: ENSChatIntegration = Depends(get_ens_chat),
) -> AgentResponse:
    session_id = resolve_session_id(request, user_address)
    return data_response(chat.get_stats(session_id))
