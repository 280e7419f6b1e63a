from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.schemas.common import data_response
from app.contracts.activity import ActivityType
from app.contracts.results import AgentResponse
from app.deps import get_activities
from app.services.activities import ActivityManager

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=AgentResponse)
def list_activities(
    limit: int = Query(10, ge=1, le=50),
    type: ActivityType | None = Query(None),
    activities: ActivityManager = Depends(get_activities),
) -> AgentResponse:
    if type is not None:
        records = activities.get_by_type(type, limit=limit)
    else:
        records = activities.get_recent(limit)
    return data_response([record.model_dump(mode="json") for record in records])


@router.delete("", response_model=AgentResponse)
def clear_activities(activities: ActivityManager = Depends(get_activities)) -> AgentResponse:
    activities.clear()
    return data_response([], message="Activity feed cleared")
