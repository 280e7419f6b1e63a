from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ActivityType(str, Enum):
    ENS_REGISTRATION = "ens_registration"
    ENS_RESOLUTION = "ens_resolution"
    ENS_UPDATE = "ens_update"
    ENS_AVAILABILITY = "ens_availability"
    PAYMENT = "payment"
    CREDENTIAL = "credential"
    TRANSACTION = "transaction"
    BALANCE_CHECK = "balance_check"
    ERROR = "error"


class ActivityStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ActivityRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: UUID
    title: str
    description: str = ""
    type: ActivityType
    status: ActivityStatus = ActivityStatus.COMPLETED
    timestamp: datetime
    tx_hash: str | None = None
    ens_name: str | None = None
    amount: str | None = None
    session_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
