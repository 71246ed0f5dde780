"""
Block Payload Schemas

One block type carries five record shapes.
The `kind` field is the discriminator - every consumer dispatches on it.

Policy and Claim payloads live in their own modules; the
simpler record shapes are defined here.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class PayloadKind(str, Enum):
    """
    All payload kinds.
    You can add more later, never remove.
    """
    GENESIS = "GENESIS"
    POLICY = "POLICY"
    CLAIM = "CLAIM"
    REWARD = "REWARD"
    DATA_SHARING = "DATA_SHARING"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenesisPayload(BaseModel):
    """Fixed payload of block 0."""
    kind: Literal["GENESIS"] = "GENESIS"
    message: str = "HealthInsureChain Genesis Block"
    created_by: str = "System"


class RewardPayload(BaseModel):
    """
    Payload for a REWARD block.
    Records a loyalty-token grant to a patient.
    """
    kind: Literal["REWARD"] = "REWARD"
    patient_id: str
    amount: int = Field(..., ge=0)
    reason: str = "Claim approval bonus"
    token_symbol: str = "HC"
    granted_at: datetime = Field(default_factory=_utcnow)


class DataSharingPayload(BaseModel):
    """
    Payload for a DATA_SHARING block.
    Only written for registered organizations, so `authorized` is always True.
    """
    kind: Literal["DATA_SHARING"] = "DATA_SHARING"
    from_org: str
    to_org: str
    data_type: str
    data_hash: str
    shared_at: datetime = Field(default_factory=_utcnow)
    authorized: bool = True
