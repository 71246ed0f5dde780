"""
Projections: read models over the chain

Patient records and chain analytics are derived from blocks on demand.
Nothing here mutates the ledger; any projection can be rebuilt at any time.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from ..schemas import (
    Claim,
    ClaimStatus,
    DataSharingPayload,
    GenesisPayload,
    Policy,
    RewardPayload,
)
from .block import BlockPayload, HashBlock


class PatientRecord(BaseModel):
    """Everything the chain holds about one patient."""
    patient_id: str
    policies: list[HashBlock]
    claims: list[HashBlock]
    rewards: list[HashBlock]
    token_balance: int


class ChainAnalytics(BaseModel):
    """Aggregate counters over the whole chain."""
    total_blocks: int
    total_policies: int
    total_claims: int
    approved_claims: int
    approval_rate: str
    total_rewards_issued: int
    is_chain_valid: bool


class ArchiveRecord(BaseModel):
    """Off-chain record kept for claims above the large-claim threshold."""
    claim_id: str
    patient_id: str
    amount: Decimal
    status: ClaimStatus
    blockchain_hash: str
    stored_at: datetime
    storage: str = "in_memory_archive"


def patient_id_of(payload: BlockPayload) -> Optional[str]:
    """
    The patient a payload belongs to, if any.

    Raises TypeError for payload types this function does not know,
    so a new payload kind cannot be silently ignored.
    """
    if isinstance(payload, (Policy, Claim, RewardPayload)):
        return payload.patient_id
    if isinstance(payload, (GenesisPayload, DataSharingPayload)):
        return None
    raise TypeError(f"Unknown payload type: {type(payload).__name__}")


def build_patient_record(
    blocks: list[HashBlock],
    patient_id: str,
    token_balance: int,
) -> PatientRecord:
    policies: list[HashBlock] = []
    claims: list[HashBlock] = []
    rewards: list[HashBlock] = []

    for block in blocks:
        payload = block.payload
        if patient_id_of(payload) != patient_id:
            continue

        # Records hold copies; callers cannot reach the committed blocks
        if isinstance(payload, Policy):
            policies.append(block.model_copy(deep=True))
        elif isinstance(payload, Claim):
            claims.append(block.model_copy(deep=True))
        elif isinstance(payload, RewardPayload):
            rewards.append(block.model_copy(deep=True))

    return PatientRecord(
        patient_id=patient_id,
        policies=policies,
        claims=claims,
        rewards=rewards,
        token_balance=token_balance,
    )


def format_approval_rate(approved: int, total: int) -> str:
    """Percentage with two decimals, e.g. "66.67%"; "0%" when there are no claims."""
    if total == 0:
        return "0%"
    rate = (Decimal(approved) / Decimal(total) * 100).quantize(Decimal("0.01"))
    return f"{rate}%"


def build_chain_analytics(blocks: list[HashBlock], is_chain_valid: bool) -> ChainAnalytics:
    total_policies = 0
    total_claims = 0
    approved_claims = 0
    total_rewards = 0

    for block in blocks:
        payload = block.payload
        if isinstance(payload, Policy):
            total_policies += 1
        elif isinstance(payload, Claim):
            total_claims += 1
            if payload.status == ClaimStatus.APPROVED:
                approved_claims += 1
        elif isinstance(payload, RewardPayload):
            total_rewards += payload.amount
        elif isinstance(payload, (GenesisPayload, DataSharingPayload)):
            pass
        else:
            raise TypeError(f"Unknown payload type: {type(payload).__name__}")

    return ChainAnalytics(
        total_blocks=len(blocks),
        total_policies=total_policies,
        total_claims=total_claims,
        approved_claims=approved_claims,
        approval_rate=format_approval_rate(approved_claims, total_claims),
        total_rewards_issued=total_rewards,
        is_chain_valid=is_chain_valid,
    )
