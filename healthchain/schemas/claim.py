"""
Claim Schema

A claim is evaluated exactly once.
Status and score are written by the verification outcome and never revised.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ClaimStatus(str, Enum):
    """
    PENDING until verified, then exactly one terminal status.
    """
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    REJECTED = "REJECTED"


class ClaimDocument(BaseModel):
    """A supporting document, referenced by type and content digest."""
    type: str = Field(..., description="medical_report, bills, prescription, ...")
    hash: str = Field(..., description="Digest of the document content")


class Claim(BaseModel):
    """
    A claim against a policy.

    Doubles as the CLAIM block payload: the block holds a snapshot
    taken after verification.
    """
    kind: Literal["CLAIM"] = "CLAIM"

    claim_id: str = Field(..., min_length=1)
    policy_id: str
    patient_id: str
    hospital_id: str
    diagnosis: str

    treatment_cost: Decimal = Field(..., gt=Decimal("0"))
    documents: list[ClaimDocument] = Field(default_factory=list)

    status: ClaimStatus = ClaimStatus.PENDING
    rejection_reason: Optional[str] = None
    verification_score: int = Field(default=0, ge=0, le=100)

    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    schema_version: int = 1

    @property
    def document_types(self) -> set[str]:
        return {d.type for d in self.documents}

    @property
    def is_rejected(self) -> bool:
        return self.status == ClaimStatus.REJECTED
