"""
Request Schemas

What callers hand to the chain facade. Field names are semantic;
the HTTP layer accepts the same shapes as JSON.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from .claim import ClaimDocument


class IssuePolicyRequest(BaseModel):
    """Request to issue a new policy."""
    policy_id: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    insurance_company: str
    coverage: Decimal = Field(..., gt=Decimal("0"))
    premium: Decimal = Field(..., gt=Decimal("0"))
    conditions: list[str] = Field(default_factory=list)


class SubmitClaimRequest(BaseModel):
    """Request to submit a claim against a policy."""
    claim_id: str = Field(..., min_length=1)
    policy_id: str
    patient_id: str
    hospital_id: str
    diagnosis: str
    treatment_cost: Decimal = Field(..., gt=Decimal("0"))
    documents: list[ClaimDocument] = Field(default_factory=list)


class ShareDataRequest(BaseModel):
    """Request to record a data exchange between two organizations."""
    from_org: str
    to_org: str
    data_type: str
    data_hash: str


class RewardRequest(BaseModel):
    """Request to grant loyalty tokens to a patient."""
    patient_id: str
    amount: int = Field(..., ge=0)
    reason: str = "Claim approval bonus"
