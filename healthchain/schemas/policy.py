"""
Policy Schema

A policy is issued once and never edited.
Coverage bounds every claim made against it.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class Policy(BaseModel):
    """
    A health-insurance policy as recorded on the chain.

    Doubles as the POLICY block payload.
    """
    kind: Literal["POLICY"] = "POLICY"

    policy_id: str = Field(..., min_length=1, description="Unique policy key")
    patient_id: str = Field(..., min_length=1)
    insurance_company: str

    coverage: Decimal = Field(..., gt=Decimal("0"), description="Maximum claimable amount")
    premium: Decimal = Field(..., gt=Decimal("0"))

    conditions: list[str] = Field(
        default_factory=list,
        description="Ordered policy conditions"
    )

    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    policy_hash: str = Field(
        ...,
        description="SHA-256 of (policy_id, patient_id, coverage, premium)"
    )

    schema_version: int = 1

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "POLICY",
                "policy_id": "POL001",
                "patient_id": "PAT001",
                "insurance_company": "HealthSecure Inc.",
                "coverage": "75000",
                "premium": "500",
                "conditions": ["None"],
                "is_active": True,
                "created_at": "2024-03-15T14:30:00Z",
                "policy_hash": "9f2c...",
                "schema_version": 1,
            }
        }
