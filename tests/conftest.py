"""Shared fixtures: request factories and a fast chain."""

from decimal import Decimal

import pytest

from healthchain.core import ChainConfig, HealthInsureChain
from healthchain.schemas import ClaimDocument, IssuePolicyRequest, SubmitClaimRequest


FULL_DOCUMENTS = [
    ClaimDocument(type="medical_report", hash="med_report_hash_123"),
    ClaimDocument(type="bills", hash="bills_hash_456"),
    ClaimDocument(type="prescription", hash="prescription_hash_789"),
]


@pytest.fixture
def make_policy_request():
    def _make(policy_id="POL001", patient_id="PAT001", coverage="75000", premium="500"):
        return IssuePolicyRequest(
            policy_id=policy_id,
            patient_id=patient_id,
            insurance_company="HealthSecure Inc.",
            coverage=Decimal(coverage),
            premium=Decimal(premium),
            conditions=["None"],
        )
    return _make


@pytest.fixture
def make_claim_request():
    def _make(
        claim_id="CLM001",
        policy_id="POL001",
        patient_id="PAT001",
        treatment_cost="15000",
        documents=None,
    ):
        return SubmitClaimRequest(
            claim_id=claim_id,
            policy_id=policy_id,
            patient_id=patient_id,
            hospital_id="HOS001",
            diagnosis="Appendectomy",
            treatment_cost=Decimal(treatment_cost),
            documents=list(FULL_DOCUMENTS if documents is None else documents),
        )
    return _make


@pytest.fixture
def chain():
    """Proof-of-work chain at difficulty 1 so appends stay fast."""
    return HealthInsureChain(config=ChainConfig(difficulty=1))
