"""
Tests for the claim verification engine

The engine is pure, so claims and policies are built directly.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from healthchain.core import ClaimVerificationEngine, Hasher, VerificationRules
from healthchain.core.verification import (
    REASON_EXCEEDS_COVERAGE,
    REASON_FAILED_VERIFICATION,
    REASON_INVALID_POLICY,
    REASON_MISSING_DOCUMENTS,
)
from healthchain.schemas import Claim, ClaimDocument, ClaimStatus, Policy


COVERAGE = Decimal("75000")


def make_policy(is_active=True):
    return Policy(
        policy_id="POL001",
        patient_id="PAT001",
        insurance_company="HealthSecure Inc.",
        coverage=COVERAGE,
        premium=Decimal("500"),
        is_active=is_active,
        policy_hash=Hasher.hash_policy("POL001", "PAT001", COVERAGE, Decimal("500")),
    )


def make_claim(cost, doc_types=("medical_report", "bills", "prescription")):
    return Claim(
        claim_id="CLM001",
        policy_id="POL001",
        patient_id="PAT001",
        hospital_id="HOS001",
        diagnosis="Appendectomy",
        treatment_cost=Decimal(cost),
        documents=[ClaimDocument(type=t, hash=f"{t}_hash") for t in doc_types],
    )


@pytest.fixture
def engine():
    return ClaimVerificationEngine()


class TestScoring:

    @pytest.mark.parametrize(
        "cost,expected",
        [
            ("15000", 100),   # ratio 0.2
            ("37500", 100),   # ratio exactly 0.5
            ("37501", 95),    # just above 0.5
            ("60000", 95),    # ratio exactly 0.8
            ("67500", 85),    # ratio 0.9
            ("75000", 85),    # ratio exactly 1.0
        ],
    )
    def test_amount_tiers(self, engine, cost, expected):
        outcome = engine.evaluate(make_claim(cost), make_policy())

        assert outcome.score == expected
        assert outcome.status == ClaimStatus.APPROVED
        assert outcome.reason is None
        assert outcome.committable

    def test_extra_documents_cap_at_thirty(self, engine):
        claim = make_claim(
            "15000",
            ("medical_report", "bills", "prescription", "xray", "referral"),
        )
        assert ClaimVerificationEngine.calculate_score(claim, make_policy()) == 100

    def test_duplicate_document_types_count(self):
        """Document score counts attachments, not distinct types."""
        rules = VerificationRules(required_documents=("bills",), base_score=0)
        claim = make_claim("15000", ("bills", "bills"))

        # min(30, 2/1 * 30) + 20
        assert ClaimVerificationEngine.calculate_score(claim, make_policy(), rules) == 50

    def test_evaluate_does_not_mutate_claim(self, engine):
        claim = make_claim("15000")
        engine.evaluate(claim, make_policy())

        assert claim.status == ClaimStatus.PENDING
        assert claim.verification_score == 0
        assert claim.rejection_reason is None


class TestHardRejections:

    def test_unknown_policy(self, engine):
        outcome = engine.evaluate(make_claim("15000"), None)

        assert outcome.status == ClaimStatus.REJECTED
        assert outcome.reason == REASON_INVALID_POLICY
        assert outcome.hard_rejection
        assert not outcome.committable

    def test_inactive_policy(self, engine):
        outcome = engine.evaluate(make_claim("15000"), make_policy(is_active=False))
        assert outcome.reason == REASON_INVALID_POLICY

    def test_exceeds_coverage(self, engine):
        outcome = engine.evaluate(make_claim("75000.01"), make_policy())

        assert outcome.reason == REASON_EXCEEDS_COVERAGE
        assert outcome.hard_rejection

    def test_missing_document(self, engine):
        outcome = engine.evaluate(
            make_claim("15000", ("medical_report", "bills")),
            make_policy(),
        )

        assert outcome.status == ClaimStatus.REJECTED
        assert outcome.reason == REASON_MISSING_DOCUMENTS
        assert outcome.score == 0

    def test_policy_checked_before_coverage(self, engine):
        outcome = engine.evaluate(make_claim("999999", ()), None)
        assert outcome.reason == REASON_INVALID_POLICY

    def test_coverage_checked_before_documents(self, engine):
        outcome = engine.evaluate(make_claim("999999", ()), make_policy())
        assert outcome.reason == REASON_EXCEEDS_COVERAGE


class TestCustomRules:
    """With the default rules every scored claim lands at 85 or above."""

    def test_manual_review(self):
        engine = ClaimVerificationEngine(VerificationRules(base_score=30))
        outcome = engine.evaluate(make_claim("67500"), make_policy())

        # 30 + 30 + 5
        assert outcome.score == 65
        assert outcome.status == ClaimStatus.MANUAL_REVIEW
        assert outcome.committable

    def test_low_score_rejection_is_committable(self):
        engine = ClaimVerificationEngine(VerificationRules(base_score=10))
        outcome = engine.evaluate(make_claim("67500"), make_policy())

        assert outcome.score == 45
        assert outcome.status == ClaimStatus.REJECTED
        assert outcome.reason == REASON_FAILED_VERIFICATION
        assert not outcome.hard_rejection

    def test_per_call_rules_override(self, engine):
        rules = VerificationRules(required_documents=("bills",))
        outcome = engine.evaluate(make_claim("15000", ("bills",)), make_policy(), rules)

        assert outcome.status == ClaimStatus.APPROVED

    def test_score_clamped(self):
        rules = VerificationRules(base_score=-200)
        assert ClaimVerificationEngine.calculate_score(
            make_claim("15000"), make_policy(), rules
        ) == 0

    def test_review_threshold_above_approve_rejected(self):
        with pytest.raises(PydanticValidationError):
            VerificationRules(approve_threshold=70, review_threshold=75)

    def test_empty_required_documents_rejected(self):
        with pytest.raises(PydanticValidationError):
            VerificationRules(required_documents=())
