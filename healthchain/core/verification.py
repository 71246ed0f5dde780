"""
Claim Verification Engine

Decides whether a submitted claim is accepted into the ledger.

Hard rules (claim never reaches scoring, never committed):
1. Policy must exist and be active
2. Treatment cost must not exceed coverage
3. Every required document type must be attached

Scoring (claims that pass the hard rules):
    score = 50
          + min(30, documents / required_documents * 30)
          + 20 if cost/coverage <= 0.5, 15 if <= 0.8, else 5
    clamped to [0, 100]

    >= 80  APPROVED
    >= 60  MANUAL_REVIEW
    <  60  REJECTED

Pure: no I/O, no randomness, no mutation of its inputs.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..schemas import Claim, ClaimStatus, Policy


REASON_INVALID_POLICY = "Invalid or inactive policy"
REASON_EXCEEDS_COVERAGE = "Claim amount exceeds coverage"
REASON_MISSING_DOCUMENTS = "Missing required documents"
REASON_FAILED_VERIFICATION = "Failed automated verification"


class VerificationRules(BaseModel):
    """
    Tunable rule set. Defaults reproduce the production rules.
    """
    required_documents: tuple[str, ...] = Field(
        default=("medical_report", "bills", "prescription"),
        min_length=1,
    )

    base_score: int = 50
    max_document_score: int = 30

    # (max cost/coverage ratio, bonus), checked in order
    amount_tiers: tuple[tuple[Decimal, int], ...] = (
        (Decimal("0.5"), 20),
        (Decimal("0.8"), 15),
    )
    fallback_amount_bonus: int = 5

    approve_threshold: int = 80
    review_threshold: int = 60

    @field_validator("review_threshold")
    @classmethod
    def review_below_approve(cls, v: int, info) -> int:
        approve = info.data.get("approve_threshold")
        if approve is not None and v > approve:
            raise ValueError("review_threshold must not exceed approve_threshold")
        return v


DEFAULT_RULES = VerificationRules()


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of evaluating one claim.

    hard_rejection is True when a hard rule failed; such claims
    are not written to the ledger.
    """
    status: ClaimStatus
    score: int
    reason: Optional[str] = None
    hard_rejection: bool = False

    @property
    def committable(self) -> bool:
        return not self.hard_rejection


class ClaimVerificationEngine:
    """Rules-based claim decision function."""

    def __init__(self, rules: Optional[VerificationRules] = None):
        self._rules = rules or DEFAULT_RULES

    @property
    def rules(self) -> VerificationRules:
        return self._rules

    def evaluate(
        self,
        claim: Claim,
        policy: Optional[Policy],
        rules: Optional[VerificationRules] = None,
    ) -> VerificationOutcome:
        """
        Evaluate a claim against its policy.

        Args:
            claim: The submitted claim (not modified)
            policy: The policy claim.policy_id refers to, or None if unknown
            rules: Overrides the engine's rule set for this call
        """
        rules = rules or self._rules

        if policy is None or not policy.is_active:
            return self._hard_reject(REASON_INVALID_POLICY)

        if claim.treatment_cost > policy.coverage:
            return self._hard_reject(REASON_EXCEEDS_COVERAGE)

        present = claim.document_types
        if not all(doc in present for doc in rules.required_documents):
            return self._hard_reject(REASON_MISSING_DOCUMENTS)

        score = self.calculate_score(claim, policy, rules)

        if score >= rules.approve_threshold:
            return VerificationOutcome(status=ClaimStatus.APPROVED, score=score)
        if score >= rules.review_threshold:
            return VerificationOutcome(status=ClaimStatus.MANUAL_REVIEW, score=score)
        return VerificationOutcome(
            status=ClaimStatus.REJECTED,
            score=score,
            reason=REASON_FAILED_VERIFICATION,
        )

    @staticmethod
    def calculate_score(
        claim: Claim,
        policy: Policy,
        rules: VerificationRules = DEFAULT_RULES,
    ) -> int:
        """
        Confidence score in [0, 100].

        Decimal arithmetic throughout; the result is truncated to int.
        """
        score = Decimal(rules.base_score)

        document_score = (
            Decimal(len(claim.documents))
            / Decimal(len(rules.required_documents))
            * rules.max_document_score
        )
        score += min(document_score, Decimal(rules.max_document_score))

        amount_ratio = claim.treatment_cost / policy.coverage
        bonus = rules.fallback_amount_bonus
        for max_ratio, tier_bonus in rules.amount_tiers:
            if amount_ratio <= max_ratio:
                bonus = tier_bonus
                break
        score += bonus

        return int(max(Decimal(0), min(score, Decimal(100))))

    @staticmethod
    def _hard_reject(reason: str) -> VerificationOutcome:
        return VerificationOutcome(
            status=ClaimStatus.REJECTED,
            score=0,
            reason=reason,
            hard_rejection=True,
        )
