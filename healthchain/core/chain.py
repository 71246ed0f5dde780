"""
HealthInsureChain - The Facade

Turns domain requests into blocks:

    issue_policy            -> POLICY block
    submit_claim            -> verification -> CLAIM block (+ REWARD block if approved)
    reward_loyalty_tokens   -> mint -> REWARD block
    share_data_between_orgs -> DATA_SHARING block

The facade owns the policy, claim and organization registries and the
loyalty token. One instance holds all state; nothing is module-global.

Claims that fail a hard rule (bad policy, over coverage, missing documents)
are NOT written to the chain. submit_claim returns None for them, and the
Claim object, with its rejection status, stays available via get_claim().
"""

import threading
from datetime import datetime, timezone
from typing import Optional

from ..observability import get_logger
from ..schemas import (
    DEFAULT_ORGANIZATIONS,
    Claim,
    ClaimStatus,
    DataSharingPayload,
    IssuePolicyRequest,
    Organization,
    Policy,
    RewardPayload,
    SubmitClaimRequest,
)
from .block import HashBlock
from .config import ChainConfig
from .errors import ValidationError
from .hasher import Hasher
from .ledger import ChainViolation, Ledger
from .projections import (
    ArchiveRecord,
    ChainAnalytics,
    PatientRecord,
    build_chain_analytics,
    build_patient_record,
)
from .sealer import Sealer
from .token import TokenLedger
from .verification import ClaimVerificationEngine, VerificationRules

logger = get_logger(__name__)


REWARD_REASON_CLAIM_APPROVAL = "Claim approval bonus"


class HealthInsureChain:
    """
    Orchestrates ledger, verification engine and loyalty token.

    CONCURRENCY:
    - Each facade operation runs under one re-entrant lock, so an approved
      claim's CLAIM and REWARD blocks are always adjacent.
    - The Ledger serializes its own appends independently.
    """

    def __init__(
        self,
        config: Optional[ChainConfig] = None,
        sealer: Optional[Sealer] = None,
        rules: Optional[VerificationRules] = None,
        organizations: Optional[list[Organization]] = None,
    ):
        """
        Args:
            config: Chain configuration. Defaults to ChainConfig() (not the environment).
            sealer: Overrides the sealer named in config.
            rules: Claim verification rules. Defaults to the production rules.
            organizations: Initial registry. Defaults to the three built-in orgs.
        """
        self._config = (config or ChainConfig()).validate()

        self._ledger = Ledger(
            sealer=sealer or self._config.build_sealer(),
            difficulty=self._config.difficulty,
        )
        self._engine = ClaimVerificationEngine(rules)
        self._token = TokenLedger(
            name=self._config.token_name,
            symbol=self._config.token_symbol,
            total_supply=self._config.token_initial_supply,
        )

        self._policies: dict[str, Policy] = {}
        self._claims: dict[str, Claim] = {}
        self._rejected_claims: dict[str, Claim] = {}
        self._archive: list[ArchiveRecord] = []

        self._organizations: dict[str, Organization] = {}
        for org in organizations if organizations is not None else DEFAULT_ORGANIZATIONS:
            self._organizations[org.id] = org

        self._lock = threading.RLock()

    @classmethod
    def from_env(cls) -> "HealthInsureChain":
        """Build a facade from HEALTHCHAIN_* environment variables."""
        return cls(config=ChainConfig.from_env())

    @property
    def config(self) -> ChainConfig:
        return self._config

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def engine(self) -> ClaimVerificationEngine:
        return self._engine

    @property
    def token(self) -> TokenLedger:
        return self._token

    # ================================================================
    # POLICIES
    # ================================================================

    def issue_policy(self, request: IssuePolicyRequest) -> str:
        """
        Register a policy and commit it as a POLICY block.

        Returns:
            The policy's content hash

        Raises:
            ValidationError: If the policy id is already registered
        """
        with self._lock:
            if request.policy_id in self._policies:
                raise ValidationError(f"Policy {request.policy_id} already exists")

            policy = Policy(
                policy_id=request.policy_id,
                patient_id=request.patient_id,
                insurance_company=request.insurance_company,
                coverage=request.coverage,
                premium=request.premium,
                conditions=list(request.conditions),
                policy_hash=Hasher.hash_policy(
                    request.policy_id,
                    request.patient_id,
                    request.coverage,
                    request.premium,
                ),
            )

            self._policies[policy.policy_id] = policy
            block = self._ledger.append(policy.model_copy(deep=True))

        logger.info(
            f"Policy {policy.policy_id} added to blockchain with hash: {policy.policy_hash}",
            policy_id=policy.policy_id,
            patient_id=policy.patient_id,
            block_index=block.index,
        )
        return policy.policy_hash

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        return self._policies.get(policy_id)

    # ================================================================
    # CLAIMS
    # ================================================================

    def submit_claim(self, request: SubmitClaimRequest) -> Optional[Claim]:
        """
        Verify a claim and, unless it fails a hard rule, commit it.

        Returns:
            The evaluated Claim, or None if it was rejected by a hard rule
            (nothing is appended in that case).

        Raises:
            ValidationError: If a claim with this id was already committed
        """
        with self._lock:
            if request.claim_id in self._claims:
                raise ValidationError(f"Claim {request.claim_id} already exists")

            claim = Claim(
                claim_id=request.claim_id,
                policy_id=request.policy_id,
                patient_id=request.patient_id,
                hospital_id=request.hospital_id,
                diagnosis=request.diagnosis,
                treatment_cost=request.treatment_cost,
                documents=[d.model_copy() for d in request.documents],
            )

            outcome = self._engine.evaluate(claim, self._policies.get(claim.policy_id))
            claim.status = outcome.status
            claim.verification_score = outcome.score
            claim.rejection_reason = outcome.reason

            if outcome.hard_rejection:
                self._rejected_claims[claim.claim_id] = claim
                logger.info(
                    f"Claim {claim.claim_id} rejected: {outcome.reason}",
                    claim_id=claim.claim_id,
                    policy_id=claim.policy_id,
                    reason=outcome.reason,
                )
                return None

            self._rejected_claims.pop(claim.claim_id, None)
            self._claims[claim.claim_id] = claim
            block = self._ledger.append(claim.model_copy(deep=True))

            if claim.status == ClaimStatus.APPROVED:
                self.reward_loyalty_tokens(
                    claim.patient_id,
                    self._config.claim_reward_amount,
                )

        logger.info(
            f"Claim {claim.claim_id} processed: {claim.status.value}",
            claim_id=claim.claim_id,
            status=claim.status.value,
            score=claim.verification_score,
            block_index=block.index,
        )
        return claim

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        """Committed claims first, then claims rejected by a hard rule."""
        return self._claims.get(claim_id) or self._rejected_claims.get(claim_id)

    @property
    def rejected_claims(self) -> list[Claim]:
        return list(self._rejected_claims.values())

    def store_large_claim(self, claim: Claim) -> Optional[ArchiveRecord]:
        """
        Archive claims above the large-claim threshold.

        The record points at the current tip so it can be matched to the
        chain later. Returns None for claims at or below the threshold.
        """
        if claim.treatment_cost <= self._config.large_claim_threshold:
            return None

        with self._lock:
            record = ArchiveRecord(
                claim_id=claim.claim_id,
                patient_id=claim.patient_id,
                amount=claim.treatment_cost,
                status=claim.status,
                blockchain_hash=self._ledger.tip.hash,
                stored_at=datetime.now(timezone.utc),
            )
            self._archive.append(record)

        logger.info(
            f"Large claim {claim.claim_id} stored in archive",
            claim_id=claim.claim_id,
            amount=str(claim.treatment_cost),
        )
        return record

    @property
    def archived_claims(self) -> list[ArchiveRecord]:
        return self._archive.copy()

    # ================================================================
    # REWARDS
    # ================================================================

    def reward_loyalty_tokens(
        self,
        patient_id: str,
        amount: int,
        reason: str = REWARD_REASON_CLAIM_APPROVAL,
    ) -> HashBlock:
        """Mint loyalty tokens and record the grant as a REWARD block."""
        with self._lock:
            self._token.mint(patient_id, amount)
            block = self._ledger.append(
                RewardPayload(
                    patient_id=patient_id,
                    amount=amount,
                    reason=reason,
                    token_symbol=self._token.symbol,
                )
            )

        logger.info(
            f"Rewarded {amount} {self._token.symbol} tokens to patient {patient_id}",
            patient_id=patient_id,
            amount=amount,
            block_index=block.index,
        )
        return block

    # ================================================================
    # ORGANIZATIONS
    # ================================================================

    def get_organization(self, org_id: str) -> Optional[Organization]:
        return self._organizations.get(org_id)

    def list_organizations(self) -> list[Organization]:
        return list(self._organizations.values())

    def share_data_between_orgs(
        self,
        from_org: str,
        to_org: str,
        data_type: str,
        data_hash: str,
    ) -> bool:
        """
        Record a data exchange between two registered organizations.

        Returns False, appending nothing, if either organization is unknown.
        """
        if from_org not in self._organizations or to_org not in self._organizations:
            logger.info(
                "Invalid organization",
                from_org=from_org,
                to_org=to_org,
            )
            return False

        with self._lock:
            block = self._ledger.append(
                DataSharingPayload(
                    from_org=from_org,
                    to_org=to_org,
                    data_type=data_type,
                    data_hash=data_hash,
                )
            )

        logger.info(
            f"Data shared between {from_org} and {to_org}",
            from_org=from_org,
            to_org=to_org,
            data_type=data_type,
            block_index=block.index,
        )
        return True

    # ================================================================
    # QUERIES
    # ================================================================

    def is_chain_valid(self) -> bool:
        return self._ledger.verify()

    def first_violation(self) -> Optional[ChainViolation]:
        return self._ledger.find_first_violation()

    def get_patient_record(self, patient_id: str) -> PatientRecord:
        return build_patient_record(
            self._ledger.blocks,
            patient_id,
            self._token.balance_of(patient_id),
        )

    def get_chain_analytics(self) -> ChainAnalytics:
        blocks = self._ledger.blocks
        return build_chain_analytics(blocks, self._ledger.verify())
