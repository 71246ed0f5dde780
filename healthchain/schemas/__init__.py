# Canonical Schemas for the HealthInsureChain ledger
# Records that get hashed onto the chain, and the requests that produce them.

from .payloads import (
    PayloadKind,
    GenesisPayload,
    RewardPayload,
    DataSharingPayload,
)
from .policy import Policy
from .claim import Claim, ClaimDocument, ClaimStatus
from .organization import (
    Organization,
    OrganizationType,
    Permission,
    DEFAULT_ORGANIZATIONS,
)
from .requests import (
    IssuePolicyRequest,
    SubmitClaimRequest,
    ShareDataRequest,
    RewardRequest,
)

__all__ = [
    # Payloads
    "PayloadKind",
    "GenesisPayload",
    "RewardPayload",
    "DataSharingPayload",
    # Policy
    "Policy",
    # Claim
    "Claim",
    "ClaimDocument",
    "ClaimStatus",
    # Organization
    "Organization",
    "OrganizationType",
    "Permission",
    "DEFAULT_ORGANIZATIONS",
    # Requests
    "IssuePolicyRequest",
    "SubmitClaimRequest",
    "ShareDataRequest",
    "RewardRequest",
]
