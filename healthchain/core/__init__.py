# Ledger core: blocks, sealing, chain, verification, tokens, facade
from .errors import (
    HealthChainError,
    ConfigurationError,
    ValidationError,
    SealingCancelledError,
    TokenError,
)
from .hasher import Hasher, CanonicalSerializationError
from .block import HashBlock, BlockPayload, create_genesis_block
from .sealer import (
    Sealer,
    ProofOfWorkSealer,
    NoopSealer,
    MAX_DIFFICULTY,
    validate_difficulty,
)
from .ledger import Ledger, ChainViolation, ViolationReason
from .verification import (
    ClaimVerificationEngine,
    VerificationOutcome,
    VerificationRules,
)
from .token import TokenLedger
from .config import ChainConfig, SealerKind
from .projections import PatientRecord, ChainAnalytics, ArchiveRecord
from .chain import HealthInsureChain

__all__ = [
    "HealthChainError",
    "ConfigurationError",
    "ValidationError",
    "SealingCancelledError",
    "TokenError",
    "Hasher",
    "CanonicalSerializationError",
    "HashBlock",
    "BlockPayload",
    "create_genesis_block",
    "Sealer",
    "ProofOfWorkSealer",
    "NoopSealer",
    "MAX_DIFFICULTY",
    "validate_difficulty",
    "Ledger",
    "ChainViolation",
    "ViolationReason",
    "ClaimVerificationEngine",
    "VerificationOutcome",
    "VerificationRules",
    "TokenLedger",
    "ChainConfig",
    "SealerKind",
    "PatientRecord",
    "ChainAnalytics",
    "ArchiveRecord",
    "HealthInsureChain",
]
