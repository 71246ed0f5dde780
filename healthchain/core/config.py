"""
Chain Configuration

Environment-based settings for the chain facade.

Environment Variables:
    HEALTHCHAIN_DIFFICULTY: Leading zeros required per sealed block (default 4)
    HEALTHCHAIN_SEALER: Which sealer to use
        - "pow" (default): proof of work
        - "noop": hash once, no search (tests, demos)
    HEALTHCHAIN_CLAIM_REWARD: Tokens granted per approved claim (default 100)
    HEALTHCHAIN_LARGE_CLAIM_THRESHOLD: Treatment cost above which a claim
        is archived by store_large_claim (default 50000)
    HEALTHCHAIN_TOKEN_NAME: Loyalty token name (default HealthCoin)
    HEALTHCHAIN_TOKEN_SYMBOL: Loyalty token symbol (default HC)
    HEALTHCHAIN_TOKEN_INITIAL_SUPPLY: Supply recorded before any mint (default 1000000)
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from .errors import ConfigurationError
from .sealer import (
    MAX_DIFFICULTY,
    NoopSealer,
    ProofOfWorkSealer,
    Sealer,
    validate_difficulty,
)


class SealerKind(str, Enum):
    """Supported sealers."""
    POW = "pow"
    NOOP = "noop"


# Difficulties above this take minutes per block on commodity hardware
SLOW_DIFFICULTY = 6


@dataclass
class ChainConfig:
    """Chain facade configuration."""
    difficulty: int = 4
    sealer: SealerKind = SealerKind.POW

    claim_reward_amount: int = 100
    large_claim_threshold: Decimal = Decimal("50000")

    token_name: str = "HealthCoin"
    token_symbol: str = "HC"
    token_initial_supply: int = 1_000_000

    @classmethod
    def from_env(cls) -> "ChainConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: If a variable cannot be parsed or is out of range
        """
        try:
            config = cls(
                difficulty=int(os.getenv("HEALTHCHAIN_DIFFICULTY", "4")),
                sealer=SealerKind(os.getenv("HEALTHCHAIN_SEALER", "pow").lower()),
                claim_reward_amount=int(os.getenv("HEALTHCHAIN_CLAIM_REWARD", "100")),
                large_claim_threshold=Decimal(
                    os.getenv("HEALTHCHAIN_LARGE_CLAIM_THRESHOLD", "50000")
                ),
                token_name=os.getenv("HEALTHCHAIN_TOKEN_NAME", "HealthCoin"),
                token_symbol=os.getenv("HEALTHCHAIN_TOKEN_SYMBOL", "HC"),
                token_initial_supply=int(
                    os.getenv("HEALTHCHAIN_TOKEN_INITIAL_SUPPLY", "1000000")
                ),
            )
        except (ValueError, InvalidOperation) as e:
            raise ConfigurationError(f"Invalid HEALTHCHAIN_* environment value: {e}") from e

        return config.validate()

    def validate(self) -> "ChainConfig":
        """Check ranges. Returns self so it can be chained."""
        validate_difficulty(self.difficulty)

        if self.claim_reward_amount < 0:
            raise ConfigurationError("claim_reward_amount must be non-negative")
        if self.large_claim_threshold < 0:
            raise ConfigurationError("large_claim_threshold must be non-negative")
        if self.token_initial_supply < 0:
            raise ConfigurationError("token_initial_supply must be non-negative")
        if not self.token_symbol:
            raise ConfigurationError("token_symbol must not be empty")

        return self

    @property
    def is_slow(self) -> bool:
        """True when sealing at this difficulty is expected to be slow."""
        return self.sealer == SealerKind.POW and self.difficulty >= SLOW_DIFFICULTY

    def build_sealer(self) -> Sealer:
        if self.sealer == SealerKind.NOOP:
            return NoopSealer()
        return ProofOfWorkSealer()


__all__ = [
    "ChainConfig",
    "SealerKind",
    "MAX_DIFFICULTY",
    "SLOW_DIFFICULTY",
]
