"""
Hash Block

The unit of the chain. Immutable once sealed:
only the sealer ever touches `nonce` and `hash`.

Chain Integrity Rules:
- index increases by exactly 1 from genesis (0)
- previous_hash is "0" for genesis, the prior block's hash otherwise
- hash == compute_hash() for every sealed block
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Union

from pydantic import BaseModel, Field

from ..schemas import (
    Claim,
    DataSharingPayload,
    GenesisPayload,
    PayloadKind,
    Policy,
    RewardPayload,
)
from .hasher import Hasher


GENESIS_PREVIOUS_HASH = "0"
GENESIS_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


BlockPayload = Annotated[
    Union[GenesisPayload, Policy, Claim, RewardPayload, DataSharingPayload],
    Field(discriminator="kind"),
]


class HashBlock(BaseModel):
    """
    A block on the chain.

    The digest covers (index, timestamp, payload, previous_hash, nonce).
    """
    index: int = Field(..., ge=0)
    timestamp: datetime
    payload: BlockPayload
    previous_hash: str
    nonce: int = Field(default=0, ge=0)
    hash: str = ""

    @property
    def kind(self) -> PayloadKind:
        return PayloadKind(self.payload.kind)

    @property
    def is_genesis(self) -> bool:
        return self.index == 0

    def compute_hash(self) -> str:
        """Recompute the digest from the block's current fields."""
        return Hasher.hash_block(
            self.index,
            self.timestamp,
            self.payload,
            self.previous_hash,
            self.nonce,
        )

    def summary(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "kind": self.kind.value,
            "hash": self.hash,
            "previous_hash": self.previous_hash,
            "nonce": self.nonce,
            "timestamp": self.timestamp,
        }


def create_genesis_block() -> HashBlock:
    """
    Block 0. Trusted by construction, so it is hashed but never sealed.
    """
    block = HashBlock(
        index=0,
        timestamp=GENESIS_TIMESTAMP,
        payload=GenesisPayload(),
        previous_hash=GENESIS_PREVIOUS_HASH,
    )
    block.hash = block.compute_hash()
    return block
