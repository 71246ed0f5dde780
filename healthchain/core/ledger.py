"""
Ledger - The Chain Itself

An ordered, append-only sequence of sealed blocks rooted in genesis.

The ledger:
- Builds blocks on top of the current tip
- Seals them through a pluggable Sealer
- Appends them
- Verifies the whole chain on demand

Rules (enforced in code):
- append() is the only mutator. No deletion, no reordering, no branching.
- Read tip -> build -> seal -> push happens under one lock, so two
  appends can never link to the same tip.
- Integrity failures are reported by verify(), never raised.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..observability import get_logger, get_metrics
from ..schemas import PayloadKind
from .block import BlockPayload, HashBlock, create_genesis_block
from .hasher import CanonicalSerializationError
from .sealer import ProofOfWorkSealer, Sealer, validate_difficulty

logger = get_logger(__name__)


# Placeholder digest for a block whose fields can no longer be hashed
UNHASHABLE = "<unhashable>"


class ViolationReason(str, Enum):
    HASH_MISMATCH = "HASH_MISMATCH"    # fields changed after sealing
    BROKEN_LINK = "BROKEN_LINK"        # previous_hash != prior block's hash


@dataclass(frozen=True)
class ChainViolation:
    """First integrity failure found when scanning in index order."""
    index: int
    reason: ViolationReason
    expected: str
    actual: str


class Ledger:
    """
    The block sequence and its integrity checks.

    CHAIN INTEGRITY GUARANTEES:
    - Block 0 is the fixed genesis block
    - block[i].index == i
    - block[i].previous_hash == block[i-1].hash
    - block[i].hash == block[i].compute_hash(), with the difficulty prefix
    """

    def __init__(self, sealer: Optional[Sealer] = None, difficulty: int = 4):
        self._sealer = sealer or ProofOfWorkSealer()
        self._difficulty = validate_difficulty(difficulty)

        self._blocks: list[HashBlock] = [create_genesis_block()]
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    @property
    def sealer(self) -> Sealer:
        return self._sealer

    @property
    def difficulty(self) -> int:
        return self._difficulty

    @property
    def tip(self) -> HashBlock:
        """The most recently appended block."""
        return self._blocks[-1]

    @property
    def length(self) -> int:
        return len(self._blocks)

    @property
    def blocks(self) -> list[HashBlock]:
        """All blocks in index order (a copy of the sequence, not of the blocks)."""
        return self._blocks.copy()

    def get_block(self, index: int) -> Optional[HashBlock]:
        if 0 <= index < len(self._blocks):
            return self._blocks[index]
        return None

    def blocks_of_kind(self, kind: PayloadKind) -> list[HashBlock]:
        return [b for b in self._blocks if b.kind == kind]

    # ================================================================
    # APPEND
    # ================================================================

    def append(
        self,
        payload: BlockPayload,
        cancel: Optional[threading.Event] = None,
    ) -> HashBlock:
        """
        Seal a new block carrying `payload` and append it.

        Flow (all under the ledger lock):
        1. Read the tip
        2. Build block (tip.index + 1, now, tip.hash)
        3. Seal
        4. Push

        Raises:
            SealingCancelledError: If `cancel` is set mid-search. Nothing is appended.
        """
        with self._lock:
            tip = self._blocks[-1]
            block = HashBlock(
                index=tip.index + 1,
                timestamp=datetime.now(timezone.utc),
                payload=payload,
                previous_hash=tip.hash,
            )

            start = time.perf_counter()
            self._sealer.seal(block, self._difficulty, cancel=cancel)
            latency_ms = (time.perf_counter() - start) * 1000

            self._blocks.append(block)

        get_metrics().record_append(latency_ms)
        logger.debug(
            "Block appended",
            index=block.index,
            kind=block.kind.value,
            hash=block.hash[:16],
            seal_ms=round(latency_ms, 2),
        )
        return block

    def append_async(
        self,
        payload: BlockPayload,
        cancel: Optional[threading.Event] = None,
    ) -> "Future[HashBlock]":
        """
        Run append() on the ledger's worker thread.

        The worker is single-threaded, so queued appends commit in
        submission order.
        """
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1,
                    thread_name_prefix="ledger-sealer",
                )
            return self._executor.submit(self.append, payload, cancel)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker thread, if one was started."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    # ================================================================
    # VERIFICATION
    # ================================================================

    def find_first_violation(self) -> Optional[ChainViolation]:
        """
        Scan blocks 1..n in order and return the first integrity failure.

        Genesis is trusted and not rechecked.
        """
        blocks = self._blocks.copy()

        for i in range(1, len(blocks)):
            current = blocks[i]
            previous = blocks[i - 1]

            try:
                computed = current.compute_hash()
            except CanonicalSerializationError:
                # A field was replaced by a value with no canonical form
                return ChainViolation(
                    index=i,
                    reason=ViolationReason.HASH_MISMATCH,
                    expected=UNHASHABLE,
                    actual=current.hash,
                )

            if current.hash != computed:
                return ChainViolation(
                    index=i,
                    reason=ViolationReason.HASH_MISMATCH,
                    expected=computed,
                    actual=current.hash,
                )

            if current.previous_hash != previous.hash:
                return ChainViolation(
                    index=i,
                    reason=ViolationReason.BROKEN_LINK,
                    expected=previous.hash,
                    actual=current.previous_hash,
                )

        return None

    def verify(self) -> bool:
        """
        Verify the entire chain is intact.

        Returns False on the first hash mismatch or broken link.
        """
        violation = self.find_first_violation()
        if violation is None:
            return True

        if violation.reason == ViolationReason.HASH_MISMATCH:
            logger.warning("Invalid hash at block", index=violation.index)
        else:
            logger.warning("Invalid previous hash at block", index=violation.index)
        return False

    def export(self) -> list[dict[str, Any]]:
        """JSON-safe dump of every block, in index order."""
        return [b.model_dump(mode="json") for b in self._blocks]
