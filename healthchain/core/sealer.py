"""
Block Sealers

A sealer fixes a block's nonce and hash before it is appended.

- ProofOfWorkSealer: increments the nonce until the hex digest has
  `difficulty` leading zeros. Expected attempts ~ 16 ** difficulty.
- NoopSealer: hashes once. For deterministic tests and demos.

Sealing is pure CPU work. It never touches any field except nonce and hash.
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..observability import get_logger
from .block import HashBlock
from .errors import ConfigurationError, SealingCancelledError
from .hasher import Hasher

logger = get_logger(__name__)


MAX_DIFFICULTY = Hasher.DIGEST_LENGTH


def validate_difficulty(difficulty: int) -> int:
    """
    Reject difficulties the digest cannot satisfy.

    Raises:
        ConfigurationError: If difficulty is not an int in [0, MAX_DIFFICULTY]
    """
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise ConfigurationError(
            f"Difficulty must be an integer, got {type(difficulty).__name__}"
        )
    if difficulty < 0 or difficulty > MAX_DIFFICULTY:
        raise ConfigurationError(
            f"Difficulty {difficulty} out of range. "
            f"Must be between 0 and {MAX_DIFFICULTY} (hex digest length)."
        )
    return difficulty


class Sealer(ABC):
    """Interface for anything that can seal a block."""

    @abstractmethod
    def seal(
        self,
        block: HashBlock,
        difficulty: int,
        cancel: Optional[threading.Event] = None,
    ) -> HashBlock:
        """Set block.nonce and block.hash in place and return the block."""
        ...


class ProofOfWorkSealer(Sealer):
    """
    Leading-zero proof of work over the block digest.

    No time bound and no parallelism inside one seal call;
    difficulty alone bounds the expected cost.
    """

    def __init__(self, cancel_check_interval: int = 1000):
        if cancel_check_interval < 1:
            raise ConfigurationError("cancel_check_interval must be at least 1")
        self._cancel_check_interval = cancel_check_interval

    def seal(
        self,
        block: HashBlock,
        difficulty: int,
        cancel: Optional[threading.Event] = None,
    ) -> HashBlock:
        """
        Search nonces until the digest meets the difficulty target.

        Args:
            block: Block to seal (mutated in place)
            difficulty: Required number of leading '0' characters
            cancel: Optional event; when set, the search stops

        Raises:
            ConfigurationError: If difficulty is out of range
            SealingCancelledError: If `cancel` is set before a nonce is found
        """
        validate_difficulty(difficulty)

        block.hash = block.compute_hash()
        attempts = 0
        while not Hasher.meets_difficulty(block.hash, difficulty):
            attempts += 1
            if (
                cancel is not None
                and attempts % self._cancel_check_interval == 0
                and cancel.is_set()
            ):
                logger.info(
                    "Sealing cancelled",
                    index=block.index,
                    attempts=attempts,
                )
                raise SealingCancelledError(
                    f"Sealing of block {block.index} cancelled after {attempts} attempts"
                )
            block.nonce += 1
            block.hash = block.compute_hash()

        logger.debug(
            f"Block mined: {block.hash}",
            index=block.index,
            nonce=block.nonce,
            difficulty=difficulty,
        )
        return block


class NoopSealer(Sealer):
    """Hashes the block as-is. Difficulty is ignored."""

    def seal(
        self,
        block: HashBlock,
        difficulty: int,
        cancel: Optional[threading.Event] = None,
    ) -> HashBlock:
        if cancel is not None and cancel.is_set():
            raise SealingCancelledError(f"Sealing of block {block.index} cancelled")
        block.hash = block.compute_hash()
        return block
