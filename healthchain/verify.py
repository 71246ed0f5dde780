"""
HealthChain Export Verifier

Re-checks a chain export (the JSON array produced by Ledger.export() or
GET /chain/export) without a running service.

Usage:
    healthchain-verify chain.json
    healthchain-verify chain.json --difficulty 4 --verbose
    healthchain-verify chain.json --json

Exit codes:
    0 - VERIFIED: All checks passed
    1 - TAMPERED: Hash, link or index mismatch
    3 - INVALID_FORMAT: File is not a chain export
"""

import argparse
import json
import sys
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .core.block import GENESIS_PREVIOUS_HASH, HashBlock, create_genesis_block
from .core.errors import ConfigurationError
from .core.hasher import CanonicalSerializationError, Hasher
from .core.sealer import validate_difficulty


class VerificationResult(str, Enum):
    VERIFIED = "VERIFIED"
    TAMPERED = "TAMPERED"
    INVALID_FORMAT = "INVALID_FORMAT"


EXIT_CODES = {
    VerificationResult.VERIFIED: 0,
    VerificationResult.TAMPERED: 1,
    VerificationResult.INVALID_FORMAT: 3,
}


@dataclass
class VerificationReport:
    result: VerificationResult
    block_count: int
    checks_passed: list[str] = field(default_factory=list)
    checks_failed: list[str] = field(default_factory=list)
    first_invalid_index: Optional[int] = None


class ExportVerifier:
    """
    Verifies an exported chain.

    Checks run in order; the first failing stage decides the result.
    """

    def __init__(
        self,
        records: Any,
        difficulty: Optional[int] = None,
        verbose: bool = False,
    ):
        self.records = records
        self.difficulty = difficulty
        self.verbose = verbose
        self.blocks: list[HashBlock] = []
        self.checks_passed: list[str] = []
        self.checks_failed: list[str] = []
        self.first_invalid_index: Optional[int] = None

    def log(self, msg: str):
        if self.verbose:
            print(f"  {msg}")

    def verify(self) -> VerificationReport:
        if not self._parse_blocks():
            return self._report(VerificationResult.INVALID_FORMAT)

        for check in (
            self._check_genesis,
            self._check_indices,
            self._check_hashes,
            self._check_linkage,
            self._check_difficulty,
        ):
            if not check():
                return self._report(VerificationResult.TAMPERED)

        return self._report(VerificationResult.VERIFIED)

    def _fail(self, index: int, message: str) -> bool:
        self.checks_failed.append(message)
        if self.first_invalid_index is None:
            self.first_invalid_index = index
        return False

    def _parse_blocks(self) -> bool:
        self.log("Parsing blocks...")

        if not isinstance(self.records, list) or not self.records:
            self.checks_failed.append("Export must be a non-empty JSON array of blocks")
            return False

        for i, record in enumerate(self.records):
            try:
                self.blocks.append(HashBlock.model_validate(record))
            except PydanticValidationError as e:
                self.checks_failed.append(
                    f"Block {i}: not a valid block ({e.error_count()} errors)"
                )
                return False

            # Timestamps without a zone offset parse fine but cannot be hashed
            try:
                self.blocks[-1].compute_hash()
            except CanonicalSerializationError as e:
                self.checks_failed.append(f"Block {i}: not hashable ({e})")
                return False

        self.checks_passed.append(f"All {len(self.blocks)} blocks parsed")
        return True

    def _check_genesis(self) -> bool:
        self.log("Checking genesis block...")

        genesis = self.blocks[0]
        expected = create_genesis_block().hash
        if (
            genesis.previous_hash != GENESIS_PREVIOUS_HASH
            or genesis.hash != expected
            or genesis.compute_hash() != expected
        ):
            return self._fail(0, "Genesis block does not match the canonical genesis")

        self.checks_passed.append("Genesis block matches")
        return True

    def _check_indices(self) -> bool:
        self.log("Checking block indices...")

        for position, block in enumerate(self.blocks):
            if block.index != position:
                return self._fail(
                    position,
                    f"Block at position {position} has index {block.index}",
                )

        self.checks_passed.append("Indices are sequential")
        return True

    def _check_hashes(self) -> bool:
        self.log("Recomputing block hashes...")

        for block in self.blocks[1:]:
            computed = block.compute_hash()
            if not Hasher.constant_time_compare(computed, block.hash):
                return self._fail(
                    block.index,
                    f"Block {block.index}: Hash mismatch "
                    f"(computed={computed[:16]}..., stored={block.hash[:16]}...)",
                )
            self.log(f"  Block {block.index}: Hash verified [OK]")

        self.checks_passed.append(f"All {len(self.blocks) - 1} block hashes verified")
        return True

    def _check_linkage(self) -> bool:
        self.log("Verifying chain linkage...")

        for previous, current in zip(self.blocks, self.blocks[1:]):
            if current.previous_hash != previous.hash:
                return self._fail(
                    current.index,
                    f"Chain break at block {current.index}: previous_hash doesn't match",
                )

        self.checks_passed.append("Chain linkage verified")
        return True

    def _check_difficulty(self) -> bool:
        if self.difficulty is None:
            return True

        self.log(f"Checking difficulty {self.difficulty}...")

        for block in self.blocks[1:]:
            if not Hasher.meets_difficulty(block.hash, self.difficulty):
                return self._fail(
                    block.index,
                    f"Block {block.index}: hash lacks {self.difficulty} leading zeros",
                )

        self.checks_passed.append(f"All blocks meet difficulty {self.difficulty}")
        return True

    def _report(self, result: VerificationResult) -> VerificationReport:
        return VerificationReport(
            result=result,
            block_count=len(self.records) if isinstance(self.records, list) else 0,
            checks_passed=self.checks_passed,
            checks_failed=self.checks_failed,
            first_invalid_index=self.first_invalid_index,
        )


# ============================================================
# CLI
# ============================================================

def print_report(report: VerificationReport, json_output: bool = False):
    if json_output:
        output = asdict(report)
        output["result"] = report.result.value
        print(json.dumps(output, indent=2))
        return

    banners = {
        VerificationResult.VERIFIED: "[VERIFIED] - All checks passed",
        VerificationResult.TAMPERED: "[TAMPERED] - Hash, link or index mismatch detected",
        VerificationResult.INVALID_FORMAT: "[INVALID_FORMAT] - Not a chain export",
    }
    print("\n" + "=" * 60)
    print(f"  {banners[report.result]}")
    print("=" * 60)

    print(f"\nBlocks: {report.block_count}")
    if report.first_invalid_index is not None:
        print(f"First invalid block: {report.first_invalid_index}")

    if report.checks_passed:
        print("\nPassed:")
        for check in report.checks_passed:
            print(f"  + {check}")

    if report.checks_failed:
        print("\nFailed:")
        for check in report.checks_failed:
            print(f"  - {check}")

    print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Verify a HealthChain chain export",
        epilog="Exit codes: 0=VERIFIED, 1=TAMPERED, 3=INVALID_FORMAT",
    )
    parser.add_argument("export", type=str, help="Path to the export JSON file")
    parser.add_argument(
        "--difficulty", "-d",
        type=int,
        default=None,
        help="Also require this many leading zeros on every sealed block",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed verification progress",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON",
    )

    args = parser.parse_args(argv)

    if args.difficulty is not None:
        try:
            validate_difficulty(args.difficulty)
        except ConfigurationError as e:
            parser.error(str(e))

    export_path = Path(args.export)
    if not export_path.exists():
        print(f"ERROR: File not found: {export_path}")
        return EXIT_CODES[VerificationResult.INVALID_FORMAT]

    try:
        with open(export_path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON: {e}")
        return EXIT_CODES[VerificationResult.INVALID_FORMAT]

    report = ExportVerifier(records, difficulty=args.difficulty, verbose=args.verbose).verify()
    print_report(report, json_output=args.json)
    return EXIT_CODES[report.result]


if __name__ == "__main__":
    sys.exit(main())
