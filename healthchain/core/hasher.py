"""
Canonical Hashing

Deterministic serialization and SHA-256 digests for blocks and policies.
Same fields -> same digest. Every time.

If this changes, every sealed block stops verifying.

CANONICAL SERIALIZATION RULES:
1. Version: "__canon_v" injected into every canonical output
2. Dictionary keys: sorted recursively (Unicode codepoint order)
3. Nulls: omitted entirely
4. Empty strings, lists and dicts: preserved
5. Datetimes: ISO 8601 with microseconds, forced to UTC, Z suffix
6. Enums: string value (not name)
7. Floats: BANNED - currency is Decimal, serialized as string
8. JSON output: no whitespace, sorted keys, ASCII only
9. Top-level: must be a dict
"""

import hashlib
import hmac
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


class CanonicalSerializationError(Exception):
    """A value has no deterministic canonical form."""


class Hasher:
    """
    Canonical serialization and hashing.

    The block digest is a pure function of (index, timestamp, payload,
    previous_hash, nonce). Nothing else goes in.
    """

    SERIALIZATION_VERSION = 1

    # Length of a hex SHA-256 digest
    DIGEST_LENGTH = 64

    @classmethod
    def _serialize_value(cls, value: Any, path: str = "") -> Any:
        """
        Convert Python objects to their canonical JSON-compatible form.

        Raises:
            CanonicalSerializationError: If value has no deterministic form
        """
        if value is None:
            return None

        if isinstance(value, datetime):
            return cls._serialize_datetime(value, path)

        if isinstance(value, date):
            return value.strftime("%Y-%m-%d")

        if isinstance(value, Enum):
            return value.value

        if isinstance(value, bool):
            return value

        if isinstance(value, int):
            return value

        if isinstance(value, float):
            raise CanonicalSerializationError(
                f"Float at {path}. "
                "Floats are banned in canonical payloads. Use Decimal."
            )

        # Normalize so Decimal("100") and Decimal("100.00") hash the same
        if isinstance(value, Decimal):
            return format(value.normalize(), "f")

        if isinstance(value, str):
            return value

        if isinstance(value, (list, tuple)):
            return [
                cls._serialize_value(v, f"{path}[{i}]")
                for i, v in enumerate(value)
            ]

        if isinstance(value, frozenset):
            return sorted(cls._serialize_value(v, path) for v in value)

        if isinstance(value, dict):
            return cls._to_canonical_dict(value, path)

        if hasattr(value, "model_dump"):
            return cls._to_canonical_dict(value.model_dump(mode="python"), path)

        if isinstance(value, set):
            raise CanonicalSerializationError(
                f"Set at {path}. "
                "Sets have no stable ordering. Use a list or frozenset."
            )

        raise CanonicalSerializationError(
            f"Unsupported type {type(value).__name__} at {path}. "
            "Canonical payloads hold JSON-compatible values only."
        )

    @classmethod
    def _serialize_datetime(cls, dt: datetime, path: str) -> str:
        """Format: YYYY-MM-DDTHH:MM:SS.ffffffZ"""
        if dt.tzinfo is None:
            raise CanonicalSerializationError(
                f"Naive datetime at {path} (timezone-naive). "
                "Attach a timezone, e.g. timezone.utc."
            )

        utc_dt = dt.astimezone(timezone.utc)
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_dt.microsecond:06d}Z"

    @classmethod
    def _to_canonical_dict(cls, data: dict[str, Any], path: str = "") -> dict[str, Any]:
        result = {}

        for key in sorted(data.keys()):
            if not isinstance(key, str):
                raise CanonicalSerializationError(
                    f"Non-string key at {path}: "
                    f"{type(key).__name__}"
                )

            key_path = f"{path}.{key}" if path else key
            serialized = cls._serialize_value(data[key], key_path)

            if serialized is not None:
                result[key] = serialized

        return result

    @classmethod
    def canonicalize(cls, data: dict[str, Any] | Any) -> str:
        """
        Convert data to canonical JSON string.

        Args:
            data: Dict or pydantic model

        Returns:
            Canonical JSON string with version marker

        Raises:
            CanonicalSerializationError: If data cannot be deterministically serialized
        """
        if hasattr(data, "model_dump"):
            data = data.model_dump(mode="python")

        if not isinstance(data, dict):
            raise CanonicalSerializationError(
                f"Top-level canonicalization requires a dict or model, "
                f"got {type(data).__name__}."
            )

        canonical_dict = {"__canon_v": cls.SERIALIZATION_VERSION, **cls._to_canonical_dict(data)}

        return json.dumps(
            canonical_dict,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )

    @classmethod
    def hash_data(cls, data: dict[str, Any] | Any) -> str:
        """Hex-encoded SHA-256 of the canonical form (64 characters, lowercase)."""
        canonical = cls.canonicalize(data)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @classmethod
    def hash_block(
        cls,
        index: int,
        timestamp: datetime,
        payload: dict[str, Any] | Any,
        previous_hash: str,
        nonce: int,
    ) -> str:
        """
        Digest of the five hashed block fields.

        The block's own `hash` field is never part of its input.
        """
        return cls.hash_data({
            "index": index,
            "timestamp": timestamp,
            "payload": payload,
            "previous_hash": previous_hash,
            "nonce": nonce,
        })

    @classmethod
    def hash_policy(
        cls,
        policy_id: str,
        patient_id: str,
        coverage: Decimal,
        premium: Decimal,
    ) -> str:
        """Content hash identifying a policy's terms."""
        return cls.hash_data({
            "policy_id": policy_id,
            "patient_id": patient_id,
            "coverage": coverage,
            "premium": premium,
        })

    @classmethod
    def meets_difficulty(cls, digest: str, difficulty: int) -> bool:
        """True if `digest` starts with `difficulty` zero characters."""
        return digest.startswith("0" * difficulty)

    @staticmethod
    def constant_time_compare(a: str, b: str) -> bool:
        """Compare two digests without short-circuiting on the first mismatch."""
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
