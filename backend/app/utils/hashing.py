"""
Audit Hashing — canonical SHA-256 digests for the payment audit chain.
"""
import hashlib
import json


def canonical_json(data: dict | None) -> bytes:
    """Stable JSON encoding: sorted keys, no whitespace, non-JSON values stringified."""
    return json.dumps(data or {}, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


def payload_digest(data: dict | None) -> str:
    return hashlib.sha256(canonical_json(data)).hexdigest()


def chain_digest(previous_hash: str, data: dict | None) -> str:
    """Link an entry to its predecessor: SHA-256(previous_hash + payload_digest)."""
    return hashlib.sha256(f"{previous_hash}{payload_digest(data)}".encode("utf-8")).hexdigest()
