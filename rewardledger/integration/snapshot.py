"""
Deterministic ledger snapshots.

Goals:
- Canonical JSON of the full committed ledger (config, state, holders, claims).
- A versioned, domain-separated SHA-256 commitment for audits and for
  checking that rejected calls leave storage untouched.
- Round-trippable into an empty `LedgerStore`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.codec import (
    claim_from_dict,
    claim_to_dict,
    config_from_dict,
    config_to_dict,
    holder_from_dict,
    holder_to_dict,
    state_from_dict,
    state_to_dict,
)
from ..state.store import LedgerStore

LEDGER_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


def _require_list(value: Any, *, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list")
    return value


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Versioned snapshot of a committed ledger.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_store(store: LedgerStore, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    holders = [{"address": addr, **holder_to_dict(h)} for addr, h in store.iter_holders()]
    claims = [
        {"address": addr, "claims": [claim_to_dict(c) for c in queue]}
        for addr, queue in store.iter_claims()
    ]

    data: Dict[str, Any] = {
        "version": int(version),
        "config": config_to_dict(store.load_config()),
        "state": state_to_dict(store.load_state()),
        "holders": holders,
        "claims": claims,
    }
    return LedgerSnapshot(version=version, data=data)


def store_from_snapshot(snapshot: Mapping[str, Any], store: Optional[LedgerStore] = None) -> LedgerStore:
    """Restore snapshot `data` into an empty store (a fresh in-memory one by default)."""
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    target = store if store is not None else LedgerStore()
    if target.is_initialized():
        raise ValueError("target store is not empty")

    with target.transaction() as tx:
        tx.save_config(config_from_dict(snapshot["config"]))
        tx.save_state(state_from_dict(snapshot["state"]))

        seen: set[str] = set()
        for entry in _require_list(snapshot.get("holders"), name="snapshot.holders"):
            if not isinstance(entry, Mapping):
                raise TypeError("snapshot.holders entries must be objects")
            fields = dict(entry)
            addr = _require_str(fields.pop("address", None), name="holder.address")
            if addr in seen:
                raise ValueError(f"duplicate holder entry: {addr}")
            seen.add(addr)
            tx.save_holder(addr, holder_from_dict(fields))

        seen_claims: set[str] = set()
        for entry in _require_list(snapshot.get("claims"), name="snapshot.claims"):
            if not isinstance(entry, Mapping):
                raise TypeError("snapshot.claims entries must be objects")
            addr = _require_str(entry.get("address"), name="claims.address")
            if addr in seen_claims:
                raise ValueError(f"duplicate claims entry: {addr}")
            seen_claims.add(addr)
            queue = [claim_from_dict(c) for c in _require_list(entry.get("claims"), name="claims.claims")]
            tx.replace_claims(addr, queue)
    return target
