"""
Ledger State Store: typed access to config, global state, holders and claims.

Layout (one key per record, JSON values in canonical encoding):

    config              -> Config
    state               -> GlobalState
    holder:<address>    -> Holder
    claims:<address>    -> [Claim, ...]   (absent when the queue is empty)

Holders are never deleted. An absent holder reads as the zero holder.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

from ..core.errors import InvalidPageLimit, NotInitialized
from ..core.types import Claim, Config, GlobalState, Holder
from .canonical import canonical_json_text, load_json_text
from .codec import (
    claim_from_dict,
    claim_to_dict,
    config_from_dict,
    config_to_dict,
    holder_from_dict,
    holder_to_dict,
    state_from_dict,
    state_to_dict,
)
from .storage import MemoryStorage, OverlayStorage, Storage

CONFIG_KEY = "config"
STATE_KEY = "state"
HOLDER_PREFIX = "holder:"
CLAIMS_PREFIX = "claims:"

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 30


def resolve_page_limit(limit: Optional[int]) -> int:
    """Default to 10, clamp to 30, reject anything below 1."""
    if limit is None:
        return DEFAULT_PAGE_LIMIT
    if not isinstance(limit, int) or isinstance(limit, bool):
        raise TypeError("limit must be an int")
    if limit < 1:
        raise InvalidPageLimit(limit)
    return min(limit, MAX_PAGE_LIMIT)


def _require_address(address: str) -> str:
    if not isinstance(address, str) or not address:
        raise ValueError("address must be a non-empty string")
    return address


class LedgerStore:
    """Typed facade over a `Storage` backend."""

    def __init__(self, storage: Optional[Storage] = None) -> None:
        self.storage: Storage = storage if storage is not None else MemoryStorage()

    @contextmanager
    def transaction(self) -> Iterator["LedgerStore"]:
        """Buffer every write made through the yielded store.

        The buffered writes are committed in one batch when the block exits
        normally and discarded when it raises.
        """
        overlay = OverlayStorage(self.storage)
        try:
            yield LedgerStore(overlay)
        except BaseException:
            overlay.discard()
            raise
        overlay.commit()

    # -- Config / state ------------------------------------------------------

    def is_initialized(self) -> bool:
        return self.storage.get(CONFIG_KEY) is not None

    def load_config(self) -> Config:
        raw = self.storage.get(CONFIG_KEY)
        if raw is None:
            raise NotInitialized("config")
        return config_from_dict(load_json_text(raw))

    def save_config(self, config: Config) -> None:
        self.storage.set(CONFIG_KEY, canonical_json_text(config_to_dict(config)))

    def load_state(self) -> GlobalState:
        raw = self.storage.get(STATE_KEY)
        if raw is None:
            raise NotInitialized("state")
        return state_from_dict(load_json_text(raw))

    def save_state(self, state: GlobalState) -> None:
        self.storage.set(STATE_KEY, canonical_json_text(state_to_dict(state)))

    # -- Holders -------------------------------------------------------------

    def load_holder(self, address: str) -> Holder:
        raw = self.storage.get(HOLDER_PREFIX + _require_address(address))
        if raw is None:
            return Holder()
        return holder_from_dict(load_json_text(raw))

    def save_holder(self, address: str, holder: Holder) -> None:
        key = HOLDER_PREFIX + _require_address(address)
        self.storage.set(key, canonical_json_text(holder_to_dict(holder)))

    def list_holders(
        self,
        start_after: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Holder]]:
        """One page of holders in ascending address order (`start_after` exclusive)."""
        page_limit = resolve_page_limit(limit)
        start_key = HOLDER_PREFIX + start_after if start_after is not None else None
        out: List[Tuple[str, Holder]] = []
        for key, raw in self.storage.scan(HOLDER_PREFIX, start_key):
            out.append((key[len(HOLDER_PREFIX):], holder_from_dict(load_json_text(raw))))
            if len(out) >= page_limit:
                break
        return out

    def iter_holders(self) -> Iterator[Tuple[str, Holder]]:
        """Every holder, unpaginated (audits and snapshots only)."""
        for key, raw in self.storage.scan(HOLDER_PREFIX):
            yield key[len(HOLDER_PREFIX):], holder_from_dict(load_json_text(raw))

    # -- Claims --------------------------------------------------------------

    def list_claims(self, address: str) -> List[Claim]:
        raw = self.storage.get(CLAIMS_PREFIX + _require_address(address))
        if raw is None:
            return []
        entries = load_json_text(raw)
        if not isinstance(entries, list):
            raise TypeError("stored claims must be a list")
        return [claim_from_dict(e) for e in entries]

    def replace_claims(self, address: str, claims: Sequence[Claim]) -> None:
        key = CLAIMS_PREFIX + _require_address(address)
        if not claims:
            self.storage.delete(key)
            return
        self.storage.set(key, canonical_json_text([claim_to_dict(c) for c in claims]))

    def iter_claims(self) -> Iterator[Tuple[str, List[Claim]]]:
        for key, raw in self.storage.scan(CLAIMS_PREFIX):
            yield key[len(CLAIMS_PREFIX):], [claim_from_dict(e) for e in load_json_text(raw)]
