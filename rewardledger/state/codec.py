"""Record <-> plain dict conversion.

Decimals are encoded as their canonical decimal strings and expirations as a
single-key object (`{"at_height": 5}`, `{"at_time": 10}`, `{"never": {}}`), so
every encoded record is JSON-safe and float-free.

Round-trip property (tested): `x_from_dict(x_to_dict(r)) == r` for each record.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.types import Claim, Config, Expiration, GlobalState, Holder
from ..core.wide_decimal import WideDecimal


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be an object")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    return int(value)


def _optional_int(value: Any, *, name: str) -> Optional[int]:
    if value is None:
        return None
    return _require_int(value, name=name)


def _require_decimal(value: Any, *, name: str) -> WideDecimal:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a decimal string")
    return WideDecimal.from_str(value)


def _reject_unknown(d: Mapping[str, Any], known: tuple[str, ...], *, name: str) -> None:
    extra = sorted(set(d) - set(known))
    if extra:
        raise ValueError(f"{name} has unknown fields: {', '.join(extra)}")


# -- Config ------------------------------------------------------------------

CONFIG_FIELDS: tuple[str, ...] = tuple(Config.__dataclass_fields__)


def config_to_dict(config: Config) -> dict[str, Any]:
    return {name: getattr(config, name) for name in CONFIG_FIELDS}


def config_from_dict(d: Mapping[str, Any]) -> Config:
    d = _require_mapping(d, name="config")
    _reject_unknown(d, CONFIG_FIELDS, name="config")
    return Config(**{name: d[name] for name in CONFIG_FIELDS if name in d})


# -- GlobalState -------------------------------------------------------------

def state_to_dict(state: GlobalState) -> dict[str, Any]:
    return {
        "global_index": str(state.global_index),
        "total_balance": state.total_balance,
        "prev_reward_balance": state.prev_reward_balance,
        "next_accrual_time": state.next_accrual_time,
    }


def state_from_dict(d: Mapping[str, Any]) -> GlobalState:
    d = _require_mapping(d, name="state")
    _reject_unknown(d, tuple(GlobalState.__dataclass_fields__), name="state")
    return GlobalState(
        global_index=_require_decimal(d["global_index"], name="state.global_index"),
        total_balance=_require_int(d["total_balance"], name="state.total_balance"),
        prev_reward_balance=_require_int(d["prev_reward_balance"], name="state.prev_reward_balance"),
        next_accrual_time=_optional_int(d.get("next_accrual_time"), name="state.next_accrual_time"),
    )


# -- Holder ------------------------------------------------------------------

def holder_to_dict(holder: Holder) -> dict[str, Any]:
    return {
        "balance": holder.balance,
        "index": str(holder.index),
        "pending_rewards": str(holder.pending_rewards),
    }


def holder_from_dict(d: Mapping[str, Any]) -> Holder:
    d = _require_mapping(d, name="holder")
    _reject_unknown(d, tuple(Holder.__dataclass_fields__), name="holder")
    return Holder(
        balance=_require_int(d["balance"], name="holder.balance"),
        index=_require_decimal(d["index"], name="holder.index"),
        pending_rewards=_require_decimal(d["pending_rewards"], name="holder.pending_rewards"),
    )


# -- Claims ------------------------------------------------------------------

def expiration_to_dict(expiration: Expiration) -> dict[str, Any]:
    if expiration.kind == "never":
        return {"never": {}}
    return {expiration.kind: expiration.value}


def expiration_from_dict(d: Mapping[str, Any]) -> Expiration:
    d = _require_mapping(d, name="expiration")
    if len(d) != 1:
        raise ValueError("expiration must have exactly one key")
    ((kind, value),) = d.items()
    if kind == "at_height":
        return Expiration.at_height(_require_int(value, name="expiration.at_height"))
    if kind == "at_time":
        return Expiration.at_time(_require_int(value, name="expiration.at_time"))
    if kind == "never":
        return Expiration.never()
    raise ValueError(f"unknown expiration kind: {kind!r}")


def claim_to_dict(claim: Claim) -> dict[str, Any]:
    return {"amount": claim.amount, "release_at": expiration_to_dict(claim.release_at)}


def claim_from_dict(d: Mapping[str, Any]) -> Claim:
    d = _require_mapping(d, name="claim")
    _reject_unknown(d, ("amount", "release_at"), name="claim")
    return Claim(
        amount=_require_int(d["amount"], name="claim.amount"),
        release_at=expiration_from_dict(d["release_at"]),
    )
