"""
Configuration loading.

A ledger is configured by an `InstantiateMsg`, built either from a mapping
(e.g. parsed JSON) or from a YAML file:

    staked_asset: stake-token
    reward_asset: ureward
    unbonding_period: 1000
    unbonding_basis: height        # or: time
    reward_cap_per_period: 5000    # optional, needs accrual_period
    accrual_period: 86400          # optional, seconds
    max_claims_per_holder: 16      # optional
    admin: admin0000               # optional

Unknown keys are rejected. The storage backend is picked by the caller:
in memory by default, SQLite when a path is given (or `REWARDLEDGER_DB_PATH`
is set).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..state.storage import MemoryStorage, SqliteStorage
from ..state.store import LedgerStore
from .messages import InstantiateMsg

DB_PATH_ENV = "REWARDLEDGER_DB_PATH"

_INSTANTIATE_FIELDS: tuple[str, ...] = tuple(InstantiateMsg.__dataclass_fields__)


class ConfigError(ValueError):
    pass


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{name} must be a non-empty string")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be an int")
    if value < 0:
        raise ConfigError(f"{name} must be non-negative")
    return int(value)


def _optional_int(value: Any, *, name: str) -> Optional[int]:
    return None if value is None else _require_int(value, name=name)


def _optional_str(value: Any, *, name: str) -> Optional[str]:
    return None if value is None else _require_str(value, name=name)


def bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def instantiate_msg_from_mapping(obj: Any) -> InstantiateMsg:
    if not isinstance(obj, Mapping):
        raise ConfigError("ledger config must be a mapping")
    extra = sorted(str(k) for k in set(obj) - set(_INSTANTIATE_FIELDS))
    if extra:
        raise ConfigError(f"unknown config keys: {', '.join(extra)}")
    for required in ("staked_asset", "reward_asset", "unbonding_period"):
        if required not in obj:
            raise ConfigError(f"missing config key: {required}")

    basis = obj.get("unbonding_basis", "height")
    if basis not in ("height", "time"):
        raise ConfigError("unbonding_basis must be 'height' or 'time'")

    accrual_period = _optional_int(obj.get("accrual_period"), name="accrual_period")
    if accrual_period == 0:
        raise ConfigError("accrual_period must be positive when set")
    reward_cap = _optional_int(obj.get("reward_cap_per_period"), name="reward_cap_per_period")
    if reward_cap is not None and accrual_period is None:
        raise ConfigError("reward_cap_per_period requires accrual_period")
    max_claims = _optional_int(obj.get("max_claims_per_holder"), name="max_claims_per_holder")
    if max_claims == 0:
        raise ConfigError("max_claims_per_holder must be positive when set")

    return InstantiateMsg(
        staked_asset=_require_str(obj["staked_asset"], name="staked_asset"),
        reward_asset=_require_str(obj["reward_asset"], name="reward_asset"),
        unbonding_period=_require_int(obj["unbonding_period"], name="unbonding_period"),
        unbonding_basis=basis,
        reward_cap_per_period=reward_cap,
        accrual_period=accrual_period,
        max_claims_per_holder=max_claims,
        admin=_optional_str(obj.get("admin"), name="admin"),
    )


def load_yaml_mapping(path: Union[str, Path]) -> Mapping[str, Any]:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{path}: YAML document must be a mapping")
    return obj


def load_instantiate_msg(path: Union[str, Path], *, section: Optional[str] = None) -> InstantiateMsg:
    """Read an `InstantiateMsg` from a YAML file, optionally from one top-level section."""
    obj = load_yaml_mapping(path)
    if section is not None:
        if section not in obj:
            raise ConfigError(f"{path}: missing section {section!r}")
        obj = obj[section]
    return instantiate_msg_from_mapping(obj)


def open_store(db_path: Optional[Union[str, Path]] = None) -> LedgerStore:
    """In-memory store by default; SQLite when a path is given or set in the environment."""
    path = db_path if db_path is not None else (os.environ.get(DB_PATH_ENV, "").strip() or None)
    if path is None:
        return LedgerStore(MemoryStorage())
    return LedgerStore(SqliteStorage(path))
