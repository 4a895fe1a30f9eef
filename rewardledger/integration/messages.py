"""
Message types for the ledger entry points.

Execute and query messages are plain frozen dataclasses. `parse_execute_msg()`
and `parse_query_msg()` accept the JSON shape used on the wire, a single-key
object naming the action in snake_case:

    {"bond_stake": {"amount": "100"}}
    {"withdraw_stake": {"cap": 120}}
    {"holders": {"start_after": "addr0", "limit": 5}}

Amounts may be given as ints or as decimal-digit strings. Anything malformed
is rejected with `InvalidMessage`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..core.errors import InvalidMessage
from ..core.types import BlockInfo, Claim, Config, GlobalState, Holder, Instruction, UnbondingBasis
from ..core.wide_decimal import U128_MAX, WideDecimal
from ..state.codec import claim_to_dict, config_to_dict, holder_to_dict, state_to_dict


# -- Call context ------------------------------------------------------------

@dataclass(frozen=True)
class Coin:
    denom: str
    amount: int


@dataclass(frozen=True)
class MessageInfo:
    sender: str
    funds: Tuple[Coin, ...] = ()


@dataclass(frozen=True)
class Env:
    block: BlockInfo
    contract_address: str = "rewardledger"


# -- Instantiate -------------------------------------------------------------

@dataclass(frozen=True)
class InstantiateMsg:
    staked_asset: str
    reward_asset: str
    unbonding_period: int
    unbonding_basis: UnbondingBasis = "height"
    reward_cap_per_period: Optional[int] = None
    accrual_period: Optional[int] = None
    max_claims_per_holder: Optional[int] = None
    admin: Optional[str] = None

    def to_config(self) -> Config:
        return Config(
            staked_asset=self.staked_asset,
            reward_asset=self.reward_asset,
            unbonding_period=self.unbonding_period,
            unbonding_basis=self.unbonding_basis,
            reward_cap_per_period=self.reward_cap_per_period,
            accrual_period=self.accrual_period,
            max_claims_per_holder=self.max_claims_per_holder,
            admin=self.admin,
        )


# -- Execute messages --------------------------------------------------------

@dataclass(frozen=True)
class BondStake:
    """Direct bond: the ledger pulls `amount` of the staked asset from the sender."""

    amount: int


@dataclass(frozen=True)
class Receive:
    """Staked-asset token callback: `amount` already moved into custody by `sender`."""

    sender: str
    amount: int
    msg: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UnbondStake:
    amount: int


@dataclass(frozen=True)
class WithdrawStake:
    cap: Optional[int] = None


@dataclass(frozen=True)
class ClaimRewards:
    recipient: Optional[str] = None


@dataclass(frozen=True)
class UpdateGlobalIndex:
    pass


@dataclass(frozen=True)
class SafeLock:
    locked: bool = True


ExecuteMsg = Union[BondStake, Receive, UnbondStake, WithdrawStake, ClaimRewards, UpdateGlobalIndex, SafeLock]


# -- Query messages ----------------------------------------------------------

@dataclass(frozen=True)
class ConfigQuery:
    pass


@dataclass(frozen=True)
class StateQuery:
    pass


@dataclass(frozen=True)
class HolderQuery:
    address: str


@dataclass(frozen=True)
class HoldersQuery:
    start_after: Optional[str] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class ClaimsQuery:
    address: str


@dataclass(frozen=True)
class AccruedRewardsQuery:
    address: str


QueryMsg = Union[ConfigQuery, StateQuery, HolderQuery, HoldersQuery, ClaimsQuery, AccruedRewardsQuery]


# -- Responses ---------------------------------------------------------------

@dataclass(frozen=True)
class Response:
    """Outcome of a successful execute call."""

    messages: Tuple[Instruction, ...] = ()
    attributes: Tuple[Tuple[str, str], ...] = ()

    def attribute(self, key: str) -> Optional[str]:
        for k, v in self.attributes:
            if k == key:
                return v
        return None


@dataclass(frozen=True)
class HolderResponse:
    address: str
    balance: int
    index: WideDecimal
    pending_rewards: WideDecimal

    @classmethod
    def from_holder(cls, address: str, holder: Holder) -> "HolderResponse":
        return cls(
            address=address,
            balance=holder.balance,
            index=holder.index,
            pending_rewards=holder.pending_rewards,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, **holder_to_dict(Holder(self.balance, self.index, self.pending_rewards))}


@dataclass(frozen=True)
class HoldersResponse:
    holders: Tuple[HolderResponse, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"holders": [h.to_dict() for h in self.holders]}


@dataclass(frozen=True)
class ClaimsResponse:
    claims: Tuple[Claim, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"claims": [claim_to_dict(c) for c in self.claims]}


@dataclass(frozen=True)
class AccruedRewardsResponse:
    rewards: int

    def to_dict(self) -> Dict[str, Any]:
        return {"rewards": self.rewards}


QueryResponse = Union[Config, GlobalState, HolderResponse, HoldersResponse, ClaimsResponse, AccruedRewardsResponse]


def query_response_to_dict(response: QueryResponse) -> Dict[str, Any]:
    if isinstance(response, Config):
        return config_to_dict(response)
    if isinstance(response, GlobalState):
        return state_to_dict(response)
    return response.to_dict()


# -- Parsing -----------------------------------------------------------------

def _body(obj: Any, *, what: str) -> Tuple[str, Mapping[str, Any]]:
    if not isinstance(obj, Mapping) or len(obj) != 1:
        raise InvalidMessage(f"{what} must be an object with exactly one key")
    ((name, body),) = obj.items()
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise InvalidMessage(f"{name} body must be an object")
    return str(name), body


def _only(body: Mapping[str, Any], allowed: Tuple[str, ...], *, name: str) -> None:
    extra = sorted(set(body) - set(allowed))
    if extra:
        raise InvalidMessage(f"{name} has unknown fields: {', '.join(map(str, extra))}")


def _amount(value: Any, *, name: str) -> int:
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidMessage(f"{name} must be an unsigned integer")
    if value < 0 or value > U128_MAX:
        raise InvalidMessage(f"{name} is outside the unsigned 128-bit range")
    return value


def _optional_amount(value: Any, *, name: str) -> Optional[int]:
    return None if value is None else _amount(value, name=name)


def _address(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidMessage(f"{name} must be a non-empty string")
    return value


def _optional_address(value: Any, *, name: str) -> Optional[str]:
    return None if value is None else _address(value, name=name)


def _parse_receive(body: Mapping[str, Any]) -> Receive:
    _only(body, ("sender", "amount", "msg"), name="receive")
    hook = body.get("msg") or {}
    if not isinstance(hook, Mapping):
        raise InvalidMessage("receive.msg must be an object")
    return Receive(
        sender=_address(body.get("sender"), name="receive.sender"),
        amount=_amount(body.get("amount"), name="receive.amount"),
        msg=dict(hook),
    )


def _parse_safe_lock(body: Mapping[str, Any]) -> SafeLock:
    _only(body, ("locked",), name="safe_lock")
    locked = body.get("locked", True)
    if not isinstance(locked, bool):
        raise InvalidMessage("safe_lock.locked must be a bool")
    return SafeLock(locked=locked)


def _parse_bond(body: Mapping[str, Any]) -> BondStake:
    _only(body, ("amount",), name="bond_stake")
    return BondStake(amount=_amount(body.get("amount"), name="bond_stake.amount"))


def _parse_unbond(body: Mapping[str, Any]) -> UnbondStake:
    _only(body, ("amount",), name="unbond_stake")
    return UnbondStake(amount=_amount(body.get("amount"), name="unbond_stake.amount"))


def _parse_withdraw(body: Mapping[str, Any]) -> WithdrawStake:
    _only(body, ("cap",), name="withdraw_stake")
    return WithdrawStake(cap=_optional_amount(body.get("cap"), name="withdraw_stake.cap"))


def _parse_claim(body: Mapping[str, Any]) -> ClaimRewards:
    _only(body, ("recipient",), name="claim_rewards")
    return ClaimRewards(recipient=_optional_address(body.get("recipient"), name="claim_rewards.recipient"))


def _parse_update(body: Mapping[str, Any]) -> UpdateGlobalIndex:
    _only(body, (), name="update_global_index")
    return UpdateGlobalIndex()


_EXECUTE_PARSERS: Dict[str, Callable[[Mapping[str, Any]], ExecuteMsg]] = {
    "bond_stake": _parse_bond,
    "receive": _parse_receive,
    "unbond_stake": _parse_unbond,
    "withdraw_stake": _parse_withdraw,
    "claim_rewards": _parse_claim,
    "update_global_index": _parse_update,
    "safe_lock": _parse_safe_lock,
}


def parse_execute_msg(obj: Any) -> ExecuteMsg:
    name, body = _body(obj, what="execute message")
    parser = _EXECUTE_PARSERS.get(name)
    if parser is None:
        raise InvalidMessage(f"unknown execute message: {name}")
    return parser(body)


def _parse_holders_query(body: Mapping[str, Any]) -> HoldersQuery:
    _only(body, ("start_after", "limit"), name="holders")
    limit = body.get("limit")
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool)):
        raise InvalidMessage("holders.limit must be an int")
    return HoldersQuery(
        start_after=_optional_address(body.get("start_after"), name="holders.start_after"),
        limit=limit,
    )


def _address_query(cls: Any, name: str) -> Callable[[Mapping[str, Any]], QueryMsg]:
    def parse(body: Mapping[str, Any]) -> QueryMsg:
        _only(body, ("address",), name=name)
        return cls(address=_address(body.get("address"), name=f"{name}.address"))

    return parse


def _empty_query(cls: Any, name: str) -> Callable[[Mapping[str, Any]], QueryMsg]:
    def parse(body: Mapping[str, Any]) -> QueryMsg:
        _only(body, (), name=name)
        return cls()

    return parse


_QUERY_PARSERS: Dict[str, Callable[[Mapping[str, Any]], QueryMsg]] = {
    "config": _empty_query(ConfigQuery, "config"),
    "state": _empty_query(StateQuery, "state"),
    "holder": _address_query(HolderQuery, "holder"),
    "holders": _parse_holders_query,
    "claims": _address_query(ClaimsQuery, "claims"),
    "accrued_rewards": _address_query(AccruedRewardsQuery, "accrued_rewards"),
}


def parse_query_msg(obj: Any) -> QueryMsg:
    name, body = _body(obj, what="query message")
    parser = _QUERY_PARSERS.get(name)
    if parser is None:
        raise InvalidMessage(f"unknown query message: {name}")
    return parser(body)
