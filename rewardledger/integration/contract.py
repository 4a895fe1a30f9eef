"""
Ledger entry points: instantiate / execute / query.

This is the imperative shell around the pure kernels in `rewardledger.core`:
each execute call opens one store transaction, loads what it needs, runs a
kernel, saves the results and returns a `Response`. Payment and custody
instructions are handed to the sinks inside that transaction, after the
handler has succeeded. If anything raises, a sink included, the transaction
is discarded and the store is left exactly as it was.

`execute()` never raises for ledger errors; it returns an `ExecuteResult`.
`execute_or_raise()` raises the typed `LedgerError` instead. Sink failures
are not ledger errors and propagate from both, with the call rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Type

from ..core.accrual import accrue
from ..core.errors import ContractLocked, InvalidMessage, LedgerError, UnexpectedFunds
from ..core.invariants import check_all
from ..core.settlement import accrued_rewards, bond, claim_rewards, unbond
from ..core.types import Config, CustodyTransferIn, GlobalState, PaymentInstruction
from ..core.unbonding import withdraw_matured
from ..state.store import LedgerStore
from .collaborators import AccessControl, ConfigAccessControl, CustodySink, ExternalRewardPool, PaymentSink
from .log_events import log_event, log_rejection
from .messages import (
    AccruedRewardsQuery,
    AccruedRewardsResponse,
    BondStake,
    ClaimRewards,
    ClaimsQuery,
    ClaimsResponse,
    ConfigQuery,
    Env,
    ExecuteMsg,
    HolderQuery,
    HolderResponse,
    HoldersQuery,
    HoldersResponse,
    InstantiateMsg,
    MessageInfo,
    QueryMsg,
    QueryResponse,
    Receive,
    Response,
    SafeLock,
    StateQuery,
    UnbondStake,
    UpdateGlobalIndex,
    WithdrawStake,
)

logger = logging.getLogger(__name__)

Handler = Callable[[LedgerStore, ExecuteMsg, Env, MessageInfo], Response]

_ACTIONS: Dict[Type[object], str] = {
    BondStake: "bond_stake",
    Receive: "receive",
    UnbondStake: "unbond_stake",
    WithdrawStake: "withdraw_stake",
    ClaimRewards: "claim_rewards",
    UpdateGlobalIndex: "update_global_index",
    SafeLock: "safe_lock",
}


@dataclass(frozen=True)
class ExecuteResult:
    ok: bool
    response: Optional[Response] = None
    error: Optional[LedgerError] = None

    @property
    def rejection(self) -> Optional[str]:
        return None if self.error is None else self.error.kind.value


def _require_no_funds(info: MessageInfo) -> None:
    if any(coin.amount > 0 for coin in info.funds):
        raise UnexpectedFunds()


def _require_unlocked(config: Config) -> None:
    if config.locked:
        raise ContractLocked()


class RewardLedger:
    """One ledger instance bound to a store and its collaborators."""

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        *,
        reward_pool: ExternalRewardPool,
        payment_sink: Optional[PaymentSink] = None,
        custody: Optional[CustodySink] = None,
        access: Optional[AccessControl] = None,
    ) -> None:
        self.store = store if store is not None else LedgerStore()
        self.reward_pool = reward_pool
        self.payment_sink = payment_sink
        self.custody = custody
        self.access: AccessControl = access if access is not None else ConfigAccessControl()
        self._handlers: Dict[Type[object], Handler] = {
            BondStake: self._bond_stake,
            Receive: self._receive,
            UnbondStake: self._unbond_stake,
            WithdrawStake: self._withdraw_stake,
            ClaimRewards: self._claim_rewards,
            UpdateGlobalIndex: self._update_global_index,
            SafeLock: self._safe_lock,
        }

    # -- Instantiate ---------------------------------------------------------

    def instantiate(self, msg: InstantiateMsg, env: Env) -> Response:
        """Write the initial config and global state. Only allowed once."""
        with self.store.transaction() as tx:
            if tx.is_initialized():
                raise InvalidMessage("ledger is already instantiated")
            config = msg.to_config()
            state = GlobalState(next_accrual_time=env.block.time if config.period_gated else None)
            tx.save_config(config)
            tx.save_state(state)
        log_event(
            logger,
            "instantiate",
            staked_asset=config.staked_asset,
            reward_asset=config.reward_asset,
            unbonding_period=config.unbonding_period,
            unbonding_basis=config.unbonding_basis,
            next_accrual_time=state.next_accrual_time,
        )
        return Response(attributes=(("action", "instantiate"),))

    # -- Execute -------------------------------------------------------------

    def execute(self, msg: ExecuteMsg, env: Env, info: MessageInfo) -> ExecuteResult:
        action = _ACTIONS.get(type(msg))
        handler = self._handlers.get(type(msg))
        if action is None or handler is None:
            exc: LedgerError = InvalidMessage(f"unsupported message type: {type(msg).__name__}")
            log_rejection(logger, "unknown", exc, sender=info.sender)
            return ExecuteResult(ok=False, error=exc)

        try:
            with self.store.transaction() as tx:
                response = handler(tx, msg, env, info)
                self._deliver(response)
        except LedgerError as exc:
            log_rejection(logger, action, exc, sender=info.sender, height=env.block.height)
            return ExecuteResult(ok=False, error=exc)

        log_event(
            logger,
            "execute",
            action=action,
            sender=info.sender,
            height=env.block.height,
            attributes=dict(response.attributes),
        )
        return ExecuteResult(ok=True, response=response)

    def execute_or_raise(self, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        result = self.execute(msg, env, info)
        if not result.ok:
            assert result.error is not None
            raise result.error
        assert result.response is not None
        return result.response

    def _deliver(self, response: Response) -> None:
        for instruction in response.messages:
            if isinstance(instruction, PaymentInstruction) and self.payment_sink is not None:
                self.payment_sink.transfer(instruction.asset, instruction.recipient, instruction.amount)
            elif isinstance(instruction, CustodyTransferIn) and self.custody is not None:
                self.custody.pull(instruction.asset, instruction.owner, instruction.amount)

    # -- Handlers ------------------------------------------------------------

    def _receive(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, Receive)
        config = tx.load_config()
        self.access.require_stake_token(info.sender, config)
        _require_no_funds(info)
        if dict(msg.msg) not in ({"bond_stake": {}}, {"bond_stake": None}):
            raise InvalidMessage("receive hook must be {\"bond_stake\": {}}")
        return self._bond(tx, config, msg.sender, msg.amount)

    def _bond_stake(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, BondStake)
        config = tx.load_config()
        _require_no_funds(info)
        response = self._bond(tx, config, info.sender, msg.amount)
        pull = CustodyTransferIn(asset=config.staked_asset, owner=info.sender, amount=msg.amount)
        return replace(response, messages=(pull,) + response.messages)

    def _bond(self, tx: LedgerStore, config: Config, address: str, amount: int) -> Response:
        _require_unlocked(config)
        result = bond(tx.load_state(), tx.load_holder(address), amount)
        tx.save_state(result.state)
        tx.save_holder(address, result.holder)
        return Response(
            attributes=(
                ("action", "bond_stake"),
                ("holder", address),
                ("amount", str(amount)),
            )
        )

    def _unbond_stake(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, UnbondStake)
        config = tx.load_config()
        _require_no_funds(info)
        _require_unlocked(config)
        address = info.sender
        result = unbond(
            config,
            tx.load_state(),
            tx.load_holder(address),
            tx.list_claims(address),
            msg.amount,
            env.block,
        )
        tx.save_state(result.state)
        tx.save_holder(address, result.holder)
        tx.replace_claims(address, result.claims)
        return Response(
            attributes=(
                ("action", "unbond_stake"),
                ("holder", address),
                ("amount", str(msg.amount)),
            )
        )

    def _withdraw_stake(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, WithdrawStake)
        config = tx.load_config()
        _require_no_funds(info)
        address = info.sender
        result = withdraw_matured(tx.list_claims(address), env.block, msg.cap)
        tx.replace_claims(address, result.still_waiting)
        payment = PaymentInstruction(asset=config.staked_asset, recipient=address, amount=result.payable)
        return Response(
            messages=(payment,),
            attributes=(
                ("action", "withdraw_stake"),
                ("holder", address),
                ("amount", str(result.payable)),
            ),
        )

    def _claim_rewards(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, ClaimRewards)
        config = tx.load_config()
        _require_no_funds(info)
        _require_unlocked(config)
        address = info.sender
        result = claim_rewards(
            tx.load_state(),
            tx.load_holder(address),
            reward_asset=config.reward_asset,
            recipient=msg.recipient or address,
        )
        tx.save_state(result.state)
        tx.save_holder(address, result.holder)
        return Response(
            messages=(result.payment,),
            attributes=(
                ("action", "claim_rewards"),
                ("holder", address),
                ("recipient", result.payment.recipient),
                ("rewards", str(result.payment.amount)),
            ),
        )

    def _update_global_index(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, UpdateGlobalIndex)
        config = tx.load_config()
        _require_no_funds(info)
        _require_unlocked(config)
        result = accrue(config, tx.load_state(), self.reward_pool.current_balance(), env.block)
        tx.save_state(result.state)
        log_event(
            logger,
            "update_global_index",
            claimed_rewards=result.claimed_rewards,
            observed_balance=result.observed_balance,
            clamped_balance=result.clamped_balance,
            global_index=str(result.state.global_index),
        )
        return Response(
            attributes=(
                ("action", "update_global_index"),
                ("claimed_rewards", str(result.claimed_rewards)),
            )
        )

    def _safe_lock(self, tx: LedgerStore, msg: ExecuteMsg, env: Env, info: MessageInfo) -> Response:
        assert isinstance(msg, SafeLock)
        config = tx.load_config()
        self.access.require_admin(info.sender, config)
        tx.save_config(replace(config, locked=msg.locked))
        return Response(attributes=(("action", "safe_lock"), ("locked", str(msg.locked).lower())))

    # -- Queries -------------------------------------------------------------

    def query(self, msg: QueryMsg) -> QueryResponse:
        """Answer a query from committed state only."""
        store = self.store
        if isinstance(msg, ConfigQuery):
            return store.load_config()
        if isinstance(msg, StateQuery):
            return store.load_state()
        if isinstance(msg, HolderQuery):
            return HolderResponse.from_holder(msg.address, store.load_holder(msg.address))
        if isinstance(msg, HoldersQuery):
            page = store.list_holders(msg.start_after, msg.limit)
            return HoldersResponse(holders=tuple(HolderResponse.from_holder(a, h) for a, h in page))
        if isinstance(msg, ClaimsQuery):
            return ClaimsResponse(claims=tuple(store.list_claims(msg.address)))
        if isinstance(msg, AccruedRewardsQuery):
            state = store.load_state()
            return AccruedRewardsResponse(rewards=accrued_rewards(state.global_index, store.load_holder(msg.address)))
        raise InvalidMessage(f"unsupported query type: {type(msg).__name__}")

    def audit(self) -> List[str]:
        """Run the ledger-wide invariant checks over committed state."""
        return check_all(self.store.load_state(), dict(self.store.iter_holders()))
