"""
Collaborator interfaces the ledger consumes, with in-memory implementations.

- `ExternalRewardPool`: the reward balance the ledger observes on accrual.
- `PaymentSink`: delivers payment instructions after a call commits.
- `CustodySink`: pulls directly bonded stake into custody.
- `AccessControl`: sender checks for privileged entry points.

`InMemoryBank` is a tiny multi-asset balance table. `BankRewardPool` and
`BankPaymentSink` wire the ledger to it so rewards paid out actually leave the
observed pool, which keeps `prev_reward_balance` honest across accruals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Tuple

from ..core.errors import Unauthorized
from ..core.types import Config, CustodyTransferIn, PaymentInstruction


class ExternalRewardPool(Protocol):
    def current_balance(self) -> int: ...


class PaymentSink(Protocol):
    def transfer(self, asset: str, recipient: str, amount: int) -> None: ...


class CustodySink(Protocol):
    def pull(self, asset: str, owner: str, amount: int) -> None: ...


class AccessControl(Protocol):
    def require_stake_token(self, sender: str, config: Config) -> None: ...

    def require_admin(self, sender: str, config: Config) -> None: ...


class ConfigAccessControl:
    """Sender checks against the addresses recorded in `Config`."""

    def require_stake_token(self, sender: str, config: Config) -> None:
        if sender != config.staked_asset:
            raise Unauthorized(sender)

    def require_admin(self, sender: str, config: Config) -> None:
        if config.admin is None or sender != config.admin:
            raise Unauthorized(sender)


class InsufficientFunds(ValueError):
    def __init__(self, asset: str, account: str, have: int, want: int) -> None:
        self.asset = asset
        self.account = account
        self.have = have
        self.want = want
        super().__init__(f"{account} holds {have} {asset}, cannot move {want}")


@dataclass
class InMemoryBank:
    """`(asset, account) -> amount` balance table."""

    balances: Dict[Tuple[str, str], int] = field(default_factory=dict)

    def balance(self, asset: str, account: str) -> int:
        return self.balances.get((asset, account), 0)

    def mint(self, asset: str, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self.balances[(asset, account)] = self.balance(asset, account) + amount

    def burn(self, asset: str, account: str, amount: int) -> None:
        have = self.balance(asset, account)
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if amount > have:
            raise InsufficientFunds(asset, account, have, amount)
        self.balances[(asset, account)] = have - amount

    def move(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        self.burn(asset, sender, amount)
        self.mint(asset, recipient, amount)


@dataclass
class StaticRewardPool:
    """A reward pool whose balance the caller sets directly."""

    balance: int = 0

    def current_balance(self) -> int:
        return self.balance


@dataclass
class BankRewardPool:
    bank: InMemoryBank
    asset: str
    account: str

    def current_balance(self) -> int:
        return self.bank.balance(self.asset, self.account)


@dataclass
class BankPaymentSink:
    """Pays out of, and pulls into, the ledger's own account at the bank."""

    bank: InMemoryBank
    custodian: str

    def transfer(self, asset: str, recipient: str, amount: int) -> None:
        self.bank.move(asset, self.custodian, recipient, amount)

    def pull(self, asset: str, owner: str, amount: int) -> None:
        self.bank.move(asset, owner, self.custodian, amount)


@dataclass
class RecordingPaymentSink:
    """Collects delivered instructions in order."""

    delivered: List[object] = field(default_factory=list)

    def transfer(self, asset: str, recipient: str, amount: int) -> None:
        self.delivered.append(PaymentInstruction(asset=asset, recipient=recipient, amount=amount))

    def pull(self, asset: str, owner: str, amount: int) -> None:
        self.delivered.append(CustodyTransferIn(asset=asset, owner=owner, amount=amount))
