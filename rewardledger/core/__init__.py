"""
Functional core of the reward ledger: decimal arithmetic, records and kernels.
"""

from .accrual import AccrualResult, accrue, clamp_observed_balance
from .errors import ErrorCategory, ErrorKind, LedgerError
from .invariants import check_all
from .settlement import (
    BondResult,
    ClaimRewardsResult,
    UnbondResult,
    accrued_rewards,
    bond,
    claim_rewards,
    settle,
    unbond,
)
from .types import BlockInfo, Claim, Config, CustodyTransferIn, Expiration, GlobalState, Holder, PaymentInstruction
from .unbonding import WithdrawResult, create_claim, release_at_for, withdraw_matured
from .wide_decimal import DECIMAL_ONE, DECIMAL_ZERO, WideDecimal

__all__ = [
    "AccrualResult",
    "accrue",
    "clamp_observed_balance",
    "ErrorCategory",
    "ErrorKind",
    "LedgerError",
    "check_all",
    "BondResult",
    "ClaimRewardsResult",
    "UnbondResult",
    "accrued_rewards",
    "bond",
    "claim_rewards",
    "settle",
    "unbond",
    "BlockInfo",
    "Claim",
    "Config",
    "CustodyTransferIn",
    "Expiration",
    "GlobalState",
    "Holder",
    "PaymentInstruction",
    "WithdrawResult",
    "create_claim",
    "release_at_for",
    "withdraw_matured",
    "DECIMAL_ONE",
    "DECIMAL_ZERO",
    "WideDecimal",
]
