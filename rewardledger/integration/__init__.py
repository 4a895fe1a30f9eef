"""
Imperative shell for the reward ledger: messages, collaborators, entry points
"""

from .collaborators import (
    BankPaymentSink,
    BankRewardPool,
    ConfigAccessControl,
    InMemoryBank,
    RecordingPaymentSink,
    StaticRewardPool,
)
from .config import instantiate_msg_from_mapping, load_instantiate_msg, open_store
from .contract import ExecuteResult, RewardLedger
from .messages import Env, InstantiateMsg, MessageInfo, Response, parse_execute_msg, parse_query_msg
from .snapshot import LedgerSnapshot, snapshot_from_store, store_from_snapshot

__all__ = [
    "BankPaymentSink",
    "BankRewardPool",
    "ConfigAccessControl",
    "InMemoryBank",
    "RecordingPaymentSink",
    "StaticRewardPool",
    "instantiate_msg_from_mapping",
    "load_instantiate_msg",
    "open_store",
    "ExecuteResult",
    "RewardLedger",
    "Env",
    "InstantiateMsg",
    "MessageInfo",
    "Response",
    "parse_execute_msg",
    "parse_query_msg",
    "LedgerSnapshot",
    "snapshot_from_store",
    "store_from_snapshot",
]
