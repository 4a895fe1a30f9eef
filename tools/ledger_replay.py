#!/usr/bin/env python3
"""
Replay a YAML scenario against a fresh ledger and print one JSON line per step.

Scenario format:

    ledger:                      # InstantiateMsg fields
      staked_asset: stake-token
      reward_asset: ureward
      unbonding_period: 1000
    start: {height: 1, time: 1000}
    mint:                        # optional initial bank balances
      - {asset: stake-token, account: alice, amount: 500}
    steps:
      - {sender: alice, execute: {bond_stake: {amount: 100}}}
      - {fund_rewards: 100}
      - {sender: bob, execute: {update_global_index: {}}}
      - {advance: {blocks: 1000, seconds: 5000}}
      - {sender: alice, execute: {withdraw_stake: {}}, expect_error: nothing_matured}
      - {query: {accrued_rewards: {address: alice}}}

Each step may carry `at: {height, time}` to jump the clock. A step with
`expect_error` must be rejected with that error kind; a step without it must
succeed. A transfer the bank refuses is reported as `insufficient_funds`.
Exit codes: 0 ok, 1 an expectation failed, 2 bad input, 3 invariant
violation (with `--audit`).

Example:
  python3 tools/ledger_replay.py scenario.yaml --audit
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rewardledger.core.errors import LedgerError
from rewardledger.core.types import BlockInfo
from rewardledger.integration.collaborators import BankPaymentSink, BankRewardPool, InMemoryBank, InsufficientFunds
from rewardledger.integration.config import ConfigError, bool_env, instantiate_msg_from_mapping, load_yaml_mapping, open_store
from rewardledger.integration.contract import RewardLedger
from rewardledger.integration.messages import (
    Env,
    MessageInfo,
    parse_execute_msg,
    parse_query_msg,
    query_response_to_dict,
)
from rewardledger.integration.snapshot import snapshot_from_store

AUDIT_ENV = "REWARDLEDGER_AUDIT"
DEFAULT_CONTRACT_ADDRESS = "rewardledger"

EXIT_OK = 0
EXIT_EXPECTATION = 1
EXIT_BAD_INPUT = 2
EXIT_INVARIANT = 3


class ScenarioError(Exception):
    pass


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise ScenarioError(f"{name} must be a mapping")
    return obj


def _require_int(obj: Any, *, name: str) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool) or obj < 0:
        raise ScenarioError(f"{name} must be a non-negative int")
    return obj


def _block(obj: Any, *, name: str) -> BlockInfo:
    m = _require_mapping(obj, name=name)
    return BlockInfo(
        height=_require_int(m.get("height"), name=f"{name}.height"),
        time=_require_int(m.get("time"), name=f"{name}.time"),
    )


@dataclass
class ReplayReport:
    lines: List[Dict[str, Any]] = field(default_factory=list)
    failed_expectations: int = 0
    violations: List[str] = field(default_factory=list)
    commitment: Optional[str] = None

    @property
    def exit_code(self) -> int:
        if self.violations:
            return EXIT_INVARIANT
        if self.failed_expectations:
            return EXIT_EXPECTATION
        return EXIT_OK


def replay(scenario: Mapping[str, Any], *, db_path: Optional[str] = None, audit: bool = False) -> ReplayReport:
    scenario = _require_mapping(scenario, name="scenario")
    try:
        msg = instantiate_msg_from_mapping(scenario.get("ledger"))
    except ConfigError as exc:
        raise ScenarioError(str(exc)) from exc

    contract_address = scenario.get("contract_address", DEFAULT_CONTRACT_ADDRESS)
    if not isinstance(contract_address, str) or not contract_address:
        raise ScenarioError("contract_address must be a non-empty string")
    block = _block(scenario.get("start", {"height": 1, "time": 0}), name="start")

    bank = InMemoryBank()
    for i, entry in enumerate(scenario.get("mint") or []):
        m = _require_mapping(entry, name=f"mint[{i}]")
        bank.mint(str(m.get("asset")), str(m.get("account")), _require_int(m.get("amount"), name=f"mint[{i}].amount"))

    ledger = RewardLedger(
        open_store(db_path),
        reward_pool=BankRewardPool(bank, msg.reward_asset, contract_address),
        payment_sink=BankPaymentSink(bank, contract_address),
        custody=BankPaymentSink(bank, contract_address),
    )
    ledger.instantiate(msg, Env(block=block, contract_address=contract_address))

    report = ReplayReport()
    steps = scenario.get("steps") or []
    if not isinstance(steps, list):
        raise ScenarioError("steps must be a list")

    for i, raw in enumerate(steps):
        step = _require_mapping(raw, name=f"steps[{i}]")
        if "at" in step:
            block = _block(step["at"], name=f"steps[{i}].at")
        line: Dict[str, Any] = {"step": i, "height": block.height, "time": block.time}

        if "advance" in step:
            adv = _require_mapping(step["advance"], name=f"steps[{i}].advance")
            block = BlockInfo(
                height=block.height + _require_int(adv.get("blocks", 0), name="advance.blocks"),
                time=block.time + _require_int(adv.get("seconds", 0), name="advance.seconds"),
            )
            line.update({"advance": {"height": block.height, "time": block.time}})
        elif "fund_rewards" in step:
            amount = _require_int(step["fund_rewards"], name=f"steps[{i}].fund_rewards")
            bank.mint(msg.reward_asset, contract_address, amount)
            line.update({"fund_rewards": amount, "pool": bank.balance(msg.reward_asset, contract_address)})
        elif "execute" in step:
            sender = step.get("sender")
            if not isinstance(sender, str) or not sender:
                raise ScenarioError(f"steps[{i}].sender must be a non-empty string")
            env = Env(block=block, contract_address=contract_address)
            try:
                execute_msg = parse_execute_msg(step["execute"])
            except LedgerError as exc:
                result_ok, error = False, exc
                attributes: Dict[str, str] = {}
            else:
                try:
                    result = ledger.execute(execute_msg, env, MessageInfo(sender=sender))
                except InsufficientFunds as exc:
                    # The bank refused a transfer; the call was rolled back.
                    result_ok, error, attributes = False, None, {}
                    line["error"] = "insufficient_funds"
                    line["detail"] = str(exc)
                else:
                    result_ok, error = result.ok, result.error
                    attributes = dict(result.response.attributes) if result.response is not None else {}
            line.update({"sender": sender, "ok": result_ok, "attributes": attributes})
            if error is not None:
                line["error"] = error.kind.value
            expected = step.get("expect_error")
            if (expected is None and not result_ok) or (expected is not None and line.get("error") != expected):
                line["expectation_failed"] = True
                report.failed_expectations += 1
        elif "query" in step:
            try:
                response = ledger.query(parse_query_msg(step["query"]))
                line["result"] = query_response_to_dict(response)
            except LedgerError as exc:
                line["error"] = exc.kind.value
                if step.get("expect_error") != exc.kind.value:
                    line["expectation_failed"] = True
                    report.failed_expectations += 1
        else:
            raise ScenarioError(f"steps[{i}] has no action (advance/fund_rewards/execute/query)")

        if audit:
            violations = ledger.audit()
            if violations:
                line["violations"] = violations
                report.violations.extend(violations)
        report.lines.append(line)

    report.commitment = snapshot_from_store(ledger.store).commitment_hex()
    return report


def _emit(lines: List[Dict[str, Any]], commitment: Optional[str], out: TextIO) -> None:
    for line in lines:
        out.write(json.dumps(line, sort_keys=True, separators=(",", ":")) + "\n")
    out.write(json.dumps({"snapshot_commitment": commitment}, separators=(",", ":")) + "\n")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay a reward-ledger scenario and print JSON lines.")
    p.add_argument("scenario", type=Path, help="Path to the scenario YAML file")
    p.add_argument("--db", default=None, help="SQLite path (default: in-memory)")
    p.add_argument("--audit", action="store_true", help="Check ledger invariants after every step")
    p.add_argument("--log-level", default="WARNING", help="Logging level for ledger events (default: WARNING)")
    args = p.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING), format="%(message)s")
    audit = bool(args.audit) or bool_env(AUDIT_ENV, default=False)

    try:
        scenario = load_yaml_mapping(args.scenario)
        report = replay(scenario, db_path=args.db, audit=audit)
    except (OSError, yaml.YAMLError, ScenarioError, ValueError) as exc:
        print(f"ledger_replay error: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    _emit(report.lines, report.commitment, sys.stdout)
    return report.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
