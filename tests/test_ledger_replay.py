from __future__ import annotations

import json

import yaml

SCENARIO = {
    "ledger": {"staked_asset": "stake-token", "reward_asset": "ureward", "unbonding_period": 1000},
    "start": {"height": 1, "time": 1000},
    "mint": [{"asset": "stake-token", "account": "alice", "amount": 500}],
    "steps": [
        {"sender": "alice", "execute": {"bond_stake": {"amount": "100"}}},
        {"fund_rewards": 100},
        {"sender": "bob", "execute": {"update_global_index": {}}},
        {"query": {"accrued_rewards": {"address": "alice"}}},
        {"sender": "alice", "execute": {"claim_rewards": {}}},
        {"sender": "alice", "execute": {"unbond_stake": {"amount": 100}}},
        {"sender": "alice", "execute": {"withdraw_stake": {}}, "expect_error": "nothing_matured"},
        {"advance": {"blocks": 1000}},
        {"sender": "alice", "execute": {"withdraw_stake": {}}},
        {"query": {"claims": {"address": "alice"}}},
    ],
}


def _write(tmp_path, scenario) -> str:
    path = tmp_path / "scenario.yaml"
    path.write_text(yaml.safe_dump(scenario, sort_keys=False), encoding="utf-8")
    return str(path)


def test_replay_single_holder_lifecycle() -> None:
    from tools.ledger_replay import replay

    report = replay(SCENARIO, audit=True)
    assert report.exit_code == 0
    assert report.violations == []
    lines = report.lines
    assert lines[2]["attributes"]["claimed_rewards"] == "100"
    assert lines[3]["result"] == {"rewards": 100}
    assert lines[4]["attributes"]["rewards"] == "100"
    assert lines[6]["error"] == "nothing_matured"
    assert "expectation_failed" not in lines[6]
    assert lines[7]["advance"] == {"height": 1001, "time": 1000}
    assert lines[8]["ok"] is True
    assert lines[8]["attributes"]["amount"] == "100"
    assert lines[9]["result"] == {"claims": []}
    assert report.commitment is not None and report.commitment.startswith("0x")


def test_replay_is_deterministic(tmp_path) -> None:
    from tools.ledger_replay import replay

    a = replay(SCENARIO)
    b = replay(SCENARIO, db_path=str(tmp_path / "replay.sqlite"))
    assert a.commitment == b.commitment


def test_replay_counts_failed_expectations() -> None:
    from tools.ledger_replay import replay

    scenario = dict(SCENARIO)
    scenario["steps"] = [
        {"sender": "alice", "execute": {"unbond_stake": {"amount": 1}}},
        {"sender": "alice", "execute": {"claim_rewards": {}}, "expect_error": "too_early"},
        {"sender": "alice", "execute": {"mint": {}}, "expect_error": "invalid_message"},
    ]
    report = replay(scenario)
    assert report.failed_expectations == 2
    assert report.lines[0]["error"] == "insufficient_balance"
    assert report.lines[2].get("expectation_failed") is None
    assert report.exit_code == 1


def test_main_prints_json_lines(tmp_path, capsys) -> None:
    from tools.ledger_replay import main

    rc = main([_write(tmp_path, SCENARIO), "--audit"])
    assert rc == 0
    out = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert len(out) == len(SCENARIO["steps"]) + 1
    assert out[-1]["snapshot_commitment"].startswith("0x")


def test_main_bad_input(tmp_path, capsys) -> None:
    from tools.ledger_replay import main

    assert main([str(tmp_path / "missing.yaml")]) == 2
    assert main([_write(tmp_path, {"steps": []})]) == 2
    assert main([_write(tmp_path, {**SCENARIO, "steps": [{"sleep": 1}]})]) == 2
    assert "ledger_replay error" in capsys.readouterr().err


def test_replay_unfunded_bond_is_rolled_back() -> None:
    from tools.ledger_replay import replay

    scenario = dict(SCENARIO)
    scenario["steps"] = [
        {"sender": "alice", "execute": {"bond_stake": {"amount": 100}}},
        {"sender": "mallory", "execute": {"bond_stake": {"amount": 100}}, "expect_error": "insufficient_funds"},
        {"query": {"holder": {"address": "mallory"}}},
        {"query": {"state": {}}},
    ]
    report = replay(scenario, audit=True)
    assert report.exit_code == 0
    assert report.lines[1]["ok"] is False
    assert report.lines[2]["result"]["balance"] == 0
    assert report.lines[3]["result"]["total_balance"] == 100
