"""Tests for rewardledger/integration/messages.py wire parsing."""

import pytest

from rewardledger.core.errors import InvalidMessage
from rewardledger.core.types import Claim, Config, Expiration, GlobalState, Holder
from rewardledger.core.wide_decimal import WideDecimal
from rewardledger.integration.messages import (
    AccruedRewardsQuery,
    AccruedRewardsResponse,
    BondStake,
    ClaimRewards,
    ClaimsQuery,
    ClaimsResponse,
    ConfigQuery,
    HolderQuery,
    HolderResponse,
    HoldersQuery,
    Receive,
    Response,
    SafeLock,
    StateQuery,
    UnbondStake,
    UpdateGlobalIndex,
    WithdrawStake,
    parse_execute_msg,
    parse_query_msg,
    query_response_to_dict,
)


class TestExecuteParsing:
    @pytest.mark.parametrize(
        "obj,expected",
        [
            ({"bond_stake": {"amount": 100}}, BondStake(100)),
            ({"bond_stake": {"amount": "100"}}, BondStake(100)),
            ({"unbond_stake": {"amount": "340282366920938463463374607431768211455"}}, UnbondStake(2**128 - 1)),
            ({"withdraw_stake": {}}, WithdrawStake()),
            ({"withdraw_stake": {"cap": 120}}, WithdrawStake(cap=120)),
            ({"claim_rewards": None}, ClaimRewards()),
            ({"claim_rewards": {"recipient": "cold"}}, ClaimRewards(recipient="cold")),
            ({"update_global_index": {}}, UpdateGlobalIndex()),
            ({"safe_lock": {}}, SafeLock(locked=True)),
            ({"safe_lock": {"locked": False}}, SafeLock(locked=False)),
        ],
    )
    def test_accepts(self, obj, expected):
        assert parse_execute_msg(obj) == expected

    def test_receive(self):
        msg = parse_execute_msg({"receive": {"sender": "alice", "amount": "7", "msg": {"bond_stake": {}}}})
        assert isinstance(msg, Receive)
        assert (msg.sender, msg.amount, dict(msg.msg)) == ("alice", 7, {"bond_stake": {}})

    @pytest.mark.parametrize(
        "obj",
        [
            {},
            {"bond_stake": {"amount": 1}, "unbond_stake": {"amount": 1}},
            {"mint": {}},
            {"bond_stake": {"amount": -1}},
            {"bond_stake": {"amount": "1.5"}},
            {"bond_stake": {"amount": "-1"}},
            {"bond_stake": {"amount": True}},
            {"bond_stake": {"amount": 2**128}},
            {"bond_stake": {}},
            {"bond_stake": {"amount": 1, "memo": "x"}},
            {"bond_stake": [1]},
            {"claim_rewards": {"recipient": ""}},
            {"safe_lock": {"locked": "yes"}},
            {"receive": {"sender": "alice", "amount": 1, "msg": "bond_stake"}},
            ["bond_stake"],
        ],
    )
    def test_rejects(self, obj):
        with pytest.raises(InvalidMessage):
            parse_execute_msg(obj)


class TestQueryParsing:
    @pytest.mark.parametrize(
        "obj,expected",
        [
            ({"config": {}}, ConfigQuery()),
            ({"state": None}, StateQuery()),
            ({"holder": {"address": "a"}}, HolderQuery("a")),
            ({"holders": {}}, HoldersQuery()),
            ({"holders": {"start_after": "a", "limit": 5}}, HoldersQuery(start_after="a", limit=5)),
            ({"claims": {"address": "a"}}, ClaimsQuery("a")),
            ({"accrued_rewards": {"address": "a"}}, AccruedRewardsQuery("a")),
        ],
    )
    def test_accepts(self, obj, expected):
        assert parse_query_msg(obj) == expected

    @pytest.mark.parametrize(
        "obj",
        [
            {"holder": {}},
            {"holders": {"limit": "5"}},
            {"config": {"verbose": True}},
            {"balance": {"address": "a"}},
        ],
    )
    def test_rejects(self, obj):
        with pytest.raises(InvalidMessage):
            parse_query_msg(obj)


class TestResponses:
    def test_attribute_lookup(self):
        r = Response(attributes=(("action", "bond_stake"), ("amount", "5")))
        assert r.attribute("amount") == "5"
        assert r.attribute("missing") is None

    def test_query_response_shapes(self):
        cfg = Config(staked_asset="s", reward_asset="r", unbonding_period=1)
        assert query_response_to_dict(cfg)["staked_asset"] == "s"
        assert query_response_to_dict(GlobalState(total_balance=2))["total_balance"] == 2
        holder = HolderResponse.from_holder("a", Holder(balance=3, index=WideDecimal.from_str("1.5")))
        assert query_response_to_dict(holder) == {
            "address": "a",
            "balance": 3,
            "index": "1.5",
            "pending_rewards": "0",
        }
        claims = ClaimsResponse(claims=(Claim(4, Expiration.at_time(10)),))
        assert query_response_to_dict(claims) == {"claims": [{"amount": 4, "release_at": {"at_time": 10}}]}
        assert query_response_to_dict(AccruedRewardsResponse(rewards=9)) == {"rewards": 9}
