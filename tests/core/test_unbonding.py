"""Tests for rewardledger/core/unbonding.py: claim creation and matured withdrawal."""

from dataclasses import replace

import pytest

from rewardledger.core.errors import ClaimQueueFull, ErrorCategory, NothingMatured, ZeroAmount
from rewardledger.core.types import BlockInfo, Claim, Config, Expiration
from rewardledger.core.unbonding import create_claim, release_at_for, withdraw_matured


def _claim(amount: int, height: int) -> Claim:
    return Claim(amount=amount, release_at=Expiration.at_height(height))


class TestExpiration:
    def test_at_height_inclusive(self):
        e = Expiration.at_height(10)
        assert not e.is_expired(BlockInfo(height=9, time=0))
        assert e.is_expired(BlockInfo(height=10, time=0))

    def test_at_time_inclusive(self):
        e = Expiration.at_time(100)
        assert not e.is_expired(BlockInfo(height=1_000, time=99))
        assert e.is_expired(BlockInfo(height=0, time=100))

    def test_never(self):
        assert not Expiration.never().is_expired(BlockInfo(height=10**12, time=10**12))

    def test_invalid_kind(self):
        with pytest.raises(ValueError):
            Expiration("at_epoch", 1)  # type: ignore[arg-type]


class TestCreateClaim:
    def test_appends(self):
        q = create_claim((), 5, Expiration.at_height(3))
        q = create_claim(q, 7, Expiration.at_height(4))
        assert q == (_claim(5, 3), _claim(7, 4))

    def test_zero(self):
        with pytest.raises(ZeroAmount):
            create_claim((), 0, Expiration.at_height(1))

    def test_queue_full(self):
        with pytest.raises(ClaimQueueFull):
            create_claim([_claim(1, 1)], 1, Expiration.at_height(1), max_claims=1)

    def test_release_at_for(self):
        cfg = Config(staked_asset="s", reward_asset="r", unbonding_period=1000)
        block = BlockInfo(height=5, time=77)
        assert release_at_for(cfg, block) == Expiration.at_height(1005)
        assert release_at_for(replace(cfg, unbonding_basis="time"), block) == Expiration.at_time(1077)


class TestWithdrawMatured:
    def test_before_maturity(self):
        with pytest.raises(NothingMatured) as exc:
            withdraw_matured([_claim(100, 1005)], BlockInfo(height=10, time=0))
        assert exc.value.category is ErrorCategory.TIMING
        assert not exc.value.fatal

    def test_after_maturity_empties_queue(self):
        r = withdraw_matured([_claim(100, 1005)], BlockInfo(height=10_000, time=0))
        assert r.payable == 100
        assert r.still_waiting == ()
        assert r.released == (_claim(100, 1005),)

    def test_partition_keeps_unmatured(self):
        q = [_claim(10, 5), _claim(20, 50), _claim(30, 6)]
        r = withdraw_matured(q, BlockInfo(height=6, time=0))
        assert r.payable == 40
        assert r.still_waiting == (_claim(20, 50),)

    def test_cap_excludes_claim_that_would_overflow(self):
        q = [_claim(100, 1), _claim(50, 1)]
        r = withdraw_matured(q, BlockInfo(height=2, time=0), cap=120)
        assert r.payable == 100
        assert r.still_waiting == (_claim(50, 1),)

    @pytest.mark.parametrize("cap", [None, 150, 1_000])
    def test_cap_admits_all(self, cap):
        q = [_claim(100, 1), _claim(50, 1)]
        r = withdraw_matured(q, BlockInfo(height=2, time=0), cap=cap)
        assert r.payable == 150
        assert r.still_waiting == ()

    def test_cap_is_greedy_in_list_order(self):
        q = [_claim(100, 1), _claim(50, 1), _claim(20, 1)]
        r = withdraw_matured(q, BlockInfo(height=2, time=0), cap=120)
        assert r.payable == 120
        assert r.still_waiting == (_claim(50, 1),)

    def test_cap_below_every_claim(self):
        with pytest.raises(NothingMatured):
            withdraw_matured([_claim(100, 1)], BlockInfo(height=2, time=0), cap=99)

    def test_empty_queue(self):
        with pytest.raises(NothingMatured):
            withdraw_matured([], BlockInfo(height=2, time=0))
