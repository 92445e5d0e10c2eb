# tests/unit/nftmarket/test_fees.py
"""
Tests for the basis-point fee policy.
"""

import pytest

from nftmarket.errors import AuthorizationError, ValidationError
from nftmarket.fees import FeePolicy, check_rate


class TestFeeArithmetic:
    @pytest.mark.parametrize(
        "rate,amount,expected",
        [(300, 100, 3), (300, 33, 0), (300, 34, 1), (0, 1_000, 0), (9_999, 10_000, 9_999)],
    )
    def test_fee_truncates(self, rate, amount, expected):
        assert FeePolicy(rate).collect_fee("payer", amount) == expected

    def test_rate_must_be_below_denominator(self):
        with pytest.raises(ValidationError):
            FeePolicy(10_000)
        with pytest.raises(ValidationError):
            check_rate(-1)


class TestFeeAdministration:
    def test_owner_sets_rate(self):
        policy = FeePolicy(300, owner="admin")
        policy.set_rate("admin", 250)
        assert policy.collect_fee("payer", 1_000) == 25

    def test_stranger_cannot_set_rate(self):
        policy = FeePolicy(300, owner="admin")
        with pytest.raises(AuthorizationError):
            policy.set_rate("mallory", 0)
        assert policy.rate_bps == 300

    def test_payer_override_and_clear(self):
        policy = FeePolicy(300, owner="admin")
        policy.set_payer_rate("admin", "vip", 0)
        assert policy.collect_fee("vip", 1_000) == 0
        assert policy.collect_fee("other", 1_000) == 30
        policy.set_payer_rate("admin", "vip", None)
        assert policy.current_rate("vip") == 300
