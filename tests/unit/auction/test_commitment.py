from datetime import timedelta
from decimal import Decimal

import pytest

from stockshield.core.auction import (
    compute_commit_hash,
    elapsed_minutes,
    gap_value,
    is_valid_commit_hash,
    min_bid,
    parse_bid_amount,
)

_ALICE_7200 = "dffbff3f5e2d055e6356f1971ccd63beef337d83d26dc96e8f641de5fcb873b0"


class TestCommitHash:

    def test_known_vector(self):
        assert compute_commit_hash("7200", "salt-1", "alice") == _ALICE_7200

    @pytest.mark.parametrize("amount", [7200, "7200", "7200.00", Decimal("7200"), 7200.0])
    def test_amount_formatting_is_canonical(self, amount):
        assert compute_commit_hash(amount, "salt-1", "alice") == _ALICE_7200

    def test_salt_and_bidder_bound(self):
        assert compute_commit_hash("7200", "salt-2", "alice") != _ALICE_7200
        assert compute_commit_hash("7200", "salt-1", "bob") != _ALICE_7200

    def test_malformed_amount_raises(self):
        with pytest.raises(ValueError):
            compute_commit_hash("0", "salt-1", "alice")

    def test_amount_beyond_cent_precision_raises(self):
        with pytest.raises(ValueError):
            compute_commit_hash("1e40", "salt-1", "alice")

    def test_valid_hash_shape(self):
        assert is_valid_commit_hash(_ALICE_7200)
        assert not is_valid_commit_hash(_ALICE_7200.upper())
        assert not is_valid_commit_hash(_ALICE_7200[:-1])
        assert not is_valid_commit_hash(None)


class TestParseBidAmount:

    @pytest.mark.parametrize("raw,expected", [
        ("7200", Decimal("7200.00")),
        (" 0.1 ", Decimal("0.10")),
        (15, Decimal("15.00")),
        (Decimal("99.99"), Decimal("99.99")),
        ("1e30", Decimal("1000000000000000000000000000000.00")),
    ])
    def test_accepted(self, raw, expected):
        assert parse_bid_amount(raw) == expected

    @pytest.mark.parametrize("raw", [
        True, None, "abc", "NaN", "Infinity", "0", "-5", "1.001", 7200.555, [7200],
        "1e40", Decimal("1E+40"),
    ])
    def test_malformed(self, raw):
        assert parse_bid_amount(raw) is None


class TestArithmetic:

    def test_gap_value(self):
        assert gap_value(Decimal("0.10"), 1_000_000.0, 0.10) == Decimal("10000.00")
        assert gap_value(Decimal("0.005"), 250_000, 1) == Decimal("1250.00")

    def test_elapsed_minutes_exact(self):
        assert elapsed_minutes(timedelta(seconds=45)) == Decimal("0.75")
        assert elapsed_minutes(timedelta(minutes=2)) == Decimal("2")

    @pytest.mark.parametrize("minutes,expected", [
        ("0", "7000.00"),
        ("0.75", "5185.73"),
        ("1", "4692.24"),
        ("2", "3145.30"),
    ])
    def test_min_bid_decay(self, minutes, expected):
        floor = min_bid(Decimal("10000.00"), Decimal("0.70"), Decimal("0.4"), Decimal(minutes))
        assert floor == Decimal(expected)

    def test_min_bid_decreasing(self):
        floors = [
            min_bid(Decimal("10000.00"), Decimal("0.70"), Decimal("0.4"), Decimal(m))
            for m in range(6)
        ]
        assert floors == sorted(floors, reverse=True)
