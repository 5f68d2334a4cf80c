"""Unit tests for equal-share splitting"""

from roomie_ledger.domain.splits import split_evenly, format_cents


def test_split_evenly_equal_split():
    """Test split with evenly divisible amount"""
    shares = split_evenly(3000, {"alice", "bob", "carol"})

    assert shares == {"alice": 1000, "bob": 1000, "carol": 1000}


def test_split_evenly_remainder_goes_to_first_ids():
    """Test leftover cents land on the lexicographically first participants"""
    shares = split_evenly(1001, {"carol", "alice", "bob"})

    assert shares["alice"] == 334
    assert shares["bob"] == 334
    assert shares["carol"] == 333
    assert sum(shares.values()) == 1001


def test_split_evenly_sum_is_exact_for_awkward_amounts():
    """Test shares always add back up to the original amount"""
    participants = {"p1", "p2", "p3", "p4", "p5", "p6", "p7"}
    for amount in (1, 6, 7, 99, 100, 12_345, 999_999):
        assert sum(split_evenly(amount, participants).values()) == amount


def test_split_evenly_duplicates_collapse():
    shares = split_evenly(1000, ["alice", "bob", "alice"])
    assert shares == {"alice": 500, "bob": 500}


def test_split_evenly_empty_participants():
    assert split_evenly(1000, []) == {}


def test_split_evenly_zero_amount():
    assert split_evenly(0, {"alice", "bob"}) == {"alice": 0, "bob": 0}


def test_format_cents():
    assert format_cents(450) == "$4.50"
    assert format_cents(100_000) == "$1000.00"
    assert format_cents(-5) == "-$0.05"
