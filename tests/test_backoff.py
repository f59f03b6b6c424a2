"""Tests for the backoff schedule."""

import random

import pytest

from wallgen.services.backoff import BackoffPolicy


@pytest.fixture
def policy():
    return BackoffPolicy(min_delay=10.0, growth_factor=1.5, max_delay=90.0, jitter_max=5.0)


def test_base_delay_grows_then_caps(policy):
    assert policy.base_delay(1) == 10.0
    assert policy.base_delay(2) == 15.0
    assert policy.base_delay(3) == 22.5
    assert policy.base_delay(6) == 75.9375
    assert policy.base_delay(7) == 90.0
    assert policy.base_delay(15) == 90.0


@pytest.mark.parametrize("attempt", range(1, 20))
def test_next_delay_within_bounds(policy, attempt):
    rng = random.Random(attempt)
    delay = policy.next_delay(attempt, rng)
    lower = min(10.0 * 1.5 ** (attempt - 1), 90.0)
    assert lower <= delay <= lower + 5.0
    assert delay <= 95.0


def test_jitter_extremes(policy):
    class Fixed:
        def __init__(self, value):
            self.value = value

        def uniform(self, a, b):
            return a + (b - a) * self.value

    assert policy.next_delay(1, Fixed(0.0)) == 10.0
    assert policy.next_delay(1, Fixed(1.0)) == 15.0


def test_non_decreasing_base(policy):
    bases = [policy.base_delay(n) for n in range(1, 16)]
    assert bases == sorted(bases)


def test_attempt_must_be_positive(policy):
    with pytest.raises(ValueError):
        policy.next_delay(0)
