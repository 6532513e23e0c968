import random

import pytest

from tinyshrink.infrastructure.config.settings import RetryConfig
from tinyshrink.infrastructure.resilience.backoff import BackoffPolicy


@pytest.fixture
def policy() -> BackoffPolicy:
    return BackoffPolicy(base_delay=0.2, max_delay=30.0, factor=2.0)


def test_exponential_sequence(policy: BackoffPolicy):
    delays = [policy.delay_for(n) for n in range(1, 7)]
    assert delays == pytest.approx([0.2, 0.4, 0.8, 1.6, 3.2, 6.4])


def test_delay_is_capped(policy: BackoffPolicy):
    assert policy.delay_for(20) == 30.0
    assert policy.delay_for(10_000) == 30.0


def test_delay_for_is_pure(policy: BackoffPolicy):
    assert policy.delay_for(4) == policy.delay_for(4)


def test_compute_without_jitter_matches_delay_for(policy: BackoffPolicy):
    assert [policy.compute(n) for n in range(1, 5)] == [policy.delay_for(n) for n in range(1, 5)]


def test_full_jitter_stays_within_bounds():
    policy = BackoffPolicy(base_delay=0.2, max_delay=30.0, factor=2.0, jitter="full", rng=random.Random(7))
    for attempt in range(1, 12):
        delay = policy.compute(attempt)
        assert 0.0 <= delay <= policy.delay_for(attempt)


def test_delays_yields_one_per_gap(policy: BackoffPolicy):
    assert list(policy.delays(4)) == pytest.approx([0.2, 0.4, 0.8])


def test_attempt_numbers_start_at_one(policy: BackoffPolicy):
    with pytest.raises(ValueError):
        policy.delay_for(0)


def test_from_config():
    policy = BackoffPolicy.from_config(RetryConfig(base_delay=0.5, max_delay=4.0, backoff_factor=3.0))
    assert [policy.delay_for(n) for n in (1, 2, 3)] == pytest.approx([0.5, 1.5, 4.0])


@pytest.mark.parametrize("kwargs", [{"factor": 0.5}, {"base_delay": -1}, {"jitter": "equal"}])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)
