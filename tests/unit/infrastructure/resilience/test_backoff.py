import random

import pytest

from lincli.infrastructure.resilience.backoff import RetryConfig


def test_defaults():
    config = RetryConfig()
    assert config.max_retries == 3
    assert config.initial_delay_ms == 1000
    assert config.max_delay_ms == 30000
    assert config.exponential_base == 2.0


def test_no_retry_and_with_max_retries():
    assert RetryConfig.no_retry().max_retries == 0
    assert RetryConfig.new(5).max_retries == 5
    assert RetryConfig().with_max_retries(1).max_retries == 1


def test_negative_max_retries_rejected():
    with pytest.raises(ValueError):
        RetryConfig(max_retries=-1)


def test_base_delay_grows_exponentially_and_caps():
    config = RetryConfig()
    assert config.base_delay_ms(0) == 1000
    assert config.base_delay_ms(1) == 2000
    assert config.base_delay_ms(2) == 4000
    assert config.base_delay_ms(10) == 30000


@pytest.mark.parametrize("attempt", range(8))
def test_delay_within_jitter_bounds(attempt):
    config = RetryConfig()
    rng = random.Random(attempt)
    base_seconds = config.base_delay_ms(attempt) / 1000
    for _ in range(50):
        delay = config.delay_for_attempt(attempt, rng=rng)
        assert 0.75 * base_seconds <= delay <= 1.25 * base_seconds


def test_delay_never_exceeds_cap_plus_jitter():
    config = RetryConfig(max_delay_ms=5000)
    assert config.delay_for_attempt(20, rng=random.Random(1)) <= 6.25


def test_retry_after_wins_over_computed_delay():
    config = RetryConfig(max_delay_ms=1000)
    assert config.delay_for_attempt(0, retry_after=42) == 42.0


def test_zero_initial_delay_is_zero():
    config = RetryConfig(initial_delay_ms=0)
    assert config.delay_for_attempt(3, rng=random.Random(0)) == 0.0
