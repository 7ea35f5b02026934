"""Tests for the hybrid in-memory / Redis rate limiter"""

from unittest.mock import MagicMock

import redis

from clinic_api import rate_limiter
from clinic_api.rate_limiter import check_rate_limit


def test_allows_up_to_limit():
    results = [check_rate_limit("rate_limit:test:a", 3, 60)[0] for _ in range(4)]

    assert results == [True, True, True, False]


def test_keys_are_independent():
    for _ in range(2):
        check_rate_limit("rate_limit:test:a", 2, 60)

    assert check_rate_limit("rate_limit:test:a", 2, 60)[0] is False
    assert check_rate_limit("rate_limit:test:b", 2, 60)[0] is True


def test_resumes_shared_count_from_redis():
    client = MagicMock()
    client.get.return_value = "5"
    client.ttl.return_value = 40

    allowed, count, ttl = check_rate_limit("rate_limit:test:shared", 5, 60, client)

    assert allowed is False
    assert count == 5
    assert 0 < ttl <= 40


def test_redis_errors_fall_back_to_memory():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.set.side_effect = redis.ConnectionError("down")

    allowed, count, _ = check_rate_limit("rate_limit:test:flaky", 5, 60, client)

    assert allowed is True
    assert count == 1
    assert rate_limiter.memory_cache["rate_limit:test:flaky"]["count"] == 1
