import asyncio

from app.services.rate_limiter import RateLimiter
from conftest import FakeRedis

ACTION = 'create_reservation'


def make_limiter(redis=None, per_hour=2, per_day=5):
    limiter = RateLimiter({ACTION: ((3600, per_hour), (86400, per_day))})
    limiter.redis = redis
    return limiter


async def test_third_request_within_hour_is_denied():
    limiter = make_limiter(FakeRedis())

    first = await limiter.check_and_record('ip:10.0.0.1', ACTION)
    second = await limiter.check_and_record('ip:10.0.0.1', ACTION)
    third = await limiter.check_and_record('ip:10.0.0.1', ACTION)

    assert first.allowed and second.allowed
    assert not third.allowed
    assert 0 < third.retry_after <= 3601


async def test_limits_are_counted_per_client():
    limiter = make_limiter(FakeRedis(), per_hour=1)

    await limiter.check_and_record('ip:10.0.0.1', ACTION)
    decision = await limiter.check_and_record('ip:10.0.0.2', ACTION)

    assert decision.allowed


async def test_daily_limit_applies_after_hour_limit_resets():
    redis = FakeRedis()
    limiter = make_limiter(redis, per_hour=10, per_day=2)

    await limiter.check_and_record('user:1', ACTION)
    await limiter.check_and_record('user:1', ACTION)
    decision = await limiter.check_and_record('user:1', ACTION)

    assert not decision.allowed


async def test_denied_attempt_is_not_recorded():
    redis = FakeRedis()
    limiter = make_limiter(redis, per_hour=1)

    await limiter.check_and_record('ip:10.0.0.1', ACTION)
    await limiter.check_and_record('ip:10.0.0.1', ACTION)

    assert len(redis.sets['ratelimit:create_reservation:ip:10.0.0.1']) == 1


async def test_without_redis_everything_is_allowed():
    limiter = make_limiter(None, per_hour=1)

    for _ in range(5):
        decision = await limiter.check_and_record('ip:10.0.0.1', ACTION)
        assert decision.allowed


async def test_unknown_action_is_not_limited():
    limiter = make_limiter(FakeRedis(), per_hour=1)

    decision = await limiter.check_and_record('ip:10.0.0.1', 'other')

    assert decision.allowed


async def test_redis_errors_do_not_block_requests():
    class BrokenRedis(FakeRedis):
        def pipeline(self, transaction=True):
            raise ConnectionError('redis is down')

    limiter = make_limiter(BrokenRedis(), per_hour=1)

    decision = await limiter.check_and_record('ip:10.0.0.1', ACTION)

    assert decision.allowed


async def test_simultaneous_requests_respect_the_limit():
    redis = FakeRedis()
    limiter = make_limiter(redis, per_hour=1)

    decisions = await asyncio.gather(
        *(limiter.check_and_record('ip:10.0.0.1', ACTION) for _ in range(5)),
    )

    assert [d.allowed for d in decisions].count(True) == 1
    assert len(redis.sets['ratelimit:create_reservation:ip:10.0.0.1']) == 1
