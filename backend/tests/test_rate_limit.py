import unittest
from unittest.mock import MagicMock

import redis

from app.middleware.rate_limit import AUTH_POLICY, GENERAL_POLICY, RateLimiter


class TestRateLimiter(unittest.TestCase):
    def setUp(self):
        self.redis = MagicMock()
        self.limiter = RateLimiter(redis_client=self.redis, enabled=True)

    def test_first_hit_starts_window(self):
        self.redis.incr.return_value = 1

        allowed, count, retry_after = self.limiter.hit(GENERAL_POLICY, "user:u1")

        self.assertEqual((allowed, count, retry_after), (True, 1, 0))
        self.redis.incr.assert_called_once_with("rate_limit:general:user:u1")
        self.redis.expire.assert_called_once_with("rate_limit:general:user:u1", 900)

    def test_later_hits_keep_window(self):
        self.redis.incr.return_value = 42

        allowed, _, _ = self.limiter.hit(GENERAL_POLICY, "user:u1")

        self.assertTrue(allowed)
        self.redis.expire.assert_not_called()

    def test_over_limit_reports_remaining_window(self):
        self.redis.incr.return_value = 101
        self.redis.ttl.return_value = 120

        allowed, count, retry_after = self.limiter.hit(GENERAL_POLICY, "user:u1")

        self.assertFalse(allowed)
        self.assertEqual(count, 101)
        self.assertEqual(retry_after, 120)

    def test_missing_ttl_falls_back_to_window(self):
        self.redis.incr.return_value = 101
        self.redis.ttl.return_value = -1

        _, _, retry_after = self.limiter.hit(GENERAL_POLICY, "user:u1")

        self.assertEqual(retry_after, 900)

    def test_redis_outage_lets_requests_through(self):
        self.redis.incr.side_effect = redis.ConnectionError("down")

        with self.assertLogs("app.middleware.rate_limit", level="WARNING"):
            allowed, _, _ = self.limiter.hit(GENERAL_POLICY, "user:u1")

        self.assertTrue(allowed)

    def test_disabled_limiter_never_touches_redis(self):
        limiter = RateLimiter(redis_client=self.redis, enabled=False)

        self.assertEqual(limiter.hit(GENERAL_POLICY, "user:u1"), (True, 0, 0))
        self.assertEqual(limiter.peek(AUTH_POLICY, "ip:1.2.3.4"), (True, 0, 0))
        limiter.record(AUTH_POLICY, "ip:1.2.3.4")
        self.redis.incr.assert_not_called()
        self.redis.get.assert_not_called()

    def test_peek_does_not_count(self):
        self.redis.get.return_value = "4"

        allowed, count, _ = self.limiter.peek(AUTH_POLICY, "ip:1.2.3.4")

        self.assertTrue(allowed)
        self.assertEqual(count, 4)
        self.redis.incr.assert_not_called()

    def test_peek_blocks_at_limit(self):
        self.redis.get.return_value = "5"
        self.redis.ttl.return_value = 300

        allowed, _, retry_after = self.limiter.peek(AUTH_POLICY, "ip:1.2.3.4")

        self.assertFalse(allowed)
        self.assertEqual(retry_after, 300)

    def test_long_identifiers_are_hashed(self):
        self.redis.incr.return_value = 1

        self.limiter.hit(GENERAL_POLICY, "x" * 200)

        key = self.redis.incr.call_args[0][0]
        self.assertTrue(key.startswith("rate_limit:general:"))
        self.assertEqual(len(key), len("rate_limit:general:") + 32)


if __name__ == "__main__":
    unittest.main()
