import unittest
from types import SimpleNamespace

from cms.ratelimit import LoginRateLimiter, get_client_ip


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class LoginRateLimiterTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = LoginRateLimiter(max_attempts=5, lockout_seconds=300, clock=self.clock)

    def test_fresh_ip_is_allowed(self):
        status = self.limiter.check("1.2.3.4")
        self.assertTrue(status.allowed)
        self.assertEqual(status.remaining, 5)
        self.assertIsNone(status.retry_after)

    def test_failures_count_down(self):
        self.assertEqual(self.limiter.record_failure("1.2.3.4"), 4)
        self.assertEqual(self.limiter.record_failure("1.2.3.4"), 3)
        self.assertEqual(self.limiter.check("1.2.3.4").remaining, 3)
        self.assertEqual(self.limiter.check("5.6.7.8").remaining, 5)

    def test_lockout_and_expiry(self):
        for _ in range(5):
            self.limiter.record_failure("1.2.3.4")

        status = self.limiter.check("1.2.3.4")
        self.assertFalse(status.allowed)
        self.assertEqual(status.remaining, 0)
        self.assertEqual(status.retry_after, 300)

        self.clock.now += 120.5
        self.assertEqual(self.limiter.check("1.2.3.4").retry_after, 180)

        self.clock.now += 179.5
        self.assertFalse(self.limiter.check("1.2.3.4").allowed)

        self.clock.now += 0.1
        status = self.limiter.check("1.2.3.4")
        self.assertTrue(status.allowed)
        self.assertEqual(status.remaining, 5)

    def test_clear_resets_ip(self):
        self.limiter.record_failure("1.2.3.4")
        self.limiter.clear("1.2.3.4")
        self.assertEqual(self.limiter.check("1.2.3.4").remaining, 5)


def fake_request(headers=None, host="127.0.0.1"):
    client = SimpleNamespace(host=host) if host else None
    return SimpleNamespace(headers=headers or {}, client=client)


class ClientIpTests(unittest.TestCase):
    def test_forwarded_for_first_entry(self):
        request = fake_request({"x-forwarded-for": " 203.0.113.9 , 10.0.0.1"})
        self.assertEqual(get_client_ip(request), "203.0.113.9")

    def test_real_ip_fallback(self):
        self.assertEqual(get_client_ip(fake_request({"x-real-ip": "198.51.100.7"})), "198.51.100.7")

    def test_socket_peer_then_unknown(self):
        self.assertEqual(get_client_ip(fake_request()), "127.0.0.1")
        self.assertEqual(get_client_ip(fake_request(host=None)), "unknown")


if __name__ == "__main__":
    unittest.main()
