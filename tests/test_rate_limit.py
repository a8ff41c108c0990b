import os
import unittest

os.environ.setdefault("ANALYTICS_ENABLED", "0")

from starlette.requests import Request

from app.core.rate_limit import client_address


def make_request(headers=()):
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/v1/resumes/analyze",
            "headers": [(name.encode(), value.encode()) for name, value in headers],
            "client": ("10.0.0.1", 52000),
        }
    )


class ClientAddressTests(unittest.TestCase):
    def test_uses_first_forwarded_hop(self):
        request = make_request([("x-forwarded-for", "203.0.113.7, 10.0.0.1")])
        self.assertEqual(client_address(request), "203.0.113.7")

    def test_falls_back_to_peer_address(self):
        self.assertEqual(client_address(make_request()), "10.0.0.1")


if __name__ == "__main__":
    unittest.main()
