"""Tests for telegraph_archiver/retry.py."""

import unittest
from unittest.mock import Mock

import requests

from telegraph_archiver.retry import RetryPolicy, is_transient


class TestIsTransient(unittest.TestCase):

    def test_connection_and_timeout_errors(self):
        self.assertTrue(is_transient(requests.ConnectionError()))
        self.assertTrue(is_transient(requests.Timeout()))

    def test_status_codes(self):
        def http_error(status):
            return requests.HTTPError(response=Mock(status_code=status))

        self.assertTrue(is_transient(http_error(503)))
        self.assertTrue(is_transient(http_error(429)))
        self.assertFalse(is_transient(http_error(404)))

    def test_other_errors(self):
        self.assertFalse(is_transient(ValueError("bad")))


class TestRetryPolicy(unittest.TestCase):

    def setUp(self):
        self.sleeps = []

    def _policy(self, **kwargs):
        return RetryPolicy(sleep=self.sleeps.append, **kwargs)

    def test_returns_result_after_transient_failures(self):
        operation = Mock(side_effect=[requests.ConnectionError(), requests.Timeout(), "done"])

        result = self._policy().call(operation, "arg", key="value")

        self.assertEqual(result, "done")
        self.assertEqual(operation.call_count, 3)
        operation.assert_called_with("arg", key="value")

    def test_backoff_grows(self):
        operation = Mock(side_effect=[requests.ConnectionError()] * 4 + ["done"])

        self._policy(multiplier=1, max_wait=100).call(operation)

        self.assertEqual(len(self.sleeps), 4)
        self.assertEqual(self.sleeps, sorted(self.sleeps))
        self.assertGreater(self.sleeps[-1], self.sleeps[0])

    def test_stops_after_max_retries(self):
        operation = Mock(side_effect=requests.ConnectionError("down"))

        with self.assertRaises(requests.ConnectionError):
            self._policy(max_retries=10).call(operation)

        self.assertEqual(operation.call_count, 11)

    def test_stops_after_max_elapsed(self):
        operation = Mock(side_effect=requests.ConnectionError("down"))

        with self.assertRaises(requests.ConnectionError):
            self._policy(max_retries=10, max_elapsed=0).call(operation)

        self.assertEqual(operation.call_count, 1)

    def test_permanent_error_not_retried(self):
        operation = Mock(side_effect=ValueError("bad input"))

        with self.assertRaises(ValueError):
            self._policy().call(operation)

        self.assertEqual(operation.call_count, 1)
        self.assertEqual(self.sleeps, [])


if __name__ == "__main__":
    unittest.main()
