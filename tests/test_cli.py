"""Tests for telegraph_archiver/cli.py."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import AsyncMock, patch

from telegraph_archiver import cli
from telegraph_archiver.errors import NoValidURLs


class TestCli(unittest.TestCase):

    def test_build_config(self):
        args = cli.parse_args(["https://example.org", "--timeout", "30", "--secondary", "none", "--split-height", "8000"])
        config = cli.build_config(args)

        self.assertEqual(config.capture_timeout, 30.0)
        self.assertIsNone(config.secondary_backend)
        self.assertEqual(config.split_height, 8000)

    def test_requires_url(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            cli.parse_args([])
        self.assertEqual(ctx.exception.code, 2)

    def test_prints_results(self):
        results = {"https://example.org": "https://telegra.ph/page", "x": "invalid url"}
        with patch.object(cli.Archiver, "archive_batch", new=AsyncMock(return_value=results)):
            out = io.StringIO()
            with redirect_stdout(out):
                status = cli.main(["https://example.org", "x"])

        self.assertEqual(status, 0)
        self.assertIn("https://example.org => https://telegra.ph/page", out.getvalue())
        self.assertIn("x => invalid url", out.getvalue())

    def test_batch_failure_exit_status(self):
        error = NoValidURLs(results={"x": "invalid url"})
        with patch.object(cli.Archiver, "archive_batch", new=AsyncMock(side_effect=error)):
            out = io.StringIO()
            with redirect_stdout(out):
                status = cli.main(["x"])

        self.assertEqual(status, 1)
        self.assertIn("x => invalid url", out.getvalue())


if __name__ == "__main__":
    unittest.main()
