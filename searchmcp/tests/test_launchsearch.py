"""
Tests for the command-line entry point and the smoke test.
"""

import json
import logging

import httpx
import pytest

import launchsearch


class TestParseArguments:
    """Tests for command-line parsing."""

    def test_defaults(self):
        args = launchsearch.parse_arguments([])

        assert args.config is None
        assert args.port is None
        assert args.check is None
        assert args.verbose is False

    def test_check_without_url(self):
        args = launchsearch.parse_arguments(["--check"])

        assert args.check == "http://localhost:3000"

    def test_overrides(self):
        args = launchsearch.parse_arguments([
            "--port", "8080", "--log-level", "debug", "--check", "http://example.org:9000",
        ])

        assert args.port == 8080
        assert args.log_level == "debug"
        assert args.check == "http://example.org:9000"


class TestJsonFormatter:
    """Tests for structured log output."""

    def test_format(self):
        record = logging.LogRecord("searchmcp", logging.INFO, __file__, 1, "hello %s", ("world",), None)

        data = json.loads(launchsearch.JsonFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "searchmcp"
        assert data["message"] == "hello world"
        assert "exception" not in data


class TestRunChecks:
    """Tests for the smoke test against an in-process server."""

    @pytest.mark.asyncio
    async def test_all_checks_pass(self, app):
        exit_code = await launchsearch.run_checks(
            "http://testserver", transport=httpx.ASGITransport(app=app)
        )

        assert exit_code == 0

    @pytest.mark.asyncio
    async def test_failed_search_fails_the_run(self, make_app):
        app = make_app(status_code=503)

        exit_code = await launchsearch.run_checks(
            "http://testserver", transport=httpx.ASGITransport(app=app)
        )

        assert exit_code == 1

    def test_main_reports_config_errors(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        assert launchsearch.main(["--config", str(path)]) == 1

    @pytest.mark.parametrize("argv", [["--port", "70000"], ["--port", "0"]])
    def test_main_rejects_out_of_range_port(self, monkeypatch, argv):
        """Test that command-line overrides are validated before the server starts."""
        started = []
        monkeypatch.setattr(launchsearch.uvicorn, "run", lambda *args, **kwargs: started.append(args))

        assert launchsearch.main(argv) == 1
        assert started == []
