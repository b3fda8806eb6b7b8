"""
Tests for the console client's argument handling.
"""

import logging

import pytest

from resilient_ws import main as cli
from resilient_ws.config.config import Config
from resilient_ws.exceptions import ConfigurationError


def test_parse_headers():
    assert cli.parse_headers(["Authorization: Bearer abc", "X-Id:7"]) == {
        "Authorization": "Bearer abc",
        "X-Id": "7",
    }


@pytest.mark.parametrize("value", ["no-colon", ": empty-name"])
def test_parse_headers_rejects_malformed_values(value):
    with pytest.raises(ValueError):
        cli.parse_headers([value])


def test_parser_reads_url_and_repeated_headers():
    args = cli.build_parser().parse_args(
        ["wss://example.test", "-H", "A: 1", "--header", "B: 2", "--no-console-log"]
    )

    assert args.url == "wss://example.test"
    assert args.header == ["A: 1", "B: 2"]
    assert args.no_console_log is True


def test_main_without_url_exits_with_usage_error(monkeypatch):
    monkeypatch.setattr(Config, "WS_SERVER_URL", None)
    monkeypatch.setattr(cli, "configure_logging", lambda console: logging.getLogger())

    assert cli.main([]) == 2


def test_main_runs_client_with_parsed_options(monkeypatch):
    captured = {}

    async def fake_run(url, options):
        captured["url"] = url
        captured["options"] = options
        return 0

    monkeypatch.setattr(cli, "configure_logging", lambda console: logging.getLogger())
    monkeypatch.setattr(cli, "run", fake_run)

    assert cli.main(["wss://example.test", "-H", "Cookie: a=b"]) == 0
    assert captured["url"] == "wss://example.test"
    assert captured["options"].headers == {"Cookie": "a=b"}


def test_main_rejects_malformed_header(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda console: logging.getLogger())

    assert cli.main(["wss://example.test", "-H", "broken"]) == 2


def test_main_rejects_invalid_client_options(monkeypatch):
    def invalid_options(cls, **overrides):
        raise ConfigurationError("max_queue_size must be positive")

    monkeypatch.setattr(cli, "configure_logging", lambda console: logging.getLogger())
    monkeypatch.setattr(cli.ClientOptions, "from_config", classmethod(invalid_options))

    assert cli.main(["wss://example.test"]) == 2
