"""Tests for the chatrelay-server entry point."""

from unittest.mock import patch

from chatrelay.server import DEFAULT_HOST, DEFAULT_PORT, main, parse_serve_args


class TestParseServeArgs:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHATRELAY_HOST", raising=False)
        monkeypatch.delenv("CHATRELAY_PORT", raising=False)

        args = parse_serve_args([])

        assert args.host == DEFAULT_HOST
        assert args.port == DEFAULT_PORT
        assert args.reload is False

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_HOST", "0.0.0.0")
        monkeypatch.setenv("CHATRELAY_PORT", "9000")

        args = parse_serve_args([])

        assert args.host == "0.0.0.0"
        assert args.port == 9000

    def test_flags_override_env(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_PORT", "9000")

        args = parse_serve_args(["--host", "localhost", "--port", "8123"])

        assert args.host == "localhost"
        assert args.port == 8123

    def test_bad_port_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_PORT", "http")
        assert parse_serve_args([]).port == DEFAULT_PORT


def test_main_runs_uvicorn():
    with patch("uvicorn.run") as run:
        main(["--port", "8001"])

    run.assert_called_once()
    assert run.call_args.args[0] == "chatrelay.api.main:app"
    assert run.call_args.kwargs["port"] == 8001
    assert run.call_args.kwargs["reload"] is False


def test_reload_flag_reaches_uvicorn():
    with patch("uvicorn.run") as run:
        main(["--reload"])

    assert run.call_args.kwargs["reload"] is True
