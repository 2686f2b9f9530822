# tests/test_cli.py
"""Tests for CLI argument parsing, signal handling and exit codes."""

import signal
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from prismchat.chat import get_shutdown_requested, get_state, reset_state
from prismchat.cli import _parse_args, _signal_handler, main
from prismchat.decoder import CancellationToken
from prismchat.runner import RunConfig


@pytest.fixture(autouse=True)
def _clean_state():
    reset_state()
    yield
    reset_state()


class TestParseArgs:
    """Tests for _parse_args."""

    def test_defaults(self):
        with patch.object(sys, "argv", ["prismchat"]):
            config = _parse_args()
        assert config == RunConfig()

    def test_prompt_words_are_joined(self):
        with patch.object(sys, "argv", ["prismchat", "why", "is", "the", "sky", "blue?"]):
            config = _parse_args()
        assert config.prompt == "why is the sky blue?"

    def test_all_options(self):
        argv = [
            "prismchat",
            "-p", "gemini",
            "-m", "gemini-1.5-pro",
            "--color", "yellow",
            "--width", "72",
            "--load", "chat.json",
            "--settings", "/tmp/settings.json",
            "--debug",
        ]
        with patch.object(sys, "argv", argv):
            config = _parse_args()
        assert config.provider == "gemini"
        assert config.model == "gemini-1.5-pro"
        assert config.color == "yellow"
        assert config.width == 72
        assert config.load == "chat.json"
        assert config.settings_path == Path("/tmp/settings.json")
        assert config.debug is True
        assert config.prompt is None

    def test_unknown_provider_exits(self):
        with patch.object(sys, "argv", ["prismchat", "--provider", "mistral"]):
            with pytest.raises(SystemExit):
                _parse_args()

    def test_negative_width_exits(self):
        with patch.object(sys, "argv", ["prismchat", "--width", "-5"]):
            with pytest.raises(SystemExit):
                _parse_args()


class TestSignalHandler:
    """Tests for Ctrl-C handling."""

    def test_first_interrupt_cancels_streaming_turn(self):
        token = CancellationToken()
        get_state().cancel_token = token

        _signal_handler(signal.SIGINT, None)

        assert token.cancelled
        assert get_shutdown_requested() is False

    def test_second_interrupt_exits(self):
        token = CancellationToken()
        token.cancel()
        get_state().cancel_token = token

        with pytest.raises(KeyboardInterrupt):
            _signal_handler(signal.SIGINT, None)
        assert get_shutdown_requested() is True

    def test_interrupt_at_prompt_exits(self):
        with pytest.raises(KeyboardInterrupt):
            _signal_handler(signal.SIGINT, None)
        assert get_shutdown_requested() is True

    def test_sigterm_always_exits(self):
        get_state().cancel_token = CancellationToken()
        with pytest.raises(KeyboardInterrupt):
            _signal_handler(signal.SIGTERM, None)


class TestMain:
    """Tests for main exit codes."""

    @pytest.mark.parametrize(
        ("outcome", "code"),
        [
            ({"return_value": 0}, 0),
            ({"return_value": 1}, 1),
            ({"side_effect": KeyboardInterrupt}, 130),
            ({"side_effect": RuntimeError("boom")}, 1),
        ],
    )
    def test_exit_codes(self, outcome, code):
        with (
            patch.object(sys, "argv", ["prismchat"]),
            patch("prismchat.cli._install_signal_handlers"),
            patch("prismchat.cli.anyio.run", **outcome),
            patch("prismchat.cli.print_error"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == code
