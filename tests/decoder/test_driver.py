# tests/decoder/test_driver.py
"""Tests for DecodeSession driving the full decode pipeline."""

import json
import re
from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from prismchat.backends import FinishSignal, ProviderError
from prismchat.backends.openai import OpenAIBackend
from prismchat.conversation import Conversation
from prismchat.decoder import (
    CancellationToken,
    DecodeSession,
    DecodeState,
    ResponseStoppedError,
    StreamInterruptedError,
    TurnStatus,
)
from prismchat.ui import NEON_THEME

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

GREEN = "bright_green"


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text for assertion comparisons."""
    return _ANSI_ESCAPE.sub("", text)


# =============================================================================
# Helpers
# =============================================================================


def _delta(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}, "finish_reason": None}]})


def _finish(reason: str = "stop") -> str:
    return "data: " + json.dumps({"choices": [{"delta": {}, "finish_reason": reason}]})


async def _frames(items):
    for item in items:
        yield item


def _decode_frame():
    return OpenAIBackend(model="test-model", api_key="sk-test").decode_frame


def _make_session(width: int = 80, history=None, cancel=None) -> tuple[DecodeSession, StringIO]:
    output = StringIO()
    console = Console(file=output, force_terminal=True, color_system="standard", width=120, theme=NEON_THEME)
    session = DecodeSession(console, GREEN, history=history, cancel=cancel, width_source=lambda: width)
    return session, output


async def _run(deltas: list[str], width: int = 80, reason: str = "stop"):
    history = Conversation()
    session, output = _make_session(width, history)
    frames = [_delta(d) for d in deltas] + [_finish(reason)]
    result = await session.run(_frames(frames), _decode_frame())
    return result, history, output.getvalue()


# =============================================================================
# Completed turns
# =============================================================================


@pytest.mark.asyncio
async def test_colored_reply_is_printed_and_committed():
    deltas = ["Hello wor", "ld, §RED§this§RESET§ is it."]
    result, history, raw = await _run(deltas)

    assert strip_ansi(raw) == "Hello world, this is it.\n"
    assert "\x1b[91mthis" in raw
    assert result.status is TurnStatus.COMPLETED
    assert result.finish is FinishSignal.NATURAL_STOP
    # History keeps the raw text, tags included
    assert history.to_records() == [
        {"role": "assistant", "content": "Hello world, §RED§this§RESET§ is it."}
    ]


@pytest.mark.asyncio
async def test_narrow_terminal_breaks_between_words():
    _, _, raw = await _run(["Hello world"], width=10)
    assert strip_ansi(raw) == "Hello \nworld\n"


@pytest.mark.asyncio
async def test_delimiter_split_across_deltas():
    _, history, raw = await _run(["§RE", "D§text"])
    assert strip_ansi(raw) == "text\n"
    assert "\x1b[91mtext" in raw
    assert history.last().content == "§RED§text"


@pytest.mark.asyncio
async def test_single_character_deltas_render_like_one_delta():
    text = "Some §CYAN§colored words§RESET§ wrapped\nacross §YELLOW§narrow§ lines."
    _, whole_history, whole = await _run([text], width=12)
    _, split_history, split = await _run(list(text), width=12)

    assert split == whole
    assert split_history.to_records() == whole_history.to_records()


@pytest.mark.asyncio
async def test_unclosed_tag_is_printed_literally():
    _, _, raw = await _run(["costs 5§"])
    assert strip_ansi(raw) == "costs 5§\n"


@pytest.mark.asyncio
async def test_empty_natural_stop_commits_empty_message():
    result, history, raw = await _run([])
    assert result.status is TurnStatus.COMPLETED
    assert result.text == ""
    assert history.to_records() == [{"role": "assistant", "content": ""}]
    assert raw == "\n"


@pytest.mark.asyncio
async def test_keep_alive_frames_are_skipped():
    history = Conversation()
    session, output = _make_session(history=history)
    frames = [None, _delta("a"), None, ": ping", "", _delta(" b"), _finish()]

    result = await session.run(_frames(frames), _decode_frame())

    assert result.text == "a b"
    assert strip_ansi(output.getvalue()) == "a b\n"


@pytest.mark.asyncio
async def test_malformed_frame_is_skipped_and_logged():
    history = Conversation()
    session, output = _make_session(history=history)
    frames = [_delta("a "), "data: {not json", _delta("b"), _finish()]

    with patch("prismchat.chat._log_debug") as mock_log:
        result = await session.run(_frames(frames), _decode_frame())

    assert result.text == "a b"
    logged = "".join(call.args[0] for call in mock_log.call_args_list)
    assert "[FRAME_ERROR]" in logged
    assert "[TURN] completed" in logged


@pytest.mark.asyncio
async def test_session_cannot_run_twice():
    session, _ = _make_session()
    await session.run(_frames([_finish()]), _decode_frame())
    assert session.state is DecodeState.DONE

    with pytest.raises(RuntimeError):
        await session.run(_frames([_finish()]), _decode_frame())


# =============================================================================
# Failed turns
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("reason", "finish"),
    [
        ("content_filter", FinishSignal.SAFETY_BLOCK),
        ("length", FinishSignal.LENGTH_LIMIT),
        ("tool_calls", FinishSignal.OTHER),
    ],
)
async def test_early_stop_raises_without_commit(reason, finish):
    history = Conversation()
    session, output = _make_session(history=history)
    frames = [_delta("partial"), _finish(reason)]

    with pytest.raises(ResponseStoppedError) as exc_info:
        await session.run(_frames(frames), _decode_frame())

    assert exc_info.value.finish is finish
    assert exc_info.value.partial_text == "partial"
    assert len(history) == 0
    # Whatever was shown is still terminated
    assert strip_ansi(output.getvalue()) == "partial\n"


@pytest.mark.asyncio
async def test_stream_without_finish_raises():
    history = Conversation()
    session, _ = _make_session(history=history)

    with pytest.raises(StreamInterruptedError) as exc_info:
        await session.run(_frames([_delta("cut off")]), _decode_frame())

    assert exc_info.value.partial_text == "cut off"
    assert len(history) == 0


@pytest.mark.asyncio
async def test_transport_failure_raises_stream_interrupted():
    history = Conversation()
    session, output = _make_session(history=history)

    async def failing_frames():
        yield _delta("half a ")
        raise ProviderError("openai: network error", provider="openai")

    with pytest.raises(StreamInterruptedError) as exc_info:
        await session.run(failing_frames(), _decode_frame())

    assert isinstance(exc_info.value.__cause__, ProviderError)
    assert exc_info.value.partial_text == "half a "
    assert len(history) == 0
    assert strip_ansi(output.getvalue()) == "half a \n"
    assert session.state is DecodeState.DONE


@pytest.mark.asyncio
async def test_provider_error_frame_raises_stream_interrupted():
    session, _ = _make_session(history=Conversation())
    frames = [_delta("a"), 'data: {"error": {"message": "overloaded"}}']

    with pytest.raises(StreamInterruptedError, match="overloaded"):
        await session.run(_frames(frames), _decode_frame())


# =============================================================================
# Cancellation
# =============================================================================


@pytest.mark.asyncio
async def test_cancel_commits_partial_text():
    history = Conversation()
    token = CancellationToken()
    session, output = _make_session(history=history, cancel=token)
    closed = []

    async def frames():
        try:
            yield _delta("partial answer ")
            token.cancel()
            yield _delta("never shown")
            yield _finish()
        finally:
            closed.append(True)

    result = await session.run(frames(), _decode_frame())

    assert result.status is TurnStatus.CANCELLED
    assert result.text == "partial answer "
    assert history.to_records() == [{"role": "assistant", "content": "partial answer "}]
    assert "never shown" not in strip_ansi(output.getvalue())
    assert closed == [True]


@pytest.mark.asyncio
async def test_cancel_before_any_text_commits_nothing():
    history = Conversation()
    token = CancellationToken()
    token.cancel()
    session, output = _make_session(history=history, cancel=token)

    result = await session.run(_frames([_delta("x"), _finish()]), _decode_frame())

    assert result.status is TurnStatus.CANCELLED
    assert result.text == ""
    assert len(history) == 0
    assert output.getvalue() == "\n"


# =============================================================================
# Direct feeding
# =============================================================================


def test_feed_and_finish_without_stream():
    session, output = _make_session()
    session.feed("§BLUE§hi")
    session.feed(" there")
    session.finish()
    session.finish()

    assert session.text == "§BLUE§hi there"
    assert strip_ansi(output.getvalue()) == "hi there\n"
    assert session.state is DecodeState.DONE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("width", "expected"),
    [
        (80, "Hello world!\n"),
        # "world!" is one word across the tag boundary, so it moves as a whole
        (10, "Hello \nworld!\n"),
    ],
)
async def test_hello_scenario(width, expected):
    result, history, raw = await _run(["Hello §RED§world§RESET§!"], width=width)

    assert strip_ansi(raw) == expected
    assert "\x1b[91mworld" in raw
    assert "\x1b[92m!" in raw
    assert history.last().content == "Hello §RED§world§RESET§!"
    assert result.status is TurnStatus.COMPLETED
