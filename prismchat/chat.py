"""Chat session state, debug logging and turn execution."""

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import TextIO

import httpx
from rich.console import Console

from prismchat.backends import Backend, Chunk, FinishSignal, create_backend
from prismchat.colors import lookup
from prismchat.config import DEFAULT_ASSISTANT_COLOR, ConfigError, Settings
from prismchat.conversation import Conversation
from prismchat.decoder import (
    CancellationToken,
    DecodeSession,
    ResponseStoppedError,
    StreamInterruptedError,
    TurnError,
    TurnResult,
    TurnStatus,
)
from prismchat.ui import create_console, print_assistant_label, print_error, print_warning


@dataclass
class ChatState:
    """Consolidated process state for the chat client.

    Attributes:
        debug_log: File handle for debug logging, or None to disable.
        shutdown_requested: True if shutdown has been requested.
        cancel_token: Token of the turn currently streaming, or None.

    """

    debug_log: TextIO | None = None
    shutdown_requested: bool = False
    cancel_token: CancellationToken | None = None


# Module-level Singletons
# =======================
# The signal handler has no other way to reach the running turn, so process
# state lives here. Access it through the functions below; reset_state()
# restores defaults between test runs or CLI invocations.

_state = ChatState()
console = create_console()


def get_state() -> ChatState:
    """Get the global chat state singleton."""
    return _state


def reset_state() -> None:
    """Reset the global chat state to defaults."""
    global _state
    _state = ChatState()


def set_debug_log(log_file: TextIO | None) -> None:
    """Set the debug log file handle.

    Args:
        log_file: File handle for debug logging, or None to disable.

    """
    _state.debug_log = log_file


def get_debug_log() -> TextIO | None:
    """Get the current debug log file handle."""
    return _state.debug_log


def set_shutdown_requested(requested: bool) -> None:
    """Set shutdown requested flag."""
    _state.shutdown_requested = requested


def get_shutdown_requested() -> bool:
    """Get shutdown requested flag."""
    return _state.shutdown_requested


def get_cancel_token() -> CancellationToken | None:
    """Return the cancellation token of the streaming turn, if any."""
    return _state.cancel_token


def get_console() -> Console:
    """Get the shared console."""
    return console


def _log_debug(message: str) -> None:
    """Write a message to the debug log if enabled."""
    if _state.debug_log is not None:
        _state.debug_log.write(message)
        _state.debug_log.flush()


@dataclass
class ChatSession:
    """Everything one interactive chat needs between turns.

    Attributes:
        settings: Active settings (persisted by the commands that change them).
        conversation: Messages exchanged so far.
        console: Console the chat renders to.
        running: False once the user asked to exit.
        transport: Optional httpx transport passed to backends, used by tests.

    """

    settings: Settings
    conversation: Conversation = field(default_factory=Conversation)
    console: Console = field(default_factory=get_console)
    running: bool = True
    transport: httpx.AsyncBaseTransport | None = None
    _backend: Backend | None = field(default=None, repr=False)

    def get_backend(self) -> Backend:
        """Return a backend for the current provider and model, creating it if needed.

        Raises:
            ConfigError: If the provider's API key is missing.

        """
        model = self.settings.model_for_provider()
        backend = self._backend
        if backend is None or backend.name != self.settings.provider or backend.model != model:
            backend = create_backend(
                self.settings.provider,
                model=model,
                timeout=self.settings.timeout,
                transport=self.transport,
            )
            self._backend = backend
        return backend

    def reset_backend(self) -> None:
        """Drop the cached backend so the next turn picks up changed settings."""
        self._backend = None

    def assistant_color(self) -> str:
        """Rich color for assistant text, falling back to the default tag color."""
        return lookup(self.settings.assistant_color) or lookup(DEFAULT_ASSISTANT_COLOR) or "default"

    def user_color(self) -> str:
        """Rich color for the user prompt label."""
        return lookup(self.settings.user_color) or "default"

    def width_source(self) -> Callable[[], int] | None:
        """Fixed wrap width if configured, else None to follow the terminal."""
        width = self.settings.wrap_width
        if width > 0:
            return lambda: width
        return None


async def run_turn(session: ChatSession) -> TurnResult:
    """Stream the assistant's reply to the current conversation.

    The reply is rendered through the decoder and, on success or
    cancellation, appended to the conversation.

    Args:
        session: Chat session whose conversation ends with a user message.

    Returns:
        TurnResult for a completed or cancelled turn.

    Raises:
        TurnError: If the provider stopped early or the stream failed.
        ConfigError: If the backend cannot be created.

    """
    backend = session.get_backend()
    color = session.assistant_color()
    messages = list(session.conversation.messages)

    _log_debug(f"\n{'=' * 80}\n")
    _log_debug(f"[PROMPT] provider={backend.name} model={backend.model} messages={len(messages)}\n")
    _log_debug(f"{messages[-1].content if messages else ''}\n")
    _log_debug(f"{'=' * 80}\n\n")

    session.console.print()
    print_assistant_label(session.console, backend.model, color)

    token = CancellationToken()
    _state.cancel_token = token
    decoder = DecodeSession(
        session.console,
        color,
        history=session.conversation,
        cancel=token,
        width_source=session.width_source(),
    )
    try:
        return await decoder.run(
            backend.stream(messages, session.settings.system_prompt or None),
            backend.decode_frame,
        )
    finally:
        _state.cancel_token = None


async def send_message(session: ChatSession, text: str) -> TurnResult | None:
    """Add a user message and run the assistant's turn.

    On failure, or a cancel before any text arrived, the user message is
    removed again so that user and assistant messages keep alternating.

    Args:
        session: Active chat session.
        text: The user's message.

    Returns:
        TurnResult, or None if the turn failed.

    """
    session.conversation.append("user", text)
    try:
        result = await run_turn(session)
    except ConfigError as e:
        session.conversation.undo()
        print_error(session.console, "Configuration Error", str(e))
        return None
    except ResponseStoppedError as e:
        session.conversation.undo()
        _log_debug(f"[TURN_ERROR] {e}\n")
        print_error(session.console, "Response Stopped", _describe_stop(e.finish))
        return None
    except StreamInterruptedError as e:
        session.conversation.undo()
        print_error(session.console, "Stream Interrupted", str(e))
        return None
    except TurnError as e:
        session.conversation.undo()
        print_error(session.console, "Turn Failed", str(e))
        return None

    if result.status is TurnStatus.CANCELLED:
        if not result.text:
            # Nothing was committed, so drop the unanswered message too
            session.conversation.undo()
            print_warning(session.console, "Response cancelled before any text; message removed from history")
        else:
            print_warning(session.console, "Response cancelled; partial reply kept in history")
    return result


def _describe_stop(finish: FinishSignal) -> str:
    if finish is FinishSignal.SAFETY_BLOCK:
        return "The provider blocked this response for safety reasons. Nothing was saved."
    if finish is FinishSignal.LENGTH_LIMIT:
        return "The response hit the provider's length limit. Nothing was saved."
    return "The provider ended the response early. Nothing was saved."


async def _single_frame(text: str) -> AsyncIterator[str]:
    yield text


async def replay(session: ChatSession, text: str) -> None:
    """Render stored assistant text again without touching the conversation."""
    decoder = DecodeSession(session.console, session.assistant_color(), width_source=session.width_source())
    await decoder.run(
        _single_frame(text),
        lambda frame: Chunk(text=frame, finish=FinishSignal.NATURAL_STOP),
    )
