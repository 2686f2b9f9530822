"""Main orchestration logic for the interactive chat loop."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TextIO

from prismchat.chat import (
    ChatSession,
    console,
    get_shutdown_requested,
    send_message,
    set_debug_log,
)
from prismchat.commands import dispatch
from prismchat.config import ConfigError, Settings, get_home_dir
from prismchat.conversation import Conversation, ConversationFormatError
from prismchat.ui import print_banner, print_dim, print_error, print_info, prompt_user


@dataclass
class RunConfig:
    """Configuration for a prismchat run.

    Command line values override the persisted settings for this run only.

    Attributes:
        provider: Provider override ("openai", "gemini" or "anthropic").
        model: Model override.
        color: Assistant color override (color tag name).
        width: Fixed wrap width override; 0 follows the terminal.
        load: Conversation file to resume.
        debug: Enable debug logging to a timestamped file in the home directory.
        prompt: Message to send before the interactive loop starts.
        settings_path: Settings file to use instead of the default one.

    """

    provider: str | None = None
    model: str | None = None
    color: str | None = None
    width: int | None = None
    load: str | None = None
    debug: bool = False
    prompt: str | None = None
    settings_path: Path | None = None


def _apply_overrides(settings: Settings, config: RunConfig) -> None:
    """Apply command line overrides without persisting them.

    Raises:
        ConfigError: If an override is invalid.

    """
    if config.provider is not None:
        settings.override("provider", config.provider)
        if config.model is None:
            settings.override("model", "")
    if config.model is not None:
        settings.override("model", config.model)
    if config.color is not None:
        settings.override("assistant_color", config.color)
    if config.width is not None:
        settings.override("wrap_width", str(config.width))


async def chat_loop(session: ChatSession) -> None:
    """Read input lines until the user exits or stdin closes.

    Lines starting with ``/`` are commands; everything else is sent to the
    provider.
    """
    while session.running and not get_shutdown_requested():
        session.console.print()
        try:
            line = prompt_user(session.console, "You", session.user_color())
        except EOFError:
            session.console.print()
            break
        if not line.strip():
            continue
        if await dispatch(session, line):
            continue
        await send_message(session, line)


async def run(config: RunConfig) -> int:
    """Run an interactive chat.

    Args:
        config: Run configuration from the command line.

    Returns:
        Process exit code: 0 on a normal exit, 1 on a configuration error.

    """
    try:
        settings = Settings.load(config.settings_path)
        _apply_overrides(settings, config)
    except ConfigError as e:
        print_error(console, "Configuration Error", str(e))
        return 1

    session = ChatSession(settings=settings)

    if config.load:
        path = Path(config.load).expanduser()
        try:
            session.conversation = Conversation.load(path)
        except FileNotFoundError:
            print_error(console, "Load Failed", f"No conversation file at {path}")
            return 1
        except (ConversationFormatError, OSError) as e:
            print_error(console, "Load Failed", str(e))
            return 1

    debug_log_path: Path | None = None
    debug_log_file: TextIO | None = None
    if config.debug:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        home = get_home_dir()
        home.mkdir(parents=True, exist_ok=True)
        debug_log_path = home / f"prismchat-debug-{timestamp}.log"
        debug_log_file = open(debug_log_path, "w", encoding="utf-8")  # noqa: SIM115
        set_debug_log(debug_log_file)

    print_banner(console, "prismchat", f"{settings.provider} / {settings.model_for_provider()}")
    if debug_log_path:
        print_info(console, f"Debug log: {debug_log_path}")
    if session.conversation.messages:
        print_info(console, f"Resumed {len(session.conversation)} message(s) from {config.load}")
    print_dim(console, "Type /help for commands. Ctrl-C stops a reply; /exit leaves.")

    try:
        if config.prompt:
            console.print()
            await send_message(session, config.prompt)
        await chat_loop(session)
    finally:
        if debug_log_file is not None:
            debug_log_file.close()
            set_debug_log(None)
            if debug_log_path:
                print_info(console, f"Debug log saved: {debug_log_path}")

    return 0
