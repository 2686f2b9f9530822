"""Slash-command dispatch table.

Any input line starting with ``/`` is a command. Commands navigate and
persist the conversation and edit settings; they never reach the provider
except ``/retry``, which re-sends the last user message.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from prismchat.chat import ChatSession, replay, send_message
from prismchat.config import DEFAULT_SYSTEM_PROMPT, ConfigError, get_conversations_dir
from prismchat.conversation import Conversation, ConversationFormatError
from prismchat.ui import (
    SettingsView,
    print_color_swatches,
    print_dim,
    print_error,
    print_history_table,
    print_info,
    print_menu,
    print_settings,
    print_success,
    print_warning,
)

CommandHandler = Callable[[ChatSession, str], Awaitable[None]]


@dataclass(frozen=True)
class Command:
    """A registered slash command."""

    name: str
    usage: str
    help: str
    handler: CommandHandler


COMMANDS: dict[str, Command] = {}

ALIASES: dict[str, str] = {
    "quit": "exit",
    "q": "exit",
    "h": "help",
    "?": "help",
}


def command(name: str, usage: str, help: str) -> Callable[[CommandHandler], CommandHandler]:
    """Register a handler in the dispatch table."""

    def register(handler: CommandHandler) -> CommandHandler:
        COMMANDS[name] = Command(name=name, usage=usage, help=help, handler=handler)
        return handler

    return register


def parse_command(line: str) -> tuple[str, str]:
    """Split ``/name rest of line`` into (name, argument).

    Returns:
        Lower-cased command name with aliases resolved, and the stripped argument.

    """
    body = line.strip()[1:]
    name, _, arg = body.partition(" ")
    name = name.lower()
    return ALIASES.get(name, name), arg.strip()


async def dispatch(session: ChatSession, line: str) -> bool:
    """Run the command in ``line`` if it is one.

    Args:
        session: Active chat session.
        line: Raw input line.

    Returns:
        True if the line was a command (known or not), False for chat input.

    """
    if not line.strip().startswith("/"):
        return False
    name, arg = parse_command(line)
    entry = COMMANDS.get(name)
    if entry is None:
        print_warning(session.console, f"Unknown command: /{name}. Type /help for a list of commands.")
        return True
    await entry.handler(session, arg)
    return True


def _save_settings(session: ChatSession) -> None:
    session.reset_backend()
    try:
        session.settings.save()
    except OSError as e:
        print_warning(session.console, f"Settings changed for this session but could not be saved: {e}")


def _conversation_path(name: str) -> Path:
    if name.endswith(".json") or "/" in name:
        return Path(name).expanduser()
    return get_conversations_dir() / f"{name}.json"


# =============================================================================
# General
# =============================================================================


@command("help", "/help", "Show this list")
async def _help(session: ChatSession, arg: str) -> None:
    print_menu(session.console, "Commands", [(c.usage, c.help) for c in COMMANDS.values()])


@command("exit", "/exit", "Leave the chat (also /quit)")
async def _exit(session: ChatSession, arg: str) -> None:
    session.running = False


# =============================================================================
# History navigation
# =============================================================================


@command("history", "/history", "List the messages so far")
async def _history(session: ChatSession, arg: str) -> None:
    if not session.conversation.messages:
        print_dim(session.console, "No messages yet.")
        return
    print_history_table(session.console, session.conversation.to_records())


@command("clear", "/clear", "Start a new conversation")
async def _clear(session: ChatSession, arg: str) -> None:
    session.conversation.clear()
    print_success(session.console, "Conversation cleared")


@command("undo", "/undo", "Remove the last question and its reply")
async def _undo(session: ChatSession, arg: str) -> None:
    removed = session.conversation.undo()
    if not removed:
        print_warning(session.console, "Nothing to undo.")
        return
    print_success(session.console, f"Removed {len(removed)} message(s)")


@command("retry", "/retry", "Ask the last question again")
async def _retry(session: ChatSession, arg: str) -> None:
    removed = session.conversation.undo()
    if not removed:
        print_warning(session.console, "Nothing to retry.")
        return
    await send_message(session, removed[0].content)


@command("replay", "/replay [N]", "Show the last reply (or message N) again")
async def _replay(session: ChatSession, arg: str) -> None:
    messages = session.conversation.messages
    if arg:
        try:
            index = int(arg)
        except ValueError:
            print_error(session.console, "Invalid Argument", f"Expected a message number, got {arg!r}")
            return
        if not 1 <= index <= len(messages):
            print_error(session.console, "Invalid Argument", f"No message number {index}")
            return
        message = messages[index - 1]
    else:
        message = session.conversation.last("assistant")
        if message is None:
            print_warning(session.console, "No reply to show yet.")
            return
    session.console.print()
    await replay(session, message.content)


# =============================================================================
# Persistence
# =============================================================================


@command("save", "/save [name]", "Save the conversation")
async def _save(session: ChatSession, arg: str) -> None:
    name = arg or datetime.now().strftime("chat-%Y%m%d_%H%M%S")
    try:
        path = session.conversation.save(_conversation_path(name))
    except OSError as e:
        print_error(session.console, "Save Failed", str(e))
        return
    print_success(session.console, f"Saved {len(session.conversation)} message(s) to {path}")


@command("load", "/load <name>", "Load a saved conversation")
async def _load(session: ChatSession, arg: str) -> None:
    if not arg:
        await _list(session, arg)
        return
    path = _conversation_path(arg)
    try:
        loaded = Conversation.load(path)
    except FileNotFoundError:
        print_error(session.console, "Load Failed", f"No saved conversation at {path}")
        return
    except (ConversationFormatError, OSError) as e:
        print_error(session.console, "Load Failed", str(e))
        return
    session.conversation.messages = loaded.messages
    print_success(session.console, f"Loaded {len(loaded)} message(s) from {path}")


@command("list", "/list", "List saved conversations")
async def _list(session: ChatSession, arg: str) -> None:
    directory = get_conversations_dir()
    names = sorted(p.stem for p in directory.glob("*.json")) if directory.is_dir() else []
    if not names:
        print_dim(session.console, f"No saved conversations in {directory}")
        return
    print_info(session.console, f"Saved conversations in {directory}:")
    for name in names:
        print_dim(session.console, f"  {name}")


# =============================================================================
# Settings
# =============================================================================


async def _set_and_save(session: ChatSession, key: str, value: str) -> bool:
    try:
        session.settings.update(key, value)
    except ConfigError as e:
        print_error(session.console, "Invalid Setting", str(e))
        return False
    _save_settings(session)
    return True


@command("provider", "/provider [name]", "Show or switch the provider")
async def _provider(session: ChatSession, arg: str) -> None:
    if not arg:
        print_info(session.console, f"Provider: {session.settings.provider}")
        return
    try:
        session.settings.update("provider", arg)
    except ConfigError as e:
        print_error(session.console, "Invalid Setting", str(e))
        return
    # A model name from another provider would not work
    session.settings.update("model", "")
    _save_settings(session)
    print_success(
        session.console,
        f"Provider: {session.settings.provider} ({session.settings.model_for_provider()})",
    )


@command("model", "/model [name]", "Show or switch the model")
async def _model(session: ChatSession, arg: str) -> None:
    if not arg:
        print_info(session.console, f"Model: {session.settings.model_for_provider()}")
        return
    if await _set_and_save(session, "model", arg):
        print_success(session.console, f"Model: {session.settings.model_for_provider()}")


@command("color", "/color [name]", "Show or set the assistant's color")
async def _color(session: ChatSession, arg: str) -> None:
    if not arg:
        print_info(session.console, f"Assistant color: {session.settings.assistant_color}")
        print_color_swatches(session.console)
        return
    if await _set_and_save(session, "assistant_color", arg):
        print_success(session.console, f"Assistant color: {session.settings.assistant_color}")


@command("system", "/system [text|reset|none]", "Show or set the system prompt")
async def _system(session: ChatSession, arg: str) -> None:
    if not arg:
        print_info(session.console, "System prompt:")
        print_dim(session.console, session.settings.system_prompt or "(none)")
        return
    value = {"reset": DEFAULT_SYSTEM_PROMPT, "none": ""}.get(arg.lower(), arg)
    if await _set_and_save(session, "system_prompt", value):
        print_success(session.console, "System prompt updated")


@command("set", "/set <key> <value>", "Change any setting")
async def _set(session: ChatSession, arg: str) -> None:
    key, _, value = arg.partition(" ")
    if not key:
        print_error(session.console, "Invalid Argument", "Usage: /set <key> <value>")
        return
    if await _set_and_save(session, key, value):
        print_success(session.console, f"{key} updated")


@command("settings", "/settings", "Show current settings")
async def _settings(session: ChatSession, arg: str) -> None:
    settings = session.settings
    rows = [
        ("provider", settings.provider),
        ("model", settings.model_for_provider()),
        ("assistant_color", settings.assistant_color),
        ("user_color", settings.user_color),
        ("wrap_width", str(settings.wrap_width or "auto")),
        ("timeout", f"{settings.timeout:g}s"),
        ("system_prompt", (settings.system_prompt[:60] + "...") if len(settings.system_prompt) > 60 else settings.system_prompt),
    ]
    print_settings(session.console, SettingsView(rows=rows, path=str(settings.path)))
