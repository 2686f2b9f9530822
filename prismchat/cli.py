"""CLI entry point for prismchat."""

import argparse
import signal
import sys
from pathlib import Path

import anyio

from prismchat.chat import console, get_cancel_token, set_shutdown_requested
from prismchat.config import PROVIDERS
from prismchat.runner import RunConfig, run
from prismchat.ui import print_error


def _signal_handler(signum: int, frame: object) -> None:
    """Stop the streaming reply, or request shutdown when nothing is streaming."""
    token = get_cancel_token()
    if signum == signal.SIGINT and token is not None and not token.cancelled:
        token.cancel()
        return
    set_shutdown_requested(True)
    raise KeyboardInterrupt


def _install_signal_handlers() -> None:
    """Install signal handlers for cancellation and graceful shutdown."""
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)


def _parse_args() -> RunConfig:
    """Parse command line arguments and return a RunConfig.

    Returns:
        RunConfig: Configuration object populated from command line arguments.

    """
    parser = argparse.ArgumentParser(
        prog="prismchat",
        description="Terminal chat client with streamed, colored replies",
    )

    parser.add_argument(
        "prompt",
        nargs="*",
        metavar="PROMPT",
        help="Message to send before the interactive loop starts",
    )

    parser.add_argument(
        "--provider", "-p",
        choices=list(PROVIDERS),
        default=None,
        help="Provider for this run: openai, gemini or anthropic (default: from settings)",
    )

    parser.add_argument(
        "--model", "-m",
        default=None,
        help="Model to use (default: provider-specific). Examples: gpt-4o-mini, gemini-2.0-flash",
    )

    parser.add_argument(
        "--color",
        default=None,
        metavar="NAME",
        help="Assistant color tag name, e.g. GREEN or DARKCYAN",
    )

    parser.add_argument(
        "--width",
        type=int,
        default=None,
        metavar="COLUMNS",
        help="Fixed wrap width (default: terminal width, 0 for auto)",
    )

    parser.add_argument(
        "--load",
        default=None,
        metavar="FILE",
        help="Resume a saved conversation file",
    )

    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        metavar="FILE",
        dest="settings_path",
        help="Settings file to use instead of ~/.prismchat/settings.json",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Save debug log",
    )

    args = parser.parse_args()

    if args.width is not None and args.width < 0:
        parser.error("--width must not be negative")

    prompt = " ".join(args.prompt).strip() or None

    return RunConfig(
        provider=args.provider,
        model=args.model,
        color=args.color,
        width=args.width,
        load=args.load,
        debug=args.debug,
        prompt=prompt,
        settings_path=args.settings_path,
    )


def main() -> None:
    """Run the CLI entry point.

    Raises:
        SystemExit: Always raised with exit code 0 on success, 130 on keyboard
            interrupt, or 1 on fatal error.

    """
    _install_signal_handlers()
    config = _parse_args()
    try:
        exit_code = anyio.run(run, config)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        console.print()
        sys.exit(130)
    except Exception as e:
        console.print()
        print_error(console, "Fatal Error", str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
