"""Neon terminal UI components for prismchat.

Implements the chat client's chrome (banner, prompts, panels and tables)
using the Rich library with a Dracula-based color theme. Assistant text
itself is rendered by the streaming decoder, not here.
"""

from dataclasses import dataclass

import pyfiglet
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from prismchat.colors import COLOR_TABLE, color_names

# =============================================================================
# Color Theme (Dracula-based)
# =============================================================================

NEON_COLORS = {
    "background": "#282A36",
    "foreground": "#F8F8F2",
    "red": "#FF5555",
    "green": "#50FA7B",
    "yellow": "#F1FA8C",
    "purple": "#BD93F9",
    "pink": "#FF79C6",
    "cyan": "#8BE9FD",
    "orange": "#FFB86C",
}

NEON_THEME = Theme({
    "neon.fg": NEON_COLORS["foreground"],
    "neon.red": NEON_COLORS["red"],
    "neon.green": NEON_COLORS["green"],
    "neon.yellow": NEON_COLORS["yellow"],
    "neon.purple": NEON_COLORS["purple"],
    "neon.pink": NEON_COLORS["pink"],
    "neon.cyan": NEON_COLORS["cyan"],
    # Semantic styles
    "neon.error": f"bold {NEON_COLORS['red']}",
    "neon.success": f"bold {NEON_COLORS['green']}",
    "neon.warning": f"bold {NEON_COLORS['yellow']}",
    "neon.info": NEON_COLORS["cyan"],
    "neon.dim": f"dim {NEON_COLORS['foreground']}",
})

# Gradient stops for the banner (cyan -> pink -> purple)
BANNER_GRADIENT = ["#8BE9FD", "#FF79C6", "#BD93F9"]


def create_console() -> Console:
    """Create a Rich Console with neon theme applied.

    Returns:
        Console: A new Rich Console instance configured with the neon theme.

    """
    return Console(theme=NEON_THEME)


# =============================================================================
# Banner Component
# =============================================================================


def _interpolate_color(color1: str, color2: str, t: float) -> str:
    """Interpolate between two hex colors.

    Args:
        color1: Starting hex color (e.g., "#8BE9FD").
        color2: Ending hex color (e.g., "#FF79C6").
        t: Interpolation factor (0.0 = color1, 1.0 = color2).

    Returns:
        Interpolated hex color string.

    """
    r1, g1, b1 = int(color1[1:3], 16), int(color1[3:5], 16), int(color1[5:7], 16)
    r2, g2, b2 = int(color2[1:3], 16), int(color2[3:5], 16), int(color2[5:7], 16)
    r = int(r1 + (r2 - r1) * t)
    g = int(g1 + (g2 - g1) * t)
    b = int(b1 + (b2 - b1) * t)
    return f"#{r:02x}{g:02x}{b:02x}"


def _gradient_color(position: float) -> str:
    """Get the banner gradient color at a position between 0.0 and 1.0."""
    position = max(0.0, min(1.0, position))
    index = position * (len(BANNER_GRADIENT) - 1)
    lower = int(index)
    upper = min(lower + 1, len(BANNER_GRADIENT) - 1)
    return _interpolate_color(BANNER_GRADIENT[lower], BANNER_GRADIENT[upper], index - lower)


def print_banner(console: Console, text: str, subtitle: str = "") -> None:
    """Print an ASCII art banner with a horizontal neon gradient.

    Args:
        console: Rich Console instance for output.
        text: The text to render as ASCII art.
        subtitle: Optional dim line under the art (provider and model).

    """
    try:
        ascii_art = pyfiglet.figlet_format(text, font="slant")
    except pyfiglet.FigletError:
        ascii_art = pyfiglet.figlet_format(text, font="standard")

    lines = ascii_art.rstrip("\n").split("\n")
    max_width = max((len(line) for line in lines), default=1) or 1

    art = Text()
    for line_idx, line in enumerate(lines):
        for char_idx, char in enumerate(line):
            if char == " ":
                art.append(char)
            else:
                art.append(char, style=Style(color=_gradient_color(char_idx / max_width), bold=True))
        if line_idx < len(lines) - 1:
            art.append("\n")

    if subtitle:
        art.append("\n")
        art.append(f"  ~ {subtitle} ~", style=Style(color=NEON_COLORS["pink"], dim=True))

    console.print()
    console.print(Panel(
        art,
        box=box.DOUBLE_EDGE,
        border_style=Style(color=NEON_COLORS["purple"], dim=True),
        padding=(0, 2),
    ))


# =============================================================================
# Message Components
# =============================================================================


def print_error(console: Console, title: str, message: str) -> None:
    """Print an error panel with red styling.

    Args:
        console: Rich Console instance for output.
        title: Error title text.
        message: Detailed error message.

    """
    panel = Panel(
        Text(message, style=Style(color=NEON_COLORS["red"])),
        title=f"\u26a0\ufe0f  {title}",  # ⚠️
        title_align="left",
        box=box.DOUBLE_EDGE,
        border_style=Style(color=NEON_COLORS["red"]),
        padding=(0, 1),
    )
    console.print(panel)


def print_warning(console: Console, message: str) -> None:
    """Print a warning panel with yellow styling."""
    panel = Panel(
        Text(message, style=Style(color=NEON_COLORS["yellow"])),
        box=box.ROUNDED,
        border_style=Style(color=NEON_COLORS["yellow"]),
        padding=(0, 1),
    )
    console.print(panel)


def print_success(console: Console, message: str) -> None:
    """Print a success message with green styling."""
    console.print(Text.assemble(("✔ ", "neon.success"), (message, "neon.green")))


def print_info(console: Console, message: str) -> None:
    """Print an info message with cyan styling."""
    console.print(Text.assemble(("ℹ ", "neon.cyan"), (message, "neon.fg")))


def print_dim(console: Console, message: str) -> None:
    """Print a dimmed message for secondary information."""
    console.print(Text(message, style="neon.dim"))


# =============================================================================
# Menu Component
# =============================================================================


def print_menu(console: Console, title: str, options: list[tuple[str, str]]) -> None:
    """Print a styled menu of keys and descriptions.

    Args:
        console: Rich Console instance for output.
        title: Menu title.
        options: List of (key, description) tuples.

    """
    menu_text = Text()
    for i, (key, description) in enumerate(options):
        menu_text.append(f"  {key:<18}", style=Style(color=NEON_COLORS["cyan"], bold=True))
        menu_text.append(description, style=Style(color=NEON_COLORS["foreground"]))
        if i < len(options) - 1:
            menu_text.append("\n")

    panel = Panel(
        menu_text,
        title=title,
        title_align="left",
        box=box.ROUNDED,
        border_style=Style(color=NEON_COLORS["pink"]),
        padding=(0, 1),
    )
    console.print(panel)


# =============================================================================
# Prompt Component
# =============================================================================


def prompt_user(console: Console, label: str, color: str = NEON_COLORS["cyan"], default: str = "") -> str:
    """Display a styled input prompt and read one line.

    Args:
        console: Rich Console instance for output.
        label: Prompt label, e.g. "You".
        color: Rich color for the label.
        default: Value returned when the user enters nothing.

    Returns:
        User's input string, or default if empty.

    Raises:
        EOFError: When stdin is closed.

    """
    prompt_text = Text()
    prompt_text.append("\u25b6 ", style=Style(color=color))  # ▶
    prompt_text.append(label, style=Style(color=color, bold=True))
    if default:
        prompt_text.append(f" [{default}]", style=Style(color=NEON_COLORS["foreground"], dim=True))
    prompt_text.append(": ", style=Style(color=color))

    console.print(prompt_text, end="")
    user_input = input()
    return user_input if user_input else default


def print_assistant_label(console: Console, label: str, color: str) -> None:
    """Print the label that starts an assistant reply, e.g. ``◀ gpt-4o-mini:``."""
    console.print(Text.assemble(("◀ ", color), (label, f"bold {color}"), (":", color)))


# =============================================================================
# History Component
# =============================================================================


def print_history_table(console: Console, records: list[dict[str, str]], preview: int = 60) -> None:
    """Print the conversation as a numbered table with truncated previews.

    Args:
        console: Rich Console instance for output.
        records: Messages as role/content dicts, oldest first.
        preview: Maximum preview length per message.

    """
    table = Table(
        title="\U0001f4dc Conversation",  # 📜
        title_style=Style(color=NEON_COLORS["cyan"], bold=True),
        box=box.ROUNDED,
        border_style=Style(color=NEON_COLORS["purple"]),
        header_style=Style(color=NEON_COLORS["pink"], bold=True),
    )
    table.add_column("#", justify="right", style=Style(color=NEON_COLORS["cyan"]))
    table.add_column("Role", justify="center")
    table.add_column("Message", style=Style(color=NEON_COLORS["foreground"]))

    for i, record in enumerate(records, 1):
        role = record["role"]
        content = " ".join(record["content"].split())
        if len(content) > preview:
            content = content[:preview] + "..."
        role_color = NEON_COLORS["cyan"] if role == "user" else NEON_COLORS["green"]
        table.add_row(str(i), Text(role, style=Style(color=role_color, bold=True)), Text(content))

    console.print(table)


# =============================================================================
# Settings Component
# =============================================================================


@dataclass
class SettingsView:
    """Display data for the settings table.

    Attributes:
        rows: (name, value) pairs in display order.
        path: Where the settings are persisted.

    """

    rows: list[tuple[str, str]]
    path: str


def print_settings(console: Console, view: SettingsView) -> None:
    """Print current settings as a two-column table."""
    table = Table(
        title="\u2699 Settings",  # ⚙
        title_style=Style(color=NEON_COLORS["green"], bold=True),
        box=box.ROUNDED,
        border_style=Style(color=NEON_COLORS["purple"]),
        show_header=False,
        padding=(0, 1),
    )
    table.add_column("Field", style=Style(color=NEON_COLORS["cyan"]))
    table.add_column("Value", style=Style(color=NEON_COLORS["foreground"]))
    for name, value in view.rows:
        table.add_row(name, Text(value))
    console.print(table)
    print_dim(console, f"Saved in {view.path}")


def print_color_swatches(console: Console) -> None:
    """Print every color tag name in its own color."""
    swatches = Text()
    for i, name in enumerate(color_names()):
        if i:
            swatches.append("  ")
        swatches.append(name, style=COLOR_TABLE[name])
    console.print(swatches)
