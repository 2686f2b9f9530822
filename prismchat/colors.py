"""Color table for inline color tags.

Maps the tag names a model may emit to Rich color names. Names follow the
classic 16-color console palette, with a few aliases models commonly use.
"""

RESET_TAG = "RESET"

COLOR_TABLE: dict[str, str] = {
    "BLACK": "black",
    "DARKBLUE": "blue",
    "DARKGREEN": "green",
    "DARKCYAN": "cyan",
    "DARKRED": "red",
    "DARKMAGENTA": "magenta",
    "DARKYELLOW": "yellow",
    "GRAY": "white",
    "DARKGRAY": "bright_black",
    "BLUE": "bright_blue",
    "GREEN": "bright_green",
    "CYAN": "bright_cyan",
    "RED": "bright_red",
    "MAGENTA": "bright_magenta",
    "YELLOW": "bright_yellow",
    "WHITE": "bright_white",
    # Aliases
    "GREY": "white",
    "DARKGREY": "bright_black",
    "PURPLE": "bright_magenta",
    "ORANGE": "dark_orange",
}


def normalize_tag(name: str) -> str:
    """Normalize a tag name for lookup: upper-case, no spaces, dashes or underscores."""
    return "".join(ch for ch in name.upper() if ch not in " \t-_")


def lookup(name: str) -> str | None:
    """Look up a color by tag name.

    Args:
        name: Tag name in any case, e.g. "red", "Dark Red" or "dark_red".

    Returns:
        Rich color name, or None if the name is not in the table.

    """
    return COLOR_TABLE.get(normalize_tag(name))


def color_names() -> list[str]:
    """Return the canonical tag names, without aliases."""
    return list(COLOR_TABLE)[:16]
