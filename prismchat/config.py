"""Configuration constants and persisted settings for prismchat.

Provide centralized configuration values used throughout the prismchat package
and the user-editable settings file that survives between sessions.

Exports:
    TAG_DELIMITER: str - Reserved character that opens and closes a color tag.
    MAX_TAG_LENGTH: int - Longest text treated as a tag name before giving up.
    PROVIDERS: tuple[str, ...] - Supported provider names.
    DEFAULT_MODELS: dict[str, str] - Default model per provider.
    API_KEY_ENV_VARS: dict[str, str] - Environment variable holding each provider's key.
    Settings: Persisted user settings.
    ConfigError: Raised for invalid settings or missing credentials.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

# Color tag protocol
TAG_DELIMITER = "§"
MAX_TAG_LENGTH = 24

# Providers
PROVIDERS: tuple[str, ...] = ("openai", "gemini", "anthropic")

DEFAULT_PROVIDER = "openai"

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
    "anthropic": "claude-3-5-sonnet-latest",
}

API_KEY_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "gemini": "https://generativelanguage.googleapis.com/v1beta",
    "anthropic": "https://api.anthropic.com/v1",
}

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 4096

# Sent in place of an empty assistant reply; some APIs reject empty text
EMPTY_REPLY_PLACEHOLDER = "(no reply)"

# Seconds; the read timeout bounds a stuck stream
DEFAULT_TIMEOUT = 60.0
CONNECT_TIMEOUT = 10.0

DEFAULT_ASSISTANT_COLOR = "GREEN"
DEFAULT_USER_COLOR = "CYAN"

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant talking to a user in a text terminal. "
    f"You may color parts of your answer with inline tags of the form {TAG_DELIMITER}COLOR{TAG_DELIMITER}, "
    f"for example {TAG_DELIMITER}RED{TAG_DELIMITER}warning{TAG_DELIMITER}RESET{TAG_DELIMITER}. "
    "Available colors: BLACK, DARKBLUE, DARKGREEN, DARKCYAN, DARKRED, DARKMAGENTA, DARKYELLOW, "
    "GRAY, DARKGRAY, BLUE, GREEN, CYAN, RED, MAGENTA, YELLOW, WHITE. "
    f"{TAG_DELIMITER}RESET{TAG_DELIMITER} returns to the default color. Do not use markdown."
)

# Files
HOME_ENV_VAR = "PRISMCHAT_HOME"
SETTINGS_FILE = "settings.json"
CONVERSATIONS_DIR = "conversations"


class ConfigError(ValueError):
    """Raised when a setting is invalid or a required credential is missing."""


def get_home_dir() -> Path:
    """Return the prismchat home directory (``~/.prismchat`` unless overridden)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".prismchat"


def get_settings_path() -> Path:
    """Return the path of the persisted settings file."""
    return get_home_dir() / SETTINGS_FILE


def get_conversations_dir() -> Path:
    """Return the directory holding saved conversations."""
    return get_home_dir() / CONVERSATIONS_DIR


def get_api_key(provider: str) -> str:
    """Read a provider's API key from its environment variable.

    Args:
        provider: Provider name ("openai", "gemini" or "anthropic").

    Returns:
        The API key.

    Raises:
        ConfigError: If the environment variable is unset or empty.

    """
    env_var = API_KEY_ENV_VARS[provider]
    key = os.environ.get(env_var, "").strip()
    if not key:
        raise ConfigError(f"Set {env_var} to use the {provider} provider")
    return key


@dataclass
class Settings:
    """User settings persisted as JSON in the prismchat home directory.

    Attributes:
        provider: Active provider name.
        model: Model override; empty means the provider's default model.
        assistant_color: Color tag name used for assistant text and RESET.
        user_color: Color tag name used for the user prompt label.
        system_prompt: System prompt sent with every request.
        wrap_width: Fixed wrap width; 0 follows the terminal width.
        timeout: HTTP read timeout in seconds.

    """

    provider: str = DEFAULT_PROVIDER
    model: str = ""
    assistant_color: str = DEFAULT_ASSISTANT_COLOR
    user_color: str = DEFAULT_USER_COLOR
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    wrap_width: int = 0
    timeout: float = DEFAULT_TIMEOUT
    _path: Path | None = field(default=None, repr=False, compare=False)
    # Saved values hidden by per-run overrides
    _shadowed: dict[str, object] = field(default_factory=dict, repr=False, compare=False)

    def model_for_provider(self) -> str:
        """Return the model to use, falling back to the provider default."""
        return self.model or DEFAULT_MODELS[self.provider]

    def update(self, key: str, raw: str) -> None:
        """Set one setting from its string form.

        Args:
            key: Setting name.
            raw: Raw value as typed by the user.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.

        """
        # Lazy import: colors depends on config constants
        from prismchat.colors import lookup

        names = {f.name for f in fields(self) if not f.name.startswith("_")}
        if key not in names:
            raise ConfigError(f"Unknown setting: {key!r}. Expected one of: {', '.join(sorted(names))}")

        value: object = raw.strip()
        if key == "provider":
            value = str(value).lower()
            if value not in PROVIDERS:
                raise ConfigError(f"Unknown provider: {raw!r}. Expected one of: {', '.join(PROVIDERS)}")
        elif key in ("assistant_color", "user_color"):
            value = str(value).upper()
            if lookup(str(value)) is None:
                raise ConfigError(f"Unknown color: {raw!r}")
        elif key == "wrap_width":
            if value in ("", "auto"):
                value = 0
            else:
                try:
                    value = int(str(value))
                except ValueError:
                    raise ConfigError(f"wrap_width must be an integer, got {raw!r}") from None
                if value < 0:
                    raise ConfigError("wrap_width must not be negative")
        elif key == "timeout":
            try:
                value = float(str(value))
            except ValueError:
                raise ConfigError(f"timeout must be a number, got {raw!r}") from None
            if value <= 0:
                raise ConfigError("timeout must be positive")
        setattr(self, key, value)
        self._shadowed.pop(key, None)

    def override(self, key: str, raw: str) -> None:
        """Set one setting for this run only.

        The value is used like any other setting but ``save`` keeps writing
        the previous value until the key is changed with ``update``.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.

        """
        saved = getattr(self, key, None)
        shadowed = dict(self._shadowed)
        self.update(key, raw)
        shadowed.setdefault(key, saved)
        self._shadowed = shadowed

    @property
    def path(self) -> Path:
        """Where these settings are persisted."""
        return self._path or get_settings_path()

    def to_dict(self) -> dict[str, object]:
        """Return the persisted fields as a plain dict."""
        data = asdict(self)
        data.pop("_path", None)
        data.pop("_shadowed", None)
        data.update(self._shadowed)
        return data

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from disk, returning defaults if the file is missing.

        Unknown keys are ignored. Known keys with invalid values raise.

        Args:
            path: Settings file path. Defaults to ``get_settings_path()``.

        Returns:
            Settings instance remembering the path it was loaded from.

        Raises:
            ConfigError: If the file is not valid JSON or holds invalid values.

        """
        path = path or get_settings_path()
        settings = cls(_path=path)
        if not path.exists():
            return settings
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Settings file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a JSON object")

        for key, value in data.items():
            if key.startswith("_") or not hasattr(settings, key):
                continue
            settings.update(key, str(value))
        return settings

    def save(self, path: Path | None = None) -> Path:
        """Write settings to disk.

        Args:
            path: Target path. Defaults to the load path or ``get_settings_path()``.

        Returns:
            The path written.

        """
        path = path or self._path or get_settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        self._path = path
        return path
