"""Conversation history for a chat session.

A conversation is an ordered list of ``{role, content}`` records. It is
saved to and loaded from JSON files in that exact shape.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

ROLES = ("user", "assistant")


class ConversationFormatError(ValueError):
    """Raised when a conversation file does not hold a list of role/content records."""


@dataclass
class Message:
    """A single chat message."""

    role: str
    content: str

    def to_record(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Conversation:
    """Ordered chat messages with navigation helpers.

    Attributes:
        messages: Messages in the order they were exchanged.

    """

    messages: list[Message] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.messages)

    def append(self, role: str, content: str) -> Message:
        """Append a message.

        Args:
            role: "user" or "assistant".
            content: Message text, kept verbatim (color tags included).

        Returns:
            The appended message.

        Raises:
            ValueError: If the role is unknown.

        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")
        message = Message(role=role, content=content)
        self.messages.append(message)
        return message

    def last(self, role: str | None = None) -> Message | None:
        """Return the newest message, optionally the newest with the given role."""
        for message in reversed(self.messages):
            if role is None or message.role == role:
                return message
        return None

    def pop_last(self) -> Message | None:
        """Remove and return the newest message, or None if empty."""
        if not self.messages:
            return None
        return self.messages.pop()

    def undo(self) -> list[Message]:
        """Remove the last exchange: the newest user message and everything after it.

        Returns:
            Removed messages, oldest first. Empty if there is no user message.

        """
        for index in range(len(self.messages) - 1, -1, -1):
            if self.messages[index].role == "user":
                removed = self.messages[index:]
                del self.messages[index:]
                return removed
        return []

    def clear(self) -> None:
        """Remove all messages."""
        self.messages.clear()

    def to_records(self) -> list[dict[str, str]]:
        return [message.to_record() for message in self.messages]

    @classmethod
    def from_records(cls, records: object) -> "Conversation":
        """Build a conversation from decoded JSON records.

        Raises:
            ConversationFormatError: If records are not a list of role/content objects.

        """
        if not isinstance(records, list):
            raise ConversationFormatError("Conversation must be a list of messages")
        conversation = cls()
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise ConversationFormatError(f"Message {index} is not an object")
            role = record.get("role")
            content = record.get("content")
            if role not in ROLES or not isinstance(content, str):
                raise ConversationFormatError(
                    f"Message {index} needs a role of {' or '.join(ROLES)} and string content"
                )
            conversation.messages.append(Message(role=role, content=content))
        return conversation

    def save(self, path: Path) -> Path:
        """Write the conversation as JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_records(), indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Conversation":
        """Read a conversation saved with ``save``.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConversationFormatError: If the file is not a valid conversation.

        """
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConversationFormatError(f"{path} is not valid JSON: {e}") from e
        return cls.from_records(records)
