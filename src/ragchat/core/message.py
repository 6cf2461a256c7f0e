"""
Chat messages exchanged with providers.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """
    A message in the conversation.

    Assistant messages are created empty and grow as fragments stream in.
    ``is_error`` marks a turn that ended in a reported failure; such turns
    are shown to the user but not sent back to the provider.
    """
    role: Role
    content: str
    created_at: datetime = Field(default_factory=datetime.now)
    is_error: bool = False

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str = "") -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def error(cls, description: str) -> "Message":
        """Assistant message reporting a failed turn."""
        return cls(role=Role.ASSISTANT, content=f"Error: {description}", is_error=True)

    def append(self, fragment: str) -> None:
        """Extend the content with a streamed fragment."""
        self.content += fragment

    def to_api_format(self) -> dict[str, Any]:
        """Convert to the ``{role, content}`` shape every provider accepts."""
        return {"role": self.role.value, "content": self.content}
