# Purpose: Hold the in-memory conversation transcript sent with every request.
# Why: Isolating the transcript keeps the append-only rules easy to test.
"""Append-only chat transcript seeded with the assistant's system instruction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """Represent a single role-tagged message in the transcript."""

    role: str
    content: str


class Transcript:
    """Ordered sequence of messages that only ever grows at the end.

    The first message is always the system instruction. A turn adds the user
    message before the request is made and the assistant message only when the
    request succeeds, so a failed turn leaves its user message in place for the
    next request.
    """

    def __init__(self, system_prompt: str) -> None:
        self._messages: List[Message] = [Message(role=SYSTEM, content=system_prompt)]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())

    def append_user(self, text: str) -> Message:
        """Record a user turn."""
        return self._append(USER, text)

    def append_assistant(self, text: str) -> Message:
        """Record an assistant reply."""
        return self._append(ASSISTANT, text)

    def snapshot(self) -> Tuple[Message, ...]:
        """Return the messages in insertion order."""
        return tuple(self._messages)

    def build_context(self) -> List[Dict[str, str]]:
        """Construct the chat completion message list from stored entries."""
        return [{"role": message.role, "content": message.content} for message in self._messages]

    def _append(self, role: str, text: str) -> Message:
        message = Message(role=role, content=text)
        self._messages.append(message)
        return message
