"""Append-only conversation history."""

from collections.abc import Iterable, Iterator
from typing import Any

from toolstream.models.llm import LLMMessage


class ConversationHistory:
    """Ordered message history that can only grow.

    Messages are stored as validated :class:`LLMMessage` instances. Every read
    returns deep copies, so the only way to change the history is :meth:`append`.
    """

    def __init__(self, messages: Iterable[LLMMessage | dict[str, Any]] = ()):
        self._messages: list[LLMMessage] = []
        for message in messages:
            self.append(message)

    def append(self, message: LLMMessage | dict[str, Any]) -> LLMMessage:
        """Store a message; the caller's instance is copied, not retained."""
        if isinstance(message, LLMMessage):
            message = message.model_copy(deep=True)
        else:
            message = LLMMessage.model_validate(message)
        self._messages.append(message)
        return message.model_copy(deep=True)

    def add_user(self, text: str) -> LLMMessage:
        return self.append(LLMMessage(role="user", content=text))

    @property
    def messages(self) -> list[LLMMessage]:
        return [message.model_copy(deep=True) for message in self._messages]

    def snapshot(self) -> tuple[LLMMessage, ...]:
        """Immutable view of the history."""
        return tuple(self.messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[LLMMessage]:
        return iter(self.messages)

    def __getitem__(self, index: int) -> LLMMessage:
        return self._messages[index].model_copy(deep=True)
