from __future__ import annotations

import logging
from typing import Callable

from jpcard.core.base.agent import Agent
from jpcard.core.base.iso7816 import ISO7816
from jpcard.core.base.message import Message, Result
from jpcard.core.smartcard import (
    CardReaderError,
    CredentialBlockedError,
    CredentialError,
)

lg = logging.getLogger(__name__)


def handles(message_cls: type[Message]) -> Callable:
    """Decorator that registers a method as handler for a message type."""

    def decorator(method: Callable) -> Callable:
        method._handles_message = message_cls
        return method

    return decorator


class Terminal:
    """Base terminal that drives card operations through an Agent.

    The app layer sends Message objects via send() and receives Result
    objects. Subclasses register handlers with the @handles decorator.
    Handlers raise the typed errors of jpcard.core.smartcard.errors;
    nothing is reported through the result.
    """

    _handlers: dict[type[Message], str]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._handlers = {}
        for base in reversed(cls.__mro__):
            if hasattr(base, "_handlers"):
                cls._handlers.update(base._handlers)
        for name in vars(cls):
            method = getattr(cls, name)
            if callable(method) and hasattr(method, "_handles_message"):
                cls._handlers[method._handles_message] = name

    def __init__(self, agent: Agent) -> None:
        self._agent = agent
        self._iso = ISO7816(agent.transmit)

    def connect(self, reader: str | None = None) -> None:
        self._agent.connect(reader)

    def disconnect(self) -> None:
        self._agent.disconnect()

    def cancel(self) -> None:
        """Abort the operation in progress at its next card exchange."""
        self._agent.cancel()

    def send(self, message: Message) -> Result:
        """Dispatch a message to the registered handler."""
        handler_name = self._handlers.get(type(message))
        if handler_name is None:
            raise ValueError(f"unsupported message: {message}")
        return getattr(self, handler_name)(message)

    @property
    def supported_messages(self) -> list[type[Message]]:
        return list(self._handlers.keys())

    def on_error(self, error: Exception) -> None:
        """Report an error that ended an operation."""
        if isinstance(error, CredentialBlockedError):
            lg.error("credential blocked: reset it at a municipal office")
        elif isinstance(error, CredentialError):
            lg.error("wrong PIN, %s attempts left", error.retries)
        elif isinstance(error, CardReaderError):
            lg.error("%s: %s", type(error).__name__, error)
        else:
            lg.error("terminal error: %s", error)
