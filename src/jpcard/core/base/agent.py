from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from jpcard.core.smartcard import APDU, Response, TransportError

lg = logging.getLogger(__name__)


class Transport(Protocol):
    """Request/response channel to one card.

    One command is in flight at a time; transmit() blocks until the
    response arrives and raises TransportError when the channel fails.
    """

    def transmit(self, apdu: APDU) -> Response: ...


class SecureChannel(Protocol):
    """Protocol for secure channel wrap/unwrap."""

    def wrap(self, apdu: APDU) -> APDU: ...
    def unwrap(self, response: Response) -> Response: ...
    def close(self) -> None: ...


class Agent:
    """Agent that owns the transport and routes APDUs through it.

    Protocol operations live in standalone protocol classes (ISO7816)
    that receive agent.transmit as a callable. Terminals construct the
    protocol objects they need.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._channel: SecureChannel | None = None
        self._cancelled = False

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def secured(self) -> bool:
        return self._channel is not None

    def connect(self, reader: str | None = None) -> None:
        """Connect the transport to a card, if it supports connecting."""
        self._cancelled = False
        connect = getattr(self._transport, "connect_any", None)
        if connect is not None:
            connect(reader)

    def disconnect(self) -> None:
        """Drop any secure channel and disconnect the transport."""
        self.close_channel()
        disconnect = getattr(self._transport, "disconnect", None)
        if disconnect is not None:
            disconnect()

    def cancel(self) -> None:
        """Abort the running operation at its next transmit."""
        lg.info("cancel requested")
        self._cancelled = True

    def open_channel(self, channel: SecureChannel) -> None:
        """Install a secure channel for APDU wrapping."""
        self._channel = channel

    def close_channel(self) -> None:
        """Remove the active secure channel and destroy its keys."""
        if self._channel is not None:
            self._channel.close()
            self._channel = None

    @contextmanager
    def secure_channel(self, channel: SecureChannel) -> Iterator[SecureChannel]:
        """Route APDUs through *channel* for the duration of the block."""
        self.open_channel(channel)
        try:
            yield channel
        finally:
            self.close_channel()

    def transmit(self, apdu: APDU) -> Response:
        """Send an APDU, wrapping/unwrapping if a secure channel is active."""
        if self._cancelled:
            raise TransportError("cancelled")
        if self._channel is not None:
            apdu = self._channel.wrap(apdu)
        response = self._transport.transmit(apdu)
        if self._channel is not None:
            response = self._channel.unwrap(response)
        return response
