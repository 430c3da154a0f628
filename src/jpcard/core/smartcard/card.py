from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartcard.CardConnection import CardConnection
from smartcard.Exceptions import CardConnectionException, NoCardException
from smartcard.System import readers

from jpcard.core.smartcard.errors import TransportError
from jpcard.core.smartcard.observer import LoggingCardObserver
from jpcard.core.smartcard.types import APDU, Response

if TYPE_CHECKING:
    from smartcard.reader.Reader import Reader

lg = logging.getLogger(__name__)


class Card:
    """PC/SC transport backed by pyscard.

    Any pyscard connection failure surfaces as TransportError so callers
    never see reader-library exceptions.
    """

    def __init__(self) -> None:
        self._connection: CardConnection | None = None
        self._observer = LoggingCardObserver()

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @staticmethod
    def list_readers() -> list[Reader]:
        return readers()

    def connect(self, reader: Reader) -> None:
        """Connect to the card present on *reader*."""
        connection = reader.createConnection()
        connection.addObserver(self._observer)
        try:
            connection.connect()
        except (CardConnectionException, NoCardException) as exc:
            connection.deleteObserver(self._observer)
            raise TransportError(f"cannot connect to {reader}: {exc}") from exc
        self._connection = connection

    def disconnect(self) -> None:
        if self._connection is not None:
            try:
                self._connection.disconnect()
            finally:
                self._connection.deleteObserver(self._observer)
                self._connection = None

    def get_atr(self) -> bytes:
        if self._connection is None:
            raise TransportError("not connected to a card")
        return bytes(self._connection.getATR())

    def transmit(self, apdu: APDU) -> Response:
        if self._connection is None:
            raise TransportError("not connected to a card")
        try:
            data, sw1, sw2 = self._connection.transmit(list(apdu.to_bytes()))
        except CardConnectionException as exc:
            raise TransportError(f"card connection lost: {exc}") from exc
        return Response(data=bytes(data), sw1=sw1, sw2=sw2)

    def connect_any(self, name: str | None = None) -> None:
        """Connect to the first reader holding a card.

        With *name*, only readers whose name contains it are tried.
        """
        available = [r for r in self.list_readers() if name is None or name in str(r)]
        if not available:
            raise TransportError("no readers found")
        for reader in available:
            try:
                self.connect(reader)
                lg.info("connected to %s", reader)
                return
            except TransportError:
                lg.debug("no card on %s", reader)
        raise TransportError("no card found on any reader")
