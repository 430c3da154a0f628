from __future__ import annotations

import logging

from smartcard.CardConnectionObserver import CardConnectionObserver

from jpcard.core.smartcard.logging import PROTOCOL, TRACE, color_sw

lg = logging.getLogger(__name__)


LINE_BYTES = 16

# VERIFY data (PINs) is blanked in traces.
_INS_VERIFY = 0x20


class LoggingCardObserver(CardConnectionObserver):
    """Trace raw APDU traffic of a pyscard connection."""

    def _log_hex(self, prefix: str, data: bytes) -> None:
        pad = " " * len(prefix)
        for i in range(0, len(data), LINE_BYTES):
            chunk = data[i : i + LINE_BYTES].hex(" ").upper()
            lg.log(TRACE, "%s%s", prefix if i == 0 else pad, chunk)

    def update(self, observable, event):
        if event.type in ("connect", "reconnect", "disconnect"):
            lg.log(PROTOCOL, "%s", event.type)

        elif event.type == "command":
            command = bytes(event.args[0])
            if len(command) > 5 and command[1] == _INS_VERIFY:
                command = command[:5] + b"\x00" * (len(command) - 5)
            self._log_hex(">> ", command)

        elif event.type == "response":
            data, sw1, sw2 = event.args[0], event.args[1], event.args[2]
            if data:
                self._log_hex("<< ", bytes(data))
            lg.log(TRACE, "<< %s", color_sw(sw1, sw2))
