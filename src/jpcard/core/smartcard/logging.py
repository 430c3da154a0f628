from __future__ import annotations

import logging

TRACE = 15
PROTOCOL = 18
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PROTOCOL, "PROTOCOL")

_GREEN = "\033[32m"
_RED = "\033[31m"
_RESET = "\033[0m"


def color_sw(sw1: int, sw2: int) -> str:
    """Format a status word in green for success (90xx/61xx), red otherwise."""
    color = _GREEN if sw1 in (0x90, 0x61) else _RED
    return f"{color}{sw1:02X}{sw2:02X}{_RESET}"
