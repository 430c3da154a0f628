"""ISO 7816-4 status word classification."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from jpcard.core.smartcard.errors import (
    CardError,
    CredentialBlockedError,
    CredentialError,
)


class Condition(enum.Enum):
    SUCCESS = "success"
    END_OF_FILE = "end of file reached before reading le bytes"
    WRONG_CREDENTIAL = "verification failed"
    CREDENTIAL_BLOCKED = "authentication method blocked"
    WRONG_LENGTH = "wrong length"
    SECURITY_NOT_SATISFIED = "security status not satisfied"
    SM_DATA_INVALID = "secure messaging data objects missing or incorrect"
    FILE_NOT_FOUND = "file or application not found"
    RECORD_NOT_FOUND = "record not found"
    WRONG_PARAMETERS = "incorrect parameters P1-P2"
    INS_NOT_SUPPORTED = "instruction not supported"
    CLA_NOT_SUPPORTED = "class not supported"
    CARD_REJECTED = "card rejected the command"


@dataclass(frozen=True)
class Outcome:
    """Classified status word."""

    condition: Condition
    sw1: int
    sw2: int
    retries: int | None = None

    @property
    def sw(self) -> int:
        return (self.sw1 << 8) | self.sw2

    @property
    def success(self) -> bool:
        return self.condition is Condition.SUCCESS

    def __str__(self) -> str:
        text = f"{self.sw:04X} {self.condition.value}"
        if self.retries is not None:
            text += f", {self.retries} attempts left"
        return text


_EXACT: dict[int, Condition] = {
    0x9000: Condition.SUCCESS,
    0x6282: Condition.END_OF_FILE,
    0x6982: Condition.SECURITY_NOT_SATISFIED,
    0x6983: Condition.CREDENTIAL_BLOCKED,
    0x6987: Condition.SM_DATA_INVALID,
    0x6988: Condition.SM_DATA_INVALID,
    0x6A82: Condition.FILE_NOT_FOUND,
    0x6A83: Condition.RECORD_NOT_FOUND,
    0x6A86: Condition.WRONG_PARAMETERS,
    0x6B00: Condition.WRONG_PARAMETERS,
    0x6D00: Condition.INS_NOT_SUPPORTED,
    0x6E00: Condition.CLA_NOT_SUPPORTED,
}


def classify(sw1: int, sw2: int) -> Outcome:
    """Map a status word to an Outcome. Pure; never raises."""
    if sw1 == 0x63 and (sw2 & 0xF0) == 0xC0:
        retries = sw2 & 0x0F
        if retries == 0:
            return Outcome(Condition.CREDENTIAL_BLOCKED, sw1, sw2, retries=0)
        return Outcome(Condition.WRONG_CREDENTIAL, sw1, sw2, retries=retries)
    if sw1 == 0x67:
        return Outcome(Condition.WRONG_LENGTH, sw1, sw2)
    condition = _EXACT.get((sw1 << 8) | sw2, Condition.CARD_REJECTED)
    if condition is Condition.CREDENTIAL_BLOCKED:
        return Outcome(condition, sw1, sw2, retries=0)
    return Outcome(condition, sw1, sw2)


def check(response) -> Outcome:
    """Classify a response and raise the matching error unless it succeeded."""
    outcome = classify(response.sw1, response.sw2)
    if outcome.success:
        return outcome
    if outcome.condition is Condition.CREDENTIAL_BLOCKED:
        raise CredentialBlockedError(response.sw1, response.sw2, outcome)
    if outcome.condition is Condition.WRONG_CREDENTIAL:
        raise CredentialError(response.sw1, response.sw2, outcome)
    raise CardError(response.sw1, response.sw2, outcome)
