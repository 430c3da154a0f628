"""Individual Number card messages and results.

Each operation has a Message/Result pair. The message type is used for
dispatch in the terminal (via the @handles decorator).
"""

from __future__ import annotations

from dataclasses import dataclass

from jpcard.core.base import Message, Result
from jpcard.core.mynumber.records import CertificateRecord, PersonalInfo
from jpcard.core.mynumber.tags import Credential


@dataclass
class ReadCertificateMessage(Message):
    """Read the authentication or signature certificate.

    The signature certificate needs the signature password; for the
    authentication certificate the PIN is verified only when given.
    """

    credential: Credential
    pin: str | None = None


@dataclass(frozen=True)
class CertificateResult(Result):
    record: CertificateRecord


@dataclass
class ReadBasicInfoMessage(Message):
    """Read name, address, birth date and sex."""

    pin: str


@dataclass(frozen=True)
class BasicInfoResult(Result):
    record: PersonalInfo


@dataclass
class ReadMyNumberMessage(Message):
    """Read the 12-digit individual number."""

    pin: str


@dataclass(frozen=True)
class MyNumberResult(Result):
    number: str


@dataclass
class PinStatusMessage(Message):
    """Query remaining PIN attempts without consuming one."""

    credential: Credential


@dataclass(frozen=True)
class PinStatusResult(Result):
    credential: Credential
    retries: int | None
    blocked: bool = False
