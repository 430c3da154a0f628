"""Individual Number card applications, files and tags."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from jpcard.core.base.iso7816 import NUMERIC_PIN, SIGNATURE_PASSWORD, PinFormat

# Public PKI application (JPKI)
JPKI_AID = bytes.fromhex("D392F000260100000001")
EF_AUTH_PIN = 0x0018
EF_AUTH_CERTIFICATE = 0x000A
EF_SIGNATURE_PIN = 0x001B
EF_SIGNATURE_CERTIFICATE = 0x0001

# Card information input support application
CARD_INFO_AID = bytes.fromhex("D3921000310001010408")
EF_CARD_INFO_PIN = 0x0011
EF_MY_NUMBER = 0x0001
EF_BASIC_INFO = 0x0002

CERTIFICATE = 0x30
MY_NUMBER = 0xFF10
BASIC_INFO = 0xFF20
BASIC_INFO_HEADER = 0xDF21
NAME = 0xDF22
ADDRESS = 0xDF23
BIRTH_DATE = 0xDF24
SEX = 0xDF25

TAG_NAMES: dict[int, str] = {
    CERTIFICATE: "Certificate",
    MY_NUMBER: "Individual Number",
    BASIC_INFO: "Basic Information",
    BASIC_INFO_HEADER: "Header",
    NAME: "Name",
    ADDRESS: "Address",
    BIRTH_DATE: "Date of Birth",
    SEX: "Sex",
}


class Credential(enum.Enum):
    USER_AUTHENTICATION = "auth"
    DIGITAL_SIGNATURE = "sign"
    CARD_INFO_INPUT = "card-info"


@dataclass(frozen=True)
class CredentialProfile:
    """Where a credential's PIN and certificate live on the card."""

    aid: bytes
    pin_ef: int
    pin_format: PinFormat
    certificate_ef: int | None = None


PROFILES: dict[Credential, CredentialProfile] = {
    Credential.USER_AUTHENTICATION: CredentialProfile(
        JPKI_AID, EF_AUTH_PIN, NUMERIC_PIN, EF_AUTH_CERTIFICATE,
    ),
    Credential.DIGITAL_SIGNATURE: CredentialProfile(
        JPKI_AID, EF_SIGNATURE_PIN, SIGNATURE_PASSWORD, EF_SIGNATURE_CERTIFICATE,
    ),
    Credential.CARD_INFO_INPUT: CredentialProfile(
        CARD_INFO_AID, EF_CARD_INFO_PIN, NUMERIC_PIN,
    ),
}
