"""Typed records read from the Individual Number card."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass

from cryptography import x509

from jpcard.core.base.fields import decode_text, parse_date
from jpcard.core.mynumber import tags
from jpcard.core.mynumber.tags import Credential
from jpcard.core.smartcard import RecordError, tlv
from jpcard.core.smartcard.tlv import TLV


class Sex(enum.Enum):
    MALE = "1"
    FEMALE = "2"
    OTHER = "3"
    NOT_APPLICABLE = "9"


@dataclass(frozen=True)
class CertificateRecord:
    """An X.509 certificate as stored on the card.

    ``raw`` is the complete DER encoding; ``body`` is the value of its
    outer SEQUENCE.
    """

    credential: Credential
    raw: bytes
    body: bytes

    def load(self) -> x509.Certificate:
        return x509.load_der_x509_certificate(self.raw)


@dataclass(frozen=True)
class PersonalInfo:
    """The four basic attributes printed on the card."""

    name: str
    address: str
    birth_date: datetime.date | None
    sex: Sex | str | None
    header: bytes = b""
    extra: tuple[TLV, ...] = ()


def _single(data: bytes, tag: int, what: str) -> TLV:
    node, end = tlv.decode_element(data, 0, nested=False)
    if node.tag != tag:
        raise RecordError(f"{what}: expected tag {tag:X}, found {node.tag:X}")
    if any(b not in (0x00, 0xFF) for b in data[end:]):
        raise RecordError(f"{what}: unexpected data after record")
    return node


def parse_certificate(data: bytes, credential: Credential) -> CertificateRecord:
    node = _single(data, tags.CERTIFICATE, "certificate")
    return CertificateRecord(
        credential=credential,
        raw=bytes(data[: node.encoded_size]),
        body=node.value,
    )


def parse_my_number(data: bytes) -> str:
    """Return the 12-digit individual number."""
    node = _single(data, tags.MY_NUMBER, "individual number")
    number = node.value.decode("ascii", errors="replace")
    if len(number) != 12 or not number.isdigit():
        raise RecordError("individual number must be 12 digits")
    return number


def _sex(value: bytes) -> Sex | str | None:
    code = decode_text(value)
    if not code:
        return None
    try:
        return Sex(code)
    except ValueError:
        return code


def parse_basic_info(data: bytes) -> PersonalInfo:
    """Map a ``FF20`` template to PersonalInfo.

    Unknown tags inside the template are kept in ``extra``.
    """
    template = _single(data, tags.BASIC_INFO, "basic information")
    fields: dict[int, bytes] = {}
    extra: list[TLV] = []
    for node in tlv.parse(template.value):
        if node.tag in (
            tags.BASIC_INFO_HEADER, tags.NAME, tags.ADDRESS, tags.BIRTH_DATE, tags.SEX,
        ) and node.tag not in fields:
            fields[node.tag] = node.value
        else:
            extra.append(node)

    for tag in (tags.NAME, tags.ADDRESS):
        if tag not in fields:
            raise RecordError(f"basic information lacks {tags.TAG_NAMES[tag]}")

    return PersonalInfo(
        name=decode_text(fields[tags.NAME]),
        address=decode_text(fields[tags.ADDRESS]),
        birth_date=parse_date(fields.get(tags.BIRTH_DATE, b"")),
        sex=_sex(fields.get(tags.SEX, b"")),
        header=fields.get(tags.BASIC_INFO_HEADER, b""),
        extra=tuple(extra),
    )
