"""Mapping of residence card files to a DocumentRecord."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from jpcard.core.base.fields import decode_text, parse_date
from jpcard.core.residence import tags
from jpcard.core.residence.tags import CardType
from jpcard.core.smartcard import RecordError, tlv
from jpcard.core.smartcard.tlv import TLV


@dataclass(frozen=True)
class ResidenceCardFiles:
    """Raw contents of the files read from a residence card."""

    common_data: bytes
    card_type: bytes
    front_image: bytes
    photo: bytes
    address: bytes
    signature: bytes
    permissions: tuple[bytes, bytes, bytes] | None = None


@dataclass(frozen=True)
class DocumentRecord:
    """Decoded contents of a residence card or special permanent resident certificate.

    ``expiry_date`` and ``administrative_number`` come from the common
    data file and are None on cards that do not record them.
    """

    document_number: str
    card_type: CardType | str
    spec_version: str
    issue_date: datetime.date | None
    front_image: bytes
    photo: bytes
    address: str
    address_date: datetime.date | None
    municipality_code: str
    check_code: bytes
    certificate: bytes
    comprehensive_permission: str | None = None
    individual_permission: str | None = None
    extension_application: str | None = None
    expiry_date: datetime.date | None = None
    administrative_number: str | None = None
    extra: tuple[TLV, ...] = ()

    @property
    def is_residence_card(self) -> bool:
        return self.card_type is CardType.RESIDENCE_CARD

    def is_valid_on(self, day: datetime.date) -> bool:
        """Whether *day* lies within the issue and expiry dates that are set."""
        if self.issue_date is not None and day < self.issue_date:
            return False
        return self.expiry_date is None or day <= self.expiry_date


def _collect(data: bytes, known: tuple[int, ...], extra: list[TLV]) -> dict[int, bytes]:
    fields: dict[int, bytes] = {}
    for node in tlv.parse(data):
        if node.tag in known and node.tag not in fields:
            fields[node.tag] = node.value
        else:
            extra.append(node)
    return fields


def _require(fields: dict[int, bytes], tag: int) -> bytes:
    try:
        return fields[tag]
    except KeyError:
        raise RecordError(f"missing {tags.TAG_NAMES[tag]} ({tag:02X})") from None


def parse_card_type(data: bytes) -> CardType | str:
    """Return the card type from the ``C1`` element of *data*."""
    fields = _collect(data, (tags.CARD_TYPE,), [])
    code = decode_text(_require(fields, tags.CARD_TYPE))
    try:
        return CardType(code)
    except ValueError:
        return code


def parse_residence_card(files: ResidenceCardFiles, card_number: str) -> DocumentRecord:
    """Build a DocumentRecord; unknown elements are kept in ``extra``."""
    extra: list[TLV] = []
    common = _collect(
        files.common_data,
        (
            tags.SPEC_VERSION,
            tags.CARD_TYPE,
            tags.ISSUE_DATE,
            tags.EXPIRY_DATE,
            tags.ADMINISTRATIVE_NUMBER,
        ),
        extra,
    )
    front = _collect(files.front_image, (tags.FRONT_IMAGE,), extra)
    photo = _collect(files.photo, (tags.PHOTO,), extra)
    address = _collect(
        files.address, (tags.ADDRESS_DATE, tags.MUNICIPALITY_CODE, tags.ADDRESS), extra,
    )
    signature = _collect(files.signature, (tags.CHECK_CODE, tags.SIGNATURE_CERTIFICATE), extra)

    permissions: dict[int, bytes] = {}
    if files.permissions is not None:
        for data, tag in zip(
            files.permissions,
            (
                tags.COMPREHENSIVE_PERMISSION,
                tags.INDIVIDUAL_PERMISSION,
                tags.EXTENSION_APPLICATION,
            ),
        ):
            permissions.update(_collect(data, (tag,), extra))

    def _text(fields: dict[int, bytes], tag: int) -> str | None:
        value = fields.get(tag)
        return decode_text(value) if value is not None else None

    return DocumentRecord(
        document_number=card_number,
        card_type=parse_card_type(files.card_type),
        spec_version=decode_text(common.get(tags.SPEC_VERSION, b"")),
        issue_date=parse_date(common.get(tags.ISSUE_DATE, b"")),
        front_image=_require(front, tags.FRONT_IMAGE),
        photo=_require(photo, tags.PHOTO),
        address=decode_text(_require(address, tags.ADDRESS)),
        address_date=parse_date(address.get(tags.ADDRESS_DATE, b"")),
        municipality_code=decode_text(address.get(tags.MUNICIPALITY_CODE, b"")),
        check_code=_require(signature, tags.CHECK_CODE),
        certificate=_require(signature, tags.SIGNATURE_CERTIFICATE),
        comprehensive_permission=_text(permissions, tags.COMPREHENSIVE_PERMISSION),
        individual_permission=_text(permissions, tags.INDIVIDUAL_PERMISSION),
        extension_application=_text(permissions, tags.EXTENSION_APPLICATION),
        expiry_date=parse_date(common.get(tags.EXPIRY_DATE, b"")),
        administrative_number=_text(common, tags.ADMINISTRATIVE_NUMBER),
        extra=tuple(extra),
    )
