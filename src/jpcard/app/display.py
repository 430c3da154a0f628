"""Human-readable formatting of card records."""

from __future__ import annotations

import datetime

from jpcard.core.mynumber import CertificateRecord, PersonalInfo
from jpcard.core.mynumber.tags import TAG_NAMES as MYNUMBER_TAG_NAMES
from jpcard.core.residence import DocumentRecord, VerificationResult
from jpcard.core.residence.tags import TAG_NAMES as RESIDENCE_TAG_NAMES
from jpcard.core.smartcard.tlv import TLV


def _hex(data: bytes | None) -> str:
    return data.hex(" ").upper() if data else ""


def _date(value: datetime.date | datetime.datetime | None) -> str:
    return value.isoformat() if value is not None else "(unset)"


def _enum(value) -> str:
    if value is None:
        return "(unset)"
    return getattr(value, "name", str(value))


def _table(fields: list[tuple[str, str]]) -> str:
    w = max(len(label) for label, _ in fields)
    return "\n".join(f"  {label:<{w}}  {value}" for label, value in fields)


def _extra(extra: tuple[TLV, ...], tag_names: dict[int, str]) -> str:
    if not extra:
        return ""
    lines = ["  Unknown elements:"]
    lines.extend(node.format(tag_names, indent=2) for node in extra)
    return "\n" + "\n".join(lines)


def format_certificate(record: CertificateRecord) -> str:
    fields = [
        ("Credential", record.credential.name),
        ("Size", f"{len(record.raw)} bytes"),
    ]
    try:
        cert = record.load()
    except ValueError:
        fields.append(("Certificate", "(not parseable as X.509)"))
    else:
        fields.extend([
            ("Subject", cert.subject.rfc4514_string()),
            ("Issuer", cert.issuer.rfc4514_string()),
            ("Serial", f"{cert.serial_number:X}"),
            ("Valid from", _date(cert.not_valid_before_utc)),
            ("Valid until", _date(cert.not_valid_after_utc)),
        ])
    return _table(fields)


def format_personal_info(info: PersonalInfo) -> str:
    fields = [
        ("Name", info.name),
        ("Address", info.address),
        ("Date of birth", _date(info.birth_date)),
        ("Sex", _enum(info.sex)),
    ]
    return _table(fields) + _extra(info.extra, MYNUMBER_TAG_NAMES)


def format_document(record: DocumentRecord) -> str:
    fields = [
        ("Card number", record.document_number),
        ("Card type", _enum(record.card_type)),
        ("Spec version", record.spec_version),
        ("Issue date", _date(record.issue_date)),
        ("Expiry date", _date(record.expiry_date)),
        ("Administrative number", record.administrative_number or ""),
        ("Address", record.address),
        ("Address date", _date(record.address_date)),
        ("Municipality", record.municipality_code),
        ("Front image", f"{len(record.front_image)} bytes"),
        ("Photo", f"{len(record.photo)} bytes"),
    ]
    if record.is_residence_card:
        fields.extend([
            ("Permission", record.comprehensive_permission or ""),
            ("Individual permission", record.individual_permission or ""),
            ("Extension application", record.extension_application or ""),
        ])
    return _table(fields) + _extra(record.extra, RESIDENCE_TAG_NAMES)


def format_verification(result: VerificationResult) -> str:
    fields = [
        ("Check code", "valid" if result.valid else f"INVALID ({result.error.value})"),
        ("Signed hash", _hex(result.check_code_hash)),
        ("Image hash", _hex(result.calculated_hash)),
    ]
    if result.subject is not None:
        fields.extend([
            ("Signer", result.subject),
            ("Issuer", result.issuer or ""),
            ("Valid until", _date(result.not_after)),
        ])
    return _table(fields)
