"""Decoding of fixed-width text and date fields found in card records."""

from __future__ import annotations

import datetime

from jpcard.core.smartcard import RecordError

FILLER = b"\xff\x00\x20"
_UNSET_DATE = frozenset(b"0\x00\xff\x20")


def trim(value: bytes) -> bytes:
    """Strip right-padding filler bytes."""
    return value.rstrip(FILLER)


def decode_text(value: bytes, encodings: tuple[str, ...] = ("utf-8", "shift_jis")) -> str:
    """Decode a padded text field, trying each encoding in turn."""
    raw = trim(value)
    for encoding in encodings:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        return text.rstrip(" 　")
    raise RecordError(f"text field is not {' or '.join(encodings)}")


def parse_date(value: bytes) -> datetime.date | None:
    """Parse an 8-digit ``YYYYMMDD`` field; all-zero or filler means unset."""
    if all(b in _UNSET_DATE for b in value):
        return None
    text = value.decode("ascii", errors="replace")
    if len(text) != 8 or not text.isdigit():
        raise RecordError(f"invalid date field: {value.hex().upper()}")
    try:
        return datetime.date(int(text[:4]), int(text[4:6]), int(text[6:]))
    except ValueError as exc:
        raise RecordError(f"invalid date field: {text}") from exc
