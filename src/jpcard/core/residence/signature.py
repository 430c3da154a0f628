"""Check code verification for residence cards.

The check code is an RSA PKCS#1 v1.5 signature by the issuer over
SHA-256(front image || photo), each image zero-padded or truncated to
its fixed length. The issuer certificate is stored next to it.
"""

from __future__ import annotations

import datetime
import enum
import logging
from dataclasses import dataclass

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.constant_time import bytes_eq

from jpcard.core.sm.crypto import sha256

lg = logging.getLogger(__name__)

CHECK_CODE_LENGTH = 256
HASH_LENGTH = 32
SHA256_DIGEST_INFO = bytes.fromhex("3031300d060960864801650304020105000420")
FRONT_IMAGE_LENGTH = 7000
PHOTO_LENGTH = 3000


class VerificationError(enum.Enum):
    INVALID_CHECK_CODE_LENGTH = "check code must be 256 bytes"
    INVALID_CERTIFICATE = "certificate cannot be parsed"
    UNSUPPORTED_KEY = "certificate key is not RSA"
    INVALID_PADDING = "check code padding is invalid"
    INVALID_DIGEST_INFO = "check code does not hold a SHA-256 DigestInfo"
    HASH_MISMATCH = "image hash does not match the check code"


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    error: VerificationError | None = None
    check_code_hash: bytes | None = None
    calculated_hash: bytes | None = None
    subject: str | None = None
    issuer: str | None = None
    not_before: datetime.datetime | None = None
    not_after: datetime.datetime | None = None


def _fixed(value: bytes, length: int) -> bytes:
    return value[:length].ljust(length, b"\x00")


def image_hash(front_image: bytes, photo: bytes) -> bytes:
    return sha256(_fixed(front_image, FRONT_IMAGE_LENGTH) + _fixed(photo, PHOTO_LENGTH))


def verify_check_code(
    check_code: bytes,
    certificate: bytes,
    front_image: bytes,
    photo: bytes,
) -> VerificationResult:
    """Verify the images against the check code.

    Failures are reported in the result, never raised.
    """
    if len(check_code) != CHECK_CODE_LENGTH:
        return VerificationResult(False, VerificationError.INVALID_CHECK_CODE_LENGTH)
    try:
        cert = x509.load_der_x509_certificate(certificate)
    except ValueError:
        return VerificationResult(False, VerificationError.INVALID_CERTIFICATE)

    details = {
        "subject": cert.subject.rfc4514_string(),
        "issuer": cert.issuer.rfc4514_string(),
        "not_before": cert.not_valid_before_utc,
        "not_after": cert.not_valid_after_utc,
    }
    key = cert.public_key()
    if not isinstance(key, rsa.RSAPublicKey):
        return VerificationResult(False, VerificationError.UNSUPPORTED_KEY, **details)

    calculated = image_hash(front_image, photo)
    try:
        recovered = key.recover_data_from_signature(check_code, padding.PKCS1v15(), None)
    except (InvalidSignature, ValueError):
        return VerificationResult(
            False, VerificationError.INVALID_PADDING, calculated_hash=calculated, **details,
        )
    prefix = recovered[: len(SHA256_DIGEST_INFO)]
    signed = recovered[len(SHA256_DIGEST_INFO) :]
    if len(signed) != HASH_LENGTH or not bytes_eq(prefix, SHA256_DIGEST_INFO):
        return VerificationResult(
            False, VerificationError.INVALID_DIGEST_INFO, calculated_hash=calculated, **details,
        )
    valid = bytes_eq(signed, calculated)
    lg.info("check code %s", "valid" if valid else "does not match")
    return VerificationResult(
        valid,
        None if valid else VerificationError.HASH_MISMATCH,
        check_code_hash=signed,
        calculated_hash=calculated,
        **details,
    )
