"""Residence card files and tags."""

from __future__ import annotations

import enum

_DF_PREFIX = bytes.fromhex("D392F0004F")
DF1_AID = _DF_PREFIX + b"\x02" + bytes(10)
DF2_AID = _DF_PREFIX + b"\x03" + bytes(10)
DF3_AID = _DF_PREFIX + b"\x04" + bytes(10)

# MF, read in the clear
SFI_CARD_TYPE = 0x0A
SFI_COMMON_DATA = 0x0B
# DF1, read under secure messaging
SFI_FRONT_IMAGE = 0x05
SFI_PHOTO = 0x06
# DF2
SFI_ADDRESS = 0x01
SFI_COMPREHENSIVE_PERMISSION = 0x02
SFI_INDIVIDUAL_PERMISSION = 0x03
SFI_EXTENSION_APPLICATION = 0x04
# DF3
SFI_SIGNATURE = 0x02

SPEC_VERSION = 0xC0
CARD_TYPE = 0xC1
ISSUE_DATE = 0xC2
EXPIRY_DATE = 0xC3
ADMINISTRATIVE_NUMBER = 0xC4
FRONT_IMAGE = 0xD0
PHOTO = 0xD1
ADDRESS_DATE = 0xD2
MUNICIPALITY_CODE = 0xD3
ADDRESS = 0xD4
COMPREHENSIVE_PERMISSION = 0xD5
INDIVIDUAL_PERMISSION = 0xD6
EXTENSION_APPLICATION = 0xD7
CHECK_CODE = 0xDA
SIGNATURE_CERTIFICATE = 0xDB

TAG_NAMES: dict[int, str] = {
    SPEC_VERSION: "Specification Version",
    CARD_TYPE: "Card Type",
    ISSUE_DATE: "Issue Date",
    EXPIRY_DATE: "Expiry Date",
    ADMINISTRATIVE_NUMBER: "Administrative Number",
    FRONT_IMAGE: "Front Image",
    PHOTO: "Photo",
    ADDRESS_DATE: "Address Date",
    MUNICIPALITY_CODE: "Municipality Code",
    ADDRESS: "Address",
    COMPREHENSIVE_PERMISSION: "Comprehensive Permission",
    INDIVIDUAL_PERMISSION: "Individual Permission",
    EXTENSION_APPLICATION: "Extension Application",
    CHECK_CODE: "Check Code",
    SIGNATURE_CERTIFICATE: "Signature Certificate",
}


class CardType(enum.Enum):
    RESIDENCE_CARD = "1"
    SPECIAL_PERMANENT_RESIDENT = "2"
