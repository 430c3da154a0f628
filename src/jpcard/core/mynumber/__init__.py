from jpcard.core.mynumber.messages import (
    BasicInfoResult,
    CertificateResult,
    MyNumberResult,
    PinStatusMessage,
    PinStatusResult,
    ReadBasicInfoMessage,
    ReadCertificateMessage,
    ReadMyNumberMessage,
)
from jpcard.core.mynumber.records import CertificateRecord, PersonalInfo, Sex
from jpcard.core.mynumber.tags import Credential
from jpcard.core.mynumber.terminal import MyNumberTerminal

__all__ = [
    "BasicInfoResult",
    "CertificateRecord",
    "CertificateResult",
    "Credential",
    "MyNumberResult",
    "MyNumberTerminal",
    "PersonalInfo",
    "PinStatusMessage",
    "PinStatusResult",
    "ReadBasicInfoMessage",
    "ReadCertificateMessage",
    "ReadMyNumberMessage",
    "Sex",
]
