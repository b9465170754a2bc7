# secureqr/models.py

"""
Typed records shared by the parser, the scorer, the oracle client
and the barcode generator.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


PayloadType = Literal[
    "url", "text", "wifi", "tel", "email", "sms", "geo", "vcard", "event"
]
RiskLevel = Literal["secure", "suspicious", "unsafe"]
WifiSecurity = Literal["WPA", "WEP", "nopass"]
BarcodeFailure = Literal["empty", "non_numeric", "length", "charset", "range", "checksum"]


class ReasonCode(str, Enum):
    """Opaque reason keys, resolved to display text by the caller."""

    BLACKLIST = "classifier.blacklistWarning"
    HTTP = "classifier.httpWarning"
    HOMOGLYPH = "classifier.homoglyphWarning"
    USERINFO = "classifier.userinfoWarning"
    IP_HOST = "classifier.ipHostWarning"
    KEYWORD = "classifier.keywordWarning"
    TLD = "classifier.tldWarning"
    SHORTENER = "classifier.shortenerWarning"
    PORT = "classifier.portWarning"
    PATH_ENTROPY = "classifier.pathEntropyWarning"
    EXECUTABLE = "classifier.executableWarning"
    BRAND_MISMATCH = "classifier.brandMismatchWarning"
    USOM = "classifier.usomWarning"
    GITHUB = "classifier.githubWarning"


class UsomReason(BaseModel):
    kind: Literal["usom"] = "usom"
    domain: Optional[str] = None
    type_code: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None


class GithubReason(BaseModel):
    kind: Literal["github"] = "github"
    domain: Optional[str] = None
    files: List[str] = Field(default_factory=list)


StructuredReason = Annotated[Union[UsomReason, GithubReason], Field(discriminator="kind")]
Reason = Union[ReasonCode, StructuredReason]


# ---------------------------------------------------------
# Type-specific sub-records
# ---------------------------------------------------------

class WifiRecord(BaseModel):
    ssid: str
    password: str = ""
    security: WifiSecurity = "WPA"
    hidden: bool = False


class TelRecord(BaseModel):
    number: str


class EmailRecord(BaseModel):
    to: str = ""
    subject: str = ""
    body: str = ""


class SmsRecord(BaseModel):
    number: str = ""
    body: str = ""


class GeoRecord(BaseModel):
    lat: float
    lon: float
    query: Optional[str] = None


class VCardRecord(BaseModel):
    fn: str = ""
    n: str = ""
    tel: str = ""
    email: str = ""
    org: str = ""
    title: str = ""
    adr: str = ""
    url: str = ""


class EventRecord(BaseModel):
    summary: str = ""
    location: str = ""
    description: str = ""
    dtstart: str = ""
    dtend: str = ""


# ---------------------------------------------------------
# Oracle / barcode results
# ---------------------------------------------------------

class RemoteRiskResult(BaseModel):
    """
    Verdict from the threat oracle.

    `error` set means the check could not be completed: the verdict is
    unknown, not safe.
    """

    model_config = ConfigDict(populate_by_name=True)

    is_risky: bool = Field(False, alias="isRisky")
    message: Optional[str] = None
    checked_domain: Optional[str] = Field(None, alias="checkedDomain")
    found_in_files: List[str] = Field(default_factory=list, alias="foundInFiles")
    usom_details: Optional[dict] = Field(None, alias="usomDetails")
    error: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.error is None


class BarcodeValidationResult(BaseModel):
    ok: bool
    value: Optional[str] = None
    reason: Optional[BarcodeFailure] = None


# ---------------------------------------------------------
# Classification
# ---------------------------------------------------------

class ClassificationResult(BaseModel):
    type: PayloadType
    normalized: str
    is_url: bool = False
    level: Optional[RiskLevel] = None
    reasons: List[Reason] = Field(default_factory=list)
    score: int = Field(0, ge=0)

    wifi: Optional[WifiRecord] = None
    tel: Optional[TelRecord] = None
    email: Optional[EmailRecord] = None
    sms: Optional[SmsRecord] = None
    geo: Optional[GeoRecord] = None
    vcard: Optional[VCardRecord] = None
    event: Optional[EventRecord] = None

    # Set only by the async path.
    remote: Optional[RemoteRiskResult] = None


class RiskAssessment(BaseModel):
    score: int = 0
    level: RiskLevel = "secure"
    reasons: List[ReasonCode] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    content: str
    level: Optional[RiskLevel] = None
    type: PayloadType = "text"
    wifi: Optional[WifiRecord] = None
    country: Optional[str] = None
    timestamp: int = 0


class ContactInfo(BaseModel):
    phone: str = ""
    email: str = ""
    subject: str = ""
    body: str = ""
    sms_number: str = ""
    sms_body: str = ""
