from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional
import re

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ValidationError


class ContactKind(str, Enum):
    PHONE = "phone"
    EMAIL = "email"
    WEBSITE = "website"
    ADDRESS = "address"
    SOCIAL = "social"

    @property
    def max_slots(self) -> int:
        return SLOT_LIMITS[self]

    @property
    def attribute(self) -> str:
        return _ATTRIBUTES[self]


SLOT_LIMITS: Dict[ContactKind, int] = {
    ContactKind.PHONE: 3,
    ContactKind.EMAIL: 3,
    ContactKind.WEBSITE: 2,
    ContactKind.ADDRESS: 2,
    ContactKind.SOCIAL: 3,
}

_ATTRIBUTES: Dict[ContactKind, str] = {
    ContactKind.PHONE: "phones",
    ContactKind.EMAIL: "emails",
    ContactKind.WEBSITE: "websites",
    ContactKind.ADDRESS: "addresses",
    ContactKind.SOCIAL: "social_media",
}

_DEFAULT_LABELS: Dict[ContactKind, str] = {
    ContactKind.PHONE: "Mobile",
    ContactKind.EMAIL: "Work",
    ContactKind.WEBSITE: "Website",
    ContactKind.ADDRESS: "Office",
    ContactKind.SOCIAL: "Social",
}

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ContactField(_CamelModel):
    value: str = ""
    label: str = ""
    is_primary: bool = Field(default=False, alias="isPrimary")

    @property
    def filled(self) -> bool:
        return bool(self.value.strip())


class LogoRef(_CamelModel):
    logo_id: Optional[str] = Field(default=None, alias="logoId")
    logo_data_uri: Optional[str] = Field(default=None, alias="logoDataUri")
    position: Literal["auto", "custom"] = "auto"


class BusinessCardData(_CamelModel):
    name: str = ""
    title: str = ""
    company_name: str = Field(default="", alias="companyName")
    subtitle: str = ""
    slogan: str = ""
    descriptor: str = ""
    year_established: str = Field(default="", alias="yearEstablished")
    logo: LogoRef = Field(default_factory=LogoRef)
    phones: List[ContactField] = Field(default_factory=list)
    emails: List[ContactField] = Field(default_factory=list)
    websites: List[ContactField] = Field(default_factory=list)
    addresses: List[ContactField] = Field(default_factory=list)
    social_media: List[ContactField] = Field(default_factory=list, alias="socialMedia")

    @classmethod
    def empty(cls) -> "BusinessCardData":
        """Blank form with one slot per contact kind, the first one primary."""
        data = cls()
        for kind in ContactKind:
            data.fields(kind).append(
                ContactField(label=_DEFAULT_LABELS[kind], is_primary=True)
            )
        return data

    def fields(self, kind: ContactKind) -> List[ContactField]:
        return getattr(self, kind.attribute)

    def filled_values(self, kind: ContactKind) -> List[str]:
        return [f.value.strip() for f in self.fields(kind) if f.filled]

    def has_any(self, kind: ContactKind) -> bool:
        return any(f.filled for f in self.fields(kind))


def add_field(data: BusinessCardData, kind: ContactKind, value: str = "", label: str | None = None) -> ContactField:
    slots = data.fields(kind)
    if len(slots) >= kind.max_slots:
        raise ValidationError(
            f"At most {kind.max_slots} {kind.attribute.replace('_', ' ')} allowed",
            details={"kind": kind.value},
        )
    entry = ContactField(value=value, label=label or _DEFAULT_LABELS[kind], is_primary=not slots)
    slots.append(entry)
    return entry


def remove_field(data: BusinessCardData, kind: ContactKind, index: int) -> None:
    slots = data.fields(kind)
    if not 0 <= index < len(slots):
        raise ValidationError("No such contact slot", details={"kind": kind.value, "index": index})
    removed = slots.pop(index)
    if removed.is_primary and slots:
        slots[0].is_primary = True


def set_field(data: BusinessCardData, kind: ContactKind, index: int, value: str) -> None:
    slots = data.fields(kind)
    if index == len(slots):
        add_field(data, kind, value)
        return
    if not 0 <= index < len(slots):
        raise ValidationError("No such contact slot", details={"kind": kind.value, "index": index})
    slots[index].value = value


def validate_contact_info(data: BusinessCardData, check_format: bool = True) -> List[str]:
    """Return user-facing problems with the form; empty when it can be rendered.

    With ``check_format=False`` only the required fields are checked, which is
    what gates leaving the info step.
    """
    errors: List[str] = []
    if not data.name.strip():
        errors.append("Name is required")
    if not data.company_name.strip():
        errors.append("Company name is required")
    if not (data.has_any(ContactKind.PHONE) or data.has_any(ContactKind.EMAIL)):
        errors.append("At least one phone number or email is required")
    if not check_format:
        return errors

    for i, value in enumerate(data.filled_values(ContactKind.EMAIL), start=1):
        if not EMAIL_RE.match(value):
            errors.append(f"Email {i} is not in a valid format")
    return errors
