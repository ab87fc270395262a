"""
Referral Schemas - Pydantic models for referral intake, filtering and responses.
"""
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, validator
from datetime import date, datetime, timezone
from .models import ReferralStatus
from ..directory.schemas import blank_to_none, required_text

def parse_datetime(value) -> Optional[datetime]:
    """
    Read a date or datetime from user input.

    Accepts datetime/date objects and ISO strings (``YYYY-MM-DD`` or a full
    timestamp, ``Z`` suffix allowed). Returns None for anything unreadable.
    Aware values are converted to naive UTC, the form every stored timestamp
    takes.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def parse_date(value) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None

class ReferralCreate(BaseModel):
    """
    Referral Schema - Used when creating or updating a referral

    Fields:
    - patient_first_name, patient_last_name: Required, non-blank
    - patient_mrn, patient_phone: Optional free text
    - patient_email: Optional, must be a valid address when given
    - patient_dob: Optional; unreadable values are dropped
    - referring_practice_id / referring_location_id / referring_doctor_id: Optional directory links
    - referring_doctor_name: Free-text provider name for providers not in the directory
    - status: Defaults to NEW
    - referral_date: Required; an unreadable value falls back to the current time
    - appointment_date: Optional; unreadable values are dropped
    - insurance_provider, insurance_member_id, insurance_group, auth_status, notes: Optional free text
    """
    patient_first_name: str
    patient_last_name: str
    patient_mrn: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[EmailStr] = None
    patient_dob: Optional[date] = None

    referring_practice_id: Optional[int] = None
    referring_location_id: Optional[int] = None
    referring_doctor_id: Optional[int] = None
    referring_doctor_name: Optional[str] = None

    status: ReferralStatus = ReferralStatus.NEW
    referral_date: datetime
    appointment_date: Optional[datetime] = None

    insurance_provider: Optional[str] = None
    insurance_member_id: Optional[str] = None
    insurance_group: Optional[str] = None
    auth_status: Optional[str] = None
    notes: Optional[str] = None

    @validator("patient_first_name", pre=True)
    def first_name_required(cls, v):
        return required_text(v, "First name is required")

    @validator("patient_last_name", pre=True)
    def last_name_required(cls, v):
        return required_text(v, "Last name is required")

    @validator(
        "patient_mrn", "patient_phone", "patient_email", "referring_doctor_name",
        "insurance_provider", "insurance_member_id", "insurance_group", "auth_status", "notes",
        pre=True,
    )
    def optional_text(cls, v):
        return blank_to_none(v)

    @validator("referring_practice_id", "referring_location_id", "referring_doctor_id", pre=True)
    def optional_id(cls, v):
        return blank_to_none(v)

    @validator("status", pre=True)
    def default_status(cls, v):
        return ReferralStatus.NEW if blank_to_none(v) is None else v

    @validator("patient_dob", pre=True)
    def coerce_dob(cls, v):
        return parse_date(v)

    @validator("appointment_date", pre=True)
    def coerce_appointment(cls, v):
        return parse_datetime(v)

    @validator("referral_date", pre=True)
    def coerce_referral_date(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Referral date is required")
        return parse_datetime(v) or utcnow()

class ReferralStatusUpdate(BaseModel):
    status: ReferralStatus

class ReferralNotesUpdate(BaseModel):
    """Notes text; blank clears the notes"""
    notes: Optional[str] = None

class ReferralFilter(BaseModel):
    """
    Referral list filters. Every field is optional and the given ones are ANDed.

    Values are kept as raw text; ``build_referral_query`` ignores an unknown
    status or an unreadable date instead of rejecting the request.
    """
    search: Optional[str] = None
    status: Optional[str] = None
    practice_id: Optional[int] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    @validator("search", "status", "date_from", "date_to", pre=True)
    def optional_text(cls, v):
        return blank_to_none(v)

class DocumentResponse(BaseModel):
    id: int
    referral_id: int
    file_name: str
    file_url: str
    file_size: int
    content_type: str
    uploaded_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class ReferralListItem(BaseModel):
    """
    Referral row as shown in the referral list
    """
    id: int
    patient_first_name: str
    patient_last_name: str
    referring_practice_id: Optional[int] = None
    referring_practice_name: Optional[str] = None
    referring_doctor_display: Optional[str] = None
    status: ReferralStatus
    status_label: str
    referral_date: datetime
    appointment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class ReferralResponse(ReferralListItem):
    """
    Referral Response Schema - full referral with its directory links and documents

    ``referring_doctor_display`` is the linked directory provider when there
    is one, otherwise the free-text name.
    """
    patient_mrn: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    patient_dob: Optional[date] = None
    referring_location_id: Optional[int] = None
    referring_location_name: Optional[str] = None
    referring_doctor_id: Optional[int] = None
    referring_doctor_name: Optional[str] = None
    insurance_provider: Optional[str] = None
    insurance_member_id: Optional[str] = None
    insurance_group: Optional[str] = None
    auth_status: Optional[str] = None
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    updated_at: Optional[datetime] = None
    documents: List[DocumentResponse] = Field(default_factory=list)
