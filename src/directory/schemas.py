"""
Directory Schemas - Pydantic models for referring practices, locations and providers.

Payload schemas trim text, turn empty optional strings into None and require
the name-like fields. Phone, fax and NPI are free text and are not checked.
"""
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, validator
from datetime import datetime
from ..referrals.models import ReferralStatus

def blank_to_none(value):
    """Trim strings and map empty ones to None"""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value

def required_text(value, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return str(value).strip()

class PracticeCreate(BaseModel):
    """
    Practice Schema - Used when creating or updating a referring practice

    Fields:
    - name: Practice name (required)
    - phone, fax, address: Optional free text
    """
    name: str
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None

    @validator("name", pre=True)
    def name_required(cls, v):
        return required_text(v, "Practice name is required")

    @validator("phone", "fax", "address", pre=True)
    def optional_text(cls, v):
        return blank_to_none(v)

class LocationCreate(BaseModel):
    """
    Location Schema - Used when creating or updating a practice location

    Fields:
    - name: Location name (required)
    - practice_id: Owning practice (required)
    - phone, fax, address: Optional free text
    """
    name: str
    practice_id: int
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None

    @validator("name", pre=True)
    def name_required(cls, v):
        return required_text(v, "Location name is required")

    @validator("phone", "fax", "address", pre=True)
    def optional_text(cls, v):
        return blank_to_none(v)

class DoctorCreate(BaseModel):
    """
    Doctor Schema - Used when creating or updating a referring provider

    Fields:
    - name: Provider name (required)
    - practice_id: Owning practice (required)
    - title, npi, specialty, phone: Optional free text
    - email: Optional, must be a valid address when given
    - location_ids: Complete set of affiliated locations; replaces the current set on update
    """
    name: str
    practice_id: int
    title: Optional[str] = None
    npi: Optional[str] = None
    specialty: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    location_ids: List[int] = Field(default_factory=list)

    @validator("name", pre=True)
    def name_required(cls, v):
        return required_text(v, "Provider name is required")

    @validator("title", "npi", "specialty", "phone", "email", pre=True)
    def optional_text(cls, v):
        return blank_to_none(v)

    @validator("location_ids", pre=True)
    def default_locations(cls, v):
        return [] if v is None else v

class ProviderNoteCreate(BaseModel):
    """Note content; trimmed, must not be empty"""
    content: str = ""

class LocationResponse(BaseModel):
    id: int
    name: str
    practice_id: int
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class DoctorResponse(BaseModel):
    """
    Doctor Response Schema - Used when returning provider data

    Fields:
    - id, name, title, npi, specialty, phone, email: Provider details
    - display_name: Title and name
    - practice_id: Owning practice
    - location_ids: Affiliated locations
    """
    id: int
    name: str
    display_name: str
    title: Optional[str] = None
    npi: Optional[str] = None
    specialty: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    practice_id: int
    location_ids: List[int] = []

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class PracticeResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class LocationEntry(LocationResponse):
    referral_count: int = 0

class DoctorEntry(DoctorResponse):
    referral_count: int = 0

class PracticeEntry(PracticeResponse):
    """
    Practice as listed in the directory, with its locations and doctors and
    the number of referrals pointing at each.
    """
    referral_count: int = 0
    locations: List[LocationEntry] = []
    doctors: List[DoctorEntry] = []

class ProviderNoteResponse(BaseModel):
    id: int
    content: str
    provider_id: int
    created_by_id: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProviderReferralSummary(BaseModel):
    """Referral row shown on a provider's page"""
    id: int
    patient_first_name: str
    patient_last_name: str
    status: ReferralStatus
    referral_date: datetime

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class DoctorDetailResponse(DoctorResponse):
    """
    Provider page - the provider with its practice, locations, referrals
    (newest referral date first) and notes (newest first).
    """
    practice: PracticeResponse
    locations: List[LocationResponse] = []
    referrals: List[ProviderReferralSummary] = []
    notes: List[ProviderNoteResponse] = []
