from pydantic import BaseModel, EmailStr, Field, validator
from datetime import date, datetime, time
from typing import Optional, List, Literal

# Specialist profile
class ProfileUpdate(BaseModel):
    services: str = Field(..., min_length=1, max_length=500)
    experience: int = Field(0, ge=0, le=80)
    skills: str = Field("", max_length=500)
    email: Optional[EmailStr] = None

class SpecialistResponse(BaseModel):
    id: int
    user_id: int
    services: str
    skills: str
    experience: int
    availability: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SpecialistDetailResponse(SpecialistResponse):
    email: Optional[str] = None
    verification_status: str = "not_submitted"
    is_verified: bool = False

class AvailabilityUpdate(BaseModel):
    status: Literal["available", "not_available"]

class GenerateSlotsRequest(BaseModel):
    date: date

# Slots
class SlotResponse(BaseModel):
    id: int
    specialist_id: int
    date: date
    start_time: time
    end_time: time
    status: str

    class Config:
        from_attributes = True

# Bookings
class BookingCreate(BaseModel):
    slot_id: int = Field(..., gt=0)

class BookingResponse(BaseModel):
    id: int
    client_id: int
    slot_id: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    slot: SlotResponse

    class Config:
        from_attributes = True

class BookingPage(BaseModel):
    bookings: List[BookingResponse]
    total: int
    page: int
    limit: int

# Verification
class VerificationSubmit(BaseModel):
    """References to documents already stored by the asset service"""
    front_document: str = Field(..., min_length=1, max_length=500)
    back_document: str = Field(..., min_length=1, max_length=500)

class VerificationDecision(BaseModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = Field(None, max_length=1000)

    @validator('rejection_reason')
    def blank_reason_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

class VerificationResponse(BaseModel):
    id: int
    specialist_id: int
    front_document: str
    back_document: str
    status: str
    rejection_reason: Optional[str] = None
    is_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class VerificationStatusResponse(BaseModel):
    status: str
    rejection_reason: Optional[str] = None

class PublicVerificationStatus(BaseModel):
    status: str
    is_verified: bool
