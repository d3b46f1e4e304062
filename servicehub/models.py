"""
Database models for the specialist booking core
"""
import enum

from sqlalchemy import Column, Integer, String, Date, Time, Text, ForeignKey, DateTime, func, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class Availability(str, enum.Enum):
    AVAILABLE = "available"
    NOT_AVAILABLE = "not_available"


class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# A slot is booked while exactly one of its bookings is in one of these
LIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.ACCEPTED.value)


class VerificationStatus(str, enum.Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Specialist(Base):
    """Specialist profile, owned by the specialist"""
    __tablename__ = "specialists"
    
    id = Column(Integer, primary_key=True, index=True)
    # Identity reference from the identity service
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    services = Column(String(500), nullable=False, default="")
    skills = Column(String(500), nullable=False, default="")
    experience = Column(Integer, nullable=False, default=0)
    availability = Column(String(20), nullable=False, default=Availability.NOT_AVAILABLE.value)
    created_at = Column(DateTime, server_default=func.now())
    
    # Relationships
    slots = relationship("SessionSlot", back_populates="specialist")
    verification = relationship("SpecialistVerification", back_populates="specialist", uselist=False)


class SessionSlot(Base):
    """One-hour bookable window of a specialist"""
    __tablename__ = "session_slots"
    
    id = Column(Integer, primary_key=True, index=True)
    specialist_id = Column(Integer, ForeignKey("specialists.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default=SlotStatus.AVAILABLE.value)
    created_at = Column(DateTime, server_default=func.now())
    
    # Relationships
    specialist = relationship("Specialist", back_populates="slots")
    bookings = relationship("Booking", back_populates="slot")
    
    # One slot per hour bucket
    __table_args__ = (
        UniqueConstraint('specialist_id', 'date', 'start_time', name='unique_specialist_slot'),
    )


class Booking(Base):
    """Client's claim on a slot"""
    __tablename__ = "bookings"
    
    id = Column(Integer, primary_key=True, index=True)
    # Identity reference from the identity service
    client_id = Column(Integer, nullable=False, index=True)
    slot_id = Column(Integer, ForeignKey("session_slots.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    # pending - created by a reservation, awaiting the specialist
    # accepted - specialist accepted
    # rejected - specialist rejected, slot released
    # cancelled - client (or platform) cancelled, slot released
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    slot = relationship("SessionSlot", back_populates="bookings")


class SpecialistVerification(Base):
    """Identity documents of a specialist and the admin decision on them"""
    __tablename__ = "specialist_verification"
    
    id = Column(Integer, primary_key=True, index=True)
    specialist_id = Column(Integer, ForeignKey("specialists.id"), nullable=False, unique=True)
    front_document = Column(String(500), nullable=False)
    back_document = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default=VerificationStatus.PENDING.value)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    specialist = relationship("Specialist", back_populates="verification")
    
    @property
    def is_verified(self) -> bool:
        return self.status == VerificationStatus.APPROVED.value
