"""
Referring directory models - practices, their locations and providers.

A practice owns its locations and doctors. A doctor is affiliated with any
number of locations of the same practice through ``doctor_locations``.
Referrals point at directory rows by id, so renames need no cascade.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table, func
from sqlalchemy.orm import relationship
from ..database import Base

doctor_locations = Table(
    "doctor_locations",
    Base.metadata,
    Column("doctor_id", Integer, ForeignKey("referring_doctors.id", ondelete="CASCADE"), primary_key=True),
    Column("location_id", Integer, ForeignKey("practice_locations.id", ondelete="CASCADE"), primary_key=True),
)

class ReferringPractice(Base):
    """
    Referring Practice - a clinic or organisation that sends referrals

    Fields:
    - id: Primary key
    - name: Practice name (unique by convention only)
    - phone, fax, address: Free-text contact details
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "referring_practices"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    fax = Column(String, nullable=True)
    address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    locations = relationship(
        "PracticeLocation", back_populates="practice",
        cascade="all, delete-orphan", order_by="PracticeLocation.name",
    )
    doctors = relationship(
        "ReferringDoctor", back_populates="practice",
        cascade="all, delete-orphan", order_by="ReferringDoctor.name",
    )
    # Deletes are guarded; the FK restricts, the ORM must not null it out
    referrals = relationship("Referral", back_populates="referring_practice", passive_deletes="all")

    def __repr__(self):
        return f"<ReferringPractice(id={self.id}, name='{self.name}')>"

class PracticeLocation(Base):
    """
    Practice Location - a physical site belonging to exactly one practice
    """
    __tablename__ = "practice_locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    fax = Column(String, nullable=True)
    address = Column(String, nullable=True)
    practice_id = Column(Integer, ForeignKey("referring_practices.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    practice = relationship("ReferringPractice", back_populates="locations")
    doctors = relationship("ReferringDoctor", secondary=doctor_locations, back_populates="locations")
    referrals = relationship("Referral", back_populates="referring_location", passive_deletes="all")

    def __repr__(self):
        return f"<PracticeLocation(id={self.id}, practice_id={self.practice_id}, name='{self.name}')>"

class ReferringDoctor(Base):
    """
    Referring Doctor (provider) - a clinician belonging to one practice

    Fields:
    - id: Primary key
    - name: Provider name
    - title: Optional short code shown before the name (e.g. "Dr.", "PA-C")
    - npi: Optional national provider identifier, stored as given
    - specialty, phone, email: Optional details
    - practice_id: Owning practice
    - locations: Affiliated locations of the same practice
    """
    __tablename__ = "referring_doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    title = Column(String, nullable=True)
    npi = Column(String, nullable=True)
    specialty = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    practice_id = Column(Integer, ForeignKey("referring_practices.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    practice = relationship("ReferringPractice", back_populates="doctors")
    locations = relationship(
        "PracticeLocation", secondary=doctor_locations,
        back_populates="doctors", order_by="PracticeLocation.name",
    )
    referrals = relationship("Referral", back_populates="referring_doctor", passive_deletes="all")
    notes = relationship(
        "ProviderNote", back_populates="provider",
        cascade="all, delete-orphan", order_by="ProviderNote.id.desc()",
    )

    def __repr__(self):
        return f"<ReferringDoctor(id={self.id}, practice_id={self.practice_id}, name='{self.name}')>"

    @property
    def display_name(self) -> str:
        """Title and name, e.g. "Dr. Jane Smith" """
        return " ".join(part for part in (self.title, self.name) if part)

    @property
    def location_ids(self):
        return [location.id for location in self.locations]

class ProviderNote(Base):
    """
    Provider Note - free-text note staff keep about a referring provider
    """
    __tablename__ = "provider_notes"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    provider_id = Column(Integer, ForeignKey("referring_doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    provider = relationship("ReferringDoctor", back_populates="notes")
    created_by = relationship("User")

    def __repr__(self):
        return f"<ProviderNote(id={self.id}, provider_id={self.provider_id})>"
