"""
Referral Model - Stores inbound patient referrals and their attached documents.

Referral status is a plain label: any status may be written from any other,
including moving backwards (e.g. COMPLETED -> NEW).
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class ReferralStatus(str, enum.Enum):
    """Enum for referral pipeline status"""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

STATUS_LABELS = {
    ReferralStatus.NEW: "New",
    ReferralStatus.CONTACTED: "Contacted",
    ReferralStatus.SCHEDULED: "Scheduled",
    ReferralStatus.COMPLETED: "Completed",
    ReferralStatus.NO_SHOW: "No Show",
}

# Statuses still waiting on clinic follow-up
PENDING_STATUSES = (ReferralStatus.NEW, ReferralStatus.CONTACTED)

class Referral(Base):
    """
    Referral Model - Stores a referral through its lifecycle

    Fields:
    - id: Primary key
    - patient_*: Patient identity and contact details (first/last name required)
    - referring_practice_id / referring_location_id / referring_doctor_id:
      Structured link into the referring directory (all optional)
    - referring_doctor_name: Free-text fallback when the provider is not in the directory
    - status: Pipeline status
    - referral_date: When the referral was received
    - appointment_date: Scheduled appointment, if any
    - insurance_*, auth_status: Insurance details, free text
    - notes: Staff notes
    - created_by_id: User who entered the referral
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, index=True)

    # Patient
    patient_first_name = Column(String, nullable=False)
    patient_last_name = Column(String, nullable=False, index=True)
    patient_mrn = Column(String, nullable=True)
    patient_phone = Column(String, nullable=True)
    patient_email = Column(String, nullable=True)
    patient_dob = Column(Date, nullable=True)

    # Referring source
    referring_practice_id = Column(Integer, ForeignKey("referring_practices.id", ondelete="RESTRICT"), nullable=True, index=True)
    referring_location_id = Column(Integer, ForeignKey("practice_locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    referring_doctor_id = Column(Integer, ForeignKey("referring_doctors.id", ondelete="RESTRICT"), nullable=True, index=True)
    referring_doctor_name = Column(String, nullable=True)

    # Workflow
    status = Column(Enum(ReferralStatus, name="referral_status"), default=ReferralStatus.NEW, nullable=False, index=True)
    referral_date = Column(DateTime(timezone=True), nullable=False, index=True)
    appointment_date = Column(DateTime(timezone=True), nullable=True)

    # Insurance
    insurance_provider = Column(String, nullable=True)
    insurance_member_id = Column(String, nullable=True)
    insurance_group = Column(String, nullable=True)
    auth_status = Column(String, nullable=True)

    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    referring_practice = relationship("ReferringPractice", back_populates="referrals")
    referring_location = relationship("PracticeLocation", back_populates="referrals")
    referring_doctor = relationship("ReferringDoctor", back_populates="referrals")
    created_by = relationship("User")
    documents = relationship(
        "Document", back_populates="referral",
        cascade="all, delete-orphan", order_by="Document.id.desc()",
    )

    def __repr__(self):
        return f"<Referral(id={self.id}, status='{self.status}', referral_date='{self.referral_date}')>"

    @property
    def patient_name(self) -> str:
        return f"{self.patient_first_name} {self.patient_last_name}"

    @property
    def referring_doctor_display(self):
        """
        Name shown for the referring provider.

        A linked directory doctor always wins over the free-text name; the
        free-text name is only a fallback for providers not in the directory.
        """
        if self.referring_doctor is not None:
            return self.referring_doctor.display_name
        return self.referring_doctor_name or None

    @property
    def referring_practice_name(self):
        return self.referring_practice.name if self.referring_practice else None

    @property
    def referring_location_name(self):
        return self.referring_location.name if self.referring_location else None

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    def update_status(self, status: ReferralStatus) -> None:
        """
        Update referral status. No transition rules apply.

        Args:
            status: New referral status
        """
        self.status = status

class Document(Base):
    """
    Document Model - A file attached to a referral

    Fields:
    - file_name: Original upload name
    - file_url: Locator returned by the storage backend
    - file_size: Size in bytes
    - content_type: MIME type of the upload
    - uploaded_by_id: User who uploaded the file
    """
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    referral_id = Column(Integer, ForeignKey("referrals.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    content_type = Column(String, nullable=False)
    uploaded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    referral = relationship("Referral", back_populates="documents")
    uploaded_by = relationship("User")

    def __repr__(self):
        return f"<Document(id={self.id}, referral_id={self.referral_id}, file_name='{self.file_name}')>"
