"""
Directory Service - Business logic for referring practices, locations and providers.

Create and update operations take raw payloads and return an ActionResult with
field errors instead of raising, so the client can render them inline. Deletes
go through the referenced-entity guard in ``consistency``.
"""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..auth.models import User
from ..core.results import ActionResult, parse_payload
from ..exceptions import ResourceNotFoundException
from ..referrals.models import Referral
from ..referrals.schemas import utcnow
from .consistency import (
    guard_delete,
    prune_foreign_affiliations,
    validate_location_affiliations,
)
from .models import PracticeLocation, ProviderNote, ReferringDoctor, ReferringPractice
from .schemas import (
    DoctorCreate,
    DoctorDetailResponse,
    DoctorEntry,
    LocationCreate,
    LocationEntry,
    PracticeCreate,
    PracticeEntry,
    PracticeResponse,
    LocationResponse,
    ProviderNoteResponse,
    ProviderReferralSummary,
)

# Set up logging
logger = logging.getLogger(__name__)

def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error {action}: {str(e)}")
        raise

def _referral_counts(db: Session, column) -> Dict[int, int]:
    rows = (
        db.query(column, func.count(Referral.id))
        .filter(column.isnot(None))
        .group_by(column)
        .all()
    )
    return {entity_id: count for entity_id, count in rows}

# ─── Reads ─────────────────────────────────────────────────────────────────────

def get_practice(db: Session, practice_id: int) -> ReferringPractice:
    """
    Get a practice by ID.

    Raises:
        ResourceNotFoundException: If the practice does not exist
    """
    practice = db.query(ReferringPractice).filter(ReferringPractice.id == practice_id).first()
    if not practice:
        raise ResourceNotFoundException("Practice not found")
    return practice

def get_location(db: Session, location_id: int) -> PracticeLocation:
    location = db.query(PracticeLocation).filter(PracticeLocation.id == location_id).first()
    if not location:
        raise ResourceNotFoundException("Location not found")
    return location

def get_doctor(db: Session, doctor_id: int) -> ReferringDoctor:
    doctor = db.query(ReferringDoctor).filter(ReferringDoctor.id == doctor_id).first()
    if not doctor:
        raise ResourceNotFoundException("Provider not found")
    return doctor

def list_practices(db: Session) -> List[PracticeEntry]:
    """
    Get the full directory: every practice ordered by name, with its locations
    and doctors, each carrying the number of referrals that reference it.
    """
    practices = (
        db.query(ReferringPractice)
        .options(
            selectinload(ReferringPractice.locations),
            selectinload(ReferringPractice.doctors).selectinload(ReferringDoctor.locations),
        )
        .order_by(ReferringPractice.name.asc(), ReferringPractice.id.asc())
        .all()
    )

    practice_counts = _referral_counts(db, Referral.referring_practice_id)
    location_counts = _referral_counts(db, Referral.referring_location_id)
    doctor_counts = _referral_counts(db, Referral.referring_doctor_id)

    entries = []
    for practice in practices:
        entry = PracticeEntry.model_validate(practice, from_attributes=True).model_copy(update={
            "referral_count": practice_counts.get(practice.id, 0),
            "locations": [
                LocationEntry.model_validate(location).model_copy(
                    update={"referral_count": location_counts.get(location.id, 0)}
                )
                for location in practice.locations
            ],
            "doctors": [
                DoctorEntry.model_validate(doctor).model_copy(
                    update={"referral_count": doctor_counts.get(doctor.id, 0)}
                )
                for doctor in practice.doctors
            ],
        })
        entries.append(entry)
    return entries

def get_doctor_detail(db: Session, doctor_id: int) -> DoctorDetailResponse:
    """
    Get a provider page: the provider, its practice and locations, the
    referrals it sent (newest referral date first) and its notes (newest first).

    Raises:
        ResourceNotFoundException: If the provider does not exist
    """
    doctor = get_doctor(db, doctor_id)

    referrals = (
        db.query(Referral)
        .filter(Referral.referring_doctor_id == doctor_id)
        .order_by(Referral.referral_date.desc(), Referral.id.desc())
        .all()
    )
    notes = [
        ProviderNoteResponse(
            id=note.id,
            content=note.content,
            provider_id=note.provider_id,
            created_by_id=note.created_by_id,
            created_by_name=note.created_by.display_name if note.created_by else None,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )
        for note in doctor.notes
    ]

    base = DoctorEntry.model_validate(doctor).model_dump(exclude={"referral_count"})
    return DoctorDetailResponse(
        **base,
        practice=PracticeResponse.model_validate(doctor.practice),
        locations=[LocationResponse.model_validate(location) for location in doctor.locations],
        referrals=[ProviderReferralSummary.model_validate(referral) for referral in referrals],
        notes=notes,
    )

# ─── Practices ────────────────────────────────────────────────────────────────

def create_practice(db: Session, data: Any) -> ActionResult:
    """
    Create a referring practice.

    Args:
        db: Database session
        data: Raw payload matching PracticeCreate

    Returns:
        ActionResult: New practice id, or field errors
    """
    payload, errors = parse_payload(PracticeCreate, data)
    if errors:
        return ActionResult.invalid(errors)

    practice = ReferringPractice(**payload.model_dump())
    db.add(practice)
    _commit(db, "creating practice")
    logger.info(f"Practice {practice.id} created")
    return ActionResult.ok(practice.id)

def update_practice(db: Session, practice_id: int, data: Any) -> ActionResult:
    """
    Overwrite a practice's fields.

    Raises:
        ResourceNotFoundException: If the practice does not exist
    """
    practice = get_practice(db, practice_id)
    payload, errors = parse_payload(PracticeCreate, data)
    if errors:
        return ActionResult.invalid(errors)

    for field, value in payload.model_dump().items():
        setattr(practice, field, value)
    _commit(db, f"updating practice {practice_id}")
    logger.info(f"Practice {practice_id} updated")
    return ActionResult.ok(practice_id)

def delete_practice(db: Session, practice_id: int) -> ActionResult:
    """
    Delete a practice, with its locations and doctors, unless referrals reference it.
    """
    practice = get_practice(db, practice_id)
    return guard_delete(db, practice, Referral.referring_practice_id, "practice")

# ─── Locations ────────────────────────────────────────────────────────────────

def create_location(db: Session, data: Any) -> ActionResult:
    """
    Create a location under an existing practice.
    """
    payload, errors = parse_payload(LocationCreate, data)
    if errors:
        return ActionResult.invalid(errors)
    if db.get(ReferringPractice, payload.practice_id) is None:
        return ActionResult.invalid({"practice_id": ["Practice not found"]})

    location = PracticeLocation(**payload.model_dump())
    db.add(location)
    _commit(db, "creating location")
    logger.info(f"Location {location.id} created for practice {location.practice_id}")
    return ActionResult.ok(location.id)

def update_location(db: Session, location_id: int, data: Any) -> ActionResult:
    """
    Overwrite a location's fields.

    Moving a location to another practice drops its affiliations with doctors
    of the previous practice.

    Raises:
        ResourceNotFoundException: If the location does not exist
    """
    location = get_location(db, location_id)
    payload, errors = parse_payload(LocationCreate, data)
    if errors:
        return ActionResult.invalid(errors)
    if db.get(ReferringPractice, payload.practice_id) is None:
        return ActionResult.invalid({"practice_id": ["Practice not found"]})

    moved = location.practice_id != payload.practice_id
    for field, value in payload.model_dump().items():
        setattr(location, field, value)
    if moved:
        removed = prune_foreign_affiliations(location)
        logger.info(f"Location {location_id} moved to practice {payload.practice_id}; {removed} affiliation(s) dropped")

    _commit(db, f"updating location {location_id}")
    logger.info(f"Location {location_id} updated")
    return ActionResult.ok(location_id)

def delete_location(db: Session, location_id: int) -> ActionResult:
    location = get_location(db, location_id)
    return guard_delete(db, location, Referral.referring_location_id, "location")

# ─── Doctors ──────────────────────────────────────────────────────────────────

def create_doctor(db: Session, data: Any) -> ActionResult:
    """
    Create a referring provider affiliated with the given locations.

    Every location must belong to the provider's practice.
    """
    payload, errors = parse_payload(DoctorCreate, data)
    if errors:
        return ActionResult.invalid(errors)
    if db.get(ReferringPractice, payload.practice_id) is None:
        return ActionResult.invalid({"practice_id": ["Practice not found"]})

    locations, errors = validate_location_affiliations(db, payload.practice_id, payload.location_ids)
    if errors:
        return ActionResult.invalid(errors)

    doctor = ReferringDoctor(**payload.model_dump(exclude={"location_ids"}))
    doctor.locations = locations
    db.add(doctor)
    _commit(db, "creating provider")
    logger.info(f"Provider {doctor.id} created with {len(locations)} location(s)")
    return ActionResult.ok(doctor.id)

def update_doctor(db: Session, doctor_id: int, data: Any) -> ActionResult:
    """
    Overwrite a provider's fields and replace its whole affiliation set.

    The existing affiliations are all removed before the requested ones are
    recreated; the request is the complete new set, not a change list.

    Raises:
        ResourceNotFoundException: If the provider does not exist
    """
    doctor = get_doctor(db, doctor_id)
    payload, errors = parse_payload(DoctorCreate, data)
    if errors:
        return ActionResult.invalid(errors)
    if db.get(ReferringPractice, payload.practice_id) is None:
        return ActionResult.invalid({"practice_id": ["Practice not found"]})

    locations, errors = validate_location_affiliations(db, payload.practice_id, payload.location_ids)
    if errors:
        return ActionResult.invalid(errors)

    for field, value in payload.model_dump(exclude={"location_ids"}).items():
        setattr(doctor, field, value)

    doctor.locations.clear()
    db.flush()
    doctor.locations.extend(locations)

    _commit(db, f"updating provider {doctor_id}")
    logger.info(f"Provider {doctor_id} updated with {len(locations)} location(s)")
    return ActionResult.ok(doctor_id)

def delete_doctor(db: Session, doctor_id: int) -> ActionResult:
    doctor = get_doctor(db, doctor_id)
    return guard_delete(db, doctor, Referral.referring_doctor_id, "provider", pronoun="them")

# ─── Provider notes ───────────────────────────────────────────────────────────

def _note_content(content: Optional[str]) -> Optional[str]:
    content = (content or "").strip()
    return content or None

def get_provider_note(db: Session, note_id: int, provider_id: Optional[int] = None) -> ProviderNote:
    note = db.query(ProviderNote).filter(ProviderNote.id == note_id).first()
    if not note or (provider_id is not None and note.provider_id != provider_id):
        raise ResourceNotFoundException("Note not found")
    return note

def create_provider_note(db: Session, provider_id: int, content: Optional[str], current_user: User) -> ActionResult:
    """
    Add a note to a provider.

    Raises:
        ResourceNotFoundException: If the provider does not exist
    """
    get_doctor(db, provider_id)
    content = _note_content(content)
    if content is None:
        return ActionResult.failure("Note cannot be empty")

    note = ProviderNote(content=content, provider_id=provider_id, created_by_id=current_user.id)
    db.add(note)
    _commit(db, f"creating note for provider {provider_id}")
    logger.info(f"Note {note.id} added to provider {provider_id} by user {current_user.id}")
    return ActionResult.ok(note.id)

def update_provider_note(
    db: Session,
    note_id: int,
    content: Optional[str],
    provider_id: Optional[int] = None
) -> ActionResult:
    """
    Rewrite a note's content.

    Raises:
        ResourceNotFoundException: If the note does not exist
    """
    note = get_provider_note(db, note_id, provider_id)
    content = _note_content(content)
    if content is None:
        return ActionResult.failure("Note cannot be empty")

    note.content = content
    note.updated_at = utcnow()
    _commit(db, f"updating note {note_id}")
    return ActionResult.ok(note_id)

def delete_provider_note(db: Session, note_id: int, provider_id: Optional[int] = None) -> ActionResult:
    note = get_provider_note(db, note_id, provider_id)
    db.delete(note)
    _commit(db, f"deleting note {note_id}")
    logger.info(f"Note {note_id} deleted")
    return ActionResult.ok()
