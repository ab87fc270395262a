"""
Directory consistency rules.

Keeps the referring directory coherent with the referrals that point into it:

- practices, locations and doctors cannot be deleted while any referral
  references them;
- a doctor's affiliated locations always belong to the doctor's practice;
- the doctors offered for a referral are narrowed by the chosen location.

The referral foreign keys are ``ON DELETE RESTRICT``. A referral inserted
between the reference count and the delete makes the commit fail, and that
failure is reported the same way as a counted block.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.results import ActionResult, FieldErrors
from ..referrals.models import Referral
from .models import PracticeLocation, ReferringDoctor, ReferringPractice

logger = logging.getLogger(__name__)

def count_referencing_referrals(db: Session, column, entity_id: int) -> int:
    """
    Count referrals whose foreign key ``column`` equals ``entity_id``.

    Args:
        db: Database session
        column: One of the Referral.referring_*_id columns
        entity_id: Directory entity id

    Returns:
        int: Number of referencing referrals
    """
    return db.query(func.count(Referral.id)).filter(column == entity_id).scalar() or 0

def _blocked_message(noun: str, count: int, pronoun: str) -> str:
    if count:
        return f"Cannot delete: this {noun} has {count} referral(s) linked to {pronoun}."
    return f"Cannot delete: records belonging to this {noun} still have referrals linked to them."

def guard_delete(db: Session, entity, column, noun: str, pronoun: str = "it") -> ActionResult:
    """
    Delete a directory entity unless referrals still reference it.

    Args:
        db: Database session
        entity: Loaded practice, location or doctor
        column: Referral column holding references to this entity type
        noun: Entity name used in the blocked message
        pronoun: "it" or "them" for the blocked message

    Returns:
        ActionResult: ok, or blocked with the referencing count
    """
    entity_id = entity.id
    count = count_referencing_referrals(db, column, entity_id)
    if count > 0:
        logger.info(f"Delete of {noun} {entity_id} blocked by {count} referral(s)")
        return ActionResult.blocked(count, _blocked_message(noun, count, pronoun))

    try:
        db.delete(entity)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        count = count_referencing_referrals(db, column, entity_id)
        logger.warning(f"Delete of {noun} {entity_id} rejected by the database: {str(e)}")
        return ActionResult.blocked(count, _blocked_message(noun, count, pronoun))
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting {noun} {entity_id}: {str(e)}")
        raise

    logger.info(f"Deleted {noun} {entity_id}")
    return ActionResult.ok()

def eligible_doctors(db: Session, practice_id: int, location_id: Optional[int] = None) -> List[ReferringDoctor]:
    """
    Doctors that may be picked as the referring provider.

    All doctors of the practice are eligible when no location is chosen;
    otherwise only doctors affiliated with that location.
    """
    query = db.query(ReferringDoctor).filter(ReferringDoctor.practice_id == practice_id)
    if location_id is not None:
        query = query.filter(ReferringDoctor.locations.any(PracticeLocation.id == location_id))
    return query.order_by(ReferringDoctor.name.asc(), ReferringDoctor.id.asc()).all()

def validate_location_affiliations(
    db: Session,
    practice_id: int,
    location_ids: Iterable[int]
) -> Tuple[List[PracticeLocation], FieldErrors]:
    """
    Resolve a doctor's requested locations and check they belong to its practice.

    Returns:
        (locations, errors): errors is keyed by ``location_ids`` when any id is
        unknown or belongs to another practice
    """
    requested = list(dict.fromkeys(location_ids))
    if not requested:
        return [], {}

    found = {
        location.id: location
        for location in db.query(PracticeLocation).filter(PracticeLocation.id.in_(requested)).all()
    }

    messages = []
    missing = [location_id for location_id in requested if location_id not in found]
    if missing:
        messages.append(f"Unknown location id(s): {', '.join(str(i) for i in missing)}")
    foreign = [
        location_id for location_id in requested
        if location_id in found and found[location_id].practice_id != practice_id
    ]
    if foreign:
        messages.append("Locations must belong to the provider's practice")

    if messages:
        return [], {"location_ids": messages}
    return [found[location_id] for location_id in requested], {}

def prune_foreign_affiliations(location: PracticeLocation) -> int:
    """
    Drop affiliations with doctors outside the location's practice.

    Called after a location moves to another practice.

    Returns:
        int: Number of affiliations removed
    """
    keep = [doctor for doctor in location.doctors if doctor.practice_id == location.practice_id]
    removed = len(location.doctors) - len(keep)
    if removed:
        location.doctors = keep
    return removed

def validate_referral_sources(
    db: Session,
    practice_id: Optional[int],
    location_id: Optional[int],
    doctor_id: Optional[int]
) -> FieldErrors:
    """
    Check a referral's structured referring-source ids.

    Each given id must exist, and when a practice is given the location and
    doctor must belong to it.
    """
    errors: FieldErrors = {}

    if practice_id is not None and db.get(ReferringPractice, practice_id) is None:
        errors["referring_practice_id"] = ["Referring practice not found"]

    if location_id is not None:
        location = db.get(PracticeLocation, location_id)
        if location is None:
            errors["referring_location_id"] = ["Location not found"]
        elif practice_id is not None and location.practice_id != practice_id:
            errors["referring_location_id"] = ["Location does not belong to the selected practice"]

    if doctor_id is not None:
        doctor = db.get(ReferringDoctor, doctor_id)
        if doctor is None:
            errors["referring_doctor_id"] = ["Provider not found"]
        elif practice_id is not None and doctor.practice_id != practice_id:
            errors["referring_doctor_id"] = ["Provider does not belong to the selected practice"]

    return errors
