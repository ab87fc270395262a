"""
Referral Service - Business logic for referral intake and workflow.
"""
from typing import Any, Optional
import logging

from sqlalchemy.orm import Session, joinedload, selectinload

from ..auth.models import User
from ..core.results import ActionResult, parse_payload
from ..core.storage import StorageBackend
from ..directory.consistency import validate_referral_sources
from ..exceptions import ResourceNotFoundException
from .models import Referral, ReferralStatus
from .schemas import ReferralCreate

# Set up logging
logger = logging.getLogger(__name__)

def get_referral(db: Session, referral_id: int) -> Referral:
    """
    Get a referral with its directory links, creator and documents.

    Args:
        db: Database session
        referral_id: Referral ID

    Returns:
        Referral: Referral object

    Raises:
        ResourceNotFoundException: If the referral does not exist
    """
    referral = (
        db.query(Referral)
        .options(
            joinedload(Referral.referring_practice),
            joinedload(Referral.referring_location),
            joinedload(Referral.referring_doctor),
            joinedload(Referral.created_by),
            selectinload(Referral.documents),
        )
        .filter(Referral.id == referral_id)
        .first()
    )
    if not referral:
        raise ResourceNotFoundException("Referral not found")
    return referral

def _validated(db: Session, data: Any):
    payload, errors = parse_payload(ReferralCreate, data)
    if errors:
        return None, errors
    errors = validate_referral_sources(
        db,
        payload.referring_practice_id,
        payload.referring_location_id,
        payload.referring_doctor_id,
    )
    if errors:
        return None, errors
    return payload, None

def create_referral(db: Session, data: Any, current_user: User) -> ActionResult:
    """
    Record a new referral.

    Args:
        db: Database session
        data: Raw payload matching ReferralCreate
        current_user: User entering the referral

    Returns:
        ActionResult: New referral id, or field errors
    """
    payload, errors = _validated(db, data)
    if errors:
        return ActionResult.invalid(errors)

    referral = Referral(**payload.model_dump(), created_by_id=current_user.id)
    try:
        db.add(referral)
        db.commit()
        db.refresh(referral)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating referral: {str(e)}")
        raise

    logger.info(f"Referral {referral.id} created by user {current_user.id}")
    return ActionResult.ok(referral.id)

def update_referral(db: Session, referral_id: int, data: Any) -> ActionResult:
    """
    Overwrite every editable field of a referral.

    Raises:
        ResourceNotFoundException: If the referral does not exist
    """
    referral = get_referral(db, referral_id)
    payload, errors = _validated(db, data)
    if errors:
        return ActionResult.invalid(errors)

    try:
        for field, value in payload.model_dump().items():
            setattr(referral, field, value)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating referral {referral_id}: {str(e)}")
        raise

    logger.info(f"Referral {referral_id} updated")
    return ActionResult.ok(referral_id)

def update_referral_status(db: Session, referral_id: int, status: ReferralStatus) -> ActionResult:
    """
    Move a referral to any status. There is no transition order.

    Raises:
        ResourceNotFoundException: If the referral does not exist
    """
    referral = get_referral(db, referral_id)
    previous = referral.status
    try:
        referral.update_status(status)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating status of referral {referral_id}: {str(e)}")
        raise

    logger.info(f"Referral {referral_id} status changed from {previous.value} to {status.value}")
    return ActionResult.ok(referral_id)

def update_referral_notes(db: Session, referral_id: int, notes: Optional[str]) -> ActionResult:
    referral = get_referral(db, referral_id)
    try:
        referral.notes = (notes or "").strip() or None
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating notes of referral {referral_id}: {str(e)}")
        raise
    return ActionResult.ok(referral_id)

def delete_referral(db: Session, referral_id: int, storage: StorageBackend) -> ActionResult:
    """
    Delete a referral and its documents.

    The rows go first. Stored files are removed afterwards; a file that cannot
    be removed is logged and left behind.

    Raises:
        ResourceNotFoundException: If the referral does not exist
    """
    referral = get_referral(db, referral_id)
    locators = [document.file_url for document in referral.documents]

    try:
        db.delete(referral)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting referral {referral_id}: {str(e)}")
        raise

    for locator in locators:
        try:
            storage.delete(locator)
        except Exception as e:
            logger.warning(f"Could not remove stored file {locator} of referral {referral_id}: {str(e)}")

    logger.info(f"Referral {referral_id} deleted with {len(locators)} document(s)")
    return ActionResult.ok()
