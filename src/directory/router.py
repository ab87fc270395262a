"""
Referring directory routes: practices, locations, providers and provider notes.
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_permission
from ..auth.models import User
from ..core.permissions import Permission
from ..core.results import result_response
from ..database import get_db
from .consistency import eligible_doctors
from .schemas import (
    DoctorDetailResponse,
    DoctorResponse,
    LocationResponse,
    PracticeEntry,
    PracticeResponse,
    ProviderNoteCreate,
)
from . import service

router = APIRouter()

can_view = require_permission(Permission.VIEW_DIRECTORY)
can_manage = require_permission(Permission.MANAGE_DIRECTORY)
can_manage_notes = require_permission(Permission.MANAGE_PROVIDER_NOTES)

# ============================================================================
# PRACTICES
# ============================================================================

@router.get("/practices", response_model=List[PracticeEntry])
def list_practices_route(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view)
):
    """
    The whole directory: practices by name, each with its locations and
    doctors and the number of referrals pointing at every entry.
    """
    return service.list_practices(db)

@router.get("/practices/{practice_id}", response_model=PracticeResponse)
def get_practice_route(
    practice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view)
):
    return service.get_practice(db, practice_id)

@router.post("/practices", status_code=status.HTTP_201_CREATED)
def create_practice_route(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.create_practice(db, payload), status.HTTP_201_CREATED)

@router.put("/practices/{practice_id}")
def update_practice_route(
    practice_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.update_practice(db, practice_id, payload))

@router.delete("/practices/{practice_id}")
def delete_practice_route(
    practice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    """
    Delete a practice with its locations and doctors.

    Answers 409 with the blocking count while referrals reference it.
    """
    return result_response(service.delete_practice(db, practice_id))

@router.get("/practices/{practice_id}/doctors", response_model=List[DoctorResponse])
def eligible_doctors_route(
    practice_id: int,
    location_id: Optional[int] = Query(None, description="Only doctors affiliated with this location"),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view)
):
    """
    Doctors that can be chosen as the referring provider for a practice,
    optionally narrowed to one location.
    """
    service.get_practice(db, practice_id)
    return eligible_doctors(db, practice_id, location_id)

# ============================================================================
# LOCATIONS
# ============================================================================

@router.get("/locations/{location_id}", response_model=LocationResponse)
def get_location_route(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view)
):
    return service.get_location(db, location_id)

@router.post("/locations", status_code=status.HTTP_201_CREATED)
def create_location_route(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.create_location(db, payload), status.HTTP_201_CREATED)

@router.put("/locations/{location_id}")
def update_location_route(
    location_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.update_location(db, location_id, payload))

@router.delete("/locations/{location_id}")
def delete_location_route(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.delete_location(db, location_id))

# ============================================================================
# DOCTORS
# ============================================================================

@router.get("/doctors/{doctor_id}", response_model=DoctorDetailResponse)
def get_doctor_route(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view)
):
    """
    Provider page with practice, locations, referrals and notes.
    """
    return service.get_doctor_detail(db, doctor_id)

@router.post("/doctors", status_code=status.HTTP_201_CREATED)
def create_doctor_route(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.create_doctor(db, payload), status.HTTP_201_CREATED)

@router.put("/doctors/{doctor_id}")
def update_doctor_route(
    doctor_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    """
    Overwrite a provider. ``location_ids`` is the complete new affiliation set.
    """
    return result_response(service.update_doctor(db, doctor_id, payload))

@router.delete("/doctors/{doctor_id}")
def delete_doctor_route(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage)
):
    return result_response(service.delete_doctor(db, doctor_id))

# ============================================================================
# PROVIDER NOTES
# ============================================================================

@router.post("/doctors/{doctor_id}/notes", status_code=status.HTTP_201_CREATED)
def create_note_route(
    doctor_id: int,
    note: ProviderNoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_notes)
):
    result = service.create_provider_note(db, doctor_id, note.content, current_user)
    return result_response(result, status.HTTP_201_CREATED)

@router.put("/doctors/{doctor_id}/notes/{note_id}")
def update_note_route(
    doctor_id: int,
    note_id: int,
    note: ProviderNoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_notes)
):
    return result_response(service.update_provider_note(db, note_id, note.content, doctor_id))

@router.delete("/doctors/{doctor_id}/notes/{note_id}")
def delete_note_route(
    doctor_id: int,
    note_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_notes)
):
    return result_response(service.delete_provider_note(db, note_id, doctor_id))
