"""
Referral routes: listing, intake, workflow, export and documents.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..auth.dependencies import require_permission
from ..auth.models import User
from ..core.pagination import PageParams, PageResponse
from ..core.permissions import Permission
from ..core.results import result_response
from ..core.storage import StorageBackend, get_storage, read_upload
from ..database import get_db
from .documents import delete_document, upload_document
from .export import export_filename, export_referrals
from .filters import list_referrals
from .schemas import (
    ReferralFilter,
    ReferralListItem,
    ReferralNotesUpdate,
    ReferralResponse,
    ReferralStatusUpdate,
)
from .service import (
    create_referral,
    delete_referral,
    get_referral,
    update_referral,
    update_referral_notes,
    update_referral_status,
)

# Create API routers
router = APIRouter()
documents_router = APIRouter()

def referral_filters(
    search: Optional[str] = Query(None, description="Patient first/last name or free-text doctor name"),
    status: Optional[str] = Query(None, description="Referral status; unknown values are ignored"),
    practice_id: Optional[int] = Query(None, description="Referring practice ID"),
    date_from: Optional[str] = Query(None, description="Referral date from (YYYY-MM-DD, inclusive)"),
    date_to: Optional[str] = Query(None, description="Referral date to (YYYY-MM-DD, inclusive)")
) -> ReferralFilter:
    return ReferralFilter(
        search=search,
        status=status,
        practice_id=practice_id,
        date_from=date_from,
        date_to=date_to,
    )

@router.get("", response_model=PageResponse[ReferralListItem])
def list_referrals_route(
    filters: ReferralFilter = Depends(referral_filters),
    page_params: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_REFERRALS))
):
    """
    Filtered referral list, newest referral date first, one fixed-size page at a time.
    """
    return list_referrals(db, filters, page_params)

@router.get("/export")
def export_referrals_route(
    filters: ReferralFilter = Depends(referral_filters),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.EXPORT_REFERRALS))
):
    """
    Download referrals as CSV. Only the status and date filters apply.
    """
    content = export_referrals(db, filters)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
    )

@router.get("/{referral_id}", response_model=ReferralResponse)
def get_referral_route(
    referral_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_REFERRALS))
):
    return get_referral(db, referral_id)

@router.post("", status_code=status.HTTP_201_CREATED)
def create_referral_route(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_REFERRALS))
):
    """
    Record a new referral. Field problems come back as a 422 error map.
    """
    return result_response(create_referral(db, payload, current_user), status.HTTP_201_CREATED)

@router.put("/{referral_id}")
def update_referral_route(
    referral_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_REFERRALS))
):
    return result_response(update_referral(db, referral_id, payload))

@router.patch("/{referral_id}/status")
def update_referral_status_route(
    referral_id: int,
    status_data: ReferralStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_REFERRALS))
):
    """
    Set the referral status. Any status may follow any other.
    """
    return result_response(update_referral_status(db, referral_id, status_data.status))

@router.patch("/{referral_id}/notes")
def update_referral_notes_route(
    referral_id: int,
    notes_data: ReferralNotesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_REFERRALS))
):
    return result_response(update_referral_notes(db, referral_id, notes_data.notes))

@router.delete("/{referral_id}")
def delete_referral_route(
    referral_id: int,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.DELETE_REFERRALS))
):
    return result_response(delete_referral(db, referral_id, storage))

@router.post("/{referral_id}/documents", status_code=status.HTTP_201_CREATED)
def upload_document_route(
    referral_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.MANAGE_DOCUMENTS))
):
    """
    Attach a file (PDF, image or Word document, up to 10 MB) to a referral.
    """
    data = read_upload(file.file)
    result = upload_document(
        db,
        referral_id,
        file.filename or "file",
        file.content_type,
        data,
        storage,
        current_user,
    )
    return result_response(result, status.HTTP_201_CREATED)

@documents_router.delete("/{document_id}")
def delete_document_route(
    document_id: int,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    current_user: User = Depends(require_permission(Permission.MANAGE_DOCUMENTS))
):
    return result_response(delete_document(db, document_id, storage))
