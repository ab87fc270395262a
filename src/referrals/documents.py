"""
Referral documents - upload and removal of files attached to a referral.
"""
import logging

from sqlalchemy.orm import Session

from ..auth.models import User
from ..core.results import ActionResult
from ..core.storage import StorageBackend, StorageRejectedError, validate_upload
from ..exceptions import ResourceNotFoundException
from .models import Document, Referral

# Set up logging
logger = logging.getLogger(__name__)

def get_document(db: Session, document_id: int) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise ResourceNotFoundException("Document not found")
    return document

def upload_document(
    db: Session,
    referral_id: int,
    file_name: str,
    content_type: str,
    data: bytes,
    storage: StorageBackend,
    current_user: User
) -> ActionResult:
    """
    Store a file and attach it to a referral.

    Args:
        db: Database session
        referral_id: Referral the file belongs to
        file_name: Original file name, kept for display
        content_type: MIME type reported by the client
        data: File contents
        storage: Storage backend
        current_user: Uploading user

    Returns:
        ActionResult: New document id, or the rejection reason

    Raises:
        ResourceNotFoundException: If the referral does not exist
    """
    if db.get(Referral, referral_id) is None:
        raise ResourceNotFoundException("Referral not found")

    try:
        validate_upload(content_type, len(data))
    except StorageRejectedError as e:
        logger.info(f"Upload of {file_name!r} to referral {referral_id} rejected: {e.reason}")
        return ActionResult.failure(e.reason)

    locator = storage.store(data, file_name, content_type, referral_id)
    document = Document(
        referral_id=referral_id,
        file_name=file_name,
        file_url=locator,
        file_size=len(data),
        content_type=content_type,
        uploaded_by_id=current_user.id,
    )
    try:
        db.add(document)
        db.commit()
        db.refresh(document)
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving document for referral {referral_id}: {str(e)}")
        storage.delete(locator)
        raise

    logger.info(f"Document {document.id} attached to referral {referral_id} by user {current_user.id}")
    return ActionResult.ok(document.id)

def delete_document(db: Session, document_id: int, storage: StorageBackend) -> ActionResult:
    """
    Remove a document's stored file and then its row.

    A file that is already gone does not stop the row from being deleted.

    Raises:
        ResourceNotFoundException: If the document does not exist
    """
    document = get_document(db, document_id)
    try:
        storage.delete(document.file_url)
    except Exception as e:
        logger.warning(f"Could not remove stored file {document.file_url}: {str(e)}")

    try:
        db.delete(document)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting document {document_id}: {str(e)}")
        raise

    logger.info(f"Document {document_id} deleted")
    return ActionResult.ok()
