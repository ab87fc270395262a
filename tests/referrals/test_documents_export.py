"""
Tests for document uploads, storage and the CSV export.
"""
import csv
import io
from datetime import date, datetime

import pytest

from src.config import settings
from src.core.storage import (
    CloudinaryStorage,
    LocalFileStorage,
    StorageRejectedError,
    read_upload,
    safe_file_name,
    validate_upload,
)
from src.referrals.export import EXPORT_HEADERS, export_filename, referrals_to_csv
from src.referrals.models import Document, ReferralStatus

PDF = b"%PDF-1.4 test document"


# ─── Storage ──────────────────────────────────────────────────────────────────

def test_validate_upload_messages():
    validate_upload("application/pdf", 1024)
    with pytest.raises(StorageRejectedError) as too_big:
        validate_upload("application/pdf", 10 * 1024 * 1024 + 1)
    assert too_big.value.reason == "File exceeds 10 MB limit."
    with pytest.raises(StorageRejectedError) as bad_type:
        validate_upload("application/zip", 10)
    assert bad_type.value.reason == "Only PDF, images, and Word documents are allowed."


def test_read_upload_stops_past_the_limit():
    stream = io.BytesIO(b"x" * 100)
    data = read_upload(stream, max_bytes=10)
    assert len(data) == 11
    assert stream.read() == b"x" * 89
    assert read_upload(io.BytesIO(PDF), max_bytes=1024) == PDF


def test_safe_file_name():
    assert safe_file_name("scan (1).pdf") == "scan__1_.pdf"
    assert safe_file_name("../../etc/passwd") == "passwd"


def test_local_storage_layout_and_idempotent_delete(tmp_path):
    storage = LocalFileStorage(str(tmp_path), "/uploads")

    locator = storage.store(PDF, "my scan.pdf", "application/pdf", 7)

    assert locator.startswith("/uploads/referrals/7/")
    assert locator.endswith("-my_scan.pdf")
    stored = list((tmp_path / "referrals" / "7").iterdir())
    assert len(stored) == 1
    assert stored[0].read_bytes() == PDF

    storage.delete(locator)
    assert not stored[0].exists()
    storage.delete(locator)


def test_local_storage_ignores_paths_outside_root(tmp_path):
    storage = LocalFileStorage(str(tmp_path / "root"), "/uploads")
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")

    storage.delete("/uploads/../keep.txt")

    assert outside.exists()


def test_cloudinary_locator_parsing():
    image = "https://res.cloudinary.com/demo/image/upload/v1712345678/referrals/3/scan.png"
    raw = "https://res.cloudinary.com/demo/raw/upload/v1712345678/referrals/3/letter.docx"
    assert CloudinaryStorage.parse_locator(image) == ("image", "referrals/3/scan")
    assert CloudinaryStorage.parse_locator(raw) == ("raw", "referrals/3/letter.docx")
    assert CloudinaryStorage.parse_locator("/uploads/referrals/3/x.pdf") == (None, None)


# ─── Document routes ──────────────────────────────────────────────────────────

def test_upload_and_delete_document(client, db, factory, staff_headers, storage):
    referral = factory.referral()

    response = client.post(
        f"/api/v1/referrals/{referral.id}/documents",
        files={"file": ("intake form.pdf", PDF, "application/pdf")},
        headers=staff_headers,
    )

    assert response.status_code == 201
    document = db.get(Document, response.json()["id"])
    assert document.file_name == "intake form.pdf"
    assert document.file_size == len(PDF)
    path = storage._path_for(document.file_url)
    assert path.read_bytes() == PDF

    detail = client.get(f"/api/v1/referrals/{referral.id}", headers=staff_headers).json()
    assert [doc["id"] for doc in detail["documents"]] == [document.id]

    response = client.delete(f"/api/v1/documents/{document.id}", headers=staff_headers)
    assert response.status_code == 200
    assert not path.exists()
    db.expire_all()
    assert db.get(Document, document.id) is None


def test_upload_rejects_wrong_type(client, factory, staff_headers):
    referral = factory.referral()

    response = client.post(
        f"/api/v1/referrals/{referral.id}/documents",
        files={"file": ("archive.zip", b"PK", "application/zip")},
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only PDF, images, and Word documents are allowed."


def test_upload_over_the_limit_is_rejected(client, db, factory, staff_headers, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_bytes", len(PDF) - 1)
    referral = factory.referral()

    response = client.post(
        f"/api/v1/referrals/{referral.id}/documents",
        files={"file": ("big.pdf", PDF, "application/pdf")},
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert db.query(Document).count() == 0


def test_upload_to_unknown_referral_is_404(client, staff_headers):
    response = client.post(
        "/api/v1/referrals/999/documents",
        files={"file": ("a.pdf", PDF, "application/pdf")},
        headers=staff_headers,
    )
    assert response.status_code == 404


def test_delete_document_with_missing_file(client, db, factory, staff_headers):
    referral = factory.referral()
    document = Document(
        referral_id=referral.id,
        file_name="gone.pdf",
        file_url=f"/uploads/referrals/{referral.id}/1-gone.pdf",
        file_size=1,
        content_type="application/pdf",
    )
    db.add(document)
    db.commit()

    response = client.delete(f"/api/v1/documents/{document.id}", headers=staff_headers)

    assert response.status_code == 200


# ─── CSV export ───────────────────────────────────────────────────────────────

def test_csv_header_and_quoting(factory, staff_user):
    practice = factory.practice(name="Smith, Jones & Co")
    doctor = factory.doctor(practice, name="Jane Smith", title="Dr.")
    referral = factory.referral(
        first="Anne",
        last="O'Neil",
        referring_practice_id=practice.id,
        referring_doctor_id=doctor.id,
        referring_doctor_name="ignored",
        status=ReferralStatus.NO_SHOW,
        patient_dob=date(1980, 1, 2),
        referral_date=datetime(2024, 5, 6, 15, 45),
        notes='Said "call after 3"\nsecond line',
        created_by_id=staff_user.id,
    )

    text = referrals_to_csv([referral])
    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == EXPORT_HEADERS
    assert len(rows[0]) == 17
    row = dict(zip(EXPORT_HEADERS, rows[1]))
    assert row["Referring Practice"] == "Smith, Jones & Co"
    assert row["Referring Doctor"] == "Dr. Jane Smith"
    assert row["Status"] == "No Show"
    assert row["Date of Birth"] == "1980-01-02"
    assert row["Referral Date"] == "2024-05-06"
    assert row["Appointment Date"] == ""
    assert row["Notes"] == 'Said "call after 3"\nsecond line'
    assert row["Created By"] == "Sam Staff"
    assert '"Smith, Jones & Co"' in text
    assert '"Said ""call after 3""' in text


def test_export_filename():
    assert export_filename(date(2024, 7, 9)) == "referrals-2024-07-09.csv"


def test_export_route_uses_status_and_dates_only(client, factory, staff_headers):
    practice = factory.practice()
    factory.referral(first="Keep", status=ReferralStatus.SCHEDULED, referral_date=datetime(2024, 2, 10))
    factory.referral(first="WrongStatus", status=ReferralStatus.NEW, referral_date=datetime(2024, 2, 11))
    factory.referral(first="TooLate", status=ReferralStatus.SCHEDULED, referral_date=datetime(2024, 3, 1))
    factory.referral(
        first="OtherPractice", status=ReferralStatus.SCHEDULED,
        referral_date=datetime(2024, 2, 12), referring_practice_id=practice.id,
    )

    response = client.get(
        "/api/v1/referrals/export",
        params={
            "status": "SCHEDULED",
            "date_from": "2024-02-01",
            "date_to": "2024-02-29",
            "search": "Keep",
            "practice_id": 999,
        },
        headers=staff_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"referrals-" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert [row[0] for row in rows[1:]] == ["OtherPractice", "Keep"]
