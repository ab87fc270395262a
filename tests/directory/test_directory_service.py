"""
Tests for the referring directory: delete guards, affiliations and notes.
"""
import pytest

from src.directory import service
from src.directory.consistency import (
    count_referencing_referrals,
    eligible_doctors,
    guard_delete,
    validate_referral_sources,
)
from src.directory.models import PracticeLocation, ProviderNote, ReferringDoctor, ReferringPractice
from src.exceptions import ResourceNotFoundException
from src.referrals.models import Referral


def test_practice_delete_blocked_with_count(db, factory):
    practice = factory.practice()
    factory.referral(referring_practice_id=practice.id)
    factory.referral(first="Lee", referring_practice_id=practice.id)

    result = service.delete_practice(db, practice.id)

    assert not result.success
    assert result.is_blocked
    assert result.count == 2
    assert result.error == "Cannot delete: this practice has 2 referral(s) linked to it."
    assert db.get(ReferringPractice, practice.id) is not None


def test_doctor_delete_message_uses_them(db, factory):
    practice = factory.practice()
    doctor = factory.doctor(practice)
    factory.referral(referring_practice_id=practice.id, referring_doctor_id=doctor.id)

    result = service.delete_doctor(db, doctor.id)

    assert result.count == 1
    assert result.error == "Cannot delete: this provider has 1 referral(s) linked to them."


def test_location_delete_blocked(db, factory):
    practice = factory.practice()
    location = factory.location(practice)
    factory.referral(referring_practice_id=practice.id, referring_location_id=location.id)

    result = service.delete_location(db, location.id)

    assert result.is_blocked
    assert result.count == 1


def test_unreferenced_practice_delete_cascades(db, factory):
    practice = factory.practice()
    location = factory.location(practice)
    doctor = factory.doctor(practice, locations=[location])
    location_id, doctor_id = location.id, doctor.id

    result = service.delete_practice(db, practice.id)

    assert result.success
    db.expire_all()
    assert db.get(ReferringPractice, practice.id) is None
    assert db.get(PracticeLocation, location_id) is None
    assert db.get(ReferringDoctor, doctor_id) is None


def test_referral_on_child_blocks_practice_delete_at_database(db, factory):
    practice = factory.practice()
    other = factory.practice(name="Other Practice")
    location = factory.location(practice)
    # Referral names a location of ``practice`` but the practice column points elsewhere
    factory.referral(referring_practice_id=other.id, referring_location_id=location.id)

    result = service.delete_practice(db, practice.id)

    assert result.is_blocked
    assert result.count == 0
    assert "still have referrals" in result.error
    db.expire_all()
    assert db.get(ReferringPractice, practice.id) is not None
    assert db.get(PracticeLocation, location.id) is not None


def test_guard_converts_integrity_error_to_block(db, factory, monkeypatch):
    practice = factory.practice()
    factory.referral(referring_practice_id=practice.id)

    # Simulate a referral arriving between the count and the delete
    counts = iter([0, 1])
    monkeypatch.setattr(
        "src.directory.consistency.count_referencing_referrals",
        lambda db, column, entity_id: next(counts),
    )

    result = guard_delete(db, practice, Referral.referring_practice_id, "practice")

    assert result.is_blocked
    assert result.count == 1
    db.expire_all()
    assert db.get(ReferringPractice, practice.id) is not None


def test_count_referencing_referrals(db, factory):
    practice = factory.practice()
    assert count_referencing_referrals(db, Referral.referring_practice_id, practice.id) == 0
    factory.referral(referring_practice_id=practice.id)
    assert count_referencing_referrals(db, Referral.referring_practice_id, practice.id) == 1


def test_create_practice_validates_name(db):
    result = service.create_practice(db, {"name": "   ", "phone": ""})
    assert not result.success
    assert result.errors == {"name": ["Practice name is required"]}


def test_create_practice_normalizes_blank_fields(db):
    result = service.create_practice(db, {"name": "  Lakeside Clinic ", "phone": "", "fax": "555-0101"})
    assert result.success
    practice = db.get(ReferringPractice, result.id)
    assert practice.name == "Lakeside Clinic"
    assert practice.phone is None
    assert practice.fax == "555-0101"


def test_create_location_requires_existing_practice(db):
    result = service.create_location(db, {"name": "Annex", "practice_id": 999})
    assert result.errors == {"practice_id": ["Practice not found"]}


def test_create_doctor_rejects_foreign_location(db, factory):
    practice = factory.practice()
    other = factory.practice(name="Other Practice")
    foreign = factory.location(other, name="Elsewhere")

    result = service.create_doctor(db, {
        "name": "Ann Lee",
        "practice_id": practice.id,
        "location_ids": [foreign.id],
    })

    assert not result.success
    assert result.errors == {"location_ids": ["Locations must belong to the provider's practice"]}


def test_create_doctor_rejects_bad_email(db, factory):
    practice = factory.practice()
    result = service.create_doctor(db, {"name": "Ann Lee", "practice_id": practice.id, "email": "nope"})
    assert "email" in result.errors


def test_create_doctor_accepts_blank_email_and_free_text_npi(db, factory):
    practice = factory.practice()
    result = service.create_doctor(db, {
        "name": "Ann Lee",
        "practice_id": practice.id,
        "email": "",
        "npi": "not-a-real-npi",
    })
    assert result.success
    doctor = db.get(ReferringDoctor, result.id)
    assert doctor.email is None
    assert doctor.npi == "not-a-real-npi"


def test_update_doctor_replaces_affiliation_set(db, factory):
    practice = factory.practice()
    first = factory.location(practice, name="A Site")
    second = factory.location(practice, name="B Site")
    third = factory.location(practice, name="C Site")
    doctor = factory.doctor(practice, locations=[first, second])

    result = service.update_doctor(db, doctor.id, {
        "name": "Jane Smith",
        "practice_id": practice.id,
        "location_ids": [third.id],
    })

    assert result.success
    db.expire_all()
    assert db.get(ReferringDoctor, doctor.id).location_ids == [third.id]


def test_update_doctor_with_empty_set_clears_affiliations(db, factory):
    practice = factory.practice()
    location = factory.location(practice)
    doctor = factory.doctor(practice, locations=[location])

    result = service.update_doctor(db, doctor.id, {"name": "Jane Smith", "practice_id": practice.id})

    assert result.success
    db.expire_all()
    assert db.get(ReferringDoctor, doctor.id).location_ids == []


def test_moving_location_drops_foreign_affiliations(db, factory):
    practice = factory.practice()
    other = factory.practice(name="Other Practice")
    location = factory.location(practice)
    doctor = factory.doctor(practice, locations=[location])

    result = service.update_location(db, location.id, {"name": "Main Street", "practice_id": other.id})

    assert result.success
    db.expire_all()
    assert db.get(ReferringDoctor, doctor.id).location_ids == []
    assert db.get(PracticeLocation, location.id).practice_id == other.id


def test_eligible_doctors_narrowed_by_location(db, factory):
    practice = factory.practice()
    north = factory.location(practice, name="North")
    south = factory.location(practice, name="South")
    alice = factory.doctor(practice, name="Alice", locations=[north])
    bob = factory.doctor(practice, name="Bob", locations=[south])
    carol = factory.doctor(practice, name="Carol", locations=[north, south])

    assert [d.id for d in eligible_doctors(db, practice.id)] == [alice.id, bob.id, carol.id]
    assert [d.id for d in eligible_doctors(db, practice.id, north.id)] == [alice.id, carol.id]
    assert [d.id for d in eligible_doctors(db, practice.id, south.id)] == [bob.id, carol.id]


def test_referral_sources_must_belong_to_practice(db, factory):
    practice = factory.practice()
    other = factory.practice(name="Other Practice")
    location = factory.location(other)
    doctor = factory.doctor(other)

    errors = validate_referral_sources(db, practice.id, location.id, doctor.id)

    assert errors == {
        "referring_location_id": ["Location does not belong to the selected practice"],
        "referring_doctor_id": ["Provider does not belong to the selected practice"],
    }
    assert validate_referral_sources(db, other.id, location.id, doctor.id) == {}
    assert validate_referral_sources(db, None, None, None) == {}
    assert validate_referral_sources(db, 999, None, None) == {
        "referring_practice_id": ["Referring practice not found"]
    }


def test_list_practices_counts_referrals(db, factory):
    zeta = factory.practice(name="Zeta Health")
    alpha = factory.practice(name="Alpha Care")
    location = factory.location(alpha)
    doctor = factory.doctor(alpha, locations=[location])
    factory.referral(referring_practice_id=alpha.id, referring_location_id=location.id, referring_doctor_id=doctor.id)
    factory.referral(referring_practice_id=alpha.id)

    entries = service.list_practices(db)

    assert [entry.name for entry in entries] == ["Alpha Care", "Zeta Health"]
    assert entries[0].referral_count == 2
    assert entries[0].locations[0].referral_count == 1
    assert entries[0].doctors[0].referral_count == 1
    assert entries[0].doctors[0].location_ids == [location.id]
    assert entries[1].referral_count == 0
    assert entries[1].id == zeta.id


def test_notes_lifecycle(db, factory, staff_user):
    practice = factory.practice()
    doctor = factory.doctor(practice)

    assert service.create_provider_note(db, doctor.id, "   ", staff_user).error == "Note cannot be empty"

    first = service.create_provider_note(db, doctor.id, " Prefers fax ", staff_user)
    second = service.create_provider_note(db, doctor.id, "Call before noon", staff_user)
    assert first.success and second.success
    assert db.get(ProviderNote, first.id).content == "Prefers fax"

    detail = service.get_doctor_detail(db, doctor.id)
    assert [note.id for note in detail.notes] == [second.id, first.id]
    assert detail.notes[0].created_by_name == "Sam Staff"

    assert service.update_provider_note(db, first.id, "").error == "Note cannot be empty"
    assert service.update_provider_note(db, first.id, "Prefers email").success
    assert db.get(ProviderNote, first.id).content == "Prefers email"

    assert service.delete_provider_note(db, first.id).success
    assert db.get(ProviderNote, first.id) is None


def test_notes_on_unknown_provider_or_note(db, staff_user):
    with pytest.raises(ResourceNotFoundException):
        service.create_provider_note(db, 999, "hello", staff_user)
    with pytest.raises(ResourceNotFoundException):
        service.update_provider_note(db, 999, "hello")
    with pytest.raises(ResourceNotFoundException):
        service.delete_provider_note(db, 999)


def test_note_edit_time_is_naive_utc(db, factory, staff_user, monkeypatch):
    practice = factory.practice()
    doctor = factory.doctor(practice)
    note_id = service.create_provider_note(db, doctor.id, "Prefers fax", staff_user).id

    # keep the in-memory value as written, before the database round trip
    monkeypatch.setattr(service, "_commit", lambda db, action: None)
    assert service.update_provider_note(db, note_id, "Prefers email").success

    note = db.get(ProviderNote, note_id)
    assert note.updated_at is not None
    assert note.updated_at.tzinfo is None
