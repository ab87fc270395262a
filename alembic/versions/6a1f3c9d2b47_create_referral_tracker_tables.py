"""create_referral_tracker_tables

Revision ID: 6a1f3c9d2b47
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '6a1f3c9d2b47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role_enum = sa.Enum('STAFF', 'ADMIN', name='user_role')
referral_status_enum = sa.Enum('NEW', 'CONTACTED', 'SCHEDULED', 'COMPLETED', 'NO_SHOW', name='referral_status')

def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', user_role_enum, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'referring_practices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('fax', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_referring_practices_id', 'referring_practices', ['id'])
    op.create_index('ix_referring_practices_name', 'referring_practices', ['name'])

    op.create_table(
        'practice_locations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('fax', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('practice_id', sa.Integer(), sa.ForeignKey('referring_practices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_practice_locations_id', 'practice_locations', ['id'])
    op.create_index('ix_practice_locations_practice_id', 'practice_locations', ['practice_id'])

    op.create_table(
        'referring_doctors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('npi', sa.String(), nullable=True),
        sa.Column('specialty', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('practice_id', sa.Integer(), sa.ForeignKey('referring_practices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_referring_doctors_id', 'referring_doctors', ['id'])
    op.create_index('ix_referring_doctors_name', 'referring_doctors', ['name'])
    op.create_index('ix_referring_doctors_practice_id', 'referring_doctors', ['practice_id'])

    op.create_table(
        'doctor_locations',
        sa.Column('doctor_id', sa.Integer(), sa.ForeignKey('referring_doctors.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('practice_locations.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'provider_notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('provider_id', sa.Integer(), sa.ForeignKey('referring_doctors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_provider_notes_id', 'provider_notes', ['id'])
    op.create_index('ix_provider_notes_provider_id', 'provider_notes', ['provider_id'])

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_first_name', sa.String(), nullable=False),
        sa.Column('patient_last_name', sa.String(), nullable=False),
        sa.Column('patient_mrn', sa.String(), nullable=True),
        sa.Column('patient_phone', sa.String(), nullable=True),
        sa.Column('patient_email', sa.String(), nullable=True),
        sa.Column('patient_dob', sa.Date(), nullable=True),
        sa.Column('referring_practice_id', sa.Integer(), sa.ForeignKey('referring_practices.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('referring_location_id', sa.Integer(), sa.ForeignKey('practice_locations.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('referring_doctor_id', sa.Integer(), sa.ForeignKey('referring_doctors.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('referring_doctor_name', sa.String(), nullable=True),
        sa.Column('status', referral_status_enum, nullable=False),
        sa.Column('referral_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('appointment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('insurance_provider', sa.String(), nullable=True),
        sa.Column('insurance_member_id', sa.String(), nullable=True),
        sa.Column('insurance_group', sa.String(), nullable=True),
        sa.Column('auth_status', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_referrals_id', 'referrals', ['id'])
    op.create_index('ix_referrals_patient_last_name', 'referrals', ['patient_last_name'])
    op.create_index('ix_referrals_referring_practice_id', 'referrals', ['referring_practice_id'])
    op.create_index('ix_referrals_referring_location_id', 'referrals', ['referring_location_id'])
    op.create_index('ix_referrals_referring_doctor_id', 'referrals', ['referring_doctor_id'])
    op.create_index('ix_referrals_status', 'referrals', ['status'])
    op.create_index('ix_referrals_referral_date', 'referrals', ['referral_date'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('referral_id', sa.Integer(), sa.ForeignKey('referrals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('content_type', sa.String(), nullable=False),
        sa.Column('uploaded_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_documents_id', 'documents', ['id'])
    op.create_index('ix_documents_referral_id', 'documents', ['referral_id'])

def downgrade() -> None:
    op.drop_table('documents')
    op.drop_table('referrals')
    op.drop_table('provider_notes')
    op.drop_table('doctor_locations')
    op.drop_table('referring_doctors')
    op.drop_table('practice_locations')
    op.drop_table('referring_practices')
    op.drop_table('users')

    # Enum types only exist as named types on PostgreSQL
    referral_status_enum.drop(op.get_bind(), checkfirst=True)
    user_role_enum.drop(op.get_bind(), checkfirst=True)
