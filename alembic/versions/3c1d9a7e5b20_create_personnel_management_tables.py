"""create personnel management tables

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e5b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # ✅ ACCOUNTS AND ORGANISATION
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, comment='admin, director, staff, reservist'),
        sa.Column('company', sa.String(length=100), nullable=True),
        sa.Column('rank', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='pending, active, inactive'),
        sa.Column('service_id', sa.String(length=50), nullable=True),
        sa.Column('military_id', sa.String(length=50), nullable=True),
        sa.Column('serial_number', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        comment='Login accounts for staff and reservists',
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_service_id', 'users', ['service_id'])
    op.create_index('ix_users_military_id', 'users', ['military_id'])
    op.create_index('ix_users_serial_number', 'users', ['serial_number'])

    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'personnels',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True, comment='Linked login account, if any'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('rank', sa.String(length=50), nullable=True),
        sa.Column('service_number', sa.String(length=50), nullable=True, comment='Service number'),
        sa.Column('afp_serial_number', sa.String(length=50), nullable=True, comment='AFP serial number on older imports'),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('company_name', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, comment='Ready, Not Ready, Medical Hold, Training'),
        sa.Column('date_joined', sa.Date(), nullable=True),
        sa.Column('last_promotion_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_personnel_service_number', 'personnels', ['service_number'])
    op.create_index('ix_personnel_afp_serial_number', 'personnels', ['afp_serial_number'])
    op.create_index('ix_personnel_user_id', 'personnels', ['user_id'])

    # ✅ BINARY OBJECT STORE
    op.create_table(
        'fs_files',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('bucket', sa.String(length=50), nullable=False, comment='Logical bucket, e.g. fs or policyFiles'),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=True),
        sa.Column('length', sa.Integer(), nullable=False),
        sa.Column('chunk_size', sa.Integer(), nullable=False),
        sa.Column('upload_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_fs_files_bucket_filename', 'fs_files', ['bucket', 'filename'])

    op.create_table(
        'fs_chunks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('file_id', sa.String(length=36), nullable=False),
        sa.Column('n', sa.Integer(), nullable=False, comment='Sequence number, starting at 0'),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.ForeignKeyConstraint(['file_id'], ['fs_files.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_id', 'n', name='uq_fs_chunks_file_n'),
    )
    op.create_index('ix_fs_chunks_file_id', 'fs_chunks', ['file_id'])

    # ✅ DOCUMENTS AND POLICIES
    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False, comment='Owner (user or personnel id)'),
        sa.Column('uploaded_by', sa.String(length=36), nullable=True),
        sa.Column('verified_by', sa.String(length=36), nullable=True),
        sa.Column('verified_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=False),
        sa.Column('file_id', sa.String(length=36), nullable=True, comment='Blob store file id when stored internally'),
        sa.Column('file_name', sa.String(length=255), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=True),
        sa.Column('upload_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['verified_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        comment='Uploaded personnel documents awaiting or past verification',
    )
    op.create_index('ix_documents_user_id', 'documents', ['user_id'])
    op.create_index('ix_documents_status', 'documents', ['status'])

    op.create_table(
        'policies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('version', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('effective_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('document_url', sa.String(length=500), nullable=True),
        sa.Column('file_id', sa.String(length=36), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('title', 'version', name='uq_policy_title_version'),
    )

    # ✅ TRAININGS
    op.create_table(
        'trainings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=True, comment='e.g. seminar, field exercise, certificate course'),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('instructor', sa.String(length=255), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False, comment='0 means unlimited'),
        sa.Column('registered', sa.Integer(), nullable=False),
        sa.Column('eligible_ranks', sa.JSON(), nullable=True, comment='Empty or null means all ranks'),
        sa.Column('eligible_companies', sa.JSON(), nullable=True, comment='Empty or null means all companies'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='upcoming, ongoing, completed, cancelled'),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'training_attendees',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('training_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('registration_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['training_id'], ['trainings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('training_id', 'user_id', name='uq_training_attendee'),
    )
    op.create_index('ix_training_attendees_training_id', 'training_attendees', ['training_id'])

    op.create_table(
        'training_registrations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('training_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('registration_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('performance_score', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['training_id'], ['trainings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('training_id', 'user_id', name='uq_training_registration'),
    )
    op.create_index('ix_training_registrations_training_id', 'training_registrations', ['training_id'])
    op.create_index('ix_training_registrations_user_id', 'training_registrations', ['user_id'])

    # ✅ RESERVIST INFORMATION DATA SHEETS
    op.create_table(
        'rids',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('is_complete', sa.Boolean(), nullable=False),
        sa.Column('is_submitted', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('submission_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verification_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verified_by', sa.String(length=36), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('file_path', sa.String(length=500), nullable=True),
        sa.Column('personal_information', sa.JSON(), nullable=True),
        sa.Column('contact_information', sa.JSON(), nullable=True),
        sa.Column('identification_info', sa.JSON(), nullable=True),
        sa.Column('educational_background', sa.JSON(), nullable=True),
        sa.Column('occupation_info', sa.JSON(), nullable=True),
        sa.Column('military_training', sa.JSON(), nullable=True),
        sa.Column('special_skills', sa.JSON(), nullable=True),
        sa.Column('awards', sa.JSON(), nullable=True),
        sa.Column('assignments', sa.JSON(), nullable=True),
        sa.Column('section_completion', sa.JSON(), nullable=True),
        sa.Column('photo_url', sa.String(length=500), nullable=True),
        sa.Column('signature_url', sa.String(length=500), nullable=True),
        sa.Column('attesting_personnel', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_rids_user_id', 'rids', ['user_id'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_rids_user_id', table_name='rids')
    op.drop_table('rids')
    op.drop_index('ix_training_registrations_user_id', table_name='training_registrations')
    op.drop_index('ix_training_registrations_training_id', table_name='training_registrations')
    op.drop_table('training_registrations')
    op.drop_index('ix_training_attendees_training_id', table_name='training_attendees')
    op.drop_table('training_attendees')
    op.drop_table('trainings')
    op.drop_table('policies')
    op.drop_index('ix_documents_status', table_name='documents')
    op.drop_index('ix_documents_user_id', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_fs_chunks_file_id', table_name='fs_chunks')
    op.drop_table('fs_chunks')
    op.drop_index('ix_fs_files_bucket_filename', table_name='fs_files')
    op.drop_table('fs_files')
    op.drop_index('ix_personnel_user_id', table_name='personnels')
    op.drop_index('ix_personnel_afp_serial_number', table_name='personnels')
    op.drop_index('ix_personnel_service_number', table_name='personnels')
    op.drop_table('personnels')
    op.drop_table('companies')
    op.drop_index('ix_users_serial_number', table_name='users')
    op.drop_index('ix_users_military_id', table_name='users')
    op.drop_index('ix_users_service_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
