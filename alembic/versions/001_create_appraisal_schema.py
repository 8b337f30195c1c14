"""Create appraisal schema

Revision ID: 001
Revises: 
Create Date: 2025-04-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


user_role = postgresql.ENUM(
    'TEACHER', 'HOD', 'IQAC', 'PRINCIPAL', 'ADMIN',
    name='user_role', create_type=False
)
appraisal_status = postgresql.ENUM(
    'DRAFT', 'SUBMITTED', 'HOD_REVIEWED', 'IQAC_REVIEWED', 'APPROVED', 'REJECTED', 'LOCKED',
    name='appraisal_status', create_type=False
)


def upgrade():
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    appraisal_status.create(bind, checkfirst=True)

    # Users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_no', sa.String(length=20), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('designation', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_employee_no', 'users', ['employee_no'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_department', 'users', ['department'])

    # Appraisal cycles table
    op.create_table('appraisal_cycles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('academic_year', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_appraisal_cycles_academic_year', 'appraisal_cycles', ['academic_year'])
    op.create_index('ix_appraisal_cycles_is_open', 'appraisal_cycles', ['is_open'])

    # Appraisals table
    op.create_table('appraisals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('cycle_id', sa.Integer(), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('status', appraisal_status, nullable=False),
        sa.Column('parts', sa.JSON(), nullable=False, comment='Raw values per part key A-E'),
        sa.Column('totals', sa.JSON(), nullable=False, comment='Score and max per part plus overall'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['teacher_id'], ['users.id']),
        sa.ForeignKeyConstraint(['cycle_id'], ['appraisal_cycles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('teacher_id', 'cycle_id', name='uq_appraisal_teacher_cycle')
    )
    op.create_index('ix_appraisals_teacher_id', 'appraisals', ['teacher_id'])
    op.create_index('ix_appraisals_cycle_id', 'appraisals', ['cycle_id'])
    op.create_index('ix_appraisals_department', 'appraisals', ['department'])
    op.create_index('ix_appraisals_status', 'appraisals', ['status'])

    # Appraisal history table (append-only)
    op.create_table('appraisal_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('appraisal_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('from_status', appraisal_status, nullable=False),
        sa.Column('to_status', appraisal_status, nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('actor_role', user_role, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('comment', sa.String(length=2000), nullable=True),
        sa.ForeignKeyConstraint(['appraisal_id'], ['appraisals.id']),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('appraisal_id', 'sequence', name='uq_appraisal_history_sequence')
    )
    op.create_index('ix_appraisal_history_appraisal_id', 'appraisal_history', ['appraisal_id'])


def downgrade():
    # Drop tables in reverse order
    op.drop_table('appraisal_history')
    op.drop_table('appraisals')
    op.drop_table('appraisal_cycles')
    op.drop_table('users')

    # Drop enum types
    op.execute('DROP TYPE IF EXISTS appraisal_status')
    op.execute('DROP TYPE IF EXISTS user_role')
