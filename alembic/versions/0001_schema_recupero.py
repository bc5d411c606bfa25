from alembic import op
import sqlalchemy as sa

revision = '0001_schema_recupero'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'teachers',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('cognome', sa.String(100), nullable=False),
        sa.Column('nome', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_teachers_cognome', 'teachers', ['cognome'])
    op.create_index('ix_teachers_nome', 'teachers', ['nome'])

    op.create_table(
        'school_years',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(20), nullable=False, unique=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('weeks_count', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_school_years_is_active', 'school_years', ['is_active'])

    op.create_table(
        'teacher_budgets',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(as_uuid=True), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('school_year_id', sa.Uuid(as_uuid=True), sa.ForeignKey('school_years.id', ondelete='CASCADE'), nullable=False),
        sa.Column('minutes_weekly', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('minutes_annual', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('modules_annual', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('minutes_used', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('modules_used', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('import_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('import_source', sa.String(255), nullable=True),
        sa.UniqueConstraint('teacher_id', 'school_year_id', name='uq_budget_teacher_year'),
    )
    op.create_index('ix_teacher_budgets_teacher_id', 'teacher_budgets', ['teacher_id'])
    op.create_index('ix_teacher_budgets_school_year_id', 'teacher_budgets', ['school_year_id'])

    op.create_table(
        'recovery_types',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(7), nullable=False),
        sa.Column('default_duration', sa.Integer(), nullable=True),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'recovery_activities',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(as_uuid=True), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('school_year_id', sa.Uuid(as_uuid=True), sa.ForeignKey('school_years.id'), nullable=False),
        sa.Column('recovery_type_id', sa.Uuid(as_uuid=True), sa.ForeignKey('recovery_types.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('module_number', sa.Integer(), nullable=False),
        sa.Column('class_name', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('co_teacher_name', sa.String(200), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('modules_equivalent', sa.Numeric(6, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='planned'),
        sa.Column('created_by', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('planned', 'completed')", name='ck_activity_status'),
        sa.CheckConstraint('module_number BETWEEN 1 AND 12', name='ck_activity_module_number'),
    )
    op.create_index('ix_recovery_activities_teacher_id', 'recovery_activities', ['teacher_id'])
    op.create_index('ix_recovery_activities_school_year_id', 'recovery_activities', ['school_year_id'])
    op.create_index('ix_recovery_activities_recovery_type_id', 'recovery_activities', ['recovery_type_id'])
    op.create_index('ix_recovery_activities_date', 'recovery_activities', ['date'])


def downgrade():
    op.drop_table('recovery_activities')
    op.drop_table('recovery_types')
    op.drop_table('teacher_budgets')
    op.drop_table('school_years')
    op.drop_table('teachers')
