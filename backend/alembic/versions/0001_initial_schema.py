"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

Creates the admissions tables:
- universities -> colleges -> departments hierarchy
- students with GPA components
- applications with the one-per-university constraint
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create hierarchy, student and application tables."""

    op.create_table(
        'universities',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('name', name='uq_universities_name'),
    )

    op.create_table(
        'colleges',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('university_id', sa.Uuid(), sa.ForeignKey('universities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('university_id', 'name', name='uq_colleges_university_name'),
    )
    op.create_index('ix_colleges_university_id', 'colleges', ['university_id'])

    op.create_table(
        'departments',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('college_id', sa.Uuid(), sa.ForeignKey('colleges.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_applications', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('college_id', 'name', name='uq_departments_college_name'),
        sa.CheckConstraint('capacity > 0', name='ck_departments_capacity_positive'),
        sa.CheckConstraint(
            'current_applications >= 0',
            name='ck_departments_current_applications_non_negative',
        ),
    )
    op.create_index('ix_departments_college_id', 'departments', ['college_id'])

    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('overall_gpa', sa.Float(), nullable=True),
        sa.Column('gpa_1_1', sa.Float(), nullable=False, server_default='-1'),
        sa.Column('gpa_1_2', sa.Float(), nullable=False, server_default='-1'),
        sa.Column('gpa_2_1', sa.Float(), nullable=False, server_default='-1'),
        sa.Column('gpa_2_2', sa.Float(), nullable=False, server_default='-1'),
        sa.Column('gpa_3_1', sa.Float(), nullable=False, server_default='-1'),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_students_email', 'students', ['email'])

    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('department_id', sa.Uuid(), sa.ForeignKey('departments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('university_id', sa.Uuid(), sa.ForeignKey('universities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('student_id', 'university_id', name='uq_applications_student_university'),
        sa.UniqueConstraint('student_id', 'department_id', name='uq_applications_student_department'),
    )
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_department_id', 'applications', ['department_id'])
    op.create_index('ix_applications_university_id', 'applications', ['university_id'])


def downgrade() -> None:
    """Drop all admissions tables."""
    op.drop_index('ix_applications_university_id', table_name='applications')
    op.drop_index('ix_applications_department_id', table_name='applications')
    op.drop_index('ix_applications_student_id', table_name='applications')
    op.drop_table('applications')
    op.drop_index('ix_students_email', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_departments_college_id', table_name='departments')
    op.drop_table('departments')
    op.drop_index('ix_colleges_university_id', table_name='colleges')
    op.drop_table('colleges')
    op.drop_table('universities')
