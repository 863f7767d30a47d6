"""Create students table

Revision ID: 001_create_students_table
Revises: None
Create Date: 2025-06-09

Creates the students table with unique username / matric_number and the
two lookup indexes. On PostgreSQL the uuid-ossp extension provides the
server-side id default; other dialects rely on the ORM generating ids.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_create_students_table'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    is_postgres = op.get_bind().dialect.name == 'postgresql'

    id_kwargs = {}
    if is_postgres:
        op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
        id_kwargs['server_default'] = sa.text('uuid_generate_v4()')

    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), primary_key=True, **id_kwargs),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('matric_number', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('username', name='students_username_key'),
        sa.UniqueConstraint('matric_number', name='students_matric_number_key'),
    )

    op.create_index('idx_students_username', 'students', ['username'])
    op.create_index('idx_students_matric_number', 'students', ['matric_number'])


def downgrade() -> None:
    op.drop_index('idx_students_matric_number', table_name='students')
    op.drop_index('idx_students_username', table_name='students')
    op.drop_table('students')
