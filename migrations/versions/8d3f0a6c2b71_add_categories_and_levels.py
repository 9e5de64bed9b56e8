"""add categories and levels

Revision ID: 8d3f0a6c2b71
Revises: 4b1c7e2d9a10
Create Date: 2026-10-17 15:40:02.117093

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8d3f0a6c2b71'
down_revision: Union[str, None] = '4b1c7e2d9a10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_categories_id'), 'categories', ['id'], unique=False)
    op.create_index(op.f('ix_categories_title'), 'categories', ['title'], unique=True)

    op.create_table(
        'sub_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category_id', 'title', name='unique_category_sub_category')
    )
    op.create_index(op.f('ix_sub_categories_id'), 'sub_categories', ['id'], unique=False)
    op.create_index(op.f('ix_sub_categories_category_id'), 'sub_categories', ['category_id'], unique=False)

    op.create_table(
        'levels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_levels_id'), 'levels', ['id'], unique=False)
    op.create_index(op.f('ix_levels_name'), 'levels', ['name'], unique=True)

    with op.batch_alter_table('courses') as batch_op:
        batch_op.alter_column(
            'level',
            existing_type=sa.Enum('beginner', 'intermediate', 'advanced', 'all', name='courselevelenum'),
            type_=sa.String(length=100),
            existing_nullable=False,
            postgresql_using='level::text',
        )
        batch_op.add_column(sa.Column('category_id', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('sub_category_id', sa.Integer(), nullable=True))
        batch_op.create_index(batch_op.f('ix_courses_category_id'), ['category_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_courses_sub_category_id'), ['sub_category_id'], unique=False)
        batch_op.create_foreign_key('fk_courses_category_id', 'categories', ['category_id'], ['id'], ondelete='SET NULL')
        batch_op.create_foreign_key('fk_courses_sub_category_id', 'sub_categories', ['sub_category_id'], ['id'], ondelete='SET NULL')
    sa.Enum(name='courselevelenum').drop(op.get_bind(), checkfirst=True)


def downgrade() -> None:
    level_enum = sa.Enum('beginner', 'intermediate', 'advanced', 'all', name='courselevelenum')
    level_enum.create(op.get_bind(), checkfirst=True)
    # levels added at runtime have no enum member
    op.execute("UPDATE courses SET level = 'all' WHERE level NOT IN ('beginner', 'intermediate', 'advanced', 'all')")
    with op.batch_alter_table('courses') as batch_op:
        batch_op.drop_constraint('fk_courses_sub_category_id', type_='foreignkey')
        batch_op.drop_constraint('fk_courses_category_id', type_='foreignkey')
        batch_op.drop_index(batch_op.f('ix_courses_sub_category_id'))
        batch_op.drop_index(batch_op.f('ix_courses_category_id'))
        batch_op.drop_column('sub_category_id')
        batch_op.drop_column('category_id')
        batch_op.alter_column(
            'level',
            existing_type=sa.String(length=100),
            type_=level_enum,
            existing_nullable=False,
            postgresql_using='level::courselevelenum',
        )

    op.drop_index(op.f('ix_levels_name'), table_name='levels')
    op.drop_index(op.f('ix_levels_id'), table_name='levels')
    op.drop_table('levels')
    op.drop_index(op.f('ix_sub_categories_category_id'), table_name='sub_categories')
    op.drop_index(op.f('ix_sub_categories_id'), table_name='sub_categories')
    op.drop_table('sub_categories')
    op.drop_index(op.f('ix_categories_id'), table_name='categories')
    op.drop_index(op.f('ix_categories_title'), table_name='categories')
    op.drop_table('categories')
