"""create child collection tables

Revision ID: 20261002_0930_create_collections
Revises: 20261002_0900_create_entities
Create Date: 2026-10-02 09:30:00
"""
from alembic import op
import sqlalchemy as sa

revision = '20261002_0930_create_collections'
down_revision = '20261002_0900_create_entities'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'entity_media',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('parent_kind', sa.String(32), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=False),
        sa.Column('media_url', sa.Text(), nullable=False),
        sa.Column('media_type', sa.String(16), nullable=False, server_default='gallery'),
        sa.Column('alt_text', sa.String(255), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_entity_media_parent', 'entity_media', ['parent_kind', 'parent_id'])
    op.create_table(
        'entity_media_translations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('entity_media.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_code', sa.String(8), nullable=False),
        sa.Column('alt_text', sa.String(255), nullable=True),
        sa.UniqueConstraint('item_id', 'language_code'),
    )
    op.create_index('ix_entity_media_translations_item_id', 'entity_media_translations', ['item_id'])

    op.create_table(
        'itinerary_days',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('parent_kind', sa.String(32), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_itinerary_days_parent', 'itinerary_days', ['parent_kind', 'parent_id'])
    op.create_table(
        'itinerary_day_translations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('itinerary_days.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_code', sa.String(8), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('item_id', 'language_code'),
    )
    op.create_index('ix_itinerary_day_translations_item_id', 'itinerary_day_translations', ['item_id'])

    op.create_table(
        'itinerary_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day_id', sa.Integer(), sa.ForeignKey('itinerary_days.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_time', sa.String(8), nullable=True),
        sa.Column('end_time', sa.String(8), nullable=True),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_itinerary_items_day_id', 'itinerary_items', ['day_id'])
    op.create_table(
        'itinerary_item_translations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('itinerary_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_code', sa.String(8), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('item_id', 'language_code'),
    )
    op.create_index('ix_itinerary_item_translations_item_id', 'itinerary_item_translations', ['item_id'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tag_key', sa.String(64), nullable=False, unique=True),
        sa.Column('tag_name', sa.String(128), nullable=False),
    )
    op.create_table(
        'entity_tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('parent_kind', sa.String(32), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=False),
        sa.Column('tag_id', sa.Integer(), sa.ForeignKey('tags.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_entity_tags_parent', 'entity_tags', ['parent_kind', 'parent_id'])


def downgrade() -> None:
    op.drop_index('ix_entity_tags_parent', table_name='entity_tags')
    op.drop_table('entity_tags')
    op.drop_table('tags')
    op.drop_index('ix_itinerary_item_translations_item_id', table_name='itinerary_item_translations')
    op.drop_table('itinerary_item_translations')
    op.drop_index('ix_itinerary_items_day_id', table_name='itinerary_items')
    op.drop_table('itinerary_items')
    op.drop_index('ix_itinerary_day_translations_item_id', table_name='itinerary_day_translations')
    op.drop_table('itinerary_day_translations')
    op.drop_index('ix_itinerary_days_parent', table_name='itinerary_days')
    op.drop_table('itinerary_days')
    op.drop_index('ix_entity_media_translations_item_id', table_name='entity_media_translations')
    op.drop_table('entity_media_translations')
    op.drop_index('ix_entity_media_parent', table_name='entity_media')
    op.drop_table('entity_media')
