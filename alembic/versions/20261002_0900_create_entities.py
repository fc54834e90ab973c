"""create business entity and entity translation tables

Revision ID: 20261002_0900_create_entities
Revises:
Create Date: 2026-10-02 09:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = '20261002_0900_create_entities'
down_revision = None
branch_labels = None
depends_on = None


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)


def _translation_table(name, parent, columns):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_id', sa.Integer(), sa.ForeignKey(f'{parent}.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_code', sa.String(8), nullable=False),
        *columns,
        sa.UniqueConstraint('entity_id', 'language_code'),
    )
    op.create_index(f'ix_{name}_entity_id', name, ['entity_id'])


def upgrade() -> None:
    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('address_line1', sa.String(255), nullable=True),
        sa.Column('area_or_zone', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('awards', sa.JSON(), nullable=True),
        sa.Column('service_areas', sa.JSON(), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(32), nullable=True),
        sa.Column('postal_code', sa.String(16), nullable=True),
        _updated_at(),
    )
    _translation_table('vendor_translations', 'vendors', [
        sa.Column('business_name', sa.String(255), nullable=True),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('address_line1', sa.String(255), nullable=True),
        sa.Column('area_or_zone', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('awards', sa.JSON(), nullable=True),
        sa.Column('service_areas', sa.JSON(), nullable=True),
    ])

    op.create_table(
        'artisans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('artisan_name', sa.String(255), nullable=False),
        sa.Column('craft', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('specializations', sa.JSON(), nullable=True),
        sa.Column('certifications', sa.JSON(), nullable=True),
        sa.Column('awards', sa.JSON(), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(32), nullable=True),
        sa.Column('years_of_experience', sa.Integer(), nullable=True),
        _updated_at(),
    )
    _translation_table('artisan_translations', 'artisans', [
        sa.Column('artisan_name', sa.String(255), nullable=True),
        sa.Column('craft', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('specializations', sa.JSON(), nullable=True),
        sa.Column('certifications', sa.JSON(), nullable=True),
        sa.Column('awards', sa.JSON(), nullable=True),
    ])

    op.create_table(
        'local_guides',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('guide_name', sa.String(255), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('specializations', sa.JSON(), nullable=True),
        sa.Column('expertise', sa.JSON(), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(32), nullable=True),
        sa.Column('languages', sa.JSON(), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=True),
        _updated_at(),
    )
    _translation_table('local_guide_translations', 'local_guides', [
        sa.Column('guide_name', sa.String(255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('specializations', sa.JSON(), nullable=True),
        sa.Column('expertise', sa.JSON(), nullable=True),
    ])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_name', sa.String(255), nullable=False),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('venue_name', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('highlights', sa.JSON(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('ticket_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        _updated_at(),
    )
    _translation_table('event_translations', 'events', [
        sa.Column('event_name', sa.String(255), nullable=True),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('venue_name', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('highlights', sa.JSON(), nullable=True),
    ])

    op.create_table(
        'tours',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tour_name', sa.String(255), nullable=False),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('meeting_point', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('highlights', sa.JSON(), nullable=True),
        sa.Column('inclusions', sa.JSON(), nullable=True),
        sa.Column('exclusions', sa.JSON(), nullable=True),
        sa.Column('duration_days', sa.Integer(), nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('max_group_size', sa.Integer(), nullable=True),
        _updated_at(),
    )
    _translation_table('tour_translations', 'tours', [
        sa.Column('tour_name', sa.String(255), nullable=True),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('full_description', sa.Text(), nullable=True),
        sa.Column('meeting_point', sa.String(255), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('highlights', sa.JSON(), nullable=True),
        sa.Column('inclusions', sa.JSON(), nullable=True),
        sa.Column('exclusions', sa.JSON(), nullable=True),
    ])


def downgrade() -> None:
    for name in ('tour', 'event', 'local_guide', 'artisan', 'vendor'):
        op.drop_index(f'ix_{name}_translations_entity_id', table_name=f'{name}_translations')
        op.drop_table(f'{name}_translations')
    for name in ('tours', 'events', 'local_guides', 'artisans', 'vendors'):
        op.drop_table(name)
