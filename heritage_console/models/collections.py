"""
Child collection tables shared by every variant.

Media, itinerary days and tag associations hang off an entity through
(parent_kind, parent_id); itinerary items hang off an itinerary day. Each
translatable collection has an (item_id, language_code) translation table.
"""
from sqlalchemy import (
    Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint, Index,
)

from heritage_console.core.db import Base


class EntityMedia(Base):
    __tablename__ = "entity_media"
    __table_args__ = (Index("ix_entity_media_parent", "parent_kind", "parent_id"),)

    id = Column(Integer, primary_key=True)
    parent_kind = Column(String(32), nullable=False)
    parent_id = Column(Integer, nullable=False)
    media_url = Column(Text, nullable=False, default="")
    media_type = Column(String(16), nullable=False, default="gallery")  # hero | gallery
    alt_text = Column(String(255), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)


class EntityMediaTranslation(Base):
    __tablename__ = "entity_media_translations"
    __table_args__ = (UniqueConstraint("item_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("entity_media.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    alt_text = Column(String(255), nullable=True)


class ItineraryDay(Base):
    __tablename__ = "itinerary_days"
    __table_args__ = (Index("ix_itinerary_days_parent", "parent_kind", "parent_id"),)

    id = Column(Integer, primary_key=True)
    parent_kind = Column(String(32), nullable=False)
    parent_id = Column(Integer, nullable=False)
    day_number = Column(Integer, nullable=False, default=1)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


class ItineraryDayTranslation(Base):
    __tablename__ = "itinerary_day_translations"
    __table_args__ = (UniqueConstraint("item_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("itinerary_days.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


class ItineraryItem(Base):
    """Time-boxed entry inside an itinerary day"""
    __tablename__ = "itinerary_items"

    id = Column(Integer, primary_key=True)
    day_id = Column(Integer, ForeignKey("itinerary_days.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    start_time = Column(String(8), nullable=True)  # HH:MM
    end_time = Column(String(8), nullable=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


class ItineraryItemTranslation(Base):
    __tablename__ = "itinerary_item_translations"
    __table_args__ = (UniqueConstraint("item_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("itinerary_items.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


class Tag(Base):
    """Tag catalog managed by the masters screens"""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    tag_key = Column(String(64), nullable=False, unique=True)
    tag_name = Column(String(128), nullable=False)


class EntityTag(Base):
    """Association between an entity and a catalog tag"""
    __tablename__ = "entity_tags"
    __table_args__ = (Index("ix_entity_tags_parent", "parent_kind", "parent_id"),)

    id = Column(Integer, primary_key=True)
    parent_kind = Column(String(32), nullable=False)
    parent_id = Column(Integer, nullable=False)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
