"""
Business entity tables, one per variant, each with a translation table.

Base tables hold the source-language values. Translation tables hold one row
per (entity_id, language_code) with the translated columns; array fields are
JSON lists in both.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Date, Numeric, DateTime, ForeignKey, JSON,
    UniqueConstraint, func,
)

from heritage_console.core.db import Base


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    business_name = Column(String(255), nullable=False, default="")
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    address_line1 = Column(String(255), nullable=True)
    area_or_zone = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    awards = Column(JSON, nullable=True)
    service_areas = Column(JSON, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    postal_code = Column(String(16), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VendorTranslation(Base):
    __tablename__ = "vendor_translations"
    __table_args__ = (UniqueConstraint("entity_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    business_name = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    address_line1 = Column(String(255), nullable=True)
    area_or_zone = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    awards = Column(JSON, nullable=True)
    service_areas = Column(JSON, nullable=True)


class Artisan(Base):
    __tablename__ = "artisans"

    id = Column(Integer, primary_key=True)
    artisan_name = Column(String(255), nullable=False, default="")
    craft = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    specializations = Column(JSON, nullable=True)
    certifications = Column(JSON, nullable=True)
    awards = Column(JSON, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ArtisanTranslation(Base):
    __tablename__ = "artisan_translations"
    __table_args__ = (UniqueConstraint("entity_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("artisans.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    artisan_name = Column(String(255), nullable=True)
    craft = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    specializations = Column(JSON, nullable=True)
    certifications = Column(JSON, nullable=True)
    awards = Column(JSON, nullable=True)


class LocalGuide(Base):
    __tablename__ = "local_guides"

    id = Column(Integer, primary_key=True)
    guide_name = Column(String(255), nullable=False, default="")
    bio = Column(Text, nullable=True)
    short_description = Column(Text, nullable=True)
    city = Column(String(128), nullable=True)
    specializations = Column(JSON, nullable=True)
    expertise = Column(JSON, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    languages = Column(JSON, nullable=True)  # spoken language codes, not translated
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class LocalGuideTranslation(Base):
    __tablename__ = "local_guide_translations"
    __table_args__ = (UniqueConstraint("entity_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("local_guides.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    guide_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    short_description = Column(Text, nullable=True)
    city = Column(String(128), nullable=True)
    specializations = Column(JSON, nullable=True)
    expertise = Column(JSON, nullable=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    event_name = Column(String(255), nullable=False, default="")
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    venue_name = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    highlights = Column(JSON, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    ticket_price = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class EventTranslation(Base):
    __tablename__ = "event_translations"
    __table_args__ = (UniqueConstraint("entity_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    event_name = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    venue_name = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    highlights = Column(JSON, nullable=True)


class Tour(Base):
    __tablename__ = "tours"

    id = Column(Integer, primary_key=True)
    tour_name = Column(String(255), nullable=False, default="")
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    meeting_point = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    highlights = Column(JSON, nullable=True)
    inclusions = Column(JSON, nullable=True)
    exclusions = Column(JSON, nullable=True)
    duration_days = Column(Integer, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=True)
    max_group_size = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class TourTranslation(Base):
    __tablename__ = "tour_translations"
    __table_args__ = (UniqueConstraint("entity_id", "language_code"),)

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(8), nullable=False)
    tour_name = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    short_description = Column(Text, nullable=True)
    full_description = Column(Text, nullable=True)
    meeting_point = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    highlights = Column(JSON, nullable=True)
    inclusions = Column(JSON, nullable=True)
    exclusions = Column(JSON, nullable=True)
