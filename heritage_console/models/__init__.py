"""
Models package for the content engine.

ORM tables for entities and child collections, plus the in-memory
structures shared by the engine services. Importing this package registers
every table on ``Base.metadata``.
"""

from .entities import (
    Vendor,
    VendorTranslation,
    Artisan,
    ArtisanTranslation,
    LocalGuide,
    LocalGuideTranslation,
    Event,
    EventTranslation,
    Tour,
    TourTranslation,
)
from .collections import (
    EntityMedia,
    EntityMediaTranslation,
    ItineraryDay,
    ItineraryDayTranslation,
    ItineraryItem,
    ItineraryItemTranslation,
    Tag,
    EntityTag,
)
from .internal_models import (
    Owner,
    CascadeState,
    ArrayItem,
    ChildItem,
    TranslationCompleted,
    EntitySnapshot,
    ReconcileResult,
    SaveResult,
)

__all__ = [
    "Vendor",
    "VendorTranslation",
    "Artisan",
    "ArtisanTranslation",
    "LocalGuide",
    "LocalGuideTranslation",
    "Event",
    "EventTranslation",
    "Tour",
    "TourTranslation",
    "EntityMedia",
    "EntityMediaTranslation",
    "ItineraryDay",
    "ItineraryDayTranslation",
    "ItineraryItem",
    "ItineraryItemTranslation",
    "Tag",
    "EntityTag",
    "Owner",
    "CascadeState",
    "ArrayItem",
    "ChildItem",
    "TranslationCompleted",
    "EntitySnapshot",
    "ReconcileResult",
    "SaveResult",
]
