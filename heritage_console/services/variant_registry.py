"""
Variant Registry - static field schema for every business variant.

Each variant declares its translatable scalar fields, its translatable
array fields, its plain (untranslated) scalars, the display order of all of
them, and the child collection kinds it owns. The rest of the engine only
talks to the registry, so adding a variant means adding one entry here (plus
its table in ``heritage_console.models.entities``).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from heritage_console.core.exceptions import UnknownVariantError


class Variant(str, Enum):
    """Business entity kinds managed by the console"""
    VENDOR = "vendor"
    ARTISAN = "artisan"
    LOCAL_GUIDE = "local_guide"
    EVENT = "event"
    TOUR = "tour"


class CollectionKind(str, Enum):
    """Child collections reconciled on save, in dependency order"""
    MEDIA = "media"
    ITINERARY_DAY = "itinerary_day"
    ITINERARY_ITEM = "itinerary_item"
    TAG = "tag"


@dataclass(frozen=True)
class CollectionSpec:
    """
    Shape of one child collection kind.

    Attributes:
        kind: Collection kind
        value_fields: Plain columns copied verbatim on insert/update
        translatable: Columns that also live in the per-language translation table
        order_key: Column rewritten from the item's list position on save
        parent_kind: Collection whose ids the ``parent_id`` refers to
            (None means the owning entity)
    """
    kind: CollectionKind
    value_fields: Tuple[str, ...]
    translatable: Tuple[str, ...] = ()
    order_key: str = "position"
    parent_kind: Optional[CollectionKind] = None

    @property
    def all_fields(self) -> Tuple[str, ...]:
        return self.translatable + self.value_fields

    def translatable_fields(self) -> Tuple[str, ...]:
        return self.translatable


@dataclass(frozen=True)
class VariantSchema:
    """
    Field schema of one business variant.

    ``order`` lists every editable field in display order; ``translatable``
    and ``array`` are the subsets that carry per-language values.
    """
    variant: Variant
    translatable: Tuple[str, ...]
    array: Tuple[str, ...]
    scalar: Tuple[str, ...]
    order: Tuple[str, ...]
    collections: Tuple[CollectionKind, ...]

    def translatable_fields(self) -> Tuple[str, ...]:
        """Every field with per-language values (scalars then arrays)"""
        return self.translatable + self.array

    def is_translatable(self, field: str) -> bool:
        return field in self.translatable

    def is_array(self, field: str) -> bool:
        return field in self.array

    def has_field(self, field: str) -> bool:
        return field in self.order


COLLECTION_SPECS: Dict[CollectionKind, CollectionSpec] = {
    CollectionKind.MEDIA: CollectionSpec(
        kind=CollectionKind.MEDIA,
        translatable=("alt_text",),
        value_fields=("media_url", "media_type", "is_primary"),
    ),
    CollectionKind.ITINERARY_DAY: CollectionSpec(
        kind=CollectionKind.ITINERARY_DAY,
        translatable=("title", "description"),
        value_fields=(),
        order_key="day_number",
    ),
    CollectionKind.ITINERARY_ITEM: CollectionSpec(
        kind=CollectionKind.ITINERARY_ITEM,
        translatable=("title", "description"),
        value_fields=("start_time", "end_time"),
        parent_kind=CollectionKind.ITINERARY_DAY,
    ),
    CollectionKind.TAG: CollectionSpec(
        kind=CollectionKind.TAG,
        value_fields=("tag_id",),
    ),
}


def _schema(variant, translatable, array, scalar, collections) -> VariantSchema:
    return VariantSchema(
        variant=variant,
        translatable=tuple(translatable),
        array=tuple(array),
        scalar=tuple(scalar),
        order=tuple(translatable) + tuple(array) + tuple(scalar),
        collections=tuple(collections),
    )


_BASIC_COLLECTIONS = (CollectionKind.MEDIA, CollectionKind.TAG)
_ITINERARY_COLLECTIONS = (
    CollectionKind.MEDIA,
    CollectionKind.ITINERARY_DAY,
    CollectionKind.ITINERARY_ITEM,
    CollectionKind.TAG,
)

VARIANT_REGISTRY: Dict[Variant, VariantSchema] = {
    Variant.VENDOR: _schema(
        Variant.VENDOR,
        translatable=[
            "business_name", "subtitle", "short_description", "full_description",
            "address_line1", "area_or_zone", "city", "state",
        ],
        array=["awards", "service_areas"],
        scalar=["contact_email", "contact_phone", "postal_code"],
        collections=_BASIC_COLLECTIONS,
    ),
    Variant.ARTISAN: _schema(
        Variant.ARTISAN,
        translatable=[
            "artisan_name", "craft", "short_description", "full_description",
            "city", "state",
        ],
        array=["specializations", "certifications", "awards"],
        scalar=["contact_email", "contact_phone", "years_of_experience"],
        collections=_BASIC_COLLECTIONS,
    ),
    Variant.LOCAL_GUIDE: _schema(
        Variant.LOCAL_GUIDE,
        translatable=["guide_name", "bio", "short_description", "city"],
        array=["specializations", "expertise"],
        scalar=["contact_email", "contact_phone", "languages", "hourly_rate"],
        collections=_BASIC_COLLECTIONS,
    ),
    Variant.EVENT: _schema(
        Variant.EVENT,
        translatable=[
            "event_name", "subtitle", "short_description", "full_description",
            "venue_name", "city",
        ],
        array=["highlights"],
        scalar=["start_date", "end_date", "ticket_price", "currency"],
        collections=_ITINERARY_COLLECTIONS,
    ),
    Variant.TOUR: _schema(
        Variant.TOUR,
        translatable=[
            "tour_name", "subtitle", "short_description", "full_description",
            "meeting_point", "city",
        ],
        array=["highlights", "inclusions", "exclusions"],
        scalar=["duration_days", "base_price", "currency", "max_group_size"],
        collections=_ITINERARY_COLLECTIONS,
    ),
}


def as_variant(value) -> Variant:
    """Coerce a string tag to a Variant, raising UnknownVariantError otherwise"""
    if isinstance(value, Variant):
        return value
    try:
        return Variant(str(value).lower())
    except ValueError:
        raise UnknownVariantError(str(value))


def fields_for(variant) -> VariantSchema:
    """Look up the field schema of a variant"""
    return VARIANT_REGISTRY[as_variant(variant)]


def collection_spec(kind) -> CollectionSpec:
    return COLLECTION_SPECS[CollectionKind(kind)]
