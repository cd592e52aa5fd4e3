# tour_admin/models.py
"""Typed records for every collection, plus the document <-> record mapping.

Stored documents are schema-less; `from_document` defaults and normalizes
missing or loosely-typed fields so the rest of the code never has to.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from tour_admin.utils.date_utils import parse_timestamp, to_millis


class CategoryType(str, enum.Enum):
    TOUR = 'tour'
    BLOG = 'blog'


class TourStatus(str, enum.Enum):
    DRAFT = 'draft'
    PUBLISHED = 'published'


class Difficulty(str, enum.Enum):
    EASY = 'Easy'
    MODERATE = 'Moderate'
    HARD = 'Hard'


class EnquiryProgress(str, enum.Enum):
    NEW = 'new'
    FOLLOWED = 'followed'
    COMPLETED = 'completed'


def as_bool(value: Any) -> bool:
    """Coerce the boolean spellings found in stored documents."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1')
    return value is True or value == 1


def as_int(value: Any) -> Optional[int]:
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def as_str(value: Any) -> str:
    return '' if value is None else str(value)


def as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [as_str(item) for item in value if item is not None]


def as_enum(enum_class, value: Any, default):
    try:
        return enum_class(value)
    except ValueError:
        return default


@dataclass
class Record:
    id: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def created_at_millis(self) -> int:
        return to_millis(self.created_at)


@dataclass
class Category(Record):
    name: str = ''
    slug: str = ''
    description: str = ''
    image_url: str = ''
    type: CategoryType = CategoryType.TOUR
    is_active: bool = True
    item_count: int = 0

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'Category':
        return cls(
            id=as_str(doc.get('id')),
            name=as_str(doc.get('name')),
            slug=as_str(doc.get('slug')),
            description=as_str(doc.get('description')),
            image_url=as_str(doc.get('image_url')),
            type=as_enum(CategoryType, doc.get('type'), CategoryType.TOUR),
            # Categories written before the flag existed are live
            is_active=as_bool(doc.get('is_active', True)),
            item_count=as_int(doc.get('item_count')) or 0,
            created_at=parse_timestamp(doc.get('created_at')),
            updated_at=parse_timestamp(doc.get('updated_at')),
        )


@dataclass
class ItineraryDay:
    day_number: int
    day_title: str = ''
    description: str = ''

    @classmethod
    def from_document(cls, doc: Dict[str, Any], position: int) -> 'ItineraryDay':
        return cls(
            day_number=as_int(doc.get('day_number')) or position,
            day_title=as_str(doc.get('day_title')),
            description=as_str(doc.get('description')),
        )


@dataclass
class Tour(Record):
    title: str = ''
    slug: str = ''
    description: str = ''
    price: float = 0
    category_id: str = ''
    category_name: str = ''
    location: str = ''
    duration: str = ''
    max_group_size: Optional[int] = None
    difficulty_level: Difficulty = Difficulty.EASY
    season: str = ''
    min_age: Optional[int] = None
    map_embed_html: str = ''
    feature_image_url: str = ''
    gallery_image_urls: List[str] = field(default_factory=list)
    image_urls: List[str] = field(default_factory=list)
    highlights: List[str] = field(default_factory=list)
    included: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)
    itinerary: List[ItineraryDay] = field(default_factory=list)
    meta_title: str = ''
    meta_description: str = ''
    meta_keywords: str = ''
    og_image: str = ''
    status: TourStatus = TourStatus.DRAFT
    is_featured: bool = False

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'Tour':
        image_urls = as_str_list(doc.get('image_urls'))
        raw_itinerary = doc.get('itinerary') if isinstance(doc.get('itinerary'), list) else []

        return cls(
            id=as_str(doc.get('id')),
            title=as_str(doc.get('title')),
            slug=as_str(doc.get('slug')),
            description=as_str(doc.get('description')),
            price=doc.get('price') or 0,
            category_id=as_str(doc.get('category_id')),
            category_name=as_str(doc.get('category_name')),
            location=as_str(doc.get('location')),
            duration=as_str(doc.get('duration')),
            max_group_size=as_int(doc.get('max_group_size')),
            difficulty_level=as_enum(Difficulty, doc.get('difficulty_level'), Difficulty.EASY),
            season=as_str(doc.get('season')),
            min_age=as_int(doc.get('min_age')),
            map_embed_html=as_str(doc.get('map_embed_html')),
            # Older documents only carried image_urls, feature image first
            feature_image_url=as_str(doc.get('feature_image_url')) or (image_urls[0] if image_urls else ''),
            gallery_image_urls=as_str_list(doc.get('gallery_image_urls')),
            image_urls=image_urls,
            highlights=as_str_list(doc.get('highlights')),
            included=as_str_list(doc.get('included')),
            excluded=as_str_list(doc.get('excluded')),
            itinerary=[
                ItineraryDay.from_document(day, position)
                for position, day in enumerate(raw_itinerary, start=1)
                if isinstance(day, dict)
            ],
            meta_title=as_str(doc.get('meta_title')),
            meta_description=as_str(doc.get('meta_description')),
            meta_keywords=as_str(doc.get('meta_keywords')),
            og_image=as_str(doc.get('og_image')),
            status=as_enum(TourStatus, doc.get('status'), TourStatus.DRAFT),
            is_featured=as_bool(doc.get('is_featured')),
            created_at=parse_timestamp(doc.get('created_at')),
            updated_at=parse_timestamp(doc.get('updated_at')),
        )


@dataclass
class ContactEnquiry(Record):
    name: str = ''
    email: str = ''
    phone: str = ''
    message: str = ''
    user_agent: str = ''
    path: str = ''
    follow_up_done: bool = False

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'ContactEnquiry':
        return cls(
            id=as_str(doc.get('id')),
            name=as_str(doc.get('name')),
            email=as_str(doc.get('email')),
            phone=as_str(doc.get('phone')),
            message=as_str(doc.get('message')),
            user_agent=as_str(doc.get('user_agent')),
            path=as_str(doc.get('path')),
            follow_up_done=as_bool(doc.get('follow_up_done')),
            created_at=parse_timestamp(doc.get('created_at')),
            updated_at=parse_timestamp(doc.get('updated_at')),
        )


@dataclass
class TourEnquiry(Record):
    name: str = ''
    email: str = ''
    phone: str = ''
    country: str = ''
    arrival_date: str = ''
    days: str = ''
    adults: str = ''
    children: str = ''
    accommodation: str = ''
    info: str = ''
    user_agent: str = ''
    path: str = ''
    follow_up_done: bool = False
    trip_completed: bool = False

    @property
    def progress(self) -> EnquiryProgress:
        """new -> followed -> completed, derived from the two admin flags."""
        if self.trip_completed:
            return EnquiryProgress.COMPLETED
        if self.follow_up_done:
            return EnquiryProgress.FOLLOWED
        return EnquiryProgress.NEW

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'TourEnquiry':
        return cls(
            id=as_str(doc.get('id')),
            name=as_str(doc.get('name')),
            email=as_str(doc.get('email')),
            phone=as_str(doc.get('phone')),
            country=as_str(doc.get('country')),
            arrival_date=as_str(doc.get('arrival_date')),
            days=as_str(doc.get('days')),
            adults=as_str(doc.get('adults')),
            children=as_str(doc.get('children')),
            accommodation=as_str(doc.get('accommodation')),
            info=as_str(doc.get('info')),
            user_agent=as_str(doc.get('user_agent')),
            path=as_str(doc.get('path')),
            follow_up_done=as_bool(doc.get('follow_up_done')),
            trip_completed=as_bool(doc.get('trip_completed')),
            created_at=parse_timestamp(doc.get('created_at')),
            updated_at=parse_timestamp(doc.get('updated_at')),
        )
