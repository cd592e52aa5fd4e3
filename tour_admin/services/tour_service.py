# tour_admin/services/tour_service.py
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from tour_admin.db.interface import SERVER_TIMESTAMP
from tour_admin.exceptions import FeaturedLimitError, ValidationError
from tour_admin.models import Difficulty, Tour, TourStatus
from tour_admin.services.base import BaseService
from tour_admin.slugs import TOUR_SLUG_DEFAULT, generate_unique_slug
from tour_admin.utils.validation import raise_for_errors, validate_tour_form

logger = logging.getLogger(__name__)

COLLECTION = 'tours'

MAX_FEATURED_TOURS = 6

TOUR_FORM_MESSAGE = "Please fill title, description, location and category"


def _clean(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _clean_list(values: Optional[Iterable[Any]]) -> List[str]:
    if not values or isinstance(values, str):
        values = [values] if values else []
    return [item for item in (_clean(value) for value in values) if item]


def _to_int(value: Any) -> Optional[int]:
    text = _clean(value)
    if not text:
        return None
    return int(text)


def _clean_itinerary(days: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Drop blank days and renumber the rest from 1."""
    kept = []
    for day in days or []:
        if not isinstance(day, Mapping):
            continue
        title = _clean(day.get('day_title'))
        description = _clean(day.get('description'))
        if title or description:
            kept.append((title, description))

    return [
        {'day_number': number, 'day_title': title, 'description': description}
        for number, (title, description) in enumerate(kept, start=1)
    ]


def _status_value(status) -> str:
    try:
        return TourStatus(status).value
    except ValueError:
        raise ValidationError(
            f"Invalid tour status: {status}",
            code='validation',
            details={'status': 'Status must be one of: draft, published'}
        )


def referenced_images(tour: Tour) -> List[str]:
    """Every blob address a stored tour still points at."""
    addresses = [tour.feature_image_url, *tour.gallery_image_urls, *tour.image_urls, tour.og_image]
    return list(dict.fromkeys(address for address in addresses if address))


def map_form_to_tour_doc(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Map an edit form to the stored tour document.

    The slug, the featured flag and the timestamps are not part of the
    mapping; create and update add what they need.

    Args:
        form: Form values keyed by document field name, with
            `gallery_images` for the gallery and itinerary days as
            dictionaries with `day_title` and `description`

    Returns:
        Tour document without id, slug or timestamps
    """
    title = _clean(form.get('title'))
    description = _clean(form.get('description'))
    feature_image = _clean(form.get('feature_image_url'))
    gallery = _clean_list(form.get('gallery_images'))

    return {
        'title': title,
        'description': description,
        'price': 0,
        'category_id': _clean(form.get('category_id')),
        'category_name': _clean(form.get('category_name')),
        'location': _clean(form.get('location')),
        'duration': _clean(form.get('duration')),
        'max_group_size': _to_int(form.get('max_group_size')),
        'difficulty_level': _clean(form.get('difficulty_level')) or Difficulty.EASY.value,
        'status': _clean(form.get('status')) or TourStatus.DRAFT.value,
        'season': _clean(form.get('season')),
        'min_age': _to_int(form.get('min_age')),
        'map_embed_html': _clean(form.get('map_embed_html')),
        'feature_image_url': feature_image,
        'gallery_image_urls': gallery,
        # Feature image first, then the gallery
        'image_urls': [url for url in [feature_image, *gallery] if url],
        'highlights': _clean_list(form.get('highlights')),
        'included': _clean_list(form.get('included')),
        'excluded': _clean_list(form.get('excluded')),
        'itinerary': _clean_itinerary(form.get('itinerary')),
        'meta_title': _clean(form.get('meta_title')) or title,
        'meta_description': _clean(form.get('meta_description')) or description,
        'meta_keywords': _clean(form.get('meta_keywords')),
        'og_image': _clean(form.get('og_image')) or feature_image,
    }


def tour_to_form(tour: Tour) -> Dict[str, Any]:
    """Prefill an edit form from a stored tour.

    List fields always hold at least one (blank) entry so there is a row to
    type into.
    """
    def _at_least_one(values: List[str]) -> List[str]:
        return list(values) if values else ['']

    itinerary = [
        {'day_title': day.day_title, 'description': day.description}
        for day in tour.itinerary
    ] or [{'day_title': '', 'description': ''}]

    return {
        'title': tour.title,
        'slug': tour.slug,
        'description': tour.description,
        'category_id': tour.category_id,
        'category_name': tour.category_name,
        'location': tour.location,
        'duration': tour.duration,
        'max_group_size': '' if tour.max_group_size is None else str(tour.max_group_size),
        'difficulty_level': tour.difficulty_level.value,
        'status': tour.status.value,
        'season': tour.season,
        'min_age': '' if tour.min_age is None else str(tour.min_age),
        'map_embed_html': tour.map_embed_html,
        'feature_image_url': tour.feature_image_url,
        'gallery_images': _at_least_one(tour.gallery_image_urls),
        'highlights': _at_least_one(tour.highlights),
        'included': _at_least_one(tour.included),
        'excluded': _at_least_one(tour.excluded),
        'itinerary': itinerary,
        'meta_title': tour.meta_title,
        'meta_description': tour.meta_description,
        'meta_keywords': tour.meta_keywords,
        'og_image': tour.og_image,
    }


class TourService(BaseService):
    """Service for tour documents."""

    collection = COLLECTION
    record_class = Tour

    def list(self, status=None) -> List[Tour]:
        filters = None
        if status:
            filters = {'status': _status_value(status)}
        return self._fetch_records(filters)

    def _new_slug(self, title: str) -> str:
        return self._call('slug', generate_unique_slug, self.store, COLLECTION, title, TOUR_SLUG_DEFAULT)

    def create(self, form: Mapping[str, Any]) -> str:
        """Validate, map and store a new tour.

        Returns:
            The new tour's id
        """
        raise_for_errors(validate_tour_form(form), TOUR_FORM_MESSAGE)
        document = map_form_to_tour_doc(form)

        document.update({
            'slug': self._new_slug(document['title']),
            'is_featured': False,
            'created_at': SERVER_TIMESTAMP,
            'updated_at': SERVER_TIMESTAMP,
        })
        return self._insert(document).get('id')

    def update(self, tour_id: str, form: Mapping[str, Any]):
        """Replace the editable fields of a tour.

        The stored slug and featured flag are left alone; a tour saved
        before slugs existed gets one from its title.
        """
        raise_for_errors(validate_tour_form(form), TOUR_FORM_MESSAGE)
        document = map_form_to_tour_doc(form)

        existing = self._fetch_document(tour_id)
        if not existing.get('slug'):
            document['slug'] = self._new_slug(document['title'])
            logger.info(f"Backfilled slug '{document['slug']}' for tour {tour_id}")

        self._patch(tour_id, document)

    def delete(self, tour_id: str):
        self._delete(tour_id)

    def clear_feature_image(self, tour_id: str) -> str:
        """Drop the feature image from a tour.

        Returns:
            The address that was cleared, empty when there was none
        """
        tour = self.get(tour_id)
        address = tour.feature_image_url
        updates = {
            'feature_image_url': '',
            'image_urls': list(tour.gallery_image_urls),
        }
        if tour.og_image == address:
            updates['og_image'] = ''

        self._patch(tour_id, updates, 'clear_feature_image')
        return address

    def remove_gallery_image(self, tour_id: str, address: str):
        tour = self.get(tour_id)
        if address not in tour.gallery_image_urls:
            raise ValidationError(
                f"Image is not in the gallery of tour {tour_id}",
                code='validation',
                details={'address': address}
            )

        gallery = [url for url in tour.gallery_image_urls if url != address]
        self._patch(tour_id, {
            'gallery_image_urls': gallery,
            'image_urls': [url for url in [tour.feature_image_url, *gallery] if url],
        }, 'remove_gallery_image')

    def set_status(self, tour_id: str, status):
        self._patch(tour_id, {'status': _status_value(status)}, 'set_status')

    def set_featured(self, tour_id: str, featured: bool, tours: Optional[Sequence[Tour]] = None):
        """Toggle the featured flag, holding the home page to MAX_FEATURED_TOURS.

        Args:
            tour_id: Tour to change
            featured: New flag value
            tours: Already loaded tours to count from; read fresh when None

        Raises:
            FeaturedLimitError: the limit is already used up by other tours
        """
        if featured:
            current = list(tours) if tours is not None else self.list()
            others = [tour for tour in current if tour.is_featured and tour.id != tour_id]
            if len(others) >= MAX_FEATURED_TOURS:
                raise FeaturedLimitError(
                    f"You can feature at most {MAX_FEATURED_TOURS} tours",
                    code='featured_limit',
                    details={'featured': len(others), 'limit': MAX_FEATURED_TOURS}
                )

        self._patch(tour_id, {'is_featured': bool(featured)}, 'set_featured')
