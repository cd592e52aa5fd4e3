# tour_admin/services/category_service.py
import logging
from typing import Any, Dict, List, Optional, Union

from tour_admin.db.interface import SERVER_TIMESTAMP
from tour_admin.exceptions import DatabaseError, ValidationError
from tour_admin.logging_setup import log_exception
from tour_admin.models import Category, CategoryType
from tour_admin.services.base import BaseService
from tour_admin.slugs import CATEGORY_SLUG_DEFAULT, generate_unique_slug
from tour_admin.utils.validation import raise_for_errors, validate_category

logger = logging.getLogger(__name__)

COLLECTION = 'categories'

ALLOWED_UPDATE_FIELDS = {'name', 'description', 'image_url', 'type', 'is_active', 'item_count'}


def _type_value(category_type: Union[CategoryType, str, None]) -> Optional[str]:
    if isinstance(category_type, CategoryType):
        return category_type.value
    return category_type


class CategoryService(BaseService):
    """Service for tour and blog categories."""

    collection = COLLECTION
    record_class = Category

    def list(self, category_type: Union[CategoryType, str, None] = None) -> List[Category]:
        """All categories, newest first, optionally only one type."""
        filters = None
        if category_type:
            filters = {'type': _type_value(category_type)}
        return self._fetch_records(filters)

    def create(
        self,
        name: str,
        category_type: Union[CategoryType, str],
        description: str = '',
        image_url: str = '',
    ) -> Category:
        """Create a category with a slug no other category holds.

        Args:
            name: Display name; surrounding whitespace is dropped
            category_type: 'tour' or 'blog'
            description: Optional description
            image_url: Address of an already uploaded image

        Returns:
            The stored category
        """
        clean_name = (name or '').strip()
        type_value = _type_value(category_type)
        raise_for_errors(validate_category(clean_name, type_value), "Invalid category")

        slug = self._call('slug', generate_unique_slug, self.store, COLLECTION, clean_name, CATEGORY_SLUG_DEFAULT)

        document = self._insert({
            'name': clean_name,
            'slug': slug,
            'description': (description or '').strip(),
            'image_url': image_url or '',
            'type': type_value,
            'is_active': True,
            'item_count': 0,
            'created_at': SERVER_TIMESTAMP,
            'updated_at': SERVER_TIMESTAMP,
        })
        return Category.from_document(document)

    def _existing_slug(self, category_id: str, new_name: Optional[str]) -> Optional[str]:
        """Slug to write with an update: the stored one, or a backfilled one.

        Returns None when the existing record cannot be read; the update
        then goes ahead without touching the slug.
        """
        try:
            existing = self.store.get(COLLECTION, category_id)
            if not existing:
                return None
            if existing.get('slug'):
                return existing['slug']

            source = new_name or (existing.get('name') or '').strip() or CATEGORY_SLUG_DEFAULT
            slug = generate_unique_slug(self.store, COLLECTION, source, CATEGORY_SLUG_DEFAULT)
            logger.info(f"Backfilled slug '{slug}' for category {category_id}")
            return slug
        except DatabaseError as e:
            log_exception(__name__, e, f"Could not read category {category_id} before update")
            return None

    def update(self, category_id: str, data: Dict[str, Any]):
        """Patch whitelisted fields. The slug never changes once set."""
        updates = {key: value for key, value in (data or {}).items() if key in ALLOWED_UPDATE_FIELDS}
        if not updates:
            raise ValidationError("No valid fields provided for update", code='validation')

        if 'name' in updates:
            updates['name'] = (updates['name'] or '').strip()
            if not updates['name']:
                raise ValidationError("Category name is required", code='validation',
                                      details={'name': 'Category name is required'})

        if 'type' in updates:
            updates['type'] = _type_value(updates['type'])
            if updates['type'] not in {t.value for t in CategoryType}:
                raise ValidationError("Invalid category", code='validation',
                                      details={'type': 'Category type must be one of: tour, blog'})

        slug = self._existing_slug(category_id, updates.get('name'))
        if slug:
            updates['slug'] = slug

        self._patch(category_id, updates)

    def delete(self, category_id: str):
        """Delete a category. Tours that reference it keep their category_id."""
        self._delete(category_id)

    def set_active(self, category_id: str, is_active: bool):
        self._patch(category_id, {'is_active': bool(is_active)}, 'set_active')
