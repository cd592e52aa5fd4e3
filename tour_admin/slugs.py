# tour_admin/slugs.py
import logging
import re
from typing import Callable, Optional

from tour_admin.db.interface import DocumentStore
from tour_admin.utils.date_utils import now_millis

logger = logging.getLogger(__name__)

CATEGORY_SLUG_DEFAULT = 'category'
TOUR_SLUG_DEFAULT = 'tour'

MAX_SLUG_LENGTH = 80
MAX_SLUG_ATTEMPTS = 20

NON_ALPHANUMERIC = re.compile(r'[^a-z0-9]+')


def slugify(text: Optional[str], default: str) -> str:
    """Derive a URL-safe slug.

    "North India Pilgrimage" -> "north-india-pilgrimage"
    """
    slug = NON_ALPHANUMERIC.sub('-', (text or '').strip().lower()).strip('-')
    # Cutting at 80 can expose a hyphen
    slug = slug[:MAX_SLUG_LENGTH].rstrip('-')
    return slug or default


def generate_unique_slug(
    store: DocumentStore,
    collection: str,
    source: Optional[str],
    default: str,
    *,
    max_attempts: int = MAX_SLUG_ATTEMPTS,
    clock: Optional[Callable[[], int]] = None,
) -> str:
    """Slug for source that no document in collection holds yet.

    Tries base, base-2, base-3, ... up to max_attempts times, then falls
    back to base-<unix millis>. The fallback is not checked again, so two
    writers in the same millisecond could still collide. Store read
    failures propagate to the caller.
    """
    base = slugify(source, default)
    candidate = base
    counter = 2

    for _ in range(max_attempts):
        if not store.query(collection, {'slug': candidate}, limit=1):
            return candidate

        logger.debug(f"Slug '{candidate}' already taken in {collection}")
        candidate = f"{base}-{counter}"
        counter += 1

    fallback = f"{base}-{(clock or now_millis)()}"
    logger.warning(f"No free slug for '{base}' after {max_attempts} attempts, using {fallback}")
    return fallback
