import re
from typing import Any, Dict, Iterable, Mapping, Optional

from tour_admin.config import config
from tour_admin.exceptions import ValidationError, UploadTooLargeError
from tour_admin.models import CategoryType, Difficulty, TourStatus

TAG_PATTERN = re.compile(r'<[^>]*>')
WHITESPACE_PATTERN = re.compile(r'\s+')
# Loose local@domain.tld shape; a UX convenience, not a security boundary
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

CONTACT_FIELD_LIMITS = {
    'name': 100,
    'email': 200,
    'phone': 50,
    'message': 2000,
}

TOUR_ENQUIRY_FIELD_LIMITS = {
    'arrival_date': 50,
    'days': 20,
    'adults': 10,
    'children': 10,
    'accommodation': 50,
    'info': 2000,
    'name': 100,
    'email': 200,
    'country': 80,
    'phone': 50,
}

USER_AGENT_LIMIT = 300
PATH_LIMIT = 200


def sanitize_text(value: Any) -> str:
    """Strip markup-like tags, collapse whitespace and trim."""
    if value is None:
        return ''
    text = TAG_PATTERN.sub(' ', str(value))
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def limit_length(value: Any, max_length: int = 1000) -> str:
    """Hard-cap a string at max_length characters."""
    text = '' if value is None else str(value)
    return text[:max_length]


def clean_field(value: Any, max_length: int) -> str:
    return limit_length(sanitize_text(value), max_length)


def looks_like_email(value: Any) -> bool:
    text = '' if value is None else str(value).strip()
    if not text:
        return False
    return bool(EMAIL_PATTERN.match(text))


def sanitize_submission(payload: Optional[Mapping[str, Any]], limits: Mapping[str, int]) -> Dict[str, str]:
    """Sanitize every known field of a public form submission.

    Unknown keys in the payload are dropped.
    """
    payload = payload or {}
    return {
        field: clean_field(payload.get(field), max_length)
        for field, max_length in limits.items()
    }


def validate_submission(fields: Mapping[str, str], required: Iterable[str]) -> Dict[str, str]:
    """Validate a sanitized public submission.

    Args:
        fields: Sanitized field values
        required: Names of fields that must be non-empty

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for field in required:
        if not fields.get(field):
            errors[field] = f"{field.replace('_', ' ').capitalize()} is required"

    if 'email' not in errors and fields.get('email') is not None and not looks_like_email(fields.get('email')):
        errors['email'] = 'Invalid email address'

    return errors


def validate_category(name: Any, category_type: Any) -> Dict[str, str]:
    """Validate the fields a category needs at creation.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not (name or '').strip():
        errors['name'] = 'Category name is required'

    if category_type not in {t.value for t in CategoryType}:
        errors['type'] = f"Category type must be one of: {', '.join(t.value for t in CategoryType)}"

    return errors


def validate_tour_form(form: Mapping[str, Any]) -> Dict[str, str]:
    """Validate a tour form before it is mapped and saved.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for field in ('title', 'description', 'location'):
        if not str(form.get(field) or '').strip():
            errors[field] = f"{field.capitalize()} is required"

    if not str(form.get('category_id') or '').strip():
        errors['category_id'] = 'Please select a tour category'

    difficulty = form.get('difficulty_level')
    if difficulty and difficulty not in {d.value for d in Difficulty}:
        errors['difficulty_level'] = f"Difficulty must be one of: {', '.join(d.value for d in Difficulty)}"

    status = form.get('status')
    if status and status not in {s.value for s in TourStatus}:
        errors['status'] = f"Status must be one of: {', '.join(s.value for s in TourStatus)}"

    for field in ('max_group_size', 'min_age'):
        value = form.get(field)
        if value not in (None, '') and not str(value).strip().isdigit():
            errors[field] = f"{field.replace('_', ' ').capitalize()} must be a whole number"

    return errors


def raise_for_errors(errors: Dict[str, str], message: str = "Validation error"):
    """Raise a ValidationError carrying the field errors, if there are any."""
    if errors:
        raise ValidationError(message, code='validation', details=errors)


def validate_upload_size(size_bytes: int, max_mb: Optional[float] = None):
    """Reject uploads above the configured cap (3 MB by default)."""
    if max_mb is None:
        max_mb = config.media_config['max_upload_mb']

    max_bytes = int(max_mb * 1024 * 1024)
    if size_bytes > max_bytes:
        raise UploadTooLargeError(
            f"Please upload an image smaller than {max_mb:g}MB",
            code='upload_too_large',
            details={'size': size_bytes, 'max_size': max_bytes}
        )


def raise_for_submission_errors(fields: Dict[str, Any], required: Iterable[str]):
    """Validate a public submission and raise: missing fields first, then the email shape."""
    required = tuple(required)
    errors = validate_submission(fields, required)
    if not errors:
        return

    if any(not fields.get(field) for field in required):
        raise ValidationError("Missing required fields.", code='missing_fields', details=errors)

    raise ValidationError("Invalid email address.", code='invalid_email', details=errors)
