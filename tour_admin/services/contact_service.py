# tour_admin/services/contact_service.py
import logging
from typing import Any, List, Mapping, Optional

from tour_admin.db.interface import SERVER_TIMESTAMP
from tour_admin.exceptions import ValidationError
from tour_admin.models import ContactEnquiry
from tour_admin.services.base import BaseService
from tour_admin.utils.validation import (
    CONTACT_FIELD_LIMITS, PATH_LIMIT, USER_AGENT_LIMIT,
    clean_field, raise_for_submission_errors, sanitize_submission
)

logger = logging.getLogger(__name__)

COLLECTION = 'contact_messages'

REQUIRED_FIELDS = ('name', 'email', 'message')


class ContactService(BaseService):
    """Service for contact-form enquiries.

    Submissions come from the public site; the admin side only reads them
    and flips the follow-up flag. Nothing is ever deleted.
    """

    collection = COLLECTION
    record_class = ContactEnquiry

    def submit(self, payload: Optional[Mapping[str, Any]], user_agent: str = '', path: str = '') -> str:
        """Sanitize, validate and store a contact submission.

        Args:
            payload: Raw form fields (name, email, phone, message)
            user_agent: Submitting browser's user agent
            path: Page the form was sent from

        Returns:
            The new enquiry's id
        """
        fields = sanitize_submission(payload, CONTACT_FIELD_LIMITS)
        raise_for_submission_errors(fields, REQUIRED_FIELDS)

        document = self._insert({
            **fields,
            'user_agent': clean_field(user_agent, USER_AGENT_LIMIT),
            'path': clean_field(path, PATH_LIMIT),
            'follow_up_done': False,
            'created_at': SERVER_TIMESTAMP,
        })
        return document.get('id')

    def list(self) -> List[ContactEnquiry]:
        return self._fetch_records()

    def set_follow_up(self, enquiry_id: str, done: bool):
        if not enquiry_id:
            raise ValidationError("Missing enquiry id", code='validation')
        self._patch(enquiry_id, {'follow_up_done': bool(done)}, 'set_follow_up')
