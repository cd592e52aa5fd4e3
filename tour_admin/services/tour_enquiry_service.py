# tour_admin/services/tour_enquiry_service.py
import logging
from typing import Any, List, Mapping, Optional

from tour_admin.db.interface import SERVER_TIMESTAMP
from tour_admin.exceptions import ValidationError
from tour_admin.models import EnquiryProgress, TourEnquiry
from tour_admin.services.base import BaseService
from tour_admin.utils.validation import (
    PATH_LIMIT, TOUR_ENQUIRY_FIELD_LIMITS, USER_AGENT_LIMIT,
    clean_field, raise_for_submission_errors, sanitize_submission
)

logger = logging.getLogger(__name__)

COLLECTION = 'tour_forms'

REQUIRED_FIELDS = ('name', 'email', 'phone')


class TourEnquiryService(BaseService):
    """Service for tour booking enquiries.

    Progress moves new -> followed -> completed through two flags, with
    the derived status stored next to them for the public site.
    """

    collection = COLLECTION
    record_class = TourEnquiry

    def submit(self, payload: Optional[Mapping[str, Any]], user_agent: str = '', path: str = '') -> str:
        fields = sanitize_submission(payload, TOUR_ENQUIRY_FIELD_LIMITS)
        raise_for_submission_errors(fields, REQUIRED_FIELDS)

        document = self._insert({
            **fields,
            'user_agent': clean_field(user_agent, USER_AGENT_LIMIT),
            'path': clean_field(path, PATH_LIMIT),
            'status': EnquiryProgress.NEW.value,
            'follow_up_done': False,
            'trip_completed': False,
            'created_at': SERVER_TIMESTAMP,
        })
        return document.get('id')

    def list(self) -> List[TourEnquiry]:
        return self._fetch_records()

    def _require_id(self, enquiry_id: str):
        if not enquiry_id:
            raise ValidationError("Missing enquiry id", code='validation')

    def set_follow_up(self, enquiry_id: str, done: bool):
        self._require_id(enquiry_id)
        status = EnquiryProgress.FOLLOWED if done else EnquiryProgress.NEW
        self._patch(enquiry_id, {'follow_up_done': bool(done), 'status': status.value}, 'set_follow_up')

    def set_completed(self, enquiry_id: str, completed: bool):
        """Mark the trip completed, or step back to followed."""
        self._require_id(enquiry_id)
        status = EnquiryProgress.COMPLETED if completed else EnquiryProgress.FOLLOWED
        self._patch(enquiry_id, {'trip_completed': bool(completed), 'status': status.value}, 'set_completed')
