# tour_admin/services/reporting_service.py
from datetime import datetime, timezone
from typing import Any, Dict
import logging
import csv
import io
import json
from collections import Counter

from tour_admin.db.interface import DocumentStore
from tour_admin.exceptions import ReportingError
from tour_admin.listing import ListParams, filter_contacts, filter_tour_enquiries
from tour_admin.models import CategoryType, ContactEnquiry, EnquiryProgress, TourEnquiry, TourStatus
from tour_admin.services.category_service import CategoryService
from tour_admin.services.contact_service import ContactService
from tour_admin.services.tour_enquiry_service import TourEnquiryService
from tour_admin.services.tour_service import TourService

logger = logging.getLogger(__name__)

CONTACT_COLUMNS = ('id', 'created_at', 'name', 'email', 'phone', 'message', 'follow_up_done')

TOUR_ENQUIRY_COLUMNS = (
    'id', 'created_at', 'name', 'email', 'phone', 'country', 'arrival_date',
    'days', 'adults', 'children', 'accommodation', 'info', 'progress'
)


def _format_timestamp(value: datetime) -> str:
    return value.isoformat() if value else ''


def _contact_row(record: ContactEnquiry) -> Dict[str, Any]:
    row = {column: getattr(record, column) for column in CONTACT_COLUMNS}
    row['created_at'] = _format_timestamp(record.created_at)
    return row


def _tour_enquiry_row(record: TourEnquiry) -> Dict[str, Any]:
    row = {column: getattr(record, column) for column in TOUR_ENQUIRY_COLUMNS if column != 'progress'}
    row['created_at'] = _format_timestamp(record.created_at)
    row['progress'] = record.progress.value
    return row


class ReportingService:
    """Service for the dashboard counts and enquiry exports."""

    def __init__(self, store: DocumentStore):
        """Initialize the reporting service.

        Args:
            store: Document store shared with the entity services
        """
        self.categories = CategoryService(store)
        self.tours = TourService(store)
        self.contacts = ContactService(store)
        self.tour_enquiries = TourEnquiryService(store)

    def dashboard_summary(self) -> Dict[str, Any]:
        """Headline counts for the admin dashboard.

        Returns:
            Dictionary with tour, category and enquiry counts
        """
        tours = self.tours.list()
        categories = self.categories.list()
        contacts = self.contacts.list()
        tour_enquiries = self.tour_enquiries.list()

        tour_status = Counter(tour.status.value for tour in tours)
        category_type = Counter(category.type.value for category in categories)
        enquiry_progress = Counter(enquiry.progress.value for enquiry in tour_enquiries)
        contacts_done = sum(1 for contact in contacts if contact.follow_up_done)

        return {
            'tours': {
                'total': len(tours),
                **{status.value: tour_status.get(status.value, 0) for status in TourStatus},
                'featured': sum(1 for tour in tours if tour.is_featured),
            },
            'categories': {
                'total': len(categories),
                **{kind.value: category_type.get(kind.value, 0) for kind in CategoryType},
                'active': sum(1 for category in categories if category.is_active),
                'inactive': sum(1 for category in categories if not category.is_active),
            },
            'contacts': {
                'total': len(contacts),
                'done': contacts_done,
                'pending': len(contacts) - contacts_done,
            },
            'tour_enquiries': {
                'total': len(tour_enquiries),
                **{progress.value: enquiry_progress.get(progress.value, 0) for progress in EnquiryProgress},
            },
        }

    def enquiry_report(self, kind: str, params: ListParams = None) -> Dict[str, Any]:
        """Every enquiry matching the filters, unpaginated.

        Args:
            kind: 'contacts' or 'tour_enquiries'
            params: Search, date range and status filters; page is ignored

        Returns:
            Report dictionary with a `data` list of flat rows
        """
        params = params or ListParams()

        if kind == 'contacts':
            records = filter_contacts(self.contacts.list(), params)
            data = [_contact_row(record) for record in records]
            title = 'Contact Enquiries'
        elif kind == 'tour_enquiries':
            records = filter_tour_enquiries(self.tour_enquiries.list(), params)
            data = [_tour_enquiry_row(record) for record in records]
            title = 'Tour Enquiries'
        else:
            raise ReportingError(f"Unknown report kind: {kind}", code='unknown_report')

        logger.info(f"Built {kind} report with {len(data)} rows")

        return {
            'title': title,
            'kind': kind,
            'generated_at': datetime.now(timezone.utc).isoformat(),
            'filters': {
                'search': params.search,
                'date_from': params.date_from.isoformat() if params.date_from else None,
                'date_to': params.date_to.isoformat() if params.date_to else None,
                'status': params.status,
            },
            'data': data,
        }

    def export_report_to_csv(self, report: Dict) -> str:
        """Export a report to CSV.

        Args:
            report: Report dictionary

        Returns:
            CSV data as string
        """
        if 'data' not in report:
            raise ReportingError("Report has no data to export")

        data = report['data']
        if not data:
            return "No data to export"

        output = io.StringIO()
        writer = csv.writer(output)

        header = list(data[0].keys())
        writer.writerow(header)

        for row in data:
            writer.writerow([row.get(col, '') for col in header])

        return output.getvalue()

    def export_report_to_json(self, report: Dict) -> str:
        return json.dumps(report, default=str, indent=2)
