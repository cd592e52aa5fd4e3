# tour_admin/listing.py
"""Client-side filter, sort and paginate for the admin list screens.

Everything here is a pure function of (records, params). Nothing is cached
between calls.
"""
import dataclasses
import math
from dataclasses import dataclass
from datetime import date, timezone, tzinfo
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from tour_admin.models import ContactEnquiry, TourEnquiry, Tour, Category, EnquiryProgress
from tour_admin.utils.date_utils import start_of_day, end_of_day, to_millis

DEFAULT_PAGE_SIZE = 10

T = TypeVar('T')


@dataclass(frozen=True)
class ListParams:
    search: str = ''
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: str = 'all'
    category: str = 'all'
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    tz: tzinfo = timezone.utc

    def update(self, **changes) -> 'ListParams':
        """New params with changes applied.

        Changing any filter sends the admin back to page 1.
        """
        filter_changed = any(
            getattr(self, name) != value
            for name, value in changes.items()
            if name != 'page'
        )
        if filter_changed:
            changes['page'] = 1
        return dataclasses.replace(self, **changes)


@dataclass
class PageResult(Generic[T]):
    items: List[T]
    total: int
    total_pages: int
    page: int


def sort_newest_first(records: Sequence[T]) -> List[T]:
    return sorted(records, key=lambda record: record.created_at_millis, reverse=True)


def filter_records(
    records: Sequence[T],
    params: ListParams,
    search_fields: Sequence[str],
    status_match: Optional[Callable[[T, str], bool]] = None,
    category_match: Optional[Callable[[T, str], bool]] = None,
) -> List[T]:
    """Apply every active filter (AND) and re-sort newest first."""
    result = list(records)

    term = (params.search or '').strip().lower()
    if term:
        result = [
            record for record in result
            if any(term in str(getattr(record, name, '') or '').lower() for name in search_fields)
        ]

    if params.date_from:
        from_ms = to_millis(start_of_day(params.date_from, params.tz))
        result = [record for record in result if record.created_at_millis >= from_ms]

    if params.date_to:
        to_ms = to_millis(end_of_day(params.date_to, params.tz))
        result = [record for record in result if record.created_at_millis <= to_ms]

    if status_match and params.status != 'all':
        result = [record for record in result if status_match(record, params.status)]

    if category_match and params.category != 'all':
        result = [record for record in result if category_match(record, params.category)]

    return sort_newest_first(result)


def paginate(records: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> PageResult[T]:
    """Slice one 1-indexed page; out-of-range pages clamp to the nearest valid one."""
    total = len(records)
    total_pages = max(1, math.ceil(total / page_size))
    current_page = min(max(1, page), total_pages)
    start = (current_page - 1) * page_size
    return PageResult(
        items=list(records[start:start + page_size]),
        total=total,
        total_pages=total_pages,
        page=current_page,
    )


def _contact_status(record: ContactEnquiry, status: str) -> bool:
    if status == 'done':
        return record.follow_up_done
    if status == 'pending':
        return not record.follow_up_done
    return True


def _tour_enquiry_status(record: TourEnquiry, status: str) -> bool:
    if status == 'pending':
        return record.progress == EnquiryProgress.NEW
    if status == 'followed':
        return record.progress == EnquiryProgress.FOLLOWED
    if status == 'completed':
        return record.progress == EnquiryProgress.COMPLETED
    return True


def _tour_status(record: Tour, status: str) -> bool:
    return record.status.value == status


def _tour_category(record: Tour, category: str) -> bool:
    return record.category_id == category


def _category_status(record: Category, status: str) -> bool:
    if status == 'active':
        return record.is_active
    if status == 'inactive':
        return not record.is_active
    return True


def _category_type(record: Category, category: str) -> bool:
    return record.type.value == category


def filter_contacts(records: Sequence[ContactEnquiry], params: ListParams) -> List[ContactEnquiry]:
    return filter_records(records, params, ('email', 'phone'), _contact_status)


def filter_tour_enquiries(records: Sequence[TourEnquiry], params: ListParams) -> List[TourEnquiry]:
    return filter_records(records, params, ('name', 'email', 'phone'), _tour_enquiry_status)


def contact_listing(records: Sequence[ContactEnquiry], params: ListParams) -> PageResult[ContactEnquiry]:
    filtered = filter_contacts(records, params)
    return paginate(filtered, params.page, params.page_size)


def tour_enquiry_listing(records: Sequence[TourEnquiry], params: ListParams) -> PageResult[TourEnquiry]:
    filtered = filter_tour_enquiries(records, params)
    return paginate(filtered, params.page, params.page_size)


def tour_listing(records: Sequence[Tour], params: ListParams) -> PageResult[Tour]:
    filtered = filter_records(records, params, ('title', 'location'), _tour_status, _tour_category)
    return paginate(filtered, params.page, params.page_size)


def category_listing(records: Sequence[Category], params: ListParams) -> PageResult[Category]:
    """Categories filter on name; `category` selects the tour/blog type."""
    filtered = filter_records(records, params, ('name',), _category_status, _category_type)
    return paginate(filtered, params.page, params.page_size)
