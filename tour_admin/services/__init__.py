from .category_service import CategoryService
from .tour_service import TourService
from .contact_service import ContactService
from .tour_enquiry_service import TourEnquiryService
from .reporting_service import ReportingService

__all__ = [
    'CategoryService',
    'TourService',
    'ContactService',
    'TourEnquiryService',
    'ReportingService',
]
