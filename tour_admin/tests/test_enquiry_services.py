"""
Tests for the contact and tour enquiry services.
"""
import unittest
from unittest.mock import MagicMock

from tour_admin.db.interface import DocumentStore
from tour_admin.exceptions import NotFoundError, ValidationError
from tour_admin.models import EnquiryProgress
from tour_admin.services.contact_service import ContactService
from tour_admin.services.tour_enquiry_service import TourEnquiryService
from tour_admin.tests.helpers import make_sql_store

CONTACT = {
    'name': 'Asha Rao',
    'email': 'asha@example.com',
    'phone': '+91 98765 43210',
    'message': 'Do you run trips in October?',
}

TOUR_ENQUIRY = {
    'name': 'Ben Carter',
    'email': 'ben@example.com',
    'phone': '+44 20 7946 0000',
    'country': 'United Kingdom',
    'arrival_date': '2024-10-12',
    'days': '10',
    'adults': '2',
    'children': '0',
    'accommodation': '4 star',
    'info': 'Vegetarian meals please',
}


class TestContactService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.store = make_sql_store()
        self.service = ContactService(self.store)

    def test_submit_stores_sanitized_enquiry(self):
        enquiry_id = self.service.submit(
            {**CONTACT, 'message': '<b>Hello</b>   team', 'extra': 'ignored'},
            user_agent='Mozilla/5.0 ' + 'x' * 400,
            path='/contact',
        )
        document = self.store.get('contact_messages', enquiry_id)

        self.assertEqual(document['message'], 'Hello team')
        self.assertFalse(document['follow_up_done'])
        self.assertEqual(len(document['user_agent']), 300)
        self.assertEqual(document['path'], '/contact')
        self.assertNotIn('extra', document)
        self.assertTrue(document['created_at'])

    def test_empty_message_rejected_without_writing(self):
        store = MagicMock(spec=DocumentStore)

        with self.assertRaises(ValidationError) as ctx:
            ContactService(store).submit({**CONTACT, 'message': '<p>   </p>'})

        self.assertEqual(ctx.exception.message, "Missing required fields.")
        store.insert.assert_not_called()

    def test_bad_email_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.submit({**CONTACT, 'email': 'asha at example'})
        self.assertEqual(ctx.exception.message, "Invalid email address.")

    def test_phone_is_optional(self):
        self.service.submit({**CONTACT, 'phone': ''})
        self.assertEqual(len(self.service.list()), 1)

    def test_list_newest_first_with_string_flags(self):
        self.store.insert('contact_messages', {**CONTACT, 'follow_up_done': 'true',
                                               'created_at': '2024-01-01T08:00:00Z'})
        newer = self.store.insert('contact_messages', {**CONTACT, 'follow_up_done': 1,
                                                       'created_at': '2024-02-01T08:00:00Z'})
        self.store.insert('contact_messages', {**CONTACT, 'follow_up_done': 'no'})

        enquiries = self.service.list()

        self.assertEqual(enquiries[0].id, newer['id'])
        self.assertEqual([e.follow_up_done for e in enquiries], [True, True, False])

    def test_set_follow_up(self):
        enquiry_id = self.service.submit(CONTACT)
        self.service.set_follow_up(enquiry_id, True)

        document = self.store.get('contact_messages', enquiry_id)
        self.assertTrue(document['follow_up_done'])
        self.assertTrue(document['updated_at'])

    def test_set_follow_up_requires_id(self):
        with self.assertRaises(ValidationError):
            self.service.set_follow_up('', True)

    def test_set_follow_up_unknown_id(self):
        with self.assertRaises(NotFoundError):
            self.service.set_follow_up('missing', True)

    def test_enquiries_cannot_be_deleted(self):
        self.assertFalse(hasattr(self.service, 'delete'))


class TestTourEnquiryService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.store = make_sql_store()
        self.service = TourEnquiryService(self.store)

    def test_submit_starts_as_new(self):
        enquiry_id = self.service.submit(TOUR_ENQUIRY, user_agent='curl/8.0', path='/tours/kerala')

        document = self.store.get('tour_forms', enquiry_id)
        self.assertEqual(document['status'], 'new')
        self.assertFalse(document['follow_up_done'])
        self.assertFalse(document['trip_completed'])
        self.assertEqual(self.service.get(enquiry_id).progress, EnquiryProgress.NEW)

    def test_phone_is_required(self):
        store = MagicMock(spec=DocumentStore)
        with self.assertRaises(ValidationError) as ctx:
            TourEnquiryService(store).submit({**TOUR_ENQUIRY, 'phone': '  '})

        self.assertIn('phone', ctx.exception.details)
        store.insert.assert_not_called()

    def test_malformed_email_rejected_as_invalid(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.submit({**TOUR_ENQUIRY, 'email': 'chen@'})

        self.assertEqual(ctx.exception.code, 'invalid_email')
        self.assertEqual(self.service.list(), [])

    def test_long_fields_are_capped(self):
        enquiry_id = self.service.submit({**TOUR_ENQUIRY, 'info': 'i' * 5000, 'adults': '1' * 50})
        enquiry = self.service.get(enquiry_id)

        self.assertEqual(len(enquiry.info), 2000)
        self.assertEqual(len(enquiry.adults), 10)

    def test_progress_transitions(self):
        enquiry_id = self.service.submit(TOUR_ENQUIRY)

        self.service.set_follow_up(enquiry_id, True)
        self.assertEqual(self.store.get('tour_forms', enquiry_id)['status'], 'followed')
        self.assertEqual(self.service.get(enquiry_id).progress, EnquiryProgress.FOLLOWED)

        self.service.set_completed(enquiry_id, True)
        self.assertEqual(self.store.get('tour_forms', enquiry_id)['status'], 'completed')
        self.assertEqual(self.service.get(enquiry_id).progress, EnquiryProgress.COMPLETED)

        self.service.set_completed(enquiry_id, False)
        self.assertEqual(self.store.get('tour_forms', enquiry_id)['status'], 'followed')

        self.service.set_follow_up(enquiry_id, False)
        self.assertEqual(self.store.get('tour_forms', enquiry_id)['status'], 'new')
        self.assertEqual(self.service.get(enquiry_id).progress, EnquiryProgress.NEW)

    def test_enquiries_cannot_be_deleted(self):
        self.assertFalse(hasattr(self.service, 'delete'))


if __name__ == '__main__':
    unittest.main()
