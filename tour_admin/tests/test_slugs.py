"""
Tests for slug derivation and uniqueness probing.
"""
import unittest
from unittest.mock import MagicMock

from tour_admin.db.interface import DocumentStore
from tour_admin.exceptions import DatabaseError
from tour_admin.slugs import (
    CATEGORY_SLUG_DEFAULT, MAX_SLUG_LENGTH, TOUR_SLUG_DEFAULT,
    generate_unique_slug, slugify
)
from tour_admin.tests.helpers import make_sql_store

SLUG_PATTERN = r'^[a-z0-9]+(-[a-z0-9]+)*$'


class TestSlugify(unittest.TestCase):
    def test_basic_title(self):
        self.assertEqual(slugify("North India Pilgrimage", TOUR_SLUG_DEFAULT), 'north-india-pilgrimage')

    def test_punctuation_and_surrounding_space(self):
        self.assertEqual(slugify("  North India!! ", CATEGORY_SLUG_DEFAULT), 'north-india')
        self.assertEqual(slugify("Rock & Roll -- Tour", TOUR_SLUG_DEFAULT), 'rock-roll-tour')

    def test_empty_falls_back_to_default(self):
        self.assertEqual(slugify(None, TOUR_SLUG_DEFAULT), 'tour')
        self.assertEqual(slugify('   ', CATEGORY_SLUG_DEFAULT), 'category')
        self.assertEqual(slugify('!!!', CATEGORY_SLUG_DEFAULT), 'category')

    def test_non_ascii_is_dropped(self):
        self.assertEqual(slugify("Café Tour", TOUR_SLUG_DEFAULT), 'caf-tour')

    def test_output_shape_for_awkward_inputs(self):
        inputs = [
            'a' * 79 + ' b c',
            'x' * 200,
            '---leading and trailing---',
            'Mixed CASE 123 numbers',
            '\t\ttabs\nand newlines',
            '日本語',
        ]
        for text in inputs:
            slug = slugify(text, TOUR_SLUG_DEFAULT)
            self.assertRegex(slug, SLUG_PATTERN)
            self.assertLessEqual(len(slug), MAX_SLUG_LENGTH)

    def test_cut_does_not_leave_trailing_hyphen(self):
        self.assertEqual(slugify('a' * 79 + ' b', TOUR_SLUG_DEFAULT), 'a' * 79)


class TestGenerateUniqueSlug(unittest.TestCase):
    def setUp(self):
        self.store = make_sql_store()

    def test_free_base_slug(self):
        self.assertEqual(generate_unique_slug(self.store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT), 'kerala')

    def test_numbered_suffixes(self):
        self.store.insert('tours', {'slug': 'kerala'})
        self.assertEqual(generate_unique_slug(self.store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT), 'kerala-2')

        self.store.insert('tours', {'slug': 'kerala-2'})
        self.assertEqual(generate_unique_slug(self.store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT), 'kerala-3')

    def test_collections_are_independent(self):
        self.store.insert('categories', {'slug': 'kerala'})
        self.assertEqual(generate_unique_slug(self.store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT), 'kerala')

    def test_timestamp_fallback_after_twenty_attempts(self):
        store = MagicMock(spec=DocumentStore)
        store.query.return_value = [{'id': 'taken'}]

        slug = generate_unique_slug(store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT, clock=lambda: 1700000000000)

        self.assertEqual(slug, 'kerala-1700000000000')
        self.assertEqual(store.query.call_count, 20)
        store.query.assert_any_call('tours', {'slug': 'kerala'}, limit=1)
        store.query.assert_any_call('tours', {'slug': 'kerala-20'}, limit=1)

    def test_store_failure_propagates(self):
        store = MagicMock(spec=DocumentStore)
        store.query.side_effect = DatabaseError("offline")

        with self.assertRaises(DatabaseError):
            generate_unique_slug(store, 'tours', 'Kerala', TOUR_SLUG_DEFAULT)


if __name__ == '__main__':
    unittest.main()
