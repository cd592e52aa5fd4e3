"""
Tests for the Tour service and the form mapping helpers.
"""
import unittest
from unittest.mock import MagicMock

from tour_admin.db.interface import DocumentStore
from tour_admin.exceptions import FeaturedLimitError, NotFoundError, ValidationError
from tour_admin.models import Difficulty, Tour, TourStatus
from tour_admin.services.tour_service import (
    MAX_FEATURED_TOURS, TourService, map_form_to_tour_doc, referenced_images, tour_to_form
)
from tour_admin.tests.helpers import make_sql_store, valid_tour_form


class TestMapFormToTourDoc(unittest.TestCase):
    def test_strings_are_trimmed_and_lists_cleaned(self):
        form = valid_tour_form(
            title='  Kerala Backwaters ',
            gallery_images=['https://cdn/x/1.jpg', '  ', '', 'https://cdn/x/2.jpg'],
            highlights=['Houseboat night', '', '   '],
            included=[' Meals '],
            excluded=[],
        )
        document = map_form_to_tour_doc(form)

        self.assertEqual(document['title'], 'Kerala Backwaters')
        self.assertEqual(document['gallery_image_urls'], ['https://cdn/x/1.jpg', 'https://cdn/x/2.jpg'])
        self.assertEqual(document['highlights'], ['Houseboat night'])
        self.assertEqual(document['included'], ['Meals'])
        self.assertEqual(document['excluded'], [])

    def test_itinerary_blank_days_dropped_and_renumbered(self):
        form = valid_tour_form(itinerary=[
            {'day_title': 'Arrive in Kochi', 'description': 'Transfer to hotel'},
            {'day_title': '  ', 'description': ''},
            {'day_title': '', 'description': 'Spice plantation visit'},
        ])
        document = map_form_to_tour_doc(form)

        self.assertEqual(document['itinerary'], [
            {'day_number': 1, 'day_title': 'Arrive in Kochi', 'description': 'Transfer to hotel'},
            {'day_number': 2, 'day_title': '', 'description': 'Spice plantation visit'},
        ])

    def test_image_urls_feature_first(self):
        document = map_form_to_tour_doc(valid_tour_form(
            feature_image_url='https://cdn/feature.jpg',
            gallery_images=['https://cdn/g1.jpg'],
        ))
        self.assertEqual(document['image_urls'], ['https://cdn/feature.jpg', 'https://cdn/g1.jpg'])

        no_feature = map_form_to_tour_doc(valid_tour_form(gallery_images=['https://cdn/g1.jpg']))
        self.assertEqual(no_feature['image_urls'], ['https://cdn/g1.jpg'])

    def test_numbers_and_defaults(self):
        document = map_form_to_tour_doc(valid_tour_form(max_group_size='12', min_age=''))

        self.assertEqual(document['max_group_size'], 12)
        self.assertIsNone(document['min_age'])
        self.assertEqual(document['difficulty_level'], Difficulty.EASY.value)
        self.assertEqual(document['status'], TourStatus.DRAFT.value)
        self.assertEqual(document['price'], 0)
        self.assertNotIn('slug', document)
        self.assertNotIn('is_featured', document)

    def test_seo_fallbacks(self):
        document = map_form_to_tour_doc(valid_tour_form(feature_image_url='https://cdn/feature.jpg'))

        self.assertEqual(document['meta_title'], 'Kerala Backwaters')
        self.assertEqual(document['meta_description'], 'Houseboats and spice gardens')
        self.assertEqual(document['og_image'], 'https://cdn/feature.jpg')

    def test_explicit_seo_values_win(self):
        document = map_form_to_tour_doc(valid_tour_form(
            meta_title='Best of Kerala', og_image='https://cdn/og.jpg', feature_image_url='https://cdn/f.jpg'
        ))
        self.assertEqual(document['meta_title'], 'Best of Kerala')
        self.assertEqual(document['og_image'], 'https://cdn/og.jpg')


class TestTourToForm(unittest.TestCase):
    def test_empty_lists_get_one_blank_entry(self):
        form = tour_to_form(Tour(title='Bare'))

        self.assertEqual(form['gallery_images'], [''])
        self.assertEqual(form['highlights'], [''])
        self.assertEqual(form['included'], [''])
        self.assertEqual(form['excluded'], [''])
        self.assertEqual(form['itinerary'], [{'day_title': '', 'description': ''}])
        self.assertEqual(form['max_group_size'], '')

    def test_stored_tour_prefills_form(self):
        store = make_sql_store()
        service = TourService(store)
        tour_id = service.create(valid_tour_form(
            max_group_size='8',
            highlights=['Houseboat night'],
            itinerary=[{'day_title': 'Arrive', 'description': 'Kochi'}],
        ))

        form = tour_to_form(service.get(tour_id))

        self.assertEqual(form['title'], 'Kerala Backwaters')
        self.assertEqual(form['max_group_size'], '8')
        self.assertEqual(form['highlights'], ['Houseboat night'])
        self.assertEqual(form['itinerary'], [{'day_title': 'Arrive', 'description': 'Kochi'}])


class TestTourService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.store = make_sql_store()
        self.service = TourService(self.store)

    def test_create_sets_slug_and_flags(self):
        tour_id = self.service.create(valid_tour_form())
        tour = self.service.get(tour_id)

        self.assertEqual(tour.slug, 'kerala-backwaters')
        self.assertFalse(tour.is_featured)
        self.assertEqual(tour.status, TourStatus.DRAFT)
        self.assertIsNotNone(tour.created_at)

    def test_same_title_gets_suffix(self):
        self.service.create(valid_tour_form())
        second = self.service.get(self.service.create(valid_tour_form()))
        self.assertEqual(second.slug, 'kerala-backwaters-2')

    def test_invalid_form_writes_nothing(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.create(valid_tour_form(location=' '))
        self.assertIn('location', ctx.exception.details)
        self.assertEqual(self.store.query('tours'), [])

    def test_update_keeps_slug_and_featured_flag(self):
        tour_id = self.service.create(valid_tour_form())
        self.service.set_featured(tour_id, True)

        self.service.update(tour_id, valid_tour_form(title='Kerala in Monsoon'))

        tour = self.service.get(tour_id)
        self.assertEqual(tour.title, 'Kerala in Monsoon')
        self.assertEqual(tour.slug, 'kerala-backwaters')
        self.assertTrue(tour.is_featured)

    def test_update_backfills_missing_slug_from_title(self):
        legacy = self.store.insert('tours', {'title': 'Old Tour', 'status': 'published'})

        self.service.update(legacy['id'], valid_tour_form(title='Goa Beaches'))

        self.assertEqual(self.service.get(legacy['id']).slug, 'goa-beaches')

    def test_update_missing_tour(self):
        with self.assertRaises(NotFoundError):
            self.service.update('missing', valid_tour_form())

    def test_set_status(self):
        tour_id = self.service.create(valid_tour_form())
        self.service.set_status(tour_id, 'published')
        self.assertEqual(self.service.get(tour_id).status, TourStatus.PUBLISHED)

        with self.assertRaises(ValidationError):
            self.service.set_status(tour_id, 'archived')

    def test_list_by_status(self):
        draft_id = self.service.create(valid_tour_form())
        published_id = self.service.create(valid_tour_form(title='Goa Beaches', status='published'))

        self.assertEqual([t.id for t in self.service.list('published')], [published_id])
        self.assertEqual([t.id for t in self.service.list(TourStatus.DRAFT)], [draft_id])

    def test_list_unknown_status_is_a_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.list('bogus')
        self.assertIn('status', ctx.exception.details)

    def test_clear_feature_image(self):
        tour_id = self.service.create(valid_tour_form(
            feature_image_url='tours/feature/1-a.jpg', gallery_images=['tours/gallery/1-b.jpg']
        ))

        cleared = self.service.clear_feature_image(tour_id)

        tour = self.service.get(tour_id)
        self.assertEqual(cleared, 'tours/feature/1-a.jpg')
        self.assertEqual(tour.feature_image_url, '')
        self.assertEqual(tour.image_urls, ['tours/gallery/1-b.jpg'])
        self.assertEqual(tour.og_image, '')
        self.assertEqual(referenced_images(tour), ['tours/gallery/1-b.jpg'])

    def test_remove_gallery_image(self):
        tour_id = self.service.create(valid_tour_form(
            feature_image_url='tours/feature/1-a.jpg',
            gallery_images=['tours/gallery/1-b.jpg', 'tours/gallery/2-c.jpg'],
        ))

        self.service.remove_gallery_image(tour_id, 'tours/gallery/1-b.jpg')

        tour = self.service.get(tour_id)
        self.assertEqual(tour.gallery_image_urls, ['tours/gallery/2-c.jpg'])
        self.assertEqual(tour.image_urls, ['tours/feature/1-a.jpg', 'tours/gallery/2-c.jpg'])

        with self.assertRaises(ValidationError):
            self.service.remove_gallery_image(tour_id, 'tours/gallery/1-b.jpg')

    def test_delete(self):
        tour_id = self.service.create(valid_tour_form())
        self.service.delete(tour_id)
        with self.assertRaises(NotFoundError):
            self.service.get(tour_id)


class TestFeaturedLimit(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.store = MagicMock(spec=DocumentStore)
        self.store.update.return_value = 1
        self.service = TourService(self.store)
        self.featured = [Tour(id=f"t{i}", is_featured=True) for i in range(MAX_FEATURED_TOURS)]

    def test_seventh_featured_tour_is_rejected_before_writing(self):
        with self.assertRaises(FeaturedLimitError) as ctx:
            self.service.set_featured('t-new', True, tours=self.featured + [Tour(id='t-new')])

        self.assertEqual(ctx.exception.details['featured'], MAX_FEATURED_TOURS)
        self.store.update.assert_not_called()
        self.store.query.assert_not_called()

    def test_tour_already_featured_is_not_counted_twice(self):
        self.service.set_featured('t0', True, tours=self.featured)
        self.store.update.assert_called_once()

    def test_unfeaturing_is_always_allowed(self):
        self.service.set_featured('t0', False, tours=self.featured)
        data = self.store.update.call_args[0][2]
        self.assertFalse(data['is_featured'])

    def test_count_read_fresh_when_no_tours_given(self):
        store = make_sql_store()
        service = TourService(store)
        tour_ids = [service.create(valid_tour_form(title=f"Tour {i}")) for i in range(MAX_FEATURED_TOURS + 1)]

        for tour_id in tour_ids[:MAX_FEATURED_TOURS]:
            service.set_featured(tour_id, True)

        with self.assertRaises(FeaturedLimitError):
            service.set_featured(tour_ids[-1], True)
        self.assertFalse(service.get(tour_ids[-1]).is_featured)


if __name__ == '__main__':
    unittest.main()
