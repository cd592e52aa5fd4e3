"""
Command line admin console for the tour site.

Manages categories, tours and their images, and reads the enquiries that
arrive from the public contact and tour forms.
"""
import argparse
import json
import os
import sys
from datetime import date
from pathlib import Path

from tabulate import tabulate

from tour_admin.config import config
from tour_admin.context import ClientContext, create_context
from tour_admin.exceptions import AuthError, NotFoundError, TourAdminError, ValidationError
from tour_admin.listing import ListParams, category_listing, contact_listing, tour_enquiry_listing, tour_listing
from tour_admin.logging_setup import logger, get_logger
from tour_admin.media import MediaManager, UploadTracker
from tour_admin.models import CategoryType, TourStatus
from tour_admin.services import (
    CategoryService, ContactService, ReportingService, TourEnquiryService, TourService
)
from tour_admin.services.tour_service import referenced_images, tour_to_form
from tour_admin.utils.date_utils import get_timezone
from tour_admin.utils.validation import validate_upload_size

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_VALIDATION = 2
EXIT_AUTH = 3

log = get_logger('tour_admin.cli')


def _confirm(args, prompt):
    """Ask before a destructive command; --yes skips the question."""
    if getattr(args, 'yes', False):
        return True
    answer = input(f"{prompt} [y/N]: ")
    return answer.strip().lower() in ('y', 'yes')


def _read_upload(path):
    """Read an image from disk and enforce the upload cap."""
    data = Path(path).read_bytes()
    validate_upload_size(len(data))
    return data


def _list_params(args):
    return ListParams(
        search=getattr(args, 'search', '') or '',
        date_from=getattr(args, 'date_from', None),
        date_to=getattr(args, 'date_to', None),
        status=getattr(args, 'status', None) or 'all',
        category=getattr(args, 'category', None) or 'all',
        page=getattr(args, 'page', 1) or 1,
        page_size=config.listing_config['page_size'],
        tz=get_timezone(config.listing_config['timezone']),
    )


def _print_page(title, page, headers, rows):
    print(f"\n{title}:")
    if rows:
        print(tabulate(rows, headers=headers))
    else:
        print("No records found")
    print(f"\nPage {page.page} of {page.total_pages} ({page.total} total)")


def _stamp(record):
    return record.created_at.strftime('%Y-%m-%d %H:%M') if record.created_at else ''


def require_admin(args, context: ClientContext):
    """Session gate. Only the Supabase backend has identities to check."""
    if context.auth is None:
        return None

    session = context.auth.current_session()
    if session:
        return session

    email = args.email or os.environ.get('TOUR_ADMIN_EMAIL')
    password = args.password or os.environ.get('TOUR_ADMIN_PASSWORD')
    return context.auth.sign_in(email, password)


# Categories

def list_categories(args, context):
    service = CategoryService(context.store)
    categories = service.list()
    page = category_listing(categories, _list_params(args))

    rows = [
        [c.id, c.name, c.slug, c.type.value, 'yes' if c.is_active else 'no', c.item_count, _stamp(c)]
        for c in page.items
    ]
    _print_page('Categories', page, ['ID', 'Name', 'Slug', 'Type', 'Active', 'Items', 'Created'], rows)
    return EXIT_OK


def create_category(args, context):
    service = CategoryService(context.store)
    media = MediaManager(context.blobs)
    tracker = UploadTracker()

    image_url = ''
    if args.image:
        image_url = media.upload_category_image(_read_upload(args.image), Path(args.image).name, args.type)
        tracker.track(image_url)

    try:
        category = service.create(args.name, args.type, args.description or '', image_url)
    except TourAdminError:
        tracker.discard(media)
        raise

    tracker.clear()
    print(f"Created category {category.id} ({category.slug})")
    return EXIT_OK


def _delete_unreferenced(media, before, after):
    """Best-effort delete of the addresses a save left unreferenced."""
    kept = set(after)
    results = [media.delete_by_address(address) for address in before if address not in kept]
    for result in results:
        if not result.ok:
            print(f"Warning: could not delete {result.address}: {result.error}", file=sys.stderr)
    return results


def update_category(args, context):
    service = CategoryService(context.store)
    media = MediaManager(context.blobs)
    tracker = UploadTracker()

    data = {}
    if args.name is not None:
        data['name'] = args.name
    if args.description is not None:
        data['description'] = args.description
    if args.type is not None:
        data['type'] = args.type

    existing = service.get(args.id)
    if args.image:
        data['image_url'] = media.upload_category_image(
            _read_upload(args.image), Path(args.image).name, args.type or existing.type
        )
        tracker.track(data['image_url'])

    try:
        service.update(args.id, data)
    except TourAdminError:
        tracker.discard(media)
        raise

    tracker.clear()
    if args.image:
        _delete_unreferenced(media, [existing.image_url], [data['image_url']])

    print(f"Updated category {args.id}")
    return EXIT_OK


def clear_category_image(args, context):
    service = CategoryService(context.store)
    existing = service.get(args.id)

    if not _confirm(args, "Delete this image from storage and clear it?"):
        print("Cancelled")
        return EXIT_FAILURE

    service.update(args.id, {'image_url': ''})
    _delete_unreferenced(MediaManager(context.blobs), [existing.image_url], [])

    print(f"Cleared image from category {args.id}")
    return EXIT_OK


def delete_category(args, context):
    service = CategoryService(context.store)
    category = service.get(args.id)

    if not _confirm(args, f"Delete category '{category.name}'?"):
        print("Cancelled")
        return EXIT_FAILURE

    service.delete(args.id)
    if category.image_url:
        MediaManager(context.blobs).delete_by_address(category.image_url)

    print(f"Deleted category {args.id}")
    return EXIT_OK


def set_category_active(args, context):
    active = args.category_command == 'activate'
    CategoryService(context.store).set_active(args.id, active)
    print(f"Category {args.id} is now {'active' if active else 'inactive'}")
    return EXIT_OK


# Tours

def _load_form(path):
    try:
        with open(path) as handle:
            form = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Could not read tour form {path}: {str(e)}", code='validation')

    if not isinstance(form, dict):
        raise ValidationError("Tour form must be a JSON object", code='validation')
    return form


def _resolve_category_name(form, context):
    """Fill category_name from category_id when the form leaves it out."""
    if form.get('category_name') or not form.get('category_id'):
        return
    try:
        form['category_name'] = CategoryService(context.store).get(form['category_id']).name
    except NotFoundError:
        log.warning(f"Tour form references unknown category {form['category_id']}")


def _attach_uploads(args, form, media, tracker):
    if args.feature_image:
        address = media.upload_tour_feature_image(_read_upload(args.feature_image), Path(args.feature_image).name)
        tracker.track(address)
        form['feature_image_url'] = address

    if args.gallery_image:
        gallery = [url for url in (form.get('gallery_images') or []) if url]
        for path in args.gallery_image:
            address = media.upload_tour_gallery_image(_read_upload(path), Path(path).name)
            tracker.track(address)
            gallery.append(address)
        form['gallery_images'] = gallery


def list_tours(args, context):
    tours = TourService(context.store).list()
    page = tour_listing(tours, _list_params(args))

    rows = [
        [t.id, t.title, t.slug, t.category_name, t.location, t.status.value, 'yes' if t.is_featured else '', _stamp(t)]
        for t in page.items
    ]
    _print_page(
        'Tours', page, ['ID', 'Title', 'Slug', 'Category', 'Location', 'Status', 'Featured', 'Created'], rows
    )
    return EXIT_OK


def show_tour(args, context):
    tour = TourService(context.store).get(args.id)
    print(json.dumps(tour_to_form(tour), indent=2))
    return EXIT_OK


def create_tour(args, context):
    service = TourService(context.store)
    media = MediaManager(context.blobs)
    tracker = UploadTracker()

    form = _load_form(args.form)
    _resolve_category_name(form, context)

    try:
        _attach_uploads(args, form, media, tracker)
        tour_id = service.create(form)
    except (TourAdminError, OSError):
        # Nothing references these uploads now
        results = tracker.discard(media)
        log.info(f"Discarded {len(results)} uploads after failed tour create")
        raise

    tracker.clear()
    print(f"Created tour {tour_id}")
    return EXIT_OK


def update_tour(args, context):
    service = TourService(context.store)
    media = MediaManager(context.blobs)
    tracker = UploadTracker()

    existing = service.get(args.id)
    form = _load_form(args.form)
    _resolve_category_name(form, context)

    try:
        _attach_uploads(args, form, media, tracker)
        service.update(args.id, form)
    except (TourAdminError, OSError):
        tracker.discard(media)
        raise

    tracker.clear()
    _delete_unreferenced(media, referenced_images(existing), referenced_images(service.get(args.id)))

    print(f"Updated tour {args.id}")
    return EXIT_OK


def clear_tour_image(args, context):
    service = TourService(context.store)
    existing = service.get(args.id)

    if not _confirm(args, "Delete this image from storage and clear it?"):
        print("Cancelled")
        return EXIT_FAILURE

    if args.gallery:
        service.remove_gallery_image(args.id, args.gallery)
    else:
        service.clear_feature_image(args.id)

    # The record is already saved; a failed blob delete only warns
    _delete_unreferenced(
        MediaManager(context.blobs), referenced_images(existing), referenced_images(service.get(args.id))
    )
    print(f"Cleared image from tour {args.id}")
    return EXIT_OK


def delete_tour(args, context):
    service = TourService(context.store)
    tour = service.get(args.id)

    if not _confirm(args, f"Delete tour '{tour.title}'?"):
        print("Cancelled")
        return EXIT_FAILURE

    service.delete(args.id)
    print(f"Deleted tour {args.id}")
    return EXIT_OK


def set_tour_status(args, context):
    TourService(context.store).set_status(args.id, args.status)
    print(f"Tour {args.id} is now {args.status}")
    return EXIT_OK


def set_tour_featured(args, context):
    featured = not args.off
    TourService(context.store).set_featured(args.id, featured)
    print(f"Tour {args.id} {'featured' if featured else 'no longer featured'}")
    return EXIT_OK


# Media

def upload_media(args, context):
    media = MediaManager(context.blobs)
    address = media.upload(_read_upload(args.file), Path(args.file).name, args.entity, args.subtype)
    print(address)
    return EXIT_OK


def delete_media(args, context):
    if not _confirm(args, f"Delete {args.address}?"):
        print("Cancelled")
        return EXIT_FAILURE

    result = MediaManager(context.blobs).delete_by_address(args.address)
    if not result.ok:
        print(f"Could not delete {args.address}: {result.error}")
        return EXIT_FAILURE

    print("Skipped (empty address)" if result.skipped else f"Deleted {args.address}")
    return EXIT_OK


# Enquiries

def list_contacts(args, context):
    contacts = ContactService(context.store).list()
    page = contact_listing(contacts, _list_params(args))

    rows = [
        [c.id, _stamp(c), c.name, c.email, c.phone, c.message[:60], 'done' if c.follow_up_done else 'pending']
        for c in page.items
    ]
    _print_page('Contact Enquiries', page, ['ID', 'Received', 'Name', 'Email', 'Phone', 'Message', 'Follow-up'], rows)
    return EXIT_OK


def list_tour_enquiries(args, context):
    enquiries = TourEnquiryService(context.store).list()
    page = tour_enquiry_listing(enquiries, _list_params(args))

    rows = [
        [e.id, _stamp(e), e.name, e.email, e.phone, e.country, e.arrival_date, e.progress.value]
        for e in page.items
    ]
    _print_page(
        'Tour Enquiries', page, ['ID', 'Received', 'Name', 'Email', 'Phone', 'Country', 'Arrival', 'Progress'], rows
    )
    return EXIT_OK


def follow_up_enquiry(args, context):
    done = not args.undo
    if args.kind == 'contact':
        ContactService(context.store).set_follow_up(args.id, done)
    else:
        TourEnquiryService(context.store).set_follow_up(args.id, done)
    print(f"Enquiry {args.id} follow-up {'done' if done else 'reopened'}")
    return EXIT_OK


def complete_enquiry(args, context):
    completed = not args.undo
    TourEnquiryService(context.store).set_completed(args.id, completed)
    print(f"Tour enquiry {args.id} {'completed' if completed else 'back to followed'}")
    return EXIT_OK


def export_enquiries(args, context):
    reporting = ReportingService(context.store)
    report = reporting.enquiry_report(args.kind, _list_params(args))

    if args.format == 'json':
        output = reporting.export_report_to_json(report)
    else:
        output = reporting.export_report_to_csv(report)

    if args.output:
        Path(args.output).write_text(output)
        print(f"Wrote {len(report['data'])} rows to {args.output}")
    else:
        print(output)
    return EXIT_OK


def show_summary(args, context):
    summary = ReportingService(context.store).dashboard_summary()
    rows = [
        [section, ', '.join(f"{key}: {value}" for key, value in counts.items())]
        for section, counts in summary.items()
    ]
    print("\nDashboard:")
    print(tabulate(rows, headers=['Section', 'Counts']))
    return EXIT_OK


def _add_filter_arguments(parser, statuses, with_category=False):
    parser.add_argument('--search', default='', help='Case-insensitive search')
    parser.add_argument('--from', dest='date_from', type=date.fromisoformat, help='Created on or after (YYYY-MM-DD)')
    parser.add_argument('--to', dest='date_to', type=date.fromisoformat, help='Created on or before (YYYY-MM-DD)')
    parser.add_argument('--status', choices=['all', *statuses], default='all', help='Status filter')
    if with_category:
        parser.add_argument('--category', default='all', help='Category filter')
    parser.add_argument('--page', type=int, default=1, help='Page number')


def build_parser():
    """Build the argument parser for every admin command."""
    parser = argparse.ArgumentParser(description='Tour Admin Console')
    parser.add_argument('--email', help='Admin email (or TOUR_ADMIN_EMAIL)')
    parser.add_argument('--password', help='Admin password (or TOUR_ADMIN_PASSWORD)')

    confirm = argparse.ArgumentParser(add_help=False)
    confirm.add_argument('--yes', '-y', action='store_true', help='Do not ask for confirmation')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Categories
    categories = subparsers.add_parser('categories', help='Manage categories')
    category_commands = categories.add_subparsers(dest='category_command')

    category_list = category_commands.add_parser('list', help='List categories')
    _add_filter_arguments(category_list, ['active', 'inactive'])
    category_list.add_argument('--type', dest='category', choices=[t.value for t in CategoryType],
                               help='Only tour or blog categories')
    category_list.set_defaults(handler=list_categories)

    category_create = category_commands.add_parser('create', help='Create a category')
    category_create.add_argument('name', help='Category name')
    category_create.add_argument('--type', choices=[t.value for t in CategoryType], default='tour')
    category_create.add_argument('--description', help='Description')
    category_create.add_argument('--image', help='Image file to upload')
    category_create.set_defaults(handler=create_category)

    category_update = category_commands.add_parser('update', help='Update a category')
    category_update.add_argument('id', help='Category ID')
    category_update.add_argument('--name', help='New name')
    category_update.add_argument('--type', choices=[t.value for t in CategoryType])
    category_update.add_argument('--description', help='New description')
    category_update.add_argument('--image', help='Replacement image file')
    category_update.set_defaults(handler=update_category)

    category_delete = category_commands.add_parser('delete', parents=[confirm], help='Delete a category')
    category_delete.add_argument('id', help='Category ID')
    category_delete.set_defaults(handler=delete_category)

    category_clear = category_commands.add_parser('clear-image', parents=[confirm], help='Remove a category image')
    category_clear.add_argument('id', help='Category ID')
    category_clear.set_defaults(handler=clear_category_image)

    for name in ('activate', 'deactivate'):
        toggle = category_commands.add_parser(name, help=f'{name.capitalize()} a category')
        toggle.add_argument('id', help='Category ID')
        toggle.set_defaults(handler=set_category_active)

    # Tours
    tours = subparsers.add_parser('tours', help='Manage tours')
    tour_commands = tours.add_subparsers(dest='tour_command')

    tour_list = tour_commands.add_parser('list', help='List tours')
    _add_filter_arguments(tour_list, [s.value for s in TourStatus], with_category=True)
    tour_list.set_defaults(handler=list_tours)

    tour_show = tour_commands.add_parser('show', help='Show a tour as an editable form')
    tour_show.add_argument('id', help='Tour ID')
    tour_show.set_defaults(handler=show_tour)

    for name, handler in (('create', create_tour), ('update', update_tour)):
        tour_edit = tour_commands.add_parser(name, help=f'{name.capitalize()} a tour from a JSON form')
        if name == 'update':
            tour_edit.add_argument('id', help='Tour ID')
        tour_edit.add_argument('form', help='JSON file with the tour form')
        tour_edit.add_argument('--feature-image', help='Feature image file to upload')
        tour_edit.add_argument('--gallery-image', action='append', help='Gallery image file (repeatable)')
        tour_edit.set_defaults(handler=handler)

    tour_delete = tour_commands.add_parser('delete', parents=[confirm], help='Delete a tour')
    tour_delete.add_argument('id', help='Tour ID')
    tour_delete.set_defaults(handler=delete_tour)

    tour_clear = tour_commands.add_parser('clear-image', parents=[confirm], help='Remove a tour image')
    tour_clear.add_argument('id', help='Tour ID')
    image_choice = tour_clear.add_mutually_exclusive_group(required=True)
    image_choice.add_argument('--feature', action='store_true', help='Clear the feature image')
    image_choice.add_argument('--gallery', metavar='ADDRESS', help='Remove one gallery image')
    tour_clear.set_defaults(handler=clear_tour_image)

    tour_status = tour_commands.add_parser('status', help='Publish or unpublish a tour')
    tour_status.add_argument('id', help='Tour ID')
    tour_status.add_argument('status', choices=[s.value for s in TourStatus])
    tour_status.set_defaults(handler=set_tour_status)

    tour_feature = tour_commands.add_parser('feature', help='Feature a tour on the home page')
    tour_feature.add_argument('id', help='Tour ID')
    tour_feature.add_argument('--off', action='store_true', help='Remove the featured flag')
    tour_feature.set_defaults(handler=set_tour_featured)

    # Media
    media = subparsers.add_parser('media', help='Upload or delete images')
    media_commands = media.add_subparsers(dest='media_command')

    media_upload = media_commands.add_parser('upload', help='Upload an image')
    media_upload.add_argument('file', help='Image file')
    media_upload.add_argument('--entity', default='tours', help='Top-level folder')
    media_upload.add_argument('--subtype', default='gallery', help='Sub folder')
    media_upload.set_defaults(handler=upload_media)

    media_delete = media_commands.add_parser('delete', parents=[confirm], help='Delete an image by address')
    media_delete.add_argument('address', help='Public URL or storage path')
    media_delete.set_defaults(handler=delete_media)

    # Enquiries
    enquiries = subparsers.add_parser('enquiries', help='Read and follow up enquiries')
    enquiry_commands = enquiries.add_subparsers(dest='enquiry_command')

    contacts = enquiry_commands.add_parser('contacts', help='List contact enquiries')
    _add_filter_arguments(contacts, ['done', 'pending'])
    contacts.set_defaults(handler=list_contacts)

    tour_enquiries = enquiry_commands.add_parser('tours', help='List tour enquiries')
    _add_filter_arguments(tour_enquiries, ['pending', 'followed', 'completed'])
    tour_enquiries.set_defaults(handler=list_tour_enquiries)

    follow_up = enquiry_commands.add_parser('follow-up', help='Mark an enquiry as followed up')
    follow_up.add_argument('kind', choices=['contact', 'tour'])
    follow_up.add_argument('id', help='Enquiry ID')
    follow_up.add_argument('--undo', action='store_true', help='Clear the follow-up flag')
    follow_up.set_defaults(handler=follow_up_enquiry)

    complete = enquiry_commands.add_parser('complete', help='Mark a tour enquiry as completed')
    complete.add_argument('id', help='Tour enquiry ID')
    complete.add_argument('--undo', action='store_true', help='Step back to followed')
    complete.set_defaults(handler=complete_enquiry)

    export = enquiry_commands.add_parser('export', help='Export filtered enquiries')
    export.add_argument('kind', choices=['contacts', 'tour_enquiries'])
    _add_filter_arguments(export, ['done', 'pending', 'followed', 'completed'])
    export.add_argument('--format', choices=['csv', 'json'], default='csv')
    export.add_argument('--output', help='Write to this file instead of stdout')
    export.set_defaults(handler=export_enquiries)

    # Summary
    summary = subparsers.add_parser('summary', help='Dashboard counts')
    summary.set_defaults(handler=show_summary)

    return parser


def main(argv=None, context=None):
    """Main entry point for the admin console."""
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, 'handler', None)
    if handler is None:
        parser.print_help()
        return EXIT_FAILURE

    try:
        context = context or create_context()
        logger.app_logger.info(f"Running '{args.command}' on the {context.backend_type} backend")

        session = require_admin(args, context)
        if session:
            log.info(f"Acting as {session.email}")

        return handler(args, context)

    except AuthError as e:
        print(f"Authentication failed: {e.message}", file=sys.stderr)
        return EXIT_AUTH
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for field, message in (e.details or {}).items():
            if isinstance(message, str):
                print(f"  {field}: {message}", file=sys.stderr)
        return EXIT_VALIDATION
    except TourAdminError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        log.error(f"File error: {str(e)}")
        print(f"Error: {str(e)}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
