"""
Shared fixtures for the test suite.
"""
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from tour_admin.db.interface import SQLDocumentStore


def make_sql_store():
    """In-memory document store; every session shares one connection."""
    engine = create_engine(
        'sqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False}
    )
    return SQLDocumentStore(engine)


def valid_tour_form(**overrides):
    form = {
        'title': 'Kerala Backwaters',
        'description': 'Houseboats and spice gardens',
        'location': 'Alleppey',
        'category_id': 'cat-1',
        'category_name': 'South India',
        'duration': '5 days',
    }
    form.update(overrides)
    return form
