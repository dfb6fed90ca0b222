"""
Shared pytest fixtures for the Travelbook test suite.
"""
import pytest

from travelbook import create_app
from travelbook.extensions import db


@pytest.fixture
def app():
    """App bound to an in-memory SQLite database with tables created."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    """The reward config store registered on the app."""
    return app.extensions['reward_config_store']


@pytest.fixture
def auth_headers():
    """Headers carrying a bearer credential (presence only, never verified)."""
    return {
        'Authorization': 'Bearer test-admin-token',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def sample_redemption_options():
    return [
        {'points': 500, 'reward': '$5 off next booking', 'value': 5, 'isActive': True},
        {'points': 1000, 'reward': 'Free airport transfer', 'value': 25, 'isActive': True},
        {'points': 2500, 'reward': 'Room upgrade', 'value': 60, 'isActive': False},
    ]


@pytest.fixture
def seeded_store(store, sample_redemption_options):
    """Store whose catalog already holds the sample redemption options."""
    store.update({'redemptionOptions': sample_redemption_options})
    return store
