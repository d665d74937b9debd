"""
Pytest configuration and fixtures
"""
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nichestack import database, models
from nichestack.models import Base
from nichestack.presets import initialize_default_categories


# Fixed clock: Monday 19 October 2026, mid-afternoon
NOW = datetime(2026, 10, 19, 15, 30, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture(autouse=True)
def encryption_key(tmp_path):
    """Keep token encryption keys out of the repository data directory."""
    original = models.KEY_PATH
    models.configure_encryption(str(tmp_path / '.encryption_key'))
    yield
    models.configure_encryption(original)


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    Session = sessionmaker(bind=engine)
    session = Session()
    initialize_default_categories(session)
    yield session
    session.close()


@pytest.fixture
def lookup():
    """English label lookup."""
    from nichestack.i18n import get_translator
    return get_translator('en')


@pytest.fixture
def make_project():
    """Build a plain project-shaped object for pure-function tests."""
    def _make(**fields):
        defaults = {
            'name': 'Test Site',
            'site_url': 'https://example.com',
            'niche_category': 'gardening',
            'status': 'active',
            'adsense_status': 'none',
            'domain_expiry': None,
            'last_github_push': None,
            'last_content_update': None,
            'last_manual_update': None,
            'launched_at': None,
        }
        defaults.update(fields)
        return SimpleNamespace(**defaults)
    return _make


@pytest.fixture
def project(session):
    return database.add_project(session, name='Garden Guides', site_url='https://gardenguides.example')
