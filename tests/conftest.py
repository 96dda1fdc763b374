"""
conftest.py
-----------
Shared pytest fixtures for NCDB tests.

Provides fixtures for:
- Database setup and teardown
- Per-entity managers bound to a test session
- Test data factories
"""
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_log_dir(tmp_dir):
    """Temporary log directory."""
    return tmp_dir / "logs"


# ----- Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_log_dir):
    """
    Create test database instance with schema.

    Returns an NCDB instance with an initialized schema and the
    preferences row. Database is torn down after the test.
    """
    from ncdb.database.manager import NCDB

    db = NCDB(test_db_path, log_dir=test_log_dir, lock_timeout=1.0)
    yield db
    db.close()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    The session belongs to an open session_scope, so NCDB manager
    properties are usable inside the test as well.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


# ----- Manager Fixtures -----

@pytest.fixture
def store_manager(db_session):
    """Create StoreManager instance for testing."""
    from ncdb.database.managers.store_manager import StoreManager
    return StoreManager(db_session)


@pytest.fixture
def ranking_manager(db_session):
    """Create RankingManager instance for testing."""
    from ncdb.database.managers.ranking_manager import RankingManager
    return RankingManager(db_session)


@pytest.fixture
def production_manager(db_session):
    """Create ProductionManager instance for testing."""
    from ncdb.database.managers.production_manager import ProductionManager
    return ProductionManager(db_session)


@pytest.fixture
def tag_manager(db_session):
    """Create TagManager instance for testing."""
    from ncdb.database.managers.tag_manager import TagManager
    return TagManager(db_session)


@pytest.fixture
def article_manager(db_session):
    """Create ArticleManager instance for testing."""
    from ncdb.database.managers.article_manager import ArticleManager
    return ArticleManager(db_session)


@pytest.fixture
def achievement_manager(db_session):
    """Create AchievementManager instance for testing."""
    from ncdb.database.managers.achievement_manager import AchievementManager
    return AchievementManager(db_session)


@pytest.fixture
def preferences_manager(db_session):
    """Create PreferencesManager instance for testing."""
    from ncdb.database.managers.preferences_manager import PreferencesManager
    return PreferencesManager(db_session)


@pytest.fixture
def template_manager(db_session):
    """Create TemplateManager instance for testing."""
    from ncdb.database.managers.template_manager import TemplateManager
    return TemplateManager(db_session)


# ----- Data Factories -----

@pytest.fixture
def make_production(production_manager):
    """
    Factory creating productions with sensible defaults.

    Usage:
        face_off = make_production("Face/Off", 1997, genres=["Action"])
    """
    def _make(title="Face/Off", release_year=1997, **fields):
        return production_manager.create(
            {"title": title, "release_year": release_year, **fields}
        )
    return _make


@pytest.fixture
def sample_productions(make_production):
    """Three productions from different decades, none ranked."""
    return [
        make_production("Raising Arizona", 1987, genres=["Comedy", "Crime"], runtime=94),
        make_production("Face/Off", 1997, genres=["Action", "Thriller"], runtime=138),
        make_production("Mandy", 2018, genres=["Action", "Horror"], runtime=121),
    ]


@pytest.fixture
def full_production(make_production, production_manager):
    """A production with cast, watch history, external ratings and a tag."""
    from ncdb.database.managers.tag_manager import TagManager

    production = make_production(
        "Con Air",
        1997,
        external_id=1701,
        genres=["Action"],
        runtime=115,
        review="Put the bunny back in the box.",
        poster_path="/conair.jpg",
        cast=[
            {"name": "Nicolas Cage", "character": "Cameron Poe"},
            {"name": "John Malkovich", "character": "Cyrus Grissom"},
        ],
        external_ratings=[
            {"source": "IMDb", "rating": 6.9},
            {"source": "Rotten Tomatoes", "rating": 56},
        ],
    )
    production_manager.add_watch_event(production, {"location": "Home"})
    production_manager.add_watch_event(production, {"location": "Cinema"})
    production_manager.set_user_rating(production, 4.0)

    tags = TagManager(production_manager.session)
    tags.attach(production, tags.create({"name": "Classics"}))
    return production
