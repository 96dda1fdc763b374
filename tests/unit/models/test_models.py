"""
test_models.py
--------------
Unit tests for computed model properties and schema constraints.
"""
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from ncdb.database.models import (
    Achievement,
    AchievementCategory,
    CastMember,
    CustomTag,
    ExportType,
    ExternalRating,
    NewsArticle,
    NewsScrapeFrequency,
    Production,
    RatingSource,
    UserPreferences,
    WatchEvent,
    utcnow,
)


class TestExternalRating:
    """Test ExternalRating normalization and display."""

    def test_rotten_tomatoes_example(self):
        """75/100 on Rotten Tomatoes normalizes to 7.5 and shows as a percent."""
        rating = ExternalRating(
            source=RatingSource.ROTTEN_TOMATOES, rating=75, max_rating=100
        )
        assert rating.normalized_rating == pytest.approx(7.5)
        assert rating.normalized_to_five_stars == pytest.approx(3.75)
        assert rating.display_string == "75%"

    @pytest.mark.parametrize("source,value,maximum,display", [
        (RatingSource.IMDB, 7.5, 10, "7.5/10"),
        (RatingSource.METACRITIC, 75, 100, "75/100"),
        (RatingSource.LETTERBOXD, 3.5, 5, "3.5/5"),
    ])
    def test_display_per_source(self, source, value, maximum, display):
        rating = ExternalRating(source=source, rating=value, max_rating=maximum)
        assert rating.display_string == display

    def test_default_max_rating(self):
        assert RatingSource.IMDB.default_max_rating == 10.0
        assert RatingSource.LETTERBOXD.default_max_rating == 5.0


class TestProduction:
    """Test Production computed properties."""

    def test_formatted_runtime(self):
        assert Production(title="Face/Off", release_year=1997, runtime=138).formatted_runtime == "2h 18m"
        assert Production(title="Short", release_year=2000, runtime=45).formatted_runtime == "45m"
        assert Production(title="Unknown", release_year=2000).formatted_runtime is None

    def test_decade(self):
        assert Production(title="Face/Off", release_year=1997).decade == 1990
        assert Production(title="Pig", release_year=2021).decade == 2020

    def test_is_ranked(self):
        assert Production(title="A", release_year=2000, ranking_position=1).is_ranked
        assert not Production(title="B", release_year=2000).is_ranked

    def test_image_urls(self):
        production = Production(title="Mandy", release_year=2018, poster_path="/mandy.jpg")
        assert production.poster_url == "https://image.tmdb.org/t/p/w342/mandy.jpg"
        assert production.backdrop_url is None

    def test_has_genre_is_case_insensitive(self):
        production = Production(title="Mandy", release_year=2018, genres=["Horror"])
        assert production.has_genre(" horror ")
        assert not production.has_genre("Comedy")

    def test_id_assigned_at_construction(self):
        assert Production(title="Mandy", release_year=2018).id is not None

    def test_str(self):
        assert str(Production(title="Mandy", release_year=2018)) == "Mandy (2018)"


class TestAchievement:
    """Test Achievement progress accessors."""

    def test_progress_percentage_capped(self):
        achievement = Achievement(progress=15, requirement=10)
        assert achievement.progress_percentage == 100.0

    def test_progress_percentage_partial(self):
        achievement = Achievement(progress=4, requirement=10)
        assert achievement.progress_percentage == pytest.approx(40.0)
        assert achievement.remaining == 6

    def test_nearly_complete(self):
        assert Achievement(progress=8, requirement=10, is_unlocked=False).is_nearly_complete
        assert not Achievement(progress=10, requirement=10, is_unlocked=True).is_nearly_complete
        assert not Achievement(progress=7, requirement=10, is_unlocked=False).is_nearly_complete


class TestSmallModels:
    """Test accessors on the remaining models."""

    def test_cast_member_detects_the_actor(self):
        assert CastMember(name="Nicolas Cage").is_nicolas_cage
        assert not CastMember(name="John Travolta").is_nicolas_cage

    def test_watch_event_today(self):
        event = WatchEvent(watched_date=utcnow())
        assert event.is_today
        assert event.is_this_week

    def test_article_recent(self):
        assert NewsArticle(published_date=utcnow() - timedelta(days=2)).is_recent
        assert not NewsArticle(published_date=utcnow() - timedelta(days=30)).is_recent

    def test_enum_helpers(self):
        assert ExportType.JSON.mime_type == "application/json"
        assert ExportType.HTML.file_extension == "html"
        assert AchievementCategory.RANKINGS.icon == "trophy.fill"
        assert NewsScrapeFrequency.DAILY.interval_seconds == 86400.0


class TestSchemaConstraints:
    """Database-level constraints backing the store invariants."""

    def test_tag_names_unique_ignoring_case(self, db_session):
        db_session.add(CustomTag(name="Classics"))
        db_session.flush()
        db_session.add(CustomTag(name="classics"))

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_user_rating_check(self, db_session):
        db_session.add(Production(title="Bad", release_year=2000, user_rating=6))

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_preferences_single_row(self, db_session):
        db_session.add(UserPreferences(id=2))

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_child_requires_existing_production(self, db_session):
        db_session.add(CastMember(production_id="missing", name="Nobody"))

        with pytest.raises(IntegrityError):
            db_session.flush()
