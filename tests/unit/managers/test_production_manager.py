"""
test_production_manager.py
--------------------------
Unit tests for ProductionManager CRUD, sync and user actions.

Target Coverage: 90%+
"""
from datetime import datetime, timezone

import pytest

from ncdb.core.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    InvalidPositionError,
    NotFoundError,
    ValidationError,
)
from ncdb.database.models import (
    CastMember,
    ExternalRating,
    Production,
    ProductionType,
    RatingSource,
    as_utc,
)


class TestProductionManagerCreate:
    """Test ProductionManager.create()."""

    def test_create_minimal(self, production_manager):
        production = production_manager.create({"title": "Mandy", "release_year": 2018})

        assert production.id is not None
        assert production.production_type == ProductionType.MOVIE
        assert production.watched is False
        assert production.watch_count == 0

    def test_create_normalizes_fields(self, production_manager):
        production = production_manager.create({
            "title": "  Face/Off ",
            "release_year": "1997",
            "production_type": "tv movie",
            "genres": ["Action", "action", "Thriller"],
        })

        assert production.title == "Face/Off"
        assert production.release_year == 1997
        assert production.production_type == ProductionType.TV_MOVIE
        assert production.genres == ["Action", "Thriller"]

    def test_create_requires_title(self, production_manager):
        with pytest.raises(ValidationError):
            production_manager.create({"release_year": 2018})

    def test_create_rejects_rating_out_of_range(self, production_manager):
        with pytest.raises(ConstraintViolationError):
            production_manager.create({"title": "X", "release_year": 2000, "user_rating": 5.5})

    def test_create_duplicate_external_id(self, production_manager):
        production_manager.create({"title": "Mandy", "release_year": 2018, "external_id": 1})

        with pytest.raises(DuplicateKeyError):
            production_manager.create({"title": "Mandy 2", "release_year": 2018, "external_id": 1})

    def test_create_with_children(self, production_manager):
        production = production_manager.create({
            "title": "Con Air",
            "release_year": 1997,
            "cast": [{"name": "Nicolas Cage", "character": "Cameron Poe"}],
            "external_ratings": [{"source": "imdb", "rating": 6.9}],
        })

        assert [m.name for m in production.cast_members] == ["Nicolas Cage"]
        assert production.cast_members[0].billing_order == 0
        rating = production.external_ratings[0]
        assert rating.source == RatingSource.IMDB
        assert rating.max_rating == 10.0

    def test_create_with_ranking_position(self, production_manager, ranking_manager):
        production = production_manager.create(
            {"title": "Mandy", "release_year": 2018, "ranking_position": 1}
        )

        assert production.ranking_position == 1
        assert ranking_manager.count() == 1


class TestProductionManagerRead:
    """Test get(), exists(), get_all() and search()."""

    def test_get_by_id_and_external_id(self, production_manager, make_production):
        production = make_production(external_id=754)

        assert production_manager.get(production_id=production.id) is production
        assert production_manager.get(external_id=754) is production
        assert production_manager.get() is None

    def test_exists(self, production_manager, make_production):
        make_production(external_id=754)

        assert production_manager.exists(external_id=754) is True
        assert production_manager.exists(external_id=755) is False

    def test_get_all_filters(self, production_manager, sample_productions):
        production_manager.toggle_favorite(sample_productions[2])

        favorites = production_manager.get_all(is_favorite=True)

        assert [p.title for p in favorites] == ["Mandy"]

    def test_search_matches_title_director_and_plot(self, production_manager, make_production):
        make_production("Mandy", 2018, director="Panos Cosmatos")
        make_production("Pig", 2021, plot="A truffle hunter searches for his pig.")
        make_production("Face/Off", 1997)

        assert [p.title for p in production_manager.search("cosmatos")] == ["Mandy"]
        assert [p.title for p in production_manager.search("TRUFFLE")] == ["Pig"]
        assert production_manager.search("   ") == []


class TestProductionManagerUpdate:
    """Test update() and upsert_production()."""

    def test_update_only_given_keys(self, production_manager, make_production):
        production = make_production(director="John Woo", runtime=138)

        production_manager.update(production, {"runtime": 139})

        assert production.runtime == 139
        assert production.director == "John Woo"

    def test_update_clears_optional_field(self, production_manager, make_production):
        production = make_production(director="John Woo")

        production_manager.update(production, {"director": None})

        assert production.director is None

    def test_update_missing_raises(self, production_manager):
        with pytest.raises(NotFoundError):
            production_manager.update("no-such-id", {"title": "X"})

    def test_upsert_creates_then_updates(self, production_manager, db_session):
        created = production_manager.upsert_production(465914, {
            "title": "Mandy",
            "release_year": 2018,
            "cast": [{"name": "Nicolas Cage"}, {"name": "Andrea Riseborough"}],
        })

        updated = production_manager.upsert_production(465914, {
            "runtime": 121,
            "cast": [{"name": "Nicolas Cage", "character": "Red Miller"}],
        })

        assert updated.id == created.id
        assert updated.runtime == 121
        assert updated.title == "Mandy"
        assert [m.character for m in updated.cast_members] == ["Red Miller"]
        assert db_session.query(CastMember).count() == 1
        assert db_session.query(Production).count() == 1

    def test_upsert_requires_external_id(self, production_manager):
        with pytest.raises(ValidationError):
            production_manager.upsert_production(None, {"title": "X", "release_year": 2000})

    def test_update_ranking_position(self, production_manager, ranking_manager, sample_productions):
        for production in sample_productions:
            ranking_manager.insert_at_rank(production)

        production_manager.update(sample_productions[0], {"ranking_position": None})

        assert sample_productions[0].ranking_position is None
        assert [p.ranking_position for p in ranking_manager.get_ranked()] == [1, 2]


class TestFailedMutationsLeaveNoTrace:
    """A failing create or update rolls back everything it wrote."""

    def test_bad_cast_entry_drops_created_production(self, production_manager):
        with pytest.raises(ValidationError):
            production_manager.create({
                "title": "Mandy",
                "release_year": 2018,
                "cast": [{"name": "Nicolas Cage"}, {"character": "Red Miller"}],
            })

        assert production_manager.get_all() == []
        assert production_manager._count(CastMember) == 0

    def test_out_of_range_rank_on_create(self, production_manager):
        with pytest.raises(InvalidPositionError):
            production_manager.create(
                {"title": "Mandy", "release_year": 2018, "ranking_position": 3}
            )

        assert production_manager.get_all() == []

    def test_out_of_range_rank_on_update_keeps_fields(self, production_manager, make_production):
        production = make_production()

        with pytest.raises(InvalidPositionError):
            production_manager.update(production, {"title": "CHANGED", "ranking_position": 9})

        assert production.title == "Face/Off"

    def test_bad_rating_on_update_keeps_cast(self, production_manager, full_production):
        with pytest.raises(ConstraintViolationError):
            production_manager.update(full_production, {
                "cast": [{"name": "Nicolas Cage"}],
                "external_ratings": [{"source": "IMDb", "rating": 42}],
            })

        assert len(full_production.cast_members) == 2
        assert len(full_production.external_ratings) == 2


class TestOwnedCollections:
    """Test cast and external rating helpers."""

    def test_add_cast_member_appends(self, production_manager, full_production):
        member = production_manager.add_cast_member(full_production, {"name": "Steve Buscemi"})

        assert member.billing_order == 2
        assert len(full_production.cast_members) == 3

    def test_negative_billing_order_rejected(self, production_manager, make_production):
        with pytest.raises(ConstraintViolationError):
            production_manager.add_cast_member(make_production(), {"name": "X", "billing_order": -1})

    def test_external_rating_above_scale_rejected(self, production_manager, make_production):
        with pytest.raises(ConstraintViolationError):
            production_manager.add_external_rating(
                make_production(), {"source": "Metacritic", "rating": 101}
            )

    def test_external_rating_non_positive_max_rejected(self, production_manager, make_production):
        with pytest.raises(ConstraintViolationError):
            production_manager.add_external_rating(
                make_production(), {"source": "IMDb", "rating": 0, "max_rating": 0}
            )

    def test_replace_external_ratings(self, production_manager, db_session, full_production):
        production_manager.replace_external_ratings(
            full_production, [{"source": "Letterboxd", "rating": 3.4}]
        )

        assert [r.source for r in full_production.external_ratings] == [RatingSource.LETTERBOXD]
        assert db_session.query(ExternalRating).count() == 1


class TestWatchHistory:
    """Test watch events and watch_count."""

    def test_add_watch_event_marks_watched(self, production_manager, make_production):
        production = make_production()
        when = datetime(2024, 3, 5, 20, 0, tzinfo=timezone.utc)

        event = production_manager.add_watch_event(production, {"watched_date": when, "mood": "Ecstatic"})

        assert production.watched is True
        assert production.watch_count == 1
        assert as_utc(production.date_watched) == when
        assert event.formatted_date == "Mar 05, 2024"

    def test_date_watched_tracks_latest(self, production_manager, make_production):
        production = make_production()
        later = datetime(2024, 5, 1, tzinfo=timezone.utc)
        production_manager.add_watch_event(production, {"watched_date": later})
        production_manager.add_watch_event(production, {"watched_date": "2023-01-01"})

        assert as_utc(production.date_watched) == later
        assert production.watch_count == 2

    def test_watch_count_matches_events(self, production_manager, full_production):
        assert full_production.watch_count == len(full_production.watch_events) == 2

    def test_remove_watch_event(self, production_manager, make_production):
        production = make_production()
        first = production_manager.add_watch_event(
            production, {"watched_date": "2023-01-01T00:00:00+00:00"}
        )
        second = production_manager.add_watch_event(
            production, {"watched_date": "2024-01-01T00:00:00+00:00"}
        )

        production_manager.remove_watch_event(second)

        assert production.watch_count == 1
        assert as_utc(production.date_watched) == as_utc(first.watched_date)
        assert production.watched is True

    def test_watch_history_most_recent_first(self, production_manager, sample_productions):
        production_manager.add_watch_event(sample_productions[0], {"watched_date": "2022-01-01"})
        production_manager.add_watch_event(sample_productions[1], {"watched_date": "2024-01-01"})

        history = production_manager.get_watch_history()

        assert [e.production_id for e in history] == [
            sample_productions[1].id, sample_productions[0].id
        ]
        assert len(production_manager.get_watch_history(limit=1)) == 1

    def test_mark_as_watched_bulk(self, production_manager, sample_productions):
        changed = production_manager.mark_as_watched(sample_productions)

        assert changed == 3
        assert all(p.watched and p.date_watched is not None for p in sample_productions)
        assert all(p.watch_count == 0 for p in sample_productions)

        assert production_manager.mark_as_watched(sample_productions[:1], watched=False) == 1
        assert sample_productions[0].date_watched is None


class TestUserData:
    """Test rating, review and favorite toggles."""

    def test_set_and_clear_rating(self, production_manager, make_production):
        production = make_production()

        production_manager.set_user_rating(production, "4.5")
        assert production.user_rating == 4.5

        production_manager.set_user_rating(production, None)
        assert production.user_rating is None

    def test_rating_out_of_range(self, production_manager, make_production):
        with pytest.raises(ConstraintViolationError):
            production_manager.set_user_rating(make_production(), -1)

    def test_set_review(self, production_manager, make_production):
        production = make_production()

        production_manager.set_review(production, "  Not the bees!  ")

        assert production.review == "Not the bees!"

    def test_toggle_favorite(self, production_manager, make_production):
        production = make_production()

        assert production_manager.toggle_favorite(production) is True
        assert production_manager.toggle_favorite(production) is False


class TestProductionManagerDelete:
    """Test delete()."""

    def test_delete_cascades(self, production_manager, db_session, full_production):
        result = production_manager.delete(full_production)

        assert result.deleted["CastMember"] == 2
        assert db_session.query(Production).count() == 0
        assert db_session.query(CastMember).count() == 0
        assert db_session.query(ExternalRating).count() == 0
