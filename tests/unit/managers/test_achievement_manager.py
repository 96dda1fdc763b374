"""
test_achievement_manager.py
---------------------------
Unit tests for achievement seeding, monotonic progress and evaluation.
"""
import pytest

from ncdb.core.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from ncdb.database.configs.achievement_configs import ACHIEVEMENT_DEFINITIONS
from ncdb.database.models import AchievementCategory


@pytest.fixture
def seeded(achievement_manager):
    achievement_manager.seed()
    return achievement_manager


class TestSeed:
    """Test AchievementManager.seed()."""

    def test_seed_inserts_catalog(self, achievement_manager):
        assert achievement_manager.seed() == len(ACHIEVEMENT_DEFINITIONS) == 14
        assert len(achievement_manager.get_all()) == 14

    def test_seed_is_idempotent(self, seeded):
        seeded.update_progress("ten_watches", 4)

        assert seeded.seed() == 0
        assert seeded.get("ten_watches").progress == 4

    def test_all_watched_requirement_is_catalog_size(
        self, achievement_manager, sample_productions
    ):
        achievement_manager.seed()

        assert achievement_manager.get("all_watched").requirement == 3

    def test_all_watched_requirement_at_least_one(self, seeded):
        assert seeded.get("all_watched").requirement == 1

    def test_filter_by_category(self, seeded):
        rankings = seeded.get_all(category=AchievementCategory.RANKINGS)

        assert sorted(a.id for a in rankings) == ["first_rank", "ten_ranked", "twentyfive_ranked"]


class TestProgress:
    """Test update_progress() and increment()."""

    def test_unlock_once(self, seeded):
        assert seeded.update_progress("first_watch", 1) is True

        achievement = seeded.get("first_watch")
        unlocked_at = achievement.unlocked_date
        assert achievement.is_unlocked is True
        assert unlocked_at is not None

        assert seeded.update_progress("first_watch", 2) is False
        assert achievement.unlocked_date == unlocked_at

    def test_progress_never_decreases(self, seeded):
        seeded.update_progress("ten_watches", 7)
        seeded.update_progress("ten_watches", 3)

        assert seeded.get("ten_watches").progress == 7
        assert seeded.get("ten_watches").is_unlocked is False

    def test_unlock_is_irreversible(self, seeded):
        seeded.update_progress("first_rank", 1)
        seeded.update_progress("first_rank", 0)

        assert seeded.get("first_rank").is_unlocked is True

    def test_missing_value_rejected(self, seeded):
        with pytest.raises(ValidationError):
            seeded.update_progress("first_watch", None)

    def test_negative_value_rejected(self, seeded):
        with pytest.raises(ConstraintViolationError):
            seeded.update_progress("first_watch", -1)

    def test_unknown_achievement(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.update_progress("no_such_achievement", 1)

    def test_increment_share(self, seeded):
        assert seeded.increment("first_share") is True
        assert seeded.get("first_share").progress == 1

    def test_get_all_unlocked_filter(self, seeded):
        seeded.increment("first_share")

        assert [a.id for a in seeded.get_all(unlocked=True)] == ["first_share"]
        assert len(seeded.get_all(unlocked=False)) == 13


class TestEvaluate:
    """Test evaluate() against aggregate metrics."""

    def test_unlocks_reached_thresholds(self, seeded):
        unlocked = seeded.evaluate({"total": 12, "watched": 10, "rated": 0, "ranked": 1})

        assert [a.id for a in unlocked] == ["first_watch", "ten_watches", "first_rank"]
        assert seeded.get("twentyfive_watches").progress == 10

    def test_already_unlocked_not_reported(self, seeded):
        seeded.evaluate({"watched": 1})

        assert seeded.evaluate({"watched": 1}) == []

    def test_absent_metrics_skipped(self, seeded):
        seeded.increment("first_share")

        seeded.evaluate({"watched": 0})

        assert seeded.get("first_share").progress == 1
        assert seeded.get("first_rating").progress == 0

    def test_all_watched_tracks_catalog_size(self, seeded):
        assert seeded.evaluate({"total": 3, "watched": 2}) == [seeded.get("first_watch")]
        assert seeded.get("all_watched").requirement == 3

        unlocked = seeded.evaluate({"total": 3, "watched": 3})

        assert [a.id for a in unlocked] == ["all_watched"]


class TestCustomAchievements:
    """Test create() and delete()."""

    def test_create_defaults(self, achievement_manager):
        achievement = achievement_manager.create({
            "id": "cage_marathon", "title": "Marathon", "category": "Variety",
        })

        assert achievement.requirement == 1
        assert achievement.progress == 0
        assert achievement.category == AchievementCategory.VARIETY

    def test_create_with_starting_progress_unlocks(self, achievement_manager):
        achievement = achievement_manager.create({
            "id": "cage_marathon", "title": "Marathon", "category": "Variety",
            "requirement": 3, "progress": 3,
        })

        assert achievement.is_unlocked is True

    @pytest.mark.parametrize("requirement", [0, -5])
    def test_non_positive_requirement(self, achievement_manager, requirement):
        with pytest.raises(ConstraintViolationError):
            achievement_manager.create({
                "id": "x", "title": "X", "category": "Social", "requirement": requirement,
            })

    def test_negative_progress(self, achievement_manager):
        with pytest.raises(ConstraintViolationError):
            achievement_manager.create({
                "id": "x", "title": "X", "category": "Social", "progress": -1,
            })

    def test_duplicate_id(self, seeded):
        with pytest.raises(DuplicateKeyError):
            seeded.create({"id": "first_watch", "title": "Again", "category": "Social"})

    def test_delete(self, seeded):
        seeded.delete("first_share")

        assert seeded.get("first_share") is None
