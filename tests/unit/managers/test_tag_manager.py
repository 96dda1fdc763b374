"""
test_tag_manager.py
-------------------
Unit tests for TagManager CRUD operations and memberships.

Tags are the simplest entity in the system, with only a many-to-many
relationship to productions owned by neither side.

Target Coverage: 90%+
"""
import pytest

from ncdb.core.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from ncdb.database.managers.tag_manager import normalize_color
from ncdb.database.models import CustomTag, Production


class TestNormalizeColor:
    """Test normalize_color()."""

    def test_expands_short_form(self):
        assert normalize_color("#f0a") == "#FF00AA"

    def test_adds_hash_and_uppercases(self):
        assert normalize_color("ffd700") == "#FFD700"

    def test_none_passes(self):
        assert normalize_color(None) is None

    @pytest.mark.parametrize("value", ["#GGGGGG", "#12345", "red"])
    def test_invalid_raises(self, value):
        with pytest.raises(ValidationError):
            normalize_color(value)


class TestTagManagerExists:
    """Test TagManager.exists() method."""

    def test_exists_returns_false_when_not_found(self, tag_manager):
        """Test exists returns False for non-existent tag."""
        assert tag_manager.exists("nonexistent") is False

    def test_exists_returns_true_when_found(self, tag_manager, db_session):
        """Test exists returns True when tag exists."""
        db_session.add(CustomTag(name="Classics"))
        db_session.flush()

        assert tag_manager.exists("Classics") is True

    def test_exists_ignores_case_and_whitespace(self, tag_manager, db_session):
        """Test exists normalizes input before comparing."""
        db_session.add(CustomTag(name="Classics"))
        db_session.flush()

        assert tag_manager.exists("  classics  ") is True

    def test_exists_empty_or_none_returns_false(self, tag_manager):
        """Test exists returns False for empty input."""
        assert tag_manager.exists("") is False
        assert tag_manager.exists(None) is False


class TestTagManagerCreate:
    """Test TagManager.create() method."""

    def test_create_with_defaults(self, tag_manager):
        """Test create uses the default gold color."""
        tag = tag_manager.create({"name": "Classics"})

        assert tag.name == "Classics"
        assert tag.color_hex == "#FFD700"
        assert tag.icon is None
        assert tag.date_created is not None

    def test_create_with_color_and_icon(self, tag_manager):
        """Test create normalizes the color."""
        tag = tag_manager.create({"name": "Rage", "color_hex": "f00", "icon": "flame"})

        assert tag.color_hex == "#FF0000"
        assert tag.icon == "flame"

    def test_create_twice_raises_duplicate(self, tag_manager):
        """Creating 'Classics' twice fails the second time."""
        tag_manager.create({"name": "Classics"})

        with pytest.raises(DuplicateKeyError):
            tag_manager.create({"name": "Classics"})

    def test_create_differing_only_in_case_raises(self, tag_manager):
        """Test 'Classics' and 'classics' are the same tag."""
        tag_manager.create({"name": "Classics"})

        with pytest.raises(DuplicateKeyError):
            tag_manager.create({"name": "classics"})

    def test_create_requires_name(self, tag_manager):
        """Test create rejects missing names."""
        with pytest.raises(ValidationError):
            tag_manager.create({"color_hex": "#FFFFFF"})

    def test_get_or_create(self, tag_manager):
        """Test get_or_create returns the existing tag regardless of case."""
        first = tag_manager.get_or_create("Classics")
        second = tag_manager.get_or_create("CLASSICS")

        assert first.id == second.id

    def test_get_or_create_empty_raises(self, tag_manager):
        with pytest.raises(ValidationError):
            tag_manager.get_or_create("   ")


class TestTagManagerUpdateDelete:
    """Test TagManager.update() and delete()."""

    def test_rename(self, tag_manager):
        tag = tag_manager.create({"name": "Classics"})

        tag_manager.update(tag, {"name": "All-Time Classics", "color_hex": "#000"})

        assert tag.name == "All-Time Classics"
        assert tag.color_hex == "#000000"

    def test_rename_to_own_name_in_other_case(self, tag_manager):
        tag = tag_manager.create({"name": "Classics"})

        tag_manager.update(tag, {"name": "CLASSICS"})

        assert tag.name == "CLASSICS"

    def test_rename_to_existing_name_raises(self, tag_manager):
        tag_manager.create({"name": "Classics"})
        other = tag_manager.create({"name": "Guilty Pleasures"})

        with pytest.raises(DuplicateKeyError):
            tag_manager.update(other, {"name": "classics"})

    def test_delete_by_name_keeps_productions(self, tag_manager, db_session, make_production):
        production = make_production()
        tag_manager.attach(production, tag_manager.create({"name": "Classics"}))

        result = tag_manager.delete("classics")

        assert result.detached == 1
        assert tag_manager.get("Classics") is None
        assert db_session.get(Production, production.id) is not None
        assert production.tags == []

    def test_delete_unknown_raises(self, tag_manager):
        with pytest.raises(NotFoundError):
            tag_manager.delete("nonexistent")


class TestTagMemberships:
    """Test attach/detach operations."""

    def test_attach_updates_both_views(self, tag_manager, make_production):
        production = make_production()
        tag = tag_manager.create({"name": "Classics"})

        assert tag_manager.attach(production, tag) is True

        assert production.tag_names == ["Classics"]
        assert [p.id for p in tag.productions] == [production.id]
        assert tag.production_count == 1

    def test_attach_twice_is_noop(self, tag_manager, make_production):
        production = make_production()
        tag_manager.create({"name": "Classics"})
        tag_manager.attach(production, "Classics")

        assert tag_manager.attach(production, "Classics") is False
        assert tag_manager.get("Classics").production_count == 1

    def test_attach_many_and_get_productions(self, tag_manager, sample_productions):
        tag_manager.create({"name": "Classics"})

        added = tag_manager.attach_many(sample_productions, "Classics")

        assert added == 3
        titles = [p.title for p in tag_manager.get_productions("Classics")]
        assert titles == ["Face/Off", "Mandy", "Raising Arizona"]

    def test_detach(self, tag_manager, make_production):
        production = make_production()
        tag = tag_manager.create({"name": "Classics"})
        tag_manager.attach(production, tag)

        assert tag_manager.detach(production, tag) is True
        assert tag_manager.detach(production, tag) is False
        assert production.tags == []

    def test_remove_from_all_keeps_tag(self, tag_manager, sample_productions):
        tag = tag_manager.create({"name": "Classics"})
        tag_manager.attach_many(sample_productions, tag)

        assert tag_manager.remove_from_all(tag) == 3

        assert tag_manager.exists("Classics")
        assert tag.production_count == 0
        assert all(p.tags == [] for p in sample_productions)

    def test_attach_unknown_production_raises(self, tag_manager):
        tag_manager.create({"name": "Classics"})

        with pytest.raises(NotFoundError):
            tag_manager.attach("no-such-id", "Classics")

    def test_get_all_by_count(self, tag_manager, sample_productions):
        tag_manager.create({"name": "Action Cage"})
        tag_manager.create({"name": "Best"})
        tag_manager.attach_many(sample_productions, "Best")

        by_name = [t.name for t in tag_manager.get_all()]
        by_count = [t.name for t in tag_manager.get_all(order_by="production_count")]

        assert by_name == ["Action Cage", "Best"]
        assert by_count == ["Best", "Action Cage"]
