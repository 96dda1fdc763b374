"""
test_export_manager.py
----------------------
Unit tests for snapshot-then-render exports.

Snapshots are taken from the test session directly; rendering never
touches the database.
"""
import csv
import io
import json
import re

import pytest

from ncdb.core.exceptions import ExportError, ValidationError
from ncdb.database.export_manager import (
    CSV_COLUMNS,
    ExportManager,
    ExportOptions,
    placeholder_filter,
    stars_filter,
)
from ncdb.database.models import ExportTemplate, ExportType
from ncdb.database.query_analytics import ProductionStats


def without_timestamp(text):
    return re.sub(r'"exported_at": "[^"]+"', "", text)


@pytest.fixture
def exporter():
    return ExportManager()


@pytest.fixture
def snapshot(exporter, db_session, full_production, make_production):
    make_production("Crazy, Stupid", 2011, genres=["Comedy", "Drama"])
    return exporter.snapshot(db_session)


class TestFilters:
    """Test the Jinja2 filters."""

    @pytest.mark.parametrize("value", [None, "", []])
    def test_placeholder_replaces_missing(self, value):
        assert placeholder_filter(value, "N/A") == "N/A"

    def test_placeholder_keeps_values(self):
        assert placeholder_filter(0, "N/A") == 0
        assert placeholder_filter("Woo", "N/A") == "Woo"

    def test_stars(self):
        assert stars_filter(4.5) == "4.5/5"
        assert stars_filter(None) is None


class TestSnapshot:
    """Test ExportManager.snapshot()."""

    def test_record_keys(self, snapshot):
        assert set(snapshot.records) == {"productions", "tags", "news_articles", "achievements"}

    def test_productions_sorted_by_title(self, snapshot):
        assert [p["title"] for p in snapshot.productions] == ["Con Air", "Crazy, Stupid"]

    def test_children_inlined(self, snapshot):
        con_air = snapshot.productions[0]

        assert [m["name"] for m in con_air["cast"]] == ["Nicolas Cage", "John Malkovich"]
        assert len(con_air["watch_events"]) == 2
        assert con_air["tags"] == ["Classics"]
        assert con_air["poster_url"] == "https://image.tmdb.org/t/p/w342/conair.jpg"

    def test_stats_match_live(self, snapshot, test_db):
        assert snapshot.stats == test_db.stats()


class TestRenderJson:
    """Test JSON rendering."""

    def test_document_layout(self, exporter, snapshot):
        document = exporter.render(snapshot, "json")
        data = json.loads(document.content)

        assert document.export_type == ExportType.JSON
        assert data["version"] == 1
        assert data["options"] == {
            "include_images": True, "include_ratings": True, "include_reviews": True,
            "statistics_scope": "catalog",
        }
        assert [t["name"] for t in data["tags"]] == ["Classics"]
        assert data["tags"][0]["production_count"] == 1

    def test_statistics_rederive_from_records(self, exporter, snapshot, test_db):
        data = json.loads(exporter.render(snapshot, ExportType.JSON).content)

        assert data["statistics"] == test_db.stats().to_dict()
        from_records = ProductionStats.from_records(data["productions"])
        assert from_records.to_dict() == data["statistics"]

    def test_deterministic_apart_from_timestamp(self, exporter, db_session, full_production):
        first = exporter.render(exporter.snapshot(db_session), "json").content
        second = exporter.render(exporter.snapshot(db_session), "json").content

        assert without_timestamp(first) == without_timestamp(second)

    def test_options_drop_fields(self, exporter, snapshot):
        options = ExportOptions(include_images=False, include_ratings=False, include_reviews=False)

        production = json.loads(exporter.render(snapshot, "json", options).content)["productions"][0]

        for field in ("poster_path", "poster_url", "user_rating", "external_ratings", "review"):
            assert field not in production
        assert production["title"] == "Con Air"

    def test_statistics_cover_fields_left_out(self, exporter, snapshot):
        options = ExportOptions(include_ratings=False)

        data = json.loads(exporter.render(snapshot, "json", options).content)

        assert data["options"]["statistics_scope"] == "catalog"
        assert data["statistics"]["rated"] == 1
        assert data["statistics"]["average_rating"] == 4.0
        assert all("user_rating" not in p for p in data["productions"])


class TestRenderCsv:
    """Test CSV rendering."""

    def parse(self, content):
        return list(csv.DictReader(io.StringIO(content)))

    def test_header_and_rows(self, exporter, snapshot):
        content = exporter.render(snapshot, "csv").content

        assert content.splitlines()[0] == ",".join(CSV_COLUMNS)
        rows = self.parse(content)
        assert [r["title"] for r in rows] == ["Con Air", "Crazy, Stupid"]

    def test_list_fields_joined(self, exporter, snapshot):
        rows = self.parse(exporter.render(snapshot, "csv").content)

        assert rows[0]["tags"] == "Classics"
        assert rows[1]["genres"] == "Comedy; Drama"
        assert rows[1]["tags"] == ""

    def test_commas_are_quoted(self, exporter, snapshot):
        content = exporter.render(snapshot, "csv").content

        assert '"Crazy, Stupid"' in content

    def test_options_drop_columns(self, exporter, snapshot):
        options = ExportOptions(include_reviews=False, include_images=False)

        header = exporter.render(snapshot, "csv", options).content.splitlines()[0].split(",")

        assert "review" not in header
        assert "poster_url" not in header
        assert "user_rating" in header


class TestRenderHtml:
    """Test HTML rendering."""

    def test_default_layout(self, exporter, snapshot):
        content = exporter.render(snapshot, "html").content

        assert "<h1>NCDB Export</h1>" in content
        assert "Con Air (1997)" in content
        assert "My rating: 4.0/5" in content
        assert 'src="https://image.tmdb.org/t/p/w342/conair.jpg"' in content

    def test_placeholders_for_missing_values(self, exporter, snapshot):
        content = exporter.render(snapshot, "html").content

        for placeholder in ("No poster", "No review", "Not rated", "N/A", "No tags"):
            assert placeholder in content

    def test_options_hide_sections(self, exporter, snapshot):
        options = ExportOptions(include_images=False, include_ratings=False, include_reviews=False)

        content = exporter.render(snapshot, "html", options).content

        assert "<img" not in content
        assert "My rating" not in content
        assert "Review:" not in content

    def test_custom_template_and_css(self, exporter, snapshot):
        options = ExportOptions(
            html_template="<style>{{ css }}</style>{% for p in productions %}[{{ p.title }}]{% endfor %}",
            css_styles="body { color: gold; }",
        )

        content = exporter.render(snapshot, "html", options).content

        assert content == "<style>body { color: gold; }</style>[Con Air][Crazy, Stupid]"

    def test_template_values_escaped(self, exporter, db_session, make_production):
        make_production("<b>Bold</b>", 2000)

        content = exporter.render(exporter.snapshot(db_session), "html").content

        assert "&lt;b&gt;Bold&lt;/b&gt;" in content

    def test_broken_template_raises_export_error(self, exporter, snapshot):
        options = ExportOptions(html_template="{{ productions | no_such_filter }}")

        with pytest.raises(ExportError):
            exporter.render(snapshot, "html", options)


class TestRenderAndWrite:
    """Test format dispatch, options from templates and writing."""

    def test_unknown_format(self, exporter, snapshot):
        with pytest.raises(ValidationError):
            exporter.render(snapshot, "xml")

    def test_options_from_template(self):
        template = ExportTemplate(
            name="Plain", export_type=ExportType.HTML,
            include_images=False, include_ratings=True, include_reviews=False,
            css_styles="h1 {}",
        )

        options = ExportOptions.from_template(template)

        assert options.as_context() == {
            "include_images": False, "include_ratings": True, "include_reviews": False,
        }
        assert options.css_styles == "h1 {}"

    def test_write_uses_timestamped_name(self, exporter, snapshot, tmp_path):
        document = exporter.render(snapshot, "csv")

        path = exporter.write(document, tmp_path / "exports")

        assert re.fullmatch(r"ncdb_export_\d{8}_\d{6}\.csv", path.name)
        assert path.read_text(encoding="utf-8") == document.content
        assert list((tmp_path / "exports").iterdir()) == [path]

    def test_write_failure_raises_export_error(self, exporter, snapshot, tmp_path):
        blocker = tmp_path / "not_a_directory"
        blocker.write_text("x")

        with pytest.raises(ExportError):
            exporter.write(exporter.render(snapshot, "json"), blocker)
