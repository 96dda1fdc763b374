"""
Integration tests for the catalog CLI.

Each command runs in its own invocation against a database file in a
temporary directory, exactly as a user would drive it from the shell.
"""
import json

import pytest
from click.testing import CliRunner

from ncdb.database import NCDB
from ncdb.database.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def test_dirs(tmp_path):
    return {
        "db_path": tmp_path / "ncdb.db",
        "log_dir": tmp_path / "logs",
        "export_dir": tmp_path / "exports",
    }


@pytest.fixture
def seeded_catalog(test_dirs):
    """Three productions with external ids 1, 2 and 3."""
    db = NCDB(test_dirs["db_path"])
    with db.session_scope():
        for external_id, (title, year) in enumerate(
            [("Raising Arizona", 1987), ("Face/Off", 1997), ("Mandy", 2018)], start=1
        ):
            db.productions.create({
                "title": title,
                "release_year": year,
                "external_id": external_id,
                "genres": ["Action"],
            })
    db.close()
    return test_dirs


def invoke_cli(runner, test_dirs, args, **kwargs):
    return runner.invoke(
        cli,
        ["--db-path", str(test_dirs["db_path"]), "--log-dir", str(test_dirs["log_dir"]), *args],
        obj={},
        **kwargs,
    )


class TestSetupCommands:
    """Test init and reset."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("init", "reset", "stats", "export", "import", "query", "rank", "tags", "achievements"):
            assert command in result.output

    def test_init(self, runner, test_dirs):
        result = invoke_cli(runner, test_dirs, ["init"])

        assert result.exit_code == 0
        assert "Initializing database schema" in result.output
        assert "✅ Database ready:" in result.output
        assert test_dirs["db_path"].exists()

    def test_init_seeds_achievements(self, runner, test_dirs):
        result = invoke_cli(runner, test_dirs, ["init", "--seed-achievements"])

        assert "🏆 Seeded 14 achievements" in result.output

    def test_reset_requires_confirmation(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["reset"], input="n\n")

        assert result.exit_code != 0
        stats = json.loads(invoke_cli(runner, seeded_catalog, ["stats", "--json"]).output)
        assert stats["total"] == 3

    def test_reset(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["reset", "--yes"])

        assert result.exit_code == 0
        assert "Production: 3 deleted" in result.output
        assert "✅ Catalog reset complete! Preferences restored to defaults." in result.output


class TestStatsCommand:
    """Test stats."""

    def test_stats_text(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["stats"])

        assert result.exit_code == 0
        assert "Total productions: 3" in result.output
        assert "Average rating: N/A" in result.output

    def test_stats_json_with_breakdown(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["stats", "--json", "--breakdown"])

        data = json.loads(result.output)
        assert data["total"] == 3
        assert data["watched"] == 0
        assert data["genres"] == {}


class TestQueryCommands:
    """Test query list/show/delete."""

    def test_list(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["query", "list", "--sort", "-release_year"])

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if "(" in line and "[" in line]
        assert "Mandy (2018)" in lines[0]
        assert "Raising Arizona (1987)" in lines[-1]

    def test_show_by_external_id(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["query", "show", "2"])

        assert result.exit_code == 0
        assert "Face/Off (1997)" in result.output
        assert "Genres: Action" in result.output

    def test_show_unknown_reference_fails(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["query", "show", "999"])

        assert result.exit_code == 1

    def test_delete(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["query", "delete", "3", "--yes"])

        assert result.exit_code == 0
        assert "Deleted Mandy (2018)" in result.output
        stats = json.loads(invoke_cli(runner, seeded_catalog, ["stats", "--json"]).output)
        assert stats["total"] == 2


class TestRankCommands:
    """Test rank add/list/move/remove."""

    def test_add_and_list(self, runner, seeded_catalog):
        assert "✅ Raising Arizona (1987) ranked #1" in invoke_cli(
            runner, seeded_catalog, ["rank", "add", "1"]
        ).output
        assert "✅ Mandy (2018) ranked #1" in invoke_cli(
            runner, seeded_catalog, ["rank", "add", "3", "--position", "1"]
        ).output

        result = invoke_cli(runner, seeded_catalog, ["rank", "list"])

        assert result.exit_code == 0
        assert result.output.index("Mandy (2018)") < result.output.index("Raising Arizona (1987)")

    def test_move(self, runner, seeded_catalog):
        for reference in ("1", "2", "3"):
            invoke_cli(runner, seeded_catalog, ["rank", "add", reference])

        result = invoke_cli(runner, seeded_catalog, ["rank", "move", "3", "1"])

        assert result.exit_code == 0
        assert "✅ Mandy (2018) moved to #1" in result.output

    def test_invalid_position_fails(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["rank", "add", "1", "--position", "5"])

        assert result.exit_code == 1

    def test_remove(self, runner, seeded_catalog):
        invoke_cli(runner, seeded_catalog, ["rank", "add", "1"])

        result = invoke_cli(runner, seeded_catalog, ["rank", "remove", "1"])

        assert "removed from the ranking" in result.output
        assert "Nothing ranked yet" in invoke_cli(runner, seeded_catalog, ["rank", "list"]).output

    def test_unknown_production_fails(self, runner, seeded_catalog):
        result = invoke_cli(runner, seeded_catalog, ["rank", "add", "no-such-id"])

        assert result.exit_code == 1


class TestTagCommands:
    """Test tags create/attach/list/detach/delete."""

    def test_create_and_attach(self, runner, seeded_catalog):
        created = invoke_cli(runner, seeded_catalog, ["tags", "create", "Classics"])
        assert "✅ Created tag Classics (#FFD700)" in created.output

        attached = invoke_cli(runner, seeded_catalog, ["tags", "attach", "Classics", "1", "2"])
        assert "✅ Tagged 2 productions with Classics" in attached.output

        listing = invoke_cli(runner, seeded_catalog, ["tags", "list"])
        assert "Classics #FFD700 (2)" in listing.output

    def test_duplicate_tag_fails(self, runner, seeded_catalog):
        invoke_cli(runner, seeded_catalog, ["tags", "create", "Classics"])

        result = invoke_cli(runner, seeded_catalog, ["tags", "create", "classics"])

        assert result.exit_code == 1

    def test_detach_all_and_delete(self, runner, seeded_catalog):
        invoke_cli(runner, seeded_catalog, ["tags", "attach", "Rage", "1", "2", "3", "--create"])

        detached = invoke_cli(runner, seeded_catalog, ["tags", "detach", "Rage", "--all"])
        assert "✅ Removed Rage from 3 productions" in detached.output

        deleted = invoke_cli(runner, seeded_catalog, ["tags", "delete", "Rage", "--yes"])
        assert deleted.exit_code == 0
        assert "No tags yet" in invoke_cli(runner, seeded_catalog, ["tags", "list"]).output


class TestExportCommands:
    """Test export json/csv/html."""

    @pytest.mark.parametrize("export_format", ["json", "csv", "html"])
    def test_export_writes_file(self, runner, seeded_catalog, export_format):
        result = invoke_cli(
            runner,
            seeded_catalog,
            ["export", export_format, "--output-dir", str(seeded_catalog["export_dir"])],
        )

        assert result.exit_code == 0
        assert "✅ Export complete:" in result.output
        files = list(seeded_catalog["export_dir"].glob(f"ncdb_export_*.{export_format}"))
        assert len(files) == 1

    def test_export_json_content(self, runner, seeded_catalog):
        invoke_cli(
            runner,
            seeded_catalog,
            ["export", "json", "--no-images", "--output-dir", str(seeded_catalog["export_dir"])],
        )

        path = next(seeded_catalog["export_dir"].glob("ncdb_export_*.json"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["statistics"]["total"] == 3
        assert data["options"]["include_images"] is False
        assert "poster_url" not in data["productions"][0]

    def test_export_unknown_template_fails(self, runner, seeded_catalog):
        result = invoke_cli(
            runner,
            seeded_catalog,
            ["export", "html", "--template-id", "missing",
             "--output-dir", str(seeded_catalog["export_dir"])],
        )

        assert result.exit_code == 1


class TestImportCommand:
    """Test import."""

    @pytest.fixture
    def backup_file(self, runner, seeded_catalog):
        invoke_cli(
            runner,
            seeded_catalog,
            ["export", "json", "--output-dir", str(seeded_catalog["export_dir"])],
        )
        return next(seeded_catalog["export_dir"].glob("ncdb_export_*.json"))

    def test_import_after_reset(self, runner, seeded_catalog, backup_file):
        invoke_cli(runner, seeded_catalog, ["reset", "--yes"])

        result = invoke_cli(runner, seeded_catalog, ["import", str(backup_file)])

        assert result.exit_code == 0
        assert "Productions: 3" in result.output
        assert "✅ Restore complete!" in result.output
        stats = json.loads(invoke_cli(runner, seeded_catalog, ["stats", "--json"]).output)
        assert stats["total"] == 3

    def test_import_skips_existing(self, runner, seeded_catalog, backup_file):
        result = invoke_cli(runner, seeded_catalog, ["import", str(backup_file)])

        assert "Productions: 0" in result.output
        assert "Skipped (already in catalog): 3" in result.output

    def test_clear_requires_confirmation(self, runner, seeded_catalog, backup_file):
        result = invoke_cli(
            runner, seeded_catalog, ["import", str(backup_file), "--clear"], input="n\n"
        )

        assert result.exit_code != 0
        assert "Restoring" not in result.output

    def test_clear_with_yes(self, runner, seeded_catalog, backup_file):
        result = invoke_cli(
            runner, seeded_catalog, ["import", str(backup_file), "--clear", "--yes"]
        )

        assert result.exit_code == 0
        assert "Productions: 3" in result.output

    def test_unsupported_version_fails(self, runner, seeded_catalog, tmp_path):
        path = tmp_path / "future.json"
        path.write_text(json.dumps({"version": 99, "productions": []}), encoding="utf-8")

        result = invoke_cli(runner, seeded_catalog, ["import", str(path)])

        assert result.exit_code == 1


class TestAchievementCommands:
    """Test achievements seed/evaluate/list."""

    def test_seed_is_idempotent(self, runner, test_dirs):
        assert "🏆 Seeded 14 achievements" in invoke_cli(
            runner, test_dirs, ["achievements", "seed"]
        ).output
        assert "🏆 Seeded 0 achievements" in invoke_cli(
            runner, test_dirs, ["achievements", "seed"]
        ).output

    def test_evaluate_and_list(self, runner, seeded_catalog):
        invoke_cli(runner, seeded_catalog, ["rank", "add", "1"])

        evaluated = invoke_cli(runner, seeded_catalog, ["achievements", "evaluate"])
        assert "Ranking Rookie" in evaluated.output

        listing = invoke_cli(runner, seeded_catalog, ["achievements", "list", "--unlocked"])
        assert "(first_rank)" in listing.output
        assert "(first_watch)" not in listing.output
