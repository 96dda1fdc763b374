"""Tests for staged file writes."""
import pytest

from ncdb.core.exceptions import TemporalFileError
from ncdb.core.temporal_files import TemporalFileManager


class TestTemporalFileManager:
    """Tests for TemporalFileManager."""

    def test_commit_moves_file_into_place(self, tmp_path):
        destination = tmp_path / "export.json"

        with TemporalFileManager(base_dir=tmp_path) as manager:
            staging = manager.create_temp_file(suffix=".json")
            staging.write_text("{}", encoding="utf-8")
            manager.commit(staging, destination)

        assert destination.read_text(encoding="utf-8") == "{}"
        assert not staging.exists()
        assert list(tmp_path.iterdir()) == [destination]

    def test_uncommitted_files_removed_on_exit(self, tmp_path):
        with TemporalFileManager(base_dir=tmp_path) as manager:
            staging = manager.create_temp_file()
            assert staging.exists()

        assert not staging.exists()

    def test_cleanup_reports_removed_files(self, tmp_path):
        manager = TemporalFileManager(base_dir=tmp_path)
        manager.create_temp_file()
        manager.create_temp_file()

        stats = manager.cleanup()

        assert stats == {"files_removed": 2, "errors": 0}
        assert manager.active_files == []

    def test_commit_to_missing_directory_raises(self, tmp_path):
        with TemporalFileManager(base_dir=tmp_path) as manager:
            staging = manager.create_temp_file()
            with pytest.raises(TemporalFileError):
                manager.commit(staging, tmp_path / "missing" / "out.csv")
