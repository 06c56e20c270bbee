"""
Unit tests for source collection.

Tests:
- Exclusion rules (folders, filenames, Office temp, size window)
- Sorted arrival order and relative paths
- Content type guessing
- SourceFile content access
"""

import pytest

from datacleanse.src.datacleanse.dedup.models import SourceFile
from datacleanse.src.datacleanse.dedup.sources import SourceConfig, collect_sources, should_collect


@pytest.fixture
def config(tmp_path):
    return SourceConfig(root_path=tmp_path)


class TestExclusions:
    """Test file exclusion logic."""

    def test_excluded_folder(self, config, tmp_path):
        f = tmp_path / "project" / "node_modules" / "pkg" / "index.js"
        f.parent.mkdir(parents=True)
        f.write_bytes(b"x" * 20)

        assert should_collect(f, config) is False

    def test_excluded_filename(self, config, tmp_path):
        for name in ["desktop.ini", "Thumbs.db", ".DS_Store"]:
            f = tmp_path / name
            f.write_bytes(b"x" * 20)
            assert should_collect(f, config) is False, f"{name} should be excluded"

    def test_office_temp(self, config, tmp_path):
        f = tmp_path / "~$document.docx"
        f.write_bytes(b"x" * 20)

        assert should_collect(f, config) is False

    def test_empty_file_skipped_by_default(self, config, tmp_path):
        f = tmp_path / "empty.txt"
        f.write_bytes(b"")

        assert should_collect(f, config) is False

    def test_too_large(self, tmp_path):
        config = SourceConfig(root_path=tmp_path, max_file_size=10)
        f = tmp_path / "large.bin"
        f.write_bytes(b"x" * 11)

        assert should_collect(f, config) is False

    def test_valid_file(self, config, tmp_path):
        f = tmp_path / "document.pdf"
        f.write_bytes(b"x" * 20)

        assert should_collect(f, config) is True

    def test_root_folder_name_not_excluded(self, tmp_path):
        """Only folders below the root count as excluded."""
        root = tmp_path / "venv"
        root.mkdir()
        f = root / "notes.txt"
        f.write_bytes(b"x" * 20)

        assert should_collect(f, SourceConfig(root_path=root)) is True


class TestCollect:
    """Test directory collection."""

    def test_sorted_with_relative_paths(self, config, tmp_path):
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "z.txt").write_bytes(b"zz")
        (tmp_path / "a.png").write_bytes(b"aa")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_bytes(b"ref")

        sources = collect_sources(config)

        assert [s.relative_path for s in sources] == ["a.png", "b/z.txt"]
        assert sources[0].content_type == "image/png"
        assert sources[0].size_bytes == 2
        assert sources[0].path == tmp_path / "a.png"

    def test_empty_directory(self, config):
        assert collect_sources(config) == []


class TestSourceFile:
    """Test SourceFile content access."""

    def test_inline_data(self):
        source = SourceFile(name="a", size_bytes=3, data=b"abc")
        assert source.read_bytes() == b"abc"

    def test_reads_path(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_bytes(b"on disk")

        source = SourceFile.from_path(f, root=tmp_path)

        assert source.read_bytes() == b"on disk"
        assert source.name == "a.txt"
        assert source.content_type == "text/plain"

    def test_no_content(self):
        with pytest.raises(OSError):
            SourceFile(name="ghost", size_bytes=1).read_bytes()

    def test_is_image(self):
        assert SourceFile(name="a", size_bytes=1, content_type="image/webp").is_image
        assert not SourceFile(name="a", size_bytes=1, content_type="text/plain").is_image
        assert not SourceFile(name="a", size_bytes=1).is_image
