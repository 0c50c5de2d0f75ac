"""Tests for filesystem utilities module."""

from photoconv.utils.fs import (
    discover_images,
    ensure_directory,
    format_size,
    get_unique_path,
    output_name_for,
    safe_filename,
    write_output,
)


class TestEnsureDirectory:
    """Tests for ensure_directory function."""

    def test_creates_nested_directories(self, tmp_path):
        """Test creating nested directories."""
        nested_dir = tmp_path / "level1" / "level2"
        result = ensure_directory(nested_dir)
        assert result == nested_dir
        assert nested_dir.is_dir()

    def test_existing_directory(self, tmp_path):
        """Test with existing directory."""
        assert ensure_directory(tmp_path) == tmp_path


class TestSafeFilename:
    """Tests for safe_filename function."""

    def test_removes_path_separators(self):
        """Test removing path separators."""
        assert safe_filename("file/name.jpg") == "file_name.jpg"
        assert safe_filename("file\\name.jpg") == "file_name.jpg"

    def test_removes_special_characters(self):
        """Test removing special characters."""
        assert safe_filename("file:name") == "file_name"
        assert safe_filename("file*name") == "file_name"
        assert safe_filename("file?name") == "file_name"
        assert safe_filename("file|name") == "file_name"

    def test_strips_dots_and_spaces(self):
        """Test stripping leading/trailing dots and spaces."""
        assert safe_filename("..IMG_0001.jpg  ") == "IMG_0001.jpg"

    def test_truncates_long_filename(self):
        """Test truncating long filenames."""
        result = safe_filename("a" * 300 + ".jpg", max_length=255)
        assert len(result) <= 255
        assert result.endswith(".jpg")


class TestOutputNameFor:
    """Tests for output_name_for function."""

    def test_heic_to_jpg(self):
        """HEIC inputs keep their stem."""
        assert output_name_for("IMG_0001.HEIC", "jpg") == "IMG_0001.jpg"

    def test_known_extensions_case_insensitive(self):
        """Known image extensions are replaced regardless of case."""
        assert output_name_for("photo.JPEG", "pdf") == "photo.pdf"
        assert output_name_for("shot.Png", "jpg") == "shot.jpg"
        assert output_name_for("burst.heif", "png") == "burst.png"

    def test_other_extensions_kept(self):
        """Other extensions stay in the name."""
        assert output_name_for("scan.tiff", "png") == "scan.tiff.png"
        assert output_name_for("frame.webp", "jpg") == "frame.webp.jpg"

    def test_only_last_extension(self):
        """Only the final extension is considered."""
        assert output_name_for("holiday.2024.heic", "jpg") == "holiday.2024.jpg"

    def test_no_extension(self):
        """Names without an extension get one appended."""
        assert output_name_for("upload", "jpg") == "upload.jpg"


class TestGetUniquePath:
    """Tests for get_unique_path function."""

    def test_returns_original_if_not_exists(self, tmp_path):
        """Test returning original path if it doesn't exist."""
        path = tmp_path / "photo.jpg"
        assert get_unique_path(path) == path

    def test_increments_counter(self, tmp_path):
        """Test incrementing counter for multiple existing files."""
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"x")
        (tmp_path / "photo_1.jpg").write_bytes(b"x")

        assert get_unique_path(path) == tmp_path / "photo_2.jpg"


class TestWriteOutput:
    """Tests for write_output function."""

    def test_writes_file(self, tmp_path):
        """Test writing into a new directory."""
        out_dir = tmp_path / "out"
        path = write_output(out_dir, "a.jpg", b"data")

        assert path == out_dir / "a.jpg"
        assert path.read_bytes() == b"data"

    def test_rename_on_conflict(self, tmp_path):
        """Existing files are kept and the new one renamed."""
        (tmp_path / "a.jpg").write_bytes(b"old")

        path = write_output(tmp_path, "a.jpg", b"new", on_conflict="rename")

        assert path == tmp_path / "a_1.jpg"
        assert (tmp_path / "a.jpg").read_bytes() == b"old"

    def test_overwrite_on_conflict(self, tmp_path):
        """Existing files are replaced."""
        (tmp_path / "a.jpg").write_bytes(b"old")

        path = write_output(tmp_path, "a.jpg", b"new", on_conflict="overwrite")

        assert path == tmp_path / "a.jpg"
        assert path.read_bytes() == b"new"

    def test_skip_on_conflict(self, tmp_path):
        """Existing files are left alone and nothing is written."""
        (tmp_path / "a.jpg").write_bytes(b"old")

        assert write_output(tmp_path, "a.jpg", b"new", on_conflict="skip") is None
        assert (tmp_path / "a.jpg").read_bytes() == b"old"


class TestDiscoverImages:
    """Tests for discover_images function."""

    def test_directory(self, tmp_path):
        """Only supported image files are found, sorted."""
        for name in ("b.heic", "a.JPG", "notes.txt", "c.png"):
            (tmp_path / name).write_bytes(b"x")

        found = discover_images([tmp_path])

        assert [p.name for p in found] == ["a.JPG", "b.heic", "c.png"]

    def test_recursive(self, tmp_path):
        """Subdirectories are searched only when recursive."""
        (tmp_path / "top.jpg").write_bytes(b"x")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "deep.heic").write_bytes(b"x")

        assert [p.name for p in discover_images([tmp_path])] == ["top.jpg"]
        assert {p.name for p in discover_images([tmp_path], recursive=True)} == {"top.jpg", "deep.heic"}

    def test_explicit_files_kept(self, tmp_path):
        """Files named explicitly are kept whatever their extension."""
        path = tmp_path / "upload.bin"
        path.write_bytes(b"x")

        assert discover_images([path]) == [path]

    def test_duplicates_removed(self, tmp_path):
        """A file reached twice is listed once."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x")

        assert discover_images([path, tmp_path]) == [path]


class TestFormatSize:
    """Tests for format_size function."""

    def test_bytes(self):
        """Test formatting bytes."""
        assert format_size(500) == "500.0 B"

    def test_kilobytes(self):
        """Test formatting kilobytes."""
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        """Test formatting megabytes."""
        assert "MB" in format_size(1024 * 1024 * 2)
