"""Tests for temp file staging and run-scoped cleanup."""

import io

import pytest

from videos.errors import PayloadTooLarge
from videos.staging import RunScope, stage


class TestStage:
    def test_writes_bytes_verbatim(self, temp_dir):
        staged = stage(io.BytesIO(b"\x00\x01\x02\x03"), 1024, suffix=".mp4", directory=temp_dir)
        assert staged.path.parent == temp_dir
        assert staged.path.suffix == ".mp4"
        assert staged.path.read_bytes() == b"\x00\x01\x02\x03"
        assert staged.size == 4

    def test_exact_limit_is_accepted(self, temp_dir):
        staged = stage(io.BytesIO(b"abcd"), 4, directory=temp_dir)
        assert staged.size == 4

    def test_over_limit_fails_and_removes_partial_file(self, temp_dir):
        with pytest.raises(PayloadTooLarge) as exc:
            stage(io.BytesIO(b"x" * 10), 4, directory=temp_dir)
        assert exc.value.limit == 4
        assert list(temp_dir.iterdir()) == []

    def test_unique_names(self, temp_dir):
        a = stage(io.BytesIO(b"a"), 10, directory=temp_dir)
        b = stage(io.BytesIO(b"b"), 10, directory=temp_dir)
        assert a.path != b.path

    def test_release(self, temp_dir):
        staged = stage(io.BytesIO(b"a"), 10, directory=temp_dir)
        staged.release()
        staged.release()
        assert not staged.path.exists()


class TestRunScope:
    def test_removes_tracked_files_on_error(self, temp_dir):
        a = temp_dir / "a"
        b = temp_dir / "b"
        a.write_bytes(b"a")
        b.write_bytes(b"b")

        with pytest.raises(RuntimeError):
            with RunScope() as scope:
                scope.track(a, b)
                raise RuntimeError("boom")

        assert list(temp_dir.iterdir()) == []

    def test_missing_and_duplicate_paths(self, temp_dir):
        a = temp_dir / "a"
        a.write_bytes(b"a")
        with RunScope() as scope:
            scope.track(a, a, temp_dir / "never-created")
            assert len(scope.tracked) == 2
        assert not a.exists()
