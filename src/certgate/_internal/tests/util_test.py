"""Tests for certgate.util."""
import os
import stat
import sys
import unittest
from unittest import mock

import pytest

from certgate.tests import util as test_util


class ParseTrueTest(unittest.TestCase):
    """Tests for certgate.util.parse_true."""
    @classmethod
    def _call(cls, value):
        from certgate.util import parse_true
        return parse_true(value)

    def test_true(self):
        for value in ("true", "TRUE", "True", "yes", "Yes", "1", " true ", True):
            assert self._call(value) is True, value

    def test_false(self):
        for value in ("false", "no", "0", "", "on", "enabled", None, False):
            assert self._call(value) is False, value


class SafelyRemoveTest(test_util.TempDirTestCase):
    """Tests for certgate.util.safely_remove."""
    @classmethod
    def _call(cls, path):
        from certgate.util import safely_remove
        return safely_remove(path)

    def test_exists(self):
        path = os.path.join(self.tempdir, "foo")
        with open(path, "w"):
            pass
        self._call(path)
        assert not os.path.exists(path)

    def test_missing(self):
        self._call(os.path.join(self.tempdir, "foo"))

    def test_other_error(self):
        with mock.patch("certgate.util.os.remove", side_effect=PermissionError):
            with pytest.raises(OSError):
                self._call(os.path.join(self.tempdir, "foo"))


class AtomicCopyTest(test_util.TempDirTestCase):
    """Tests for certgate.util.atomic_copy."""
    @classmethod
    def _call(cls, *args, **kwargs):
        from certgate.util import atomic_copy
        return atomic_copy(*args, **kwargs)

    def setUp(self):
        super().setUp()
        self.src = os.path.join(self.tempdir, "src")
        self.dst = os.path.join(self.tempdir, "dst")
        with open(self.src, "w") as f:
            f.write("new")
        with open(self.dst, "w") as f:
            f.write("old")

    def test_replaced(self):
        self._call(self.src, self.dst)
        with open(self.dst) as f:
            assert f.read() == "new"
        assert not os.path.exists(self.dst + ".tmp")

    def test_rename_failure(self):
        with mock.patch("certgate.util.os.replace", side_effect=OSError):
            with pytest.raises(OSError):
                self._call(self.src, self.dst)
        with open(self.dst) as f:
            assert f.read() == "old"
        assert not os.path.exists(self.dst + ".tmp")


class WriteFileTest(test_util.TempDirTestCase):
    """Tests for certgate.util.write_file."""
    @classmethod
    def _call(cls, *args, **kwargs):
        from certgate.util import write_file
        return write_file(*args, **kwargs)

    def test_new_file_mode(self):
        path = os.path.join(self.tempdir, "default.key.new")
        self._call(path, b"secret", chmod=0o600)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_existing_file_mode_reset(self):
        path = os.path.join(self.tempdir, "default.key.new")
        with open(path, "w") as f:
            f.write("leftover from an earlier run")
        os.chmod(path, 0o644)
        self._call(path, b"secret", chmod=0o600)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        with open(path, "rb") as f:
            assert f.read() == b"secret"


class AtomicWriteTest(test_util.TempDirTestCase):
    """Tests for certgate.util.atomic_write."""
    @classmethod
    def _call(cls, *args, **kwargs):
        from certgate.util import atomic_write
        return atomic_write(*args, **kwargs)

    def test_text_and_bytes(self):
        path = os.path.join(self.tempdir, "foo")
        self._call(path, "text")
        with open(path) as f:
            assert f.read() == "text"
        self._call(path, b"bytes", suffix=".new", chmod=0o600)
        with open(path, "rb") as f:
            assert f.read() == b"bytes"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert sorted(os.listdir(self.tempdir)) == ["foo"]

    def test_write_failure(self):
        path = os.path.join(self.tempdir, "foo")
        with open(path, "w") as f:
            f.write("old")
        with mock.patch("certgate.util.os.replace", side_effect=OSError):
            with pytest.raises(OSError):
                self._call(path, "new")
        with open(path) as f:
            assert f.read() == "old"
        assert sorted(os.listdir(self.tempdir)) == ["foo"]


class IsWritableDirTest(test_util.TempDirTestCase):
    """Tests for certgate.util.is_writable_dir."""
    @classmethod
    def _call(cls, directory):
        from certgate.util import is_writable_dir
        return is_writable_dir(directory)

    def test_writable(self):
        assert self._call(self.tempdir) is True
        assert os.listdir(self.tempdir) == []

    def test_missing(self):
        assert self._call(os.path.join(self.tempdir, "nope")) is False

    def test_not_a_directory(self):
        path = os.path.join(self.tempdir, "file")
        with open(path, "w"):
            pass
        assert self._call(path) is False

    def test_read_only(self):
        with mock.patch("builtins.open", side_effect=PermissionError):
            assert self._call(self.tempdir) is False


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
