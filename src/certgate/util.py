"""Utilities for all of certgate."""
import errno
import logging
import os
import shutil
from typing import Any
from typing import Union

from certgate._internal import constants

logger = logging.getLogger(__name__)


ANSI_SGR_RED = "\033[31m"
ANSI_SGR_RESET = "\033[0m"


def parse_true(value: Any) -> bool:
    """Interpret an environment style boolean.

    :param value: value taken from the command line or the environment

    :returns: True for ``true``, ``yes`` or ``1`` in any case
    :rtype: bool

    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in constants.TRUE_VALUES


def safely_remove(path: str) -> None:
    """Remove a file that may not exist."""
    try:
        os.remove(path)
    except OSError as err:
        if err.errno != errno.ENOENT:
            raise


def atomic_copy(src: str, dst: str, suffix: str = constants.TMP_SUFFIX) -> None:
    """Copy src over dst so that dst is never partially written.

    The content is first copied next to the destination, then renamed over
    it. On failure the temporary file is removed and dst is left untouched.

    :param str src: path of the file to copy
    :param str dst: path of the file to replace
    :param str suffix: suffix of the temporary file

    :raises OSError: if the copy or the rename fails

    """
    tmp_path = dst + suffix
    try:
        shutil.copyfile(src, tmp_path)
        os.replace(tmp_path, dst)
    except OSError:
        safely_remove(tmp_path)
        raise


def write_file(path: str, data: Union[str, bytes], chmod: int = 0o644) -> None:
    """Create or truncate path, then write data to it.

    :param int chmod: mode of the file, set before anything is written
        even when the file already existed

    """
    mode = "wb" if isinstance(data, bytes) else "w"
    fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, chmod)
    try:
        os.fchmod(fd, chmod)
    except OSError:
        os.close(fd)
        raise
    with os.fdopen(fd, mode) as file_d:
        file_d.write(data)


def atomic_write(path: str, data: Union[str, bytes], suffix: str = constants.TMP_SUFFIX,
                 chmod: int = 0o644) -> None:
    """Write data to path through a temporary file renamed over it.

    :param str path: file to replace
    :param data: content to write
    :type data: `str` or `bytes`
    :param str suffix: suffix of the temporary file
    :param int chmod: mode of the temporary file

    :raises OSError: if writing or renaming fails

    """
    tmp_path = path + suffix
    try:
        write_file(tmp_path, data, chmod)
        os.replace(tmp_path, path)
    except OSError:
        safely_remove(tmp_path)
        raise


def is_writable_dir(directory: str) -> bool:
    """Check that directory exists and a file can be created in it.

    A probe file is created then removed. Unlike `os.access`, this
    also catches read-only mounts.

    :param str directory: path to a directory

    :returns: True if the directory exists and is writable
    :rtype: bool

    """
    if not os.path.isdir(directory):
        return False
    probe = os.path.join(directory, constants.WRITABLE_PROBE)
    try:
        with open(probe, "a"):
            pass
    except OSError:
        logger.debug("Unable to write %s", probe, exc_info=True)
        return False
    safely_remove(probe)
    return True
