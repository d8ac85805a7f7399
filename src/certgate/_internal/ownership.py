"""Ownership and permissions applied to the files shared with the proxy."""
import grp
import logging
import os
import pwd
import re
import stat
from typing import NamedTuple
from typing import Optional

from certgate._internal import constants

logger = logging.getLogger(__name__)

_MODE_RE = re.compile(r'^[0-7]{3,4}$')


class OwnershipPolicy(NamedTuple):
    """Owner and modes expected on the certificates directory content.

    User and group may be names or numeric IDs, modes are octal strings
    such as ``"644"``.
    """
    user: str
    group: str
    file_mode: str
    folder_mode: str
    key_mode: str

    def apply(self, path: str) -> bool:
        """Apply the policy to path.

        Ownership and mode are only changed when they differ from the
        policy, so calling this repeatedly is harmless. A missing path is
        ignored.

        :param str path: file, directory or symlink to fix

        :returns: False if the policy is invalid or could not be applied
        :rtype: bool

        """
        for mode in (self.file_mode, self.folder_mode, self.key_mode):
            if not _MODE_RE.match(mode):
                logger.warning("The provided permission octal (%s) is incorrect. "
                               "Skipping ownership and permissions check.", mode)
                return False

        uid = _resolve_id(self.user, _uid_of)
        if uid is None:
            logger.warning("User %s not found in the container, please use a numeric user ID "
                           "instead of a user name. Skipping ownership and permissions check.",
                           self.user)
            return False
        gid = _resolve_id(self.group, _gid_of)
        if gid is None:
            logger.warning("Group %s not found in the container, please use a numeric group ID "
                           "instead of a group name. Skipping ownership and permissions check.",
                           self.group)
            return False

        logger.debug("Checking %s ownership and permissions.", path)
        try:
            stats = os.lstat(path)
        except FileNotFoundError:
            return True

        try:
            if (stats.st_uid, stats.st_gid) != (uid, gid):
                logger.debug("Setting %s ownership to %s:%s.", path, self.user, self.group)
                os.chown(path, uid, gid, follow_symlinks=False)

            if stat.S_ISLNK(stats.st_mode):
                return True
            if stat.S_ISDIR(stats.st_mode):
                _set_mode(path, stats.st_mode, self.folder_mode)
            elif stat.S_ISREG(stats.st_mode):
                if path.endswith(constants.PRIVATE_FILE_SUFFIXES):
                    _set_mode(path, stats.st_mode, self.key_mode)
                else:
                    _set_mode(path, stats.st_mode, self.file_mode)
        except OSError as error:
            logger.warning("Unable to set ownership and permissions of %s: %s", path, error)
            return False
        return True


def _set_mode(path: str, current: int, wanted: str) -> None:
    mode = int(wanted, 8)
    if stat.S_IMODE(current) != mode:
        logger.debug("Setting %s permissions to %s.", path, wanted)
        os.chmod(path, mode)


def _uid_of(name: str) -> int:
    return pwd.getpwnam(name).pw_uid


def _gid_of(name: str) -> int:
    return grp.getgrnam(name).gr_gid


def _resolve_id(name: str, lookup) -> Optional[int]:
    if name.isdigit():
        return int(name)
    try:
        return lookup(name)
    except KeyError:
        return None
