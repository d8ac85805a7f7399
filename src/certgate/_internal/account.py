"""Default acme.sh account upkeep."""
import logging
import os

from certgate import util
from certgate._internal import constants

logger = logging.getLogger(__name__)


def check_default_account(account_conf_path: str) -> bool:
    """Make the default account the one without an email address.

    Every ``ACCOUNT_EMAIL`` line is removed from the default account
    configuration.

    :param str account_conf_path: path to ``default/account.conf``

    :returns: True if the file was rewritten
    :rtype: bool

    """
    if not os.path.isfile(account_conf_path):
        return False
    with open(account_conf_path) as file_d:
        lines = file_d.readlines()
    kept = [line for line in lines if constants.ACCOUNT_EMAIL_KEY not in line]
    if len(kept) == len(lines):
        return False

    logger.debug("Removing %s from %s", constants.ACCOUNT_EMAIL_KEY, account_conf_path)
    mode = os.stat(account_conf_path).st_mode & 0o777
    util.atomic_write(account_conf_path, "".join(kept), constants.TMP_SUFFIX, chmod=mode)
    return True
