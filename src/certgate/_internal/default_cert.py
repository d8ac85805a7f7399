"""Self-signed default certificate provisioning.

The proxy serves the default certificate for hostnames without a
certificate of their own yet. Certgate generates it when it's missing and
renews it when it generated it itself and it expires within three months.
A default certificate with another common name was provided by the user
and is left alone.

"""
import datetime
import logging
import os
from typing import Callable
from typing import Optional

from certgate import crypto_util
from certgate import errors
from certgate import util
from certgate._internal import constants

logger = logging.getLogger(__name__)


class DefaultCertProvisioner:
    """Keeps the default certificate and key pair present and fresh.

    :ivar str cert_path: default certificate
    :ivar str key_path: default private key
    :ivar apply_ownership: callable fixing ownership and permissions of a path
    :ivar reload: callable reloading the proxy once the pair has been replaced

    """
    def __init__(self, cert_path: str, key_path: str,
                 apply_ownership: Callable[[str], object],
                 reload: Callable[[], object],
                 common_name: str = constants.DEFAULT_CERT_CN,
                 min_validity: int = constants.DEFAULT_CERT_MIN_VALIDITY,
                 key_size: int = constants.DEFAULT_CERT_KEY_SIZE,
                 days: int = constants.DEFAULT_CERT_VALIDITY_DAYS) -> None:
        self.cert_path = cert_path
        self.key_path = key_path
        self.apply_ownership = apply_ownership
        self.reload = reload
        self.common_name = common_name
        self.min_validity = min_validity
        self.key_size = key_size
        self.days = days

    def needs_renewal(self, now: Optional[datetime.datetime] = None) -> bool:
        """Should a new default pair be generated?

        True when either file is missing, or when the certificate was
        generated by certgate and expires within `min_validity` seconds.

        """
        if not (os.path.exists(self.cert_path) and os.path.exists(self.key_path)):
            return True

        try:
            common_name = crypto_util.get_subject_cn(self.cert_path)
        except errors.Error as error:
            # Never overwrite what we can't identify as ours.
            logger.warning("%s", error)
            return False
        logger.debug("A default certificate with CN=%s is present.", common_name)
        if common_name != self.common_name:
            logger.debug("The default certificate is user provided. "
                         "Skipping default certificate creation.")
            return False

        if crypto_util.check_min_validity(self.cert_path, self.min_validity, now):
            logger.debug("The self generated default certificate is still valid for more "
                         "than three months. Skipping default certificate creation.")
            return False
        return True

    def ensure_default_cert(self, now: Optional[datetime.datetime] = None) -> bool:
        """Generate the default pair if needed.

        Ownership and permissions are applied to both paths whatever the
        outcome.

        :returns: True if a new pair was installed and the proxy reloaded
        :rtype: bool

        """
        logger.warning("There is no future support planned for the self signed default "
                       "certificate creation feature and it might be removed in a future "
                       "release.")
        installed = False
        if self.needs_renewal(now):
            installed = self._generate()
        self.apply_ownership(self.key_path)
        self.apply_ownership(self.cert_path)
        return installed

    def _generate(self) -> bool:
        new_key = self.key_path + constants.NEW_SUFFIX
        new_cert = self.cert_path + constants.NEW_SUFFIX
        try:
            # a leftover from an interrupted run would keep its own mode
            util.safely_remove(new_key)
            util.safely_remove(new_cert)
            key = crypto_util.make_key(self.key_size)
            cert = crypto_util.make_self_signed_cert(key, self.common_name, self.days)
            util.write_file(new_key, crypto_util.dump_key(key), chmod=0o600)
            util.write_file(new_cert, crypto_util.dump_cert(cert))
        except (OSError, ValueError, errors.Error) as error:
            logger.debug("Exception was:", exc_info=True)
            logger.error("Unable to create the default key and certificate: %s", error)
            util.safely_remove(new_key)
            util.safely_remove(new_cert)
            return False

        try:
            os.replace(new_key, self.key_path)
            os.replace(new_cert, self.cert_path)
        except OSError as error:
            logger.error("Unable to install the default key and certificate: %s", error)
            util.safely_remove(new_key)
            util.safely_remove(new_cert)
            return False
        logger.info("A default key and certificate have been created at %s and %s.",
                    self.key_path, self.cert_path)
        self.reload()
        return True
