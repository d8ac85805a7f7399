"""Certgate user-supplied configuration."""
import argparse
import os
from typing import Any
from typing import Optional

from certgate import util
from certgate._internal import constants
from certgate._internal import ownership


class NamespaceConfig:
    """Configuration wrapper around :class:`argparse.Namespace`.

    Any attribute not defined here is looked up on the wrapped namespace.
    The following paths are derived from the configured directories and
    the names defined in :py:mod:`certgate._internal.constants`:

      - `dhparam_path`
      - `default_cert_path`
      - `default_key_path`
      - `account_conf_path`

    Boolean options may come from the environment as strings, they are
    exposed as `bool` through dedicated properties.

    :ivar namespace: Namespace typically produced by
        :meth:`argparse.ArgumentParser.parse_args`.
    :type namespace: :class:`argparse.Namespace`

    """

    def __init__(self, namespace: argparse.Namespace) -> None:
        object.__setattr__(self, 'namespace', namespace)

        for attr in ('certs_dir', 'vhost_dir', 'conf_dir', 'html_dir', 'acme_sh_dir'):
            setattr(self.namespace, attr, os.path.abspath(getattr(self.namespace, attr)))

    # Delegate any attribute not explicitly defined to the underlying namespace object.

    def __getattr__(self, name: str) -> Any:
        return getattr(self.namespace, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.namespace, name, value)

    @property
    def debug(self) -> bool:
        return util.parse_true(self.namespace.debug)

    @property
    def dhparam_skip(self) -> bool:
        return util.parse_true(self.namespace.dhparam_skip)

    @property
    def create_default_certificate(self) -> bool:
        return util.parse_true(self.namespace.create_default_certificate)

    @property
    def acme_http_challenge_location(self) -> bool:
        return util.parse_true(self.namespace.acme_http_challenge_location)

    @property
    def dhparam_path(self) -> str:
        """Active DH parameters file read by the proxy."""
        return os.path.join(self.namespace.certs_dir, constants.DHPARAM_FILENAME)

    @property
    def default_cert_path(self) -> str:
        return os.path.join(self.namespace.certs_dir, constants.DEFAULT_CERT_FILENAME)

    @property
    def default_key_path(self) -> str:
        return os.path.join(self.namespace.certs_dir, constants.DEFAULT_KEY_FILENAME)

    @property
    def account_conf_path(self) -> str:
        """Configuration of the default (empty email) acme.sh account."""
        return os.path.join(self.namespace.acme_sh_dir, *constants.ACCOUNT_CONF_PATH)

    @property
    def start_command(self) -> list[str]:
        """Wrapped command for which the pre-flight checks run."""
        return str(self.namespace.start_command).split()

    @property
    def ownership_policy(self) -> ownership.OwnershipPolicy:
        files_gid: Optional[str] = self.namespace.files_gid
        return ownership.OwnershipPolicy(
            user=str(self.namespace.files_uid),
            group=str(files_gid) if files_gid else str(self.namespace.files_uid),
            file_mode=str(self.namespace.files_perms),
            folder_mode=str(self.namespace.folders_perms),
            key_mode=str(self.namespace.key_perms),
        )
