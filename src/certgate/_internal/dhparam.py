"""Diffie-Hellman parameters provisioning.

The proxy reads its DH group from ``dhparam.pem`` in the certificates
directory. Certgate ships the standardized RFC 7919 groups
(https://datatracker.ietf.org/doc/html/rfc7919#appendix-A) and installs the
one matching the requested size. A file that isn't byte-identical to one
of the bundled groups was provided by the user and is never replaced.

"""
import enum
import logging
import os
from importlib import resources
from typing import Callable
from typing import NamedTuple
from typing import Optional
from typing import Union

from certgate import crypto_util
from certgate import errors
from certgate import util
from certgate._internal import constants

logger = logging.getLogger(__name__)


class Provenance(enum.Enum):
    """Where the active DH parameters file comes from."""
    ABSENT = "absent"
    TOOL_GENERATED = "tool-generated"
    USER_PROVIDED = "user-provided"


class Classification(NamedTuple):
    """Provenance of the active DH file, with its size when tool generated."""
    provenance: Provenance
    bits: Optional[int] = None

    def __str__(self) -> str:
        if self.provenance is Provenance.TOOL_GENERATED:
            return f"{self.provenance.value}@{self.bits}"
        return self.provenance.value


class ReferenceParam(NamedTuple):
    """A bundled RFC 7919 group."""
    bits: int
    path: str
    fingerprint: str


class ReferenceParamSet:
    """Read-only catalog of the bundled DH groups, keyed by size.

    :ivar dict params: `ReferenceParam` by bit length

    """
    def __init__(self, params: dict[int, ReferenceParam]) -> None:
        self.params = dict(params)

    @classmethod
    def from_directory(cls, directory: str,
                       sizes: tuple[int, ...] = constants.SUPPORTED_DHPARAM_BITS
                       ) -> 'ReferenceParamSet':
        """Load and fingerprint ``ffdhe<bits>.pem`` for each size.

        :raises errors.Error: if a bundled group is missing

        """
        params = {}
        for bits in sizes:
            path = os.path.join(directory, constants.DHPARAM_REFERENCE_PATTERN.format(bits=bits))
            if not os.path.isfile(path):
                raise errors.Error(f"Bundled Diffie-Hellman group {path} is missing.")
            params[bits] = ReferenceParam(bits, path, crypto_util.sha256sum(path))
        return cls(params)

    @classmethod
    def bundled(cls) -> 'ReferenceParamSet':
        """Catalog shipped in the ``certgate/dhparam`` package data."""
        return cls.from_directory(str(resources.files('certgate') / 'dhparam'))

    def __getitem__(self, bits: int) -> ReferenceParam:
        return self.params[bits]

    def __iter__(self):
        return iter(sorted(self.params.values()))

    def match(self, fingerprint: str) -> Optional[ReferenceParam]:
        """Reference group with the given fingerprint, if any."""
        for param in self:
            if param.fingerprint == fingerprint:
                return param
        return None


def validate_bits(requested_bits: Union[int, str]) -> int:
    """Check requested_bits is the size of a bundled group.

    :raises errors.ConfigurationError: for any other value

    """
    value = str(requested_bits).strip()
    if value not in tuple(str(bits) for bits in constants.SUPPORTED_DHPARAM_BITS):
        raise errors.ConfigurationError(
            f"Unsupported DHPARAM_BITS size: {requested_bits}. "
            "Supported values are 2048, 3072, or 4096 (default).")
    return int(value)


class DHParamProvisioner:
    """Keeps the active DH parameters file in line with the requested size.

    :ivar str dhparam_path: active DH parameters file
    :ivar apply_ownership: callable fixing ownership and permissions of a path

    """
    def __init__(self, dhparam_path: str, apply_ownership: Callable[[str], object],
                 catalog_loader: Callable[[], ReferenceParamSet] = ReferenceParamSet.bundled
                 ) -> None:
        self.dhparam_path = dhparam_path
        self.apply_ownership = apply_ownership
        self._catalog_loader = catalog_loader
        self._catalog: Optional[ReferenceParamSet] = None

    @property
    def catalog(self) -> ReferenceParamSet:
        if self._catalog is None:
            self._catalog = self._catalog_loader()
        return self._catalog

    def classify(self) -> Classification:
        """Find out who wrote the active DH file.

        The active file is compared to every bundled group, not only the
        requested one, so that a group installed for another size is
        recognized as ours.

        """
        if not os.path.isfile(self.dhparam_path):
            return Classification(Provenance.ABSENT)
        match = self.catalog.match(crypto_util.sha256sum(self.dhparam_path))
        if match is None:
            return Classification(Provenance.USER_PROVIDED)
        return Classification(Provenance.TOOL_GENERATED, match.bits)

    def ensure_dhparam(self, requested_bits: Union[int, str], skip: bool = False) -> bool:
        """Install the RFC 7919 group of the requested size if needed.

        :param requested_bits: 2048, 3072 or 4096
        :param bool skip: do nothing at all

        :returns: True if the active file was written
        :rtype: bool

        :raises errors.ConfigurationError: if requested_bits is not supported

        """
        if skip:
            logger.info("Skipping Diffie-Hellman group setup.")
            return False

        bits = validate_bits(requested_bits)
        reference = self.catalog[bits]

        classification = self.classify()
        logger.debug("Active DH parameters %s: %s", self.dhparam_path, classification)
        if classification.provenance is Provenance.USER_PROVIDED:
            self.apply_ownership(self.dhparam_path)
            logger.info("A custom dhparam.pem file was provided. Best practice is to use "
                        "standardized RFC7919 Diffie-Hellman groups instead.")
            return False
        if classification.bits == reference.bits:
            self.apply_ownership(self.dhparam_path)
            logger.info("%d bits RFC7919 Diffie-Hellman group found, generation skipped.", bits)
            return False

        logger.info("Setting up %d bits RFC7919 Diffie-Hellman group...", bits)
        util.atomic_copy(reference.path, self.dhparam_path, constants.TMP_SUFFIX)
        self.apply_ownership(self.dhparam_path)
        return True
