"""Tests for certgate._internal.dhparam."""
import os
import shutil
import sys
import unittest
from unittest import mock

import pytest

from certgate import crypto_util
from certgate import errors
from certgate._internal import dhparam
from certgate._internal import ownership
from certgate.tests import util as test_util


class ReferenceParamSetTest(test_util.TempDirTestCase):
    """Tests for certgate._internal.dhparam.ReferenceParamSet."""

    def test_bundled(self):
        catalog = dhparam.ReferenceParamSet.bundled()
        assert sorted(catalog.params) == [2048, 3072, 4096]
        fingerprints = {param.fingerprint for param in catalog}
        assert len(fingerprints) == 3
        for param in catalog:
            assert param.fingerprint == crypto_util.sha256sum(param.path)
            assert os.path.basename(param.path) == f"ffdhe{param.bits}.pem"

    def test_missing_group(self):
        with pytest.raises(errors.Error):
            dhparam.ReferenceParamSet.from_directory(self.tempdir)

    def test_match(self):
        catalog = dhparam.ReferenceParamSet.bundled()
        assert catalog.match(catalog[3072].fingerprint) == catalog[3072]
        assert catalog.match("0" * 64) is None


class ValidateBitsTest(unittest.TestCase):
    """Tests for certgate._internal.dhparam.validate_bits."""

    def test_supported(self):
        assert dhparam.validate_bits(2048) == 2048
        assert dhparam.validate_bits("3072") == 3072
        assert dhparam.validate_bits(" 4096 ") == 4096

    def test_unsupported(self):
        for bits in (1024, "8192", "abc", "", "2048 bits", None):
            with pytest.raises(errors.ConfigurationError):
                dhparam.validate_bits(bits)


class DHParamProvisionerTest(test_util.TempDirTestCase):
    """Tests for certgate._internal.dhparam.DHParamProvisioner."""

    def setUp(self):
        super().setUp()
        self.dhparam_path = os.path.join(self.tempdir, "dhparam.pem")
        self.apply_ownership = mock.MagicMock()
        self.catalog = dhparam.ReferenceParamSet.bundled()
        self.provisioner = dhparam.DHParamProvisioner(
            self.dhparam_path, self.apply_ownership, lambda: self.catalog)

    def _install(self, src):
        shutil.copyfile(src, self.dhparam_path)

    def _fingerprint(self):
        return crypto_util.sha256sum(self.dhparam_path)

    def test_fresh_install(self):
        for bits in (2048, 3072, 4096):
            if os.path.exists(self.dhparam_path):
                os.remove(self.dhparam_path)
            assert self.provisioner.ensure_dhparam(bits) is True
            assert self._fingerprint() == self.catalog[bits].fingerprint
            self.apply_ownership.assert_called_with(self.dhparam_path)
        assert not os.path.exists(self.dhparam_path + ".tmp")

    def test_already_installed(self):
        self._install(self.catalog[4096].path)
        with open(self.dhparam_path, "rb") as f:
            before = f.read()

        with mock.patch("certgate._internal.dhparam.util.atomic_copy") as mock_copy:
            assert self.provisioner.ensure_dhparam("4096") is False
        mock_copy.assert_not_called()

        with open(self.dhparam_path, "rb") as f:
            assert f.read() == before
        self.apply_ownership.assert_called_once_with(self.dhparam_path)

    def test_stale_group_replaced(self):
        self._install(self.catalog[2048].path)
        assert self.provisioner.ensure_dhparam(4096) is True
        assert self._fingerprint() == self.catalog[4096].fingerprint

    def test_user_provided_never_overwritten(self):
        self._install(test_util.vector_path("dhparam_custom.pem"))
        custom = test_util.load_vector("dhparam_custom.pem")

        for bits in (2048, 3072, 4096):
            with mock.patch("certgate._internal.dhparam.logger") as mock_logger:
                assert self.provisioner.ensure_dhparam(bits) is False
            assert "custom dhparam.pem" in mock_logger.info.call_args[0][0]
            with open(self.dhparam_path, "rb") as f:
                assert f.read() == custom
        assert self.apply_ownership.call_count == 3

    def test_skip_touches_nothing(self):
        loader = mock.MagicMock()
        provisioner = dhparam.DHParamProvisioner(self.dhparam_path, self.apply_ownership, loader)
        with mock.patch("certgate._internal.dhparam.os.path.isfile") as mock_isfile, \
             mock.patch("certgate._internal.dhparam.crypto_util.sha256sum") as mock_sha, \
             mock.patch("certgate._internal.dhparam.util.atomic_copy") as mock_copy:
            # invalid sizes are not even looked at
            assert provisioner.ensure_dhparam("nonsense", skip=True) is False
        loader.assert_not_called()
        mock_isfile.assert_not_called()
        mock_sha.assert_not_called()
        mock_copy.assert_not_called()
        self.apply_ownership.assert_not_called()

    def test_invalid_bits(self):
        self._install(self.catalog[2048].path)
        for bits in ("1024", 512, "four"):
            with pytest.raises(errors.ConfigurationError):
                self.provisioner.ensure_dhparam(bits)
        assert self._fingerprint() == self.catalog[2048].fingerprint
        self.apply_ownership.assert_not_called()

    def test_classify(self):
        assert self.provisioner.classify() == (dhparam.Provenance.ABSENT, None)

        self._install(self.catalog[3072].path)
        classification = self.provisioner.classify()
        assert classification == (dhparam.Provenance.TOOL_GENERATED, 3072)
        assert str(classification) == "tool-generated@3072"

        self._install(test_util.vector_path("dhparam_custom.pem"))
        assert str(self.provisioner.classify()) == "user-provided"

    def test_copy_failure_keeps_previous_group(self):
        self._install(self.catalog[2048].path)
        with mock.patch("certgate.util.shutil.copyfile", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                self.provisioner.ensure_dhparam(4096)
        assert self._fingerprint() == self.catalog[2048].fingerprint
        assert not os.path.exists(self.dhparam_path + ".tmp")

    def test_catalog_loaded_once(self):
        loader = mock.MagicMock(return_value=self.catalog)
        provisioner = dhparam.DHParamProvisioner(self.dhparam_path, self.apply_ownership, loader)
        provisioner.ensure_dhparam(2048)
        provisioner.ensure_dhparam(2048)
        loader.assert_called_once_with()

    def test_ownership_failure_after_install(self):
        policy = ownership.OwnershipPolicy(str(os.getuid() + 1), str(os.getgid()),
                                           "644", "755", "600")
        provisioner = dhparam.DHParamProvisioner(
            self.dhparam_path, policy.apply, lambda: self.catalog)
        with mock.patch("certgate._internal.ownership.os.chown",
                        side_effect=PermissionError(1, "Operation not permitted")):
            assert provisioner.ensure_dhparam(2048) is True
        assert self._fingerprint() == self.catalog[2048].fingerprint


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
