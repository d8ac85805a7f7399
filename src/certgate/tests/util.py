"""Test utilities."""
import argparse
import datetime
import logging
import os
import shutil
import tempfile
import unittest
from importlib import resources
from typing import Optional

from certgate import configuration
from certgate import crypto_util
from certgate._internal import constants


def vector_path(*names: str) -> str:
    """Path to a test vector."""
    return os.path.join(str(resources.files(__package__)), 'testdata', *names)


def load_vector(*names: str) -> bytes:
    """Load contents of a test vector."""
    with open(vector_path(*names), 'rb') as f:
        return f.read()


def write_cert_pair(cert_path: str, key_path: str, common_name: str, days: int,
                    not_before: Optional[datetime.datetime] = None) -> None:
    """Write a self-signed certificate and its key.

    A 2048 bits key is used to keep the tests fast.

    """
    key = crypto_util.make_key(2048)
    cert = crypto_util.make_self_signed_cert(key, common_name, days, not_before)
    with open(key_path, 'wb') as f:
        f.write(crypto_util.dump_key(key))
    with open(cert_path, 'wb') as f:
        f.write(crypto_util.dump_cert(cert))


class TempDirTestCase(unittest.TestCase):
    """Base test class which sets up and tears down a temporary directory"""

    def setUp(self) -> None:
        """Execute before test"""
        self.tempdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        """Execute after test"""
        # Remove logging handlers installed by the code under test so they
        # won't be accidentally used in future tests.
        logging.getLogger().handlers = []

        shutil.rmtree(self.tempdir)


class ConfigTestCase(TempDirTestCase):
    """Test class which sets up a NamespaceConfig object.

    Every directory the configuration points to is created in the
    temporary directory.
    """
    def setUp(self) -> None:
        super().setUp()
        namespace = argparse.Namespace(**constants.CLI_DEFAULTS)
        for attr in ('certs_dir', 'vhost_dir', 'conf_dir', 'html_dir', 'acme_sh_dir'):
            path = os.path.join(self.tempdir, attr)
            os.mkdir(path)
            setattr(namespace, attr, path)
        namespace.user_data_file = os.path.join(self.tempdir, 'letsencrypt_user_data')
        namespace.docker_host = 'unix://' + os.path.join(self.tempdir, 'docker.sock')
        namespace.files_uid = str(os.getuid())
        namespace.files_gid = str(os.getgid())
        self.config = configuration.NamespaceConfig(namespace)
