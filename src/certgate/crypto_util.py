"""Certgate crypto utility functions."""
import datetime
import hashlib
import logging
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.hazmat.primitives.serialization import NoEncryption
from cryptography.hazmat.primitives.serialization import PrivateFormat
from cryptography.x509.oid import NameOID

from certgate import errors

logger = logging.getLogger(__name__)


def sha256sum(filename: str) -> str:
    """Compute a sha256sum of a file.

    The file is hashed as raw bytes, so the digest is the one reported by
    the ``sha256sum`` command line tool.

    :param str filename: path to the file whose hash will be computed

    :returns: sha256 digest of the file in hexadecimal
    :rtype: str
    """
    sha256 = hashlib.sha256()
    with open(filename, 'rb') as file_d:
        for block in iter(lambda: file_d.read(65536), b''):
            sha256.update(block)
    return sha256.hexdigest()


def make_key(bits: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key.

    :param int bits: Number of bits. At least 2048.

    :returns: new RSA key
    :rtype: :class:`cryptography.hazmat.primitives.asymmetric.rsa.RSAPrivateKey`

    """
    if bits < 2048:
        raise errors.Error("Unsupported RSA key length: {}".format(bits))
    return rsa.generate_private_key(public_exponent=65537, key_size=bits)


def make_self_signed_cert(key: rsa.RSAPrivateKey, common_name: str, days: int,
                          not_before: Optional[datetime.datetime] = None) -> x509.Certificate:
    """Create a self-signed certificate for key.

    Subject and issuer are both ``CN=<common_name>``; the signature uses
    SHA-256.

    :param key: private key signing (and certified by) the certificate
    :param str common_name: subject common name
    :param int days: validity period in days
    :param datetime.datetime not_before: start of validity, defaults to now

    :returns: the certificate
    :rtype: :class:`cryptography.x509.Certificate`

    """
    if not_before is None:
        not_before = datetime.datetime.now(datetime.timezone.utc)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + datetime.timedelta(days=days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
    )
    return builder.sign(key, hashes.SHA256())


def dump_key(key: rsa.RSAPrivateKey) -> bytes:
    """Serialize key as an unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=NoEncryption()
    )


def dump_cert(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def load_cert(cert_path: str) -> x509.Certificate:
    """Load a PEM certificate.

    :param str cert_path: path to a cert in PEM format

    :raises errors.Error: if the file can't be read or isn't a PEM certificate

    """
    try:
        with open(cert_path, "rb") as f:
            data = f.read()
    except OSError as error:
        raise errors.Error(f"Unable to read certificate {cert_path}: {error}")
    try:
        return x509.load_pem_x509_certificate(data)
    except ValueError as error:
        raise errors.Error(f"Unable to load certificate {cert_path}: {error}")


def get_subject_cn(cert_path: str) -> Optional[str]:
    """Common name of the certificate at cert_path.

    :param str cert_path: path to a cert in PEM format

    :returns: the first subject common name, or None if there isn't one
    :rtype: `str` or `None`

    """
    attributes = load_cert(cert_path).subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return None
    value = attributes[0].value
    return value.decode() if isinstance(value, bytes) else value


def notAfter(cert_path: str) -> datetime.datetime:
    """When does the cert at cert_path stop being valid?

    :param str cert_path: path to a cert in PEM format

    :returns: the notAfter value from the cert at cert_path
    :rtype: :class:`datetime.datetime`

    """
    return load_cert(cert_path).not_valid_after_utc


def remaining_validity(cert_path: str,
                       now: Optional[datetime.datetime] = None) -> datetime.timedelta:
    """Time left before the cert at cert_path expires (negative once expired)."""
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return notAfter(cert_path) - now


def check_min_validity(cert_path: str, seconds: int,
                       now: Optional[datetime.datetime] = None) -> bool:
    """Is the cert at cert_path still valid in the given number of seconds?

    :param str cert_path: path to a cert in PEM format
    :param int seconds: minimal remaining validity
    :param datetime.datetime now: reference time, defaults to now

    :returns: True if the certificate does not expire within `seconds`
    :rtype: bool

    """
    left = remaining_validity(cert_path, now)
    logger.debug("Certificate %s expires in %d seconds", cert_path, left.total_seconds())
    return left >= datetime.timedelta(seconds=seconds)
