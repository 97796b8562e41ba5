"""
Certificate builder for tlsserve
Generates a throwaway self-signed certificate and key in the temp dir
"""

import ipaddress
import secrets
import tempfile
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple

from cryptography import x509
from cryptography.x509.oid import NameOID, ExtendedKeyUsageOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec


ORGANIZATION = "Temporary but Cyphered ;)"
VALIDITY = timedelta(days=365)
SERIAL_LIMIT = 1 << 128

CERT_PREFIX = "cert-"
KEY_PREFIX = "key-"


class IssuanceError(Exception):
    """Raised when a certificate/key pair cannot be produced."""


class IssuedCertificate(NamedTuple):
    """Paths of the PEM certificate and PEM PKCS#8 key written by issue()."""
    cert: str
    key: str

    def paths(self) -> List[str]:
        return [self.cert, self.key]


def subject_alt_name(host: str) -> x509.GeneralName:
    """
    Return the SAN entry for host.

    IP literals become an IPAddress entry, anything else is used verbatim
    as a DNSName. Hostname syntax is not checked. A zoned IPv6 literal
    ("fe80::1%eth0") is not treated as an IP, the zone has no encoding.
    """
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return x509.DNSName(host)
    if getattr(address, 'scope_id', None):
        return x509.DNSName(host)
    return x509.IPAddress(address)


def encode_private_key(key: ec.EllipticCurvePrivateKey) -> bytes:
    """Unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def random_serial_number() -> int:
    """Uniform 128-bit serial, never zero."""
    return secrets.randbelow(SERIAL_LIMIT - 1) + 1


def build_certificate(host: str, key: ec.EllipticCurvePrivateKey, serial: int,
                      now: datetime) -> x509.Certificate:
    """Build and self-sign the server certificate for host."""
    name = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, ORGANIZATION)])
    public_key = key.public_key()

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(public_key)
        .serial_number(serial)
        .not_valid_before(now)
        .not_valid_after(now + VALIDITY)
        .add_extension(x509.SubjectAlternativeName([subject_alt_name(host)]), critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(x509.AuthorityKeyIdentifier.from_issuer_public_key(public_key), critical=False)
    )
    return builder.sign(key, hashes.SHA256())


def _close_quietly(handle):
    try:
        handle.close()
    except OSError:
        pass


def _write_temp(prefix: str, data: bytes, label: str) -> str:
    """Write data to a new uniquely named temp file and return its path."""
    try:
        handle = tempfile.NamedTemporaryFile(mode='wb', prefix=prefix, suffix='.pem', delete=False)
    except OSError as e:
        raise IssuanceError(f"Failed to open {label} for writing: {e}") from e

    try:
        handle.write(data)
    except OSError as e:
        _close_quietly(handle)
        raise IssuanceError(f"Failed to write data to {label}: {e}") from e

    try:
        handle.close()
    except OSError as e:
        raise IssuanceError(f"Error closing {label}: {e}") from e

    return handle.name


def issue(host: str) -> IssuedCertificate:
    """
    Generate a P-256 key and a self-signed certificate for host.

    Args:
        host: IP literal or DNS name the certificate is valid for

    Returns:
        IssuedCertificate: paths of the cert and key files. The caller owns
        them and is responsible for deleting them.

    Raises:
        IssuanceError: If any step fails. No partial result is returned,
        though a cert file written before a key failure may remain in the
        temp dir.
    """
    if not host:
        raise IssuanceError("Host must not be empty")

    try:
        key = ec.generate_private_key(ec.SECP256R1())
    except Exception as e:
        raise IssuanceError(f"Failed to generate private key: {e}") from e

    try:
        serial = random_serial_number()
    except Exception as e:
        raise IssuanceError(f"Failed to generate serial number: {e}") from e

    now = datetime.now(timezone.utc).replace(microsecond=0)
    try:
        cert = build_certificate(host, key, serial, now)
        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    except Exception as e:
        raise IssuanceError(f"Failed to create certificate: {e}") from e

    cert_path = _write_temp(CERT_PREFIX, cert_pem, "cert file")

    try:
        key_pem = encode_private_key(key)
    except Exception as e:
        raise IssuanceError(f"Unable to marshal private key: {e}") from e

    key_path = _write_temp(KEY_PREFIX, key_pem, "key file")

    return IssuedCertificate(cert=cert_path, key=key_path)
