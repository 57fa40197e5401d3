from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID


@dataclass
class SigningMaterial:
    certificate: Path
    key: Path


def _write_pair(directory: Path, name: str, private_key) -> SigningMaterial:
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, f"jenkins-{name}.example.org")])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(private_key, hashes.SHA256())
    )
    cert_path = directory / f"{name}.crt"
    key_path = directory / f"{name}.key"
    cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return SigningMaterial(certificate=cert_path, key=key_path)


@pytest.fixture
def rsa_material(tmp_path) -> SigningMaterial:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _write_pair(tmp_path, "rsa", key)


@pytest.fixture
def ec_material(tmp_path) -> SigningMaterial:
    key = ec.generate_private_key(ec.SECP256R1())
    return _write_pair(tmp_path, "ec", key)


@pytest.fixture
def other_rsa_material(tmp_path) -> SigningMaterial:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _write_pair(tmp_path, "other", key)
