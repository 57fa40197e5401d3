from __future__ import annotations

import base64
import logging
from typing import Any

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from emitter.core.message import canonical_json
from emitter.core.models import Message, SignedMessage
from emitter.core.result import ErrorKind, Ok, Result, err
from emitter.ports.key_store import KeyStore

logger = logging.getLogger(__name__)

_SIGNATURE_FIELDS = ("signature", "certificate", "crypto")


class SigningError(Exception):
    """Signing material is unusable for the requested operation."""


def sign_message(
    message: Message,
    certificate_path: str | None,
    key_path: str | None,
    key_store: KeyStore,
) -> Result:
    """Sign a message with an X.509 certificate and its private key.

    Args:
        message (Message): Unsigned envelope.
        certificate_path (str | None): Location of the PEM certificate.
        key_path (str | None): Location of the PEM private key.
        key_store (KeyStore): Loader for the signing material.

    Returns:
        Result: Ok(SignedMessage) or Err with reason SigningError.

    Notes:
        No partially signed message is ever returned; any failure while
        loading material or signing becomes an Err.
    """
    if not certificate_path or not key_path:
        return err(ErrorKind.SIGNING, "sign", "certificate and key paths must both be configured")
    try:
        certificate_pem = key_store.load_certificate(certificate_path)
        key_pem = key_store.load_private_key(key_path)
    except OSError as exc:
        return err(ErrorKind.SIGNING, "sign", f"cannot read signing material: {exc}")

    try:
        certificate = x509.load_pem_x509_certificate(certificate_pem)
        private_key = serialization.load_pem_private_key(key_pem, password=None)
        _ensure_matching(certificate, private_key)
        signature = _sign_bytes(private_key, canonical_json(message.to_wire()))
    except (ValueError, TypeError, UnsupportedAlgorithm, SigningError) as exc:
        return err(ErrorKind.SIGNING, "sign", str(exc) or exc.__class__.__name__)

    return Ok(SignedMessage(message=message, signature=signature, certificate_pem=certificate_pem))


def verify_signed(wire: dict[str, Any], certificate_pem: bytes | None = None) -> bool:
    """Check a signed wire document against its embedded or a supplied certificate."""
    try:
        signature = base64.b64decode(wire["signature"], validate=True)
        if certificate_pem is None:
            certificate_pem = base64.b64decode(wire["certificate"], validate=True)
        certificate = x509.load_pem_x509_certificate(certificate_pem)
    except (KeyError, TypeError, ValueError) as exc:
        logger.debug("Signed message is malformed: %s", exc)
        return False

    unsigned = {key: value for key, value in wire.items() if key not in _SIGNATURE_FIELDS}
    try:
        _verify_bytes(certificate.public_key(), signature, canonical_json(unsigned))
    except (InvalidSignature, SigningError, UnsupportedAlgorithm):
        return False
    return True


def _ensure_matching(certificate: x509.Certificate, private_key: Any) -> None:
    ours = private_key.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    theirs = certificate.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    if ours != theirs:
        raise SigningError("private key does not match certificate")


def _sign_bytes(private_key: Any, data: bytes) -> bytes:
    if isinstance(private_key, rsa.RSAPrivateKey):
        return private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        return private_key.sign(data, ec.ECDSA(hashes.SHA256()))
    if isinstance(private_key, Ed25519PrivateKey):
        return private_key.sign(data)
    raise SigningError(f"unsupported key type: {type(private_key).__name__}")


def _verify_bytes(public_key: Any, signature: bytes, data: bytes) -> None:
    if isinstance(public_key, rsa.RSAPublicKey):
        public_key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        public_key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
    elif isinstance(public_key, Ed25519PublicKey):
        public_key.verify(signature, data)
    else:
        raise SigningError(f"unsupported key type: {type(public_key).__name__}")
