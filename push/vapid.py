"""Claves VAPID: generacion y carga del firmante que usa pywebpush."""

import base64
import os
from typing import NamedTuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from py_vapid import Vapid


class VapidKeyPair(NamedTuple):
    private_pem: str
    public_pem: str
    public_key: str  # base64url sin padding, lo que recibe PushManager.subscribe()


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def generate_keypair() -> VapidKeyPair:
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_key = private_key.public_key()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode().strip()

    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode().strip()

    raw_public = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return VapidKeyPair(private_pem, public_pem, b64url(raw_public))


def load_signer(private_key: str) -> Vapid:
    """
    Construye el firmante VAPID a partir de la clave configurada.

    Acepta el texto PEM (VAPID_PRIVATE_PEM), la ruta a un archivo .pem
    (VAPID_PRIVATE_KEY_FILE) o la clave raw/DER en base64url.
    """
    key = (private_key or "").strip()
    if not key:
        raise ValueError("VAPID private key is empty")

    if "-----BEGIN" in key:
        return Vapid.from_pem(key.encode("utf-8"))

    # Vapid.from_file crea una clave nueva si el archivo no existe
    if os.path.isfile(key):
        return Vapid.from_file(key)

    return Vapid.from_string(key)
