# sealed blobs are a JSON envelope {version, nonce, data}; older blobs are raw nonce || ciphertext || tag

import base64
import binascii
import json
import os
from typing import TypedDict, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import DecryptionError, InvalidInputError

ENVELOPE_VERSION = 1
PASSPHRASE_LENGTH = 32
NONCE_SIZE = 12

Passphrase = Union[str, bytes]


class Envelope(TypedDict):
    version: int
    nonce: str
    data: str


def _key(passphrase: Passphrase) -> bytes:
    if isinstance(passphrase, str):
        passphrase = passphrase.encode()
    if len(passphrase) != PASSPHRASE_LENGTH:
        raise InvalidInputError(
            f"invalid passphrase length (expected length {PASSPHRASE_LENGTH} characters)"
        )
    return passphrase


def _encrypt(plaintext: bytes, key: bytes) -> tuple[bytes, bytes]:
    nonce = os.urandom(NONCE_SIZE)
    return nonce, AESGCM(key).encrypt(nonce, plaintext, None)


def _decrypt(nonce: bytes, ciphertext: bytes, key: bytes) -> bytes:
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except (InvalidTag, ValueError):
        raise DecryptionError("failed to decrypt text") from None


def seal(plaintext: bytes, passphrase: Passphrase) -> bytes:
    key = _key(passphrase)
    nonce, ciphertext = _encrypt(plaintext, key)
    envelope: Envelope = {
        "version": ENVELOPE_VERSION,
        "nonce": base64.b64encode(nonce).decode(),
        "data": base64.b64encode(ciphertext).decode(),
    }
    return json.dumps(envelope).encode()


def _open_envelope(envelope: object, key: bytes) -> bytes:
    if not isinstance(envelope, dict):
        raise DecryptionError("failed to decrypt text")
    version = envelope.get("version")
    # json gives bool for true and float for 1.0, neither is a valid version
    if type(version) is not int or version != ENVELOPE_VERSION:
        raise DecryptionError("failed to decrypt text")
    try:
        nonce = base64.b64decode(envelope["nonce"], validate=True)
        ciphertext = base64.b64decode(envelope["data"], validate=True)
    except (KeyError, TypeError, binascii.Error):
        raise DecryptionError("failed to decrypt text") from None
    return _decrypt(nonce, ciphertext, key)


# TODO: drop the raw fallback once every stored blob has been re-sealed
def _open_legacy(data: bytes, key: bytes) -> bytes:
    if len(data) < NONCE_SIZE:
        raise DecryptionError("failed to decrypt text")
    return _decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], key)


def unseal(data: bytes, passphrase: Passphrase) -> bytes:
    key = _key(passphrase)
    try:
        envelope = json.loads(data)
    except ValueError:
        return _open_legacy(data, key)
    return _open_envelope(envelope, key)


def aes256_encode(plaintext: bytes, passphrase: Passphrase) -> bytes:
    key = _key(passphrase)
    nonce, ciphertext = _encrypt(plaintext, key)
    return nonce + ciphertext


def aes256_decode(data: bytes, passphrase: Passphrase) -> bytes:
    return _open_legacy(data, _key(passphrase))


def aes256_encode_string(plaintext: str, passphrase: Passphrase) -> str:
    return base64.b64encode(aes256_encode(plaintext.encode(), passphrase)).decode()


def aes256_decode_string(data: Union[str, bytes], passphrase: Passphrase) -> str:
    key = _key(passphrase)
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise DecryptionError("failed to decrypt text") from None
    plaintext = _open_legacy(raw, key)
    try:
        return plaintext.decode()
    except UnicodeDecodeError:
        raise DecryptionError("failed to decrypt text") from None
