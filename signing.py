"""
Detached ECDSA signatures over caller-computed digests.

The engine never hashes messages itself: callers hash with digest_message or
digest_file and pass the digest along with the hash name used.
"""

import hashlib
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from constants import DEFAULT_HASH, HASH_SIZES
from errors import DecodeError, InvalidDigest
from keys import PrivateKey, PublicKey

HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Signature:
    """ECDSA signature as the integer pair (r, s)"""
    r: int
    s: int

    def to_der(self) -> bytes:
        return encode_dss_signature(self.r, self.s)

    @classmethod
    def from_der(cls, data: bytes) -> "Signature":
        try:
            r, s = decode_dss_signature(bytes(data))
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid signature encoding: {e}") from e
        return cls(r=r, s=s)


def _algorithm(hash_name: str) -> ec.ECDSA:
    try:
        return ec.ECDSA(Prehashed(HASHES[hash_name]()))
    except KeyError:
        raise ValueError(f"Unsupported hash: {hash_name}")


# --------------------------
# Hashing
# --------------------------
def digest_message(message: bytes, hash_name: str = DEFAULT_HASH) -> bytes:
    if hash_name not in HASHES:
        raise ValueError(f"Unsupported hash: {hash_name}")
    return hashlib.new(hash_name, message).digest()

def digest_file(path: str, hash_name: str = DEFAULT_HASH) -> bytes:
    """Hash a file in chunks"""
    if hash_name not in HASHES:
        raise ValueError(f"Unsupported hash: {hash_name}")
    h = hashlib.new(hash_name)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.digest()


# --------------------------
# Sign / verify
# --------------------------
def sign(private_key: PrivateKey, digest: bytes, hash_name: str = DEFAULT_HASH) -> Signature:
    """
    Sign a digest.

    The per-signature nonce is drawn from the library's CSPRNG on every call,
    so signing the same digest twice yields different signatures. There is no
    random_source argument: cryptography does not accept a caller-supplied
    ECDSA nonce source, and OpenSSL's generator is safe for concurrent use.
    """
    algorithm = _algorithm(hash_name)
    if len(digest) != HASH_SIZES[hash_name]:
        raise InvalidDigest(f"Digest must be {HASH_SIZES[hash_name]} bytes for {hash_name}, got {len(digest)}")

    der = private_key.to_crypto().sign(bytes(digest), algorithm)
    return Signature.from_der(der)

def verify(public_key: PublicKey, digest: bytes, signature: Union[Signature, bytes],
           hash_name: str = DEFAULT_HASH) -> bool:
    """Return True only if signature is valid for digest under public_key; never raises"""
    try:
        if isinstance(signature, Signature):
            der = signature.to_der()
        else:
            der = Signature.from_der(signature).to_der()
        if len(digest) != HASH_SIZES[hash_name]:
            return False
        public_key.to_crypto().verify(der, bytes(digest), _algorithm(hash_name))
        return True
    except InvalidSignature:
        return False
    except Exception:
        # malformed key, signature or digest
        return False
