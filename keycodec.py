import re
from typing import Dict, List, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from constants import PRIVATE_KEY_LABEL, PUBLIC_KEY_LABEL
from errors import DecodeError
from keys import CURVES, KeyPair, PrivateKey, PublicKey

PEM_BLOCK_RE = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n.*?-----END (?P=label)-----\r?\n?",
    re.DOTALL,
)

# --------------------------
# PEM block helpers
# --------------------------
def _as_text(data: Union[str, bytes]) -> str:
    if isinstance(data, bytes):
        try:
            return data.decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Key data is not ASCII: {e}") from e
    if not isinstance(data, str):
        raise DecodeError(f"Key data must be text, got {type(data).__name__}")
    return data

def find_blocks(text: Union[str, bytes]) -> Dict[str, List[str]]:
    """Return PEM blocks found in text, grouped by label"""
    blocks: Dict[str, List[str]] = {}
    for match in PEM_BLOCK_RE.finditer(_as_text(text)):
        blocks.setdefault(match.group("label"), []).append(match.group(0))
    return blocks

def _single_block(text: Union[str, bytes], label: str) -> bytes:
    found = find_blocks(text).get(label, [])
    if not found:
        raise DecodeError(f"No '{label}' block found")
    if len(found) > 1:
        raise DecodeError(f"Multiple '{label}' blocks found")
    return found[0].encode("ascii")

def _check_curve(key) -> None:
    if not isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        raise DecodeError(f"Not an elliptic curve key: {type(key).__name__}")
    if key.curve.name not in CURVES:
        raise DecodeError(f"Unsupported curve: {key.curve.name}")

# --------------------------
# Encode
# --------------------------
def encode_private(key: PrivateKey) -> str:
    """PKCS#8 PEM, unencrypted"""
    return key.to_crypto().private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")

def encode_public(key: PublicKey) -> str:
    """SubjectPublicKeyInfo PEM"""
    return key.to_crypto().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")

def encode_key_pair(pair: KeyPair) -> str:
    """Key file contents: private block followed by public block"""
    return encode_private(pair.private) + encode_public(pair.public)

# --------------------------
# Decode
# --------------------------
def decode_private(text: Union[str, bytes]) -> PrivateKey:
    block = _single_block(text, PRIVATE_KEY_LABEL)
    try:
        key = serialization.load_pem_private_key(block, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise DecodeError(f"Invalid private key: {e}") from e
    _check_curve(key)
    return PrivateKey.from_crypto(key)

def decode_public(text: Union[str, bytes]) -> PublicKey:
    block = _single_block(text, PUBLIC_KEY_LABEL)
    try:
        key = serialization.load_pem_public_key(block)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise DecodeError(f"Invalid public key: {e}") from e
    _check_curve(key)
    return PublicKey.from_crypto(key)

def decode_key_pair(text: Union[str, bytes]) -> KeyPair:
    """Parse a key file and check that its two halves belong together"""
    private = decode_private(text)
    public = decode_public(text)
    if private.public_key() != public:
        raise DecodeError("Public key does not match private key")
    return KeyPair(private=private, public=public)
