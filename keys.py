import secrets
from dataclasses import dataclass, field
from typing import Callable, Optional

from cryptography.hazmat.primitives.asymmetric import ec

from constants import CURVE_ORDERS, DEFAULT_CURVE, DEFAULT_KEY_SIZE, KEY_SIZES, NONCE_SIZE
from errors import DecodeError, EntropySourceFailure, InvalidKeySize

EntropySource = Callable[[int], bytes]

CURVES = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}

# --------------------------
# Entropy
# --------------------------
def system_random(n: int) -> bytes:
    """Read n bytes from the OS CSPRNG"""
    return secrets.token_bytes(n)

def draw(n: int, random_source: Optional[EntropySource] = None) -> bytes:
    """Draw exactly n bytes from the entropy source"""
    source = random_source or system_random
    try:
        data = source(n)
    except Exception as e:
        raise EntropySourceFailure(f"Random source failed: {e}") from e

    if not isinstance(data, (bytes, bytearray)):
        raise EntropySourceFailure(f"Random source returned {type(data).__name__}, expected bytes")
    if len(data) != n:
        raise EntropySourceFailure(f"Random source returned {len(data)} bytes, expected {n}")
    return bytes(data)

# --------------------------
# Symmetric keys and nonces
# --------------------------
def validate_key_size(key: bytes, sizes=KEY_SIZES) -> bytes:
    if not isinstance(key, (bytes, bytearray)) or len(key) not in sizes:
        length = len(key) if isinstance(key, (bytes, bytearray)) else type(key).__name__
        allowed = "/".join(str(s) for s in sizes)
        raise InvalidKeySize(f"Invalid key size: {length} (expected {allowed} bytes)")
    return bytes(key)

def generate_symmetric_key(size: int = DEFAULT_KEY_SIZE,
                           random_source: Optional[EntropySource] = None) -> bytes:
    """Generate a fresh symmetric key of a supported size"""
    if size not in KEY_SIZES:
        raise InvalidKeySize(f"Unsupported key size: {size}")
    return draw(size, random_source)

def generate_nonce(size: int = NONCE_SIZE,
                   random_source: Optional[EntropySource] = None) -> bytes:
    """Generate a fresh nonce; never reuse one with the same key"""
    return draw(size, random_source)

def format_symmetric_key(key: bytes) -> str:
    return validate_key_size(key).hex()

def parse_symmetric_key(text: str) -> bytes:
    """Parse a hex-encoded key as stored in key files"""
    try:
        key = bytes.fromhex(text.strip())
    except (AttributeError, ValueError) as e:
        raise DecodeError(f"Invalid key encoding: {e}") from e
    return validate_key_size(key)

# --------------------------
# Elliptic curve keys
# --------------------------
def _curve(name: str) -> ec.EllipticCurve:
    try:
        return CURVES[name]()
    except KeyError:
        raise ValueError(f"Unsupported curve: {name}")

@dataclass(frozen=True)
class PublicKey:
    """Public curve point; equality compares curve and coordinates"""
    curve: str
    x: int
    y: int

    @classmethod
    def from_crypto(cls, key: ec.EllipticCurvePublicKey) -> "PublicKey":
        numbers = key.public_numbers()
        return cls(curve=key.curve.name, x=numbers.x, y=numbers.y)

    def to_crypto(self) -> ec.EllipticCurvePublicKey:
        return ec.EllipticCurvePublicNumbers(self.x, self.y, _curve(self.curve)).public_key()

@dataclass(frozen=True)
class PrivateKey:
    """Private scalar; equality compares curve and scalar"""
    curve: str
    scalar: int = field(repr=False)

    @classmethod
    def from_crypto(cls, key: ec.EllipticCurvePrivateKey) -> "PrivateKey":
        return cls(curve=key.curve.name, scalar=key.private_numbers().private_value)

    def to_crypto(self) -> ec.EllipticCurvePrivateKey:
        return ec.derive_private_key(self.scalar, _curve(self.curve))

    def public_key(self) -> PublicKey:
        return PublicKey.from_crypto(self.to_crypto().public_key())

@dataclass(frozen=True)
class KeyPair:
    private: PrivateKey
    public: PublicKey

    @classmethod
    def from_private(cls, private: PrivateKey) -> "KeyPair":
        return cls(private=private, public=private.public_key())

def generate_key_pair(curve: str = DEFAULT_CURVE,
                      random_source: Optional[EntropySource] = None) -> KeyPair:
    """
    Generate an EC key pair.
    Without a random source the library's generator is used; with one, the
    scalar is drawn from it so callers can substitute a deterministic source.
    """
    curve_obj = _curve(curve)
    if random_source is None:
        return KeyPair.from_private(PrivateKey.from_crypto(ec.generate_private_key(curve_obj)))

    order = CURVE_ORDERS[curve]
    # 8 extra bytes keep the modulo bias negligible
    raw = draw((order.bit_length() + 7) // 8 + 8, random_source)
    scalar = int.from_bytes(raw, byteorder='big') % (order - 1) + 1
    return KeyPair.from_private(PrivateKey(curve=curve, scalar=scalar))
