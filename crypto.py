from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

import envelope
from constants import DEFAULT_CIPHER, KEY_SIZES, NONCE_SIZE, TAG_SIZE
from errors import AuthenticationFailed, InvalidNonce
from keys import EntropySource, generate_nonce, validate_key_size

# name -> (AEAD class, supported key sizes)
CIPHERS = {
    "aes-gcm": (AESGCM, KEY_SIZES),
    "chacha20-poly1305": (ChaCha20Poly1305, (32,)),
}

# --------------------------
# Authenticated cipher engine
# --------------------------
class AuthenticatedCipher:
    """
    AEAD wrapper: seal encrypts and authenticates, open authenticates and decrypts.
    Sealing is deterministic for identical inputs, so nonce uniqueness per key
    is the caller's job.
    """

    nonce_size = NONCE_SIZE
    tag_size = TAG_SIZE

    def __init__(self, key: bytes, cipher: str = DEFAULT_CIPHER):
        if cipher not in CIPHERS:
            raise ValueError(f"Unsupported cipher: {cipher}")
        aead_cls, key_sizes = CIPHERS[cipher]
        self.cipher = cipher
        self._aead = aead_cls(validate_key_size(key, key_sizes))

    def _check_nonce(self, nonce: bytes) -> None:
        if not isinstance(nonce, (bytes, bytearray)) or len(nonce) != self.nonce_size:
            raise InvalidNonce(f"Nonce must be {self.nonce_size} bytes")

    def seal(self, nonce: bytes, plaintext: bytes, associated_data: Optional[bytes] = None) -> bytes:
        """Return ciphertext with the authentication tag appended"""
        self._check_nonce(nonce)
        return self._aead.encrypt(bytes(nonce), plaintext, associated_data)

    def open(self, nonce: bytes, ciphertext: bytes, associated_data: Optional[bytes] = None) -> bytes:
        """Return plaintext, or raise AuthenticationFailed on any tampering"""
        self._check_nonce(nonce)
        try:
            return self._aead.decrypt(bytes(nonce), ciphertext, associated_data)
        except InvalidTag:
            # No detail on purpose; callers only learn that authentication failed
            raise AuthenticationFailed("Authentication failed") from None

# --------------------------
# Encryption/Decryption of whole payloads
# --------------------------
def encrypt_bytes(plaintext: bytes, key: bytes, associated_data: Optional[bytes] = None,
                  cipher: str = DEFAULT_CIPHER,
                  random_source: Optional[EntropySource] = None) -> bytes:
    """Seal plaintext under a fresh nonce and return the envelope"""
    engine = AuthenticatedCipher(key, cipher)
    nonce = generate_nonce(engine.nonce_size, random_source)
    sealed = engine.seal(nonce, plaintext, associated_data)
    return envelope.wrap(nonce, sealed, engine.nonce_size, engine.tag_size)

def decrypt_bytes(data: bytes, key: bytes, associated_data: Optional[bytes] = None,
                  cipher: str = DEFAULT_CIPHER) -> bytes:
    """Open an envelope produced by encrypt_bytes"""
    engine = AuthenticatedCipher(key, cipher)
    nonce, sealed = envelope.unwrap(data, engine.nonce_size, engine.tag_size)
    return engine.open(nonce, sealed, associated_data)
