from typing import Tuple

from constants import NONCE_SIZE, TAG_SIZE
from errors import MalformedEnvelope

# --------------------------
# Envelope layout: nonce || ciphertext-with-tag
# --------------------------
def minimum_envelope_size(nonce_size: int = NONCE_SIZE, tag_size: int = TAG_SIZE) -> int:
    return nonce_size + tag_size

def wrap(nonce: bytes, ciphertext: bytes,
         nonce_size: int = NONCE_SIZE, tag_size: int = TAG_SIZE) -> bytes:
    """Combine nonce and sealed ciphertext into one envelope"""
    if len(nonce) != nonce_size:
        raise MalformedEnvelope(f"Nonce must be {nonce_size} bytes, got {len(nonce)}")
    if len(ciphertext) < tag_size:
        raise MalformedEnvelope(f"Ciphertext shorter than {tag_size}-byte tag")
    return bytes(nonce) + bytes(ciphertext)

def unwrap(envelope: bytes,
           nonce_size: int = NONCE_SIZE, tag_size: int = TAG_SIZE) -> Tuple[bytes, bytes]:
    """Split an envelope into (nonce, ciphertext-with-tag)"""
    if not isinstance(envelope, (bytes, bytearray, memoryview)):
        raise MalformedEnvelope(f"Envelope must be bytes, got {type(envelope).__name__}")

    envelope = bytes(envelope)
    minimum = minimum_envelope_size(nonce_size, tag_size)
    if len(envelope) < minimum:
        raise MalformedEnvelope(f"Envelope too short: {len(envelope)} bytes (minimum {minimum})")

    return envelope[:nonce_size], envelope[nonce_size:]
