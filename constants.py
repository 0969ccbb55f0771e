# --------------------------
# Constants
# --------------------------
KEY_SIZES = (16, 24, 32)  # AES-128/192/256
DEFAULT_KEY_SIZE = 32
NONCE_SIZE = 12  # GCM recommended nonce size
TAG_SIZE = 16

DEFAULT_CIPHER = "aes-gcm"
DEFAULT_CURVE = "secp256r1"
DEFAULT_HASH = "sha256"

# Group orders, used to draw a private scalar from an injected entropy source
CURVE_ORDERS = {
    "secp256r1": 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    "secp384r1": int(
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF"
        "C7634D81F4372DDF581A0DB248B0A77AECEC196ACCC52973", 16),
    "secp521r1": int(
        "01" + "F" * 65 +
        "A51868783BF2F966B7FCC0148F709A5D03BB5C9B8899C47AEBB6FB71E91386409", 16),
}

HASH_SIZES = {
    "sha256": 32,
    "sha384": 48,
    "sha512": 64,
}

PRIVATE_KEY_LABEL = "PRIVATE KEY"
PUBLIC_KEY_LABEL = "PUBLIC KEY"
