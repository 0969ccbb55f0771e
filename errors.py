"""Exceptions raised by the sealing and signing helpers."""


class SealError(Exception):
    """Base exception for all sealkit errors."""

    pass


class InvalidKeySize(SealError, ValueError):
    """Key length is not supported by the chosen cipher."""

    pass


class InvalidNonce(SealError, ValueError):
    """Nonce length does not match the mode's nonce size."""

    pass


class InvalidDigest(SealError, ValueError):
    """Digest length does not match the chosen hash function."""

    pass


class AuthenticationFailed(SealError):
    """Ciphertext, tag, nonce or associated data failed authentication."""

    pass


class MalformedEnvelope(SealError, ValueError):
    """Envelope is too short or structurally invalid."""

    pass


class DecodeError(SealError, ValueError):
    """Serialized key material is missing, mislabeled or corrupt."""

    pass


class EntropySourceFailure(SealError):
    """Random source is unavailable or returned too few bytes."""

    pass
