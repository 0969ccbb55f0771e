import os
import sys
import argparse
import tempfile
from typing import Any, Dict, List, Optional

from config import load_config, audit_log, get_current_user
from crypto import encrypt_bytes, decrypt_bytes
from errors import AuthenticationFailed, DecodeError, SealError
from keycodec import decode_key_pair, decode_public, encode_key_pair, encode_public
from keys import format_symmetric_key, generate_key_pair, generate_symmetric_key, parse_symmetric_key
from signing import digest_file, sign, verify

# --------------------------
# File helpers
# --------------------------
def _write_atomic(path: str, data: bytes, mode: Optional[int] = None) -> None:
    """Write to a fresh temp file beside path and rename it into place; never leaves a partial target"""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        if mode is not None:
            os.chmod(tmp_path, mode)  # Restrict permissions
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise

def _same_file(a: str, b: str) -> bool:
    if os.path.exists(a) and os.path.exists(b):
        return os.path.samefile(a, b)
    return os.path.realpath(a) == os.path.realpath(b)

def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="ascii") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise DecodeError(f"{path} is not a text key file: {e}") from e

def _load_key(cfg: Dict[str, Any], key_file: Optional[str]) -> bytes:
    """Resolve the symmetric key: --key-file, then SEALKIT_KEY, then the configured key file"""
    if key_file:
        return parse_symmetric_key(_read_text(key_file))
    if cfg.get("key_hex"):
        return parse_symmetric_key(cfg["key_hex"])
    if not os.path.exists(cfg["key_file"]):
        raise FileNotFoundError(f"Key file not found: {cfg['key_file']} (run 'sealkit keygen' first)")
    return parse_symmetric_key(_read_text(cfg["key_file"]))

def _aad(args: argparse.Namespace) -> Optional[bytes]:
    return args.aad.encode("utf-8") if args.aad else None

def _fail(cfg: Dict[str, Any], action: str, message: str, reason: str) -> None:
    print(f"✗ {message}", file=sys.stderr)
    audit_log(cfg, f"{action}_FAILED by {get_current_user()} reason={reason}")
    sys.exit(1)

def _refuse_same_file(cfg: Dict[str, Any], action: str, source: str, target: str) -> None:
    if _same_file(source, target):
        _fail(cfg, action, f"Input and output must be different files: {target}", "same_file")

def _refuse_existing(cfg: Dict[str, Any], action: str, paths: List[str], force: bool) -> None:
    existing = [p for p in paths if os.path.exists(p)]
    if existing and not force:
        _fail(cfg, action, f"{', '.join(existing)} already exists (use --force to overwrite)", "exists")

# --------------------------
# CLI Commands
# --------------------------
def cmd_keygen(args: argparse.Namespace) -> None:
    """Generate a symmetric key file"""
    cfg = load_config()
    size = args.size or cfg["key_size"]
    out = args.out or cfg["key_file"]

    _refuse_existing(cfg, "KEYGEN", [out], args.force)

    try:
        key = generate_symmetric_key(size)
        _write_atomic(out, (format_symmetric_key(key) + "\n").encode("ascii"), 0o600)
    except (SealError, OSError) as e:
        _fail(cfg, "KEYGEN", f"Key generation failed: {e}", type(e).__name__)

    audit_log(cfg, f"KEYGEN by {get_current_user()} size={size} out={out}")
    print(f"✓ Wrote {size * 8}-bit key to: {out}")

def cmd_genkeys(args: argparse.Namespace) -> None:
    """Generate a signing key pair file plus a public-only copy"""
    cfg = load_config()
    curve = args.curve or cfg["curve"]
    out = args.out or cfg["key_pair_file"]
    pub_out = out + ".pub"

    _refuse_existing(cfg, "GENKEYS", [out, pub_out], args.force)

    try:
        pair = generate_key_pair(curve)
        pair_pem = encode_key_pair(pair).encode("ascii")
        public_pem = encode_public(pair.public).encode("ascii")
    except (SealError, ValueError) as e:
        _fail(cfg, "GENKEYS", f"Key pair generation failed: {e}", type(e).__name__)

    # Public copy first, so a failure never leaves a new private key behind
    previous_public = None
    if os.path.exists(pub_out):
        with open(pub_out, "rb") as f:
            previous_public = f.read()
    try:
        _write_atomic(pub_out, public_pem, 0o644)
    except OSError as e:
        _fail(cfg, "GENKEYS", f"Key pair generation failed: {e}", type(e).__name__)
    try:
        _write_atomic(out, pair_pem, 0o600)
    except OSError as e:
        # Put the public copy back the way it was
        if previous_public is not None:
            _write_atomic(pub_out, previous_public, 0o644)
        else:
            os.unlink(pub_out)
        _fail(cfg, "GENKEYS", f"Key pair generation failed: {e}", type(e).__name__)

    audit_log(cfg, f"GENKEYS by {get_current_user()} curve={curve} out={out}")
    print(f"✓ Wrote {curve} key pair to: {out}")
    print(f"  Public key: {pub_out}")

def cmd_encrypt(args: argparse.Namespace) -> None:
    """Seal a file into an envelope file"""
    cfg = load_config()
    _refuse_same_file(cfg, "ENCRYPT", args.input, args.output)

    try:
        key = _load_key(cfg, args.key_file)
        with open(args.input, "rb") as f:
            data = f.read()
        sealed = encrypt_bytes(data, key, _aad(args), cipher=cfg["cipher"])
        _write_atomic(args.output, sealed)
    except (SealError, OSError) as e:
        _fail(cfg, "ENCRYPT", f"Encryption failed: {e}", type(e).__name__)

    audit_log(cfg, f"ENCRYPT by {get_current_user()} in={args.input} out={args.output} bytes={len(data)}")
    print(f"✓ Encrypted {len(data)} bytes to: {args.output}")

def cmd_decrypt(args: argparse.Namespace) -> None:
    """Open an envelope file"""
    cfg = load_config()
    _refuse_same_file(cfg, "DECRYPT", args.input, args.output)

    try:
        key = _load_key(cfg, args.key_file)
        with open(args.input, "rb") as f:
            sealed = f.read()
        plaintext = decrypt_bytes(sealed, key, _aad(args), cipher=cfg["cipher"])
        _write_atomic(args.output, plaintext)
    except AuthenticationFailed:
        _fail(cfg, "DECRYPT", "Decryption failed: wrong key or corrupted file", "authentication")
    except (SealError, OSError) as e:
        _fail(cfg, "DECRYPT", f"Decryption failed: {e}", type(e).__name__)

    audit_log(cfg, f"DECRYPT by {get_current_user()} in={args.input} out={args.output}")
    print(f"✓ Decrypted to: {args.output}")

def cmd_sign(args: argparse.Namespace) -> None:
    """Write a detached signature for a file"""
    cfg = load_config()
    keys_path = args.keys or cfg["key_pair_file"]
    out = args.out or args.input + ".sig"

    _refuse_same_file(cfg, "SIGN", args.input, out)
    _refuse_same_file(cfg, "SIGN", keys_path, out)

    try:
        pair = decode_key_pair(_read_text(keys_path))
        digest = digest_file(args.input, cfg["hash"])
        signature = sign(pair.private, digest, cfg["hash"])
        _write_atomic(out, signature.to_der())
    except (SealError, OSError) as e:
        _fail(cfg, "SIGN", f"Signing failed: {e}", type(e).__name__)

    audit_log(cfg, f"SIGN by {get_current_user()} in={args.input} sig={out}")
    print(f"✓ Signature written to: {out}")

def cmd_verify(args: argparse.Namespace) -> None:
    """Check a detached signature; exits 1 when it does not verify"""
    cfg = load_config()
    keys_path = args.keys or cfg["key_pair_file"]

    try:
        public_key = decode_public(_read_text(keys_path))
        digest = digest_file(args.input, cfg["hash"])
        with open(args.signature, "rb") as f:
            signature = f.read()
    except (SealError, OSError) as e:
        _fail(cfg, "VERIFY", f"Verification failed: {e}", type(e).__name__)

    if not verify(public_key, digest, signature, cfg["hash"]):
        _fail(cfg, "VERIFY", f"Signature does NOT match: {args.input}", "invalid_signature")

    audit_log(cfg, f"VERIFY by {get_current_user()} in={args.input} sig={args.signature}")
    print(f"✓ Signature valid: {args.input}")

def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="sealkit",
        description="Authenticated file encryption and detached ECDSA signatures",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest="cmd", help="Available commands")

    # Keygen command
    parser_keygen = subparsers.add_parser("keygen", help="Generate a symmetric key file")
    parser_keygen.add_argument("--size", type=int, choices=(16, 24, 32),
                               help="Key size in bytes (default: SEALKIT_KEY_SIZE or 32)")
    parser_keygen.add_argument("--out", help="Key file path (default: SEALKIT_KEY_FILE)")
    parser_keygen.add_argument("--force", action="store_true", help="Overwrite an existing key file")

    # Genkeys command
    parser_genkeys = subparsers.add_parser("genkeys", help="Generate an ECDSA key pair file")
    parser_genkeys.add_argument("--curve", help="Curve name (default: SEALKIT_CURVE or secp256r1)")
    parser_genkeys.add_argument("--out", help="Key pair file path (default: SEALKIT_KEY_PAIR_FILE)")
    parser_genkeys.add_argument("--force", action="store_true", help="Overwrite an existing key pair file")

    # Encrypt/decrypt commands
    for name, help_text in (("encrypt", "Encrypt a file into an envelope"),
                            ("decrypt", "Decrypt an envelope file")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("input", help="Source file")
        sub.add_argument("output", help="Destination file (must differ from source)")
        sub.add_argument("--key-file", help="Symmetric key file (default: SEALKIT_KEY or SEALKIT_KEY_FILE)")
        sub.add_argument("--aad", help="Associated data bound to the ciphertext")

    # Sign command
    parser_sign = subparsers.add_parser("sign", help="Write a detached signature for a file")
    parser_sign.add_argument("input", help="File to sign")
    parser_sign.add_argument("--keys", help="Key pair file (default: SEALKIT_KEY_PAIR_FILE)")
    parser_sign.add_argument("--out", help="Signature path (default: <input>.sig)")

    # Verify command
    parser_verify = subparsers.add_parser("verify", help="Verify a detached signature")
    parser_verify.add_argument("input", help="Signed file")
    parser_verify.add_argument("signature", help="Signature file")
    parser_verify.add_argument("--keys", help="Key pair or public key file (default: SEALKIT_KEY_PAIR_FILE)")

    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        sys.exit(1)

    commands = {
        "keygen": cmd_keygen,
        "genkeys": cmd_genkeys,
        "encrypt": cmd_encrypt,
        "decrypt": cmd_decrypt,
        "sign": cmd_sign,
        "verify": cmd_verify,
    }

    try:
        commands[args.cmd](args)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
