import os
import sys
import getpass
from datetime import datetime, timezone
from typing import Dict, Any

from dotenv import load_dotenv

from constants import DEFAULT_CIPHER, DEFAULT_CURVE, DEFAULT_HASH, DEFAULT_KEY_SIZE, KEY_SIZES, HASH_SIZES, CURVE_ORDERS
from crypto import CIPHERS

# Load environment variables from .env file if present
load_dotenv()

CIPHER_NAMES = tuple(CIPHERS)

# --------------------------
# Configuration and logging
# --------------------------
def load_config() -> Dict[str, Any]:
    """Load configuration from environment variables"""
    cfg: Dict[str, Any] = {}
    home = os.path.join(os.path.expanduser('~'), '.sealkit')

    # Inline key takes precedence over the key file
    cfg['key_hex'] = os.environ.get('SEALKIT_KEY') or None
    cfg['key_file'] = os.path.expanduser(os.environ.get('SEALKIT_KEY_FILE', os.path.join(home, 'secret.key')))
    cfg['key_pair_file'] = os.path.expanduser(os.environ.get('SEALKIT_KEY_PAIR_FILE', os.path.join(home, 'signing.pem')))
    cfg['audit_log'] = os.path.expanduser(os.environ.get('SEALKIT_AUDIT_LOG', os.path.join(home, 'audit.log')))

    key_size = os.environ.get('SEALKIT_KEY_SIZE', str(DEFAULT_KEY_SIZE))
    try:
        cfg['key_size'] = int(key_size)
    except ValueError:
        raise ValueError(f"SEALKIT_KEY_SIZE must be an integer, got {key_size!r}")
    if cfg['key_size'] not in KEY_SIZES:
        raise ValueError(f"SEALKIT_KEY_SIZE must be one of {KEY_SIZES}")

    cfg['cipher'] = os.environ.get('SEALKIT_CIPHER', DEFAULT_CIPHER).lower()
    if cfg['cipher'] not in CIPHER_NAMES:
        raise ValueError(f"SEALKIT_CIPHER must be one of {', '.join(CIPHER_NAMES)}")

    cfg['curve'] = os.environ.get('SEALKIT_CURVE', DEFAULT_CURVE).lower()
    if cfg['curve'] not in CURVE_ORDERS:
        raise ValueError(f"SEALKIT_CURVE must be one of {', '.join(CURVE_ORDERS)}")

    cfg['hash'] = os.environ.get('SEALKIT_HASH', DEFAULT_HASH).lower()
    if cfg['hash'] not in HASH_SIZES:
        raise ValueError(f"SEALKIT_HASH must be one of {', '.join(HASH_SIZES)}")

    return cfg

def audit_log(cfg: Dict[str, Any], message: str) -> None:
    """Write audit log entry with timestamp"""
    log_path = cfg.get("audit_log") or os.path.join(os.path.expanduser('~'), '.sealkit', 'audit.log')
    timestamp = datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"

    try:
        # Ensure log directory exists
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

        with open(log_path, "a") as f:
            f.write(f"{timestamp} {message}\n")
    except Exception as e:
        print(f"Warning: Failed to write audit log: {e}", file=sys.stderr)

def get_current_user() -> str:
    """Get current username safely"""
    try:
        return os.getlogin()
    except Exception:
        return getpass.getuser()
