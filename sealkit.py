#!/usr/bin/env python3
"""
sealkit.py — authenticated file encryption and detached signatures
  Commands:
    keygen                   - write a fresh symmetric key file
    genkeys                  - write an ECDSA key pair file (private + public blocks)
    encrypt <input> <output> - seal a file as nonce || ciphertext-with-tag
    decrypt <input> <output> - open a sealed file (output must differ from input)
    sign <input>             - write a detached signature
    verify <input> <sig>     - check a detached signature
"""

from cli import main

if __name__ == "__main__":
    main()
