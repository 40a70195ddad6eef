"""
MerkleDrop CLI

Command-line interface for committing allow-lists and checking proofs.

Usage:
    python -m merkledrop_cli build allowlist.csv --out claims.json
    python -m merkledrop_cli proof claims.json 0xRecipient
    python -m merkledrop_cli verify claims.json
"""

__version__ = "0.1.0"
