"""
Common building blocks for fs-env.

Modules:
- errors: error taxonomy and exit codes
- edits: KEY=VALUE parsing and record mutations
- kms: KMS envelope encryption and the _KMS key suffix
- report: +/- change lines and plain listing
"""

__all__ = [
    "edits",
    "errors",
    "kms",
    "report",
]
