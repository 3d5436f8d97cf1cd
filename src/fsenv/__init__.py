"""
fs-env: per-application environment variables stored in DynamoDB.

Modules:
- config: typed Settings resolved from flags and environment
- handler: click command and the load/edit/persist pipeline
"""

__version__ = "1.0.0"

__all__ = [
    "config",
    "handler",
]
