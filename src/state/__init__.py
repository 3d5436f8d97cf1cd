"""
Record models and DynamoDB persistence for fs-env.

A Record holds one application's environment variables. It is fetched from
the ``applications`` table, edited in memory and written back whole.
"""

from .models import Record, Variable

__all__ = ["Record", "Variable"]
