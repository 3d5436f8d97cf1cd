from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from common.errors import UsageError
from common.kms import DEFAULT_KEY_ID, ENV_KEY_ID
from state.dynamo_store import DEFAULT_TABLE, ENV_TABLE


ENV_STACK = "FS_ENV_STACK"
ENV_REGION = "FS_ENV_REGION"
DEFAULT_REGION = "us-east-1"

# Standard AWS SDK variables, consulted after ENV_REGION
FALLBACK_ENV_REGION = ("AWS_REGION", "AWS_DEFAULT_REGION")


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _default_region() -> str:
    region = _getenv(ENV_REGION)
    for name in FALLBACK_ENV_REGION:
        region = region or _getenv(name)
    return region or DEFAULT_REGION


class Settings(BaseModel):
    """
    Options for a single fs-env run, built once after flag parsing.

    Flags win over environment variables, which win over the defaults:
    - stack:      --stack/--app, FS_ENV_STACK (required)
    - region:     --region, FS_ENV_REGION, AWS_REGION, AWS_DEFAULT_REGION, "us-east-1"
    - table:      --table, FS_ENV_TABLE, "applications"
    - kms_key_id: --key-id, FS_ENV_KMS_KEY_ID, "alias/ApplicationData"
    """

    stack: str
    delete: Optional[str] = None
    region: str = Field(default_factory=_default_region)
    encrypt: bool = False
    table: str = Field(default_factory=lambda: _getenv(ENV_TABLE, DEFAULT_TABLE))
    kms_key_id: str = Field(default_factory=lambda: _getenv(ENV_KEY_ID, DEFAULT_KEY_ID))
    lock: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        stack: Optional[str],
        delete: Optional[str] = None,
        region: Optional[str] = None,
        encrypt: bool = False,
        table: Optional[str] = None,
        kms_key_id: Optional[str] = None,
        lock: bool = False,
    ) -> "Settings":
        stack = stack or _getenv(ENV_STACK)
        if not stack:
            raise UsageError("Error: Missing application name")
        # Unset flags fall through to the field defaults
        overrides = {
            k: v
            for k, v in (("region", region), ("table", table), ("kms_key_id", kms_key_id))
            if v
        }
        return cls(stack=stack, delete=delete or None, encrypt=encrypt, lock=lock, **overrides)
