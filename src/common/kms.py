from __future__ import annotations

import base64
import logging
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import BackendError


logger = logging.getLogger(__name__)

DEFAULT_KEY_ID = "alias/ApplicationData"
ENV_KEY_ID = "FS_ENV_KMS_KEY_ID"
KMS_SUFFIX = "_KMS"


def kms_key_name(key: str) -> str:
    """Append the ``_KMS`` marker unless `key` already carries it."""
    if key.endswith(KMS_SUFFIX):
        return key
    return f"{key}{KMS_SUFFIX}"


class KmsEncryptor:
    """
    Envelope-encrypts values with AWS KMS under a fixed key alias.

    The stored form is the base64 (standard alphabet) of the KMS CiphertextBlob.
    There is no decrypt path; consumers decrypt with KMS directly.
    """

    def __init__(
        self,
        *,
        kms: Optional[object] = None,
        key_id: str = DEFAULT_KEY_ID,
        region_name: Optional[str] = None,
    ) -> None:
        if kms is None:
            try:
                kms = boto3.client("kms", region_name=region_name)
            except BotoCoreError as e:
                raise BackendError(str(e)) from e
        self._kms = kms
        self._key_id = key_id

    def encrypt(self, plaintext: str) -> str:
        logger.debug("KMS Encrypt key_id=%s bytes=%d", self._key_id, len(plaintext.encode("utf-8")))
        try:
            resp = self._kms.encrypt(KeyId=self._key_id, Plaintext=plaintext.encode("utf-8"))
        except (ClientError, BotoCoreError) as e:
            raise BackendError(str(e)) from e
        return base64.b64encode(resp["CiphertextBlob"]).decode("ascii")

    def transform(self, key: str, value: str) -> Tuple[str, str]:
        """Return ``(KEY_KMS, base64-ciphertext)`` for a plaintext pair."""
        return kms_key_name(key), self.encrypt(value)
