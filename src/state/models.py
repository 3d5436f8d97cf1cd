from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Variable(BaseModel):
    """A single stored value. Serialized as ``{"Value": <str>}``."""

    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(alias="Value", description="Plaintext or base64 KMS ciphertext")


class Record(BaseModel):
    """
    Environment variables for one application/stack, as stored in DynamoDB.

    Fields
    - name: application/stack identifier (table partition key).
    - variables: variable name -> Variable. Setting an existing name overwrites it.
    - version: write counter read from the item; None when the item is missing
      or was written before versioning. Used only for conditional writes.

    Notes
    - Keys ending in ``_KMS`` hold base64 KMS ciphertext. That suffix is the only
      marker of encryption; there is no structural flag.
    """

    name: str
    variables: Dict[str, Variable] = Field(default_factory=dict)
    version: Optional[int] = None

    @classmethod
    def empty(cls, name: str) -> "Record":
        return cls(name=name)

    def get(self, key: str) -> Optional[str]:
        var = self.variables.get(key)
        return var.value if var is not None else None

    def set(self, key: str, value: str) -> None:
        self.variables[key] = Variable(value=value)

    def remove(self, key: str) -> str:
        return self.variables.pop(key).value

    def as_dict(self) -> Dict[str, str]:
        return {k: v.value for k, v in self.variables.items()}

    # -------- Item (de)serialization --------
    def envs_payload(self) -> Dict[str, Dict[str, str]]:
        """Plain-python ``envs`` attribute: ``{KEY: {"Value": value}}``."""
        return {k: v.model_dump(by_alias=True) for k, v in self.variables.items()}

    @classmethod
    def from_item(cls, name: str, item: Dict[str, Any]) -> "Record":
        """Build a Record from a deserialized DynamoDB item (plain python values)."""
        envs = item.get("envs") or {}
        variables = {str(k): Variable.model_validate(v) for k, v in envs.items()}
        version = item.get("version")
        return cls(
            name=name,
            variables=variables,
            version=int(version) if version is not None else None,
        )
