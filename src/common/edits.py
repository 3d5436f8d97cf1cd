from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Tuple

from state.models import Record

from .errors import LogicError
from .kms import KmsEncryptor
from .report import DiffReporter


@dataclass(frozen=True)
class Mutation:
    op: Literal["delete", "set"]
    key: str
    value: str = ""


def parse_pair(arg: str) -> Tuple[str, str]:
    """Split ``KEY=VALUE`` on the first ``=``. Values may contain ``=`` or be empty."""
    key, sep, value = arg.partition("=")
    if not sep:
        raise LogicError(f'Error: "{arg}" is not a valid key-value pair')
    return key, value


def plan_edits(pairs: Iterable[str], delete_key: Optional[str] = None) -> List[Mutation]:
    """
    Turn CLI input into an ordered list of mutations.

    - The delete (if any) comes first, then the pairs in input order.
    - Every pair is validated before anything is returned, so a malformed pair
      anywhere aborts the run with nothing applied.
    """
    plan: List[Mutation] = []
    if delete_key:
        plan.append(Mutation(op="delete", key=delete_key))
    for arg in pairs:
        key, value = parse_pair(arg)
        plan.append(Mutation(op="set", key=key, value=value))
    return plan


def check_delete(record: Record, key: str) -> None:
    if record.get(key) is None:
        raise LogicError(f"{key} doesn't exist")


def apply_delete(record: Record, key: str, reporter: DiffReporter) -> None:
    check_delete(record, key)
    reporter.removed(key, record.remove(key))


def apply_set(record: Record, key: str, value: str, reporter: DiffReporter) -> None:
    old = record.get(key)
    if old is not None:
        reporter.removed(key, old)
    record.set(key, value)
    reporter.added(key, value)


def apply_edits(
    record: Record,
    plan: Iterable[Mutation],
    reporter: DiffReporter,
    *,
    encryptor: Optional[KmsEncryptor] = None,
) -> Record:
    """Apply `plan` to `record` in order; later sets of the same key win.

    When `encryptor` is given, each set value is KMS-encrypted and its key
    renamed with the ``_KMS`` suffix before it is stored. Deletes are never
    encrypted or renamed.
    """
    for m in plan:
        if m.op == "delete":
            apply_delete(record, m.key, reporter)
            continue
        key, value = m.key, m.value
        if encryptor is not None:
            key, value = encryptor.transform(key, value)
        apply_set(record, key, value, reporter)
    return record
