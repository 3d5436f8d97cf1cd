from __future__ import annotations

import io

import pytest

from common.edits import Mutation, apply_edits, parse_pair, plan_edits
from common.errors import LogicError
from common.report import DiffReporter
from state.models import Record


def _reporter():
    buf = io.StringIO()
    return DiffReporter(stream=buf), buf


def _record(**values: str) -> Record:
    rec = Record.empty("web")
    for k, v in values.items():
        rec.set(k, v)
    return rec


def test_parse_pair_splits_on_first_equals():
    assert parse_pair("URL=postgres://h/db?a=b") == ("URL", "postgres://h/db?a=b")
    assert parse_pair("EMPTY=") == ("EMPTY", "")
    assert parse_pair(" K = v ") == (" K ", " v ")


def test_parse_pair_rejects_missing_equals():
    with pytest.raises(LogicError) as excinfo:
        parse_pair("BADPAIR")
    assert str(excinfo.value) == 'Error: "BADPAIR" is not a valid key-value pair'


def test_plan_orders_delete_first():
    plan = plan_edits(["A=1", "B=2"], delete_key="OLD")
    assert plan == [
        Mutation(op="delete", key="OLD"),
        Mutation(op="set", key="A", value="1"),
        Mutation(op="set", key="B", value="2"),
    ]
    assert plan_edits([], None) == []


def test_plan_fails_fast_on_any_malformed_pair():
    with pytest.raises(LogicError):
        plan_edits(["GOOD=1", "BADPAIR", "ALSO=2"])


def test_sets_on_empty_record():
    reporter, buf = _reporter()
    rec = apply_edits(Record.empty("web"), plan_edits(["FOO=bar", "BAZ=qux"]), reporter)

    assert rec.as_dict() == {"FOO": "bar", "BAZ": "qux"}
    assert buf.getvalue().splitlines() == ["+ FOO=bar", "+ BAZ=qux"]


def test_update_reports_remove_then_add():
    reporter, buf = _reporter()
    rec = apply_edits(_record(FOO="old"), plan_edits(["FOO=new"]), reporter)

    assert rec.as_dict() == {"FOO": "new"}
    assert buf.getvalue().splitlines() == ["- FOO=old", "+ FOO=new"]


def test_later_pairs_override_earlier_ones():
    reporter, buf = _reporter()
    rec = apply_edits(Record.empty("web"), plan_edits(["K=1", "K=2"]), reporter)

    assert rec.as_dict() == {"K": "2"}
    assert buf.getvalue().splitlines() == ["+ K=1", "- K=1", "+ K=2"]


def test_delete_existing_key_leaves_others():
    reporter, buf = _reporter()
    rec = apply_edits(_record(FOO="bar", KEEP="x"), plan_edits([], "FOO"), reporter)

    assert rec.as_dict() == {"KEEP": "x"}
    assert buf.getvalue() == "- FOO=bar\n"


def test_delete_missing_key_is_an_error_without_mutation():
    reporter, buf = _reporter()
    rec = _record(FOO="bar")

    with pytest.raises(LogicError) as excinfo:
        apply_edits(rec, plan_edits([], "MISSING"), reporter)

    assert str(excinfo.value) == "MISSING doesn't exist"
    assert rec.as_dict() == {"FOO": "bar"}
    assert buf.getvalue() == ""


class _FakeEncryptor:
    def __init__(self) -> None:
        self.seen = []

    def transform(self, key, value):
        self.seen.append(value)
        return key + "_KMS", "ZW5j"


def test_encryptor_applies_only_to_set_values():
    reporter, buf = _reporter()
    enc = _FakeEncryptor()
    rec = apply_edits(
        _record(OLD="x", UNTOUCHED="plain"),
        plan_edits(["SECRET=topsecret"], "OLD"),
        reporter,
        encryptor=enc,
    )

    assert enc.seen == ["topsecret"]
    assert rec.as_dict() == {"UNTOUCHED": "plain", "SECRET_KMS": "ZW5j"}
    assert buf.getvalue().splitlines() == ["- OLD=x", "+ SECRET_KMS=ZW5j"]


def test_listing_prints_plain_pairs():
    reporter, buf = _reporter()
    reporter.listing(_record(A="1", B="x=y"))
    assert sorted(buf.getvalue().splitlines()) == ["A=1", "B=x=y"]
