from __future__ import annotations

from typing import IO, Optional

import click

from state.models import Record


class DiffReporter:
    """Prints ``- key=old`` / ``+ key=new`` lines as edits are applied."""

    def __init__(self, stream: Optional[IO[str]] = None) -> None:
        self._stream = stream

    def _emit(self, line: str) -> None:
        click.echo(line, file=self._stream)

    def removed(self, key: str, value: str) -> None:
        self._emit(f"- {key}={value}")

    def added(self, key: str, value: str) -> None:
        self._emit(f"+ {key}={value}")

    def listing(self, record: Record) -> None:
        # Order is whatever the table returned
        for key, value in record.as_dict().items():
            self._emit(f"{key}={value}")
