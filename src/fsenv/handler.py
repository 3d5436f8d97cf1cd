from __future__ import annotations

import logging
import sys
from typing import List, Optional, Sequence

import click

from common.edits import apply_edits, check_delete, plan_edits
from common.errors import (
    EXIT_ERROR,
    EXIT_FLAG_PARSE_ERROR,
    EXIT_OK,
    FsEnvError,
    LogicError,
    UsageError,
)
from common.kms import KmsEncryptor
from common.report import DiffReporter
from state.dynamo_store import RecordStore

from . import __version__
from .config import Settings


logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)


def run(
    settings: Settings,
    pairs: Sequence[str],
    *,
    store: Optional[RecordStore] = None,
    encryptor: Optional[KmsEncryptor] = None,
    reporter: Optional[DiffReporter] = None,
) -> int:
    """
    Run one fetch -> edit -> persist pass for `settings.stack`.

    - With no pairs and no delete key, prints the record and returns without writing.
    - Otherwise applies the delete (first) and the pairs (in order), encrypting
      new values when `settings.encrypt` is set, and persists exactly once.

    Raises LogicError / BackendError; nothing is persisted when either is raised.
    Returns the process exit code.
    """
    reporter = reporter or DiffReporter()

    store = store or RecordStore(table=settings.table, region_name=settings.region)
    record = store.fetch(settings.stack)
    logger.debug("Loaded %s (%d vars, version=%s)", record.name, len(record.variables), record.version)

    if not pairs and not settings.delete:
        reporter.listing(record)
        return EXIT_OK

    # A missing delete key is reported ahead of malformed pairs
    if settings.delete:
        check_delete(record, settings.delete)
    plan = plan_edits(pairs, settings.delete)

    if not settings.encrypt or not pairs:
        encryptor = None
    elif encryptor is None:
        encryptor = KmsEncryptor(key_id=settings.kms_key_id, region_name=settings.region)

    apply_edits(record, plan, reporter, encryptor=encryptor)

    version = store.persist(record, check_version=settings.lock)
    logger.debug("Persisted %s at version %d", record.name, version)
    return EXIT_OK


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-s", "-a", "--stack", "--app", "stack", help="Stack (application) name.")
@click.option("-d", "--delete", "delete", metavar="KEY", help="Delete a key.")
@click.option("-r", "--region", "region", help="The AWS region the table is in.")
@click.option("-e", "--encrypt", is_flag=True, help="Encrypt the config value with KMS.")
@click.option("--table", "table", help="DynamoDB table name.")
@click.option("--key-id", "kms_key_id", help="KMS key id or alias used by --encrypt.")
@click.option("--lock", is_flag=True, help="Fail instead of overwriting if the record changed since it was read.")
@click.option("--verbose", is_flag=True, help="Log AWS calls to stderr.")
@click.version_option(__version__, "-v", "--version", message="%(version)s")
@click.argument("pairs", nargs=-1, metavar="[KEY=VALUE]...")
@click.pass_context
def cli(
    ctx: click.Context,
    stack: Optional[str],
    delete: Optional[str],
    region: Optional[str],
    encrypt: bool,
    table: Optional[str],
    kms_key_id: Optional[str],
    lock: bool,
    verbose: bool,
    pairs: tuple[str, ...],
) -> None:
    """Get, set and delete an application's environment variables.

    With no KEY=VALUE pairs and no --delete, lists the current variables.
    """
    _configure_logging(verbose)
    try:
        settings = Settings.from_flags(
            stack=stack,
            delete=delete,
            region=region,
            encrypt=encrypt,
            table=table,
            kms_key_id=kms_key_id,
            lock=lock,
        )
        code = run(settings, list(pairs))
    except UsageError as e:
        click.echo(str(e))
        click.echo(ctx.get_help())
        code = e.exit_code
    except LogicError as e:
        click.echo(str(e))
        code = e.exit_code
    except FsEnvError as e:
        # BackendError and OptimisticLockError
        click.echo(str(e), err=True)
        code = e.exit_code
    ctx.exit(code)


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point; flag parse errors exit with a dedicated code."""
    try:
        code = cli.main(args=argv, prog_name="fs-env", standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(EXIT_FLAG_PARSE_ERROR)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(EXIT_ERROR)
    sys.exit(code or EXIT_OK)
