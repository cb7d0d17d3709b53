"""Push local history and question banks to the remote store.

Usage:
    studysync-sync [--history FILE | --local-db PATH] [--banks FILE]
                   [--remote-url URL] [--dry-run] [--json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from pydantic import TypeAdapter

from studysync.adapters.remote_store.sync.reporting import format_sync_summary, has_hard_failures
from studysync.adapters.remote_store.sync_service import StudySyncService
from studysync.config import load_config
from studysync.core.logging_utils import setup_json_logging
from studysync.domain.models import QuestionBank
from studysync.infrastructure.persistence import LocalHistoryStore, import_history

if TYPE_CHECKING:
    from studysync.adapters.remote_store.sync.protocols import RemoteStoreClientFactory
    from studysync.domain.models import DocumentItem, InterviewItem

logger = logging.getLogger("studysync.cli.sync")

_banks_adapter: TypeAdapter[list[QuestionBank]] = TypeAdapter(list[QuestionBank])


def _load_banks(path: str) -> list[QuestionBank]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        msg = "Question bank file must contain a JSON array"
        raise ValueError(msg)
    return _banks_adapter.validate_python(raw)


async def _load_local(
    args: argparse.Namespace, db_path: str, history_limit: int
) -> tuple[list[DocumentItem | InterviewItem], list[QuestionBank]]:
    if args.history:
        history = import_history(Path(args.history).read_text(encoding="utf-8"))
        banks: list[QuestionBank] = []
    else:
        store = LocalHistoryStore(args.local_db or db_path, history_limit=history_limit)
        store.migrate()
        history = await store.list_history()
        banks = await store.list_question_banks()
    if args.banks:
        banks = [*banks, *_load_banks(args.banks)]
    return history, banks


async def run_sync(
    args: argparse.Namespace,
    *,
    client_factory: RemoteStoreClientFactory | None = None,
    out: TextIO = sys.stdout,
) -> int:
    """Run one sync and return the process exit code."""
    config = load_config()
    try:
        history, banks = await _load_local(
            args, config.local_store.db_path, config.local_store.history_limit
        )
    except (OSError, ValueError) as exc:
        logger.error("sync_input_load_failed", extra={"error": str(exc)})
        print(f"ERROR: {exc}", file=out)
        return 1

    service = StudySyncService.from_config(config, client_factory=client_factory)
    if args.remote_url:
        service.api_url = args.remote_url.rstrip("/")

    if args.dry_run:
        preview = await service.preview(history, banks)
        if args.json:
            print(preview.model_dump_json(indent=2), file=out)
            return 0
        print("=== Sync preview (dry run) ===", file=out)
        print(f"Would sync: {len(preview.would_sync)} items", file=out)
        for entry in preview.would_sync:
            print(f"  + [{entry['type']}] {entry['label']}", file=out)
        print(f"Would skip: {len(preview.would_skip)} items (already stored)", file=out)
        for entry in preview.would_skip:
            print(f"  = [{entry['type']}] {entry['label']}", file=out)
        if preview.errors:
            print(f"Errors ({len(preview.errors)}):", file=out)
            for error in preview.errors:
                print(f"  - {error}", file=out)
        return 1 if preview.errors else 0

    def _on_progress(completed: int, total: int, label: str) -> None:
        if not args.json:
            print(f"[{completed}/{total}] {label}", file=out)

    outcomes = await service.sync_all(history, banks, _on_progress)

    if args.json:
        payload: list[dict[str, Any]] = [outcome.model_dump() for outcome in outcomes]
        print(json.dumps(payload, indent=2, ensure_ascii=False), file=out)
    else:
        print(format_sync_summary(outcomes), file=out)

    return 1 if has_hard_failures(outcomes) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studysync-sync",
        description="Sync local documents, interviews and question banks to the remote store",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--history", help="Exported history JSON file")
    source.add_argument("--local-db", help="Local store SQLite database (default: LOCAL_DB_PATH)")
    parser.add_argument("--banks", help="JSON file with an array of question banks")
    parser.add_argument("--remote-url", help="Remote store API URL (default: REMOTE_STORE_URL)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify items without writing anything",
    )
    parser.add_argument("--json", action="store_true", help="Print outcomes as JSON")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_json_logging(config.runtime.log_level, json_output=config.runtime.log_json)
    exit_code = asyncio.run(run_sync(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
