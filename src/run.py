import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Allow running as a script from a checkout: python src/run.py ...
src_dir = Path(__file__).resolve().parent
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from core.app_version import get_app_version  # noqa: E402
from core.audit_logging import AccessAuditLogger  # noqa: E402
from core.config import AppConfig, ConfigurationError, load_app_config  # noqa: E402
from core.enums import MetadataBackend  # noqa: E402
from core.filesystem import LocalFS, MountedFS, QueryFS  # noqa: E402
from core.logging import configure_logging, get_logger  # noqa: E402
from metadata import LiveSystemProvider, SqliteMetadataProvider  # noqa: E402
from tables import (  # noqa: E402
    TABLE_KIND,
    QueryContext,
    TableError,
    TableRegistry,
    encode_row_json,
    register_builtin_tables,
)

LOGGER = get_logger("run")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filewindow",
        description="Query the 'challenge' table: read one window of each file you own.",
    )
    parser.add_argument("--path", action="append", default=[], help="Exact file path (repeatable)")
    parser.add_argument("--like", action="append", default=[],
                        help="LIKE pattern; %%%% recurses, %% matches within one component (repeatable)")
    parser.add_argument("--offset", action="append", default=[], help="Byte offset; first value wins")
    parser.add_argument("--columns", nargs="+", help="Columns to return (default: all visible)")
    parser.add_argument("--root", type=Path, help="Confine reads to this directory")
    parser.add_argument("--base-dir", type=Path, default=Path.cwd(),
                        help="Directory holding config/config.yml and logs/")
    parser.add_argument("--window-size", type=int, help="Override table.window_size")
    parser.add_argument("-V", "--version", action="version", version=f"filewindow {get_app_version()}")
    return parser


def build_context(args: argparse.Namespace) -> QueryContext:
    context = QueryContext(requested_columns=tuple(args.columns) if args.columns else None)
    for path in args.path:
        context.add("path", "=", path)
    for pattern in args.like:
        context.add("path", "LIKE", pattern)
    for offset in args.offset:
        context.add("offset", "=", offset)
    return context


def build_provider(config: AppConfig, fs: QueryFS):
    if config.metadata.provider is MetadataBackend.SQLITE:
        return SqliteMetadataProvider.open(config.metadata.database)
    return LiveSystemProvider(fs)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.path and not args.like:
        parser.error("a path constraint is required (--path or --like)")

    try:
        config = load_app_config(args.base_dir)
        if args.window_size is not None:
            if args.window_size <= 0:
                raise ConfigurationError("--window-size must be positive")
            config.table.window_size = args.window_size
        level = config.logging.level_number
    except ConfigurationError as exc:
        parser.error(str(exc))

    configure_logging(
        config.logs_dir,
        level=level,
        max_bytes=config.logging.log_max_mb * 1024 * 1024,
        backup_count=config.logging.log_backup_count,
    )

    try:
        fs: QueryFS = MountedFS(args.root) if args.root else LocalFS()
    except FileNotFoundError as exc:
        parser.error(str(exc))

    audit = None
    if config.logging.access_log_enabled:
        audit = AccessAuditLogger(
            config.logs_dir,
            max_bytes=config.logging.log_max_mb * 1024 * 1024,
            backup_count=config.logging.log_backup_count,
        )

    try:
        registry = register_builtin_tables(TableRegistry(), config, build_provider(config, fs), fs, audit)
        rows = registry.query(TABLE_KIND, "challenge", build_context(args))
    except (TableError, OSError) as exc:
        LOGGER.error("Query failed: %s", exc)
        return 1
    finally:
        if audit is not None:
            audit.close()

    for row in rows:
        print(encode_row_json(row))
    return 0


if __name__ == "__main__":
    sys.exit(main())
