"""Archive fetch CLI.

Download an archive from an object store into the temp directory and,
optionally, copy it somewhere permanent before the temp file is removed.

Exit codes:
    0  success
    1  configuration error or general download failure
    2  archive (bucket or object) not found
"""

import argparse
import logging
import shutil
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from archive_core.download.fetcher import ArchiveFetcher
from archive_core.errors.classifiers import is_unexpected_archive_response
from archive_core.errors.exceptions import DownloadError
from archive_core.logging.context_managers import LogContext
from archive_core.logging.setup import setup_logging
from archive_core.types import RemoteStreamProvider
from archive_fetch.config import FetchSettings, load_config
from archive_fetch.storage.blob import AzureBlobStreamProvider
from archive_fetch.storage.local import LocalDirectoryStreamProvider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def build_provider(settings: FetchSettings) -> RemoteStreamProvider:
    """Create the store adapter selected by settings.provider."""
    if settings.provider == "local":
        return LocalDirectoryStreamProvider(Path(settings.local_root_dir))
    return AzureBlobStreamProvider(
        account_url=settings.azure_account_url or None,
        connection_string=settings.azure_connection_string or None,
        chunk_size=settings.chunk_size,
        connection_timeout=settings.timeout_seconds,
        read_timeout=settings.timeout_seconds,
    )


def _settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.provider:
        overrides["provider"] = args.provider
    if args.tmp_dir:
        overrides["tmp_dir"] = str(args.tmp_dir)
    if args.timeout is not None:
        overrides["timeout_seconds"] = args.timeout
    if args.root_dir:
        overrides.setdefault("local", {})["root_dir"] = str(args.root_dir)
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    if args.json_logs:
        overrides.setdefault("logging", {})["json"] = True
    return overrides


def _describe(fetcher: ArchiveFetcher, uri: str) -> None:
    bucket_attrs, object_attrs = fetcher.describe(uri)
    logger.info(
        "Bucket attributes",
        extra={
            "bucket": bucket_attrs.name,
            "bucket_location": bucket_attrs.location,
            "storage_class": bucket_attrs.storage_class,
            "created_at": bucket_attrs.created_at,
            "last_modified": bucket_attrs.last_modified,
        },
    )
    logger.info(
        "Object attributes",
        extra={
            "bucket": object_attrs.bucket,
            "key": object_attrs.key,
            "blob_size": object_attrs.size,
            "content_type": object_attrs.content_type,
            "content_encoding": object_attrs.content_encoding,
            "last_modified": object_attrs.last_modified,
        },
    )


def cmd_fetch(args: argparse.Namespace, settings: FetchSettings) -> int:
    """Execute fetch command."""
    provider = build_provider(settings)
    fetcher = ArchiveFetcher(
        provider,
        tmp_dir=Path(settings.tmp_dir),
        config=settings.fetch_config(),
        allowed_schemes=settings.allowed_schemes,
    )

    try:
        with LogContext(stage="fetch", trace_id=uuid.uuid4().hex):
            if args.describe:
                _describe(fetcher, args.uri)

            with fetcher.fetch(args.uri) as archive:
                if args.output:
                    args.output.parent.mkdir(parents=True, exist_ok=True)
                    with open(args.output, "wb") as out:
                        shutil.copyfileobj(archive, out)
                    print(f"Fetched {args.uri}: {archive.result.bytes_written} bytes -> {args.output}")
                else:
                    print(f"Fetched {args.uri}: {archive.result.bytes_written} bytes")
        return EXIT_OK
    except DownloadError as e:
        print(f"Error: {e}", file=sys.stderr)
        if is_unexpected_archive_response(e):
            return EXIT_NOT_FOUND
        return EXIT_ERROR
    except OSError as e:
        # Writing --output, or removing the temp file on close
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        close = getattr(provider, "close", None)
        if close is not None:
            close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archive_fetch",
        description="Fetch archives from object storage into self-cleaning temp files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Download and report the size (temp file is removed afterwards)
    python -m archive_fetch fetch gs://pow-play-cms/builds/archive.tar.gz

    # Keep a copy and print bucket/object attributes first
    python -m archive_fetch fetch gs://pow-play-cms/builds/archive.tar.gz \\
        --output ./archive.tar.gz --describe

    # Read from a local directory tree instead of Azure
    python -m archive_fetch fetch gs://b1/x/y/z.tar.gz --provider local --root-dir ./buckets
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_fetch = subparsers.add_parser("fetch", help="Download one archive")
    parser_fetch.add_argument("uri", help="Store URI (scheme://bucket/key)")
    parser_fetch.add_argument(
        "--output", "-o", type=Path, help="Copy the downloaded archive to this path"
    )
    parser_fetch.add_argument("--tmp-dir", type=Path, help="Temp directory for the download")
    parser_fetch.add_argument(
        "--timeout", type=float, help="Total fetch timeout in seconds (default: 300)"
    )
    parser_fetch.add_argument(
        "--describe", action="store_true", help="Log bucket and object attributes first"
    )
    parser_fetch.add_argument(
        "--config", type=Path, help="Path to config.yaml (default: bundled config.yaml)"
    )
    parser_fetch.add_argument("--provider", choices=["azure", "local"], help="Store adapter")
    parser_fetch.add_argument("--root-dir", type=Path, help="Root directory for --provider local")
    parser_fetch.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default: INFO)",
    )
    parser_fetch.add_argument(
        "--json-logs", action="store_true", help="Emit JSON log lines on stdout"
    )
    parser_fetch.set_defaults(func=cmd_fetch)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    # Load environment variables from .env file before any config access
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    try:
        settings = load_config(args.config, overrides=_settings_overrides(args))
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(
        name="archive_fetch",
        domain="archive_fetch",
        log_file=Path(settings.log_file) if settings.log_file else None,
        json_format=settings.log_json,
        console_level=logging.getLevelName(settings.log_level),
    )

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 130


__all__ = ["main", "build_parser", "build_provider", "cmd_fetch"]
