"""Command line front end for the S3 wrapper.

Usage:
  s3lib upload my-bucket reports/q1.csv ./q1.csv --content-type text/csv
  s3lib download my-bucket reports/q1.csv -o ./q1.csv
  s3lib ls my-bucket --prefix reports/
  s3lib info my-bucket reports/q1.csv
  s3lib rm my-bucket reports/q1.csv
  s3lib presign my-bucket reports/q1.csv --expires 600 --mode upload
  s3lib presign-post my-bucket uploads/avatar.png --max-size 1048576

Credentials and region come from the environment (see ``s3lib.common.config``);
``--region``, ``--endpoint``, ``--timeout`` and ``--debug`` override them.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import timedelta
from pathlib import Path
from typing import Callable, Sequence

from s3lib.common.config import Config, get_config
from s3lib.common.errors import InvalidConfigError, StorageError
from s3lib.common.logging import setup_logging
from s3lib.infra.storage.client import PresignMode, StorageClient, UploadOptions
from s3lib.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("s3lib.cli")

ClientFactory = Callable[[Config], StorageClient]


def _metadata_pair(pair: str) -> tuple[str, str]:
    if "=" not in pair:
        raise argparse.ArgumentTypeError(f"metadata must be KEY=VALUE, got {pair!r}")
    key, value = pair.split("=", 1)
    return key.strip(), value


def _read_payload(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="s3lib", description="Simple S3 object operations")
    parser.add_argument("--region", default=None, help="Override the configured region")
    parser.add_argument(
        "--endpoint",
        default=None,
        help="S3-compatible endpoint URL (enables path-style addressing)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Connect/read timeout in seconds",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug tracing")

    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a local file ('-' for stdin)")
    upload.add_argument("bucket")
    upload.add_argument("key")
    upload.add_argument("source")
    upload.add_argument("--content-type")
    upload.add_argument("--content-disposition")
    upload.add_argument("--cache-control")
    upload.add_argument("--storage-class")
    upload.add_argument("--acl")
    upload.add_argument(
        "--metadata",
        action="append",
        type=_metadata_pair,
        metavar="KEY=VALUE",
        help="User metadata, repeatable",
    )

    download = sub.add_parser("download", help="Download an object")
    download.add_argument("bucket")
    download.add_argument("key")
    download.add_argument(
        "-o", "--output", default="-", help="Destination file (default: stdout)"
    )

    ls = sub.add_parser("ls", help="List objects as JSON")
    ls.add_argument("bucket")
    ls.add_argument("--prefix", default="")

    rm = sub.add_parser("rm", help="Delete an object")
    rm.add_argument("bucket")
    rm.add_argument("key")

    info = sub.add_parser("info", help="Show object metadata as JSON")
    info.add_argument("bucket")
    info.add_argument("key")

    presign = sub.add_parser("presign", help="Print a pre-signed URL")
    presign.add_argument("bucket")
    presign.add_argument("key")
    presign.add_argument("--expires", type=int, default=900, help="Seconds (default: 900)")
    presign.add_argument(
        "--mode",
        choices=[mode.value for mode in PresignMode],
        default=PresignMode.DOWNLOAD.value,
    )

    presign_post = sub.add_parser("presign-post", help="Print a pre-signed POST as JSON")
    presign_post.add_argument("bucket")
    presign_post.add_argument("key")
    presign_post.add_argument("--expires", type=int, default=900, help="Seconds (default: 900)")
    presign_post.add_argument("--max-size", type=int, required=True, help="Bytes")

    return parser


def _resolve_config(args: argparse.Namespace) -> Config:
    config = get_config()
    overrides: dict[str, object] = {}
    if args.region:
        overrides["region"] = args.region
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    if args.timeout is not None:
        overrides["timeout"] = timedelta(seconds=args.timeout)
    if args.debug:
        overrides["debug"] = True
    return replace(config, **overrides) if overrides else config


def _run(client: StorageClient, args: argparse.Namespace) -> None:
    if args.command == "upload":
        options = UploadOptions(
            content_type=args.content_type,
            content_disposition=args.content_disposition,
            cache_control=args.cache_control,
            metadata=dict(args.metadata or []),
            storage_class=args.storage_class,
            acl=args.acl,
        )
        location = client.upload_file(
            args.bucket, args.key, _read_payload(args.source), options
        )
        print(location)
    elif args.command == "download":
        data = client.download_file(args.bucket, args.key)
        if args.output == "-":
            sys.stdout.buffer.write(data)
            sys.stdout.flush()
        else:
            Path(args.output).write_bytes(data)
            logger.info("wrote %d bytes to %s", len(data), args.output)
    elif args.command == "ls":
        _print_json([item.to_dict() for item in client.list_files(args.bucket, args.prefix)])
    elif args.command == "rm":
        client.delete_file(args.bucket, args.key)
        logger.info("deleted %s/%s", args.bucket, args.key)
    elif args.command == "info":
        _print_json(client.get_file_info(args.bucket, args.key).to_dict())
    elif args.command == "presign":
        signed = client.presign_url(
            args.bucket, args.key, args.expires, PresignMode(args.mode)
        )
        print(signed.url)
    elif args.command == "presign-post":
        post = client.presign_post(args.bucket, args.key, args.expires, args.max_size)
        _print_json({"url": post.url, "fields": dict(post.fields)})


def main(
    argv: Sequence[str] | None = None,
    client_factory: ClientFactory = S3StorageClient,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _resolve_config(args)
    except InvalidConfigError as exc:
        setup_logging(debug=args.debug)
        logger.error("%s", exc)
        return 2
    setup_logging(debug=config.debug)

    try:
        client = client_factory(config)
    except InvalidConfigError as exc:
        logger.error("%s", exc)
        return 2
    except StorageError as exc:
        logger.error("%s", exc)
        return 1

    try:
        _run(client, args)
    except StorageError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    except OSError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
