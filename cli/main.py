"""CLI entry point."""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from common.logging_config import setup_logging
from cli.config import Config
from cli.uploads_client import UploadError, UploadsClient

DEFAULT_CONFIG_PATH = Path.home() / '.chunked-uploads' / 'config.json'


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the uploads CLI."""
    parser = argparse.ArgumentParser(
        prog="chunked-uploads",
        description="Upload files to the chunked uploads server"
    )
    parser.add_argument('--url', help="Server base URL (overrides config)")
    parser.add_argument('--config', type=Path, default=DEFAULT_CONFIG_PATH, help="Config file path")
    parser.add_argument('--debug', action='store_true', help="Enable debug logging")

    subparsers = parser.add_subparsers(dest='command', required=True)

    upload = subparsers.add_parser('upload', help="Split a file into chunks, upload and merge it")
    upload.add_argument('path', help="Local file to upload")
    upload.add_argument('--name', help="Name to store the file under (defaults to the file's basename)")
    upload.add_argument('--chunk-size', type=int, help="Chunk size in bytes")

    merge = subparsers.add_parser('merge', help="Merge already uploaded chunks")
    merge.add_argument('name', help="Logical filename")
    merge.add_argument('total', type=int, help="Total number of chunks")

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI with the given arguments.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'INFO')
    logger = setup_logging('cli', log_level=log_level)

    config = Config(args.config)
    if args.url:
        config.data['server_url'] = args.url

    client = UploadsClient(config)
    try:
        if args.command == 'upload':
            result = client.upload_file(args.path, file_name=args.name, chunk_size=args.chunk_size)
            print(result)
            return 1 if result.startswith('Error') else 0

        try:
            print(client.merge_chunks(args.name, args.total))
        except (UploadError, ConnectionError) as e:
            print(f"Error: {e}")
            return 1
        return 0
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        client.close()


def main() -> None:
    """Entry point for CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
