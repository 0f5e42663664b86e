"""
Command line entry point for the WordPress to Contentful migration tool.
"""

import argparse
import sys
from typing import List, Optional

from wp2contentful.config import DEFAULT_CONFIG_FILE, MigrationConfig, load_config
from wp2contentful.migration_tool import EXIT_CONFIG_ERROR, MigrationTool
from wp2contentful.parsers.content_converter import MODES
from wp2contentful.utils.errors import ConfigurationError, set_report_dir
from wp2contentful.utils.log import setup_logging


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wp2contentful",
        description="Migrate WordPress posts, images and taxonomies to Contentful.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="JSON configuration file.")
    parser.add_argument("--limit", type=_positive_int, help="Number of posts to import (overrides wordpress.import_post_count).")
    dry_run = parser.add_mutually_exclusive_group()
    dry_run.add_argument("--dry-run", dest="dry_run", action="store_true", default=None,
                         help="Fetch, convert and write the snapshot without writing to Contentful.")
    dry_run.add_argument("--no-dry-run", dest="dry_run", action="store_false",
                         help="Publish even if the configuration enables dry-run.")
    parser.add_argument("--content-format", choices=MODES, help="Body format of the content field.")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR).")
    return parser


def apply_overrides(config: MigrationConfig, args: argparse.Namespace) -> MigrationConfig:
    wordpress = config.wordpress
    contentful = config.contentful
    migration = config.migration
    if args.limit is not None:
        wordpress = wordpress.model_copy(update={"import_post_count": args.limit})
    if args.content_format:
        contentful = contentful.model_copy(update={"content_format": args.content_format})
    if args.dry_run is not None:
        migration = migration.model_copy(update={"dry_run": args.dry_run})
    if args.log_level:
        migration = migration.model_copy(update={"log_level": args.log_level})
    return config.model_copy(update={"wordpress": wordpress, "contentful": contentful, "migration": migration})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        setup_logging(config.migration.log_level, config.migration.log_file)
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    set_report_dir(config.migration.report_dir)

    return MigrationTool(config).run()


if __name__ == "__main__":
    sys.exit(main())
