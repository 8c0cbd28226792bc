from __future__ import annotations

import argparse
import logging
import os
import subprocess

from . import __version__
from .config import Config, add_feed, config_file_path, load_config
from .engine import FeedUpdater
from .errors import ConfigError, RssnixError, StorageError
from .fsinit import set_umask_from_env
from .opml import import_opml
from .utils import configure_logging, log_event


def _load(args: argparse.Namespace, logger: logging.Logger) -> Config | None:
    try:
        return load_config(args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "config_error", error=str(exc))
        return None


def _sync(args: argparse.Namespace, logger: logging.Logger, purge: bool) -> int:
    config = _load(args, logger)
    if config is None:
        return 1
    updater = FeedUpdater(config, logger=logger)
    try:
        updater.initialise_new_article_directory()
    except StorageError as exc:
        log_event(logger, logging.ERROR, "inbox_error", error=str(exc))
        return 1

    if not args.feeds:
        results = updater.update_all_feeds(purge, max_workers=args.max_workers)
    else:
        results = []
        for name in args.feeds:
            try:
                results.append(updater.update_feed(name, purge))
            except RssnixError as exc:
                log_event(logger, logging.ERROR, "feed_update_failed", feed=name, error=str(exc))

    log_event(
        logger,
        logging.INFO,
        "run_complete",
        feeds=len(results),
        downloaded=sum(result.downloaded for result in results),
        skipped=sum(result.skipped for result in results),
        new_entries=len(updater.inbox.entries()),
    )
    return 0


def _cmd_update(args: argparse.Namespace, logger: logging.Logger) -> int:
    return _sync(args, logger, purge=False)


def _cmd_refetch(args: argparse.Namespace, logger: logging.Logger) -> int:
    return _sync(args, logger, purge=True)


def _cmd_add(args: argparse.Namespace, logger: logging.Logger) -> int:
    config = _load(args, logger)
    if config is None:
        return 1
    try:
        add_feed(config, args.name, args.url, path=args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "config_error", error=str(exc))
        return 1
    return 0


def _cmd_import(args: argparse.Namespace, logger: logging.Logger) -> int:
    config = _load(args, logger)
    if config is None:
        return 1
    try:
        updated = import_opml(config, args.source, path=args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "opml_error", error=str(exc))
        return 1
    log_event(logger, logging.INFO, "opml_imported", added=len(updated.feeds) - len(config.feeds))
    return 0


def _run_interactive(command: list[str], logger: logging.Logger) -> int:
    try:
        return subprocess.run(command, check=False).returncode
    except OSError as exc:
        log_event(logger, logging.ERROR, "command_failed", command=command[0], error=str(exc))
        return 1


def _cmd_config(args: argparse.Namespace, logger: logging.Logger) -> int:
    editor = os.environ.get("EDITOR", "").strip()
    if not editor:
        log_event(logger, logging.ERROR, "editor_unset", hint="set $EDITOR")
        return 1
    return _run_interactive([editor, args.config or config_file_path()], logger)


def _cmd_open(args: argparse.Namespace, logger: logging.Logger) -> int:
    config = _load(args, logger)
    if config is None:
        return 1
    path = config.feed_directory
    if args.feed:
        path = os.path.join(config.feed_directory, args.feed)
    return _run_interactive([config.viewer, path], logger)


def _cmd_version(args: argparse.Namespace, logger: logging.Logger) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rssnix", description="Sync RSS/Atom feeds to plain files")
    parser.add_argument(
        "--config",
        dest="config",
        default=None,
        help="Path to config.yml (defaults to $RSSNIX_CONFIG_HOME/config.yml or ~/.config/rssnix)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    update_parser = subparsers.add_parser(
        "update", aliases=["u"], help="Update given feed(s) or all feeds if none are given"
    )
    update_parser.add_argument("feeds", nargs="*", help="Feed names")
    update_parser.add_argument(
        "--max-workers", type=int, default=None, help="Cap concurrent feed updates"
    )
    update_parser.set_defaults(func=_cmd_update)

    refetch_parser = subparsers.add_parser(
        "refetch", aliases=["r"], help="Delete and refetch given feed(s) or all feeds"
    )
    refetch_parser.add_argument("feeds", nargs="*", help="Feed names")
    refetch_parser.add_argument(
        "--max-workers", type=int, default=None, help="Cap concurrent feed updates"
    )
    refetch_parser.set_defaults(func=_cmd_refetch)

    add_parser = subparsers.add_parser("add", aliases=["a"], help="Add a feed to the config")
    add_parser.add_argument("name", help="Feed name")
    add_parser.add_argument("url", help="Feed URL")
    add_parser.set_defaults(func=_cmd_add)

    import_parser = subparsers.add_parser("import", aliases=["i"], help="Import an OPML file")
    import_parser.add_argument("source", help="OPML file path or URL")
    import_parser.set_defaults(func=_cmd_import)

    config_parser = subparsers.add_parser(
        "config", aliases=["c"], help="Open the config file with $EDITOR"
    )
    config_parser.set_defaults(func=_cmd_config)

    open_parser = subparsers.add_parser(
        "open", aliases=["o"], help="Open a feed's directory (or the root) in the viewer"
    )
    open_parser.add_argument("feed", nargs="?", help="Feed name")
    open_parser.set_defaults(func=_cmd_open)

    version_parser = subparsers.add_parser("version", aliases=["v"], help="Display the version")
    version_parser.set_defaults(func=_cmd_version)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_umask_from_env()
    logger = configure_logging("rssnix")
    return args.func(args, logger)


if __name__ == "__main__":
    raise SystemExit(main())
