# keysync/cli.py
from __future__ import annotations
from typing import Optional, Sequence
import argparse, os, sys

from .config import DEFAULT_ACCOUNT, DEFAULT_NOTIFY_TOPIC, VERSION, KeySyncConfig
from .engine import MergeEngine
from .logger import LEVELS, get_logger, resolve_level
from .notifier import NtfyNotifier
from .parser import ParseFailure, parser_factory
from .storage import load_store
from .transport import FetchFailure, transport_factory

EXIT_OK = 0
EXIT_FETCH_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_PARSE_FAILURE = 3
EXIT_STORE_ERROR = 4


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="keysync",
        description="Fetch a user's SSH public keys and merge them into authorized_keys.",
    )
    ap.add_argument("account", nargs="?", default=None,
                    help=f"key-host account whose keys to install (default: {DEFAULT_ACCOUNT})")
    ap.add_argument("topic", nargs="?", default=None,
                    help=f"ntfy topic for the completion notice (default: {DEFAULT_NOTIFY_TOPIC})")
    ap.add_argument("--ssh-dir", dest="ssh_dir", default=None, help="directory holding authorized_keys")
    ap.add_argument("--transport", choices=("requests", "httpx"), default=None)
    ap.add_argument("--parser", choices=("auto", "json", "pattern"), default=None)
    ap.add_argument("--no-notify", dest="notify", action="store_false", default=None,
                    help="skip the completion notice")
    ap.add_argument("--log-level", type=str.upper, choices=LEVELS, default=None)
    ap.add_argument("--log-file", default=None, help="also write log records to this file")
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        level, level_error = resolve_level(args.log_level), None
    except ValueError as e:
        level, level_error = "INFO", e
    log = get_logger("keysync", level=level, to_file=args.log_file or os.getenv("KEYSYNC_LOG_FILE"))
    if level_error:
        log.error(f"[CONFIG] {level_error}")
        return EXIT_CONFIG_ERROR

    try:
        config = KeySyncConfig.from_env(
            account_id=args.account,
            notify_topic=args.topic,
            ssh_dir=args.ssh_dir,
            transport=args.transport,
            parser=args.parser,
            notify=args.notify,
        )
        transport = transport_factory(config.transport)
        parser = parser_factory(config.parser)
    except ValueError as e:
        log.error(f"[CONFIG] {e}")
        return EXIT_CONFIG_ERROR

    engine = MergeEngine(
        config,
        store=load_store(config),
        transport=transport,
        parser=parser,
        notifier=NtfyNotifier(config, transport),
    )
    try:
        result = engine.run()
    except FetchFailure as e:
        log.error(f"[FETCH] failed to fetch keys for {config.account_id}: {e}")
        return EXIT_FETCH_FAILURE
    except ParseFailure as e:
        log.error(f"[PARSE] no keys found or failed to parse response: {e}")
        return EXIT_PARSE_FAILURE
    except OSError as e:
        log.error(f"[STORE] {e}")
        return EXIT_STORE_ERROR
    finally:
        transport.close()

    print(result.summary())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
