from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Optional

from pydantic import ValidationError
from yaml import YAMLError

from .config import SinkConfig, load_yaml, validate_config
from .emit import emit_lines
from .errors import SocketSinkError
from .log import get_logger
from .sinks import SocketSink

"""
CLI entrypoint

Usage:
  socklog --config /path/config.yaml [--target tcp://host:port] [-m TEXT ...]

Behavior:
  - Loads & validates config; --target / --persistent override it
  - Sends each -m message, or each STDIN line, as one record
  - All diagnostics/logs go to STDERR
"""

_LOG = get_logger(__name__)
_DEFAULT_CONFIG = "/app/config.yaml"


# This function builds the parser for the CLI.
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="socklog", description="Ship log lines to a socket target"
    )
    p.add_argument(
        "-c",
        "--config",
        default=_DEFAULT_CONFIG,
        help=f"Path to YAML config (default: {_DEFAULT_CONFIG})",
    )
    p.add_argument("--target", help="Override the configured connection string.")
    p.add_argument(
        "--persistent",
        action="store_true",
        help="Keep the connection open for reuse after the run.",
    )
    p.add_argument(
        "-m",
        "--message",
        action="append",
        default=None,
        help="Record to send (repeatable). Reads STDIN lines when omitted.",
    )
    p.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Abort on the first failed write instead of dropping the record.",
    )
    return p


def _load(args: argparse.Namespace) -> SinkConfig:
    raw = load_yaml(args.config)
    if args.target:
        raw["target"] = args.target
    if args.persistent:
        raw["persistent"] = True
    return validate_config(raw)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config_path: str = args.config

    # Load and validate config, then build the sink from it
    try:
        cfg = _load(args)
        sink = SocketSink(
            cfg.target,
            persistent=cfg.persistent,
            connection_timeout=cfg.connection_timeout,
            timeout=cfg.timeout,
        )
    except FileNotFoundError:
        _LOG.error("Config file not found: %s", config_path)
        return 1
    except YAMLError as e:
        _LOG.error("Failed to parse YAML config (%s): %s", config_path, e)
        return 1
    except ValidationError as e:
        _LOG.error("Config validation error: %s", e)
        return 1
    except SocketSinkError as e:
        _LOG.error("Invalid sink settings: %s", e)
        return 1
    except Exception as e:
        _LOG.exception("Unexpected error loading config: %s", e)
        return 1

    lines: Iterable[str] = args.message if args.message is not None else sys.stdin

    # Run
    try:
        dropped = emit_lines(
            sink,
            lines,
            encoding=cfg.encoding,
            terminator=cfg.terminator,
            stop_on_error=args.stop_on_error,
        )
    except KeyboardInterrupt:
        _LOG.info("Interrupted, exiting.")
        return 130
    except SocketSinkError as e:
        _LOG.error("Write to %s failed: %s", cfg.target, e)
        return 1
    except Exception as e:
        _LOG.exception("Unexpected runtime error: %s", e)
        return 1

    if dropped:
        _LOG.error("%d record(s) dropped for %s", dropped, cfg.target)
        return 1
    return 0


# Run the main function for the CLI.
if __name__ == "__main__":
    raise SystemExit(main())
