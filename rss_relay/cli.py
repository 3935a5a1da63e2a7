"""Command-line interface for the rss_relay application."""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .config import load_categories, parse_app_config, parse_env_config, resolve_bot_token
from .runner import RunConfig, execute

logger = logging.getLogger(__name__)


def _parse_now(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO 8601 timestamp: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Post recent RSS entries to Telegram channels."
    )
    parser.add_argument(
        "--config",
        default="configs/config.xml",
        help="Path to the main configuration XML file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )
    parser.add_argument(
        "--window-hours",
        type=float,
        default=None,
        help="Length of the trailing window in hours. Overrides config.",
    )
    parser.add_argument(
        "--now",
        type=_parse_now,
        default=None,
        metavar="TIMESTAMP",
        help="End of the time window as ISO 8601 (defaults to the current time).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the formatted messages instead of sending them.",
    )
    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)
    # urllib3 logs request paths, and Bot API paths embed the token.
    logging.getLogger("urllib3").setLevel(max(log_level, logging.WARNING))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config)

        if app_config.env_file:
            env_vars = parse_env_config(app_config.env_file)
            os.environ.update(env_vars)

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        bot_token = None if args.dry_run else resolve_bot_token()
        categories = load_categories(app_config)

        config = RunConfig(
            categories=categories,
            bot_token=bot_token,
            window_hours=(
                args.window_hours
                if args.window_hours is not None
                else app_config.window_hours
            ),
            align_to_hour=app_config.align_to_hour,
            sort_chronologically=app_config.sort_chronologically,
            concurrency=app_config.concurrency,
            request_timeout=app_config.request_timeout,
            max_description_length=app_config.max_description_length,
            max_retries=app_config.delivery.max_retries,
            retry_delay=app_config.delivery.retry_delay,
            disable_preview=app_config.delivery.disable_preview,
            dry_run=args.dry_run,
            now=args.now,
        )
        logger.info(
            "Loaded %d categories: %s",
            len(categories),
            ", ".join(f"{c.name} ({len(c.sources)} feeds)" for c in categories),
        )

        result = execute(config)
    except ValueError as exc:
        parser.error(str(exc))
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    print(result.output_text)
    return 0
