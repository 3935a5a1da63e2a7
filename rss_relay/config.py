"""Configuration loading for categories, feeds and credentials."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from xml.etree import ElementTree as ET

from .errors import ConfigurationError
from .models import Destination, FeedCategory, FeedSource

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "TELEGRAM_BOT_TOKEN"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DeliveryConfig:
    max_retries: int = 3
    retry_delay: float = 3.0
    disable_preview: bool = False


@dataclass
class CategoryConfig:
    """A category as declared in the XML file, before its feeds are loaded."""

    name: str
    feeds_file: str
    channel: Optional[str] = None


@dataclass
class AppConfig:
    categories: List[CategoryConfig] = field(default_factory=list)
    env_file: Optional[str] = None
    window_hours: float = 24.0
    align_to_hour: bool = False
    sort_chronologically: bool = False
    concurrency: Optional[int] = None
    request_timeout: float = 10.0
    max_description_length: int = 3000
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("true", "1", "yes")


def _parse_positive(root: ET.Element, tag: str, default, cast=float):
    raw = root.findtext(tag)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"<{tag}> must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"<{tag}> must be positive, got {raw!r}")
    return value


def _parse_xml(path: Path) -> ET.Element:
    try:
        return ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise ConfigurationError(f"Malformed XML in {path}: {exc}") from exc


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    root = _parse_xml(config_path)

    env_node = root.find("env")
    env_file = (
        _resolve_path(config_path, env_node.text.strip())
        if env_node is not None and env_node.text
        else None
    )

    categories: List[CategoryConfig] = []
    categories_node = root.find("categories")
    if categories_node is None:
        raise ConfigurationError("Config missing <categories> section")
    for node in categories_node.findall("category"):
        name = (node.attrib.get("name") or "").strip()
        feeds = (node.attrib.get("feeds") or "").strip()
        if not name:
            raise ConfigurationError("Every <category> needs a 'name' attribute.")
        if not feeds:
            raise ConfigurationError(f"Category '{name}' needs a 'feeds' attribute.")
        categories.append(
            CategoryConfig(
                name=name,
                feeds_file=_resolve_path(config_path, feeds),
                channel=node.attrib.get("channel"),
            )
        )
    if not categories:
        raise ConfigurationError("Config declares no categories.")

    delivery = DeliveryConfig()
    delivery_node = root.find("delivery")
    if delivery_node is not None:
        retries = delivery_node.findtext("max-retries")
        if retries is not None and retries.strip():
            try:
                delivery.max_retries = int(retries)
            except ValueError as exc:
                raise ConfigurationError(f"<max-retries> must be an integer, got {retries!r}") from exc
            if delivery.max_retries < 0:
                raise ConfigurationError("<max-retries> cannot be negative.")
        delay = delivery_node.findtext("retry-delay")
        if delay is not None and delay.strip():
            try:
                delivery.retry_delay = float(delay)
            except ValueError as exc:
                raise ConfigurationError(f"<retry-delay> must be a number, got {delay!r}") from exc
            if delivery.retry_delay < 0:
                raise ConfigurationError("<retry-delay> cannot be negative.")
        delivery.disable_preview = _parse_bool(delivery_node.findtext("disable-preview"))

    logging_config = LoggingConfig()
    log_node = root.find("logging")
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file)

    return AppConfig(
        categories=categories,
        env_file=env_file,
        window_hours=_parse_positive(root, "window-hours", 24.0),
        align_to_hour=_parse_bool(root.findtext("align-to-hour")),
        sort_chronologically=_parse_bool(root.findtext("sort-chronologically")),
        concurrency=_parse_positive(root, "concurrency", None, cast=int),
        request_timeout=_parse_positive(root, "request-timeout", 10.0),
        max_description_length=_parse_positive(
            root, "max-description-length", 3000, cast=int
        ),
        delivery=delivery,
        logging=logging_config,
    )


def parse_env_config(path: str) -> Dict[str, str]:
    """Parse environment variables from XML."""
    env_vars: Dict[str, str] = {}
    if not path:
        return env_vars

    logger.info("Loading environment configuration from %s", path)
    env_path = Path(path)
    if not env_path.exists():
        raise ConfigurationError(f"Environment file not found: {path}")
    root = _parse_xml(env_path)
    for var in root.findall("variable"):
        name = var.attrib.get("name")
        value = var.text
        if name and value:
            env_vars[name] = value.strip()

    return env_vars


def parse_feed_sources(path: str) -> List[FeedSource]:
    """Load the ``rss_info`` list of a category's JSON feed file."""
    location = Path(path)
    logger.info("Loading feed list from %s", location)
    try:
        payload = json.loads(location.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Feed list not found: {location}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Feed list is not valid JSON: {location}") from exc

    items = payload.get("rss_info") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ConfigurationError(f"Feed list must contain an 'rss_info' array: {location}")

    sources: List[FeedSource] = []
    for item in items:
        if not isinstance(item, dict):
            raise ConfigurationError(f"Feed list must contain objects only: {location}")
        url = str(item.get("url") or "").strip()
        if not url:
            raise ConfigurationError(f"Feed without url in {location}: {item!r}")
        full_content = item.get("full_content")
        if full_content is None:
            full_content = False
        if not isinstance(full_content, bool):
            raise ConfigurationError(
                f"'full_content' must be true or false in {location}: {item!r}"
            )
        sources.append(
            FeedSource(
                title=str(item.get("title") or url).strip(),
                url=url,
                full_content=full_content,
            )
        )

    logger.info("Loaded %d feeds from %s", len(sources), location)
    return sources


def parse_destination(value: Optional[str], category: str) -> Destination:
    """Turn a configured channel into a Telegram chat id or ``@username``."""
    raw = (value or "").strip()
    if re.fullmatch(r"-?\d+", raw):
        chat_id = int(raw)
        if chat_id != 0:
            return chat_id
    elif raw.startswith("@") and len(raw) > 1:
        return raw
    raise ConfigurationError(
        f"Category '{category}' has no valid channel id (got {value!r})."
    )


def channel_env_var(category: str) -> str:
    slug = re.sub(r"[^A-Z0-9]+", "_", category.upper()).strip("_")
    return f"RSS_RELAY_{slug}_CHANNEL"


def load_categories(
    app_config: AppConfig, environ: Optional[Mapping[str, str]] = None
) -> List[FeedCategory]:
    """Resolve every configured category into an immutable :class:`FeedCategory`."""
    environ = os.environ if environ is None else environ
    categories: List[FeedCategory] = []
    for item in app_config.categories:
        channel = environ.get(channel_env_var(item.name)) or item.channel
        categories.append(
            FeedCategory(
                name=item.name,
                destination=parse_destination(channel, item.name),
                sources=tuple(parse_feed_sources(item.feeds_file)),
            )
        )
    return categories


def resolve_bot_token(
    explicit: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> str:
    environ = os.environ if environ is None else environ
    token = (explicit or environ.get(TOKEN_ENV_VAR) or "").strip()
    if not token:
        raise ConfigurationError(f"{TOKEN_ENV_VAR} is not set.")
    return token
