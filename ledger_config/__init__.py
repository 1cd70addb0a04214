"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and below ``ledger_api``.
    The kernel MUST NEVER import from ``ledger_config``; ``bridges``
    translates configuration into kernel inputs.

Environment:
    LEDGER_CONFIG        path of the YAML set (default: sets/default.yaml)
    LEDGER_DATABASE_URL  overrides ``database.url``

Failure modes:
    - ``FileNotFoundError`` -- the configured YAML file does not exist.
    - ``ValueError`` / ``KeyError`` -- schema validation failures.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from ledger_config.loader import load_yaml_file, parse_config
from ledger_config.schema import LedgerConfig

_logger = logging.getLogger("ledger_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG"
DATABASE_URL_ENV = "LEDGER_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path`` argument, then
    ``$LEDGER_CONFIG``, then the packaged default set.  ``$LEDGER_DATABASE_URL``
    replaces the database URL of whichever file was loaded.

    Guarantees:
        - The returned ``LedgerConfig`` has passed schema validation.
        - A ``LEDGER_CONFIG_TRACE`` log entry is emitted on every call.

    Non-goals:
        - Does NOT cache; callers hold the returned config.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    config = parse_config(load_yaml_file(path))

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "check_count": len(config.closing.checks),
            "account_count": len(config.chart_of_accounts),
        },
    )
    return config


__all__ = ["LedgerConfig", "get_active_config"]
