"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the typed
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Closing-check categories and account types are validated against the
  kernel enums at load time, not at first use.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown category / account type, duplicate check id  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AccountDef,
    ApiConfig,
    ClosingCheckDef,
    ClosingConfig,
    DatabaseConfig,
    LedgerConfig,
    LedgerSettings,
    LoggingConfig,
)
from ledger_kernel.domain.closing_checks import CheckCategory
from ledger_kernel.models.account import AccountType, NormalBalance


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_check(data: dict[str, Any]) -> ClosingCheckDef:
    category = str(data["category"])
    if category not in CheckCategory.__members__:
        raise ValueError(f"Unknown closing check category {category!r}")
    account_code = data.get("account_code")
    return ClosingCheckDef(
        id=str(data["id"]),
        name=data["name"],
        description=data["description"],
        category=category,
        required=bool(data.get("required", True)),
        error_message=data["error_message"],
        account_code=str(account_code) if account_code is not None else None,
    )


def parse_closing(data: dict[str, Any]) -> ClosingConfig:
    checks = tuple(parse_check(c) for c in data.get("checks", []))
    ids = [c.id for c in checks]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ValueError(f"Duplicate closing check ids: {', '.join(duplicates)}")
    return ClosingConfig(
        max_workers=int(data.get("max_workers", 4)),
        block_on_optional_failures=bool(data.get("block_on_optional_failures", True)),
        checks=checks,
    )


def parse_account(data: dict[str, Any]) -> AccountDef:
    account_type = str(data["type"])
    if account_type not in AccountType.__members__:
        raise ValueError(f"Unknown account type {account_type!r} for {data['code']}")
    normal_balance = data.get("normal_balance")
    if normal_balance is not None and normal_balance not in NormalBalance.__members__:
        raise ValueError(f"Unknown normal balance {normal_balance!r} for {data['code']}")
    return AccountDef(
        code=str(data["code"]),
        name=data["name"],
        account_type=account_type,
        is_temporary=bool(data.get("temporary", False)),
        normal_balance=normal_balance,
    )


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """Parse a whole configuration document."""
    database = data.get("database", {})
    logging_section = data.get("logging", {})
    ledger = data.get("ledger", {})
    api = data.get("api", {})
    return LedgerConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        database=DatabaseConfig(
            url=database["url"],
            echo=bool(database.get("echo", False)),
        ),
        logging=LoggingConfig(level=str(logging_section.get("level", "INFO")).upper()),
        ledger=LedgerSettings(
            balance_tolerance=Decimal(str(ledger.get("balance_tolerance", "0.01"))),
        ),
        api=ApiConfig(default_actor=str(api.get("default_actor", "admin"))),
        closing=parse_closing(data.get("closing", {})),
        chart_of_accounts=tuple(
            parse_account(a) for a in data.get("chart_of_accounts", [])
        ),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
