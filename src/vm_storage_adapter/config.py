"""
Configuration helpers for the metric storage adapter.

Settings are loaded from ``.vmadapter/config.toml`` by default. The lookup order is:

1. Explicit ``VM_ADAPTER_CONFIG_PATH`` environment variable.
2. Project-relative ``.vmadapter/config.toml`` (both from CWD and the project root).
3. Fallback to ``.vmadapter/config.example.toml`` for scaffolding values.

``VM_ADAPTER_SERVER_ADDRESS``, ``VM_ADAPTER_FLAVOR``, ``VM_ADAPTER_ACCOUNT_ID``
and ``VM_ADAPTER_TIMEOUT`` override values read from the file. Call
:func:`load_settings` to retrieve an :class:`AdapterSettings` instance and
:func:`build_adapter` to turn it into a ready adapter.
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from logging import Logger, LoggerAdapter
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import httpx

from .adapters.api.base import DEFAULT_TIMEOUT
from .adapters.api.victoria import VMStorageAdapter
from .adapters.base import AccountID

DEFAULT_SERVER_ADDRESS = "http://localhost:8428"
FLAVOR_PROMETHEUS = "prometheus"
FLAVOR_VICTORIAMETRICS = "victoriametrics"
_FLAVOR_ALIASES = {
    "prometheus": FLAVOR_PROMETHEUS,
    "native": FLAVOR_PROMETHEUS,
    "victoriametrics": FLAVOR_VICTORIAMETRICS,
    "vm": FLAVOR_VICTORIAMETRICS,
    "multi-tenant": FLAVOR_VICTORIAMETRICS,
}
_ENV_PATH = "VM_ADAPTER_CONFIG_PATH"
_ACCOUNT_ID_PATTERN = re.compile(r"\d+(:\d+)?")


@dataclass(slots=True)
class AdapterSettings:
    """Backend target and request defaults."""

    server_address: str = DEFAULT_SERVER_ADDRESS
    flavor: str = FLAVOR_PROMETHEUS
    account_id: AccountID = 0
    timeout: float = DEFAULT_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)
    source_path: Optional[Path] = None

    @property
    def is_prometheus(self) -> bool:
        return self.flavor == FLAVOR_PROMETHEUS


def normalise_flavor(value: str) -> str:
    flavor = _FLAVOR_ALIASES.get(value.strip().lower())
    if flavor is None:
        raise ValueError(f"Unknown backend flavor '{value}'. Expected 'prometheus' or 'victoriametrics'.")
    return flavor


def parse_account_id(value: object) -> AccountID:
    """Tenant identifiers are integers or ``accountID:projectID`` strings."""

    if isinstance(value, bool):
        raise ValueError(f"Invalid account id {value!r}.")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Account id must not be negative, got {value}.")
        return value
    text = str(value).strip()
    if not _ACCOUNT_ID_PATTERN.fullmatch(text):
        raise ValueError(f"Invalid account id '{text}'. Expected 'accountID' or 'accountID:projectID' with numeric parts.")
    return int(text) if text.isdigit() else text


def _discover_project_root() -> Optional[Path]:
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return None


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(_ENV_PATH)
    if env_override:
        yield Path(env_override).expanduser()

    search_roots = [Path.cwd()]
    project_root = _discover_project_root()
    if project_root and project_root not in search_roots:
        search_roots.append(project_root)

    for filename in ("config.toml", "config.example.toml"):
        for base in search_roots:
            yield base / ".vmadapter" / filename


def _load_toml(path: Path) -> Dict[str, object]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object]:
    section = raw.get(name, {})
    return section if isinstance(section, dict) else {}


def _settings_from_mapping(raw: Mapping[str, object], source_path: Optional[Path]) -> AdapterSettings:
    settings = AdapterSettings(source_path=source_path)
    backend = _section(raw, "backend")

    address = backend.get("server_address")
    if isinstance(address, str) and address:
        settings.server_address = address
    flavor = backend.get("flavor")
    if isinstance(flavor, str) and flavor:
        settings.flavor = normalise_flavor(flavor)
    if "account_id" in backend:
        settings.account_id = parse_account_id(backend["account_id"])
    timeout = backend.get("timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        settings.timeout = float(timeout)

    settings.headers = {str(key): str(value) for key, value in _section(raw, "headers").items()}
    return settings


def _apply_environment(settings: AdapterSettings) -> AdapterSettings:
    address = os.getenv("VM_ADAPTER_SERVER_ADDRESS")
    if address:
        settings.server_address = address
    flavor = os.getenv("VM_ADAPTER_FLAVOR")
    if flavor:
        settings.flavor = normalise_flavor(flavor)
    account_id = os.getenv("VM_ADAPTER_ACCOUNT_ID")
    if account_id:
        settings.account_id = parse_account_id(account_id)
    timeout = os.getenv("VM_ADAPTER_TIMEOUT")
    if timeout:
        try:
            settings.timeout = float(timeout)
        except ValueError as exc:
            raise ValueError(f"VM_ADAPTER_TIMEOUT must be a number of seconds, got '{timeout}'.") from exc
    return settings


def load_settings(strict: bool = False, path: Optional[Path] = None) -> AdapterSettings:
    """
    Attempt to load settings from ``path`` or the configured locations.

    Parameters
    ----------
    strict:
        When ``True`` the function raises ``FileNotFoundError`` if no configuration
        file is discovered. Defaults to ``False`` so environment variables alone suffice.
    path:
        Explicit configuration file. Takes precedence over every other location.
    """

    candidates = [path] if path else _candidate_paths()
    for candidate in candidates:
        if candidate.is_file():
            return _apply_environment(_settings_from_mapping(_load_toml(candidate), candidate))

    if strict:
        raise FileNotFoundError(f"No configuration file found. Configure {_ENV_PATH} or .vmadapter/config.toml.")

    return _apply_environment(AdapterSettings())


def build_adapter(
    settings: AdapterSettings,
    *,
    client: Optional[httpx.Client] = None,
    logger: Optional[LoggerAdapter | Logger] = None,
) -> VMStorageAdapter:
    """Construct an adapter for the configured backend."""

    return VMStorageAdapter(
        settings.server_address,
        settings.is_prometheus,
        client=client,
        logger=logger,
        timeout=settings.timeout,
    )
