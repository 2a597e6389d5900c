import json
from pathlib import Path
from typing import Any

from src.copyedit.application.contracts import SiteConfig

DEFAULT_NAMESPACES = (0,)


class ConfigError(Exception):
    """Configuration that makes a run impossible."""


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fp:
            return json.load(fp)
    except FileNotFoundError as exc:
        raise ConfigError(f"File not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


def _namespaces(raw: Any, site_name: str) -> tuple[int, ...]:
    if raw is None:
        return DEFAULT_NAMESPACES
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"Site '{site_name}': namespaces must be a non-empty list")
    try:
        return tuple(int(ns) for ns in raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Site '{site_name}': namespaces must be integers") from exc


def load_sites(path: str | Path) -> list[SiteConfig]:
    """Load the sites file and the credentials file each site points at.

    Credentials paths are resolved relative to the sites file.
    """
    path = Path(path)
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise ConfigError(f"{path}: expected a JSON list of sites")

    sites: list[SiteConfig] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise ConfigError(f"{path}: site #{index} is not an object")
        missing = [key for key in ("name", "url", "credentials") if not entry.get(key)]
        if missing:
            raise ConfigError(f"{path}: site #{index} is missing {', '.join(missing)}")

        name = str(entry["name"])
        creds_path = Path(entry["credentials"])
        if not creds_path.is_absolute():
            creds_path = path.parent / creds_path
        creds = _read_json(creds_path)
        if not isinstance(creds, dict) or not creds.get("username"):
            raise ConfigError(f"Site '{name}': credentials file {creds_path} has no username")

        sites.append(
            SiteConfig(
                name=name,
                url=str(entry["url"]),
                api_path=str(entry.get("api_path") or "api.php"),
                namespaces=_namespaces(entry.get("namespaces"), name),
                username=str(creds["username"]),
                password=str(creds.get("password") or ""),
            )
        )
    return sites
