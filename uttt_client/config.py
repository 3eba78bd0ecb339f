"""Client configuration loaded from a YAML file.

Example ``client.yaml``::

    client:
      server_url: ws://localhost:8080/ws
      player_name: alice
      log_level: INFO
      record_dir: games/
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import yaml

__all__ = ["ClientConfig", "DEFAULT_SERVER_URL", "load_config"]

DEFAULT_SERVER_URL = "ws://localhost:8080/ws"


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    player_name: str = ""
    log_level: str = "WARNING"
    record_dir: Optional[Path] = None

    def connect_url(self) -> str:
        """Server URL with the player name appended as the ``name`` query."""

        if not self.player_name:
            return self.server_url
        separator = "&" if "?" in self.server_url else "?"
        return f"{self.server_url}{separator}name={quote(self.player_name)}"

    def override(self, **values: Any) -> "ClientConfig":
        """Return a copy with every non-``None`` value applied."""

        changes = {key: value for key, value in values.items() if value is not None}
        if "record_dir" in changes:
            changes["record_dir"] = Path(changes["record_dir"])
        return replace(self, **changes)


def load_config(path: Path) -> ClientConfig:
    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")

    section: Dict[str, Any] = data.get("client") or {}
    if not isinstance(section, dict):
        raise ValueError(f"{path}: 'client' must be a mapping")
    known = {f.name for f in fields(ClientConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"{path}: unknown client settings: {', '.join(unknown)}")

    return ClientConfig(
        server_url=str(section.get("server_url", DEFAULT_SERVER_URL)),
        player_name=str(section.get("player_name") or ""),
        log_level=str(section.get("log_level", "WARNING")).upper(),
        record_dir=Path(section["record_dir"]) if section.get("record_dir") else None,
    )
