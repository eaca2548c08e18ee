"""
Configuration loader for the Quobyte volume plugin.

The `[quobyte]` section holds the bootstrap options handed to the driver on
first start. The `[plugin]` section holds process settings (storage root,
listen address, timeouts).
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


DEFAULT_CONFIG_PATH = Path("/etc/quobyte-volumes/quobyte.conf")

DEFAULT_ROOT = "/var/lib/quobyte-volumes"
DEFAULT_SOCKET = "/run/docker/plugins/quobyte.sock"

# INI key -> driver bootstrap option
BOOTSTRAP_KEYS = {
    "api_url": "quobyte.apiurl",
    "api_user": "quobyte.apiuser",
    "api_password": "quobyte.apipassword",
    "registries": "quobyte.registries",
    "default_user": "quobyte.defaultuser",
    "default_group": "quobyte.defaultgroup",
    "default_volume_config": "quobyte.defaultvolumeconfig",
}


@dataclass(frozen=True)
class PluginConfig:
    root: Path = Path(DEFAULT_ROOT)
    socket: str = DEFAULT_SOCKET
    api_host: Optional[str] = None
    api_port: int = 8765
    remote_timeout: int = 30
    mount_timeout: int = 30
    bootstrap_options: Dict[str, str] = field(default_factory=dict)


def _config_path() -> Path:
    env = os.environ.get("QUOBYTE_VOLUMES_CONFIG_PATH")
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def _read_ini(path: Path) -> configparser.ConfigParser:
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path, encoding="utf-8")
    return parser


def load_config() -> PluginConfig:
    """
    Load config from `QUOBYTE_VOLUMES_CONFIG_PATH` or
    `/etc/quobyte-volumes/quobyte.conf`.

    Missing files are not an error; defaults are returned. Only keys actually
    present in `[quobyte]` become bootstrap options, so the driver can still
    tell "unset" from "set".
    """
    parser = _read_ini(_config_path())

    quobyte_section = parser["quobyte"] if parser.has_section("quobyte") else {}
    plugin_section = parser["plugin"] if parser.has_section("plugin") else {}

    def _get(section: object, key: str, default: str) -> str:
        if isinstance(section, dict):
            return str(section.get(key, default)).strip()
        return str(section.get(key, fallback=default)).strip()

    def _get_int(section: object, key: str, default: int) -> int:
        raw = _get(section, key, str(default))
        try:
            return int(raw)
        except ValueError:
            return default

    bootstrap: Dict[str, str] = {}
    for ini_key, option in BOOTSTRAP_KEYS.items():
        if ini_key in quobyte_section:
            bootstrap[option] = _get(quobyte_section, ini_key, "")

    return PluginConfig(
        root=Path(_get(plugin_section, "root", DEFAULT_ROOT) or DEFAULT_ROOT),
        socket=_get(plugin_section, "socket", DEFAULT_SOCKET),
        api_host=_get(plugin_section, "host", "") or None,
        api_port=_get_int(plugin_section, "port", 8765),
        remote_timeout=_get_int(plugin_section, "remote_timeout", 30),
        mount_timeout=_get_int(plugin_section, "mount_timeout", 30),
        bootstrap_options=bootstrap,
    )
