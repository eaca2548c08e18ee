"""
Persisted record types for the Quobyte volume driver.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DRIVER_NAME = "quobyte"
DRIVER_CONFIG_FILE = "quobyte.cfg"

CFG_PREFIX = DRIVER_NAME + "_"
VOLUME_CFG_PREFIX = "volume_"
CFG_SUFFIX = ".json"

MOUNTS_DIR = "mounts"
MOUNT_TYPE = "quobyte"


class VolumeState(str, Enum):
    """Mount state of a volume record."""

    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"


def _require(data: Dict[str, Any], keys: List[str]) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise KeyError(f"missing fields: {', '.join(missing)}")


@dataclass(frozen=True)
class ManagerConfig:
    """Driver-wide settings, fixed once the driver has been initialized."""

    root: str
    registries: str
    user: str
    group: str
    volume_config: str

    @property
    def registry_list(self) -> List[str]:
        return [r.strip() for r in self.registries.split(",") if r.strip()]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManagerConfig":
        _require(data, ["root", "registries", "user", "group", "volume_config"])
        return cls(
            root=str(data["root"]),
            registries=str(data["registries"]),
            user=str(data["user"]),
            group=str(data["group"]),
            volume_config=str(data["volume_config"]),
        )


@dataclass
class VolumeRecord:
    """
    State of a single Quobyte volume known to this driver.

    ``mount_point`` is ``None`` while the volume is unmounted. On disk the
    unmounted state is written as an empty string.
    """

    name: str
    id: str = ""
    user: str = ""
    group: str = ""
    config: str = ""
    device: str = ""
    mount_point: Optional[str] = field(default=None)

    @property
    def state(self) -> VolumeState:
        return VolumeState.MOUNTED if self.mount_point else VolumeState.UNMOUNTED

    @property
    def is_mounted(self) -> bool:
        return self.state is VolumeState.MOUNTED

    @property
    def mount_options(self) -> List[str]:
        return ["-t", MOUNT_TYPE]

    def mark_mounted(self, mount_point: str) -> None:
        if not mount_point:
            raise ValueError(f"Volume {self.name}: mount point cannot be empty")
        self.mount_point = mount_point

    def mark_unmounted(self) -> None:
        self.mount_point = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mount_point"] = self.mount_point or ""
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VolumeRecord":
        _require(data, ["name"])
        return cls(
            name=str(data["name"]),
            id=str(data.get("id", "")),
            user=str(data.get("user", "")),
            group=str(data.get("group", "")),
            config=str(data.get("config", "")),
            device=str(data.get("device", "")),
            mount_point=data.get("mount_point") or None,
        )
