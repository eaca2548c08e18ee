"""Mount helpers for the Quobyte volume driver."""

import logging
import os
import subprocess
from typing import List, Optional

from .exceptions import MountError, UnmountError
from .models import MOUNTS_DIR, VolumeRecord

LOG = logging.getLogger(__name__)


def get_default_mount_point(root: str, volume_name: str) -> str:
    """Generate the mount point used when a caller gives no hint.

    Args:
        root: Driver storage root
        volume_name: Volume name

    Returns:
        `<root>/mounts/<volume_name>`
    """
    return os.path.join(root, MOUNTS_DIR, volume_name)


def ensure_mount_point_exists(mount_point: str) -> None:
    """Ensure mount point directory exists.

    Raises:
        MountError: If directory creation fails
    """
    try:
        os.makedirs(mount_point, mode=0o750, exist_ok=True)
    except OSError as e:
        raise MountError(f"Failed to create mount point {mount_point}: {e}")


def get_mount_source(mount_point: str) -> Optional[str]:
    """Return the source mounted at `mount_point`.

    Returns:
        The source field of the topmost mount at the path, "" if the path is
        mounted but its source is unknown, or None if it is not mounted
    """
    target = os.path.realpath(mount_point)
    try:
        source = None
        with open("/proc/mounts", "r") as f:
            for line in f:
                parts = line.split()
                if len(parts) >= 2 and parts[1] == target:
                    source = parts[0]
        return source
    except OSError:
        # Fallback to mountpoint command
        try:
            result = subprocess.run(
                ["mountpoint", "-q", mount_point],
                capture_output=True,
                timeout=5,
            )
            return "" if result.returncode == 0 else None
        except (OSError, subprocess.TimeoutExpired):
            return None


def is_mounted(mount_point: str) -> bool:
    return get_mount_source(mount_point) is not None


def is_same_source(source: str, device: str) -> bool:
    """Match a /proc/mounts source against a volume device.

    The Quobyte client may report the source as `quobyte@<registry>/<volume>`.
    """
    return source == device or source.rsplit("/", 1)[-1] == device


def cleanup_mount_point(mount_point: str) -> None:
    """Remove an empty mount point directory."""
    try:
        if os.path.isdir(mount_point) and not os.listdir(mount_point):
            os.rmdir(mount_point)
    except OSError as e:
        LOG.warning("Failed to remove mount point %s: %s", mount_point, e)


def mount(device: str, mount_point: str, mount_options: List[str], timeout: int = 30) -> None:
    """Mount a Quobyte volume (idempotent).

    A mount point already holding `device` is left alone; one holding
    anything else is refused.

    Args:
        device: Mount source (the volume name)
        mount_point: Local mount point
        mount_options: Extra arguments for mount(8), e.g. ["-t", "quobyte"]
        timeout: Seconds before the mount command is abandoned

    Raises:
        MountError: If mount fails or times out, or another source is
            mounted at `mount_point`
    """
    ensure_mount_point_exists(mount_point)

    source = get_mount_source(mount_point)
    if source is not None:
        if is_same_source(source, device):
            LOG.debug("%s is already mounted, skipping mount of %s", mount_point, device)
            return
        raise MountError(
            f"Cannot mount {device} at {mount_point}: already in use by {source or 'another mount'}"
        )

    cmd = ["mount", *mount_options, device, mount_point]

    try:
        subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise MountError(f"Mount of {device} at {mount_point} timed out after {timeout}s")
    except subprocess.CalledProcessError as e:
        error_msg = e.stderr or e.stdout or str(e)
        raise MountError(f"Failed to mount {device} at {mount_point}: {error_msg.strip()}")
    except OSError as e:
        raise MountError(f"Failed to run mount for {device}: {e}")


def unmount(mount_point: str, timeout: int = 30) -> None:
    """Unmount a mount point.

    Raises:
        UnmountError: If unmount fails or times out
    """
    if not is_mounted(mount_point):
        LOG.debug("%s is not mounted, skipping umount", mount_point)
        return

    try:
        subprocess.run(
            ["umount", mount_point],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise UnmountError(f"Unmount of {mount_point} timed out after {timeout}s")
    except subprocess.CalledProcessError as e:
        error_msg = (e.stderr or e.stdout or str(e)).strip()
        # Ignore "not mounted" errors
        if "not mounted" in error_msg.lower():
            return
        raise UnmountError(f"Failed to unmount {mount_point}: {error_msg}")
    except OSError as e:
        raise UnmountError(f"Failed to run umount for {mount_point}: {e}")


class MountExecutor:
    """Performs the OS-level mount and unmount of volume records."""

    def __init__(self, root: str, timeout: int = 30):
        self.root = root
        self.timeout = timeout

    def mount(self, volume: VolumeRecord, mount_point: Optional[str] = "") -> str:
        """Mount `volume` and return the path it is mounted at.

        The record itself is not modified; the driver persists the result.
        """
        target = mount_point or get_default_mount_point(self.root, volume.name)
        device = volume.device or volume.name
        mount(device, target, volume.mount_options, timeout=self.timeout)
        LOG.info("Mounted volume %s at %s", volume.name, target)
        return target

    def unmount(self, volume: VolumeRecord) -> None:
        if not volume.mount_point:
            return
        unmount(volume.mount_point, timeout=self.timeout)
        default = get_default_mount_point(self.root, volume.name)
        if os.path.normpath(volume.mount_point) == os.path.normpath(default):
            cleanup_mount_point(volume.mount_point)
        LOG.info("Unmounted volume %s from %s", volume.name, volume.mount_point)
