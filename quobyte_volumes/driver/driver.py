"""Quobyte volume driver.

Keeps one JSON record per volume under the storage root and drives the
volume lifecycle:

    absent --create--> unmounted --mount--> mounted --unmount--> unmounted --delete--> absent

Records are re-read from the store on every call. Mutating calls hold a
per-volume lock for the whole load/act/save sequence; read-only calls take no
lock and rely on the store's atomic replace.
"""

import dataclasses
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from quobyte_volumes.cli.lib.state import RecordStore
from quobyte_volumes.cli.lib.validators import parse_bool, validate_name, validate_registries

from .client import QuobyteClient
from .exceptions import (
    ConfigError,
    InvalidOption,
    InvalidVolumeName,
    MountError,
    QuobyteAPIError,
    QuobyteDriverException,
    RecordNotFound,
    RemoteDeprovisioningError,
    RemoteProvisioningError,
    StorageError,
    UnsupportedOperation,
    VolumeAlreadyExists,
    VolumeNotFound,
    VolumeStillMounted,
)
from .models import DRIVER_CONFIG_FILE, DRIVER_NAME, ManagerConfig, VolumeRecord
from .registry import VolumeRegistry, volume_key
from .utils import MountExecutor

LOG = logging.getLogger(__name__)

QUOBYTE_API_URL = "quobyte.apiurl"
QUOBYTE_API_USER = "quobyte.apiuser"
QUOBYTE_API_PASSWORD = "quobyte.apipassword"

QUOBYTE_REGISTRIES = "quobyte.registries"
QUOBYTE_DEFAULT_USER = "quobyte.defaultuser"
QUOBYTE_DEFAULT_GROUP = "quobyte.defaultgroup"
QUOBYTE_DEFAULT_VOLUME_CONFIG = "quobyte.defaultvolumeconfig"

OPT_REFERENCE_ONLY = "reference-only"
OPT_MOUNT_POINT = "mount-point"
OPT_VOLUME_NAME = "VolumeName"

DEFAULT_OPTIONS = {
    QUOBYTE_API_USER: "admin",
    QUOBYTE_API_PASSWORD: "quobyte",
    QUOBYTE_DEFAULT_USER: "root",
    QUOBYTE_DEFAULT_GROUP: "nfsnobody",
    QUOBYTE_DEFAULT_VOLUME_CONFIG: "BASE",
}


def reference_only_option(options: Optional[Mapping[str, str]]) -> bool:
    """Read the `reference-only` request option.

    Raises:
        InvalidOption: If the value is not a boolean spelling
    """
    value = (options or {}).get(OPT_REFERENCE_ONLY)
    try:
        return parse_bool(value)
    except ValueError as e:
        raise InvalidOption(f"Invalid {OPT_REFERENCE_ONLY} option: {e}")


def mount_point_option(options: Optional[Mapping[str, str]]) -> str:
    return (options or {}).get(OPT_MOUNT_POINT) or ""


class VolumeLocks:
    """Lazily created lock per volume name."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        with self.get(name):
            yield


def _bootstrap_config(root: str, options: Dict[str, str]) -> ManagerConfig:
    for required in (QUOBYTE_API_URL, QUOBYTE_REGISTRIES):
        if not options.get(required):
            raise ConfigError(f"Missing required parameter: {required}")

    registries = options[QUOBYTE_REGISTRIES]
    try:
        validate_registries(registries)
    except ValueError as e:
        raise ConfigError(f"Invalid or unresolvable registry address in {registries!r}: {e}")

    return ManagerConfig(
        root=root,
        registries=registries,
        user=options[QUOBYTE_DEFAULT_USER],
        group=options[QUOBYTE_DEFAULT_GROUP],
        volume_config=options[QUOBYTE_DEFAULT_VOLUME_CONFIG],
    )


class QuobyteDriver:
    """Lifecycle manager for Quobyte volumes on this host.

    Construct with `QuobyteDriver.initialize` at process start and share the
    instance between request handlers.
    """

    def __init__(
        self,
        device: ManagerConfig,
        client: QuobyteClient,
        store: RecordStore,
        executor: MountExecutor,
    ):
        self.device = device
        self.client = client
        self.store = store
        self.executor = executor
        self.registry = VolumeRegistry(store)
        self._locks = VolumeLocks()

    @classmethod
    def initialize(
        cls,
        root: Union[str, Path],
        options: Optional[Mapping[str, str]] = None,
        client: Optional[QuobyteClient] = None,
        executor: Optional[MountExecutor] = None,
        remote_timeout: int = 30,
        mount_timeout: int = 30,
    ) -> "QuobyteDriver":
        """Load or bootstrap the driver configuration, then remount volumes.

        The persisted configuration wins over `options` when it exists.
        Otherwise `options` must carry the API URL and a valid registry list;
        unset optional keys get their defaults and the result is persisted.

        Raises:
            ConfigError: Required options missing or a registry is invalid
            StorageError: The configuration record cannot be read or written
            QuobyteDriverException: A previously mounted volume cannot be
                remounted
        """
        root = str(root)
        opts = dict(DEFAULT_OPTIONS)
        opts.update({k: v for k, v in (options or {}).items() if v is not None})

        store = RecordStore(root)
        if store.exists(DRIVER_CONFIG_FILE):
            device = store.load(DRIVER_CONFIG_FILE, ManagerConfig)
            if device.root != root:
                LOG.warning("Configuration was written for root %s, using %s", device.root, root)
                device = dataclasses.replace(device, root=root)
            LOG.info("Loaded driver configuration from %s", root)
        else:
            device = _bootstrap_config(root, opts)
            store.save(DRIVER_CONFIG_FILE, device)
            LOG.info("Created driver configuration in %s (registries=%s)", root, device.registries)

        if client is None:
            if not opts.get(QUOBYTE_API_URL):
                raise ConfigError(f"Missing required parameter: {QUOBYTE_API_URL}")
            client = QuobyteClient(
                opts[QUOBYTE_API_URL],
                opts[QUOBYTE_API_USER],
                opts[QUOBYTE_API_PASSWORD],
                timeout=remote_timeout,
            )
        if executor is None:
            executor = MountExecutor(root, timeout=mount_timeout)

        driver = cls(device, client, store, executor)
        driver.remount_volumes()
        return driver

    def name(self) -> str:
        return DRIVER_NAME

    def info(self) -> Dict[str, str]:
        return {
            "Root": self.device.root,
            "Registries": self.device.registries,
            "User": self.device.user,
            "Group": self.device.group,
            "VolumeConfig": self.device.volume_config,
        }

    def _volume_key(self, name: str) -> str:
        try:
            validate_name(name)
        except ValueError as e:
            raise InvalidVolumeName(f"Invalid volume name {name!r}: {e}")
        return volume_key(name)

    def _load_volume(self, name: str) -> VolumeRecord:
        key = self._volume_key(name)
        try:
            return self.store.load(key, VolumeRecord)
        except RecordNotFound:
            raise VolumeNotFound(f"Volume {name} not found")

    def remount_volumes(self) -> None:
        """Re-establish the mounts recorded before the last shutdown.

        Any failure is raised to the caller; a volume recorded as mounted
        that cannot be mounted again must not be forgotten silently.
        """
        for name in self.registry.list_volume_names():
            self._volume_key(name)
            with self._locks.hold(name):
                volume = self._load_volume(name)
                if not volume.is_mounted:
                    continue
                LOG.info("Remounting volume %s at %s", name, volume.mount_point)
                try:
                    self._mount(volume, volume.mount_point, remount=True)
                except QuobyteDriverException as e:
                    LOG.error("Failed to remount volume %s: %s", name, e)
                    raise

    def create_volume(self, name: str) -> None:
        """Provision a remote volume and record it as unmounted.

        Raises:
            VolumeAlreadyExists: A record with this name exists
            RemoteProvisioningError: The Quobyte API call failed
        """
        key = self._volume_key(name)
        with self._locks.hold(name):
            if self.store.exists(key):
                raise VolumeAlreadyExists(f"Volume {name} already exists")

            LOG.info("Creating volume: %s (user=%s, group=%s, config=%s)",
                     name, self.device.user, self.device.group, self.device.volume_config)
            try:
                volume_uuid = self.client.create_volume(
                    name=name,
                    root_user_id=self.device.user,
                    root_group_id=self.device.group,
                    configuration_name=self.device.volume_config,
                )
            except QuobyteAPIError as e:
                LOG.error("Failed to create remote volume %s: %s", name, e)
                raise RemoteProvisioningError(f"Failed to create volume {name}: {e}", volume=name, cause=e)

            volume = VolumeRecord(
                name=name,
                id=volume_uuid,
                user=self.device.user,
                group=self.device.group,
                config=self.device.volume_config,
                device=name,
            )
            try:
                self.store.save(key, volume)
            except StorageError:
                self._cleanup_failed_volume(name, volume_uuid)
                raise
            LOG.info("Created volume %s (id=%s)", name, volume_uuid)

    def _cleanup_failed_volume(self, name: str, volume_uuid: str) -> None:
        LOG.info("Cleaning up remote volume %s (id=%s) after failed create", name, volume_uuid)
        try:
            self.client.delete_volume(volume_uuid)
        except QuobyteAPIError as e:
            LOG.warning("Failed to remove remote volume %s (id=%s) during cleanup: %s", name, volume_uuid, e)

    def delete_volume(self, name: str, reference_only: bool = False) -> None:
        """Remove a volume record, deprovisioning it remotely unless
        `reference_only` is set.

        Raises:
            VolumeNotFound: No record exists
            VolumeStillMounted: The volume is mounted
            RemoteDeprovisioningError: The Quobyte API call failed; the
                record is kept
        """
        key = self._volume_key(name)
        with self._locks.hold(name):
            volume = self._load_volume(name)
            if volume.is_mounted:
                raise VolumeStillMounted(f"Cannot delete volume {name}. It is still mounted at {volume.mount_point}")

            if reference_only:
                LOG.info("Removing reference to volume %s (id=%s), remote volume kept", name, volume.id)
            else:
                LOG.debug("Cleaning up volume %s", name)
                try:
                    self.client.delete_volume(volume.id)
                except QuobyteAPIError as e:
                    LOG.error("Failed to delete remote volume %s (id=%s): %s", name, volume.id, e)
                    raise RemoteDeprovisioningError(f"Failed to delete volume {name}: {e}", volume=name, cause=e)

            try:
                self.store.delete(key)
            except RecordNotFound:
                raise VolumeNotFound(f"Volume {name} not found")
            LOG.info("Deleted volume %s", name)

    def mount_volume(self, name: str, mount_point: str = "") -> str:
        """Mount a volume and return its mount point.

        Mounting a volume that is already mounted returns the existing mount
        point, unless a different `mount_point` is requested.

        Raises:
            VolumeNotFound: No record exists
            MountError: The mount failed or conflicts with the current one
        """
        self._volume_key(name)
        with self._locks.hold(name):
            volume = self._load_volume(name)
            return self._mount(volume, mount_point, remount=False)

    def _mount(self, volume: VolumeRecord, mount_point: str, remount: bool) -> str:
        if volume.is_mounted and not remount:
            if not mount_point or mount_point == volume.mount_point:
                LOG.debug("Volume %s is already mounted at %s", volume.name, volume.mount_point)
                return volume.mount_point
            raise MountError(
                f"Volume {volume.name} is already mounted at {volume.mount_point}, "
                f"cannot mount it at {mount_point}"
            )

        new_mount_point = self.executor.mount(volume, mount_point)
        mounted = dataclasses.replace(volume)
        mounted.mark_mounted(new_mount_point)
        try:
            self.store.save(self._volume_key(volume.name), mounted)
        except StorageError:
            if not remount:
                self._rollback_mount(mounted)
            raise
        return new_mount_point

    def _rollback_mount(self, volume: VolumeRecord) -> None:
        try:
            self.executor.unmount(volume)
        except QuobyteDriverException as e:
            LOG.warning("Failed to unmount volume %s after failed save: %s", volume.name, e)

    def unmount_volume(self, name: str) -> None:
        """Unmount a volume. Unmounting an unmounted volume does nothing.

        Raises:
            VolumeNotFound: No record exists
            UnmountError: The unmount failed; the record stays mounted
        """
        key = self._volume_key(name)
        with self._locks.hold(name):
            volume = self._load_volume(name)
            if not volume.is_mounted:
                LOG.debug("Volume %s is not mounted", name)
                return

            self.executor.unmount(volume)
            unmounted = dataclasses.replace(volume)
            unmounted.mark_unmounted()
            try:
                self.store.save(key, unmounted)
            except StorageError:
                self._rollback_unmount(volume)
                raise

    def _rollback_unmount(self, volume: VolumeRecord) -> None:
        try:
            self.executor.mount(volume, volume.mount_point)
        except QuobyteDriverException as e:
            LOG.warning("Failed to remount volume %s after failed save: %s", volume.name, e)

    def mount_point(self, name: str) -> str:
        return self._load_volume(name).mount_point or ""

    def get_volume_info(self, name: str) -> Dict[str, str]:
        volume = self._load_volume(name)
        return {
            OPT_VOLUME_NAME: volume.name,
            "ID": volume.id,
            "MountPoint": volume.mount_point or "",
            "State": volume.state.value,
            "User": volume.user,
            "Group": volume.group,
            "VolumeConfig": volume.config,
            "Device": volume.device,
        }

    def list_volumes(self) -> Dict[str, Dict[str, str]]:
        """Return `get_volume_info` for every known volume.

        Fails as a whole if any single lookup fails.
        """
        return {name: self.get_volume_info(name) for name in self.registry.list_volume_names()}

    def snapshot_ops(self) -> Any:
        raise UnsupportedOperation("Doesn't support snapshot operations")

    def backup_ops(self) -> Any:
        raise UnsupportedOperation("Doesn't support backup operations")
