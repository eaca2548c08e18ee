"""Unit tests for mount helpers."""

import subprocess
import unittest
from unittest.mock import mock_open, patch

import pytest

from quobyte_volumes.driver import exceptions as quobyte_exceptions
from quobyte_volumes.driver import utils as quobyte_utils
from quobyte_volumes.driver.models import VolumeRecord


class TestMountFunctions(unittest.TestCase):
    """Test mount/unmount helpers."""

    def test_get_default_mount_point(self):
        assert quobyte_utils.get_default_mount_point("/var/lib/qv", "vol1") == "/var/lib/qv/mounts/vol1"

    @patch("quobyte_volumes.driver.utils.os.makedirs")
    def test_ensure_mount_point_exists_failure(self, mock_makedirs):
        mock_makedirs.side_effect = OSError("Permission denied")

        with pytest.raises(quobyte_exceptions.MountError, match="Failed to create mount point"):
            quobyte_utils.ensure_mount_point_exists("/test")

    def test_is_mounted_reads_proc_mounts(self):
        mounts = "vol1 /mnt/vol1 fuse.quobyte rw 0 0\n"
        with patch("builtins.open", mock_open(read_data=mounts)):
            assert quobyte_utils.is_mounted("/mnt/vol1") is True
            assert quobyte_utils.is_mounted("/mnt/vol2") is False

    def test_get_mount_source_returns_topmost(self):
        mounts = "vol1 /mnt/shared fuse.quobyte rw 0 0\nvol2 /mnt/shared fuse.quobyte rw 0 0\n"
        with patch("builtins.open", mock_open(read_data=mounts)):
            assert quobyte_utils.get_mount_source("/mnt/shared") == "vol2"
            assert quobyte_utils.get_mount_source("/mnt/other") is None

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value=None)
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_success(self, mock_ensure, mock_source, mock_run):
        quobyte_utils.mount("vol1", "/mnt/vol1", ["-t", "quobyte"], timeout=7)

        mock_ensure.assert_called_once_with("/mnt/vol1")
        args, kwargs = mock_run.call_args
        assert args[0] == ["mount", "-t", "quobyte", "vol1", "/mnt/vol1"]
        assert kwargs["timeout"] == 7
        assert kwargs["check"] is True

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value="vol1")
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_already_mounted(self, mock_ensure, mock_source, mock_run):
        quobyte_utils.mount("vol1", "/mnt/vol1", ["-t", "quobyte"])

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value="quobyte@quobyte-1:7861/vol1")
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_already_mounted_registry_source(self, mock_ensure, mock_source, mock_run):
        quobyte_utils.mount("vol1", "/mnt/vol1", ["-t", "quobyte"])

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value="vol1")
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_point_held_by_other_volume(self, mock_ensure, mock_source, mock_run):
        with pytest.raises(quobyte_exceptions.MountError, match="already in use by vol1"):
            quobyte_utils.mount("vol2", "/mnt/shared", ["-t", "quobyte"])

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value="")
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_point_held_by_unknown_source(self, mock_ensure, mock_source, mock_run):
        with pytest.raises(quobyte_exceptions.MountError, match="another mount"):
            quobyte_utils.mount("vol2", "/mnt/shared", ["-t", "quobyte"])

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value=None)
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_failure(self, mock_ensure, mock_source, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(32, ["mount"], stderr="no such volume")

        with pytest.raises(quobyte_exceptions.MountError, match="no such volume"):
            quobyte_utils.mount("vol1", "/mnt/vol1", ["-t", "quobyte"])

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value=None)
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_timeout(self, mock_ensure, mock_source, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["mount"], 30)

        with pytest.raises(quobyte_exceptions.MountError, match="timed out"):
            quobyte_utils.mount("vol1", "/mnt/vol1", ["-t", "quobyte"])

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.is_mounted", return_value=False)
    def test_unmount_not_mounted(self, mock_is_mounted, mock_run):
        quobyte_utils.unmount("/mnt/vol1")

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.is_mounted", return_value=True)
    def test_unmount_success(self, mock_is_mounted, mock_run):
        quobyte_utils.unmount("/mnt/vol1", timeout=4)

        args, kwargs = mock_run.call_args
        assert args[0] == ["umount", "/mnt/vol1"]
        assert kwargs["timeout"] == 4

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.is_mounted", return_value=True)
    def test_unmount_busy(self, mock_is_mounted, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(32, ["umount"], stderr="target is busy")

        with pytest.raises(quobyte_exceptions.UnmountError, match="busy"):
            quobyte_utils.unmount("/mnt/vol1")

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.is_mounted", return_value=True)
    def test_unmount_ignores_not_mounted(self, mock_is_mounted, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(32, ["umount"], stderr="umount: /mnt/vol1: not mounted.")

        quobyte_utils.unmount("/mnt/vol1")

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.is_mounted", return_value=True)
    def test_unmount_timeout(self, mock_is_mounted, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["umount"], 30)

        with pytest.raises(quobyte_exceptions.UnmountError, match="timed out"):
            quobyte_utils.unmount("/mnt/vol1")


class TestMountExecutor(unittest.TestCase):
    """Test MountExecutor class."""

    @patch("quobyte_volumes.driver.utils.mount")
    def test_mount_default_mount_point(self, mock_mount):
        executor = quobyte_utils.MountExecutor("/var/lib/qv", timeout=12)
        volume = VolumeRecord(name="vol1", device="vol1")

        mount_point = executor.mount(volume, "")

        assert mount_point == "/var/lib/qv/mounts/vol1"
        mock_mount.assert_called_once_with("vol1", "/var/lib/qv/mounts/vol1", ["-t", "quobyte"], timeout=12)
        # The record is left for the driver to update
        assert volume.mount_point is None

    @patch("quobyte_volumes.driver.utils.subprocess.run")
    @patch("quobyte_volumes.driver.utils.get_mount_source", return_value="vol1")
    @patch("quobyte_volumes.driver.utils.ensure_mount_point_exists")
    def test_mount_refuses_occupied_hint(self, mock_ensure, mock_source, mock_run):
        executor = quobyte_utils.MountExecutor("/var/lib/qv")
        volume = VolumeRecord(name="vol2", device="vol2")

        with pytest.raises(quobyte_exceptions.MountError):
            executor.mount(volume, "/var/lib/qv/shared")

        mock_run.assert_not_called()

    @patch("quobyte_volumes.driver.utils.mount")
    def test_mount_hint(self, mock_mount):
        executor = quobyte_utils.MountExecutor("/var/lib/qv")
        volume = VolumeRecord(name="vol1", device="vol1")

        assert executor.mount(volume, "/data/vol1") == "/data/vol1"
        mock_mount.assert_called_once_with("vol1", "/data/vol1", ["-t", "quobyte"], timeout=30)

    @patch("quobyte_volumes.driver.utils.cleanup_mount_point")
    @patch("quobyte_volumes.driver.utils.unmount")
    def test_unmount_default_mount_point_is_removed(self, mock_unmount, mock_cleanup):
        executor = quobyte_utils.MountExecutor("/var/lib/qv")
        volume = VolumeRecord(name="vol1", device="vol1", mount_point="/var/lib/qv/mounts/vol1")

        executor.unmount(volume)

        mock_unmount.assert_called_once_with("/var/lib/qv/mounts/vol1", timeout=30)
        mock_cleanup.assert_called_once_with("/var/lib/qv/mounts/vol1")

    @patch("quobyte_volumes.driver.utils.cleanup_mount_point")
    @patch("quobyte_volumes.driver.utils.unmount")
    def test_unmount_custom_mount_point_is_kept(self, mock_unmount, mock_cleanup):
        executor = quobyte_utils.MountExecutor("/var/lib/qv")
        volume = VolumeRecord(name="vol1", device="vol1", mount_point="/data/vol1")

        executor.unmount(volume)

        mock_unmount.assert_called_once_with("/data/vol1", timeout=30)
        mock_cleanup.assert_not_called()
