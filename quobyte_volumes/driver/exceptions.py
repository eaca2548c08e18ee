"""Custom exceptions for the Quobyte volume driver."""

from typing import Optional


class QuobyteDriverException(Exception):
    """Base exception for Quobyte volume driver errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigError(QuobyteDriverException):
    """Bootstrap options are missing or invalid."""

    pass


class InvalidVolumeName(QuobyteDriverException):
    """Volume name cannot be used as a record key."""

    pass


class InvalidOption(QuobyteDriverException):
    """A request option has a value that cannot be interpreted."""

    pass


class VolumeAlreadyExists(QuobyteDriverException):
    """Volume already exists."""

    pass


class VolumeNotFound(QuobyteDriverException):
    """Volume not found."""

    pass


class VolumeStillMounted(QuobyteDriverException):
    """Volume cannot be deleted while it is mounted."""

    pass


class RemoteVolumeError(QuobyteDriverException):
    """The Quobyte API failed while (de)provisioning a volume."""

    def __init__(self, message: str, volume: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.volume = volume
        self.cause = cause


class RemoteProvisioningError(RemoteVolumeError):
    """Remote volume creation failed."""

    pass


class RemoteDeprovisioningError(RemoteVolumeError):
    """Remote volume deletion failed."""

    pass


class MountError(QuobyteDriverException):
    """Mounting a volume failed."""

    pass


class UnmountError(QuobyteDriverException):
    """Unmounting a volume failed."""

    pass


class StorageError(QuobyteDriverException):
    """Reading or writing a persisted record failed."""

    pass


class RecordNotFound(StorageError):
    """No record is stored under the requested key."""

    pass


class CorruptRecordError(StorageError):
    """A stored record could not be decoded."""

    pass


class UnsupportedOperation(QuobyteDriverException):
    """The driver does not implement the requested capability."""

    pass


class QuobyteAPIError(QuobyteDriverException):
    """Quobyte API returned an error response."""

    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class QuobyteAPIConnectionError(QuobyteAPIError):
    """Failed to connect to the Quobyte API."""

    pass


class QuobyteAPITimeout(QuobyteAPIError):
    """Quobyte API request timed out."""

    pass
