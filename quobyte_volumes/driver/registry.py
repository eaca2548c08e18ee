"""Name-oriented view of the volume records in a record store."""

from typing import List

from quobyte_volumes.cli.lib.state import RecordStore, record_key

from .models import CFG_PREFIX, CFG_SUFFIX, VOLUME_CFG_PREFIX

VOLUME_KEY_PREFIX = CFG_PREFIX + VOLUME_CFG_PREFIX


def volume_key(name: str) -> str:
    return record_key(VOLUME_KEY_PREFIX, name, CFG_SUFFIX)


class VolumeRegistry:
    """Enumerates the volumes persisted in a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    def list_volume_names(self) -> List[str]:
        return sorted(self.store.list_keys(VOLUME_KEY_PREFIX, CFG_SUFFIX))
