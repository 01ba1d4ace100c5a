"""Versioned, partitioned response cache backed by the filesystem.

Storage structure:
    cache/partitions/
        {partition}/
            _partition.json          # PartitionDescriptor
            {sha256(fingerprint)}.json   # CacheEntry
        .staging-{partition}-{uuid}/     # Being populated, invisible to readers

Entries are written through a temp file and ``os.replace`` so a concurrent
``get`` sees either the previous snapshot or the complete new one. Blocking
disk I/O runs in a worker thread so callers suspend instead of stalling the
event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import uuid
from pathlib import Path

from pydantic import ValidationError

from ..errors import InvalidPartitionNameError
from ..models.cache import CacheEntry
from ..models.cache import PartitionDescriptor
from ..models.cache import ResponseSnapshot
from ..storage.files import atomic_write_text
from ..storage.files import load_json
from ..storage.files import remove_file
from ..storage.paths import get_partitions_dir
from .fingerprint import entry_key

logger = logging.getLogger(__name__)

DESCRIPTOR_FILE = "_partition.json"
STAGING_PREFIX = ".staging-"
_PARTITION_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def static_partition(version: str) -> str:
    """Name of a version's install-time partition."""
    return f"static-{version}"


def dynamic_partition(version: str) -> str:
    """Name of a version's runtime partition."""
    return f"dynamic-{version}"


def _validate_name(name: str) -> str:
    if not _PARTITION_NAME.match(name):
        raise InvalidPartitionNameError(f"Invalid partition name: {name!r}")
    return name


class CacheStore:
    """Filesystem cache of response snapshots, grouped in named partitions.

    No eviction beyond whole-partition deletion unless
    ``max_entries_per_partition`` is set, in which case the oldest entries
    of a partition are evicted after each write that exceeds the bound.
    """

    def __init__(
        self,
        partitions_dir: Path | None = None,
        max_entries_per_partition: int | None = None,
    ) -> None:
        """Initialize cache store.

        Args:
            partitions_dir: Root directory for partitions.
                Defaults to $OFFLINED_HOME/cache/partitions
            max_entries_per_partition: Optional per-partition entry bound
        """
        self.partitions_dir = partitions_dir or get_partitions_dir()
        self.partitions_dir.mkdir(parents=True, exist_ok=True)
        self.max_entries_per_partition = max_entries_per_partition
        logger.info(f"Initialized cache store at {self.partitions_dir}")

    def _partition_path(self, partition: str) -> Path:
        if partition.startswith(STAGING_PREFIX):
            if not _PARTITION_NAME.match(partition[len(STAGING_PREFIX) :]):
                raise InvalidPartitionNameError(f"Invalid staging partition: {partition!r}")
            return self.partitions_dir / partition
        return self.partitions_dir / _validate_name(partition)

    def _entry_path(self, partition: str, fingerprint: str) -> Path:
        return self._partition_path(partition) / f"{entry_key(fingerprint)}.json"

    # --- Reads ---

    async def get(self, partition: str, fingerprint: str) -> ResponseSnapshot | None:
        """Look up a snapshot.

        Args:
            partition: Partition name
            fingerprint: Request fingerprint

        Returns:
            Stored snapshot, or None on a miss
        """
        path = self._entry_path(partition, fingerprint)
        return await asyncio.to_thread(self._read_entry, path, fingerprint)

    def _read_entry(self, path: Path, fingerprint: str) -> ResponseSnapshot | None:
        data = load_json(path)
        if data is None:
            return None
        try:
            entry = CacheEntry.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cache entry {path}: {e}")
            return None
        # Guard against hash collisions
        if entry.fingerprint != fingerprint:
            return None
        return entry.snapshot

    async def entries(self, partition: str) -> list[CacheEntry]:
        """Scan every entry of a partition.

        Args:
            partition: Partition name

        Returns:
            All readable entries (empty if the partition doesn't exist)
        """
        path = self._partition_path(partition)
        return await asyncio.to_thread(self._scan, path)

    def _scan(self, partition_path: Path) -> list[CacheEntry]:
        if not partition_path.is_dir():
            return []
        entries = []
        for entry_file in sorted(partition_path.glob("*.json")):
            if entry_file.name == DESCRIPTOR_FILE:
                continue
            data = load_json(entry_file)
            if data is None:
                continue
            try:
                entries.append(CacheEntry.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable cache entry {entry_file}: {e}")
        return entries

    async def list_partitions(self) -> set[str]:
        """List published partitions.

        Returns:
            Names of every published partition (staging partitions excluded)
        """
        return await asyncio.to_thread(self._list_partitions)

    def _list_partitions(self) -> set[str]:
        return {
            child.name
            for child in self.partitions_dir.iterdir()
            if child.is_dir() and not child.name.startswith(".")
        }

    async def has_partition(self, partition: str) -> bool:
        return await asyncio.to_thread(self._partition_path(partition).is_dir)

    async def describe(self, partition: str) -> PartitionDescriptor | None:
        """Read a partition's descriptor.

        Falls back to parsing ``<kind>-<version>`` from the name when the
        descriptor file is missing or unreadable.

        Args:
            partition: Partition name

        Returns:
            Descriptor, or None if the partition doesn't exist
        """
        path = self._partition_path(partition)
        return await asyncio.to_thread(self._describe, path, partition)

    def _describe(self, path: Path, partition: str) -> PartitionDescriptor | None:
        if not path.is_dir():
            return None
        data = load_json(path / DESCRIPTOR_FILE)
        if data is not None:
            try:
                return PartitionDescriptor.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Unreadable descriptor for partition {partition}: {e}")
        return PartitionDescriptor.from_name(partition)

    async def partition_version(self, partition: str) -> str | None:
        """Version tag a partition belongs to."""
        descriptor = await self.describe(partition)
        return descriptor.version if descriptor else None

    # --- Writes ---

    async def put(self, partition: str, fingerprint: str, snapshot: ResponseSnapshot) -> None:
        """Store a snapshot, creating the partition on first write.

        Args:
            partition: Partition name (or a staging partition)
            fingerprint: Request fingerprint
            snapshot: Response to store

        Raises:
            ValueError: If the snapshot is not a 2xx response
            OSError: If the entry cannot be written
        """
        if not snapshot.ok:
            raise ValueError(f"Only 2xx responses can be cached, got {snapshot.status} for {fingerprint}")

        path = self._entry_path(partition, fingerprint)
        entry = CacheEntry(fingerprint=fingerprint, snapshot=snapshot)
        await asyncio.to_thread(self._write_entry, partition, path, entry)

        logger.debug(f"Cached {fingerprint} in {partition}")

    def _write_entry(self, partition: str, path: Path, entry: CacheEntry) -> None:
        partition_path = path.parent
        if not partition_path.is_dir():
            partition_path.mkdir(parents=True, exist_ok=True)
        descriptor_path = partition_path / DESCRIPTOR_FILE
        if not descriptor_path.exists():
            name = partition
            if partition.startswith(STAGING_PREFIX):
                # .staging-{name}-{hex}
                name = partition[len(STAGING_PREFIX) :].rsplit("-", 1)[0]
            descriptor = PartitionDescriptor.from_name(name)
            atomic_write_text(descriptor_path, descriptor.model_dump_json(indent=2))

        atomic_write_text(path, entry.model_dump_json())

        if self.max_entries_per_partition is not None:
            self._evict(partition_path, self.max_entries_per_partition)

    def _evict(self, partition_path: Path, max_entries: int) -> None:
        entry_files = [p for p in partition_path.glob("*.json") if p.name != DESCRIPTOR_FILE]
        excess = len(entry_files) - max_entries
        if excess <= 0:
            return
        entry_files.sort(key=lambda p: p.stat().st_mtime_ns)
        for stale in entry_files[:excess]:
            remove_file(stale)
            logger.debug(f"Evicted {stale.name} from {partition_path.name}")

    async def delete_partition(self, partition: str) -> bool:
        """Delete a partition and everything in it.

        Args:
            partition: Partition name

        Returns:
            True if the partition existed
        """
        path = self._partition_path(partition)
        deleted = await asyncio.to_thread(self._remove_tree, path)
        if deleted:
            logger.info(f"Deleted cache partition {partition}")
        return deleted

    def _remove_tree(self, path: Path) -> bool:
        if not path.exists():
            return False
        # Rename first so readers never observe a half-deleted partition
        trash = self.partitions_dir / f".trash-{path.name}-{uuid.uuid4().hex}"
        os.replace(path, trash)
        shutil.rmtree(trash)
        return True

    # --- Staging ---

    async def stage_partition(self, partition: str) -> str:
        """Create a hidden staging partition for ``partition``.

        Entries written to the staging partition are invisible under the
        published name until ``publish_partition`` is called.

        Args:
            partition: Name the staging partition will be published as

        Returns:
            Staging partition name to pass to ``put``
        """
        _validate_name(partition)
        staging = f"{STAGING_PREFIX}{partition}-{uuid.uuid4().hex}"
        await asyncio.to_thread((self.partitions_dir / staging).mkdir, parents=True)
        return staging

    async def publish_partition(self, staging: str, partition: str) -> None:
        """Publish a staging partition under its final name.

        Replaces an existing partition of the same name.

        Args:
            staging: Staging partition name from ``stage_partition``
            partition: Published name
        """
        staging_path = self._partition_path(staging)
        target = self._partition_path(partition)
        await asyncio.to_thread(self._publish, staging_path, target, partition)
        logger.info(f"Published cache partition {partition}")

    def _publish(self, staging_path: Path, target: Path, partition: str) -> None:
        descriptor_path = staging_path / DESCRIPTOR_FILE
        atomic_write_text(descriptor_path, PartitionDescriptor.from_name(partition).model_dump_json(indent=2))
        if target.exists():
            trash = self.partitions_dir / f".trash-{target.name}-{uuid.uuid4().hex}"
            os.replace(target, trash)
            os.replace(staging_path, target)
            shutil.rmtree(trash)
        else:
            os.replace(staging_path, target)

    async def discard_partition(self, staging: str) -> None:
        """Throw away a staging partition."""
        await asyncio.to_thread(self._remove_tree, self._partition_path(staging))
        logger.debug(f"Discarded staging partition {staging}")

    async def sweep(self) -> int:
        """Remove leftover staging and trash directories from interrupted runs.

        Returns:
            Number of directories removed
        """
        return await asyncio.to_thread(self._sweep)

    def _sweep(self) -> int:
        removed = 0
        for child in self.partitions_dir.iterdir():
            if child.is_dir() and child.name.startswith((STAGING_PREFIX, ".trash-")):
                shutil.rmtree(child, ignore_errors=True)
                removed += 1
        if removed:
            logger.info(f"Swept {removed} leftover staging directories")
        return removed
