"""Install-time precaching and activation cleanup."""

import asyncio
import logging

from ..cache.fingerprint import fingerprint
from ..cache.fingerprint import resolve_url
from ..cache.store import CacheStore
from ..cache.store import static_partition
from ..errors import PrecacheError
from ..errors import ServerRejectedError
from ..errors import TransportUnreachableError
from ..fetch.transport import NetworkTransport
from ..models.cache import ResponseSnapshot
from ..models.lifecycle import PrecacheReport
from ..models.requests import InterceptedRequest

logger = logging.getLogger(__name__)


class PrecacheManager:
    """Populates a version's static partition and cleans up old versions.

    Install is all-or-nothing: entries are written to a staging partition
    that is published as ``static-<version>`` only when every manifest entry
    came back 2xx. A failed install leaves no partial partition behind.
    """

    def __init__(
        self,
        store: CacheStore,
        transport: NetworkTransport,
        manifest: list[str],
        app_origin: str,
        version: str,
    ) -> None:
        """Initialize precache manager.

        Args:
            store: Cache store
            transport: Network transport
            manifest: Paths (or absolute URLs) to cache at install time
            app_origin: Origin the manifest paths are resolved against
            version: Release version tag
        """
        self.store = store
        self.transport = transport
        self.manifest = list(manifest)
        self.app_origin = app_origin
        self.version = version

    async def _fetch_entry(self, url: str) -> ResponseSnapshot:
        snapshot = await self.transport.fetch(InterceptedRequest(url=url))
        if not snapshot.ok:
            raise ServerRejectedError(url, snapshot.status, snapshot.body)
        return snapshot

    async def install(self) -> PrecacheReport:
        """Fetch and cache every manifest entry.

        Returns:
            Report listing the cached URLs

        Raises:
            PrecacheError: If any entry failed; nothing is published
        """
        urls = [resolve_url(self.app_origin, path) for path in self.manifest]
        logger.info(f"Installing {self.version}: precaching {len(urls)} entries")

        results = await asyncio.gather(*(self._fetch_entry(url) for url in urls), return_exceptions=True)

        failures: dict[str, str] = {}
        for url, result in zip(urls, results, strict=True):
            if isinstance(result, ServerRejectedError):
                failures[url] = f"status {result.status}"
            elif isinstance(result, TransportUnreachableError):
                failures[url] = result.reason
            elif isinstance(result, BaseException):
                raise result

        if failures:
            logger.error(f"Install of {self.version} failed for {len(failures)} entries")
            raise PrecacheError(self.version, failures)

        staging = await self.store.stage_partition(static_partition(self.version))
        try:
            for url, snapshot in zip(urls, results, strict=True):
                await self.store.put(staging, fingerprint(InterceptedRequest(url=url)), snapshot)
            await self.store.publish_partition(staging, static_partition(self.version))
        except BaseException:
            await self.store.discard_partition(staging)
            raise

        logger.info(f"Installed {self.version} into {static_partition(self.version)}")
        return PrecacheReport(version=self.version, partition=static_partition(self.version), entries=urls)

    async def activate(self) -> list[str]:
        """Delete every partition that belongs to another version.

        Deletion failures are logged and skipped; they never block activation.

        Returns:
            Names of deleted partitions
        """
        deleted = []
        for name in sorted(await self.store.list_partitions()):
            if await self.store.partition_version(name) == self.version:
                continue
            try:
                if await self.store.delete_partition(name):
                    deleted.append(name)
            except OSError as e:
                logger.warning(f"Failed to delete old partition {name}: {e}")

        if deleted:
            logger.info(f"Activated {self.version}, removed partitions: {', '.join(deleted)}")
        return deleted
