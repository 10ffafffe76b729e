"""Docker pruner implementation using the docker SDK.

The SDK is synchronous; every call is pushed to a worker thread with
asyncio.to_thread and awaited before the next one is issued, so only one
engine request is ever in flight.

Error mapping:
- transport failures (socket missing, connection refused) -> EngineUnreachableError
- API errors on bulk prunes -> PruneFailedError(resource)
- API errors on removals -> RemovalFailedError(kind, target)
- API errors on listing -> InventoryFailedError(resource)
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

import docker
import structlog
from docker.errors import APIError, DockerException, NotFound
from requests.exceptions import RequestException

from reclaimer.drivers.base import ContainerSummary, PruneReport, Pruner, VolumeSummary
from reclaimer.errors import (
    EngineUnreachableError,
    InventoryFailedError,
    PruneFailedError,
    ReclaimerError,
    RemovalFailedError,
)
from reclaimer.utils.datetime import parse_engine_timestamp

logger = structlog.get_logger()

T = TypeVar("T")


def _deleted_ids(items: list[Any] | None) -> list[str]:
    """Flatten the *Deleted arrays of prune responses to plain identifiers."""
    ids: list[str] = []
    for item in items or []:
        if isinstance(item, dict):
            # ImagesDeleted entries look like {"Untagged": "..."} or {"Deleted": "sha256:..."}
            ids.extend(str(v) for v in item.values() if v)
        else:
            ids.append(str(item))
    return ids


def _prune_report(resource: str, response: dict[str, Any] | None, key: str) -> PruneReport:
    response = response or {}
    return PruneReport(
        resource=resource,
        deleted=_deleted_ids(response.get(key)),
        space_reclaimed=int(response.get("SpaceReclaimed") or 0),
    )


def _volume_from_df(item: dict[str, Any]) -> VolumeSummary:
    usage = item.get("UsageData") or {}
    ref_count = usage.get("RefCount")
    # Engine reports -1 when usage was not computed
    if ref_count is not None and ref_count < 0:
        ref_count = None

    created_raw = item.get("CreatedAt")
    created_at = parse_engine_timestamp(created_raw)
    if created_raw and created_at is None:
        logger.warning(
            "docker.volume.unparseable_created_at",
            name=item.get("Name"),
            created_at=created_raw,
        )

    return VolumeSummary(
        name=item.get("Name", ""),
        ref_count=ref_count,
        created_at=created_at,
        driver=item.get("Driver"),
    )


class DockerPruner(Pruner):
    """Pruner backed by the Docker engine API."""

    def __init__(self, base_url: str, *, timeout: int = 120) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._log = logger.bind(driver="docker", socket=base_url)
        self._client: docker.DockerClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> docker.DockerClient:
        """Get or create the docker client."""
        if self._client is None:
            try:
                self._client = await asyncio.to_thread(
                    docker.DockerClient,
                    base_url=self._base_url,
                    timeout=self._timeout,
                )
            except (DockerException, RequestException) as e:
                raise EngineUnreachableError(
                    f"Cannot connect to engine at {self._base_url}: {e}",
                    details={"socket": self._base_url},
                ) from e
        return self._client

    async def close(self) -> None:
        """Close the docker client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def _call(
        self,
        operation: Callable[[Any], T],
        on_error: Callable[[str], ReclaimerError],
    ) -> T:
        """Run one low-level API operation and map its failures."""
        client = await self._get_client()
        try:
            return await asyncio.to_thread(operation, client.api)
        except APIError as e:
            raise on_error(str(e)) from e
        except RequestException as e:
            raise EngineUnreachableError(
                f"Lost connection to engine at {self._base_url}: {e}",
                details={"socket": self._base_url},
            ) from e
        except DockerException as e:
            raise on_error(str(e)) from e

    async def ping(self) -> None:
        await self._call(
            lambda api: api.ping(),
            lambda msg: EngineUnreachableError(
                f"Engine at {self._base_url} did not answer ping: {msg}",
                details={"socket": self._base_url},
            ),
        )

    # Bulk prunes

    async def prune_containers(self, *, until: str | None = None) -> PruneReport:
        filters = {"until": until} if until else None
        self._log.debug("docker.prune_containers", filters=filters)
        response = await self._call(
            lambda api: api.prune_containers(filters=filters),
            lambda msg: PruneFailedError("containers", f"Failed to prune containers: {msg}"),
        )
        return _prune_report("containers", response, "ContainersDeleted")

    async def prune_images(self, *, dangling_only: bool = True) -> PruneReport:
        filters = {"dangling": dangling_only}
        self._log.debug("docker.prune_images", filters=filters)
        response = await self._call(
            lambda api: api.prune_images(filters=filters),
            lambda msg: PruneFailedError("images", f"Failed to prune images: {msg}"),
        )
        return _prune_report("images", response, "ImagesDeleted")

    async def prune_networks(self) -> PruneReport:
        self._log.debug("docker.prune_networks")
        response = await self._call(
            lambda api: api.prune_networks(),
            lambda msg: PruneFailedError("networks", f"Failed to prune networks: {msg}"),
        )
        return _prune_report("networks", response, "NetworksDeleted")

    async def prune_build_cache(self) -> PruneReport:
        self._log.debug("docker.prune_build_cache")
        response = await self._call(
            lambda api: api.prune_builds(),
            lambda msg: PruneFailedError("build_cache", f"Failed to prune build cache: {msg}"),
        )
        return _prune_report("build_cache", response, "CachesDeleted")

    # Inventory

    async def list_containers(self) -> list[ContainerSummary]:
        raw = await self._call(
            lambda api: api.containers(all=True),
            lambda msg: InventoryFailedError("containers", f"Failed to list containers: {msg}"),
        )
        containers = [
            ContainerSummary(
                id=item.get("Id", ""),
                status=item.get("Status") or "",
                state=item.get("State"),
                names=[n.lstrip("/") for n in item.get("Names") or []],
            )
            for item in raw or []
        ]
        self._log.debug("docker.list_containers.result", count=len(containers))
        return containers

    async def list_volumes(self) -> list[VolumeSummary]:
        """List volumes from the disk-usage endpoint, which carries RefCount."""
        raw = await self._call(
            lambda api: api.df(),
            lambda msg: InventoryFailedError("volumes", f"Failed to list volumes: {msg}"),
        )
        volumes = [_volume_from_df(item) for item in (raw or {}).get("Volumes") or []]
        self._log.debug("docker.list_volumes.result", count=len(volumes))
        return volumes

    # Removal

    async def remove_container(self, container_id: str) -> None:
        self._log.info("docker.remove_container", container_id=container_id)

        def _remove(api: Any) -> bool:
            try:
                api.remove_container(container_id, force=True)
            except NotFound:
                return False
            return True

        removed = await self._call(
            _remove,
            lambda msg: RemovalFailedError(
                "container", container_id, f"Failed to remove container {container_id}: {msg}"
            ),
        )
        if not removed:
            self._log.warning("docker.remove_container.not_found", container_id=container_id)

    async def remove_volume(self, name: str) -> None:
        self._log.info("docker.remove_volume", name=name)

        def _remove(api: Any) -> bool:
            try:
                api.remove_volume(name)
            except NotFound:
                return False
            return True

        removed = await self._call(
            _remove,
            lambda msg: RemovalFailedError("volume", name, f"Failed to remove volume {name}: {msg}"),
        )
        if not removed:
            self._log.warning("docker.remove_volume.not_found", name=name)
