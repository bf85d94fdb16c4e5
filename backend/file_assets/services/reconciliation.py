"""Orphan blob reconciliation.

A create that fails after its disk write leaves a blob no record points at.
The sweep lists blobs on disk, drops every name some FileAsset references,
and deletes what is left once it is older than ``min_age_minutes``. The age
guard keeps blobs of creates that are still in flight. Temp files left by
writes interrupted before their rename are removed under the same age rule,
and files in the storage root that are not valid blob names are skipped.

Call on startup (see main.lifespan) or on demand from the maintenance route.
"""
import logging
import time
from dataclasses import dataclass, field

from file_assets.config import settings
from file_assets.errors import StorageNotFoundError, StorageWriteError
from file_assets.services.disk_store import DiskContentStore
from file_assets.services.record_gateway import FileAssetGateway

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    scanned: int = 0
    orphans: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    temp_removed: list[str] = field(default_factory=list)
    dry_run: bool = False


async def sweep_orphan_blobs(
    store: DiskContentStore,
    gateway: FileAssetGateway,
    min_age_minutes: int = settings.ORPHAN_MIN_AGE_MINUTES,
    dry_run: bool = False,
) -> SweepReport:
    """Delete blobs with no referencing record. Returns what was found/removed."""
    names = await store.list_names()
    referenced = await gateway.list_file_names()
    report = SweepReport(scanned=len(names), dry_run=dry_run)

    now = time.time()
    min_age = min_age_minutes * 60
    for name in names:
        if name in referenced:
            continue
        try:
            if await store.age_seconds(name, now) < min_age:
                continue
        except FileNotFoundError:
            continue
        except StorageWriteError as e:
            logger.warning(f"Skipping unmanaged file in storage root: {e.message}")
            continue
        report.orphans.append(name)
        if dry_run:
            continue
        try:
            await store.delete(name)
        except StorageNotFoundError:
            continue
        except StorageWriteError as e:
            logger.warning(f"Failed to remove orphan blob {name}: {e.message}")
            continue
        report.removed.append(name)
        logger.warning(f"Removed orphan blob {name}")

    if not dry_run:
        for temp_name in await store.list_temp_names():
            try:
                if await store.remove_stale_temp(temp_name, min_age, now):
                    report.temp_removed.append(temp_name)
            except StorageWriteError as e:
                logger.warning(f"Failed to remove temp file {temp_name}: {e.message}")

    if report.orphans:
        logger.info(
            f"Orphan sweep: {len(report.orphans)} orphan(s) of {report.scanned} blob(s), "
            f"{len(report.removed)} removed"
        )
    return report
