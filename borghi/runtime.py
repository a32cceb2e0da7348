"""Object graph shared by the API, the CLI and tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from borghi.config import Settings
from borghi.contracts.sync import NetworkState
from borghi.persistence.capture_queue import CaptureQueueStore, UploadFn
from borghi.persistence.village_lists import VillageListStore
from borghi.persistence.village_registry import VillageRegistry
from borghi.services.capture_service import CaptureService, VisitEvent
from borghi.services.device_state import BatteryStateFeed, NetworkStateFeed
from borghi.services.heading import HeadingSource, HeadingTracker, select_heading_source
from borghi.services.queue_monitor import QueueSyncMonitor
from borghi.services.sync_gate import SyncConditionGate
from borghi.services.targeting import VillageTargeter
from borghi.services.uploader import HttpCaptureUploader, simulated_upload

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    registry: VillageRegistry
    targeter: VillageTargeter
    network: NetworkStateFeed
    battery: BatteryStateFeed
    gate: SyncConditionGate
    store: CaptureQueueStore
    lists: VillageListStore
    capture: CaptureService
    monitor: QueueSyncMonitor
    heading_source: HeadingSource
    heading: HeadingTracker


def build_runtime(
    settings: Settings,
    *,
    registry: VillageRegistry | None = None,
    upload: UploadFn | None = None,
    network: NetworkStateFeed | None = None,
    battery: BatteryStateFeed | None = None,
) -> Runtime:
    """Wire every component from *settings*; arguments override defaults."""
    registry = registry or VillageRegistry.load(settings.villages_path)
    targeter = VillageTargeter(registry)
    network = network or NetworkStateFeed(NetworkState(is_connected=True, is_internet_reachable=True))
    battery = battery or BatteryStateFeed()
    gate = SyncConditionGate(network, battery, min_battery_level=settings.min_battery_level)
    store = CaptureQueueStore(settings.data_dir, gate=gate, max_tries=settings.max_tries)
    lists = VillageListStore(settings.data_dir)

    if upload is None:
        if settings.upload_url:
            upload = HttpCaptureUploader(settings.upload_url, token=settings.upload_token)
        else:
            logger.warning("BORGHI_UPLOAD_URL not set, uploads are simulated")
            upload = simulated_upload

    capture = CaptureService(
        targeter,
        store,
        options=settings.target_options(),
        nearest_max_km=settings.nearest_max_km,
    )

    async def mark_visited(event: VisitEvent) -> None:
        await lists.mark_visited(event.village_id)

    capture.add_visit_listener(mark_visited)

    monitor = QueueSyncMonitor(store, network, battery, upload)
    heading_source = select_heading_source(settings.native_compass)
    tracker = HeadingTracker(settings.heading_window)
    tracker.attach(heading_source)
    return Runtime(
        settings=settings,
        registry=registry,
        targeter=targeter,
        network=network,
        battery=battery,
        gate=gate,
        store=store,
        lists=lists,
        capture=capture,
        monitor=monitor,
        heading_source=heading_source,
        heading=tracker,
    )
