from typing import List, Dict, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import collections
import asyncio
import logging

from bosun.errors import PluginFault
from bosun.models.slot import SlotCatalog
from bosun.models import manifest
from bosun.models.manifest import PluginManifest
from bosun.models.plugin import PluginInstance
from bosun.models.plugin_store import PluginManifestStore, ManifestSource
from bosun.models.stream import StreamDescriptor
from bosun.models.stream_catalog import StreamCatalog
from bosun.models.mapping import SensorMapping
from bosun.models.mapping_table import MappingTable, IngestStats
from bosun.models.debug_tap import DebugTap, DebugEntry
from bosun.models.freshness import FreshnessMonitor, Freshness, classify
from bosun.models.subscription import Subscription
from bosun.models import frame
from bosun.services import sync_state
from bosun.utilities import time_now

STATUS = PluginInstance.STATUS

log = logging.getLogger('bosun')

# queued in place of a stream id for whole-frame packets
_PACKET = object()


class SensorEngine:
    """
    Single owner of the plugin registry and the mapping table.

    Write commands are coroutines serialized behind one lock, each one
    validates before it mutates so a failed command leaves no trace. Driver
    values arrive through :meth:`ingest` which never waits on a command:
    events are queued (oldest dropped when full) and applied by a
    background task. Reads return copies of the committed state.
    """

    def __init__(self, slots: Optional[SlotCatalog] = None,
                 db: Optional[Session] = None,
                 driver_host=None,
                 debug_capacity: int = 200,
                 queue_size: int = 1000,
                 poll_interval: float = 2):
        if slots is None:
            slots = SlotCatalog()
        self.slots = slots
        self.store = PluginManifestStore()
        self.catalog = StreamCatalog(self.store)
        self.tap = DebugTap(debug_capacity)
        self.table = MappingTable(self.slots, self.catalog, self.tap)
        self.monitor = FreshnessMonitor(self.table)
        self.db = db
        # optional collaborator with async start(instance) and stop(instance)
        self.driver_host = driver_host
        self.poll_interval = poll_interval

        self._lock = asyncio.Lock()
        self._queue: collections.deque = collections.deque([], maxlen=queue_size)
        self._queue_event: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ingest_task: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._subscribers: List[asyncio.Queue] = []

    # --- lifecycle ---

    def load(self) -> None:
        """Restore persisted plugins and mappings"""
        if self.db is None:
            return
        sync_state.load(self.db, self.store, self.table)
        log.info("restored %d plugin(s) and %d mapping(s)" %
                 (len(self.store), len(self.table.snapshot())))

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue_event = asyncio.Event()
        self._ingest_task = asyncio.create_task(self._ingest_loop())
        self._ingest_task.set_name("SensorEngine: ingest")
        # bring up the drivers that were running before a restart
        for instance in self.store.list_instances():
            if instance.status == STATUS.LOADING or \
                    (instance.status == STATUS.ENABLED and self.driver_host is not None):
                try:
                    async with self._lock:
                        await self._start_driver(instance.id)
                except PluginFault as e:
                    log.error(str(e))

    async def stop(self) -> None:
        for task in [self._poll_task, self._ingest_task]:
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._poll_task = None
        self._ingest_task = None
        self._subscribers = []
        if self.driver_host is not None:
            for instance in self.store.list_instances():
                if instance.enabled:
                    await self._stop_driver(instance)

    # --- reads ---

    def list_instances(self) -> List[PluginInstance]:
        return self.store.list_instances()

    def snapshot(self) -> List[SensorMapping]:
        return self.table.snapshot()

    def available_streams(self) -> List[StreamDescriptor]:
        return self.catalog.available_streams()

    def recent(self, since: Optional[int] = None,
               limit: Optional[int] = None) -> List[DebugEntry]:
        return self.tap.recent(since, limit)

    def freshness(self, now: Optional[int] = None) -> List[Tuple[SensorMapping, Freshness]]:
        """Freshness of every active mapping"""
        return self.monitor.report(now)

    @property
    def stats(self) -> IngestStats:
        return self.table.stats

    def frame(self, now: Optional[int] = None) -> Dict:
        """
        Dashboard frame. While a driver packet is held it is returned
        instead of the frame assembled from the mapped slots.
        """
        packet = self.table.packet()
        if packet is not None:
            return frame.passthrough(packet, self.table.packet_update)
        return frame.assemble(self.table.slot_values(), now)

    def mappings_report(self, now: Optional[int] = None) -> List[Dict]:
        """Mapping snapshot with the freshness of each active mapping"""
        if now is None:
            now = time_now()
        report = []
        for mapping in self.table.snapshot():
            data = mapping.to_json()
            if mapping.active:
                data['freshness'] = classify(mapping, now).to_json()
            else:
                data['freshness'] = None
            report.append(data)
        return report

    def monitor_snapshot(self, now: Optional[int] = None) -> Dict:
        if now is None:
            now = time_now()
        return {
            'timestamp': now,
            'mappings': self.mappings_report(now),
            'debug': [e.to_json() for e in self.tap.latest()],
            'stats': self.stats.to_json()
        }

    # --- plugin commands ---

    async def install(self, source: ManifestSource) -> PluginInstance:
        async with self._lock:
            instance = self.store.install(source)
            self._save()
            return instance

    async def update(self, source: ManifestSource) -> PluginInstance:
        """Replace the manifest of an installed plugin"""
        async with self._lock:
            return await self._update(source)

    async def install_or_update(self, source: ManifestSource) -> PluginInstance:
        """
        Install the plugin, or update it when it is already installed. The
        choice is made under the command lock so concurrent calls for the
        same plugin never collide.
        """
        async with self._lock:
            if not isinstance(source, PluginManifest):
                source = manifest.from_json(source)
            if source.id in self.store:
                return await self._update(source)
            instance = self.store.install(source)
            self._save()
            return instance

    async def uninstall(self, plugin_id: str) -> PluginInstance:
        async with self._lock:
            instance = self.store.uninstall(plugin_id)
            self._save()
            if instance.enabled:
                await self._stop_driver(instance)
            return instance

    async def enable(self, plugin_id: str) -> PluginInstance:
        async with self._lock:
            instance = self.store.find(plugin_id)
            if instance.status == STATUS.ENABLED:
                return instance
            return await self._start_driver(plugin_id)

    async def disable(self, plugin_id: str) -> PluginInstance:
        async with self._lock:
            previous = self.store.find(plugin_id)
            instance = self.store.disable(plugin_id)
            self._save()
            if previous.enabled:
                await self._stop_driver(instance)
            return instance

    async def report_fault(self, plugin_id: str, message: str) -> PluginInstance:
        """A driver reported an internal fault, the plugin stays installed"""
        async with self._lock:
            instance = self.store.fault(plugin_id, message)
            self._save()
            return instance

    # --- mapping commands ---

    async def bind(self, slot_type: str, plugin_id: str, stream_id: str) -> SensorMapping:
        async with self._lock:
            mapping = self.table.bind(slot_type, plugin_id, stream_id)
            self._save()
            return mapping

    async def unbind(self, slot_type: str, plugin_id: str, stream_id: str) -> bool:
        async with self._lock:
            removed = self.table.unbind(slot_type, plugin_id, stream_id)
            if removed:
                self._save()
            return removed

    async def auto_map(self, plugin_id: str) -> int:
        async with self._lock:
            created = self.table.auto_map(plugin_id)
            if created > 0:
                self._save()
            return created

    async def clear_mappings(self) -> int:
        async with self._lock:
            removed = self.table.clear()
            self._save()
            log.info("cleared %d mapping(s)" % removed)
            return removed

    # --- ingest path ---

    def ingest(self, plugin_id: str, stream_id: str, value,
               timestamp: Optional[int] = None) -> None:
        self._enqueue((plugin_id, stream_id, value, timestamp))

    def ingest_packet(self, plugin_id: str, packet: Dict,
                      timestamp: Optional[int] = None) -> None:
        """
        Queue a complete dashboard frame from a driver. The frame is served
        as is until the driver is disabled, faults or is uninstalled.
        """
        self._enqueue((plugin_id, _PACKET, packet, timestamp))

    def ingest_threadsafe(self, plugin_id: str, stream_id: str, value,
                          timestamp: Optional[int] = None) -> None:
        """Entry point for drivers running in their own thread"""
        if timestamp is None:
            timestamp = time_now()
        if self._loop is None:
            raise RuntimeError("engine is not running")
        self._loop.call_soon_threadsafe(self.ingest, plugin_id, stream_id, value, timestamp)

    def drain(self) -> int:
        """Apply every queued event, returns the number applied"""
        count = 0
        while len(self._queue) > 0:
            (plugin_id, stream_id, value, timestamp) = self._queue.popleft()
            try:
                if stream_id is _PACKET:
                    self.table.ingest_packet(plugin_id, value, timestamp)
                else:
                    self.table.ingest(plugin_id, stream_id, value, timestamp)
            except Exception as e:
                # the event is dropped, later events are still applied
                log.warning("dropped event from plugin [%r]: %s" % (plugin_id, e))
                self.stats.malformed += 1
                continue
            count += 1
        return count

    async def _ingest_loop(self):
        while True:
            await self._queue_event.wait()
            self._queue_event.clear()
            self.drain()

    def _enqueue(self, event: Tuple):
        (plugin_id, stream_id, value, timestamp) = event
        if timestamp is None:
            event = (plugin_id, stream_id, value, time_now())
        if len(self._queue) == self._queue.maxlen:
            self.stats.overflow += 1
        self._queue.append(event)
        if self._queue_event is not None:
            self._queue_event.set()

    # --- subscriptions ---

    def subscribe(self, maxsize: int = 10) -> Subscription:
        """
        Receive a monitor snapshot every poll interval. Nothing is computed
        while there are no subscribers.
        """
        queue = asyncio.Queue(maxsize)
        self._subscribers.append(queue)
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll())
            self._poll_task.set_name("SensorEngine: monitor")

        def unsubscribe():
            if queue in self._subscribers:
                self._subscribers.remove(queue)
            if len(self._subscribers) == 0 and self._poll_task is not None:
                self._poll_task.cancel()
                self._poll_task = None

        return Subscription(queue, unsubscribe)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def _poll(self):
        while True:
            snapshot = self.monitor_snapshot()
            for queue in list(self._subscribers):
                if queue.full():
                    queue.get_nowait()  # slow consumer, drop the oldest
                queue.put_nowait(snapshot)
            await asyncio.sleep(self.poll_interval)

    # --- internals ---

    async def _update(self, source: ManifestSource) -> PluginInstance:
        # caller holds the lock
        if not isinstance(source, PluginManifest):
            source = manifest.from_json(source)
        plugin_id = source.id
        previous = self.store.find(plugin_id)
        instance = self.store.replace_manifest(plugin_id, source)
        self._save()
        if self.driver_host is not None and previous.enabled:
            await self._stop_driver(previous)
            instance = await self._start_driver(plugin_id)
        return instance

    async def _start_driver(self, plugin_id: str) -> PluginInstance:
        # caller holds the lock
        if self.driver_host is None:
            instance = self.store.enable(plugin_id)
            self._save()
            return instance
        instance = self.store.begin_loading(plugin_id)
        self._save()
        try:
            await self.driver_host.start(instance)
        except Exception as e:
            message = str(e) or type(e).__name__
            self.store.fault(plugin_id, message)
            self._save()
            raise PluginFault("plugin [%s] failed to start: %s" % (plugin_id, message)) from e
        instance = self.store.enable(plugin_id)
        self._save()
        return instance

    async def _stop_driver(self, instance: PluginInstance):
        if self.driver_host is None:
            return
        try:
            await self.driver_host.stop(instance)
        except Exception as e:
            log.warning("plugin [%s] did not stop cleanly: %s" % (instance.id, e))

    def _save(self):
        if self.db is None:
            return
        try:
            sync_state.save(self.db, self.store, self.table)
        except SQLAlchemyError as e:
            log.error("Cannot save engine state: %s" % e)
            self.db.rollback()
