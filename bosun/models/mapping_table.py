from typing import List, Dict, Optional
import collections
import numbers
import logging
import math
import copy

from bosun.errors import StreamNotFound, TypeMismatch
from bosun.models.slot import SlotCatalog, validate_value
from bosun.models.stream_catalog import StreamCatalog
from bosun.models.mapping import SensorMapping
from bosun.models.plugin import PluginInstance
from bosun.models.debug_tap import DebugTap, DebugEntry

log = logging.getLogger('bosun')


def _valid_timestamp(timestamp) -> bool:
    if not isinstance(timestamp, numbers.Real) or isinstance(timestamp, bool):
        return False
    return math.isfinite(timestamp)


class IngestStats:
    """
    Counters for the ingest path, dropped values are never reported as errors
    """

    def __init__(self):
        self.accepted = 0
        self.unmapped = 0
        self.unknown = 0
        self.malformed = 0
        self.out_of_order = 0
        self.overflow = 0

    def to_json(self) -> Dict:
        return {
            'accepted': self.accepted,
            'unmapped': self.unmapped,
            'unknown': self.unknown,
            'malformed': self.malformed,
            'out_of_order': self.out_of_order,
            'overflow': self.overflow
        }


class MappingTable:
    """
    Routing table binding each sensor slot to at most one live stream.

    The table registers itself with the plugin store so that disabling a
    plugin (or a driver fault) deactivates its mappings, uninstalling
    removes them and updating a manifest drops the mappings to streams that
    no longer exist. It also holds the last whole-frame packet pushed by a
    driver, cleared when that driver stops.
    """

    def __init__(self, slots: SlotCatalog, catalog: StreamCatalog,
                 tap: Optional[DebugTap] = None):
        self.slots = slots
        self.catalog = catalog
        self.tap = tap
        self.stats = IngestStats()
        # in creation order
        self._mappings: List[SensorMapping] = []
        # whole frame pushed by a driver, not persisted
        self._packet: Optional[Dict] = None
        self.packet_plugin: Optional[str] = None
        self.packet_update: Optional[int] = None
        catalog.store.add_listener(self._on_plugin_event)

    # --- reads ---

    def snapshot(self) -> List[SensorMapping]:
        return [m.copy() for m in self._mappings]

    def active_for(self, slot_type: str) -> Optional[SensorMapping]:
        mapping = self._active(slot_type)
        if mapping is None:
            return None
        return mapping.copy()

    def slot_values(self) -> Dict[str, object]:
        """
        Latest value of every active mapping that has received data
        """
        return dict((m.slot_type, m.last_value) for m in self._mappings
                    if m.active and m.last_update is not None)

    # --- commands ---

    def bind(self, slot_type: str, plugin_id: str, stream_id: str) -> SensorMapping:
        slot = self.slots.find(slot_type)
        stream = self.catalog.find(plugin_id, stream_id)
        if stream is None:
            raise StreamNotFound("stream [%s] of plugin [%s] is not available" % (stream_id, plugin_id))
        if stream.data_type != slot.expected_data_type:
            raise TypeMismatch("stream [%s] provides [%s] but slot [%s] expects [%s]" %
                               (stream_id, stream.data_type, slot_type, slot.expected_data_type))
        current = self._active(slot_type)
        if current is not None and current.matches(slot_type, plugin_id, stream_id):
            return current.copy()
        mapping = self._find(slot_type, plugin_id, stream_id)
        # replace the active mapping in one step, last bind wins
        if current is not None:
            current.active = False
        if mapping is None:
            mapping = SensorMapping(slot_type, plugin_id, stream_id)
            self._mappings.append(mapping)
        mapping.active = True
        mapping.last_update = None
        mapping.last_value = None
        log.info("mapped slot [%s] to [%s:%s]" % (slot_type, plugin_id, stream_id))
        return mapping.copy()

    def unbind(self, slot_type: str, plugin_id: str, stream_id: str) -> bool:
        """
        Remove the active mapping of [slot_type] only if it is exactly
        (plugin_id, stream_id), otherwise do nothing. Returns True if a
        mapping was removed.
        """
        current = self._active(slot_type)
        if current is None or not current.matches(slot_type, plugin_id, stream_id):
            return False
        self._mappings.remove(current)
        log.info("unmapped slot [%s] from [%s:%s]" % (slot_type, plugin_id, stream_id))
        return True

    def clear(self) -> int:
        """
        Remove every active mapping, returns the number removed
        """
        removed = [m for m in self._mappings if m.active]
        self._mappings = [m for m in self._mappings if not m.active]
        return len(removed)

    def auto_map(self, plugin_id: str) -> int:
        """
        Bind the streams of [plugin_id] to unmapped slots. A stream is bound
        only when its data type matches exactly one unmapped slot and no other
        available stream competes for that slot. Returns the number of new
        mappings.
        """
        instance = self.catalog.store.find(plugin_id)
        if instance.status != PluginInstance.STATUS.ENABLED:
            return 0
        unmapped_slots = collections.defaultdict(list)
        for slot in self.slots.slots():
            if self._active(slot.slot_type) is None:
                unmapped_slots[slot.expected_data_type].append(slot)
        candidate_streams = collections.defaultdict(list)
        for stream in self.catalog.available_streams():
            candidate_streams[stream.data_type].append(stream)

        created = 0
        for stream in self.catalog.streams_for_plugin(plugin_id):
            slots = unmapped_slots.get(stream.data_type, [])
            streams = candidate_streams.get(stream.data_type, [])
            if len(slots) != 1 or len(streams) != 1:
                continue  # ambiguous or nothing to map
            self.bind(slots[0].slot_type, plugin_id, stream.stream_id)
            created += 1
        log.info("auto-mapped %d stream(s) of plugin [%s]" % (created, plugin_id))
        return created

    def ingest(self, plugin_id: str, stream_id: str, value, timestamp: int) -> bool:
        """
        Record a value pushed by a driver. Returns True if it updated an
        active mapping. Unknown streams and malformed values are dropped
        and counted.
        """
        if not isinstance(plugin_id, str) or not isinstance(stream_id, str):
            self.stats.malformed += 1
            return False
        stream = self.catalog.find(plugin_id, stream_id)
        if stream is None:
            self.stats.unknown += 1
            return False
        if not _valid_timestamp(timestamp):
            self.stats.malformed += 1
            return False
        if not validate_value(stream.data_type, value):
            self.stats.malformed += 1
            return False
        timestamp = int(timestamp)
        if self.tap is not None:
            self.tap.record(DebugEntry(plugin_id, stream_id, value, timestamp,
                                       data_type=stream.data_type))
        updated = False
        matched = False
        for mapping in self._mappings:
            if not mapping.active or mapping.plugin_id != plugin_id or \
                    mapping.stream_id != stream_id:
                continue
            matched = True
            if mapping.last_update is not None and timestamp < mapping.last_update:
                self.stats.out_of_order += 1
                continue
            mapping.last_value = value
            mapping.last_update = timestamp
            updated = True
        if updated:
            self.stats.accepted += 1
        elif not matched:
            self.stats.unmapped += 1
        return updated

    def ingest_packet(self, plugin_id: str, packet, timestamp: int) -> bool:
        """
        Record a complete dashboard frame pushed by a driver. While a packet
        is held it replaces the frame assembled from the slots. Packets from
        plugins that are not enabled are dropped and counted as unknown.
        """
        if not isinstance(plugin_id, str) or not isinstance(packet, dict) or \
                not _valid_timestamp(timestamp):
            self.stats.malformed += 1
            return False
        if plugin_id not in self.catalog.store or \
                self.catalog.store.find(plugin_id).status != PluginInstance.STATUS.ENABLED:
            self.stats.unknown += 1
            return False
        timestamp = int(timestamp)
        if self.packet_update is not None and timestamp < self.packet_update:
            self.stats.out_of_order += 1
            return False
        self._packet = copy.deepcopy(packet)
        self.packet_plugin = plugin_id
        self.packet_update = timestamp
        self.stats.accepted += 1
        return True

    def packet(self) -> Optional[Dict]:
        if self._packet is None:
            return None
        return copy.deepcopy(self._packet)

    def clear_packet(self, plugin_id: str) -> bool:
        """
        Drop the held packet if [plugin_id] provided it
        """
        if self.packet_plugin != plugin_id:
            return False
        self._packet = None
        self.packet_plugin = None
        self.packet_update = None
        log.info("cleared packet data of plugin [%s]" % plugin_id)
        return True

    def restore(self, mapping: SensorMapping) -> None:
        """
        Load a persisted mapping. It is restored inactive if its stream is
        not available or the slot already has an active mapping.
        """
        if self._find(mapping.slot_type, mapping.plugin_id, mapping.stream_id) is not None:
            return
        mapping = mapping.copy()
        if mapping.active:
            slot = self.slots.get(mapping.slot_type)
            stream = self.catalog.find(mapping.plugin_id, mapping.stream_id)
            if (slot is None or stream is None or
                    stream.data_type != slot.expected_data_type or
                    self._active(mapping.slot_type) is not None):
                mapping.active = False
        self._mappings.append(mapping)

    # --- plugin lifecycle cascades ---

    def _on_plugin_event(self, event: str, instance: PluginInstance):
        if event in ['disabled', 'faulted']:
            # kept in the table, inactive
            for mapping in self._mappings:
                if mapping.plugin_id == instance.id:
                    mapping.active = False
            self.clear_packet(instance.id)
        elif event == 'uninstalled':
            self._mappings = [m for m in self._mappings if m.plugin_id != instance.id]
            self.clear_packet(instance.id)
        elif event == 'updated':
            retained = []
            for mapping in self._mappings:
                if mapping.plugin_id == instance.id:
                    declaration = instance.manifest.stream(mapping.stream_id)
                    slot = self.slots.get(mapping.slot_type)
                    if declaration is None or slot is None or \
                            declaration.data_type != slot.expected_data_type:
                        log.info("dropped mapping [%s] to removed stream [%s:%s]" %
                                 (mapping.slot_type, mapping.plugin_id, mapping.stream_id))
                        continue
                retained.append(mapping)
            self._mappings = retained

    # --- internals ---

    def _active(self, slot_type: str) -> Optional[SensorMapping]:
        for mapping in self._mappings:
            if mapping.active and mapping.slot_type == slot_type:
                return mapping
        return None

    def _find(self, slot_type: str, plugin_id: str, stream_id: str) -> Optional[SensorMapping]:
        for mapping in self._mappings:
            if mapping.matches(slot_type, plugin_id, stream_id):
                return mapping
        return None
