from typing import List, Dict, Optional, Tuple
import collections


class DebugEntry:

    def __init__(self, plugin_id: str, stream_id: str, value, timestamp: int,
                 data_type: Optional[str] = None):
        self.plugin_id = plugin_id
        self.stream_id = stream_id
        self.data_type = data_type
        self.value = value
        self.timestamp = timestamp

    def __repr__(self):
        return "<DebugEntry(plugin_id='%s', stream_id='%s', value=%r, timestamp=%d)>" % (
            self.plugin_id, self.stream_id, self.value, self.timestamp)

    def to_json(self) -> Dict:
        return {
            'plugin_id': self.plugin_id,
            'stream_id': self.stream_id,
            'data_type': self.data_type,
            'value': self.value,
            'timestamp': self.timestamp
        }


class DebugTap:
    """
    Bounded rolling log of raw values seen on the ingest path, the oldest
    entry is dropped when the tap is full
    """

    def __init__(self, capacity: int = 200):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._entries = collections.deque([], maxlen=capacity)

    def record(self, entry: DebugEntry) -> None:
        self._entries.append(entry)

    def recent(self, since: Optional[int] = None,
               limit: Optional[int] = None) -> List[DebugEntry]:
        """
        Entries in chronological (arrival) order, optionally only those with
        a timestamp >= [since] and only the last [limit] of them
        """
        entries = list(self._entries)
        if since is not None:
            entries = [e for e in entries if e.timestamp >= since]
        if limit is not None:
            if limit <= 0:
                return []
            entries = entries[-limit:]
        return entries

    def latest(self) -> List[DebugEntry]:
        """
        Most recent entry for each (plugin, stream)
        """
        latest: Dict[Tuple[str, str], DebugEntry] = collections.OrderedDict()
        for entry in self._entries:
            key = (entry.plugin_id, entry.stream_id)
            latest.pop(key, None)
            latest[key] = entry
        return list(latest.values())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
