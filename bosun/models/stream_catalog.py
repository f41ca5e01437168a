from typing import List, Dict, Tuple, Optional

from bosun.models.plugin import PluginInstance
from bosun.models.plugin_store import PluginManifestStore
from bosun.models.stream import StreamDescriptor

StreamKey = Tuple[str, str]


class StreamCatalog:
    """
    Streams currently available for mapping: the declared data streams of
    every driver plugin with status ENABLED. The catalog is a pure
    derivation of the plugin store and is rebuilt whenever the store changes.
    """

    def __init__(self, store: PluginManifestStore):
        self.store = store
        self._revision = None
        self._streams: List[StreamDescriptor] = []
        self._index: Dict[StreamKey, StreamDescriptor] = {}

    def available_streams(self) -> List[StreamDescriptor]:
        self._refresh()
        return list(self._streams)

    def streams_for_data_type(self, data_type: str) -> List[StreamDescriptor]:
        self._refresh()
        return [s for s in self._streams if s.data_type == data_type]

    def streams_for_plugin(self, plugin_id: str) -> List[StreamDescriptor]:
        self._refresh()
        return [s for s in self._streams if s.plugin_id == plugin_id]

    def find(self, plugin_id: str, stream_id: str) -> Optional[StreamDescriptor]:
        self._refresh()
        return self._index.get((plugin_id, stream_id), None)

    def _refresh(self):
        if self._revision == self.store.revision:
            return
        streams = []
        for instance in self.store.list_instances():
            if instance.status != PluginInstance.STATUS.ENABLED:
                continue
            if not instance.manifest.is_driver:
                continue
            for declaration in instance.manifest.data_streams:
                streams.append(StreamDescriptor(plugin_id=instance.id,
                                                plugin_name=instance.manifest.name,
                                                stream_id=declaration.id,
                                                stream_name=declaration.name,
                                                data_type=declaration.data_type))
        self._streams = streams
        self._index = dict((s.key, s) for s in streams)
        self._revision = self.store.revision
