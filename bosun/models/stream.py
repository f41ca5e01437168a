from typing import Dict


class StreamDescriptor:
    """
    One live data feed an enabled driver plugin can emit. Descriptors are
    derived from plugin manifests and never persisted.

    Attributes:
        plugin_id (str): id of the producing plugin
        plugin_name (str): display name of the producing plugin
        stream_id (str): stream id, unique within the plugin
        stream_name (str): display name
        data_type (str): matched against a slot's expected data type
    """

    def __init__(self, plugin_id: str, stream_id: str, stream_name: str,
                 data_type: str, plugin_name: str = ""):
        self.plugin_id = plugin_id
        self.plugin_name = plugin_name
        self.stream_id = stream_id
        self.stream_name = stream_name
        self.data_type = data_type

    def __repr__(self):
        return "<StreamDescriptor(plugin_id='%s', stream_id='%s', data_type='%s')>" % (
            self.plugin_id, self.stream_id, self.data_type)

    def __eq__(self, other):
        if not isinstance(other, StreamDescriptor):
            return NotImplemented
        return (self.plugin_id, self.stream_id, self.data_type) == \
               (other.plugin_id, other.stream_id, other.data_type)

    def __hash__(self):
        return hash((self.plugin_id, self.stream_id))

    @property
    def key(self):
        return self.plugin_id, self.stream_id

    def to_json(self) -> Dict:
        return {
            'plugin_id': self.plugin_id,
            'plugin_name': self.plugin_name,
            'stream_id': self.stream_id,
            'stream_name': self.stream_name,
            'data_type': self.data_type
        }
