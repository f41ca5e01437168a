from typing import List, Dict, Optional
import enum
import re

from bosun.errors import InvalidManifest

"""
Manifest (installed, bundled or registry provided):
{
  "id": "gps-driver",
  "name": "GPS Driver",
  "version": "1.0.2",
  "type": "driver",               # driver | ui-extension | service | integration
  "author": "...",
  "description": "...",
  "builtin": false,               # optional, builtin plugins cannot be uninstalled
  "flag": "official",             # optional registry badge
  "driver": {                     # driver plugins only
    "protocol": "nmea0183",
    "dataStreams": [
      {"id": "pos", "name": "GPS Position", "dataType": "position"}
    ]
  },
  "payload": {"file": "plugin.tar.gz", "sha256": "..."}   # optional
}
"""


class DataStreamDeclaration:
    """
    Attributes:
        id (str): stream id, unique within the plugin
        name (str): display name
        data_type (str): matched against a slot's expected data type
    """

    def __init__(self, id: str, name: str, data_type: str):
        self.id = id
        self.name = name
        self.data_type = data_type

    def __repr__(self):
        return "<DataStreamDeclaration(id='%s', data_type='%s')>" % (self.id, self.data_type)

    def to_json(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'dataType': self.data_type
        }


class PluginManifest:
    """
    Declared identity and capabilities of a plugin. Manifests are immutable,
    an update replaces the whole manifest.
    """

    class TYPE(enum.Enum):
        DRIVER = 'driver'
        UI_EXTENSION = 'ui-extension'
        SERVICE = 'service'
        INTEGRATION = 'integration'

    def __init__(self, id: str, name: str, version: str, type: 'PluginManifest.TYPE',
                 author: str, description: str = "", builtin: bool = False,
                 flag: Optional[str] = None, protocol: Optional[str] = None,
                 data_streams: Optional[List[DataStreamDeclaration]] = None,
                 payload: Optional[Dict[str, str]] = None):
        self.id = id
        self.name = name
        self.version = version
        self.type = type
        self.author = author
        self.description = description
        self.builtin = builtin
        self.flag = flag
        self.protocol = protocol
        if data_streams is None:
            data_streams = []
        self.data_streams: List[DataStreamDeclaration] = data_streams
        self.payload = payload

    def __repr__(self):
        return "<PluginManifest(id='%s', version='%s', type=%s)>" % (
            self.id, self.version, self.type.value)

    @property
    def is_driver(self) -> bool:
        return self.type == PluginManifest.TYPE.DRIVER

    def stream(self, stream_id: str) -> Optional[DataStreamDeclaration]:
        for declaration in self.data_streams:
            if declaration.id == stream_id:
                return declaration
        return None

    def to_json(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'version': self.version,
            'type': self.type.value,
            'author': self.author,
            'description': self.description,
            'builtin': self.builtin,
        }
        if self.flag is not None:
            data['flag'] = self.flag
        if self.is_driver:
            data['driver'] = {
                'protocol': self.protocol,
                'dataStreams': [s.to_json() for s in self.data_streams]
            }
        if self.payload is not None:
            data['payload'] = dict(self.payload)
        return data


def from_json(data: Dict) -> PluginManifest:
    """
    Construct a PluginManifest from a manifest document

    Raises: InvalidManifest
    """
    if not isinstance(data, dict):
        raise InvalidManifest("manifest must be an object")
    try:
        plugin_id = validate_id(data['id'])
        name = validate_text(data['name'], 'name')
        version = validate_version(data['version'])
        plugin_type = validate_type(data['type'])
        author = validate_text(data['author'], 'author')
    except KeyError as e:
        raise InvalidManifest("manifest missing [%s]" % e.args[0]) from e
    description = data.get('description', "") or ""
    if not isinstance(description, str):
        raise InvalidManifest("[description] must be a string")
    builtin = data.get('builtin', False)
    if not isinstance(builtin, bool):
        raise InvalidManifest("[builtin] must be true or false")
    flag = data.get('flag', None)
    if flag is not None and not isinstance(flag, str):
        raise InvalidManifest("[flag] must be a string")

    protocol = None
    streams = []
    if plugin_type == PluginManifest.TYPE.DRIVER and data.get('driver') is not None:
        driver = data['driver']
        if not isinstance(driver, dict):
            raise InvalidManifest("[driver] must be an object")
        protocol = driver.get('protocol', None)
        streams = _parse_streams(driver.get('dataStreams', []))

    payload = data.get('payload', None)
    if payload is not None:
        if not isinstance(payload, dict) or not isinstance(payload.get('file'), str):
            raise InvalidManifest("[payload] must specify a file")
        payload = {'file': payload['file'], 'sha256': payload.get('sha256', None)}

    return PluginManifest(id=plugin_id, name=name, version=version, type=plugin_type,
                          author=author, description=description, builtin=builtin,
                          flag=flag, protocol=protocol, data_streams=streams,
                          payload=payload)


def _parse_streams(items) -> List[DataStreamDeclaration]:
    if not isinstance(items, list):
        raise InvalidManifest("[dataStreams] must be a list")
    streams = []
    ids = set()
    for item in items:
        if not isinstance(item, dict):
            raise InvalidManifest("[dataStreams] entries must be objects")
        try:
            stream_id = validate_text(item['id'], 'dataStreams.id')
            data_type = validate_text(item['dataType'], 'dataStreams.dataType')
        except KeyError as e:
            raise InvalidManifest("data stream missing [%s]" % e.args[0]) from e
        if stream_id in ids:
            raise InvalidManifest("duplicate data stream [%s]" % stream_id)
        ids.add(stream_id)
        name = item.get('name', stream_id) or stream_id
        streams.append(DataStreamDeclaration(stream_id, name, data_type))
    return streams


def validate_id(plugin_id) -> str:
    if not isinstance(plugin_id, str) or \
            re.fullmatch(r'^[A-Za-z0-9][A-Za-z0-9._-]*$', plugin_id) is None:
        raise InvalidManifest("invalid plugin id [%s], valid characters: [0-9,A-Z,a-z,.,_,-]" % plugin_id)
    return plugin_id


def validate_version(version) -> str:
    # used as an install directory name
    if not isinstance(version, str) or '..' in version or \
            re.fullmatch(r'^[A-Za-z0-9][A-Za-z0-9.+_-]*$', version) is None:
        raise InvalidManifest("invalid version [%s], valid characters: [0-9,A-Z,a-z,.,+,_,-]" % version)
    return version


def validate_text(value, field: str) -> str:
    if not isinstance(value, str) or len(value.strip()) == 0:
        raise InvalidManifest("[%s] must be a non-empty string" % field)
    return value


def validate_type(value) -> PluginManifest.TYPE:
    try:
        return PluginManifest.TYPE(value)
    except ValueError:
        valid = ", ".join(t.value for t in PluginManifest.TYPE)
        raise InvalidManifest("invalid plugin type [%s], must be one of [%s]" % (value, valid))
