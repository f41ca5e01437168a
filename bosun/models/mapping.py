from sqlalchemy import Column, String, Boolean
from typing import Dict, Optional

from bosun.models.meta import Base


class SensorMapping:
    """
    Binding of a sensor slot to one plugin stream. At most one mapping per
    slot is active at any time.

    Attributes:
        slot_type (str): mapped slot
        plugin_id (str): plugin producing the stream
        stream_id (str): stream id within the plugin
        active (bool): whether values from the stream reach the slot
        last_update (int): UNIX millisecond timestamp of the last value, None if no data
        last_value: last value received from the stream
    """

    def __init__(self, slot_type: str, plugin_id: str, stream_id: str,
                 active: bool = True, last_update: Optional[int] = None,
                 last_value=None):
        self.slot_type = slot_type
        self.plugin_id = plugin_id
        self.stream_id = stream_id
        self.active = active
        self.last_update = last_update
        self.last_value = last_value

    def __repr__(self):
        return "<SensorMapping(slot_type='%s', plugin_id='%s', stream_id='%s', active=%r)>" % (
            self.slot_type, self.plugin_id, self.stream_id, self.active)

    def matches(self, slot_type: str, plugin_id: str, stream_id: str) -> bool:
        return (self.slot_type == slot_type and
                self.plugin_id == plugin_id and
                self.stream_id == stream_id)

    def copy(self) -> 'SensorMapping':
        return SensorMapping(self.slot_type, self.plugin_id, self.stream_id,
                             self.active, self.last_update, self.last_value)

    def to_json(self) -> Dict:
        return {
            'slot_type': self.slot_type,
            'plugin_id': self.plugin_id,
            'stream_id': self.stream_id,
            'active': self.active,
            'last_update': self.last_update,
            'last_value': self.last_value
        }


class MappingRecord(Base):
    """
    Persisted form of a :class:`SensorMapping`, live values are not stored
    """
    __tablename__ = 'sensor_mapping'

    slot_type: str = Column(String, primary_key=True)
    plugin_id: str = Column(String, primary_key=True)
    stream_id: str = Column(String, primary_key=True)
    active: bool = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return "<MappingRecord(slot_type=%r, plugin_id=%r, stream_id=%r, active=%r)>" % (
            self.slot_type, self.plugin_id, self.stream_id, self.active)

    def to_mapping(self) -> SensorMapping:
        return SensorMapping(self.slot_type, self.plugin_id, self.stream_id,
                             active=self.active)
