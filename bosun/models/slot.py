from typing import List, Dict, Optional, Callable
import numbers

from bosun.errors import SlotNotFound


class SlotDefinition:
    """
    Attributes:
        slot_type (str): stable identifier, consumed by dashboard widgets by name
        label (str): display name
        category (str): one of :data:`CATEGORIES`
        expected_data_type (str): data type a stream must advertise to feed this slot
    """

    def __init__(self, slot_type: str, label: str, category: str,
                 expected_data_type: Optional[str] = None):
        self.slot_type = slot_type
        self.label = label
        self.category = category
        if expected_data_type is None:
            expected_data_type = slot_type
        self.expected_data_type = expected_data_type

    def __repr__(self):
        return "<SlotDefinition(slot_type='%s', category='%s', expected_data_type='%s')>" % (
            self.slot_type, self.category, self.expected_data_type)

    def to_json(self) -> Dict:
        return {
            'slot_type': self.slot_type,
            'label': self.label,
            'category': self.category,
            'expected_data_type': self.expected_data_type
        }


CATEGORIES = ['Navigation', 'Environment', 'Electrical', 'Propulsion']

SLOT_DEFINITIONS = [
    SlotDefinition('position', 'Position', 'Navigation'),
    SlotDefinition('speed_over_ground', 'Speed Over Ground', 'Navigation'),
    SlotDefinition('course_over_ground', 'Course Over Ground', 'Navigation'),
    SlotDefinition('heading_magnetic', 'Heading Magnetic', 'Navigation'),
    SlotDefinition('heading_true', 'Heading True', 'Navigation'),
    SlotDefinition('attitude', 'Attitude', 'Navigation'),
    SlotDefinition('depth', 'Depth', 'Environment'),
    SlotDefinition('wind_apparent', 'Apparent Wind', 'Environment'),
    SlotDefinition('wind_true', 'True Wind', 'Environment'),
    SlotDefinition('temperature_engine', 'Engine Temperature', 'Environment'),
    SlotDefinition('temperature_cabin', 'Cabin Temperature', 'Environment'),
    SlotDefinition('temperature_outside', 'Outside Temperature', 'Environment'),
    SlotDefinition('temperature_battery', 'Battery Temperature', 'Environment'),
    SlotDefinition('battery_voltage', 'Battery Voltage', 'Electrical'),
    SlotDefinition('battery_current', 'Battery Current', 'Electrical'),
    SlotDefinition('battery_soc', 'Battery SOC', 'Electrical'),
    SlotDefinition('battery_temperature', 'Battery Compartment Temp', 'Electrical'),
    SlotDefinition('motor_state', 'Motor State', 'Propulsion'),
    SlotDefinition('motor_temperature', 'Motor Temperature', 'Propulsion'),
    SlotDefinition('motor_throttle', 'Motor Throttle', 'Propulsion'),
]


class SlotCatalog:
    """
    Read-only table of the sensor slots the dashboard understands
    """

    def __init__(self, definitions: Optional[List[SlotDefinition]] = None):
        if definitions is None:
            definitions = SLOT_DEFINITIONS
        self._slots: List[SlotDefinition] = list(definitions)
        self._index: Dict[str, SlotDefinition] = dict(
            (slot.slot_type, slot) for slot in self._slots)

    def slots(self) -> List[SlotDefinition]:
        return list(self._slots)

    def by_category(self, category: str) -> List[SlotDefinition]:
        return [slot for slot in self._slots if slot.category == category]

    def categories(self) -> List[str]:
        result = []
        for slot in self._slots:
            if slot.category not in result:
                result.append(slot.category)
        return result

    def get(self, slot_type: str) -> Optional[SlotDefinition]:
        return self._index.get(slot_type, None)

    def find(self, slot_type: str) -> SlotDefinition:
        slot = self.get(slot_type)
        if slot is None:
            raise SlotNotFound("slot [%s] does not exist" % slot_type)
        return slot

    def __contains__(self, slot_type: str) -> bool:
        return slot_type in self._index

    def __len__(self):
        return len(self._slots)


# --- value validation for the ingest path ---

def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _has_numbers(value, *keys) -> bool:
    if not isinstance(value, dict):
        return False
    return all(_is_number(value.get(key)) for key in keys)


def _valid_position(value) -> bool:
    return (_has_numbers(value, 'latitude', 'longitude') or
            _has_numbers(value, 'lat', 'lon'))


def _valid_attitude(value) -> bool:
    return _has_numbers(value, 'roll', 'pitch', 'yaw')


def _valid_wind(value) -> bool:
    return _is_number(value) or _has_numbers(value, 'speed', 'angle')


def _valid_motor_state(value) -> bool:
    return isinstance(value, str) and len(value) > 0


VALIDATORS: Dict[str, Callable[[object], bool]] = {
    'position': _valid_position,
    'attitude': _valid_attitude,
    'wind_apparent': _valid_wind,
    'wind_true': _valid_wind,
    'motor_state': _valid_motor_state,
}


def validate_value(data_type: str, value) -> bool:
    """
    True if [value] has the shape expected for [data_type]. Built-in slot
    types without a structured shape are numeric, unknown types accept any
    non-null value.
    """
    if value is None:
        return False
    if data_type in VALIDATORS:
        return VALIDATORS[data_type](value)
    for slot in SLOT_DEFINITIONS:
        if slot.expected_data_type == data_type:
            return _is_number(value)
    return True
