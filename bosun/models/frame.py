from typing import Dict, Optional

from bosun.utilities import time_now

"""
Assembles the dashboard frame from the latest slot values. Unmapped slots
fall back to neutral defaults, temperatures are in Kelvin and speeds in m/s.
"""


def _pair(value, first: str, second: str) -> Dict:
    # wind values may be a bare speed or a {speed, angle} mapping
    if isinstance(value, dict):
        return {first: value.get(first, 0), second: value.get(second, 0)}
    if value is None:
        return {first: 0, second: 0}
    return {first: value, second: 0}


def _position(value, now: int) -> Dict:
    if not isinstance(value, dict):
        return {'latitude': 0, 'longitude': 0, 'timestamp': now}
    return {
        'latitude': value.get('latitude', value.get('lat', 0)),
        'longitude': value.get('longitude', value.get('lon', 0)),
        'timestamp': value.get('timestamp', now)
    }


def assemble(values: Dict[str, object], now: Optional[int] = None) -> Dict:
    if now is None:
        now = time_now()

    def get(slot: str, default=None):
        value = values.get(slot, None)
        return default if value is None else value

    heading_magnetic = get('heading_magnetic', 0)
    wind_apparent = _pair(get('wind_apparent'), 'speed', 'angle')
    wind_true = _pair(get('wind_true'), 'speed', 'angle')

    return {
        'timestamp': now,
        'navigation': {
            'position': _position(get('position'), now),
            'course_over_ground': get('course_over_ground', 0),
            'speed_over_ground': get('speed_over_ground', 0),
            'heading_magnetic': heading_magnetic,
            'heading_true': get('heading_true', heading_magnetic),
            'attitude': get('attitude', {'roll': 0, 'pitch': 0, 'yaw': 0}),
        },
        'environment': {
            'depth': {'below_transducer': get('depth', 10)},
            'wind': {
                'speed_apparent': wind_apparent['speed'],
                'angle_apparent': wind_apparent['angle'],
                'speed_true': wind_true['speed'],
                'angle_true': wind_true['angle'],
            },
            'temperature': {
                'engine_room': get('temperature_engine', 301),
                'cabin': get('temperature_cabin', 295),
                'battery_compartment': get('temperature_battery', 297),
                'outside': get('temperature_outside', 291),
            },
        },
        'electrical': {
            'battery': {
                'voltage': get('battery_voltage', 12),
                'current': get('battery_current', 0),
                'temperature': get('battery_temperature', 297),
                'state_of_charge': get('battery_soc', 75),
            },
        },
        'propulsion': {
            'motor': {
                'state': get('motor_state', 'stopped'),
                'temperature': get('motor_temperature', 298),
                'throttle': get('motor_throttle', 0),
            },
        },
    }


def passthrough(packet: Dict, timestamp: int) -> Dict:
    # a driver packet is served verbatim, only a missing timestamp is filled
    frame = dict(packet)
    frame.setdefault('timestamp', timestamp)
    return frame
