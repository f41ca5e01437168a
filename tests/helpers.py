import copy
from typing import Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from bosun.models import Base


def driver_manifest(plugin_id: str = "demo-driver",
                    streams: Optional[List] = None,
                    version: str = "1.0.0",
                    builtin: bool = False) -> Dict:
    """Manifest document for a driver plugin, streams are (id, data_type) tuples"""
    if streams is None:
        streams = [('gps', 'position'), ('sog', 'speed_over_ground')]
    return {
        'id': plugin_id,
        'name': "%s plugin" % plugin_id,
        'version': version,
        'type': 'driver',
        'author': 'Bosun Tests',
        'description': 'test driver',
        'builtin': builtin,
        'driver': {
            'protocol': 'nmea0183',
            'dataStreams': [{'id': stream_id, 'name': stream_id.upper(), 'dataType': data_type}
                            for (stream_id, data_type) in streams]
        }
    }


def ui_manifest(plugin_id: str = "night-theme") -> Dict:
    return {
        'id': plugin_id,
        'name': 'Night Theme',
        'version': '0.2.0',
        'type': 'ui-extension',
        'author': 'Bosun Tests',
    }


def modified(manifest: Dict, **kwargs) -> Dict:
    data = copy.deepcopy(manifest)
    data.update(kwargs)
    return data


def create_db() -> Session:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    return Session(bind=engine)


class MockDriverHost:
    """Records start/stop calls, set [fail] to make start raise"""

    def __init__(self, fail: Optional[str] = None):
        self.fail = fail
        self.started: List[str] = []
        self.stopped: List[str] = []

    async def start(self, instance):
        if self.fail is not None:
            raise RuntimeError(self.fail)
        self.started.append(instance.id)

    async def stop(self, instance):
        self.stopped.append(instance.id)
