from sqlalchemy import Column, Integer, String, Text
from typing import Dict, Optional
import enum
import json

from bosun.models.meta import Base
from bosun.models import manifest
from bosun.models.manifest import PluginManifest


class PluginInstance:
    """
    An installed plugin: its manifest plus runtime status. Instances handed
    out by :class:`PluginManifestStore` are copies, changing them has no
    effect on the store.

    Attributes:
        manifest (PluginManifest): declared identity and capabilities
        installed_version (str): version of the installed manifest
        status (PluginInstance.STATUS): runtime status
        last_error (str): diagnostic message, only set in the ERROR status
        position (int): install order
    """

    class STATUS(enum.Enum):
        INSTALLED = 'installed'
        ENABLED = 'enabled'
        DISABLED = 'disabled'
        LOADING = 'loading'
        ERROR = 'error'

    def __init__(self, plugin_manifest: PluginManifest,
                 status: 'PluginInstance.STATUS' = STATUS.INSTALLED,
                 last_error: Optional[str] = None,
                 installed_version: Optional[str] = None,
                 position: int = 0):
        self.manifest = plugin_manifest
        if installed_version is None:
            installed_version = plugin_manifest.version
        self.installed_version = installed_version
        self.status = status
        self.last_error = last_error
        self.position = position

    def __repr__(self):
        return "<PluginInstance(id='%s', version='%s', status=%s)>" % (
            self.id, self.installed_version, self.status.value)

    @property
    def id(self) -> str:
        return self.manifest.id

    @property
    def builtin(self) -> bool:
        return self.manifest.builtin

    @property
    def enabled(self) -> bool:
        """
        bool: true if the user has switched the plugin on
        """
        return self.status in [PluginInstance.STATUS.ENABLED,
                               PluginInstance.STATUS.LOADING]

    def copy(self) -> 'PluginInstance':
        return PluginInstance(self.manifest, self.status, self.last_error,
                              self.installed_version, self.position)

    def to_json(self) -> Dict:
        return {
            'id': self.id,
            'manifest': self.manifest.to_json(),
            'installed_version': self.installed_version,
            'status': self.status.value,
            'enabled': self.enabled,
            'error': self.last_error
        }


class PluginRecord(Base):
    """
    Persisted form of a :class:`PluginInstance`, keyed by plugin id
    """
    __tablename__ = 'plugin'

    id: str = Column(String, primary_key=True)
    manifest: str = Column(Text, nullable=False)
    installed_version: str = Column(String, nullable=False)
    status: str = Column(String, nullable=False)
    last_error: str = Column(String)
    position: int = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return "<PluginRecord(id=%r, status=%r)>" % (self.id, self.status)

    def update_from(self, instance: PluginInstance) -> None:
        self.manifest = json.dumps(instance.manifest.to_json())
        self.installed_version = instance.installed_version
        self.status = instance.status.value
        self.last_error = instance.last_error
        self.position = instance.position

    def to_instance(self) -> PluginInstance:
        return PluginInstance(manifest.from_json(json.loads(self.manifest)),
                              status=PluginInstance.STATUS(self.status),
                              last_error=self.last_error,
                              installed_version=self.installed_version,
                              position=self.position)


def record_from_instance(instance: PluginInstance) -> PluginRecord:
    record = PluginRecord(id=instance.id)
    record.update_from(instance)
    return record
