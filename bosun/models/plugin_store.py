from typing import List, Dict, Callable, Optional, Union
import collections
import logging

from bosun.errors import DuplicatePlugin, PluginNotFound, Protected, InvalidManifest
from bosun.models import manifest
from bosun.models.manifest import PluginManifest
from bosun.models.plugin import PluginInstance

STATUS = PluginInstance.STATUS
ManifestSource = Union[Dict, PluginManifest]
Listener = Callable[[str, PluginInstance], None]

log = logging.getLogger('bosun')

# (current status, command) => next status, every pair is defined
TRANSITIONS: Dict = {}
for _status in STATUS:
    TRANSITIONS[(_status, 'enable')] = STATUS.ENABLED
    TRANSITIONS[(_status, 'disable')] = STATUS.DISABLED
    TRANSITIONS[(_status, 'fault')] = STATUS.ERROR
    if _status in [STATUS.LOADING, STATUS.ENABLED]:
        TRANSITIONS[(_status, 'loading')] = _status
    else:
        TRANSITIONS[(_status, 'loading')] = STATUS.LOADING


class PluginManifestStore:
    """
    Single owner of the installed plugins. Every change is applied in one
    step and then announced to the registered listeners with one of the
    events: installed, enabled, disabled, loading, faulted, updated, uninstalled
    """

    def __init__(self):
        self._instances: Dict[str, PluginInstance] = collections.OrderedDict()
        self._listeners: List[Listener] = []
        self._next_position = 0
        # incremented on every change, used by dependents to cache derived state
        self.revision = 0

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    # --- reads ---

    def list_instances(self) -> List[PluginInstance]:
        return [instance.copy() for instance in self._instances.values()]

    def get(self, plugin_id: str) -> Optional[PluginInstance]:
        instance = self._instances.get(plugin_id, None)
        if instance is None:
            return None
        return instance.copy()

    def find(self, plugin_id: str) -> PluginInstance:
        instance = self.get(plugin_id)
        if instance is None:
            raise PluginNotFound("plugin [%s] is not installed" % plugin_id)
        return instance

    def __contains__(self, plugin_id: str) -> bool:
        return plugin_id in self._instances

    def __len__(self):
        return len(self._instances)

    # --- commands ---

    def install(self, source: ManifestSource) -> PluginInstance:
        plugin_manifest = _to_manifest(source)
        if plugin_manifest.id in self._instances:
            raise DuplicatePlugin("plugin [%s] is already installed" % plugin_manifest.id)
        instance = PluginInstance(plugin_manifest, position=self._next_position)
        self._add(instance)
        log.info("installed plugin [%s] version %s" % (instance.id, instance.installed_version))
        return self._changed('installed', instance)

    def restore(self, instance: PluginInstance) -> None:
        """
        Load a previously persisted instance, listeners are not notified
        """
        if instance.id in self._instances:
            raise DuplicatePlugin("plugin [%s] is already installed" % instance.id)
        self._add(instance.copy())
        self.revision += 1

    def uninstall(self, plugin_id: str) -> PluginInstance:
        instance = self._get(plugin_id)
        if instance.builtin:
            raise Protected("plugin [%s] is builtin and cannot be uninstalled" % plugin_id)
        del self._instances[plugin_id]
        log.info("uninstalled plugin [%s]" % plugin_id)
        return self._changed('uninstalled', instance)

    def enable(self, plugin_id: str) -> PluginInstance:
        return self._transition(plugin_id, 'enable', 'enabled')

    def begin_loading(self, plugin_id: str) -> PluginInstance:
        return self._transition(plugin_id, 'loading', 'loading')

    def disable(self, plugin_id: str) -> PluginInstance:
        return self._transition(plugin_id, 'disable', 'disabled')

    def fault(self, plugin_id: str, message: str) -> PluginInstance:
        if message is None or len(str(message).strip()) == 0:
            message = "unknown error"
        return self._transition(plugin_id, 'fault', 'faulted', str(message))

    def replace_manifest(self, plugin_id: str, source: ManifestSource) -> PluginInstance:
        """
        Swap the manifest of an installed plugin in place, status and
        install order are kept. A builtin plugin stays builtin whatever
        the new manifest declares.
        """
        instance = self._get(plugin_id)
        plugin_manifest = _to_manifest(source)
        if plugin_manifest.id != plugin_id:
            raise InvalidManifest("manifest id [%s] does not match plugin [%s]" %
                                  (plugin_manifest.id, plugin_id))
        if instance.builtin and not plugin_manifest.builtin:
            data = plugin_manifest.to_json()
            data['builtin'] = True
            plugin_manifest = manifest.from_json(data)
        instance.manifest = plugin_manifest
        instance.installed_version = plugin_manifest.version
        log.info("updated plugin [%s] to version %s" % (plugin_id, plugin_manifest.version))
        return self._changed('updated', instance)

    # --- internals ---

    def _get(self, plugin_id: str) -> PluginInstance:
        try:
            return self._instances[plugin_id]
        except KeyError:
            raise PluginNotFound("plugin [%s] is not installed" % plugin_id)

    def _add(self, instance: PluginInstance):
        instance.position = max(instance.position, self._next_position)
        self._next_position = instance.position + 1
        self._instances[instance.id] = instance

    def _transition(self, plugin_id: str, command: str, event: str,
                    message: Optional[str] = None) -> PluginInstance:
        instance = self._get(plugin_id)
        new_status = TRANSITIONS[(instance.status, command)]
        if new_status == STATUS.ERROR:
            new_status_error = message
        else:
            new_status_error = None
        if new_status == instance.status and new_status_error == instance.last_error:
            return instance.copy()
        instance.status = new_status
        instance.last_error = new_status_error
        if new_status == STATUS.ERROR:
            log.error("plugin [%s] fault: %s" % (plugin_id, message))
        else:
            log.info("plugin [%s] is %s" % (plugin_id, new_status.value))
        return self._changed(event, instance)

    def _changed(self, event: str, instance: PluginInstance) -> PluginInstance:
        self.revision += 1
        snapshot = instance.copy()
        for listener in self._listeners:
            listener(event, snapshot)
        return snapshot


def _to_manifest(source: ManifestSource) -> PluginManifest:
    if isinstance(source, PluginManifest):
        return source
    return manifest.from_json(source)
