from aiohttp import web
from bosun.constants import EndPoints
from bosun.controllers import (
    root_controller,
    slot_controller,
    plugin_controller,
    stream_controller,
    mapping_controller,
    ingest_controller,
    debug_controller,
    registry_controller)

routes = [
    web.get(EndPoints.root, root_controller.index),
    web.get(EndPoints.version, root_controller.version),
    web.get(EndPoints.version_json, root_controller.version_json),
    # --- slot routes ---
    web.get(EndPoints.slots, slot_controller.index),
    # --- plugin routes ---
    web.get(EndPoints.plugins, plugin_controller.index),
    web.get(EndPoints.plugin, plugin_controller.info),
    web.post(EndPoints.plugin, plugin_controller.install),
    web.delete(EndPoints.plugin, plugin_controller.uninstall),
    web.put(EndPoints.plugin_enable, plugin_controller.enable),
    web.put(EndPoints.plugin_disable, plugin_controller.disable),
    # --- stream routes ---
    web.get(EndPoints.streams, stream_controller.index),
    # --- mapping routes ---
    web.get(EndPoints.mappings, mapping_controller.index),
    web.post(EndPoints.mapping, mapping_controller.bind),
    web.delete(EndPoints.mapping, mapping_controller.unbind),
    web.delete(EndPoints.mappings, mapping_controller.clear),
    web.post(EndPoints.mappings_auto, mapping_controller.auto_map),
    # --- driver routes ---
    web.post(EndPoints.ingest, ingest_controller.ingest),
    web.post(EndPoints.ingest_packet, ingest_controller.packet),
    # --- debug routes ---
    web.get(EndPoints.debug, debug_controller.index),
    web.get(EndPoints.sensors, debug_controller.sensors),
    web.get(EndPoints.monitor, debug_controller.monitor),
    # --- marketplace routes ---
    web.get(EndPoints.registry, registry_controller.index),
    web.post(EndPoints.registry_install, registry_controller.install),
]
