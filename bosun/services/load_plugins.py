from typing import List
import logging
import json
import os

from bosun.errors import InvalidManifest
from bosun.models import manifest
from bosun.models.manifest import PluginManifest

log = logging.getLogger('bosun')


def run(path: str) -> List[PluginManifest]:
    """
    Read the bundled plugin manifests (*.json) in [path], sorted by file
    name. Invalid manifests are logged and skipped.
    """
    manifests = []
    if not os.path.isdir(path):
        log.warning("PluginDirectory [%s] does not exist" % path)
        return manifests
    ids = set()
    for file in sorted(os.listdir(path)):
        if not file.endswith(".json"):
            continue
        file_path = os.path.join(path, file)
        try:
            with open(file_path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.error("Cannot read manifest [%s]: %s" % (file_path, e))
            continue
        try:
            plugin_manifest = manifest.from_json(data)
        except InvalidManifest as e:
            log.error("Invalid manifest [%s]: %s" % (file, e))
            continue
        if plugin_manifest.id in ids:
            log.error("Duplicate manifest [%s]: plugin [%s] is already defined" %
                      (file, plugin_manifest.id))
            continue
        ids.add(plugin_manifest.id)
        manifests.append(plugin_manifest)
    return manifests
