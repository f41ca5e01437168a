from typing import List, Dict, Optional
import hashlib
import asyncio
import logging
import os

import aiohttp
from yarl import URL

from bosun.errors import RegistryUnreachable, InstallFailed, PluginNotFound, InvalidManifest
from bosun.models import manifest
from bosun.models.plugin import PluginInstance
from bosun.utilities import is_newer, time_now

log = logging.getLogger('bosun')


class RegistryEntry:
    """
    A plugin offered by the remote registry. ``is_installed`` and
    ``has_update`` are relative to the local store at the time the
    entry is read.
    """

    def __init__(self, id: str, name: str, latest_version: str,
                 type: str = "", author: str = "", description: str = "",
                 flag: Optional[str] = None,
                 is_installed: bool = False, has_update: bool = False):
        self.id = id
        self.name = name
        self.latest_version = latest_version
        self.type = type
        self.author = author
        self.description = description
        self.flag = flag
        self.is_installed = is_installed
        self.has_update = has_update

    def __repr__(self):
        return "<RegistryEntry(id=%r, latest_version=%r)>" % (self.id, self.latest_version)

    def to_json(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'latestVersion': self.latest_version,
            'type': self.type,
            'author': self.author,
            'description': self.description,
            'flag': self.flag,
            'isInstalled': self.is_installed,
            'hasUpdate': self.has_update
        }


def entry_from_json(data: Dict) -> RegistryEntry:
    return RegistryEntry(id=str(data['id']),
                         name=str(data.get('name', data['id'])),
                         latest_version=str(data['latestVersion']),
                         type=str(data.get('type', '')),
                         author=str(data.get('author', '')),
                         description=str(data.get('description', '')),
                         flag=data.get('flag', None))


class MarketplaceClient:
    """
    Fetches the remote plugin registry and installs plugins from it.

    Only one refresh is in flight at a time: a new refresh cancels the
    previous one and callers still waiting on the old one receive the
    result of the new one. A failed refresh keeps the last good listing.
    """

    def __init__(self, engine, registry_url: str,
                 install_directory: Optional[str] = None,
                 timeout: float = 10):
        self.engine = engine
        self.registry_url = registry_url
        self.install_directory = install_directory
        self.timeout = timeout
        self.last_error: Optional[str] = None
        self.last_refresh: Optional[int] = None
        self._listings: List[RegistryEntry] = []
        self._refresh_task: Optional[asyncio.Task] = None
        self._session: Optional[aiohttp.ClientSession] = None

    async def close(self):
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
        if self._session is not None:
            await self._session.close()
        self._session = None

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def entries(self) -> List[RegistryEntry]:
        result = []
        for listing in self._listings:
            instance: Optional[PluginInstance] = self.engine.store.get(listing.id)
            entry = RegistryEntry(listing.id, listing.name, listing.latest_version,
                                  listing.type, listing.author, listing.description,
                                  listing.flag)
            if instance is not None:
                entry.is_installed = True
                entry.has_update = is_newer(listing.latest_version,
                                            instance.installed_version)
            result.append(entry)
        return result

    async def refresh_registry(self) -> List[RegistryEntry]:
        if self.refreshing:
            log.debug("superseding registry refresh in flight")
            self._refresh_task.cancel()
        self._refresh_task = asyncio.create_task(self._fetch_registry())
        while True:
            task = self._refresh_task
            try:
                await asyncio.shield(task)
                return self.entries()
            except asyncio.CancelledError:
                if self._refresh_task is task:
                    raise
                # superseded, wait on the newer refresh

    async def install(self, plugin_id: str, version: Optional[str] = None) -> PluginInstance:
        """
        Install [plugin_id] from the registry, or update it if it is
        already installed. Without a version the latest listed one is used.
        """
        if version is None:
            listing = [e for e in self._listings if e.id == plugin_id]
            if len(listing) == 0:
                await self.refresh_registry()
                listing = [e for e in self._listings if e.id == plugin_id]
            if len(listing) == 0:
                raise PluginNotFound("plugin [%s] is not in the registry" % plugin_id)
            version = listing[0].latest_version
        try:
            manifest.validate_id(plugin_id)
            manifest.validate_version(version)
        except InvalidManifest as e:
            raise InstallFailed("cannot install [%s]: %s" % (plugin_id, e)) from e
        base = self._plugin_url(plugin_id, version)
        data = await self._get_json(base.join(URL("manifest.json")), InstallFailed)
        if not isinstance(data, dict):
            raise InstallFailed("manifest of [%s] is not a JSON object" % plugin_id)
        if data.get('id') != plugin_id or str(data.get('version')) != version:
            raise InstallFailed("registry returned [%s %s] for [%s %s]" %
                                (data.get('id'), data.get('version'), plugin_id, version))
        # registry plugins are never builtin, an update keeps the flag of the installed one
        data['builtin'] = False
        # validate before anything is written to disk
        plugin_manifest = manifest.from_json(data)
        if plugin_manifest.payload is not None:
            await self._fetch_payload(base, plugin_manifest)
        return await self.engine.install_or_update(plugin_manifest)

    # --- internals ---

    async def _fetch_registry(self) -> None:
        if self.registry_url == "":
            self.last_error = "no registry is configured"
            raise RegistryUnreachable(self.last_error)
        try:
            data = await self._get_json(URL(self.registry_url), RegistryUnreachable)
            if isinstance(data, dict):
                data = data.get('plugins', None)
            if not isinstance(data, list):
                raise RegistryUnreachable("registry response is not a list of plugins")
        except RegistryUnreachable as e:
            self.last_error = str(e)
            log.warning("Cannot refresh plugin registry: %s" % e)
            raise
        listings = []
        for item in data:
            try:
                listings.append(entry_from_json(item))
            except (KeyError, TypeError) as e:
                log.warning("Ignoring invalid registry listing [%r]: missing %s" % (item, e))
        self._listings = listings
        self.last_error = None
        self.last_refresh = time_now()
        log.info("plugin registry lists %d plugin(s)" % len(listings))

    async def _fetch_payload(self, base: URL, plugin_manifest: manifest.PluginManifest):
        payload = plugin_manifest.payload
        url = base.join(URL(payload['file']))
        try:
            async with self._get_session().get(url) as resp:
                if resp.status != 200:
                    raise InstallFailed("payload [%s] returned status %d" % (url, resp.status))
                content = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise InstallFailed("cannot download payload [%s]: %s" % (url, e)) from e
        expected = payload.get('sha256', None)
        if expected is not None and hashlib.sha256(content).hexdigest() != expected.lower():
            raise InstallFailed("checksum mismatch for payload of [%s]" % plugin_manifest.id)
        if self.install_directory is None:
            return
        root = os.path.realpath(self.install_directory)
        destination = os.path.realpath(os.path.join(root, plugin_manifest.id,
                                                    plugin_manifest.version))
        filename = os.path.basename(payload['file'])
        if filename in ['', '.', '..'] or destination == root or \
                os.path.commonpath([root, destination]) != root:
            raise InstallFailed("payload of [%s] would be written outside [%s]" %
                                (plugin_manifest.id, self.install_directory))
        try:
            os.makedirs(destination, exist_ok=True)
            with open(os.path.join(destination, filename), 'wb') as f:
                f.write(content)
        except OSError as e:
            raise InstallFailed("cannot write payload of [%s]: %s" % (plugin_manifest.id, e)) from e

    async def _get_json(self, url: URL, error: type):
        try:
            async with self._get_session().get(url) as resp:
                if resp.status != 200:
                    raise error("[%s] returned status %d" % (url, resp.status))
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise error("[%s] did not return JSON" % url) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error("cannot contact [%s]: %s" % (url, e)) from e

    def _plugin_url(self, plugin_id: str, version: str) -> URL:
        if self.registry_url == "":
            raise InstallFailed("no registry is configured")
        registry = URL(self.registry_url)
        # manifests live next to the registry document
        return registry.join(URL("%s/%s/" % (plugin_id, version)))

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session
