from typing import List, Dict, Optional, Union

from bosun.api.session import Session
from bosun.constants import EndPoints


class Node:
    """
    Client for the bosun daemon HTTP API. Methods return the decoded JSON
    responses and raise :class:`bosun.errors.ApiError` on failure.
    """

    def __init__(self, url: str = "http://127.0.0.1:8088"):
        self.url = url
        self.session = Session(url)

    def __repr__(self):
        return "<bosun.api.Node url=\"%s\">" % self.url

    async def close(self):
        await self.session.close()

    async def version(self) -> Dict:
        return await self.session.get(EndPoints.version_json)

    # --- slots and streams ---

    async def slot_list(self, category: Optional[str] = None) -> List[Dict]:
        params = {}
        if category is not None:
            params['category'] = category
        return await self.session.get(EndPoints.slots, params)

    async def stream_list(self, data_type: Optional[str] = None) -> List[Dict]:
        params = {}
        if data_type is not None:
            params['data_type'] = data_type
        return await self.session.get(EndPoints.streams, params)

    # --- plugins ---

    async def plugin_list(self) -> List[Dict]:
        return await self.session.get(EndPoints.plugins)

    async def plugin_install(self, manifest: Dict) -> Dict:
        return await self.session.post(EndPoints.plugin, json={'manifest': manifest})

    async def plugin_uninstall(self, plugin_id: str) -> Dict:
        return await self.session.delete(EndPoints.plugin, {'id': plugin_id})

    async def plugin_enable(self, plugin_id: str) -> Dict:
        return await self.session.put(EndPoints.plugin_enable, {'id': plugin_id})

    async def plugin_disable(self, plugin_id: str) -> Dict:
        return await self.session.put(EndPoints.plugin_disable, {'id': plugin_id})

    # --- mappings ---

    async def mapping_list(self) -> List[Dict]:
        return await self.session.get(EndPoints.mappings)

    async def mapping_bind(self, slot_type: str, plugin_id: str, stream_id: str) -> Dict:
        return await self.session.post(EndPoints.mapping, json={'slot_type': slot_type,
                                                              'plugin_id': plugin_id,
                                                              'stream_id': stream_id})

    async def mapping_unbind(self, slot_type: str, plugin_id: str, stream_id: str) -> bool:
        resp = await self.session.delete(EndPoints.mapping, {'slot_type': slot_type,
                                                           'plugin_id': plugin_id,
                                                           'stream_id': stream_id})
        return resp['removed']

    async def mapping_auto(self, plugin_id: str) -> int:
        resp = await self.session.post(EndPoints.mappings_auto, json={'id': plugin_id})
        return resp['created']

    async def mapping_clear(self) -> int:
        resp = await self.session.delete(EndPoints.mappings)
        return resp['removed']

    # --- driver events and diagnostics ---

    async def ingest(self, events: Union[Dict, List[Dict]]) -> int:
        resp = await self.session.post(EndPoints.ingest, json=events)
        return resp['queued']

    async def ingest_packet(self, plugin_id: str, packet: Dict,
                            timestamp: Optional[int] = None) -> None:
        data = {'plugin_id': plugin_id, 'packet': packet}
        if timestamp is not None:
            data['timestamp'] = timestamp
        await self.session.post(EndPoints.ingest_packet, json=data)

    async def debug_recent(self, since: Optional[int] = None,
                           limit: Optional[int] = None) -> Dict:
        params = {}
        if since is not None:
            params['since'] = since
        if limit is not None:
            params['limit'] = limit
        return await self.session.get(EndPoints.debug, params)

    async def sensors(self) -> Dict:
        return await self.session.get(EndPoints.sensors)

    # --- marketplace ---

    async def registry_list(self, refresh: bool = False) -> Dict:
        params = {}
        if refresh:
            params['refresh'] = '1'
        return await self.session.get(EndPoints.registry, params)

    async def registry_install(self, plugin_id: str, version: Optional[str] = None) -> Dict:
        body = {'id': plugin_id}
        if version is not None:
            body['version'] = version
        return await self.session.post(EndPoints.registry_install, json=body)
