from typing import Dict, Optional
import json

import aiohttp

from bosun import errors


class Session:
    """
    HTTP connection to a bosun daemon. JSON responses are decoded, any
    other status than 200 is raised as :class:`bosun.errors.ApiError`
    """

    def __init__(self, url: str, timeout: Optional[float] = None):
        self.url = url.rstrip('/')
        self.timeout = timeout
        self._http: Optional[aiohttp.ClientSession] = None

    def __repr__(self):
        return "<bosun.api.Session %s>" % self.url

    async def get(self, path: str, params: Optional[Dict] = None):
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json=None, params: Optional[Dict] = None):
        return await self._request("POST", path, json=json, params=params)

    async def put(self, path: str, json):
        return await self._request("PUT", path, json=json)

    async def delete(self, path: str, params: Optional[Dict] = None):
        return await self._request("DELETE", path, params=params)

    async def close(self):
        if self._http is None:
            return
        await self._http.close()
        self._http = None

    async def _request(self, method: str, path: str, json=None, params=None):
        if self._http is None:
            self._http = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout))
        try:
            async with self._http.request(method, self.url + path,
                                          params=params, json=json) as resp:
                if resp.status != 200:
                    message = await _error_message(resp)
                    raise errors.ApiError("%s [%d]" % (message, resp.status))
                if resp.content_type != 'application/json':
                    return await resp.text()
                try:
                    return await resp.json()
                except ValueError as e:
                    raise errors.ApiError("bosun at [%s] sent invalid JSON" % self.url) from e
        except aiohttp.ClientError as e:
            raise errors.ApiError("Cannot contact bosun at [%s]" % self.url) from e


async def _error_message(resp: aiohttp.ClientResponse) -> str:
    # engine errors have a JSON body with a message, others are plain text
    text = await resp.text()
    if resp.content_type != 'application/json':
        return text
    try:
        return json.loads(text)['message']
    except (ValueError, KeyError, TypeError):
        return text
