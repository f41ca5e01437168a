import asyncio
import json

from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine
from bosun.controllers.helpers import bad_request


async def index(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        since = int(request.query['since']) if 'since' in request.query else None
        limit = int(request.query['limit']) if 'limit' in request.query else None
    except ValueError:
        return bad_request("since and limit must be integers")
    entries = engine.recent(since, limit)
    return web.json_response({'entries': [e.to_json() for e in entries],
                              'stats': engine.stats.to_json()})


async def sensors(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    return web.json_response(engine.frame())


async def monitor(request: web.Request):
    """
    Stream monitor snapshots as JSON lines until the client disconnects,
    or after [count] snapshots if specified
    """
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        count = int(request.query['count']) if 'count' in request.query else None
    except ValueError:
        return bad_request("count must be an integer")
    subscription = engine.subscribe()
    resp = web.StreamResponse(status=200,
                              headers={'Content-Type': 'application/x-ndjson'})
    resp.enable_chunked_encoding()
    try:
        await resp.prepare(request)
    except ConnectionResetError:
        subscription.unsubscribe()
        return resp

    try:
        sent = 0
        while count is None or sent < count:
            snapshot = await subscription.queue.get()
            await resp.write((json.dumps(snapshot) + "\n").encode())
            sent += 1
    except asyncio.CancelledError as e:
        subscription.unsubscribe()
        # propogate the CancelledError up
        raise e
    except ConnectionResetError:
        subscription.unsubscribe()
        return resp
    subscription.unsubscribe()
    await resp.write_eof()
    return resp
