from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine
from bosun.controllers.helpers import read_json, bad_request, BadRequest

MAPPING_FIELDS = ['slot_type', 'plugin_id', 'stream_id']


async def index(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    return web.json_response(engine.mappings_report())


async def bind(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if not isinstance(body, dict) or any(f not in body for f in MAPPING_FIELDS):
        return bad_request("specify slot_type, plugin_id and stream_id")
    if any(not isinstance(body[f], str) for f in MAPPING_FIELDS):
        return bad_request("slot_type, plugin_id and stream_id must be strings")
    mapping = await engine.bind(body['slot_type'], body['plugin_id'], body['stream_id'])
    return web.json_response(mapping.to_json())


async def unbind(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    if any(f not in request.query for f in MAPPING_FIELDS):
        return bad_request("specify slot_type, plugin_id and stream_id")
    removed = await engine.unbind(request.query['slot_type'],
                                  request.query['plugin_id'],
                                  request.query['stream_id'])
    return web.json_response({'removed': removed})


async def clear(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    removed = await engine.clear_mappings()
    return web.json_response({'removed': removed})


async def auto_map(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if not isinstance(body, dict) or 'id' not in body:
        return bad_request("specify an id")
    if not isinstance(body['id'], str):
        return bad_request("id must be a string")
    created = await engine.auto_map(body['id'])
    return web.json_response({'created': created})
