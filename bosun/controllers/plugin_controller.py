from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine
from bosun.controllers.helpers import read_json, bad_request, BadRequest


async def index(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    return web.json_response([p.to_json() for p in engine.list_instances()])


async def info(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    if 'id' not in request.query:
        return bad_request("specify an id")
    instance = engine.store.find(request.query['id'])
    return web.json_response(instance.to_json())


async def install(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if not isinstance(body, dict) or 'manifest' not in body:
        return bad_request("provide a manifest")
    instance = await engine.install(body['manifest'])
    return web.json_response(instance.to_json())


async def uninstall(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    if 'id' not in request.query:
        return bad_request("specify an id")
    instance = await engine.uninstall(request.query['id'])
    return web.json_response(instance.to_json())


async def enable(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    plugin_id = await _plugin_id(request)
    if plugin_id is None:
        return bad_request("specify an id")
    instance = await engine.enable(plugin_id)
    return web.json_response(instance.to_json())


async def disable(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    plugin_id = await _plugin_id(request)
    if plugin_id is None:
        return bad_request("specify an id")
    instance = await engine.disable(plugin_id)
    return web.json_response(instance.to_json())


async def _plugin_id(request: web.Request):
    try:
        body = await read_json(request)
    except BadRequest:
        return None
    if not isinstance(body, dict):
        return None
    return body.get('id', None)
