from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine


async def index(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    if 'data_type' in request.query:
        streams = engine.catalog.streams_for_data_type(request.query['data_type'])
    elif 'plugin_id' in request.query:
        streams = engine.catalog.streams_for_plugin(request.query['plugin_id'])
    else:
        streams = engine.available_streams()
    return web.json_response([s.to_json() for s in streams])
