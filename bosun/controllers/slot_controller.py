from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine


async def index(request: web.Request):
    engine: SensorEngine = request.app[app_keys.engine]
    if 'category' in request.query:
        slots = engine.slots.by_category(request.query['category'])
    else:
        slots = engine.slots.slots()
    return web.json_response([s.to_json() for s in slots])
