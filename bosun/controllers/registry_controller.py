from aiohttp import web

from bosun import app_keys
from bosun.models.marketplace import MarketplaceClient
from bosun.controllers.helpers import read_json, bad_request, BadRequest


async def index(request: web.Request):
    marketplace: MarketplaceClient = request.app[app_keys.marketplace]
    if request.query.get('refresh', '0').lower() in ['1', 'true', 'yes']:
        await marketplace.refresh_registry()
    return web.json_response({'plugins': [e.to_json() for e in marketplace.entries()],
                              'last_refresh': marketplace.last_refresh,
                              'last_error': marketplace.last_error})


async def install(request: web.Request):
    marketplace: MarketplaceClient = request.app[app_keys.marketplace]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if not isinstance(body, dict) or 'id' not in body:
        return bad_request("specify an id")
    instance = await marketplace.install(body['id'], body.get('version', None))
    return web.json_response(instance.to_json())
