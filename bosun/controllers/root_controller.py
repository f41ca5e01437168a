from aiohttp import web

from bosun import app_keys
import bosun


async def index(request: web.Request):
    return web.Response(text="Bosun server")


async def version_json(request: web.Request):
    return web.json_response(data={'version': bosun.__version__,
                                   'name': request.app[app_keys.name]})


async def version(request: web.Request):
    return web.Response(text=bosun.__version__)
