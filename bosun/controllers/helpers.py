from aiohttp import web


class BadRequest(Exception):
    pass


async def read_json(request: web.Request):
    if request.content_type != 'application/json':
        raise BadRequest('content-type must be application/json')
    try:
        return await request.json()
    except ValueError:
        raise BadRequest('invalid JSON body')


def bad_request(message: str) -> web.Response:
    return web.Response(text=message, status=400)
