from aiohttp import web

from bosun import app_keys
from bosun.models.engine import SensorEngine
from bosun.controllers.helpers import read_json, bad_request, BadRequest


async def ingest(request: web.Request):
    """
    Accept one driver event or a list of them. Events are queued, invalid
    values are dropped and counted by the engine, not rejected here.
    """
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if isinstance(body, dict):
        body = [body]
    if not isinstance(body, list):
        return bad_request("provide an event or a list of events")
    for event in body:
        if not isinstance(event, dict) or 'plugin_id' not in event or \
                'stream_id' not in event or 'value' not in event:
            return bad_request("events require plugin_id, stream_id and value")
    for event in body:
        engine.ingest(event['plugin_id'], event['stream_id'], event['value'],
                      event.get('timestamp', None))
    return web.json_response({'queued': len(body)})


async def packet(request: web.Request):
    """
    Accept a complete dashboard frame from a driver, it is served in place
    of the mapped slots until the driver stops
    """
    engine: SensorEngine = request.app[app_keys.engine]
    try:
        body = await read_json(request)
    except BadRequest as e:
        return bad_request(str(e))
    if not isinstance(body, dict) or 'plugin_id' not in body or 'packet' not in body:
        return bad_request("specify plugin_id and packet")
    if not isinstance(body['plugin_id'], str) or not isinstance(body['packet'], dict):
        return bad_request("plugin_id must be a string and packet an object")
    engine.ingest_packet(body['plugin_id'], body['packet'], body.get('timestamp', None))
    return web.json_response({'queued': 1})
