from aiohttp import web
from aiohttp.web import middleware, HTTPBadRequest
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from bosun import app_keys
from bosun.errors import BosunError

log = logging.getLogger('bosun')

# error kind => HTTP status, anything else is a bad request
ERROR_STATUS = {
    'invalid_manifest': 400,
    'type_mismatch': 400,
    'configuration': 400,
    'protected': 403,
    'not_found': 404,
    'duplicate_plugin': 409,
    'registry_unreachable': 502,
    'install_failed': 502,
    'plugin_fault': 502,
}


@middleware
async def engine_errors(request, handler):
    try:
        return await handler(request)
    except BosunError as e:
        status = ERROR_STATUS.get(e.kind, 400)
        if status >= 500:
            log.warning("%s %s failed: %s", request.method, request.path, e)
        return web.json_response({'error': e.kind, 'message': str(e)}, status=status)


@middleware
async def sql_rollback(request, handler):
    db: Session = request.app.get(app_keys.db, None)
    try:
        return await handler(request)
    except SQLAlchemyError as e:
        log.warning("Invalid HTTP request: %s", e)
        if db is not None:
            db.rollback()
        raise HTTPBadRequest
