from aiohttp import web
from sqlalchemy.orm import Session

from bosun.models.engine import SensorEngine
from bosun.models.marketplace import MarketplaceClient

engine = web.AppKey("engine", SensorEngine)
marketplace = web.AppKey("marketplace", MarketplaceClient)
db = web.AppKey("db", Session)
name = web.AppKey("name", str)
