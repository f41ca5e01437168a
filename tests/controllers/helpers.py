from aiohttp import web

from bosun.daemon import make_app
from bosun.models.engine import SensorEngine
from bosun.models.marketplace import MarketplaceClient


def create_app(registry_url: str = "") -> web.Application:
    """Application backed by a fresh in-memory engine"""
    engine = SensorEngine(poll_interval=0.01)
    marketplace = MarketplaceClient(engine, registry_url, timeout=1)
    app = make_app(engine, marketplace, name="test_suite")

    async def _close(app):
        await marketplace.close()
        await engine.stop()
    app.on_cleanup.append(_close)
    return app
