import os
import configparser
import asyncio
import logging
import time
import argparse
import signal
import sys
from typing import Optional

import psutil
from aiohttp import web
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from bosun import app_keys
from bosun.models import config, Base
from bosun.models.engine import SensorEngine
from bosun.models.marketplace import MarketplaceClient
from bosun.errors import ConfigurationError, BosunError
from bosun.services import load_config, load_plugins
from bosun.utilities import is_newer
import bosun.middleware
import bosun.controllers

log = logging.getLogger('bosun')
async_log = logging.getLogger('asyncio')
async_log.setLevel(logging.WARNING)


def make_app(engine: SensorEngine, marketplace: MarketplaceClient,
             db: Optional[Session] = None, name: str = "bosun") -> web.Application:
    middlewares = [
        bosun.middleware.sql_rollback,
        bosun.middleware.engine_errors,
    ]
    app = web.Application(middlewares=middlewares)
    app[app_keys.engine] = engine
    app[app_keys.marketplace] = marketplace
    if db is not None:
        app[app_keys.db] = db
    app[app_keys.name] = name
    app.add_routes(bosun.controllers.routes)
    return app


class Daemon(object):

    def __init__(self, my_config: config.BosunConfig):
        self.config: config.BosunConfig = my_config
        self.db: Optional[Session] = None
        self.engine: Optional[SensorEngine] = None
        self.marketplace: Optional[MarketplaceClient] = None
        self.pid_file = os.path.join(self.config.install_directory, 'bosund.pid')
        self.stop_requested = False

    def initialize(self):
        # make sure this is the only copy of bosund running
        if os.path.exists(self.pid_file):
            with open(self.pid_file, 'r') as f:
                try:
                    pid = int(f.readline())
                except ValueError:
                    pid = None
            if pid is not None and psutil.pid_exists(pid):
                log.error("bosund is already running with pid %d" % pid)
                sys.exit(1)
        with open(self.pid_file, 'w') as f:
            f.write('%d\n' % os.getpid())
        os.chmod(self.pid_file, 0o600)

        db_engine = create_engine(self.config.database, echo=False)
        Base.metadata.create_all(db_engine)
        self.db = Session(bind=db_engine)

        self.engine = SensorEngine(db=self.db,
                                   debug_capacity=self.config.debug_capacity,
                                   queue_size=self.config.ingest_queue_size,
                                   poll_interval=self.config.poll_interval)
        self.engine.load()
        self.marketplace = MarketplaceClient(self.engine,
                                             self.config.registry_url,
                                             self.config.install_directory,
                                             self.config.registry_timeout)

    async def install_bundled(self):
        """Install the plugins shipped in PluginDirectory, upgrading older copies"""
        for plugin_manifest in load_plugins.run(self.config.plugin_directory):
            current = self.engine.store.get(plugin_manifest.id)
            try:
                if current is None:
                    await self.engine.install(plugin_manifest)
                elif is_newer(plugin_manifest.version, current.installed_version):
                    await self.engine.update(plugin_manifest)
            except BosunError as e:
                log.error("Cannot install bundled plugin [%s]: %s" % (plugin_manifest.id, e))

    async def run(self):
        await self.install_bundled()
        await self.engine.start()

        app = make_app(self.engine, self.marketplace, self.db, self.config.name)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.ip_address, self.config.port)
        await site.start()
        log.info("bosund listening on %s:%d" % (self.config.ip_address, self.config.port))

        # sleep and check for stop condition
        while not self.stop_requested:
            await asyncio.sleep(0.5)

        # clean everything up
        await self.engine.stop()
        await self.marketplace.close()
        try:
            await asyncio.wait_for(runner.shutdown(), 5)
            await asyncio.wait_for(runner.cleanup(), 5)
        except asyncio.TimeoutError:
            log.warning("unclean server shutdown, subscribed clients?")
        self.db.close()
        if os.path.exists(self.pid_file):
            os.unlink(self.pid_file)

    def stop(self):
        self.stop_requested = True


def main(argv=None):
    parser = argparse.ArgumentParser("Bosun Daemon")
    parser.add_argument("--config", default="/etc/bosun/main.conf")
    parser.add_argument("--verbose", "-v", action="count", default=0)
    args = parser.parse_args(argv)
    log.addFilter(LogDedupFilter())
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        format='%(asctime)s %(levelname)s:%(message)s',
        level=level)
    if os.path.isfile(args.config) is False:
        log.error("Invalid configuration: cannot load file [%s]" % args.config)
        exit(1)
    parser = configparser.ConfigParser()
    parser.read(args.config)
    try:
        my_config = load_config.run(custom_values=parser)
    except ConfigurationError as e:
        log.error("Invalid configuration: %s" % e)
        exit(1)

    daemon = Daemon(my_config)
    try:
        daemon.initialize()
    except SQLAlchemyError as e:
        log.error("Error initializing database [%s]: %s" % (my_config.database, e))
        exit(1)

    async def _run():
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, daemon.stop)
        loop.add_signal_handler(signal.SIGTERM, daemon.stop)
        await daemon.run()

    asyncio.run(_run())
    exit(0)


class LogDedupFilter:
    """
    Collapse bursts of identical log messages, a message repeated within
    [max_gap] seconds is reported once as "[...repeats]" and then dropped
    """

    def __init__(self, max_gap=5):
        self.max_gap = max_gap
        self.last_msg = None
        self.last_time = 0
        self.reported = False

    def filter(self, record):
        now = time.time()
        repeated = (record.msg == self.last_msg and
                    now - self.last_time < self.max_gap)
        self.last_msg = record.msg
        self.last_time = now
        if not repeated:
            self.reported = False
            return True
        if self.reported:
            return False
        self.reported = True
        record.msg = "[...repeats]"
        record.args = None
        return True


if __name__ == "__main__":
    main()
