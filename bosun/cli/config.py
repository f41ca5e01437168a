import asyncio
import click

from bosun import errors
from bosun.api import Node


class Config:
    def __init__(self):
        self._node: Node = None
        self.url = "http://127.0.0.1:8088"

    def set_url(self, url):
        self.url = url

    @property
    def node(self) -> Node:
        # lazy node construction
        if self._node is None:
            self._node = Node(self.url)
        return self._node

    async def close_node(self):
        if self._node is None:
            return
        await self._node.close()

    def run(self, coro):
        """Run [coro] against the daemon, API errors become click errors"""

        async def _run():
            try:
                return await coro
            finally:
                await self.close_node()

        try:
            return asyncio.run(_run())
        except errors.ApiError as e:
            raise click.ClickException(str(e)) from e


pass_config = click.make_pass_decorator(Config, ensure=True)
