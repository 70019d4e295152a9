import unittest

import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer

from maven_mirror.mirror.http_client import HttpClient

JAR_BYTES = bytes(range(256)) * 40


async def _listing(request: web.Request) -> web.Response:
    return web.Response(text='<pre><a href="../">../</a><a href="lib/">lib/</a></pre>', content_type="text/html")


async def _jar(request: web.Request) -> web.Response:
    return web.Response(body=JAR_BYTES, content_type="application/java-archive")


async def _user_agent(request: web.Request) -> web.Response:
    return web.Response(text=request.headers.get("User-Agent", ""))


class HttpClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        app = web.Application()
        app.router.add_get("/maven2/", _listing)
        app.router.add_get("/maven2/lib/lib-1.0.jar", _jar)
        app.router.add_get("/ua", _user_agent)
        self.server = TestServer(app)
        await self.server.start_server()
        self.client = HttpClient(user_agent="maven-mirror-tests/1.0", timeout_seconds=10)
        await self.client.start()

    async def asyncTearDown(self) -> None:
        await self.client.stop()
        await self.server.close()

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    async def test_get_stream_chunks_rebuild_body(self) -> None:
        received = bytearray()
        async with self.client.get_stream(self.url("/maven2/lib/lib-1.0.jar")) as stream:
            async for chunk in stream.iter_chunks(1000):
                self.assertLessEqual(len(chunk), 1000)
                received.extend(chunk)

        self.assertEqual(bytes(received), JAR_BYTES)

    async def test_get_stream_read_returns_whole_body(self) -> None:
        async with self.client.get_stream(self.url("/maven2/")) as stream:
            body = await stream.read()

        self.assertIn(b'href="lib/"', body)

    async def test_missing_resource_raises_before_body_is_used(self) -> None:
        entered = False
        with self.assertRaises(aiohttp.ClientResponseError) as ctx:
            async with self.client.get_stream(self.url("/maven2/missing.jar")):
                entered = True

        self.assertEqual(ctx.exception.status, 404)
        self.assertFalse(entered)

    async def test_get_string_decodes_text_and_raises_on_error(self) -> None:
        text = await self.client.get_string(self.url("/maven2/"))
        self.assertIn('<a href="lib/">lib/</a>', text)

        with self.assertRaises(aiohttp.ClientResponseError):
            await self.client.get_string(self.url("/maven2/nope/"))

    async def test_configured_user_agent_is_sent(self) -> None:
        self.assertEqual(await self.client.get_string(self.url("/ua")), "maven-mirror-tests/1.0")


if __name__ == "__main__":
    unittest.main()
