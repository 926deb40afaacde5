import asyncio
import random
import unittest

import aiohttp

from saltbox_cli.config.models import ApiKeyInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.models import QueueInfo


class GatherInstancesTests(unittest.IsolatedAsyncioTestCase):
    async def test_failing_instances_are_dropped(self) -> None:
        instances = [
            ApiKeyInstance(name="b", url="http://b", apikey="k"),
            ApiKeyInstance(name="bad", url="http://bad", apikey="k"),
            ApiKeyInstance(name="a", url="http://a", apikey="k"),
        ]

        async def fetch(session: aiohttp.ClientSession, instance: ApiKeyInstance) -> QueueInfo:
            self.assertIsInstance(session, aiohttp.ClientSession)
            if instance.name == "bad":
                raise aiohttp.ClientConnectionError("refused")
            return QueueInfo(name=instance.name)

        infos = await gather_instances("sonarr", instances, fetch)

        self.assertEqual([info.name for info in infos], ["a", "b"])

    async def test_result_order_does_not_depend_on_completion(self) -> None:
        names = [f"instance{i:02d}" for i in range(12)]
        instances = [ApiKeyInstance(name=name, url=f"http://{name}", apikey="k") for name in random.sample(names, len(names))]

        async def fetch(session: aiohttp.ClientSession, instance: ApiKeyInstance) -> QueueInfo:
            await asyncio.sleep(random.uniform(0, 0.05))
            return QueueInfo(name=instance.name)

        infos = await gather_instances("radarr", instances, fetch)

        self.assertEqual([info.name for info in infos], names)

    async def test_slow_instance_is_bounded_by_its_timeout(self) -> None:
        instances = [
            ApiKeyInstance(name="slow", url="http://slow", apikey="k", timeout=0.05),
            ApiKeyInstance(name="fast", url="http://fast", apikey="k"),
        ]

        async def fetch(session: aiohttp.ClientSession, instance: ApiKeyInstance) -> QueueInfo:
            if instance.name == "slow":
                await asyncio.sleep(5)
            return QueueInfo(name=instance.name)

        loop = asyncio.get_running_loop()
        started = loop.time()
        infos = await gather_instances("lidarr", instances, fetch)

        self.assertEqual([info.name for info in infos], ["fast"])
        self.assertLess(loop.time() - started, 2.0)

    async def test_disabled_and_unconfigured_instances_are_skipped(self) -> None:
        instances = [
            ApiKeyInstance(name="off", url="http://off", apikey="k", enabled=False),
            ApiKeyInstance(name="nokey", url="http://nokey"),
            ApiKeyInstance(name="on", url="http://on", apikey="k"),
        ]
        fetched: list[str] = []

        async def fetch(session: aiohttp.ClientSession, instance: ApiKeyInstance) -> QueueInfo:
            fetched.append(instance.name)
            return QueueInfo(name=instance.name)

        infos = await gather_instances("readarr", instances, fetch)

        self.assertEqual(fetched, ["on"])
        self.assertEqual([info.name for info in infos], ["on"])

    async def test_no_instances(self) -> None:
        async def fetch(session, instance):  # pragma: no cover
            raise AssertionError("not called")

        self.assertEqual(await gather_instances("sonarr", [], fetch), [])


if __name__ == "__main__":
    unittest.main()
