import asyncio
import random
import unittest

from saltbox_cli.motd.parallel import InfoSource, gather_info


def _value(value: str, delay: float = 0.0):
    async def provider() -> str:
        await asyncio.sleep(delay)
        return value

    return provider


async def _fail() -> str:
    raise RuntimeError("boom")


class GatherInfoTests(unittest.IsolatedAsyncioTestCase):
    async def test_results_follow_declared_order(self) -> None:
        sources = [
            InfoSource(f"key{i}", _value(f"value{i}", random.uniform(0, 0.05)), order=i)
            for i in random.sample(range(10), 10)
        ]

        results = await gather_info(sources)

        self.assertEqual([result.key for result in results], [f"key{i}" for i in range(10)])
        self.assertEqual([result.value for result in results], [f"value{i}" for i in range(10)])

    async def test_timeout_yields_placeholder(self) -> None:
        sources = [
            InfoSource("Kernel", _value("6.1", 5.0), timeout=0.05, order=1),
            InfoSource("Load Averages", _value("1", 5.0), timeout=0.05, order=2, timeout_message="CPU load info timed out"),
            InfoSource("Uptime", _value("1 hour"), timeout=1.0, order=3),
        ]

        results = await gather_info(sources)

        self.assertEqual(
            [result.value for result in results],
            ["Kernel info timed out", "CPU load info timed out", "1 hour"],
        )

    async def test_failed_provider_does_not_affect_others(self) -> None:
        results = await gather_info([InfoSource("Disk Usage", _fail, order=1), InfoSource("Kernel", _value("6.1"), order=2)])

        self.assertEqual(results[0].value, "Error: Disk Usage provider failed (boom)")
        self.assertEqual(results[1].value, "6.1")

    async def test_no_sources(self) -> None:
        self.assertEqual(await gather_info([]), [])


if __name__ == "__main__":
    unittest.main()
