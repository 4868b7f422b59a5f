import asyncio
import pickle
from unittest.mock import Mock

import pytest

from src.shared.telemetry import METHOD_DURATION, Telemetry, measure_time


def _samples(component: str, method: str) -> float:
    count = 0.0
    for metric in METHOD_DURATION.collect():
        for sample in metric.samples:
            if (
                sample.name.endswith("_count")
                and sample.labels.get("component") == component
                and sample.labels.get("method") == method
            ):
                count += sample.value
    return count


class Worker:
    def __init__(self):
        self.telemetry = Mock()

    @measure_time("sync_work")
    def work(self, value):
        return value * 2

    @measure_time("async_work")
    async def work_later(self, value):
        await asyncio.sleep(0)
        return value + 1

    @measure_time("async_fail")
    async def fail_later(self):
        raise RuntimeError("boom")


def test_measure_time_wraps_plain_methods():
    worker = Worker()
    before = _samples("Worker", "work")

    assert worker.work(3) == 6
    assert _samples("Worker", "work") == before + 1
    worker.telemetry.log_info.assert_called_once()


def test_measure_time_awaits_coroutines():
    worker = Worker()
    before = _samples("Worker", "work_later")

    assert asyncio.run(worker.work_later(1)) == 2
    assert _samples("Worker", "work_later") == before + 1


def test_measure_time_logs_and_reraises_failures():
    worker = Worker()

    with pytest.raises(RuntimeError):
        asyncio.run(worker.fail_later())
    worker.telemetry.log_error.assert_called_once()


def test_telemetry_survives_pickling():
    telemetry = Telemetry("PickleMe")

    restored = pickle.loads(pickle.dumps(telemetry))

    assert restored.component == "PickleMe"
    assert restored.logger.name == "PickleMe"
