from __future__ import annotations

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class KafkaWorker:
    """Single thread that runs the blocking confluent_kafka calls of one client.

    Keeping every call on one thread means the client is never used concurrently.
    """

    def __init__(self, thread_name_prefix: str = "kafka-io"):
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=thread_name_prefix
        )

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            raise RuntimeError("worker has been shut down")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


async def wait_cancelled(cancel: asyncio.Event, timeout: float) -> bool:
    """Wait up to ``timeout`` seconds for cancellation; True if it was requested."""
    if cancel.is_set():
        return True
    if timeout <= 0:
        await asyncio.sleep(0)
        return cancel.is_set()
    try:
        await asyncio.wait_for(cancel.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True
