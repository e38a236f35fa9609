import asyncio
from collections import defaultdict
from collections.abc import Coroutine
from typing import Any

from repo_analyzer_mcp.errors import SupersededRequestError


class LatestRequestGuard:
    """Issues increasing request ids per channel and cancels the in-flight request a newer one replaces."""

    def __init__(self):
        self._latest: dict[str, int] = defaultdict(int)
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def issue(self, channel: str) -> int:
        self._latest[channel] += 1
        return self._latest[channel]

    def latest(self, channel: str) -> int:
        return self._latest[channel]

    def is_latest(self, channel: str, request_id: int) -> bool:
        return self._latest[channel] == request_id

    def cancel(self, channel: str) -> bool:
        """Cancel the in-flight request of a channel, if any."""

        if (task := self._tasks.get(channel)) and not task.done():
            return task.cancel()
        return False

    async def run[T](self, channel: str, coroutine: Coroutine[Any, Any, T]) -> tuple[int, T]:
        """Run a request as the latest one of its channel.

        Raises:
            SupersededRequestError: If a newer request on the same channel was issued before this one finished.
        """

        request_id: int = self.issue(channel)
        _ = self.cancel(channel)

        task: asyncio.Task[T] = asyncio.create_task(coroutine)
        self._tasks[channel] = task

        try:
            result: T = await task
        except asyncio.CancelledError:
            current_task = asyncio.current_task()
            if current_task is not None and current_task.cancelling():
                raise
            raise SupersededRequestError(channel=channel, request_id=request_id, latest_request_id=self.latest(channel)) from None
        finally:
            if self._tasks.get(channel) is task:
                del self._tasks[channel]

        if not self.is_latest(channel, request_id):
            raise SupersededRequestError(channel=channel, request_id=request_id, latest_request_id=self.latest(channel))

        return request_id, result
