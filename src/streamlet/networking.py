"""HTTP data-task publisher built on httpx.

A :class:`DataTaskPublisher` issues one GET request per subscription and
publishes the body together with the response metadata:

    fetch = DataTaskPublisher("https://dummyjson.com/products/1", client=client)
    fetch.map(DataResponse.body).decode(Sample).sink(print, print)

The request runs as an asyncio task on the running event loop. It starts
once the subscriber has demand and is cancelled together with the
subscription. Connection-level failures and malformed URLs complete the
stream with :class:`~streamlet.errors.TransportError`; HTTP error statuses
are ordinary responses.
"""

from __future__ import annotations

import asyncio
import logging
from typing import NamedTuple

import httpx

from .completion import Completion
from .errors import TransportError
from .pubsub import Publisher, Subscriber
from .subscription import DemandSubscription

logger = logging.getLogger(__name__)

# Default per-request timeout in seconds
DEFAULT_TIMEOUT = 10.0


class DataResponse(NamedTuple):
    """Body bytes and response metadata of a completed request."""

    data: bytes
    response: httpx.Response

    @staticmethod
    def body(item: DataResponse) -> bytes:
        """Key function for ``map``: extract the body bytes."""
        return item.data


class _DataTaskSubscription(DemandSubscription[DataResponse]):
    def __init__(self, subscriber: Subscriber[DataResponse], publisher: DataTaskPublisher) -> None:
        super().__init__(subscriber)
        self._publisher = publisher
        self._task: asyncio.Task[None] | None = None

    def _drain(self) -> None:
        if self._task is not None or not self._demand:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("DataTaskPublisher needs a running asyncio event loop") from None
        self._task = loop.create_task(self._fetch(), name=f"data-task {self._publisher.url}")

    async def _fetch(self) -> None:
        url = self._publisher.url
        logger.debug("Requesting %s", url)
        try:
            response = await self._publisher.get()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Request to %s failed: %s", url, e)
            error = TransportError(url, str(e) or type(e).__name__)
            error.__cause__ = e
            self.complete(Completion.failure(error))
            return
        logger.debug("Received %d bytes from %s (status %d)", len(response.content), url, response.status_code)
        self.deliver(DataResponse(response.content, response))
        self.complete(Completion.FINISHED)

    def _on_cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            logger.debug("Cancelling request to %s", self._publisher.url)
            task.cancel()

    def __str__(self) -> str:
        return f"DataTask({self._publisher.url})"


class DataTaskPublisher(Publisher[DataResponse]):
    """Publishes the result of a GET request, then finishes.

    Args:
        url: Address to fetch.
        client: Shared ``httpx.AsyncClient``. When omitted, each request
            opens and closes its own client.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        url: str | httpx.URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = str(url)
        self.client = client
        self.timeout = timeout

    async def get(self) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(self.url, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.url)

    def subscribe(self, subscriber: Subscriber[DataResponse]) -> None:
        _DataTaskSubscription(subscriber, self).start()

    def __repr__(self) -> str:
        return f"DataTaskPublisher({self.url!r})"
