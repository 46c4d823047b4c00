"""
Pytest configuration and fixtures for magento-client tests.

Network traffic is served by httpx.MockTransport handlers, so no test talks
to a real server.
"""

from collections.abc import AsyncIterator, Callable, Iterator

import httpx
import pytest

from magento_client import AsyncMagentoClient, ClientConfig, MagentoClient

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingHandler:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def chunks(*parts: bytes) -> Iterator[bytes]:
    """Sync chunk source for streamed response bodies."""
    yield from parts


async def achunks(*parts: bytes) -> AsyncIterator[bytes]:
    """Async chunk source for streamed response bodies."""
    for part in parts:
        yield part


@pytest.fixture
def bearer_config() -> ClientConfig:
    return ClientConfig(bearer_token="app-token")


@pytest.fixture
def oauth_config() -> ClientConfig:
    return ClientConfig(
        consumer_key="ck",
        consumer_secret="cs",
        access_token_key="at",
        access_token_secret="ats",
    )


@pytest.fixture
def make_client(bearer_config: ClientConfig) -> Iterator[Callable[..., MagentoClient]]:
    """Build a MagentoClient whose traffic goes to the given handler."""
    created: list[httpx.Client] = []

    def factory(handler: Handler, config: ClientConfig | None = None) -> MagentoClient:
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        created.append(http_client)
        return MagentoClient(config or bearer_config, client=http_client)

    yield factory

    for http_client in created:
        http_client.close()


@pytest.fixture
async def make_async_client(
    anyio_backend: str,
    bearer_config: ClientConfig,
) -> AsyncIterator[Callable[..., AsyncMagentoClient]]:
    """Build an AsyncMagentoClient whose traffic goes to the given handler."""
    created: list[httpx.AsyncClient] = []

    def factory(handler: Handler, config: ClientConfig | None = None) -> AsyncMagentoClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        created.append(http_client)
        return AsyncMagentoClient(config or bearer_config, client=http_client)

    yield factory

    for http_client in created:
        await http_client.aclose()
