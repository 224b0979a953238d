# chatty/tests/unit/test_push_client.py
import json
import logging

import httpx
import pytest

from chatty.infrastructure.push_client import PushNotificationClient

PUSH_URL = "https://push.test/send"


@pytest.fixture
def test_logger():
    return logging.getLogger("test_push")


def make_client(handler, logger):
    transport = httpx.MockTransport(handler)
    return PushNotificationClient(
        PUSH_URL,
        "server-key",
        logger,
        client=httpx.AsyncClient(transport=transport),
    )


async def test_send_posts_notification(test_logger):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"success": 1})

    client = make_client(handler, test_logger)
    assert await client.send({"to": "device-1", "notification": {"title": "hi"}})
    await client.close()

    assert len(requests) == 1
    assert str(requests[0].url) == PUSH_URL
    assert requests[0].headers["Authorization"] == "key=server-key"
    assert json.loads(requests[0].content)["to"] == "device-1"


async def test_send_failure_is_logged_not_raised(test_logger, caplog):
    client = make_client(lambda request: httpx.Response(500), test_logger)

    with caplog.at_level(logging.WARNING):
        assert not await client.send({"to": "device-1"})
    await client.close()

    assert "Push notification failed" in caplog.text


async def test_network_error_is_logged_not_raised(test_logger, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = make_client(handler, test_logger)
    with caplog.at_level(logging.WARNING):
        task = client.send_in_background({"to": "device-1"})
        assert await task is False
    await client.close()

    assert "unreachable" in caplog.text


async def test_close_waits_for_background_sends(test_logger):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200)

    client = make_client(handler, test_logger)
    client.send_in_background({"to": "a"})
    client.send_in_background({"to": "b"})
    await client.close()

    assert sorted(n["to"] for n in sent) == ["a", "b"]
