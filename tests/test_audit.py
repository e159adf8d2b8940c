import json

import httpx

from leadgen.audit import AuditLogClient
from leadgen.models.state import GenerationRequest

REQUEST = GenerationRequest(location="Austin", keywords="logistics", count=2, custom_research="ERP?")


async def test_log_generation_posts_params_and_count():
    received = []

    def handler(request: httpx.Request):
        received.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "ok"})

    client = AuditLogClient("https://audit.example.com/log", transport=httpx.MockTransport(handler))

    task = client.log_generation(REQUEST, 2)
    assert task is not None
    await client.drain()

    assert task.result() is True
    assert received[0]["location"] == "Austin"
    assert received[0]["customResearch"] == "ERP?"
    assert received[0]["generatedLeadsCount"] == 2


async def test_failed_post_is_logged_not_raised():
    client = AuditLogClient(
        "https://audit.example.com/log",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )

    task = client.log_generation(REQUEST, 0)
    await client.drain()

    assert task.result() is False


async def test_no_url_skips_posting():
    assert AuditLogClient(None).log_generation(REQUEST, 1) is None


async def test_malformed_url_is_logged_not_raised():
    client = AuditLogClient("http://[::1")

    task = client.log_generation(REQUEST, 1)
    await client.drain()

    assert task.result() is False
