import base64

import pytest
from aiohttp import web
from aiohttp import test_utils

from services.photo.photo_analysis import EXPLANATION_PATH, PhotoAnalysisClient, extract_explanation_text


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"explanation": "Statue of Liberty"}, "Statue of Liberty"),
        ({"explanation": "  ", "text": "A bridge"}, "A bridge"),
        ({"data": {"explanationText": "Nested"}}, "Nested"),
        ({"data": {"data": {"text": "too deep"}}}, None),
        ("  plain text answer ", "plain text answer"),
        ({"status": "ok"}, None),
        (None, None),
    ],
)
def test_extract_explanation_text(payload, expected):
    assert extract_explanation_text(payload) == expected


async def start_server(handler):
    app = web.Application()
    app.router.add_post(EXPLANATION_PATH, handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


async def test_send_for_analysis_posts_photo_and_reads_json():
    received = {}

    async def handler(request):
        received["auth"] = request.headers.get("Authorization")
        received["body"] = await request.json()
        return web.json_response({"explanation": "Statue of Liberty"})

    server = await start_server(handler)
    client = PhotoAnalysisClient(base_url=str(server.make_url("")), api_key="secret", persona_version_id=7)
    try:
        result = await client.send_for_analysis(b"\xff\xd8jpeg", "u1")
    finally:
        await client.close()
        await server.close()

    assert result == "Statue of Liberty"
    assert received["auth"] == "Bearer secret"
    assert received["body"] == {"photo": base64.b64encode(b"\xff\xd8jpeg").decode(), "persona_version_id": 7}


async def test_send_for_analysis_accepts_plain_text():
    async def handler(request):
        return web.Response(text="A red brick church")

    server = await start_server(handler)
    client = PhotoAnalysisClient(base_url=str(server.make_url("")), api_key="secret")
    try:
        assert await client.send_for_analysis(b"img", "u1") == "A red brick church"
    finally:
        await client.close()
        await server.close()


async def test_server_error_returns_none():
    async def handler(request):
        return web.json_response({"error": "boom"}, status=500)

    server = await start_server(handler)
    client = PhotoAnalysisClient(base_url=str(server.make_url("")), api_key="secret")
    try:
        assert await client.send_for_analysis(b"img", "u1") is None
    finally:
        await client.close()
        await server.close()


async def test_missing_api_key_skips_request():
    client = PhotoAnalysisClient(base_url="http://127.0.0.1:9", api_key=None)
    assert await client.send_for_analysis(b"img", "u1") is None


async def test_unreachable_service_returns_none():
    client = PhotoAnalysisClient(base_url="http://127.0.0.1:9", api_key="secret", timeout_seconds=2)
    try:
        assert await client.send_for_analysis(b"img", "u1") is None
    finally:
        await client.close()
