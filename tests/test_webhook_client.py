"""Tests for the Discord webhook HTTP client."""

import json

import httpx
import pytest

from hookpost.errors import RemoteFailure, RemoteNotFound
from hookpost.models import Embed, EmbedPayload, TextPayload
from hookpost.remote.discord_webhook import DiscordWebhookClient
from hookpost.utils.logging import redact_webhook_url
from tests.fakes import WEBHOOK_URL


def _client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DiscordWebhookClient(http_client=http), http


@pytest.fixture
def requests():
    return []


class TestFetch:
    async def test_text_message(self, requests):
        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "42", "content": "hello", "embeds": []})

        client, http = _client(handler)
        payload = await client.fetch_message(WEBHOOK_URL, "42")
        await http.aclose()

        assert payload == TextPayload("hello")
        assert requests[0].method == "GET"
        assert requests[0].url.path == "/api/webhooks/123456/secret-token/messages/42"

    async def test_embed_message(self):
        def handler(request):
            return httpx.Response(
                200, json={"id": "1", "content": "", "embeds": [{"title": "T", "color": 16711680}]}
            )

        client, http = _client(handler)
        payload = await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()
        assert payload == EmbedPayload(Embed(title="T", color=0xFF0000))

    async def test_404_is_not_found(self):
        client, http = _client(lambda request: httpx.Response(404, json={"code": 10008}))
        with pytest.raises(RemoteNotFound):
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()

    async def test_server_error_is_failure(self):
        client, http = _client(lambda request: httpx.Response(503))
        with pytest.raises(RemoteFailure) as exc:
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()
        assert exc.value.status_code == 503

    async def test_rate_limit_is_failure_not_not_found(self):
        client, http = _client(lambda request: httpx.Response(429))
        with pytest.raises(RemoteFailure):
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()

    async def test_connect_error_is_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client, http = _client(handler)
        with pytest.raises(RemoteFailure):
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()

    async def test_unreadable_body_is_failure(self):
        client, http = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(RemoteFailure):
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()

    async def test_malformed_embed_is_failure(self):
        client, http = _client(
            lambda request: httpx.Response(200, json={"id": "1", "embeds": ["not an object"]})
        )
        with pytest.raises(RemoteFailure):
            await client.fetch_message(WEBHOOK_URL, "1")
        await http.aclose()


class TestCreate:
    async def test_waits_for_id(self, requests):
        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "9001", "content": "hi"})

        client, http = _client(handler)
        message_id = await client.create_message(WEBHOOK_URL, TextPayload("hi"))
        await http.aclose()

        assert message_id == "9001"
        request = requests[0]
        assert request.method == "POST"
        assert request.url.params["wait"] == "true"
        assert json.loads(request.content) == {"content": "hi"}

    async def test_embed_body(self, requests):
        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "1"})

        client, http = _client(handler)
        await client.create_message(WEBHOOK_URL, EmbedPayload(Embed(title="T", description="D", color=255)))
        await http.aclose()
        assert json.loads(requests[0].content) == {
            "embeds": [{"title": "T", "description": "D", "color": 255}]
        }

    async def test_missing_id_is_failure(self):
        client, http = _client(lambda request: httpx.Response(204))
        with pytest.raises(RemoteFailure):
            await client.create_message(WEBHOOK_URL, TextPayload("hi"))
        await http.aclose()

    async def test_bad_request_is_failure(self):
        client, http = _client(lambda request: httpx.Response(400, json={"message": "Cannot send an empty message"}))
        with pytest.raises(RemoteFailure):
            await client.create_message(WEBHOOK_URL, TextPayload(""))
        await http.aclose()


class TestPatchAndDelete:
    async def test_patch(self, requests):
        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "1", "content": "new"})

        client, http = _client(handler)
        await client.patch_message(WEBHOOK_URL, "1", TextPayload("new"))
        await http.aclose()
        assert requests[0].method == "PATCH"
        assert requests[0].url.path.endswith("/messages/1")
        assert json.loads(requests[0].content) == {"content": "new"}

    async def test_delete(self, requests):
        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        client, http = _client(handler)
        await client.delete_message(WEBHOOK_URL + "/", "1")
        await http.aclose()
        assert requests[0].method == "DELETE"
        assert requests[0].url.path == "/api/webhooks/123456/secret-token/messages/1"

    async def test_delete_missing(self):
        client, http = _client(lambda request: httpx.Response(404))
        with pytest.raises(RemoteNotFound):
            await client.delete_message(WEBHOOK_URL, "1")
        await http.aclose()


class TestClientLifecycle:
    async def test_injected_client_not_closed(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
        client = DiscordWebhookClient(http_client=http)
        await client.aclose()
        assert not http.is_closed
        await http.aclose()

    async def test_owned_client_closed(self):
        client = DiscordWebhookClient()
        await client.aclose()
        assert client._http_client.is_closed


class TestRedaction:
    def test_token_hidden(self):
        assert redact_webhook_url(WEBHOOK_URL) == "https://discord.com/api/webhooks/123456/***"

    def test_message_path_hidden(self):
        redacted = redact_webhook_url(WEBHOOK_URL + "/messages/5")
        assert "secret-token" not in redacted
