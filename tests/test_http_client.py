"""
Unit tests for the webhook HTTP client.

The requests.Session is replaced with a Mock; no network access.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from core.exceptions import PricingSourceError, RemoteServiceError
from core.http_client import WebhookClient


def _response(status_code=200, payload=None, text="", content=b"", json_error=False):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.content = content
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return WebhookClient(timeout_seconds=10.0, session=session)


class TestWebhookClient:
    """Test request construction and error mapping."""

    def test_post_json(self, client, session):
        session.request.return_value = _response(payload={"ok": True})

        result = client.post_json("http://erp.test/pricing", {"sku": "A"})

        assert result == {"ok": True}
        args, kwargs = session.request.call_args
        assert args == ("POST", "http://erp.test/pricing")
        assert json.loads(kwargs["data"]) == {"sku": "A"}
        assert kwargs["timeout"] == 10.0
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_extra_headers_merged(self, client, session):
        session.request.return_value = _response(payload={})

        client.post_json("http://x.test", {}, headers={"Authorization": "Bearer t"})

        headers = session.request.call_args[1]["headers"]
        assert headers["Authorization"] == "Bearer t"
        assert headers["Accept"] == "application/json"

    def test_get_json_params(self, client, session):
        session.request.return_value = _response(payload=[1])

        assert client.get_json("http://x.test", params={"orderId": "1"}) == [1]
        assert session.request.call_args[1]["params"] == {"orderId": "1"}

    def test_non_2xx_raises_with_body(self, client, session):
        session.request.return_value = _response(status_code=502, text="Bad gateway")

        with pytest.raises(PricingSourceError) as exc_info:
            client.post_json("http://x.test", {}, error_cls=PricingSourceError)

        assert exc_info.value.status_code == 502
        assert exc_info.value.body == "Bad gateway"
        assert exc_info.value.details["service"] == "erp_pricing"

    def test_timeout_raises(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(PricingSourceError, match="timed out"):
            client.post_json("http://x.test", {}, error_cls=PricingSourceError)

    def test_connection_error_raises(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(RemoteServiceError):
            client.get_json("http://x.test")

    def test_invalid_json_raises(self, client, session):
        session.request.return_value = _response(text="<html>", json_error=True)

        with pytest.raises(RemoteServiceError) as exc_info:
            client.get_json("http://x.test")

        assert exc_info.value.body == "<html>"

    def test_get_bytes(self, client, session):
        session.request.return_value = _response(content=b"%PDF-1.4")
        assert client.get_bytes("http://x.test/invoice.pdf") == b"%PDF-1.4"

    def test_get_bytes_empty_body_raises(self, client, session):
        session.request.return_value = _response(content=b"")
        with pytest.raises(RemoteServiceError):
            client.get_bytes("http://x.test/invoice.pdf")

    def test_invalid_timeout(self, session):
        with pytest.raises(ValueError):
            WebhookClient(timeout_seconds=0, session=session)

    def test_close(self, client, session):
        client.close()
        session.close.assert_called_once()
