"""Tests for genrarr/api_client.py - Base API client."""

import pytest
from unittest.mock import Mock, patch
import requests

from genrarr.api_client import APIError, BaseAPIClient


def make_response(status_code=200, json_data=None, text="", content=b"{}"):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.content = content
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


class TestBuildUrl:
    """Tests for URL construction."""

    def test_strips_slashes(self):
        client = BaseAPIClient("http://localhost:8096/")
        assert client._build_url("/Items") == "http://localhost:8096/Items"


class TestHandleResponse:
    """Tests for response handling."""

    def test_json_body(self):
        client = BaseAPIClient("http://x")
        assert client._handle_response(make_response(json_data={"a": 1})) == {"a": 1}

    def test_401_raises(self):
        client = BaseAPIClient("http://x")
        with pytest.raises(APIError) as exc_info:
            client._handle_response(make_response(401))
        assert exc_info.value.status_code == 401
        assert "rejected the API key" in str(exc_info.value)

    def test_404_returns_none(self):
        client = BaseAPIClient("http://x")
        assert client._handle_response(make_response(404)) is None

    def test_204_returns_none(self):
        client = BaseAPIClient("http://x")
        assert client._handle_response(make_response(204, content=b"")) is None

    def test_empty_body_returns_none(self):
        client = BaseAPIClient("http://x")
        assert client._handle_response(make_response(200, content=b"")) is None

    def test_error_message_from_json(self):
        client = BaseAPIClient("http://x")
        response = make_response(500, json_data={"message": "disk full"})
        with pytest.raises(APIError) as exc_info:
            client._handle_response(response)
        assert "disk full" in str(exc_info.value)
        assert exc_info.value.status_code == 500

    def test_error_message_falls_back_to_text(self):
        client = BaseAPIClient("http://x")
        response = make_response(400, json_data=ValueError("no json"), text="Bad Request")
        with pytest.raises(APIError, match="Bad Request"):
            client._handle_response(response)

    def test_invalid_json_raises(self):
        client = BaseAPIClient("http://x")
        response = make_response(200, json_data=ValueError("no json"), content=b"<html>")
        with pytest.raises(APIError, match="invalid JSON"):
            client._handle_response(response)


class TestMakeRequest:
    """Tests for transport error mapping."""

    @patch('genrarr.api_client.requests.request')
    def test_passes_timeout_and_verify(self, mock_request):
        mock_request.return_value = make_response(json_data={})
        client = BaseAPIClient("http://x", verify_ssl=False)

        client._make_request("GET", "Items", params={"a": "b"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs['url'] == "http://x/Items"
        assert kwargs['params'] == {"a": "b"}
        assert kwargs['timeout'] == client.request_timeout
        assert kwargs['verify'] is False

    @patch('genrarr.api_client.requests.request')
    def test_timeout(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout()
        with pytest.raises(APIError, match="timeout"):
            BaseAPIClient("http://x")._make_request("GET", "Items")

    @patch('genrarr.api_client.requests.request')
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError()
        with pytest.raises(APIError, match="Could not connect"):
            BaseAPIClient("http://x")._make_request("GET", "Items")

    @patch('genrarr.api_client.requests.request')
    def test_other_request_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.RequestException("weird")
        with pytest.raises(APIError, match="Request failed"):
            BaseAPIClient("http://x")._make_request("GET", "Items")


class TestRateLimit:
    """Tests for rate limiting."""

    @patch('genrarr.api_client.time.sleep')
    def test_no_delay_by_default(self, mock_sleep):
        client = BaseAPIClient("http://x")
        client._rate_limit()
        client._rate_limit()
        mock_sleep.assert_not_called()

    @patch('genrarr.api_client.time.sleep')
    @patch('genrarr.api_client.time.time')
    def test_sleeps_within_window(self, mock_time, mock_sleep):
        client = BaseAPIClient("http://x")
        client.rate_limit_delay = 0.5
        client._last_request_time = 100.0
        mock_time.return_value = 100.2

        client._rate_limit()

        mock_sleep.assert_called_once()
        assert mock_sleep.call_args[0][0] == pytest.approx(0.3)
