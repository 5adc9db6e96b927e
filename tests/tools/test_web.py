import json
from unittest.mock import Mock, patch

import pytest
import requests

from genagent.core.exceptions import ToolExecutionError
from genagent.tools import api_caller


def fake_response(status=200, reason="OK", body=None, text=None, headers=None):
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.reason = reason
    response.headers = headers or {"Content-Type": "application/json"}
    if body is not None:
        response.json.return_value = body
        response.text = json.dumps(body)
    else:
        response.json.side_effect = ValueError("not json")
        response.text = text or ""
    return response


@pytest.fixture
def mock_request():
    """Patch the HTTP layer used by api_caller"""
    with patch("genagent.tools.web.requests.request") as request:
        request.return_value = fake_response(body={"ok": True})
        yield request


class TestApiCaller:
    def test_get_defaults(self, mock_request):
        result = api_caller("https://api.example.com/items")

        mock_request.assert_called_once()
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.example.com/items")
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert kwargs["data"] is None
        assert result == {
            "success": True,
            "status": 200,
            "status_text": "OK",
            "headers": {"Content-Type": "application/json"},
            "data": {"ok": True},
        }

    def test_headers_merge_over_default(self, mock_request):
        api_caller("https://api.example.com", headers={"Authorization": "Bearer t", "Content-Type": "text/plain"})
        headers = mock_request.call_args.kwargs["headers"]
        assert headers == {"Authorization": "Bearer t", "Content-Type": "text/plain"}

    @pytest.mark.parametrize("method", ["POST", "put", "PATCH"])
    def test_body_is_serialized_for_writes(self, mock_request, method):
        api_caller("https://api.example.com", method=method, body={"a": 1})
        args, kwargs = mock_request.call_args
        assert args[0] == method.upper()
        assert json.loads(kwargs["data"]) == {"a": 1}

    def test_empty_body_is_sent(self, mock_request):
        api_caller("https://api.example.com", method="POST", body={})
        assert mock_request.call_args.kwargs["data"] == "{}"

    def test_no_body(self, mock_request):
        api_caller("https://api.example.com", method="POST")
        assert mock_request.call_args.kwargs["data"] is None

    def test_body_ignored_for_get(self, mock_request):
        api_caller("https://api.example.com", body={"a": 1})
        assert mock_request.call_args.kwargs["data"] is None

    def test_text_response(self, mock_request):
        mock_request.return_value = fake_response(status=404, reason="Not Found", text="missing")
        result = api_caller("https://api.example.com/nope")
        assert result["status"] == 404
        assert result["status_text"] == "Not Found"
        assert result["data"] == "missing"

    def test_transport_failure(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ToolExecutionError, match="API call failed"):
            api_caller("https://api.example.com")
