"""Tests for the Expo push gateway client."""

from unittest.mock import MagicMock, patch

import requests

from app.services.push_gateway import ExpoPushGateway


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


class TestExpoPushGateway:
    """Tests for request shape and response interpretation."""

    def test_ok_status_is_success(self):
        gateway = ExpoPushGateway(url="https://push.test/send", timeout=5)

        with patch("app.services.push_gateway.requests.post") as post:
            post.return_value = _response({"data": {"status": "ok", "id": "abc"}})
            result = gateway.send("ExponentPushToken[x]", "Hi", "Body", data={"type": "message"})

        assert result.ok is True
        args, kwargs = post.call_args
        assert args[0] == "https://push.test/send"
        assert kwargs["json"] == {
            "to": "ExponentPushToken[x]",
            "title": "Hi",
            "body": "Body",
            "sound": "default",
            "data": {"type": "message"},
        }
        assert kwargs["timeout"] == 5

    def test_error_status_is_failure(self):
        with patch("app.services.push_gateway.requests.post") as post:
            post.return_value = _response({"data": {"status": "error", "message": "DeviceNotRegistered"}})
            result = ExpoPushGateway().send("t", "Hi", "Body")

        assert result.ok is False
        assert result.error_message == "DeviceNotRegistered"

    def test_transport_error_is_failure(self):
        with patch("app.services.push_gateway.requests.post", side_effect=requests.ConnectionError("down")):
            result = ExpoPushGateway().send("t", "Hi", "Body")

        assert result.ok is False
        assert "down" in result.payload["error"]

    def test_non_json_body_is_failure(self):
        with patch("app.services.push_gateway.requests.post") as post:
            post.return_value.json.side_effect = ValueError("no json")
            result = ExpoPushGateway().send("t", "Hi", "Body")

        assert result.ok is False
