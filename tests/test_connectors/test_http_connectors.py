"""
Unit tests for the HTTP connectors (geo, Razorpay, Resend) and image storage

HTTP calls go through httpx.MockTransport, so nothing leaves the process.
"""
import asyncio
import hashlib
import hmac
import json
import httpx
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from produce_store.connectors.geo_connector import GeoConnector
from produce_store.connectors.razorpay_connector import RazorpayConnector, to_paise
from produce_store.connectors.resend_connector import ResendConnector
from produce_store.connectors.storage_connector import StorageConnector
from produce_store.core.exceptions import ConfigurationError
from produce_store.domain.delivery import Coordinates


class TestGeoConnector:

    def _connector(self, handler):
        return GeoConnector(
            nominatim_url="https://geo.test",
            osrm_url="https://route.test",
            user_agent="TestAgent/1.0",
            transport=httpx.MockTransport(handler)
        )

    def test_geocode_pincode(self):
        # Arrange
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["agent"] = request.headers["User-Agent"]
            return httpx.Response(200, json=[{"lat": "21.1458", "lon": "79.0882"}])

        # Act
        coords = asyncio.run(self._connector(handler).geocode_pincode("440001"))

        # Assert
        assert coords == Coordinates(lat=21.1458, lng=79.0882)
        assert seen["params"]["q"] == "440001, India"
        assert seen["params"]["countrycodes"] == "in"
        assert seen["agent"] == "TestAgent/1.0"

    def test_geocode_no_match(self):
        coords = asyncio.run(self._connector(lambda r: httpx.Response(200, json=[])).geocode_pincode("999999"))

        assert coords is None

    def test_route_rounds_distance_and_duration(self):
        def handler(request):
            assert request.url.path == "/route/v1/driving/79.11,21.11;79.08,21.14"
            return httpx.Response(200, json={
                "code": "Ok",
                "routes": [{"distance": 12345.0, "duration": 1530.0}]
            })

        route = asyncio.run(self._connector(handler).get_route(
            Coordinates(lat=21.11, lng=79.11), Coordinates(lat=21.14, lng=79.08)
        ))

        assert route.distance_km == 12.3
        assert route.duration_minutes == 26

    def test_no_route(self):
        handler = lambda r: httpx.Response(200, json={"code": "NoRoute", "routes": []})

        route = asyncio.run(self._connector(handler).get_route(
            Coordinates(lat=21.11, lng=79.11), Coordinates(lat=0, lng=0)
        ))

        assert route is None

    def test_server_error_raises_http_error(self):
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(self._connector(lambda r: httpx.Response(503)).geocode_pincode("440001"))

    def test_html_page_geocodes_to_none(self):
        handler = lambda r: httpx.Response(200, text="<html>rate limited</html>")

        coords = asyncio.run(self._connector(handler).geocode_pincode("440001"))

        assert coords is None

    def test_route_without_distance_is_none(self):
        handler = lambda r: httpx.Response(200, json={"code": "Ok", "routes": [{"duration": 900.0}]})

        route = asyncio.run(self._connector(handler).get_route(
            Coordinates(lat=21.11, lng=79.11), Coordinates(lat=21.14, lng=79.08)
        ))

        assert route is None


class TestRazorpayConnector:

    @pytest.mark.parametrize("amount,paise", [
        (Decimal("450"), 45000),
        (Decimal("199.995"), 20000),
        ("12.34", 1234),
    ])
    def test_to_paise(self, amount, paise):
        assert to_paise(amount) == paise

    def test_create_order_posts_paise(self):
        # Arrange
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"id": "order_rzp_1", "amount": 45000, "currency": "INR"})

        connector = RazorpayConnector(
            key_id="rzp_test", key_secret="secret", api_url="https://rzp.test/v1",
            transport=httpx.MockTransport(handler)
        )

        # Act
        result = asyncio.run(connector.create_order(Decimal("450"), "CF-20260217-0001", {"order_id": "order-1"}))

        # Assert
        assert result == {"order_id": "order_rzp_1", "amount": 45000, "currency": "INR", "key_id": "rzp_test"}
        assert seen["body"]["amount"] == 45000
        assert seen["body"]["receipt"] == "CF-20260217-0001"
        assert seen["auth"].startswith("Basic ")

    def test_verify_signature(self):
        connector = RazorpayConnector(key_id="rzp_test", key_secret="secret")
        signature = hmac.new(b"secret", b"order_rzp_1|pay_1", hashlib.sha256).hexdigest()

        assert connector.verify_signature("order_rzp_1", "pay_1", signature) is True
        assert connector.verify_signature("order_rzp_1", "pay_2", signature) is False
        assert connector.verify_signature("order_rzp_1", "pay_1", None) is False

    def test_missing_credentials(self):
        connector = RazorpayConnector(key_id="", key_secret="")

        with pytest.raises(ConfigurationError):
            connector.verify_signature("order_rzp_1", "pay_1", "sig")


class TestResendConnector:

    def test_send_email(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"id": "msg-1"})

        connector = ResendConnector(
            api_key="re_test", sender="Store <store@example.com>", api_url="https://resend.test",
            transport=httpx.MockTransport(handler)
        )

        message_id = asyncio.run(connector.send_email("asha@example.com", "Hello", "<p>Hi</p>"))

        assert message_id == "msg-1"
        assert seen["body"]["to"] == ["asha@example.com"]
        assert seen["auth"] == "Bearer re_test"

    def test_unconfigured_skips(self):
        def handler(request):
            raise AssertionError("no request expected")

        connector = ResendConnector(api_key="", transport=httpx.MockTransport(handler))

        assert asyncio.run(connector.send_email("asha@example.com", "Hello", "<p>Hi</p>")) is None


class TestStorageConnector:

    def test_upload_returns_public_url(self):
        # Arrange
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn.test/object/public/product-images/products/x.png"
        connector = StorageConnector(client=client, bucket="product-images")

        # Act
        url = connector.upload_image(b"\x89PNG", "image/png")

        # Assert
        assert url.endswith("x.png")
        path, content, options = bucket.upload.call_args[0]
        assert path.startswith("products/") and path.endswith(".png")
        assert options == {"content-type": "image/png"}

    def test_rejects_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported image type"):
            StorageConnector(client=MagicMock()).upload_image(b"%PDF", "application/pdf")

    def test_rejects_large_file(self):
        with pytest.raises(ValueError, match="5 MB"):
            StorageConnector(client=MagicMock()).upload_image(b"0" * (5 * 1024 * 1024 + 1), "image/jpeg")

    def test_delete_only_own_bucket(self):
        client = MagicMock()
        connector = StorageConnector(client=client, bucket="product-images")

        assert connector.delete_image("https://elsewhere.test/a.png") is False
        assert connector.delete_image("https://cdn.test/object/public/product-images/products/a.png?v=1") is True
        client.storage.from_.return_value.remove.assert_called_once_with(["products/a.png"])
