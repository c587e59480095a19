"""Unit tests for VirtualineClient endpoint mapping and result handling."""

import os
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
from pydantic import BaseModel

from virtualine import API_BASE_URL, VirtualineClient, VirtualineError
from virtualine.client import GENERIC_WARNING


class Product(BaseModel):
    pid: int
    name: str


class ServiceDetails:
    def __init__(self, service_id, status):
        self.service_id = service_id
        self.status = status

    @classmethod
    def from_dict(cls, data):
        return cls(data["id"], data["status"])

API_PATH = "/modules/addons/ProductsReseller/api/index.php/"


class FakeApi(httpx.MockTransport):
    """Serves canned responses keyed by (method, endpoint) and records requests."""

    def __init__(self, routes):
        self.requests = []

        def handle(request):
            self.requests.append(request)
            endpoint = request.url.path[len(API_PATH) :]
            route = routes.get((request.method, endpoint))
            if route is None:
                return httpx.Response(404, json={"error": "Not found"})
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        super().__init__(handle)


def make_client(routes):
    api = FakeApi(routes)
    return VirtualineClient("secret-key", "reseller", transport=api), api


class TestVirtualineClientInit(unittest.TestCase):
    def test_requires_credentials(self):
        for api_key, username in (("", "reseller"), ("key", ""), (None, None)):
            with self.assertRaises(ValueError):
                VirtualineClient(api_key, username)

    def test_defaults(self):
        client = VirtualineClient("secret-key", "reseller")
        self.assertEqual(client.http.config.base_uri, API_BASE_URL)
        self.assertTrue(client.http.config.user_agent.endswith(" VirtualineClient"))

    def test_client_options_passed_through(self):
        client = VirtualineClient("secret-key", "reseller", timeout=5, client_name=None)
        self.assertEqual(client.http.config.timeout, 5)
        self.assertFalse(client.http.config.user_agent.endswith("VirtualineClient"))

    @patch.dict(os.environ, {"VIRTUALINE_API_KEY": "env-key", "VIRTUALINE_USERNAME": "env-user"}, clear=True)
    def test_from_env(self):
        client = VirtualineClient.from_env()
        self.assertEqual(client.http.config.headers["username"], "env-user")

    def test_from_env_with_tuple(self):
        client = VirtualineClient.from_env(("k", "explicit-user"), timeout=3)
        self.assertEqual(client.http.config.headers["username"], "explicit-user")
        self.assertEqual(client.http.config.timeout, 3)

    @patch.dict(os.environ, {}, clear=True)
    def test_from_env_without_credentials_raises(self):
        with self.assertRaises(ValueError):
            VirtualineClient.from_env()


class TestAuthHeaders(unittest.TestCase):
    def test_token_and_username_sent(self):
        client, api = make_client({("GET", "testConnection"): {"result": "success"}})
        with patch("virtualine._auth.datetime") as mock_datetime:
            mock_datetime.now.return_value = datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc)
            client.test_connection()
        headers = api.requests[0].headers
        self.assertEqual(headers["username"], "reseller")
        self.assertEqual(
            headers["token"],
            "ZDQ4MjA0YWE1ZmFiMjNkYTViZDczYzkyYzMyNGJkMGJmM2FjZjRkOWZlZWM4YTQ0ZGY2ZDc2NDBiZTU0YTVlMA==",
        )


class TestVirtualineClientEndpoints(unittest.TestCase):
    def test_test_connection(self):
        client, api = make_client({("GET", "testConnection"): {"result": "success"}})
        self.assertTrue(client.test_connection())
        self.assertEqual(str(api.requests[0].url), API_BASE_URL + "testConnection")

    def test_test_connection_error(self):
        client, _ = make_client({("GET", "testConnection"): {"error": "Invalid token"}})
        with self.assertLogs("virtualine.client", level="WARNING") as logs:
            self.assertFalse(client.test_connection())
        self.assertIn("Invalid token", logs.output[0])

    def test_get_credit(self):
        client, _ = make_client({("GET", "billing/credit"): httpx.Response(200, text='"125.50"\n')})
        self.assertEqual(client.get_credit(), 125.5)

    def test_get_credit_unparseable(self):
        client, _ = make_client({("GET", "billing/credit"): httpx.Response(200, text="n/a")})
        self.assertEqual(client.get_credit(), 0.0)

    def test_get_credit_reads_leading_number(self):
        client, _ = make_client({("GET", "billing/credit"): httpx.Response(200, text='"12.5 TL"')})
        self.assertEqual(client.get_credit(), 12.5)

    def test_get_credit_non_finite_is_zero(self):
        for body in ("nan", "inf", "-Infinity", "1e999"):
            with self.subTest(body=body):
                client, _ = make_client({("GET", "billing/credit"): httpx.Response(200, text=body)})
                self.assertEqual(client.get_credit(), 0.0)

    def test_get_products_as_models(self):
        client, _ = make_client({("GET", "products"): {"data": [{"pid": 1, "name": "VPS S"}]}})
        products = client.get_products(cls=Product)
        self.assertEqual(products, [Product(pid=1, name="VPS S")])

    def test_get_products_null_data(self):
        client, _ = make_client({("GET", "products"): {"data": None}})
        self.assertEqual(client.get_products(cls=Product), [])

    def test_get_service_details_as_model(self):
        client, _ = make_client({("GET", "services/42"): {"id": "42", "status": "Active"}})
        details = client.get_service_details("42", cls=ServiceDetails)
        self.assertIsInstance(details, ServiceDetails)
        self.assertEqual(details.service_id, "42")
        self.assertEqual(details.status, "Active")

    def test_get_products(self):
        products = [{"pid": 1, "name": "VPS S"}]
        client, _ = make_client({("GET", "products"): {"data": products}})
        self.assertEqual(client.get_products(), products)

    def test_get_products_without_data(self):
        client, _ = make_client({("GET", "products"): {"result": "success"}})
        self.assertEqual(client.get_products(), [])

    def test_get_products_error(self):
        client, _ = make_client({("GET", "products"): {"error": "denied"}})
        self.assertEqual(client.get_products(), [])

    def test_get_service_details(self):
        details = {"id": "42", "status": "Active"}
        client, _ = make_client({("GET", "services/42"): details})
        self.assertEqual(client.get_service_details("42"), details)
        self.assertEqual(client.get_service_details("43"), {})

    def test_get_info_success(self):
        client, _ = make_client({("GET", "services/42/getInfo"): {"result": "success"}})
        self.assertEqual(client.get_info("42"), {"success": True})

    def test_get_info_in_progress(self):
        client, _ = make_client({("GET", "services/42/getInfo"): {"warning": "Installing", "progress": 40}})
        self.assertEqual(client.get_info("42"), {"success": False, "warning": "Installing", "progress": 40})

    def test_get_info_warning_without_progress(self):
        client, _ = make_client({("GET", "services/42/getInfo"): {"warning": "Queued"}})
        self.assertEqual(client.get_info("42"), {"success": False, "warning": "Queued", "progress": 0})

    def test_get_info_unknown(self):
        client, _ = make_client({("GET", "services/42/getInfo"): httpx.Response(502, text="Bad gateway")})
        self.assertEqual(client.get_info("42"), {"success": False, "warning": GENERIC_WARNING})

    def test_service_actions(self):
        actions = ["start", "stop", "reboot", "terminate", "suspend", "unsuspend", "renew"]
        client, api = make_client({("POST", f"services/42/{a}"): {"result": "success"} for a in actions})
        for action in actions:
            self.assertEqual(getattr(client, action)("42"), {"result": "success"})
        self.assertEqual([r.url.path[len(API_PATH) :] for r in api.requests], [f"services/42/{a}" for a in actions])
        self.assertTrue(all(r.method == "POST" for r in api.requests))

    def test_service_action_error(self):
        client, _ = make_client({("POST", "services/42/start"): {"error": "Service suspended"}})
        self.assertFalse(client.start("42"))

    def test_create_service(self):
        client, api = make_client({("POST", "order/products/7"): {"result": "success", "serviceid": 99}})
        result = client.create_service("7", {"billingcycle": "monthly", "hostname": "vps1.example.com"})
        self.assertEqual(result, {"result": "success", "serviceid": 99})
        request = api.requests[0]
        self.assertTrue(request.headers["Content-Type"].startswith("multipart/form-data; boundary="))
        self.assertIn(b'name="hostname"', request.content)
        self.assertIn(b"vps1.example.com", request.content)

    def test_create_service_error(self):
        client, _ = make_client({("POST", "order/products/7"): {"error": "Insufficient credit"}})
        self.assertFalse(client.create_service("7", {}))

    def test_change_password(self):
        client, api = make_client({("POST", "services/42/changepassword"): {"result": "success"}})
        self.assertEqual(client.change_password("42", "n3w-pass"), {"result": "success"})
        self.assertIn(b"n3w-pass", api.requests[0].content)

    def test_reinstall_templates(self):
        templates = [{"id": "7", "name": "Debian 12"}]
        client, _ = make_client({("GET", "services/42/reinstall"): {"osTemplates": templates}})
        self.assertEqual(client.reinstall_templates("42"), templates)

    def test_reinstall_templates_missing(self):
        client, _ = make_client({("GET", "services/42/reinstall"): {"result": "success"}})
        self.assertEqual(client.reinstall_templates("42"), [])

    def test_reinstall(self):
        client, api = make_client({("POST", "services/42/reinstall"): {"result": "success"}})
        self.assertEqual(client.reinstall("42", "7", "root-pass"), {"result": "success"})
        content = api.requests[0].content
        self.assertIn(b'name="actionid"', content)
        self.assertIn(b"root-pass", content)

    def test_get_wmks_url(self):
        client, _ = make_client({("POST", "services/42/actionWmksConsole"): {"url": "wss://console/42"}})
        self.assertEqual(client.get_wmks_url("42"), "wss://console/42")

    def test_get_wmks_url_missing(self):
        client, _ = make_client({("POST", "services/42/actionWmksConsole"): {"result": "success"}})
        self.assertFalse(client.get_wmks_url("42"))

    def test_sso_login(self):
        client, _ = make_client({("POST", "services/42/ssologin"): {"data": {"url": "https://panel/sso/abc"}}})
        self.assertEqual(client.sso_login("42"), "https://panel/sso/abc")

    def test_sso_login_error(self):
        client, _ = make_client({("POST", "services/42/ssologin"): {"error": "SSO disabled"}})
        self.assertFalse(client.sso_login("42"))


class TestVirtualineClientTransportErrors(unittest.TestCase):
    def test_transport_error_raises(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = VirtualineClient("secret-key", "reseller", transport=httpx.MockTransport(refuse))
        with self.assertRaises(VirtualineError) as ctx:
            client.reboot("42")
        self.assertIn("Failed to reboot service", str(ctx.exception))
        self.assertIn("Connection refused", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
