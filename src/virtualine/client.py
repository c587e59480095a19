"""Client for the Virtualine reseller API (credit, products and VPS lifecycle)."""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, Union

if TYPE_CHECKING:
    from typing import Self

import httpx

from virtualine import API_BASE_URL
from virtualine._auth import VirtualineTokenAuth
from virtualine._user_agent import get_user_agent
from virtualine.credentials_parser import ANY_AUTH_TYPE, resolve_credentials
from virtualine.http import Client, Response
from virtualine.serde import deserialize

logger = logging.getLogger(__name__)

GENERIC_WARNING = "An error occurred while processing the request."

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class VirtualineError(Exception):
    """Raised when a call to the Virtualine API could not be completed."""


class VirtualineClient:
    """Client for the Virtualine reseller API.

    Every method performs one call. Calls the API rejects (a JSON body with an
    ``error`` key) return a sentinel: False for actions, an empty list or dict
    for lookups. Calls that never reach the API raise VirtualineError.

    Example:
        client = VirtualineClient("my-api-key", "reseller")
        if client.test_connection():
            print(client.get_credit())
            client.reboot("1234")
    """

    def __init__(
        self,
        api_key: str,
        username: str,
        *,
        base_uri: str = API_BASE_URL,
        client_name: Optional[str] = "auto",
        transport: Optional[httpx.BaseTransport] = None,
        **client_options: Any,
    ):
        """Initialize the API client.

        Args:
            api_key: Reseller API key
            username: Reseller username
            base_uri: API base URL
            client_name: Name added to User-Agent. Use "auto" for class name, None for no name.
            transport: Optional httpx transport passed to the HTTP client
            **client_options: Additional ClientConfig options (e.g. timeout, proxy, verify)
        """
        if not api_key or not username:
            raise ValueError("API key and username are required")

        if client_name == "auto":
            client_name = self.__class__.__name__

        client_options.setdefault("user_agent", get_user_agent(f"python-httpx/{httpx.__version__}", client_name))
        self._auth = VirtualineTokenAuth(api_key, username)
        self._http = Client(base_uri=base_uri, transport=transport, **client_options)

    @classmethod
    def from_env(cls, auth: ANY_AUTH_TYPE = None, **kwargs: Any) -> Self:
        """Create a client from a credentials file or the environment.

        Args:
            auth: (api_key, username) tuple, credentials dict or path to a json credentials file.
                When omitted, VIRTUALINE_CREDENTIALS or VIRTUALINE_API_KEY and VIRTUALINE_USERNAME are used.
            **kwargs: Additional arguments passed to the constructor.
        """
        api_key, username = resolve_credentials(auth)
        return cls(api_key, username, **kwargs)

    @property
    def http(self) -> Client:
        """HTTP client carrying the auth headers for the current hour."""
        return self._http.add_headers(self._auth.headers())

    def _send(self, action: str, method: str, path: str, **options: Any) -> Response:
        response = self.http.request(method, path, **options)
        if response.status_code == 0 and response.has_error():
            raise VirtualineError(f"Failed to {action}: {response.diagnostic}")
        return response

    def _call(self, action: str, method: str, path: str, **options: Any) -> Optional[Dict[str, Any]]:
        """Send a call and decode its JSON object, or return None if the API reported an error."""
        data = self._send(action, method, path, **options).get_json()
        if not isinstance(data, dict):
            data = {}
        if data.get("error") is not None:
            logger.warning(f"Failed to {action}: {data['error']}")
            return None
        return data

    def _service_action(self, action: str, service_id: str, endpoint: str) -> Union[Dict[str, Any], bool]:
        data = self._call(action, "POST", f"services/{service_id}/{endpoint}")
        return False if data is None else data

    def test_connection(self) -> bool:
        data = self._call("test connection", "GET", "testConnection")
        return data is not None and data.get("result") == "success"

    def get_credit(self) -> float:
        """Return the current credit balance.

        The leading number of the body is used, so ``"12.5 TL"`` reads as 12.5.
        Anything without a finite leading number reads as 0.0.
        """
        body = self._send("get credit", "GET", "billing/credit").body
        match = _NUMERIC_PREFIX.match(body.strip("\" \t\n\r\0\x0b"))
        if match is None:
            return 0.0
        credit = float(match.group())
        return credit if math.isfinite(credit) else 0.0

    def get_products(self, cls: Optional[Type] = None) -> List[Any]:
        """List the products available to the reseller.

        Args:
            cls: Optional model class for each product, with model_validate(), from_dict()
                or from_json(). Plain dicts are returned when omitted.
        """
        data = self._call("get products", "GET", "products")
        if data is None:
            return []
        try:
            products = deserialize(data, cls=list)
        except ValueError:
            return []
        if not isinstance(products, list):
            return []
        if cls is None:
            return products
        return deserialize(products, cls=List[cls], enveloped_key=None)

    def get_service_details(self, service_id: str, cls: Optional[Type] = None) -> Any:
        """Return the details of a service, as a dict or as an instance of ``cls``.

        An empty dict is returned when the API reports an error.
        """
        data = self._call("get service details", "GET", f"services/{service_id}")
        if not data:
            return {}
        return deserialize(data, cls=cls or dict, enveloped_key=None)

    def get_info(self, service_id: str) -> Dict[str, Any]:
        """Return the provisioning state of a service.

        ``{"success": True}`` once the service is ready, otherwise ``success`` is False
        with a ``warning`` and, while provisioning, a ``progress`` value.
        """
        data = self._send("get service info", "GET", f"services/{service_id}/getInfo").get_json()
        if not isinstance(data, dict):
            data = {}
        if data.get("result") == "success":
            return {"success": True}
        if data.get("warning") is not None:
            return {"success": False, "warning": data["warning"], "progress": data.get("progress", 0)}
        return {"success": False, "warning": GENERIC_WARNING}

    def create_service(self, product_id: str, params: Dict[str, Any]) -> Union[Dict[str, Any], bool]:
        data = self._call("create service", "POST", f"order/products/{product_id}", multipart=params)
        return False if data is None else data

    def start(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("start service", service_id, "start")

    def stop(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("stop service", service_id, "stop")

    def reboot(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("reboot service", service_id, "reboot")

    def terminate(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("terminate service", service_id, "terminate")

    def suspend(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("suspend service", service_id, "suspend")

    def unsuspend(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("unsuspend service", service_id, "unsuspend")

    def renew(self, service_id: str) -> Union[Dict[str, Any], bool]:
        return self._service_action("renew service", service_id, "renew")

    def change_password(self, service_id: str, password: str) -> Union[Dict[str, Any], bool]:
        data = self._call(
            "change password", "POST", f"services/{service_id}/changepassword", multipart={"password": password}
        )
        return False if data is None else data

    def reinstall_templates(self, service_id: str) -> List[Dict[str, Any]]:
        """Return the OS templates a service can be reinstalled with."""
        data = self._call("get reinstall templates", "GET", f"services/{service_id}/reinstall")
        if data is None:
            return []
        return data.get("osTemplates") or []

    def reinstall(self, service_id: str, template_id: str, password: str) -> Union[Dict[str, Any], bool]:
        data = self._call(
            "reinstall service",
            "POST",
            f"services/{service_id}/reinstall",
            multipart={"actionid": template_id, "password": password},
        )
        return False if data is None else data

    def get_wmks_url(self, service_id: str) -> Union[str, bool]:
        """Return the WMKS web console URL for a service, or False."""
        data = self._call("get WMKS URL", "POST", f"services/{service_id}/actionWmksConsole")
        if data is None:
            return False
        return data.get("url") or False

    def sso_login(self, service_id: str) -> Union[str, bool]:
        """Return a single sign-on URL for the service control panel, or False."""
        data = self._call("get SSO login URL", "POST", f"services/{service_id}/ssologin")
        if data is None:
            return False
        inner = data.get("data")
        return (inner.get("url") if isinstance(inner, dict) else None) or False
