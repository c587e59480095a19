import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0"

API_BASE_URL = "https://client.virtualine.net/modules/addons/ProductsReseller/api/index.php/"

from virtualine.client import VirtualineClient, VirtualineError  # noqa: E402

__all__ = ["API_BASE_URL", "VirtualineClient", "VirtualineError", "__version__"]
