from .browser import BrowserManager
from .client import ReceivablesPortalClient
from .selectors import PortalSelectors

__all__ = ["BrowserManager", "ReceivablesPortalClient", "PortalSelectors"]
