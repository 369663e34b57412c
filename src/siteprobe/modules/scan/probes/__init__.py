"""Built-in probes."""

from .cookies import CookieProbe
from .dns_records import DnsProbe
from .exposed_paths import ExposedPathProbe
from .headers import HeaderPolicyEvaluator
from .mixed_content import MixedContentProbe
from .redirects import OpenRedirectProbe
from .server import ServerConfigProbe
from .sri import SubresourceIntegrityProbe
from .tls import TLSInspector

__all__ = [
    "CookieProbe",
    "DnsProbe",
    "ExposedPathProbe",
    "HeaderPolicyEvaluator",
    "MixedContentProbe",
    "OpenRedirectProbe",
    "ServerConfigProbe",
    "SubresourceIntegrityProbe",
    "TLSInspector",
]
