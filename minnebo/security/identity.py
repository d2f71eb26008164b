"""Request identity: best-effort client IP and header-shape fingerprint.

Works on a ``RequestContext`` rather than a framework request object so the
security layer can be unit-tested without an ASGI app.
"""

import hashlib
import ipaddress
from dataclasses import dataclass, field

UNKNOWN_IP = "unknown"

# Header values that make up the fingerprint, in order
FINGERPRINT_HEADERS = (
    "user-agent",
    "accept",
    "accept-language",
    "accept-encoding",
    "connection",
)
FINGERPRINT_LENGTH = 16

NON_PUBLIC_NETWORKS = [
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "224.0.0.0/3",  # multicast and reserved
    )
]


@dataclass
class RequestContext:
    """The parts of an inbound request the security layer looks at.

    Header names are stored lower-cased; the original order is preserved.
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    client_host: str | None = None

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str) -> str:
        return self.headers.get(name.lower(), "")

    @property
    def host(self) -> str:
        return self.header("host").strip().lower()


def _is_public_ipv4(candidate: str) -> bool:
    """True for a well-formed dotted-quad outside private/reserved ranges."""
    try:
        ip = ipaddress.IPv4Address(candidate)
    except ValueError:
        return False
    return not any(ip in network for network in NON_PUBLIC_NETWORKS)


def extract_client_ip(ctx: RequestContext) -> str:
    """Return the first public address in X-Forwarded-For.

    Falls back to the socket peer address, then to ``"unknown"``. Malformed
    entries are skipped, never raised on.
    """
    forwarded = ctx.header("x-forwarded-for")
    if forwarded:
        for candidate in forwarded.split(","):
            candidate = candidate.strip()
            if _is_public_ipv4(candidate):
                return candidate
    if ctx.client_host:
        return ctx.client_host
    return UNKNOWN_IP


def fingerprint(ctx: RequestContext) -> str:
    """Deterministic short hash of the request's header shape.

    Requests with the same headers, method and path collide on purpose: the
    value groups look-alike traffic and is not a personal identifier.
    """
    parts = [ctx.header(name) for name in FINGERPRINT_HEADERS]
    parts.append(",".join(sorted(ctx.headers)))
    parts.append(ctx.method.upper())
    parts.append(ctx.path)
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
