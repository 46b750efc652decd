from __future__ import annotations
import base64
from typing import Dict
from urllib.parse import quote, urlsplit

# ========================================
#           CREDENTIAL HELPERS
# ========================================
"""
Helpers that turn app credentials into the header values sent to the
document store, both on the Socket.IO handshake and on REST calls.
"""

def basic_token(user: str, password: str) -> str:
    """
    Base64 of ``user:password`` (UTF-8), the same token HTTP Basic auth carries.
    """
    raw = f"{user}:{password}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def bearer_header(user: str, password: str) -> str:
    """
    Authorization value for the socket handshake, e.g.
    ``bearer_header("alice", "secret") == "Bearer YWxpY2U6c2VjcmV0"``.
    """
    return f"Bearer {basic_token(user, password)}"


def set_header(headers: Dict[str, str], name: str, value: str) -> None:
    """
    Set ``name`` on a header mapping, replacing any differently-cased duplicate.
    """
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


# ========================================
#           URL HELPERS
# ========================================

def is_http_url(s: str) -> bool:
    """
    Accepts http(s) and ws(s) URLs with a host, e.g. 'https://docstore.example.com/api/v1'.
    """
    try:
        parts = urlsplit(s)
    except ValueError:
        return False
    return parts.scheme in {"http", "https", "ws", "wss"} and bool(parts.netloc)


def join_url(base: str, *segments: str) -> str:
    """
    Join path segments onto ``base`` with single slashes.

    Document paths keep their inner slashes but are percent-encoded otherwise:
    join_url("https://h/api/v1", "documents", "/images/logo.png")
        -> "https://h/api/v1/documents/images/logo.png"
    """
    url = base.rstrip("/")
    for segment in segments:
        segment = segment.strip("/")
        if segment:
            url = f"{url}/{quote(segment, safe='/')}"
    return url
