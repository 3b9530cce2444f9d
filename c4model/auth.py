# c4model/auth.py
"""Request signing for the workspace API: content MD5 plus an HMAC-SHA256 authorization header."""
from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

HEADER_AUTHORIZATION = "X-Authorization"
HEADER_NONCE = "Nonce"
HEADER_CONTENT_MD5 = "Content-MD5"
HEADER_USER_AGENT = "User-Agent"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"


def md5_digest(content: Optional[str]) -> str:
    """Lower-case hex MD5 of the UTF-8 encoding of `content` (None is treated as "")."""
    return hashlib.md5((content or "").encode("utf-8")).hexdigest()


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@dataclass(frozen=True)
class HmacContent:
    """The string that gets signed for one request."""

    method: str
    path: str
    content_md5: str
    content_type: str
    nonce: str

    def __str__(self) -> str:
        return f"{self.method}\n{self.path}\n{self.content_md5}\n{self.content_type}\n{self.nonce}\n"


def hmac_sha256(secret: str, content: str) -> str:
    return hmac.new(secret.encode("utf-8"), content.encode("utf-8"), hashlib.sha256).hexdigest()


def authorization_header(api_key: str, signature: str) -> str:
    return f"{api_key}:{b64(signature)}"


def signed_headers(
    *,
    api_key: str,
    api_secret: str,
    method: str,
    path: str,
    body: str,
    nonce: str,
    user_agent: str,
) -> dict[str, str]:
    """Every header a workspace API request needs, Content-Type included."""
    content_md5 = md5_digest(body)
    content = HmacContent(method.upper(), path, content_md5, CONTENT_TYPE_JSON, nonce)
    return {
        HEADER_USER_AGENT: user_agent,
        HEADER_AUTHORIZATION: authorization_header(api_key, hmac_sha256(api_secret, str(content))),
        HEADER_NONCE: nonce,
        HEADER_CONTENT_MD5: b64(content_md5),
        "Content-Type": CONTENT_TYPE_JSON,
    }
