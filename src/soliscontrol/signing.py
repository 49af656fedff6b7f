"""SolisCloud request signing.

Every API call carries four headers derived from the request:

- ``Content-MD5``: base64 of the MD5 digest of the exact body bytes
- ``Content-Type``: always ``application/json;charset=UTF-8``
- ``Date``: RFC 1123 timestamp in GMT
- ``Authorization``: ``API <key id>:<signature>``

The signature is ``base64(HMAC-SHA1(key_secret, string_to_sign))`` with::

    string_to_sign = VERB + "\\n" + Content-MD5 + "\\n" + Content-Type + "\\n"
                     + Date + "\\n" + CanonicalizedResource

The same ``Date`` string must appear in the signature and in the header,
otherwise the server rejects the request.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from email.utils import formatdate

from .config import Credentials
from .constants import CONTENT_TYPE


@dataclass(frozen=True)
class SignedRequest:
    """Headers produced for one signed call."""

    content_md5: str
    content_type: str
    date: str
    authorization: str

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": self.authorization,
            "Content-MD5": self.content_md5,
            "Content-Type": self.content_type,
            "Date": self.date,
        }


def content_md5(body: bytes) -> str:
    """Return the base64 encoded MD5 digest of ``body``."""
    digest = hashlib.md5(body, usedforsecurity=False).digest()
    return base64.b64encode(digest).decode("ascii")


def http_date() -> str:
    """Current time as an RFC 1123 date, e.g. ``Tue, 14 Oct 2025 08:15:02 GMT``."""
    return formatdate(usegmt=True)


def string_to_sign(
    verb: str, md5: str, content_type: str, date: str, resource: str
) -> str:
    return "\n".join((verb, md5, content_type, date, resource))


def sign(secret: str, message: str) -> str:
    """HMAC-SHA1 ``message`` with ``secret`` and base64 encode the digest."""
    mac = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha1)
    return base64.b64encode(mac.digest()).decode("ascii")


def sign_request(
    credentials: Credentials,
    resource: str,
    body: bytes,
    *,
    verb: str = "POST",
    date: str | None = None,
) -> SignedRequest:
    """Sign a request body for ``resource``.

    Args:
        credentials: API key pair used for the HMAC
        resource: Canonical resource path, e.g. ``/v2/api/atRead``
        body: The exact bytes that will be sent
        verb: HTTP verb
        date: RFC 1123 date to sign; generated now when omitted

    Returns:
        SignedRequest with all four authentication headers
    """
    if date is None:
        date = http_date()
    md5 = content_md5(body)
    signature = sign(
        credentials.key_secret,
        string_to_sign(verb, md5, CONTENT_TYPE, date, resource),
    )
    return SignedRequest(
        content_md5=md5,
        content_type=CONTENT_TYPE,
        date=date,
        authorization=f"API {credentials.key_id}:{signature}",
    )
