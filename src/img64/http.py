"""HTTP helpers with cross-platform TLS guidance."""

from __future__ import annotations

import os
import ssl

import requests

from .exceptions import ImageReadError, TLSCertificateError
from .version import get_version


DEFAULT_TIMEOUT = 10.0


def _tls_help(url: str) -> str:
    return (
        "TLS certificate verification failed while downloading "
        f"'{url}'. On macOS run the Python 'Install Certificates.command' "
        "(from the python.org installer). On Windows run 'py -m pip install --upgrade certifi'. "
        "On Linux install your 'ca-certificates' package (apt/yum/apk). "
        "Also check system date/time and any proxy or corporate SSL inspection."
    )


def _is_cert_error(error: requests.exceptions.SSLError) -> bool:
    current: BaseException | None = error
    while current is not None:
        if isinstance(current, ssl.SSLCertVerificationError):
            return True
        for arg in getattr(current, "args", ()):
            if isinstance(arg, ssl.SSLCertVerificationError):
                return True
            reason = getattr(arg, "reason", None)
            if isinstance(reason, ssl.SSLCertVerificationError):
                return True
        current = current.__cause__ or current.__context__
    return "CERTIFICATE_VERIFY_FAILED" in str(error)


def default_user_agent() -> str:
    """Return the User-Agent sent with remote image requests."""
    override = os.getenv("IMG64_HTTP_USER_AGENT", "").strip()
    if override:
        return override
    return f"img64/{get_version()}"


def create_session(user_agent: str | None = None) -> requests.Session:
    """Return a requests session preconfigured for image downloads."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent or default_user_agent()
    return session


def fetch_bytes(
    session: requests.Session,
    url: str,
    *,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> bytes:
    """Download ``url`` completely and return the response body."""
    try:
        response = session.get(url, timeout=timeout)
    except requests.exceptions.SSLError as exc:
        if _is_cert_error(exc):
            raise TLSCertificateError(_tls_help(url)) from exc
        raise ImageReadError(f"Failed to download '{url}': {exc}") from exc
    except requests.exceptions.RequestException as exc:
        raise ImageReadError(f"Failed to download '{url}': {exc}") from exc

    with response:
        if not response.ok:
            raise ImageReadError(f"Failed to download '{url}': HTTP {response.status_code}")
        return response.content


__all__ = [
    "DEFAULT_TIMEOUT",
    "create_session",
    "default_user_agent",
    "fetch_bytes",
]
