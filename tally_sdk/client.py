"""
Tally HTTP client.

POSTs request XML to the Tally server and hands back the response text or
its parsed tree. Transport failures are mapped onto the SDK's error types
so callers can tell a refused connection from a timeout, an HTTP error
status or an empty reply.
"""
from __future__ import annotations
from typing import Any, Optional
import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from loguru import logger
from .builder import build_tdl_collection_request
from .config import TallyConfig
from .errors import (
    TallyConnectionError,
    TallyError,
    TallyHTTPStatusError,
    TallyNoResponseError,
    TallyTimeoutError,
)
from .parsers.base import parse_xml, raise_for_error

DEFAULT_HEADERS = {
    "Content-Type": "text/xml; charset=utf-8",
    "Accept": "text/xml",
    "User-Agent": "tally-sdk/1.0",
}


def _log_retry(retry_state) -> None:
    logger.warning(
        f"Retrying Tally request (attempt {retry_state.attempt_number}): "
        f"{retry_state.outcome.exception()}"
    )


class TallyClient:
    """
    HTTP client for the Tally XML API.

    Features:
    - One requests.Session per client
    - Retry with exponential backoff, for refused connections only
    - Configurable timeouts
    - Response parsing and Tally error detection (send_request)

    Timeouts and dropped responses are never retried: an import that timed
    out may still have been applied.
    """

    retry_wait = wait_exponential(multiplier=1, min=1, max=10)

    def __init__(self, config: Optional[TallyConfig] = None):
        self.config = config or TallyConfig.from_env()
        self.base_url = self.config.base_url
        self.company = self.config.tally_company
        self.session = requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def _retrying(self) -> Retrying:
        return Retrying(
            wait=self.retry_wait,
            stop=stop_after_attempt(max(1, self.config.retry_attempts)),
            retry=(
                retry_if_exception_type(TallyConnectionError)
                & retry_if_not_exception_type((TallyTimeoutError, TallyNoResponseError))
            ),
            before_sleep=_log_retry,
            reraise=True,
        )

    def post_xml(self, xml: str, timeout: Optional[int] = None) -> str:
        """
        Post XML to Tally and return the response text.

        Args:
            xml: XML request string
            timeout: Request timeout in seconds (uses config default if not specified)

        Raises:
            TallyConnectionError: connection refused or host unreachable
            TallyTimeoutError: no answer within the timeout
            TallyNoResponseError: request sent, connection dropped without a reply
            TallyHTTPStatusError: non-2xx status
        """
        return self._retrying()(self._post_once, xml, timeout)

    def _post_once(self, xml: str, timeout: Optional[int] = None) -> str:
        timeout = timeout or self.config.request_timeout
        logger.debug(f"POST {self.base_url} ({len(xml)} bytes)")
        try:
            r = self.session.post(self.base_url, data=xml.encode("utf-8"), timeout=timeout)
        except requests.Timeout as e:
            logger.error(f"Tally request timed out after {timeout}s")
            raise TallyTimeoutError(f"Request timeout after {timeout}s: {e}") from e
        except requests.ConnectionError as e:
            if "Connection aborted" in str(e) or "RemoteDisconnected" in str(e):
                logger.error(f"Tally closed the connection without responding: {e}")
                raise TallyNoResponseError(f"No response from TallyPrime server: {e}") from e
            logger.error(f"Failed to connect to Tally at {self.base_url}: {e}")
            raise TallyConnectionError(
                f"Cannot connect to TallyPrime at {self.base_url}. "
                f"Make sure TallyPrime is running with the XML server enabled: {e}"
            ) from e
        except requests.RequestException as e:
            logger.error(f"Tally request failed: {e}")
            raise TallyNoResponseError(f"Request failed: {e}") from e

        if not r.ok:
            logger.error(f"Tally returned HTTP {r.status_code}")
            raise TallyHTTPStatusError(r.status_code, r.reason or "")

        logger.debug(f"Response received ({len(r.text)} chars)")
        return r.text

    def send_request(self, xml: str, timeout: Optional[int] = None) -> dict[str, Any]:
        """
        Post XML and return the parsed response tree.

        Raises TallyResponseError when the response carries a Tally error,
        TallyParseError when it is not XML.
        """
        text = self.post_xml(xml, timeout=timeout)
        return raise_for_error(parse_xml(text))

    def test_connection(self) -> dict:
        """
        Test connection to Tally and return server info.

        Returns:
            Dict with connection status and server info
        """
        # A collection of groups exists in every company
        test_xml = build_tdl_collection_request(
            "ListOfGroups", "Group", ["NAME"], company=self.company
        )
        try:
            response = self.post_xml(test_xml, timeout=30)
        except TallyError as e:
            return {
                "status": "failed",
                "url": self.base_url,
                "error": str(e),
            }

        if "<ENVELOPE" in response:
            return {
                "status": "connected",
                "url": self.base_url,
                "company": self.company,
                "response_length": len(response),
                "groups_found": response.count("<GROUP "),
            }
        return {
            "status": "connected_unknown",
            "url": self.base_url,
            "message": "Connected but unexpected response format",
        }

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
