"""
Metric client for CurveFS process endpoints.

Every CurveFS process (MDS, metaserver) exposes brpc bvar metrics as plain
text at GET /vars/<name>. A response body looks like:

    curve_version : "2.5.0+2c4861ca"

Key design decisions:
- Uses injected httpx.AsyncClient (no base_url, each call names its target)
- Returns the value as a string with surrounding quotes removed
- Any failure is a TransportError for that target only
"""

import logging
from dataclasses import dataclass

import httpx

from curvefs_admin.exceptions import TransportError

logger = logging.getLogger(__name__)

PID_PATH = "/vars/pid"
VERSION_PATH = "/vars/curve_version"


def parse_metric_value(text: str) -> str:
    """
    Extract the value from a "name : value" metric body.

    Raises:
        ValueError: If the body is not in "name : value" form.
    """
    name, sep, value = text.strip().partition(":")
    if not sep or not name.strip():
        raise ValueError(f"unrecognized metric body: {text!r}")
    return value.strip().strip('"')


@dataclass
class MetricClient:
    """
    bvar metric client with injected httpx client.

    Example:
        async with httpx.AsyncClient(timeout=0.5) as http:
            metrics = MetricClient(http=http)
            version = await metrics.fetch_target_metric("10.0.0.1:6800", VERSION_PATH)
    """

    http: httpx.AsyncClient

    async def fetch_target_metric(self, address: str, path: str) -> str:
        """
        Fetch one metric value from one target.

        Args:
            address: Target "host:port"
            path: Metric path (e.g. "/vars/pid")

        Raises:
            TransportError: If the target is unreachable, answers with an
                HTTP error, or the body cannot be parsed.
        """
        url = f"http://{address}{path}"
        logger.debug("GET %s", url)
        try:
            response = await self.http.get(url)
            response.raise_for_status()
            return parse_metric_value(response.text)
        except httpx.HTTPError as e:
            raise TransportError(address, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise TransportError(address, str(e)) from e
