import logging
from typing import List

import requests

from .errors import FeedError, NoCookieError, TransportError
from .http_client import HttpClient
from .models import RollcallTask
from .stores import RollcallFeed

logger = logging.getLogger("tronsign.feed")

RADAR_ENDPOINT = "/api/radar/rollcalls"
RADAR_API_VERSION = "1.1.0"


def numeric_tasks(tasks: List[RollcallTask]) -> List[RollcallTask]:
    """Open number-code rollcalls the account has not answered yet."""
    return [t for t in tasks if t.is_numeric_recovery]


class HttpRollcallFeed(RollcallFeed):
    def __init__(self, client: HttpClient):
        self.client = client

    def list_active(self, cookie: str) -> List[RollcallTask]:
        if not cookie:
            raise NoCookieError("No cookie available to query active rollcalls")

        try:
            resp = self.client.send(
                "GET",
                RADAR_ENDPOINT,
                headers={"Cookie": cookie},
                params={"api_version": RADAR_API_VERSION},
            )
        except requests.RequestException as e:
            raise TransportError(f"Rollcall feed unreachable: {e}") from e

        if not resp.ok:
            raise FeedError(f"Fetching active rollcalls failed: HTTP {resp.status_code}", resp.status_code)

        data = resp.json_data if isinstance(resp.json_data, dict) else {}
        items = data.get("rollcalls") or []
        tasks = [RollcallTask.from_api(item) for item in items if isinstance(item, dict)]
        logger.info("Active rollcalls: %d (%d numeric)", len(tasks), len(numeric_tasks(tasks)))
        return tasks
