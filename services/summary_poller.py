"""
Waits for a pending summary to settle by re-fetching it on a fixed interval.
"""

import logging
import time
from typing import Callable, Dict, Any

from models import SummaryDetail

logger = logging.getLogger(__name__)


class SummaryPoller:
    def __init__(self, fetch: Callable[[str], Dict[str, Any]], interval: float = 5.0, timeout: float = 25.0,
                 sleep: Callable[[float], None] = time.sleep, clock: Callable[[], float] = time.monotonic):
        self.fetch = fetch
        self.interval = max(float(interval), 0.0)
        self.timeout = float(timeout)
        self.sleep = sleep
        self.clock = clock

    def wait(self, summary_id: str) -> SummaryDetail:
        """Return the summary once it leaves ``pending`` or the timeout passes.

        The result may still be pending when the deadline is reached.
        """
        deadline = self.clock() + self.timeout
        detail = SummaryDetail.from_api(self.fetch(summary_id))
        polls = 1

        while detail.is_pending:
            remaining = deadline - self.clock()
            if remaining <= 0:
                break
            self.sleep(min(self.interval, remaining))
            detail = SummaryDetail.from_api(self.fetch(summary_id))
            polls += 1

        logger.debug(f"Summary {summary_id} status={detail.status} after {polls} poll(s)")
        return detail
