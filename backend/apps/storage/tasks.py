"""
Celery tasks for pinned file housekeeping.
"""

import structlog
from celery import shared_task
from prometheus_client import Counter

from .pinning import PinningServiceError, get_pinning_client

logger = structlog.get_logger(__name__)

UNPIN_RETRY_TOTAL = Counter(
    "unpin_retry_total",
    "Unpin task retries",
)


@shared_task(
    bind=True,
    autoretry_for=(PinningServiceError,),
    retry_backoff=30,
    retry_backoff_max=600,
    max_retries=3,
)
def unpin_file(self, ipfs_hash: str):
    """
    Unpin a file whose record was deleted.

    Retried with exponential backoff when the pinning service fails.
    """
    if self.request.retries > 0:
        UNPIN_RETRY_TOTAL.inc()
        logger.warning(
            "unpin_retry",
            ipfs_hash=ipfs_hash,
            retry_count=self.request.retries,
            max_retries=self.max_retries,
        )

    get_pinning_client().unpin(ipfs_hash)
    return {"status": "unpinned", "ipfs_hash": ipfs_hash}
