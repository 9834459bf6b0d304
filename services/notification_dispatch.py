"""
Notification fan-out.

Sends one notification per recipient concurrently. Every dispatch runs as
its own task; all tasks are awaited and a failing recipient is logged and
reported without cancelling the others.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from core.config import settings
from services.checkin_sources import NotificationSink

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    user_id: str
    kind: str
    payload: Dict[str, Any]


@dataclass
class DispatchFailure:
    user_id: str
    kind: str
    error: str


@dataclass
class DispatchReport:
    """Outcome of a fan-out."""
    delivered: List[str] = field(default_factory=list)
    failed: List[DispatchFailure] = field(default_factory=list)

    @property
    def all_delivered(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "delivered": list(self.delivered),
            "failed": [
                {"user_id": f.user_id, "kind": f.kind, "error": f.error}
                for f in self.failed
            ],
        }


def _send(sink: NotificationSink, notification: Notification) -> None:
    sink.dispatch(notification.user_id, notification.kind, dict(notification.payload))


def dispatch_all(
    sink: NotificationSink,
    notifications: List[Notification],
    max_workers: Optional[int] = None,
) -> DispatchReport:
    """
    Dispatch every notification in parallel and collect all outcomes.

    Args:
        sink: Delivery collaborator
        notifications: One entry per recipient
        max_workers: Thread pool size (settings.NOTIFICATION_MAX_WORKERS by default)

    Returns:
        DispatchReport listing delivered recipients and per-recipient failures,
        both in input order.
    """
    report = DispatchReport()
    if not notifications:
        return report

    workers = min(max_workers or settings.NOTIFICATION_MAX_WORKERS, len(notifications))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify") as pool:
        futures = [(n, pool.submit(_send, sink, n)) for n in notifications]

        for notification, future in futures:
            try:
                future.result()
                report.delivered.append(notification.user_id)
            except Exception as e:
                logger.error(
                    f"Notification {notification.kind} to user {notification.user_id} failed: {e}",
                    exc_info=True,
                )
                report.failed.append(
                    DispatchFailure(user_id=notification.user_id, kind=notification.kind, error=str(e))
                )

    if report.failed:
        logger.warning(f"{len(report.failed)} of {len(notifications)} notifications failed")

    return report
