"""Fire-and-forget dispatch of graded-exam reports to notification sinks."""
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

ReportSink = Callable[[dict[str, Any]], None]

_sinks: list[ReportSink] = []


def register_sink(sink: ReportSink) -> None:
    """Register a callable that receives every exam report."""
    _sinks.append(sink)


def clear_sinks() -> None:
    _sinks.clear()


def dispatch_exam_report(report: dict[str, Any]) -> int:
    """
    Hand a report to every registered sink.
    A failing sink is logged and skipped; grading never depends on delivery.

    Returns:
        Number of sinks that accepted the report.
    """
    if not _sinks:
        logger.info(f"No notification sink registered; report for attempt {report.get('attemptId')} not delivered")
        return 0

    delivered = 0
    for sink in list(_sinks):
        try:
            sink(report)
            delivered += 1
        except Exception:
            logger.exception(f"Notification sink failed for attempt {report.get('attemptId')}")
    return delivered
