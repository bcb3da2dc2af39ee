"""
Client-side analytics aggregation.

aggregate_analytics() folds per-turn analytics records and feedback ratings
into dashboard summaries. AnalyticsTracker holds both lists in memory for
the lifetime of a client session.
"""

import math
from datetime import timezone
from typing import Dict, Iterable, List, Optional

from .schemas import AggregatedAnalytics, AnalyticsMetadata, DailyUsage, FeedbackRating, FeedbackRecord
from .utils import parse_timestamp


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _hour_bucket(timestamp: str) -> str:
    """HH:00 bucket in local time."""
    return f"{parse_timestamp(timestamp).astimezone().hour:02d}:00"


def _date_bucket(timestamp: str) -> str:
    """ISO calendar date in UTC."""
    return parse_timestamp(timestamp).astimezone(timezone.utc).date().isoformat()


def aggregate_analytics(
    records: Iterable[AnalyticsMetadata],
    feedback: Iterable[FeedbackRecord] = (),
) -> AggregatedAnalytics:
    """
    Aggregate analytics history and feedback into dashboard summaries.

    Histograms keep keys in first-seen order.

    Args:
        records: Per-turn analytics records, in arrival order
        feedback: Feedback records, at most one per message id

    Returns:
        AggregatedAnalytics: Totals, averages and histograms
    """
    records = list(records)
    feedback = list(feedback)

    execution_times = [record.execution_time_ms for record in records]
    average = sum(execution_times) / len(execution_times) if execution_times else 0

    department_breakdown: Dict[str, int] = {}
    hourly_usage: Dict[str, int] = {}
    daily: Dict[str, DailyUsage] = {}

    for record in records:
        department_breakdown[record.department] = department_breakdown.get(record.department, 0) + 1

        hour = _hour_bucket(record.timestamp)
        hourly_usage[hour] = hourly_usage.get(hour, 0) + 1

        date = _date_bucket(record.timestamp)
        bucket = daily.setdefault(date, DailyUsage(date=date))
        bucket.messages += 1
        bucket.tokens += record.total_tokens

    return AggregatedAnalytics(
        total_messages=len(records),
        total_tokens=sum(record.total_tokens for record in records),
        total_input_tokens=sum(record.input_tokens for record in records),
        total_output_tokens=sum(record.output_tokens for record in records),
        average_execution_time=_round_half_up(average),
        execution_times=execution_times,
        sessions_count=len({record.session_id for record in records}),
        feedback_positive=sum(1 for record in feedback if record.rating == "like"),
        feedback_negative=sum(1 for record in feedback if record.rating == "dislike"),
        department_breakdown=department_breakdown,
        hourly_usage=hourly_usage,
        daily_usage=list(daily.values()),
    )


class AnalyticsTracker:
    """In-memory analytics history and feedback for one client session."""

    def __init__(self):
        self.analytics_history: List[AnalyticsMetadata] = []
        self.feedback_records: List[FeedbackRecord] = []

    def track_analytics(self, analytics: AnalyticsMetadata) -> None:
        self.analytics_history.append(analytics)

    def track_feedback(self, message_id: str, rating: FeedbackRating) -> FeedbackRecord:
        """
        Record a rating for a message, replacing any earlier rating.

        Args:
            message_id: Rated message id
            rating: "like" or "dislike"

        Returns:
            FeedbackRecord: The stored record
        """
        record = FeedbackRecord(message_id=message_id, rating=rating)

        for index, existing in enumerate(self.feedback_records):
            if existing.message_id == message_id:
                self.feedback_records[index] = record
                return record

        self.feedback_records.append(record)
        return record

    def get_aggregated_analytics(self) -> AggregatedAnalytics:
        return aggregate_analytics(self.analytics_history, self.feedback_records)

    def get_latest_analytics(self) -> Optional[AnalyticsMetadata]:
        return self.analytics_history[-1] if self.analytics_history else None

    def clear_analytics(self) -> None:
        self.analytics_history = []
        self.feedback_records = []
