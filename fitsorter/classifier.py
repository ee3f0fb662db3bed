from .errors import NotQualifyingError
from .models import ActivitySession, DecodedActivity, NotQualifyingReason

MANUAL_ACTIVITY_TYPE = "manual"


class ActivityClassifier:
    """Accepts decoded activities the user tagged manually with exactly one sport."""

    def __init__(self, manual_type: str = MANUAL_ACTIVITY_TYPE):
        self.manual_type = manual_type

    def classify(self, activity: DecodedActivity) -> ActivitySession:
        if activity.activity_type != self.manual_type:
            raise NotQualifyingError(
                NotQualifyingReason.WRONG_TYPE,
                f"sport type not set manually (activity type {activity.activity_type})",
            )

        count = len(activity.sports)
        if count != 1:
            raise NotQualifyingError(
                NotQualifyingReason.SPORT_COUNT_MISMATCH,
                f"expected exactly 1 sport, got {count}",
                sport_count=count,
            )

        return ActivitySession(
            sport=str(activity.sports[0]),
            start=activity.timestamp.astimezone(),
            duration_millis=activity.total_timer_millis,
        )
