"""Filters for the activity catalog.

Pure matching rules shared by every ActivityStore; a store may push parts
of a filter into its query as long as the result is the same.
"""

from dataclasses import dataclass
from datetime import date

from activities.domain.models import Activity
from activities.domain.recurrence import occurs_between


@dataclass(frozen=True)
class ActivityFilter:
    """Narrows an activity listing.

    ``search`` matches title, description or location, case-insensitively.
    ``category`` must equal one of the activity's categories (ignoring case).
    The period keeps activities with at least one occurrence inside it;
    either bound may be open.
    """

    search: str = ""
    category: str = ""
    period_start: date | None = None
    period_end: date | None = None

    def __post_init__(self) -> None:
        if (
            self.period_start is not None
            and self.period_end is not None
            and self.period_end < self.period_start
        ):
            raise ValueError("Period end must not precede period start")

    @property
    def has_period(self) -> bool:
        return self.period_start is not None or self.period_end is not None

    def matches_search(self, activity: Activity) -> bool:
        needle = self.search.strip().casefold()
        if not needle:
            return True
        fields = (activity.title, activity.description, activity.location)
        return any(needle in field.casefold() for field in fields)

    def matches_category(self, activity: Activity) -> bool:
        wanted = self.category.strip().casefold()
        if not wanted:
            return True
        return any(c.casefold() == wanted for c in activity.categories)

    def matches_period(self, activity: Activity) -> bool:
        if not self.has_period:
            return True
        return occurs_between(
            activity, self.period_start or date.min, self.period_end or date.max
        )

    def matches(self, activity: Activity) -> bool:
        return (
            self.matches_search(activity)
            and self.matches_category(activity)
            and self.matches_period(activity)
        )
