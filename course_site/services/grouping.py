"""Course grouping — collapse rounds sharing a title into one catalog entry."""

from __future__ import annotations

from dataclasses import dataclass, field

from course_site.records import (
    CANCELLED, CLOSED, CLOSED_FULL, RECRUITING, UPCOMING, CourseRound,
)

# First match wins
STATUS_PRIORITY = [RECRUITING, UPCOMING, CLOSED_FULL, CANCELLED]
FALLBACK_STATUS = CLOSED

ALL = "all"
FILTERS = [ALL, RECRUITING, CLOSED_FULL, UPCOMING, CLOSED, CANCELLED]


@dataclass
class CourseGroup:
    """All rounds of one course title. ``rounds`` is never empty."""

    title: str
    rounds: list[CourseRound] = field(default_factory=list)
    display_status: str = FALLBACK_STATUS

    @property
    def lead(self) -> CourseRound:
        """First-seen round; its metadata stands for the whole group."""
        return self.rounds[0]

    def find_round(self, detail_id) -> CourseRound | None:
        for r in self.rounds:
            if r.matches(detail_id):
                return r
        return None


def display_status(rounds: list[CourseRound]) -> str:
    statuses = {r.status for r in rounds}
    for status in STATUS_PRIORITY:
        if status in statuses:
            return status
    return FALLBACK_STATUS


def group_rounds(rounds: list[CourseRound]) -> list[CourseGroup]:
    """Group rounds by title, keeping first-seen title order and input round order."""
    by_title: dict[str, CourseGroup] = {}
    for r in rounds:
        group = by_title.get(r.title)
        if group is None:
            group = by_title[r.title] = CourseGroup(title=r.title)
        group.rounds.append(r)

    groups = list(by_title.values())
    for group in groups:
        group.display_status = display_status(group.rounds)
    return groups


def filter_groups(groups: list[CourseGroup], status: str = ALL) -> list[CourseGroup]:
    """Groups visible under a catalog filter. Never mutates ``groups``."""
    if not status or status == ALL:
        return list(groups)
    return [g for g in groups if g.display_status == status]


def find_group(groups: list[CourseGroup], detail_id) -> CourseGroup | None:
    """Group containing the round whose id matches ``detail_id``."""
    for group in groups:
        if group.find_round(detail_id) is not None:
            return group
    return None
