"""Known revisions and the default comparison range."""

from __future__ import annotations

from dataclasses import dataclass

from .categories import PRIMARY_CATEGORY
from .exceptions import NoDataError
from .store import MeasurementStore

# Revisions below this predate the current benchmark suite
LOWEST_REVISION = 800_000

# Default comparison: the 5th-from-last revision against the latest
DEFAULT_REVISION_WINDOW = 5

# Largest revision a SQLite INTEGER column can hold
MAX_REVISION = 2**63 - 1


def list_revisions(
    store: MeasurementStore,
    table: str = PRIMARY_CATEGORY.table,
    floor: int = LOWEST_REVISION,
) -> list[int]:
    """Distinct revisions ``>= floor`` with data in ``table``, ascending."""
    return store.revisions(table, floor)


@dataclass(frozen=True)
class RevisionPolicy:
    """Picks the revisions to compare when a request leaves them out.

    Attributes:
        floor: Oldest revision considered
        window: How far back from the latest revision the default low end sits
    """

    floor: int = LOWEST_REVISION
    window: int = DEFAULT_REVISION_WINDOW

    def default_range(self, revisions: list[int]) -> tuple[int, int]:
        """Return ``(low, high)`` defaults for an ascending revision list.

        ``low`` is the ``window``-th revision from the end (the earliest one
        if there are fewer), ``high`` the latest.

        Raises:
            NoDataError: If there are no revisions
        """
        if not revisions:
            raise NoDataError(
                "No benchmark revisions found",
                context={"floor": self.floor},
                suggestions=["Check that the benchmark database has been populated"],
            )
        low = revisions[max(len(revisions) - max(self.window, 1), 0)]
        return low, revisions[-1]

    def resolve(
        self,
        revisions: list[int],
        low: int | None = None,
        high: int | None = None,
    ) -> tuple[int, int]:
        """Fill in whichever of ``low`` / ``high`` the caller did not give."""
        if low is not None and high is not None:
            return low, high
        default_low, default_high = self.default_range(revisions)
        return (
            default_low if low is None else low,
            default_high if high is None else high,
        )
