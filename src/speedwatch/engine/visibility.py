"""VisibilityWindow — incremental in/out diff of hazards near the user."""

from __future__ import annotations

from dataclasses import dataclass

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import HazardId
from speedwatch.geo.geometry import HasLatLon, distance_meters


@dataclass(frozen=True)
class VisibilityDiff:
    entered: tuple[HazardId, ...] = ()
    exited: tuple[HazardId, ...] = ()

    def is_empty(self) -> bool:
        return not self.entered and not self.exited


class VisibilityWindow:
    """Tracks which hazards are within *radius_m* of the latest position.

    The visible set is owned here and updated in place by :meth:`refresh`.
    A full scan is O(hazards); catalogs in scope are bounded (tens of
    thousands of points) and refreshed a few times per second at most.

    Parameters
    ----------
    visible:
        The set to maintain.  Pass ``EngineState.visible`` so that readers of
        the state see the same object.
    """

    def __init__(self, visible: set[HazardId] | None = None) -> None:
        self._visible: set[HazardId] = visible if visible is not None else set()

    @property
    def visible(self) -> frozenset[HazardId]:
        return frozenset(self._visible)

    def refresh(
        self,
        position: HasLatLon | None,
        catalog: HazardCatalog,
        radius_m: float,
    ) -> VisibilityDiff:
        """Recompute the visible set around *position* and return what changed.

        ``entered`` is ordered nearest first; ``exited`` is ordered by id.
        A ``None`` position empties the set.
        """
        inside: dict[HazardId, float] = {}
        if position is not None:
            for hazard in catalog.all_hazards():
                d = distance_meters(position, hazard)
                # NaN fails the comparison, so non-finite hazards never enter
                if d <= radius_m:
                    inside[hazard.id] = d

        entered = sorted(
            (hid for hid in inside if hid not in self._visible),
            key=lambda hid: (inside[hid], hid),
        )
        exited = sorted(hid for hid in self._visible if hid not in inside)

        self._visible.difference_update(exited)
        self._visible.update(entered)
        return VisibilityDiff(entered=tuple(entered), exited=tuple(exited))
