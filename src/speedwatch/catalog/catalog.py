"""HazardCatalog — immutable snapshot of hazards and corridors."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from speedwatch.catalog.models import (
    AverageZoneCorridor,
    CorridorId,
    HazardId,
    HazardPoint,
)

_logger = logging.getLogger(__name__)


class HazardCatalog:
    """Read-only container of :class:`HazardPoint` and :class:`AverageZoneCorridor`.

    Built from records that have already been validated by the feed layer.
    There is no mutation API: a data reload builds a new catalog and hands it
    to :meth:`ProximityEngine.reload_catalog`.

    Duplicate ids keep the first record seen; insertion order is preserved,
    which is the order corridors are tested for membership.
    """

    def __init__(
        self,
        hazards: Iterable[HazardPoint] = (),
        corridors: Iterable[AverageZoneCorridor] = (),
    ) -> None:
        self._hazards: dict[HazardId, HazardPoint] = {}
        for hazard in hazards:
            if hazard.id in self._hazards:
                _logger.debug("Duplicate hazard id %s ignored", hazard.id)
                continue
            self._hazards[hazard.id] = hazard

        self._corridors: dict[CorridorId, AverageZoneCorridor] = {}
        for corridor in corridors:
            if corridor.id in self._corridors:
                _logger.debug("Duplicate corridor id %s ignored", corridor.id)
                continue
            self._corridors[corridor.id] = corridor

        self._hazard_list = tuple(self._hazards.values())
        self._corridor_list = tuple(self._corridors.values())

    @classmethod
    def empty(cls) -> HazardCatalog:
        return cls()

    def all_hazards(self) -> tuple[HazardPoint, ...]:
        return self._hazard_list

    def all_corridors(self) -> tuple[AverageZoneCorridor, ...]:
        return self._corridor_list

    def hazard(self, hazard_id: HazardId) -> HazardPoint | None:
        return self._hazards.get(hazard_id)

    def corridor(self, corridor_id: CorridorId) -> AverageZoneCorridor | None:
        return self._corridors.get(corridor_id)

    def __len__(self) -> int:
        return len(self._hazard_list)

    def __repr__(self) -> str:
        return (
            f"HazardCatalog(hazards={len(self._hazard_list)}, "
            f"corridors={len(self._corridor_list)})"
        )
