"""Poule generation: seeding order, dealing and separation.

This module turns a roster and a :class:`PoulePhaseConfig` into poules with
their empty bouts. Club and country separation is attempted after dealing
and reported, not enforced.
"""

# Piste Formula
# Copyright (C) 2025  Piste Formula developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from pisteformula.constants import MIN_POULE_SIZE
from pisteformula.exceptions import ConfigurationError, SeparationWarning
from pisteformula.models.athlete import Athlete
from pisteformula.models.enums import SeedingMethod
from pisteformula.models.phase import PoulePhaseConfig
from pisteformula.models.poule import Poule, PouleAssignment
from pisteformula.seeding.poule_sizes import (
    compute_poule_sizes,
    poule_balance_warnings,
)
from pisteformula.seeding.round_robin import generate_bouts
from pisteformula.seeding.separation import SeparationRepairer
from pisteformula.type_hints import AthleteId, ManualPouleAssignment
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class PouleGenerationResult:
    """Poules of one phase plus any seeding warnings.

    Attributes:
        poules: Generated poules, numbered from 1
        warnings: At most one SeparationWarning listing what repair left,
            preceded by a PouleBalanceWarning when explicit sizes do not
            match the field
        seeding_order: Athletes in seed order (seed 1 first)
    """

    poules: List[Poule]
    warnings: List[UserWarning] = field(default_factory=list)
    seeding_order: List[Athlete] = field(default_factory=list)

    @property
    def size_distribution(self) -> Dict[int, int]:
        """Number of poules of each size."""
        return dict(sorted(Counter(p.size for p in self.poules).items()))

    @property
    def average_size(self) -> float:
        if not self.poules:
            return 0.0
        return sum(p.size for p in self.poules) / len(self.poules)


# ========== Seeding order ==========


def order_by_ranking(
    athletes: Sequence[Athlete],
    previous_ranking: Optional[Sequence[AthleteId]] = None,
) -> List[Athlete]:
    """Seed order of a roster.

    Without ``previous_ranking`` athletes are sorted by descending ranking
    score, ties broken by athlete id. With it, athletes follow the ranking
    of the previous phase; athletes it does not list come after, sorted by
    ranking score.
    """
    by_score = sorted(athletes, key=lambda a: (-a.ranking_score, a.id))
    if previous_ranking is None:
        return by_score
    place = {athlete_id: i for i, athlete_id in enumerate(previous_ranking)}
    unplaced = len(place)
    return sorted(by_score, key=lambda a: place.get(a.id, unplaced))


def seeding_order(
    athletes: Sequence[Athlete],
    config: PoulePhaseConfig,
    previous_ranking: Optional[Sequence[AthleteId]] = None,
) -> List[Athlete]:
    """Order in which athletes are dealt into poules."""
    ranked = order_by_ranking(athletes, previous_ranking)
    if config.seeding_method is SeedingMethod.RANDOM:
        rng = random.Random(config.random_seed)
        rng.shuffle(ranked)
    return ranked


# ========== Dealing ==========


def _straight_indices(poule_count: int) -> Iterator[int]:
    while True:
        yield from range(poule_count)


def _serpentine_indices(poule_count: int) -> Iterator[int]:
    while True:
        yield from range(poule_count)
        yield from reversed(range(poule_count))


def deal(order: Sequence[Athlete], sizes: Sequence[int], serpentine: bool) -> List[List[Athlete]]:
    """Deal athletes into poules of the given sizes.

    Full poules are skipped, so the dealing pattern only bends where the
    poule sizes differ.
    """
    buckets: List[List[Athlete]] = [[] for _ in sizes]
    indices = (
        _serpentine_indices(len(sizes)) if serpentine else _straight_indices(len(sizes))
    )
    for athlete in order:
        index = next(indices)
        while len(buckets[index]) >= sizes[index]:
            index = next(indices)
        buckets[index].append(athlete)
    return buckets


def manual_buckets(
    athletes: Sequence[Athlete],
    assignment: ManualPouleAssignment,
    config: PoulePhaseConfig,
) -> List[List[Athlete]]:
    """Resolve a manual poule assignment into athletes.

    Raises:
        ConfigurationError: If the poule count or sizes are wrong, or an
            athlete is missing, unknown or listed twice
    """
    if len(assignment) != config.poule_count:
        raise ConfigurationError(
            f"Manual assignment has {len(assignment)} poules, "
            f"expected {config.poule_count}"
        )

    by_id = {a.id: a for a in athletes}
    seen: Dict[str, int] = {}
    buckets: List[List[Athlete]] = []
    for number, athlete_ids in enumerate(assignment, start=1):
        if not MIN_POULE_SIZE <= len(athlete_ids) <= config.poule_size:
            raise ConfigurationError(
                f"Manual poule {number} has {len(athlete_ids)} athletes; "
                f"sizes must be between {MIN_POULE_SIZE} and {config.poule_size}"
            )
        bucket = []
        for athlete_id in athlete_ids:
            if athlete_id not in by_id:
                raise ConfigurationError(
                    f"Manual poule {number} lists unknown athlete {athlete_id}"
                )
            if athlete_id in seen:
                raise ConfigurationError(
                    f"Athlete {athlete_id} is assigned to poules "
                    f"{seen[athlete_id]} and {number}"
                )
            seen[athlete_id] = number
            bucket.append(by_id[athlete_id])
        buckets.append(bucket)

    missing = sorted(set(by_id) - set(seen))
    if missing:
        raise ConfigurationError(f"Athletes missing from manual assignment: {missing}")
    return buckets


# ========== Generation ==========


def _check_roster(athletes: Sequence[Athlete]) -> None:
    if not athletes:
        raise ConfigurationError("Cannot generate poules without athletes")
    counts = Counter(a.id for a in athletes)
    duplicates = sorted(athlete_id for athlete_id, n in counts.items() if n > 1)
    if duplicates:
        raise ConfigurationError(f"Duplicate athlete ids in roster: {duplicates}")


def generate_poules(
    athletes: Sequence[Athlete],
    config: PoulePhaseConfig,
    phase_id: Optional[str] = None,
    previous_ranking: Optional[Sequence[AthleteId]] = None,
) -> PouleGenerationResult:
    """Assign every athlete to exactly one poule and create the bouts.

    Args:
        athletes: Roster of the phase
        config: Poule phase configuration
        phase_id: Owning phase, stamped on the poules
        previous_ranking: Athlete ids ranked by the previous phase; seeds
            follow it instead of the ranking score

    Returns:
        The poules with any balance and separation warnings

    Raises:
        ConfigurationError: If the roster or the configuration is invalid
    """
    _check_roster(athletes)
    config.validate(len(athletes))

    ranked = order_by_ranking(athletes, previous_ranking)
    if config.seeding_method is SeedingMethod.MANUAL:
        order = ranked
        seeds = {a.id: i for i, a in enumerate(order, start=1)}
        buckets = manual_buckets(athletes, config.manual_assignment, config)
        repairer = SeparationRepairer(
            config.separation, seeds, len(buckets), config.max_repair_iterations
        )
        remaining = repairer.find_violations(buckets)
    else:
        sizes = compute_poule_sizes(len(athletes), config)
        order = seeding_order(athletes, config, previous_ranking)
        seeds = {a.id: i for i, a in enumerate(order, start=1)}
        buckets = deal(
            order, sizes, serpentine=config.seeding_method is SeedingMethod.SNAKE
        )
        repairer = SeparationRepairer(
            config.separation, seeds, len(sizes), config.max_repair_iterations
        )
        remaining = repairer.repair(buckets)

    warnings: List[UserWarning] = []
    for balance in poule_balance_warnings(len(athletes), config):
        logger.warning(str(balance))
        warnings.append(balance)
    if remaining:
        warning = SeparationWarning(remaining)
        logger.warning(str(warning))
        warnings.append(warning)

    poules = []
    for number, bucket in enumerate(buckets, start=1):
        poule = Poule(
            number=number,
            assignments=[
                PouleAssignment(athlete=athlete, position=position, seed=seeds[athlete.id])
                for position, athlete in enumerate(bucket, start=1)
            ],
            phase_id=phase_id,
        )
        poule.bouts = generate_bouts(poule)
        poules.append(poule)

    result = PouleGenerationResult(poules=poules, warnings=warnings, seeding_order=order)
    logger.info(
        "Generated %s poule(s) for %s athlete(s) with %s seeding: sizes %s",
        len(poules),
        len(athletes),
        config.seeding_method.value,
        [p.size for p in poules],
    )
    return result
