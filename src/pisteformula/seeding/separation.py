"""Club and country separation for poules.

Separation is a soft constraint. After athletes are dealt into poules, a
bounded local search swaps clustered athletes with athletes of other poules
in the same (or an adjacent) seed tier. Whatever cannot be fixed is reported
as a :class:`SeparationWarning`; assignment completeness is never traded
for separation.
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

from typing import Dict, Iterator, List, Optional, Set, Tuple

from pisteformula.constants import (
    MAX_SEED_TIER_SHIFT,
    SEPARATION_CLUB,
    SEPARATION_COUNTRY,
)
from pisteformula.models.athlete import Athlete
from pisteformula.models.phase import SeparationRules
from pisteformula.models.poule import SeparationViolation
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)

# (poule index, kind, key)
ViolationKey = Tuple[int, str, str]
# (poule index, slot index)
Place = Tuple[int, int]


def separation_keys(athlete: Athlete, kind: str) -> Tuple[str, ...]:
    """Club ids or country code of an athlete for one separation kind."""
    if kind == SEPARATION_CLUB:
        return athlete.club_ids
    return (athlete.nationality,) if athlete.nationality else ()


class SeparationRepairer:
    """Finds and repairs club/country clustering in dealt poules.

    The repairer works on ``buckets``: one list of athletes per poule, in
    position order. Swaps exchange two athletes in place, so positions stay
    dense.
    """

    def __init__(
        self,
        rules: SeparationRules,
        seeds: Dict[str, int],
        poule_count: int,
        max_iterations: int,
    ):
        """Initialize the repairer.

        Args:
            rules: Club and country caps
            seeds: Seed number of every athlete id
            poule_count: Number of poules; one snake row spans this many seeds
            max_iterations: Hard cap on repair attempts
        """
        self.rules = rules
        self.seeds = seeds
        self.poule_count = max(poule_count, 1)
        self.max_iterations = max_iterations
        self.limits: Dict[str, int] = {}
        if rules.club_limit is not None:
            self.limits[SEPARATION_CLUB] = rules.club_limit
        if rules.country_limit is not None:
            self.limits[SEPARATION_COUNTRY] = rules.country_limit

    # ----- detection -----

    def _counts(self, bucket: List[Athlete], kind: str) -> Dict[str, List[str]]:
        members: Dict[str, List[str]] = {}
        for athlete in bucket:
            for key in separation_keys(athlete, kind):
                members.setdefault(key, []).append(athlete.id)
        return members

    def _poule_violations(
        self, index: int, bucket: List[Athlete]
    ) -> Iterator[SeparationViolation]:
        for kind, limit in self.limits.items():
            for key, athlete_ids in sorted(self._counts(bucket, kind).items()):
                if len(athlete_ids) > limit:
                    yield SeparationViolation(
                        poule_number=index + 1,
                        kind=kind,
                        key=key,
                        athlete_ids=tuple(athlete_ids),
                        limit=limit,
                    )

    def find_violations(self, buckets: List[List[Athlete]]) -> List[SeparationViolation]:
        """All violations, by poule number, club before country, then key."""
        violations: List[SeparationViolation] = []
        for index, bucket in enumerate(buckets):
            violations.extend(self._poule_violations(index, bucket))
        return violations

    def _local_state(self, index: int, bucket: List[Athlete]) -> Tuple[Set[ViolationKey], int]:
        keys: Set[ViolationKey] = set()
        excess = 0
        for violation in self._poule_violations(index, bucket):
            keys.add((index, violation.kind, violation.key))
            excess += violation.excess
        return keys, excess

    # ----- repair -----

    def tier(self, athlete: Athlete) -> int:
        """Snake row of an athlete: seeds 1..P are row 0, P+1..2P row 1..."""
        return (self.seeds[athlete.id] - 1) // self.poule_count

    def _candidate_places(
        self, buckets: List[List[Athlete]], home: int, mover: Athlete
    ) -> List[Place]:
        """Swap partners in other poules, closest seed tier first."""
        places: List[Tuple[int, int, int, int]] = []
        mover_tier = self.tier(mover)
        for q, bucket in enumerate(buckets):
            if q == home:
                continue
            for j, other in enumerate(bucket):
                shift = abs(self.tier(other) - mover_tier)
                if shift <= MAX_SEED_TIER_SHIFT:
                    places.append((shift, q, self.seeds[other.id], j))
        places.sort()
        return [(q, j) for _, q, _, j in places]

    def _try_swap(
        self, buckets: List[List[Athlete]], p: int, i: int, q: int, j: int
    ) -> bool:
        """Swap p[i] and q[j] if that adds no violation and lowers the excess."""
        before_p, excess_p = self._local_state(p, buckets[p])
        before_q, excess_q = self._local_state(q, buckets[q])

        new_p = list(buckets[p])
        new_q = list(buckets[q])
        new_p[i], new_q[j] = buckets[q][j], buckets[p][i]

        after_p, new_excess_p = self._local_state(p, new_p)
        after_q, new_excess_q = self._local_state(q, new_q)

        if not after_p <= before_p or not after_q <= before_q:
            return False
        if new_excess_p + new_excess_q >= excess_p + excess_q:
            return False

        buckets[p], buckets[q] = new_p, new_q
        return True

    def _repair_one(
        self, buckets: List[List[Athlete]], violation: SeparationViolation
    ) -> bool:
        p = violation.poule_number - 1
        clustered = set(violation.athlete_ids)
        # Move the weakest clustered athlete first
        movers = sorted(
            (i for i, a in enumerate(buckets[p]) if a.id in clustered),
            key=lambda i: -self.seeds[buckets[p][i].id],
        )
        for i in movers:
            mover = buckets[p][i]
            for q, j in self._candidate_places(buckets, p, mover):
                if self._try_swap(buckets, p, i, q, j):
                    logger.debug(
                        "Separation swap: %s (poule %s) <-> %s (poule %s)",
                        mover.id,
                        p + 1,
                        buckets[p][i].id,
                        q + 1,
                    )
                    return True
        return False

    def repair(self, buckets: List[List[Athlete]]) -> List[SeparationViolation]:
        """Repair violations in place within the iteration cap.

        Args:
            buckets: One list of athletes per poule; modified in place

        Returns:
            Violations left unresolved
        """
        if not self.limits:
            return []

        skipped: Set[ViolationKey] = set()
        iterations = 0
        swaps = 0
        while iterations < self.max_iterations:
            pending: Optional[SeparationViolation] = next(
                (
                    v
                    for v in self.find_violations(buckets)
                    if (v.poule_number - 1, v.kind, v.key) not in skipped
                ),
                None,
            )
            if pending is None:
                break
            iterations += 1
            if self._repair_one(buckets, pending):
                swaps += 1
            else:
                skipped.add((pending.poule_number - 1, pending.kind, pending.key))

        remaining = self.find_violations(buckets)
        logger.debug(
            "Separation repair: %s swap(s) in %s iteration(s), %s violation(s) left",
            swaps,
            iterations,
            len(remaining),
        )
        return remaining
