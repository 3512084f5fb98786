"""Standings calculation for poules.

This module ranks the athletes of a poule (or of a whole poule phase) from
the recorded bouts. Standings are pure functions of the bouts: computing
them twice over the same bouts gives the same result.
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

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pisteformula.models.poule import Bout, Poule
from pisteformula.models.standing import PouleStanding
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class _Tally:
    victories: int = 0
    bouts_fenced: int = 0
    touches_scored: int = 0
    touches_received: int = 0
    poule_number: Optional[int] = None

    @property
    def indicator(self) -> int:
        return self.touches_scored - self.touches_received

    @property
    def victory_ratio(self) -> float:
        return self.victories / self.bouts_fenced if self.bouts_fenced else 0.0


# Criteria read the same attributes from a tally or a PouleStanding


def poule_criteria(entry) -> Tuple[int, int, int]:
    """Victories, indicator, touches scored."""
    return (entry.victories, entry.indicator, entry.touches_scored)


def phase_criteria(entry) -> Tuple[float, int, int]:
    """Victory ratio (V/M), indicator, touches scored."""
    return (entry.victory_ratio, entry.indicator, entry.touches_scored)


class StandingsCalculator:
    """Ranks athletes from their poule bouts.

    Poule ranking (FIE order):
    - Victories
    - Indicator (touches scored minus touches received)
    - Touches scored
    - Athlete id, so places are never shared

    Phase ranking compares athletes from poules of different sizes, so it
    uses the victory ratio V/M instead of raw victories.

    Athletes equal on every numeric criterion are flagged ``tied``; only a
    barrage fenced outside the engine can separate them.
    """

    def tally_bouts(
        self, athlete_ids: Iterable[str], bouts: Iterable[Bout]
    ) -> Dict[str, _Tally]:
        """Accumulate victories and touches per athlete.

        Each bout's score pair and winner are read once, so a bout updated
        during the computation is counted either fully before or fully after
        the update. Bouts missing either score contribute nothing, even when
        a winner is already named.
        """
        tallies = {athlete_id: _Tally() for athlete_id in athlete_ids}
        for bout in bouts:
            a_id, b_id = bout.athlete_a_id, bout.athlete_b_id
            score_a, score_b, winner_id = bout.score_a, bout.score_b, bout.winner_id
            if a_id not in tallies or b_id not in tallies:
                logger.warning(
                    "Bout %s involves an athlete outside the poule, ignored", bout.id
                )
                continue

            # A bout counts only once both scores are in
            if score_a is None or score_b is None:
                continue
            if winner_id is not None:
                if winner_id not in (a_id, b_id):
                    logger.warning(
                        "Bout %s names foreign winner %s, ignored", bout.id, winner_id
                    )
                    continue
                tallies[winner_id].victories += 1
                tallies[a_id].bouts_fenced += 1
                tallies[b_id].bouts_fenced += 1

            tallies[a_id].touches_scored += score_a
            tallies[a_id].touches_received += score_b
            tallies[b_id].touches_scored += score_b
            tallies[b_id].touches_received += score_a
        return tallies

    def compute_standings(self, poule: Poule) -> List[PouleStanding]:
        """Rank the athletes of one poule.

        Args:
            poule: Poule with its bouts, complete or not

        Returns:
            One standing per athlete, place 1 first
        """
        tallies = self.tally_bouts(poule.athlete_ids, poule.bouts)
        for tally in tallies.values():
            tally.poule_number = poule.number
        standings = self._rank(tallies, poule_criteria)
        logger.debug(
            "Poule %s standings: %s",
            poule.number,
            [(s.athlete_id, s.victories, s.indicator) for s in standings],
        )
        return standings

    def compute_phase_ranking(self, poules: Sequence[Poule]) -> List[PouleStanding]:
        """Rank every athlete of a poule phase together.

        Args:
            poules: All poules of the phase

        Returns:
            One standing per athlete of the phase, place 1 first
        """
        tallies: Dict[str, _Tally] = {}
        for poule in poules:
            poule_tallies = self.tally_bouts(poule.athlete_ids, poule.bouts)
            for athlete_id, tally in poule_tallies.items():
                tally.poule_number = poule.number
                tallies[athlete_id] = tally
        return self._rank(tallies, phase_criteria)

    def _rank(
        self,
        tallies: Dict[str, _Tally],
        criteria: Callable[[_Tally], Tuple],
    ) -> List[PouleStanding]:
        ordered = sorted(
            tallies.items(),
            key=lambda item: tuple(-v for v in criteria(item[1])) + (item[0],),
        )
        keys = [criteria(tally) for _, tally in ordered]

        standings = []
        for index, (athlete_id, tally) in enumerate(ordered):
            tied = (index > 0 and keys[index - 1] == keys[index]) or (
                index + 1 < len(keys) and keys[index + 1] == keys[index]
            )
            standings.append(
                PouleStanding(
                    athlete_id=athlete_id,
                    victories=tally.victories,
                    bouts_fenced=tally.bouts_fenced,
                    touches_scored=tally.touches_scored,
                    touches_received=tally.touches_received,
                    place=index + 1,
                    tied=tied,
                    poule_number=tally.poule_number,
                )
            )
        return standings


_calculator = StandingsCalculator()


def compute_standings(poule: Poule) -> List[PouleStanding]:
    """Rank the athletes of one poule. See :class:`StandingsCalculator`."""
    return _calculator.compute_standings(poule)


def compute_phase_ranking(poules: Sequence[Poule]) -> List[PouleStanding]:
    """Rank all athletes of a poule phase by V/M, indicator, touches scored."""
    return _calculator.compute_phase_ranking(poules)


def unresolved_ties(
    standings: Sequence[PouleStanding],
    criteria: Callable[[PouleStanding], Tuple] = poule_criteria,
) -> List[List[PouleStanding]]:
    """Group consecutive tied standings; each group needs a barrage.

    ``criteria`` must be the one the standings were ranked with:
    :func:`poule_criteria` for a poule, :func:`phase_criteria` for a phase
    ranking.
    """
    groups: List[List[PouleStanding]] = []
    current: List[PouleStanding] = []
    for standing in standings:
        if not standing.tied:
            if len(current) > 1:
                groups.append(current)
            current = []
            continue
        if current and criteria(current[-1]) != criteria(standing):
            if len(current) > 1:
                groups.append(current)
            current = []
        current.append(standing)
    if len(current) > 1:
        groups.append(current)
    return groups
