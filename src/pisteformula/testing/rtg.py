"""Random Roster Generator - reproducible fields and bout results for testing.

This module generates rosters with realistic club and country clustering
and simulates poule and elimination bouts, so that whole competitions can
be driven through the engine without real score entry.
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
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from pisteformula.bracket.rounds import advance_round, champion
from pisteformula.constants import ELIMINATION_BOUT_TOUCHES, POULE_BOUT_TOUCHES
from pisteformula.models.athlete import Athlete
from pisteformula.models.bracket import Bracket
from pisteformula.models.phase import PoulePhaseConfig
from pisteformula.models.poule import Bout, Poule
from pisteformula.seeding.seeder import PouleGenerationResult, generate_poules
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)

COUNTRY_CODES = ("FRA", "ITA", "HUN", "USA", "KOR", "JPN", "GER", "UKR", "POL", "CHN")


@dataclass
class RosterConfig:
    """Configuration for the random roster generator.

    Clubs belong to countries (club ``k`` is in country ``k % num_countries``),
    so club clustering implies country clustering as in real fields.
    """

    num_athletes: int
    num_clubs: int = 8
    num_countries: int = 4
    ranking_range: Tuple[float, float] = (0.0, 200.0)
    birth_year_range: Tuple[int, int] = (1990, 2008)
    upset_rate: float = 0.25
    seed: Optional[int] = None


class RandomRosterGenerator:
    """Creates reproducible rosters: the same seed gives the same athletes."""

    def __init__(self, config: RosterConfig):
        if not 1 <= config.num_countries <= len(COUNTRY_CODES):
            raise ValueError(
                f"num_countries must be between 1 and {len(COUNTRY_CODES)}"
            )
        self.config = config
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )

    def create_athletes(self) -> List[Athlete]:
        """Create the roster, strongest ranking not necessarily first."""
        athletes = []
        for number in range(1, self.config.num_athletes + 1):
            club = self.random.randrange(max(self.config.num_clubs, 1))
            country = COUNTRY_CODES[club % self.config.num_countries]
            low, high = self.config.ranking_range
            athletes.append(
                Athlete(
                    id=f"A{number:03d}",
                    name=f"{country}-{number:03d}",
                    nationality=country,
                    club_ids=(f"CLUB{club:02d}",),
                    ranking_score=round(self.random.uniform(low, high), 1),
                    date_of_birth=self._generate_birth_date(),
                )
            )

        logger.info(
            "Created %s athletes from %s clubs in %s countries",
            len(athletes),
            self.config.num_clubs,
            self.config.num_countries,
        )
        return athletes

    def _generate_birth_date(self) -> date:
        first, last = self.config.birth_year_range
        return date(
            self.random.randint(first, last),
            self.random.randint(1, 12),
            self.random.randint(1, 28),
        )

    def simulator(self) -> "BoutSimulator":
        """A bout simulator sharing this generator's random stream."""
        return BoutSimulator(self.random, self.config.upset_rate)

    def run_poule_phase(
        self, athletes: Sequence[Athlete], config: PoulePhaseConfig
    ) -> PouleGenerationResult:
        """Generate poules for ``athletes`` and fence every bout."""
        result = generate_poules(athletes, config)
        simulator = self.simulator()
        for poule in result.poules:
            simulator.fence_poule(poule)
        return result


class BoutSimulator:
    """Simulates bout scores. The higher-ranked athlete usually wins."""

    def __init__(self, rng: random.Random, upset_rate: float = 0.25):
        self.random = rng
        self.upset_rate = upset_rate

    def _score(self, bout: Bout, athletes: Dict[str, Athlete], touches: int) -> None:
        a = athletes[bout.athlete_a_id]
        b = athletes[bout.athlete_b_id]
        favourite_is_a = (a.ranking_score, b.id) >= (b.ranking_score, a.id)
        a_wins = favourite_is_a != (self.random.random() < self.upset_rate)
        loser_score = self.random.randint(0, touches - 1)
        if a_wins:
            bout.record_score(touches, loser_score)
        else:
            bout.record_score(loser_score, touches)

    def fence_poule(self, poule: Poule) -> None:
        """Record a result for every open bout of a poule."""
        athletes = {a.id: a for a in poule.athletes}
        for bout in poule.bouts:
            if not bout.is_complete:
                self._score(bout, athletes, POULE_BOUT_TOUCHES)

    def fence_round(self, bracket: Bracket) -> None:
        """Record a result for every open bout of the current round."""
        athletes = {a.id: a for a in bracket.athletes}
        for bout in bracket.bouts_in_round(bracket.current_round):
            if not bout.is_complete:
                self._score(bout, athletes, ELIMINATION_BOUT_TOUCHES)

    def fence_bracket(self, bracket: Bracket) -> Optional[str]:
        """Fence a bracket to the end and return the champion."""
        if bracket.current_round == 0:
            advance_round(bracket)
        while champion(bracket) is None:
            self.fence_round(bracket)
            advance_round(bracket)
        return champion(bracket)


def create_small_roster(seed: Optional[int] = None) -> List[Athlete]:
    """A club-level field of 18 athletes."""
    return RandomRosterGenerator(
        RosterConfig(num_athletes=18, num_clubs=5, num_countries=2, seed=seed)
    ).create_athletes()


def create_international_roster(seed: Optional[int] = None) -> List[Athlete]:
    """A world-cup sized field of 64 athletes from 8 countries."""
    return RandomRosterGenerator(
        RosterConfig(num_athletes=64, num_clubs=24, num_countries=8, seed=seed)
    ).create_athletes()
