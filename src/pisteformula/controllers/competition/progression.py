"""Phase progression for competitions.

This module sequences the phases of a competition: it generates poules and
brackets, moves phases through their lifecycle, applies qualification
rules and feeds the losers of a Main bracket into its dependent brackets.
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

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from pisteformula.bracket.builder import BracketBuilder
from pisteformula.bracket.rounds import (
    create_first_round_bouts,
    final_ranking,
    is_finished,
    losers_of_round,
)
from pisteformula.constants import AGE_CATEGORIES, REPECHAGE_STAGE_FIELD
from pisteformula.exceptions import (
    ConfigurationError,
    DependencyError,
    IncompletePhaseError,
)
from pisteformula.models.athlete import Athlete
from pisteformula.models.bracket import Bracket
from pisteformula.models.enums import (
    BracketType,
    PhaseStatus,
    RepechageSource,
)
from pisteformula.models.phase import BracketConfig, Competition, Phase
from pisteformula.models.standing import PouleStanding
from pisteformula.seeding.seeder import PouleGenerationResult, generate_poules
from pisteformula.tournament.standings_calculator import compute_phase_ranking
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class QualificationResult:
    """Outcome of a completed phase.

    Attributes:
        qualified: Athletes advancing to the next phase, in ranked order
        eliminated: Athletes leaving the competition, in ranked order
        ranking: Full phase ranking (qualified followed by eliminated)
    """

    qualified: List[Athlete] = field(default_factory=list)
    eliminated: List[Athlete] = field(default_factory=list)
    ranking: List[Athlete] = field(default_factory=list)


class ProgressionCoordinator:
    """Drives the phases of one competition.

    This class is responsible for:
    - Generating the poules of poule phases
    - Building Main brackets and feeding dependent brackets
    - Enforcing SCHEDULED -> IN_PROGRESS -> COMPLETED transitions
    - Ranking phases and applying qualification rules
    """

    def __init__(self, competition: Competition):
        """Initialize the coordinator.

        Args:
            competition: Competition whose phases are driven
        """
        self.competition = competition
        self.bracket_builder = BracketBuilder()

    # ----- helpers -----

    def _check_owned(self, phase: Phase) -> None:
        if all(p is not phase for p in self.competition.phases):
            raise ConfigurationError(
                f"Phase '{phase.name}' does not belong to competition "
                f"{self.competition.id}"
            )

    def _check_scheduled(self, phase: Phase, action: str) -> None:
        if phase.status is not PhaseStatus.SCHEDULED:
            raise ConfigurationError(
                f"Cannot {action} for phase '{phase.name}': it is "
                f"{phase.status.value}"
            )

    def _athletes_of(self, phase: Phase) -> List[Athlete]:
        athletes: List[Athlete] = []
        for poule in phase.poules:
            athletes.extend(poule.athletes)
        for bracket in phase.brackets:
            athletes.extend(bracket.athletes)
        return athletes

    # ----- generation -----

    def generate_poules(
        self, phase: Phase, roster: Sequence[Athlete]
    ) -> PouleGenerationResult:
        """Generate the poules of a scheduled poule phase.

        When the previous phase is completed, seeds follow its ranking, so
        a later poule round is seeded from the results of the round before.

        Raises:
            ConfigurationError: If the phase is not a scheduled poule phase
                or the roster does not fit the configuration
        """
        self._check_owned(phase)
        if not phase.is_poule_phase:
            raise ConfigurationError(f"Phase '{phase.name}' is not a poule phase")
        self._check_scheduled(phase, "generate poules")

        previous_ranking = None
        previous = self.competition.previous_phase(phase)
        if previous is not None and previous.status is PhaseStatus.COMPLETED:
            previous_ranking = [a.id for a in self.phase_ranking(previous)]
            logger.debug(
                "Seeding '%s' from the ranking of '%s'", phase.name, previous.name
            )

        result = generate_poules(
            roster,
            phase.configuration,
            phase_id=phase.id,
            previous_ranking=previous_ranking,
        )
        phase.poules = result.poules
        return result

    def build_brackets(
        self, phase: Phase, qualifiers: Sequence[Athlete]
    ) -> List[Bracket]:
        """Build the Main brackets of a scheduled elimination phase.

        Dependent brackets are checked against the Main brackets now and
        filled later with :meth:`feed_dependent_bracket`.

        Raises:
            ConfigurationError: If the phase is not a scheduled elimination
                phase or the qualifiers do not fit
            DependencyError: If a dependent bracket has no Main bracket
        """
        self._check_owned(phase)
        if phase.is_poule_phase:
            raise ConfigurationError(f"Phase '{phase.name}' has no brackets")
        self._check_scheduled(phase, "build brackets")

        brackets: List[Bracket] = []
        dependents: List[BracketConfig] = []
        for config in phase.configuration.brackets:
            if config.bracket_type.requires_main:
                dependents.append(config)
                continue
            bracket = self.bracket_builder.build(
                qualifiers, config, brackets, phase_id=phase.id
            )
            create_first_round_bouts(bracket)
            brackets = self.bracket_builder.register(brackets, bracket)

        for config in dependents:
            self.bracket_builder.find_main_bracket(config, brackets)

        phase.brackets = brackets
        return brackets

    def _feed_round(self, config: BracketConfig, main: Bracket) -> int:
        """Round of the Main bracket whose losers enter ``config``."""
        if config.bracket_type is BracketType.REPECHAGE:
            source = config.repechage_source or RepechageSource.FIRST_ROUND
            if source is RepechageSource.FIRST_ROUND:
                return 1
            round_number = main.round_for_field(REPECHAGE_STAGE_FIELD[source.value])
        elif config.bracket_type is BracketType.CLASSIFICATION:
            round_number = main.round_for_field(max(config.classification_positions))
        else:
            return 1

        if round_number is None:
            raise ConfigurationError(
                f"Main bracket '{main.name}' (table of {main.size}) has no round "
                f"feeding bracket '{config.name}'"
            )
        return round_number

    def feed_dependent_bracket(self, phase: Phase, name: str) -> Bracket:
        """Build a dependent bracket from the losers of its Main bracket.

        Repechage draws the losers of its source stage, classification the
        losers of the round matching its positions (9-16: table of 16),
        consolation the first-round losers. Entrants are seeded by their
        Main bracket seed.

        Raises:
            ConfigurationError: If the bracket is unknown, not dependent, or
                the Main bracket has no matching round
            DependencyError: If its Main bracket has not been built
            IncompletePhaseError: If the feeding round is not finished
        """
        self._check_owned(phase)
        if phase.is_poule_phase:
            raise ConfigurationError(f"Phase '{phase.name}' has no brackets")
        config = phase.configuration.bracket_config(name)
        if config is None:
            raise ConfigurationError(f"Unknown bracket '{name}' in phase '{phase.name}'")
        if not config.bracket_type.requires_main:
            raise ConfigurationError(f"Bracket '{name}' is not a dependent bracket")

        main = self.bracket_builder.find_main_bracket(config, phase.brackets)
        round_number = self._feed_round(config, main)
        bouts = main.bouts_in_round(round_number)
        if not bouts or any(not b.is_complete for b in bouts):
            logger.error(
                "Cannot feed '%s': round %s of '%s' is not finished",
                name,
                round_number,
                main.name,
            )
            raise IncompletePhaseError(
                f"Round {round_number} of bracket '{main.name}' is not finished"
            )

        loser_ids = sorted(
            losers_of_round(main, round_number), key=lambda a: main.seed_of(a) or 0
        )
        entrants = [main.athlete_by_id(athlete_id) for athlete_id in loser_ids]
        bracket = self.bracket_builder.build(
            entrants, config, phase.brackets, phase_id=phase.id
        )
        create_first_round_bouts(bracket)
        phase.brackets = self.bracket_builder.register(phase.brackets, bracket)
        return bracket

    def remove_bracket(self, phase: Phase, name: str) -> None:
        """Remove a built bracket from a phase.

        Raises:
            ConfigurationError: If the phase is completed or there is no
                such bracket
            DependencyError: If a Main bracket still has dependent brackets
        """
        self._check_owned(phase)
        if phase.status is PhaseStatus.COMPLETED:
            raise ConfigurationError(
                f"Cannot remove bracket '{name}': phase '{phase.name}' is "
                f"{phase.status.value}"
            )
        bracket = phase.bracket(name)
        if bracket is None:
            raise ConfigurationError(f"Unknown bracket '{name}' in phase '{phase.name}'")

        if bracket.bracket_type is BracketType.MAIN:
            built = [b.name for b in phase.brackets if b.source_bracket == name]
            other_mains = [
                b
                for b in phase.brackets
                if b.bracket_type is BracketType.MAIN and b.name != name
            ]
            configured = [
                c.name
                for c in phase.configuration.dependents_of(name)
                if c.source_bracket == name or not other_mains
            ]
            dependents = sorted(set(built) | set(configured))
            if dependents:
                logger.error(
                    "Cannot remove Main bracket '%s': dependents %s",
                    name,
                    dependents,
                )
                raise DependencyError(
                    f"Main bracket '{name}' has dependent brackets: {dependents}"
                )

        phase.brackets = [b for b in phase.brackets if b.name != name]
        logger.info("Removed bracket '%s' from phase '%s'", name, phase.name)

    # ----- lifecycle -----

    def start_phase(self, phase: Phase) -> None:
        """Move a phase from SCHEDULED to IN_PROGRESS.

        Raises:
            ConfigurationError: If the phase is not scheduled or has nothing
                to fence yet
            IncompletePhaseError: If the previous phase is not completed
        """
        self._check_owned(phase)
        self._check_scheduled(phase, "start")

        previous = self.competition.previous_phase(phase)
        if previous is not None and previous.status is not PhaseStatus.COMPLETED:
            logger.error(
                "Cannot start '%s': previous phase '%s' is %s",
                phase.name,
                previous.name,
                previous.status.value,
            )
            raise IncompletePhaseError(
                f"Phase '{previous.name}' must be completed before "
                f"'{phase.name}' starts"
            )
        if not phase.poules and not phase.brackets:
            raise ConfigurationError(
                f"Phase '{phase.name}' has no poules or brackets to start"
            )

        phase.status = PhaseStatus.IN_PROGRESS
        logger.info("Phase '%s' started", phase.name)

    def unresolved_work(self, phase: Phase) -> List[str]:
        """Descriptions of what still blocks completing a phase."""
        pending: List[str] = []
        for poule in phase.poules:
            unresolved = poule.unresolved_bouts()
            missing = poule.expected_bout_count - len(poule.bouts)
            if unresolved or missing:
                pending.append(
                    f"poule {poule.number}: {len(unresolved) + missing} bout(s)"
                )
        if not phase.is_poule_phase:
            for config in phase.configuration.brackets:
                bracket = phase.bracket(config.name)
                if bracket is None:
                    pending.append(f"bracket '{config.name}' not built")
                elif not is_finished(bracket):
                    pending.append(f"bracket '{config.name}' not finished")
        return pending

    def complete_phase(self, phase: Phase) -> None:
        """Move a phase from IN_PROGRESS to COMPLETED.

        Raises:
            ConfigurationError: If the phase is not in progress
            IncompletePhaseError: If bouts or brackets are unresolved
        """
        self._check_owned(phase)
        if phase.status is not PhaseStatus.IN_PROGRESS:
            raise ConfigurationError(
                f"Cannot complete phase '{phase.name}': it is {phase.status.value}"
            )
        pending = self.unresolved_work(phase)
        if pending:
            logger.error("Cannot complete '%s': %s", phase.name, pending)
            raise IncompletePhaseError(
                f"Phase '{phase.name}' has unresolved work: {'; '.join(pending)}"
            )
        phase.status = PhaseStatus.COMPLETED
        logger.info("Phase '%s' completed", phase.name)

    # ----- ranking and qualification -----

    def poule_phase_standings(self, phase: Phase) -> List[PouleStanding]:
        return compute_phase_ranking(phase.poules)

    def phase_ranking(self, phase: Phase) -> List[Athlete]:
        """Rank every athlete of a phase.

        Poule phases rank by V/M, indicator and touches scored across all
        poules. Elimination phases rank by Main bracket result; a finished
        classification bracket then orders the places it decides.
        """
        if phase.is_poule_phase:
            by_id = {a.id: a for a in self._athletes_of(phase)}
            return [by_id[s.athlete_id] for s in self.poule_phase_standings(phase)]

        ranking: List[Athlete] = []
        for bracket in phase.brackets:
            if bracket.bracket_type is BracketType.MAIN:
                ranking.extend(final_ranking(bracket))

        for bracket in phase.brackets:
            if bracket.bracket_type is not BracketType.CLASSIFICATION:
                continue
            if not bracket.classification_positions or not is_finished(bracket):
                continue
            first = min(bracket.classification_positions)
            last = max(bracket.classification_positions)
            current = ranking[first - 1 : last]
            ordered = final_ranking(bracket)
            if {a.id for a in current} != {a.id for a in ordered}:
                logger.warning(
                    "Classification '%s' does not match places %s-%s, ignored",
                    bracket.name,
                    first,
                    last,
                )
                continue
            ranking[first - 1 : last] = ordered
        return ranking

    def advance_phase(self, phase: Phase) -> QualificationResult:
        """Complete a phase if needed and select its qualifiers.

        Returns:
            Qualified and eliminated athletes, both in ranked order

        Raises:
            IncompletePhaseError: If the phase has not started or still has
                unresolved bouts
        """
        self._check_owned(phase)
        if phase.status is PhaseStatus.SCHEDULED:
            raise IncompletePhaseError(f"Phase '{phase.name}' has not started")
        if phase.status is PhaseStatus.IN_PROGRESS:
            self.complete_phase(phase)

        ranking = self.phase_ranking(phase)
        rule = phase.qualification
        if rule.quota is not None and rule.quota > len(ranking):
            logger.warning(
                "Qualification quota %s exceeds the %s ranked athlete(s) of '%s'",
                rule.quota,
                len(ranking),
                phase.name,
            )
        count = rule.qualifier_count(len(ranking))

        result = QualificationResult(
            qualified=ranking[:count],
            eliminated=ranking[count:],
            ranking=ranking,
        )
        logger.info(
            "Phase '%s': %s qualified, %s eliminated (%s)",
            phase.name,
            len(result.qualified),
            len(result.eliminated),
            rule.method,
        )
        return result

    # ----- eligibility -----

    def check_eligibility(
        self, roster: Sequence[Athlete], reference_date: Optional[date] = None
    ) -> None:
        """Check every athlete against the competition's age category.

        Ages are taken on ``reference_date``, the competition's reference
        date, or today. Athletes without a date of birth are accepted.

        Raises:
            ConfigurationError: Listing every ineligible athlete
        """
        category = self.competition.category
        if category is None:
            return
        minimum, maximum = AGE_CATEGORIES[category]
        reference = reference_date or self.competition.reference_date or date.today()

        ineligible = []
        for athlete in roster:
            age = athlete.age_on(reference)
            if age is None:
                logger.warning("%s has no date of birth; accepted", athlete.id)
                continue
            if (minimum is not None and age < minimum) or (
                maximum is not None and age > maximum
            ):
                ineligible.append(f"{athlete.id} (age {age})")

        if ineligible:
            logger.warning("Ineligible for %s: %s", category, ineligible)
            raise ConfigurationError(
                f"Athletes not eligible for {category}: {', '.join(ineligible)}"
            )
