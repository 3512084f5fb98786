"""Elimination bracket construction.

Builds seeded brackets from ranked qualifiers, registers them in their
canonical execution order and checks that dependent brackets have a Main
bracket to draw from.
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
from typing import List, Optional, Sequence, Tuple

from pisteformula.bracket.seed_table import bracket_size_for, seeded_slot_order
from pisteformula.exceptions import ConfigurationError, DependencyError
from pisteformula.models.athlete import Athlete
from pisteformula.models.bracket import Bracket, BracketSlot
from pisteformula.models.enums import BracketType, SeedingMethod
from pisteformula.models.phase import BracketConfig
from pisteformula.type_hints import ManualSlotOrder
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


class BracketBuilder:
    """Builds and registers the brackets of an elimination phase.

    Qualifiers are expected in ranked order: the first qualifier is seed 1.
    """

    def find_main_bracket(
        self, config: BracketConfig, existing_brackets: Sequence[Bracket]
    ) -> Bracket:
        """Main bracket a dependent bracket draws from.

        Raises:
            DependencyError: If no matching Main bracket exists
        """
        mains = [
            b for b in existing_brackets if b.bracket_type is BracketType.MAIN
        ]
        if config.source_bracket is not None:
            mains = [b for b in mains if b.name == config.source_bracket]
        if not mains:
            source = f" '{config.source_bracket}'" if config.source_bracket else ""
            logger.error(
                "%s bracket '%s' has no Main bracket%s",
                config.bracket_type.display_name,
                config.name,
                source,
            )
            raise DependencyError(
                f"{config.bracket_type.display_name} bracket '{config.name}' "
                f"requires a Main bracket{source}"
            )
        return mains[0]

    def build(
        self,
        qualifiers: Sequence[Athlete],
        config: BracketConfig,
        existing_brackets: Sequence[Bracket] = (),
        phase_id: Optional[str] = None,
    ) -> Bracket:
        """Build a seeded bracket.

        Args:
            qualifiers: Athletes in ranked order
            config: Bracket configuration
            existing_brackets: Brackets already built in the phase
            phase_id: Owning phase

        Returns:
            A bracket with its slots; bouts are created separately

        Raises:
            ConfigurationError: If the qualifiers or the configuration are
                invalid
            DependencyError: If a dependent bracket has no Main bracket
        """
        source_bracket = config.source_bracket
        if config.bracket_type.requires_main:
            source_bracket = self.find_main_bracket(config, existing_brackets).name

        counts = Counter(a.id for a in qualifiers)
        duplicates = sorted(athlete_id for athlete_id, n in counts.items() if n > 1)
        if duplicates:
            raise ConfigurationError(f"Duplicate qualifiers: {duplicates}")

        size = bracket_size_for(len(qualifiers), config.size)

        if config.seeding_method is SeedingMethod.MANUAL:
            if config.manual_slots is None:
                raise ConfigurationError("MANUAL seeding needs manual_slots")
            slots = self.manual_slots(qualifiers, size, config.manual_slots)
        else:
            ordered = list(qualifiers)
            if config.seeding_method is SeedingMethod.RANDOM:
                if config.random_seed is None:
                    raise ConfigurationError("RANDOM seeding needs a random_seed")
                random.Random(config.random_seed).shuffle(ordered)
            slots = self.seeded_slots(ordered, size, config)

        bracket = Bracket(
            bracket_type=config.bracket_type,
            size=size,
            seeding_method=config.seeding_method,
            bye_distribution=config.bye_distribution,
            slots=slots,
            name=config.name,
            source_bracket=source_bracket,
            repechage_source=config.repechage_source,
            classification_positions=config.classification_positions,
            phase_id=phase_id,
        )
        logger.info(
            "Built %s '%s': %s qualifier(s) in a table of %s, %s bye(s)",
            config.bracket_type.display_name,
            bracket.name,
            bracket.qualifier_count,
            size,
            bracket.bye_count,
        )
        return bracket

    def seeded_slots(
        self, ordered: Sequence[Athlete], size: int, config: BracketConfig
    ) -> Tuple[BracketSlot, ...]:
        """Place athletes by seed with the standard table and bye rule."""
        layout = seeded_slot_order(len(ordered), size, config.bye_distribution)
        return tuple(
            BracketSlot(
                position=position,
                athlete=ordered[seed - 1] if seed is not None else None,
                seed=seed,
            )
            for position, seed in enumerate(layout, start=1)
        )

    def manual_slots(
        self, qualifiers: Sequence[Athlete], size: int, layout: ManualSlotOrder
    ) -> Tuple[BracketSlot, ...]:
        """Validate a manual slot layout and turn it into slots.

        Raises:
            ConfigurationError: If the layout has the wrong length, misses or
                repeats a qualifier, names an unknown athlete or pairs two
                byes
        """
        if len(layout) != size:
            raise ConfigurationError(
                f"Manual layout has {len(layout)} slots, expected {size}"
            )
        seeds = {a.id: i for i, a in enumerate(qualifiers, start=1)}
        by_id = {a.id: a for a in qualifiers}

        placed = [athlete_id for athlete_id in layout if athlete_id is not None]
        unknown = sorted(set(placed) - set(seeds))
        if unknown:
            raise ConfigurationError(f"Manual layout names unknown athletes: {unknown}")
        repeated = sorted(a for a, n in Counter(placed).items() if n > 1)
        if repeated:
            raise ConfigurationError(f"Manual layout repeats athletes: {repeated}")
        missing = sorted(set(seeds) - set(placed))
        if missing:
            raise ConfigurationError(f"Manual layout misses qualifiers: {missing}")
        for i in range(0, size, 2):
            if layout[i] is None and layout[i + 1] is None:
                raise ConfigurationError(
                    f"Manual layout pairs two byes in slots {i + 1} and {i + 2}"
                )

        return tuple(
            BracketSlot(
                position=position,
                athlete=by_id[athlete_id] if athlete_id is not None else None,
                seed=seeds[athlete_id] if athlete_id is not None else None,
            )
            for position, athlete_id in enumerate(layout, start=1)
        )

    def register(self, brackets: Sequence[Bracket], bracket: Bracket) -> List[Bracket]:
        """Add a bracket and return the list in execution order.

        Execution order is MAIN, REPECHAGE, CLASSIFICATION, CONSOLATION,
        whatever the creation order; brackets of the same type keep their
        creation order.

        Raises:
            ConfigurationError: If the name is already taken
        """
        if any(b.name == bracket.name for b in brackets):
            raise ConfigurationError(f"Bracket name already used: {bracket.name}")
        return sorted(
            list(brackets) + [bracket], key=lambda b: b.bracket_type.priority
        )


_builder = BracketBuilder()


def build_bracket(
    qualifiers: Sequence[Athlete],
    config: BracketConfig,
    existing_brackets: Sequence[Bracket] = (),
    phase_id: Optional[str] = None,
) -> Bracket:
    """Build a seeded bracket. See :meth:`BracketBuilder.build`."""
    return _builder.build(qualifiers, config, existing_brackets, phase_id)


def register_bracket(brackets: Sequence[Bracket], bracket: Bracket) -> List[Bracket]:
    """Add a bracket to a phase's list, re-sorted in execution order."""
    return _builder.register(brackets, bracket)
