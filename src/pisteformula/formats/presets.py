"""Built-in competition formulas.

Each preset lists its phases with their qualification percentage, poule
size, separation caps and brackets. Building a preset turns it into a
fresh :class:`Competition` sized for an expected number of entrants.
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

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pisteformula.constants import (
    DEFAULT_MAX_SAME_CLUB_PER_POULE,
    DEFAULT_MAX_SAME_COUNTRY_PER_POULE,
)
from pisteformula.exceptions import ConfigurationError
from pisteformula.models.enums import BracketType, PhaseType, RepechageSource
from pisteformula.models.phase import (
    BracketConfig,
    Competition,
    EliminationPhaseConfig,
    Phase,
    PoulePhaseConfig,
    QualificationRule,
    SeparationRules,
)
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_PRESET_FIELD = 64


@dataclass(frozen=True)
class PresetBracket:
    """A bracket of a preset phase. ``size`` None fits the qualifiers."""

    bracket_type: BracketType = BracketType.MAIN
    size: Optional[int] = None
    repechage_source: Optional[RepechageSource] = None
    classification_positions: Tuple[int, ...] = ()


@dataclass(frozen=True)
class PresetPhase:
    """One phase of a preset formula.

    Attributes:
        name: Phase name
        phase_type: POULE or an elimination type
        qualification_percentage: Percent of the field advancing, or None
        poule_size: Largest poule of a poule phase
        separation: (club cap, country cap); a None cap disables it
        brackets: Brackets of an elimination phase
    """

    name: str
    phase_type: PhaseType
    qualification_percentage: Optional[float] = None
    poule_size: Optional[int] = None
    separation: Tuple[Optional[int], Optional[int]] = (None, None)
    brackets: Tuple[PresetBracket, ...] = ()


@dataclass(frozen=True)
class FormulaPreset:
    id: str
    name: str
    description: str
    phases: Tuple[PresetPhase, ...]


_MAIN = (PresetBracket(),)
_STRICT = (1, 2)

BUILT_IN_PRESETS: Dict[str, FormulaPreset] = {
    preset.id: preset
    for preset in (
        FormulaPreset(
            id="classic-no-3rd",
            name="Classic without match for 3rd place",
            description="Poules followed by direct elimination, no 3rd place bout",
            phases=(
                PresetPhase("Poules", PhaseType.POULE, 70, 7, _STRICT),
                PresetPhase(
                    "Direct Elimination", PhaseType.DIRECT_ELIMINATION, brackets=_MAIN
                ),
            ),
        ),
        FormulaPreset(
            id="multi-round-poules",
            name="Multi-round poules (3 rounds)",
            description="Three rounds of poules with progressive qualification",
            phases=(
                PresetPhase("Poules Round 1", PhaseType.POULE, 68, 7, _STRICT),
                PresetPhase("Poules Round 2", PhaseType.POULE, 76, 5, _STRICT),
                PresetPhase("Poules Round 3", PhaseType.POULE, 74, 5, _STRICT),
                PresetPhase(
                    "Direct Elimination", PhaseType.DIRECT_ELIMINATION, brackets=_MAIN
                ),
            ),
        ),
        FormulaPreset(
            id="fie-world-cup",
            name="FIE World Cup Format",
            description="Poules, table of 64 and classification of places 9-16",
            phases=(
                PresetPhase("Poules", PhaseType.POULE, 70, 7, _STRICT),
                PresetPhase(
                    "Table of 64",
                    PhaseType.DIRECT_ELIMINATION,
                    brackets=(
                        PresetBracket(),
                        PresetBracket(
                            BracketType.CLASSIFICATION,
                            size=8,
                            classification_positions=tuple(range(9, 17)),
                        ),
                    ),
                ),
            ),
        ),
        FormulaPreset(
            id="club-tournament",
            name="Club Tournament (Small)",
            description="Simple format for small club competitions (8-32 fencers)",
            phases=(
                PresetPhase("Poules", PhaseType.POULE, 75, 6),
                PresetPhase(
                    "Direct Elimination", PhaseType.DIRECT_ELIMINATION, brackets=_MAIN
                ),
            ),
        ),
        FormulaPreset(
            id="national-championship",
            name="National Championship",
            description="Poules and direct elimination with repechage",
            phases=(
                PresetPhase("Poules", PhaseType.POULE, 65, 7, (2, None)),
                PresetPhase(
                    "Direct Elimination",
                    PhaseType.DIRECT_ELIMINATION,
                    brackets=(
                        PresetBracket(),
                        PresetBracket(
                            BracketType.REPECHAGE,
                            repechage_source=RepechageSource.FIRST_ROUND,
                        ),
                        PresetBracket(
                            BracketType.CLASSIFICATION,
                            size=8,
                            classification_positions=tuple(range(9, 17)),
                        ),
                    ),
                ),
            ),
        ),
        FormulaPreset(
            id="direct-elimination-only",
            name="Direct Elimination Only",
            description="Pure knockout, no poules",
            phases=(
                PresetPhase(
                    "Direct Elimination", PhaseType.DIRECT_ELIMINATION, brackets=_MAIN
                ),
            ),
        ),
    )
}


def get_preset(preset_id: str) -> FormulaPreset:
    """Look up a built-in preset.

    Raises:
        ConfigurationError: If no preset has this id
    """
    try:
        return BUILT_IN_PRESETS[preset_id]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset '{preset_id}'. Available: {sorted(BUILT_IN_PRESETS)}"
        )


def suggest_presets(athlete_count: int, club_tournament: bool = False) -> List[FormulaPreset]:
    """Presets suited to a field size, best fit first."""
    if athlete_count < 32:
        ids = ["club-tournament", "direct-elimination-only"]
    elif athlete_count <= 64:
        ids = ["classic-no-3rd"]
        if not club_tournament:
            ids.append("fie-world-cup")
        ids.append("club-tournament")
    else:
        ids = [
            "multi-round-poules",
            "national-championship",
            "fie-world-cup",
            "classic-no-3rd",
        ]
    return [BUILT_IN_PRESETS[i] for i in ids]


def _poule_config(template: PresetPhase, field_size: int) -> PoulePhaseConfig:
    club_cap, country_cap = template.separation
    separation = SeparationRules(
        separate_clubs=club_cap is not None,
        separate_countries=country_cap is not None,
        max_same_club_per_poule=club_cap or DEFAULT_MAX_SAME_CLUB_PER_POULE,
        max_same_country_per_poule=country_cap or DEFAULT_MAX_SAME_COUNTRY_PER_POULE,
    )
    return PoulePhaseConfig(
        poule_count=max(1, math.ceil(field_size / template.poule_size)),
        poule_size=template.poule_size,
        separation=separation,
    )


def _elimination_config(template: PresetPhase) -> EliminationPhaseConfig:
    return EliminationPhaseConfig(
        brackets=[
            BracketConfig(
                bracket_type=b.bracket_type,
                size=b.size,
                repechage_source=b.repechage_source,
                classification_positions=b.classification_positions,
            )
            for b in template.brackets
        ]
    )


def build_competition_from_preset(
    preset_id: str,
    competition_id: str,
    name: Optional[str] = None,
    athlete_count: int = DEFAULT_PRESET_FIELD,
    category: Optional[str] = None,
) -> Competition:
    """Create a competition following a built-in formula.

    Poule counts are derived from ``athlete_count`` and from the projected
    number of qualifiers of each earlier phase.

    Args:
        preset_id: Key of ``BUILT_IN_PRESETS``
        competition_id: Id of the new competition
        name: Competition name, defaults to the preset name
        athlete_count: Expected number of entrants
        category: Optional age category

    Raises:
        ConfigurationError: If the preset is unknown or the field is empty
    """
    preset = get_preset(preset_id)
    if athlete_count < 1:
        raise ConfigurationError(f"Expected field must be positive: {athlete_count}")

    competition = Competition(
        id=competition_id, name=name or preset.name, category=category
    )
    field_size = athlete_count
    for order, template in enumerate(preset.phases, start=1):
        if template.phase_type is PhaseType.POULE:
            configuration = _poule_config(template, field_size)
        else:
            configuration = _elimination_config(template)
        phase = Phase.create(
            name=template.name,
            phase_type=template.phase_type,
            sequence_order=order,
            configuration=configuration,
            qualification_percentage=template.qualification_percentage,
        )
        competition.add_phase(phase)
        field_size = QualificationRule(
            percentage=template.qualification_percentage
        ).qualifier_count(field_size)

    competition.validate()
    logger.info(
        "Built competition %s from preset '%s' (%s phase(s), %s expected entrants)",
        competition_id,
        preset_id,
        len(competition.phases),
        athlete_count,
    )
    return competition
