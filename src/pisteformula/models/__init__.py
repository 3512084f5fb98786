"""Data model of the formula engine: pure data, no progression logic."""

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

from pisteformula.models.athlete import Athlete
from pisteformula.models.bracket import Bracket, BracketBout, BracketSlot
from pisteformula.models.enums import (
    BracketType,
    ByeDistribution,
    PhaseStatus,
    PhaseType,
    PouleSizeMethod,
    RepechageSource,
    SeedingMethod,
)
from pisteformula.models.phase import (
    BracketConfig,
    Competition,
    EliminationPhaseConfig,
    Phase,
    PhaseConfig,
    PoulePhaseConfig,
    QualificationRule,
    SeparationRules,
    phase_config_from_dict,
    phase_config_to_dict,
)
from pisteformula.models.poule import Bout, Poule, PouleAssignment, SeparationViolation
from pisteformula.models.standing import PouleStanding

__all__ = [
    "Athlete",
    "Bout",
    "Bracket",
    "BracketBout",
    "BracketConfig",
    "BracketSlot",
    "BracketType",
    "ByeDistribution",
    "Competition",
    "EliminationPhaseConfig",
    "Phase",
    "PhaseConfig",
    "PhaseStatus",
    "PhaseType",
    "Poule",
    "PouleAssignment",
    "PoulePhaseConfig",
    "PouleSizeMethod",
    "PouleStanding",
    "QualificationRule",
    "RepechageSource",
    "SeedingMethod",
    "SeparationRules",
    "SeparationViolation",
    "phase_config_from_dict",
    "phase_config_to_dict",
]
