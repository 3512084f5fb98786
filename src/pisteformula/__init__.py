"""Piste Formula: tournament formula and progression engine for fencing.

Poule seeding with club/country separation, poule standings, elimination
bracket building and phase progression.
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

from pisteformula.bracket.builder import build_bracket, register_bracket
from pisteformula.controllers.competition.progression import (
    ProgressionCoordinator,
    QualificationResult,
)
from pisteformula.exceptions import (
    ConfigurationError,
    DependencyError,
    FormulaEngineException,
    IncompletePhaseError,
    InvalidScoreError,
    PouleBalanceWarning,
    SeparationWarning,
)
from pisteformula.formats.presets import build_competition_from_preset
from pisteformula.seeding.seeder import PouleGenerationResult, generate_poules
from pisteformula.tournament.standings_calculator import (
    compute_phase_ranking,
    compute_standings,
)
from pisteformula.utils.roster_adapter import athletes_from_records

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DependencyError",
    "FormulaEngineException",
    "IncompletePhaseError",
    "InvalidScoreError",
    "PouleBalanceWarning",
    "PouleGenerationResult",
    "ProgressionCoordinator",
    "QualificationResult",
    "SeparationWarning",
    "athletes_from_records",
    "build_bracket",
    "build_competition_from_preset",
    "compute_phase_ranking",
    "compute_standings",
    "generate_poules",
    "register_bracket",
]
