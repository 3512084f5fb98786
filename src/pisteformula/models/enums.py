"""Enumerations for phases, brackets and seeding."""

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

from enum import Enum

from pisteformula.constants import BRACKET_TYPE_NAMES, PHASE_TYPE_NAMES


class PhaseType(Enum):
    """Kind of competition phase."""

    POULE = "POULE"
    DIRECT_ELIMINATION = "DIRECT_ELIMINATION"
    CLASSIFICATION = "CLASSIFICATION"
    REPECHAGE = "REPECHAGE"

    @property
    def is_elimination(self) -> bool:
        """Whether phases of this type hold brackets rather than poules."""
        return self is not PhaseType.POULE

    @property
    def display_name(self) -> str:
        return PHASE_TYPE_NAMES[self.value]


class PhaseStatus(Enum):
    """Lifecycle of a phase. Transitions only move forward."""

    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def order(self) -> int:
        return _PHASE_STATUS_ORDER[self]


_PHASE_STATUS_ORDER = {
    PhaseStatus.SCHEDULED: 0,
    PhaseStatus.IN_PROGRESS: 1,
    PhaseStatus.COMPLETED: 2,
}


class BracketType(Enum):
    """Elimination bracket kinds, in canonical execution order."""

    MAIN = "MAIN"
    REPECHAGE = "REPECHAGE"
    CLASSIFICATION = "CLASSIFICATION"
    CONSOLATION = "CONSOLATION"

    @property
    def priority(self) -> int:
        """Execution rank: MAIN runs first, CONSOLATION last."""
        return _BRACKET_PRIORITY[self]

    @property
    def requires_main(self) -> bool:
        """Whether a bracket of this type draws its athletes from a MAIN bracket."""
        return self is not BracketType.MAIN

    @property
    def display_name(self) -> str:
        return BRACKET_TYPE_NAMES[self.value]


_BRACKET_PRIORITY = {
    BracketType.MAIN: 1,
    BracketType.REPECHAGE: 2,
    BracketType.CLASSIFICATION: 3,
    BracketType.CONSOLATION: 4,
}


class SeedingMethod(Enum):
    """How athletes are ordered and distributed before grouping."""

    RANKING = "RANKING"
    SNAKE = "SNAKE"
    MANUAL = "MANUAL"
    RANDOM = "RANDOM"


class PouleSizeMethod(Enum):
    """How the size of each poule is decided."""

    BALANCED = "balanced"
    FIXED = "fixed"
    VARIABLE = "variable"
    OPTIMAL = "optimal"


class ByeDistribution(Enum):
    """Which seeds receive a bye opponent in round one."""

    TOP = "top"
    BOTTOM = "bottom"
    SPREAD = "spread"


class RepechageSource(Enum):
    """Stage of the main bracket whose losers enter the repechage."""

    FIRST_ROUND = "first_round"
    QUARTER_FINALS = "quarter_finals"
    SEMI_FINALS = "semi_finals"
