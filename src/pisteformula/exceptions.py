"""Exceptions for use in Piste Formula"""

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

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from pisteformula.models.poule import SeparationViolation


# ========== Base Application Exception ==========


class FormulaEngineException(Exception):
    """Base exception for all Piste Formula errors.

    All custom exceptions in the engine inherit from this class, so a caller
    can catch every engine-specific error with a single except clause.
    """

    pass


# ========== Configuration Exceptions ==========


class ConfigurationError(FormulaEngineException):
    """Raised when input parameters are invalid or contradict each other.

    The caller must fix the input and retry; the engine never retries.
    """

    pass


class InvalidScoreError(ConfigurationError):
    """Raised when a bout score is out of range or names a foreign winner."""

    pass


# ========== Progression Exceptions ==========


class DependencyError(FormulaEngineException):
    """Raised when a bracket or phase references a missing prerequisite."""

    pass


class IncompletePhaseError(FormulaEngineException):
    """Raised when advancing before the required results are final."""

    pass


# ========== Warnings ==========


class SeparationWarning(UserWarning):
    """Non-fatal report of club or country clustering left after seeding.

    Returned alongside a successful poule generation, never raised.

    Attributes:
        violations: The unresolved separation violations
    """

    def __init__(self, violations: Sequence["SeparationViolation"]):
        self.violations: List["SeparationViolation"] = list(violations)
        super().__init__(self._describe())

    def _describe(self) -> str:
        if not self.violations:
            return "No separation violations"
        parts = [
            f"poule {v.poule_number}: {len(v.athlete_ids)} from {v.kind} "
            f"{v.key} (max {v.limit})"
            for v in self.violations
        ]
        return "Unresolved separation violations: " + "; ".join(parts)


class PouleBalanceWarning(UserWarning):
    """Non-fatal report that explicit poule sizes do not match the field.

    Returned alongside a successful poule generation, never raised.

    Attributes:
        capacity: Places offered by the configured poule sizes
        athlete_count: Athletes actually entered
    """

    def __init__(self, capacity: int, athlete_count: int):
        self.capacity = capacity
        self.athlete_count = athlete_count
        super().__init__(
            f"Poule sizes total {capacity} but there are {athlete_count} athletes"
        )
