"""Validation utilities for Piste Formula.

This module provides reusable validation functions with consistent error handling.
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

import re
from typing import Optional

from pisteformula.constants import MAX_SCORE, MIN_SCORE
from pisteformula.exceptions import InvalidScoreError


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Optional[str] = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


# ========== Country Code Validation ==========


def validate_country_code(
    code: Optional[str], required: bool = False
) -> ValidationResult:
    """Validate a country code (IOC/FIE three letters, ISO two letters accepted).

    Args:
        code: Country code to validate
        required: Whether a code is required (empty = invalid)

    Returns:
        ValidationResult with the upper-cased code as sanitized value

    Example:
        >>> validate_country_code(" fra ").sanitized_value
        'FRA'
    """
    if not code or not code.strip():
        if required:
            return ValidationResult(
                is_valid=False,
                error_message="Country code is required",
            )
        return ValidationResult(is_valid=True, sanitized_value=None)

    code = code.strip().upper()
    if re.match(r"^[A-Z]{2,3}$", code):
        return ValidationResult(is_valid=True, sanitized_value=code)

    return ValidationResult(
        is_valid=False,
        error_message=f"Invalid country code: {code}",
    )


# ========== Ranking Validation ==========


def validate_ranking_score(score: Optional[float]) -> ValidationResult:
    """Validate a ranking score. Scores are non-negative; None means unranked."""
    if score is None:
        return ValidationResult(is_valid=True, sanitized_value=None)

    try:
        value = float(score)
    except (ValueError, TypeError):
        return ValidationResult(
            is_valid=False,
            error_message=f"Ranking score must be a number: {score}",
        )

    if value < 0:
        return ValidationResult(
            is_valid=False,
            error_message=f"Ranking score must not be negative: {value}",
        )

    return ValidationResult(is_valid=True, sanitized_value=str(value))


# ========== Score Validation ==========


def validate_score(
    score: Optional[int], min_score: int = MIN_SCORE, max_score: int = MAX_SCORE
) -> ValidationResult:
    """Validate a bout score (touches).

    Args:
        score: Touches scored, or None when not yet entered
        min_score: Minimum allowed score
        max_score: Maximum allowed score

    Returns:
        ValidationResult with validation status
    """
    if score is None:
        return ValidationResult(is_valid=True, sanitized_value=None)

    if isinstance(score, bool) or not isinstance(score, int):
        return ValidationResult(
            is_valid=False,
            error_message=f"Score must be a whole number: {score!r}",
        )

    if score < min_score or score > max_score:
        return ValidationResult(
            is_valid=False,
            error_message=f"Score must be between {min_score} and {max_score}: {score}",
        )

    return ValidationResult(is_valid=True, sanitized_value=str(score))


def validate_score_strict(score: Optional[int]) -> Optional[int]:
    """Validate a score and return it, or raise.

    Raises:
        InvalidScoreError: If the score is invalid
    """
    result = validate_score(score)
    if not result.is_valid:
        raise InvalidScoreError(result.error_message)
    return score
