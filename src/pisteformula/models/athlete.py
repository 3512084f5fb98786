"""An athlete registered in a competition."""

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

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta

from pisteformula.exceptions import ConfigurationError
from pisteformula.utils import setup_logger
from pisteformula.utils.validation import (
    validate_country_code,
    validate_ranking_score,
)

logger = setup_logger(__name__)


@dataclass(frozen=True)
class Athlete:
    """Represents an athlete as supplied by the roster provider.

    Athletes are immutable inputs to the engine; results live on bouts.

    Attributes:
        id: Unique identifier for the athlete
        name: Display name
        nationality: Country code (upper-cased), or None
        club_ids: Club affiliations, primary club first
        ranking_score: Ranking points used for seeding (higher is stronger)
        date_of_birth: Date of birth, or None if unknown
    """

    id: str
    name: str = ""
    nationality: Optional[str] = None
    club_ids: Tuple[str, ...] = field(default_factory=tuple)
    ranking_score: float = 0.0
    date_of_birth: Optional[date] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigurationError("Athlete id is required")

        result = validate_country_code(self.nationality)
        if not result.is_valid:
            raise ConfigurationError(f"Athlete {self.id}: {result.error_message}")
        object.__setattr__(self, "nationality", result.sanitized_value)

        ranking = validate_ranking_score(self.ranking_score)
        if not ranking.is_valid:
            raise ConfigurationError(f"Athlete {self.id}: {ranking.error_message}")
        object.__setattr__(
            self, "ranking_score", float(self.ranking_score or 0.0)
        )

        if isinstance(self.club_ids, str):
            object.__setattr__(self, "club_ids", (self.club_ids,))
        else:
            object.__setattr__(
                self, "club_ids", tuple(c for c in self.club_ids if c)
            )

        if not self.name:
            object.__setattr__(self, "name", self.id)

    @property
    def club_id(self) -> Optional[str]:
        """Primary club, or None for unaffiliated athletes."""
        return self.club_ids[0] if self.club_ids else None

    def age_on(self, reference: date) -> Optional[int]:
        """Calculate age in whole years on a reference date.

        Returns:
            Age in years, or None if date of birth is unknown
        """
        if self.date_of_birth is None:
            logger.debug("%s has no date of birth set", self.id)
            return None
        return relativedelta(reference, self.date_of_birth).years

    def to_dict(self) -> Dict[str, Any]:
        """Serialize athlete data to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "nationality": self.nationality,
            "club_ids": list(self.club_ids),
            "ranking_score": self.ranking_score,
            "date_of_birth": (
                self.date_of_birth.isoformat() if self.date_of_birth else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Athlete":
        """Deserialize athlete data from dictionary."""
        dob_value = data.get("date_of_birth")
        date_of_birth = None
        if isinstance(dob_value, date):
            date_of_birth = dob_value
        elif dob_value:
            try:
                date_of_birth = date.fromisoformat(dob_value)
            except (ValueError, TypeError):
                logger.warning(
                    "Invalid date format for %s: %s", data.get("id"), dob_value
                )

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            nationality=data.get("nationality"),
            club_ids=tuple(data.get("club_ids") or ()),
            ranking_score=data.get("ranking_score") or 0.0,
            date_of_birth=date_of_birth,
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.nationality or '-'})"
