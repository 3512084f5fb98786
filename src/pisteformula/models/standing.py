"""Derived poule standing data class."""

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

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PouleStanding:
    """One athlete's line in a ranked poule (or phase) result.

    Standings are recomputed from bouts on demand and never stored as
    authoritative state.

    Attributes
    ----------
    athlete_id : str
        The ranked athlete.
    victories : int
        Bouts won.
    bouts_fenced : int
        Bouts with a recorded winner.
    touches_scored : int
        Touches given (TS).
    touches_received : int
        Touches received (TR).
    place : int
        1-based rank; never shared.
    tied : bool
        True when the athlete equals a neighbour on victories, indicator and
        touches scored. The place between them is only ordered by id and a
        barrage is required.
    poule_number : int or None
        Poule the line comes from.
    """

    athlete_id: str
    victories: int
    bouts_fenced: int
    touches_scored: int
    touches_received: int
    place: int
    tied: bool = False
    poule_number: Optional[int] = None

    @property
    def indicator(self) -> int:
        """Touches scored minus touches received."""
        return self.touches_scored - self.touches_received

    @property
    def victory_ratio(self) -> float:
        """Victories over bouts fenced (V/M), 0.0 before any bout."""
        if self.bouts_fenced == 0:
            return 0.0
        return self.victories / self.bouts_fenced

    def to_dict(self) -> Dict[str, Any]:
        """Serialize standing to dictionary."""
        return {
            "athlete_id": self.athlete_id,
            "victories": self.victories,
            "bouts_fenced": self.bouts_fenced,
            "touches_scored": self.touches_scored,
            "touches_received": self.touches_received,
            "indicator": self.indicator,
            "place": self.place,
            "tied": self.tied,
            "poule_number": self.poule_number,
        }
