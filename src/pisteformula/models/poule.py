"""Data classes for poules, their assignments and bouts."""

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
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pisteformula.exceptions import InvalidScoreError
from pisteformula.models.athlete import Athlete
from pisteformula.utils import generate_id
from pisteformula.utils.validation import validate_score_strict


@dataclass(frozen=True)
class PouleAssignment:
    """Links one athlete to one poule at one position.

    Attributes
    ----------
    athlete : Athlete
        The assigned athlete.
    position : int
        1-based position on the poule sheet, dense within the poule.
    seed : int
        1-based rank of the athlete in the seeding order of the phase.
    """

    athlete: Athlete
    position: int
    seed: int

    @property
    def athlete_id(self) -> str:
        return self.athlete.id

    def to_dict(self) -> Dict[str, Any]:
        """Serialize assignment to dictionary."""
        return {
            "athlete": self.athlete.to_dict(),
            "position": self.position,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PouleAssignment":
        """Deserialize assignment from dictionary."""
        return cls(
            athlete=Athlete.from_dict(data["athlete"]),
            position=data["position"],
            seed=data["seed"],
        )


@dataclass
class Bout:
    """A single bout between two athletes of the same poule.

    Scores stay None until the external score owner records them. The
    score pair and the winner are always replaced together.

    Attributes
    ----------
    athlete_a_id : str
        First athlete.
    athlete_b_id : str
        Second athlete.
    poule_id : str or None
        Owning poule.
    number : int
        Position of the bout in the fencing order of the poule (1-based).
    score_a, score_b : int or None
        Touches scored by each athlete.
    winner_id : str or None
        Winner once decided. Equal scores need an explicit winner.
    """

    athlete_a_id: str
    athlete_b_id: str
    poule_id: Optional[str] = None
    number: int = 0
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner_id: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("Bout"))

    @property
    def pair(self) -> FrozenSet[str]:
        """The unordered athlete pair this bout decides."""
        return frozenset({self.athlete_a_id, self.athlete_b_id})

    @property
    def has_scores(self) -> bool:
        return self.score_a is not None and self.score_b is not None

    @property
    def is_complete(self) -> bool:
        """Whether both scores and the winner are recorded."""
        return self.has_scores and self.winner_id is not None

    def involves(self, athlete_id: str) -> bool:
        return athlete_id in (self.athlete_a_id, self.athlete_b_id)

    def opponent_of(self, athlete_id: str) -> str:
        if athlete_id == self.athlete_a_id:
            return self.athlete_b_id
        if athlete_id == self.athlete_b_id:
            return self.athlete_a_id
        raise KeyError(f"Athlete {athlete_id} does not fence in bout {self.id}")

    def record_score(
        self, score_a: int, score_b: int, winner_id: Optional[str] = None
    ) -> None:
        """Record both scores and the winner in one step.

        Args:
            score_a: Touches scored by athlete A
            score_b: Touches scored by athlete B
            winner_id: Required when scores are equal (priority victory)

        Raises:
            InvalidScoreError: If a score is out of range, or the winner is
                missing, foreign, or contradicts the scores
        """
        validate_score_strict(score_a)
        validate_score_strict(score_b)
        if score_a is None or score_b is None:
            raise InvalidScoreError("Both scores are required to record a bout")

        if score_a != score_b:
            expected = self.athlete_a_id if score_a > score_b else self.athlete_b_id
            if winner_id is not None and winner_id != expected:
                raise InvalidScoreError(
                    f"Winner {winner_id} contradicts score {score_a}-{score_b}"
                )
            winner_id = expected
        elif winner_id is None:
            raise InvalidScoreError(
                f"Equal score {score_a}-{score_b} needs an explicit winner"
            )

        if not self.involves(winner_id):
            raise InvalidScoreError(
                f"Winner {winner_id} does not fence in bout {self.id}"
            )

        self.score_a, self.score_b, self.winner_id = score_a, score_b, winner_id

    def clear_score(self) -> None:
        """Reset the bout to its unscored state."""
        self.score_a, self.score_b, self.winner_id = None, None, None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize bout to dictionary."""
        return {
            "id": self.id,
            "poule_id": self.poule_id,
            "number": self.number,
            "athlete_a_id": self.athlete_a_id,
            "athlete_b_id": self.athlete_b_id,
            "score_a": self.score_a,
            "score_b": self.score_b,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bout":
        """Deserialize bout from dictionary.

        Accepts both this class's keys and the bout store's camelCase keys
        (``pouleId``, ``athleteAId``, ``scoreA``...).
        """

        def pick(snake: str, camel: str) -> Any:
            return data[snake] if snake in data else data.get(camel)

        kwargs: Dict[str, Any] = {
            "athlete_a_id": pick("athlete_a_id", "athleteAId"),
            "athlete_b_id": pick("athlete_b_id", "athleteBId"),
            "poule_id": pick("poule_id", "pouleId"),
            "number": data.get("number", 0),
            "score_a": pick("score_a", "scoreA"),
            "score_b": pick("score_b", "scoreB"),
            "winner_id": pick("winner_id", "winnerId"),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


@dataclass(frozen=True)
class SeparationViolation:
    """Too many athletes sharing a club or country in one poule.

    Attributes
    ----------
    poule_number : int
        Poule holding the cluster.
    kind : str
        ``"club"`` or ``"country"``.
    key : str
        The shared club id or country code.
    athlete_ids : tuple of str
        Athletes in the cluster.
    limit : int
        Maximum allowed per poule.
    """

    poule_number: int
    kind: str
    key: str
    athlete_ids: Tuple[str, ...]
    limit: int

    @property
    def excess(self) -> int:
        return len(self.athlete_ids) - self.limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poule_number": self.poule_number,
            "kind": self.kind,
            "key": self.key,
            "athlete_ids": list(self.athlete_ids),
            "limit": self.limit,
        }


@dataclass
class Poule:
    """A round-robin group of athletes.

    Attributes
    ----------
    number : int
        1-based poule number, unique within the phase.
    assignments : list of PouleAssignment
        Athletes ordered by position.
    bouts : list of Bout
        One bout per athlete pair, in fencing order.
    phase_id : str or None
        Owning phase.
    """

    number: int
    assignments: List[PouleAssignment] = field(default_factory=list)
    bouts: List[Bout] = field(default_factory=list)
    phase_id: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("Poule"))

    @property
    def size(self) -> int:
        return len(self.assignments)

    @property
    def athletes(self) -> List[Athlete]:
        return [a.athlete for a in self.assignments]

    @property
    def athlete_ids(self) -> List[str]:
        return [a.athlete.id for a in self.assignments]

    @property
    def expected_bout_count(self) -> int:
        """Bouts a complete round robin of this poule needs: N(N-1)/2."""
        return self.size * (self.size - 1) // 2

    def assignment_for(self, athlete_id: str) -> Optional[PouleAssignment]:
        for assignment in self.assignments:
            if assignment.athlete.id == athlete_id:
                return assignment
        return None

    def bout_between(self, athlete1_id: str, athlete2_id: str) -> Optional[Bout]:
        pair = frozenset({athlete1_id, athlete2_id})
        for bout in self.bouts:
            if bout.pair == pair:
                return bout
        return None

    def unresolved_bouts(self) -> List[Bout]:
        return [bout for bout in self.bouts if not bout.is_complete]

    @property
    def is_complete(self) -> bool:
        """Whether every bout of the round robin has a recorded result."""
        return len(self.bouts) == self.expected_bout_count and not any(
            not bout.is_complete for bout in self.bouts
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize poule to dictionary."""
        return {
            "id": self.id,
            "number": self.number,
            "phase_id": self.phase_id,
            "assignments": [a.to_dict() for a in self.assignments],
            "bouts": [b.to_dict() for b in self.bouts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Poule":
        """Deserialize poule from dictionary."""
        kwargs: Dict[str, Any] = {
            "number": data["number"],
            "phase_id": data.get("phase_id"),
            "assignments": [
                PouleAssignment.from_dict(a) for a in data.get("assignments", [])
            ],
            "bouts": [Bout.from_dict(b) for b in data.get("bouts", [])],
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)
