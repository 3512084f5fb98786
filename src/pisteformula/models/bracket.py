"""Data classes for elimination brackets."""

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
from typing import Any, Dict, List, Optional, Tuple

from pisteformula.models.athlete import Athlete
from pisteformula.models.enums import (
    BracketType,
    ByeDistribution,
    RepechageSource,
    SeedingMethod,
)
from pisteformula.models.poule import Bout
from pisteformula.utils import generate_id


@dataclass(frozen=True)
class BracketSlot:
    """One position of a bracket: an athlete with its seed, or a bye.

    Attributes
    ----------
    position : int
        1-based slot position, top of the bracket first.
    athlete : Athlete or None
        Occupant, None for a bye.
    seed : int or None
        Seed of the occupant within the bracket.
    """

    position: int
    athlete: Optional[Athlete] = None
    seed: Optional[int] = None

    @property
    def is_bye(self) -> bool:
        return self.athlete is None

    @property
    def athlete_id(self) -> Optional[str]:
        return self.athlete.id if self.athlete else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "athlete": self.athlete.to_dict() if self.athlete else None,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketSlot":
        athlete = data.get("athlete")
        return cls(
            position=data["position"],
            athlete=Athlete.from_dict(athlete) if athlete else None,
            seed=data.get("seed"),
        )


@dataclass
class BracketBout(Bout):
    """An elimination bout. ``athlete_b_id`` is None when A has a bye.

    Attributes
    ----------
    round_number : int
        1 for the first round of the bracket.
    match_number : int
        1-based position of the bout within its round, top first.
    is_bye : bool
        True when the bout has a single athlete who advances unopposed.
    """

    round_number: int = 1
    match_number: int = 0
    is_bye: bool = False
    id: str = field(default_factory=lambda: generate_id("BracketBout"))

    @property
    def is_complete(self) -> bool:
        if self.is_bye:
            return self.winner_id is not None
        return super().is_complete

    @property
    def loser_id(self) -> Optional[str]:
        """Athlete eliminated by this bout, None for byes and open bouts."""
        if self.is_bye or not self.is_complete:
            return None
        return self.opponent_of(self.winner_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "round_number": self.round_number,
                "match_number": self.match_number,
                "is_bye": self.is_bye,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketBout":
        kwargs: Dict[str, Any] = {
            "athlete_a_id": data["athlete_a_id"],
            "athlete_b_id": data.get("athlete_b_id"),
            "number": data.get("number", 0),
            "score_a": data.get("score_a"),
            "score_b": data.get("score_b"),
            "winner_id": data.get("winner_id"),
            "round_number": data.get("round_number", 1),
            "match_number": data.get("match_number", 0),
            "is_bye": data.get("is_bye", False),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


@dataclass
class Bracket:
    """A seeded single-elimination bracket.

    Slots are immutable once built; rebuilding replaces the whole set.
    Bouts grow round by round as winners advance.

    Attributes
    ----------
    bracket_type : BracketType
        MAIN, REPECHAGE, CLASSIFICATION or CONSOLATION.
    size : int
        Power of two from the allowed bracket sizes.
    seeding_method : SeedingMethod
        How qualifiers were ordered into seeds.
    bye_distribution : ByeDistribution
        Which seeds received byes.
    slots : tuple of BracketSlot
        ``size`` slots, position 1 first.
    bouts : list of BracketBout
        Bouts of every round created so far.
    name : str
        Unique within the phase; dependent brackets refer to it.
    source_bracket : str or None
        Name of the MAIN bracket a dependent bracket draws from.
    repechage_source : RepechageSource or None
        Stage whose losers enter a repechage.
    classification_positions : tuple of int
        Final places a classification bracket decides.
    """

    bracket_type: BracketType
    size: int
    seeding_method: SeedingMethod = SeedingMethod.RANKING
    bye_distribution: ByeDistribution = ByeDistribution.TOP
    slots: Tuple[BracketSlot, ...] = ()
    bouts: List[BracketBout] = field(default_factory=list)
    name: str = ""
    source_bracket: Optional[str] = None
    repechage_source: Optional[RepechageSource] = None
    classification_positions: Tuple[int, ...] = ()
    phase_id: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("Bracket"))

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.bracket_type.display_name

    @property
    def qualifier_count(self) -> int:
        return sum(1 for slot in self.slots if not slot.is_bye)

    @property
    def bye_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_bye)

    @property
    def round_count(self) -> int:
        """Rounds needed to reach a single winner."""
        return self.size.bit_length() - 1

    @property
    def current_round(self) -> int:
        """Highest round with bouts, 0 before any bout exists."""
        return max((bout.round_number for bout in self.bouts), default=0)

    def round_field(self, round_number: int) -> int:
        """Table size at a round: 16 for the table of 16, 2 for the final."""
        return self.size >> (round_number - 1)

    def round_for_field(self, table_size: int) -> Optional[int]:
        """Round number at which ``table_size`` slots remain, if any."""
        for round_number in range(1, self.round_count + 1):
            if self.round_field(round_number) == table_size:
                return round_number
        return None

    @property
    def athletes(self) -> List[Athlete]:
        return [slot.athlete for slot in self.slots if slot.athlete is not None]

    def athlete_by_id(self, athlete_id: str) -> Optional[Athlete]:
        for slot in self.slots:
            if slot.athlete is not None and slot.athlete.id == athlete_id:
                return slot.athlete
        return None

    def seed_of(self, athlete_id: str) -> Optional[int]:
        for slot in self.slots:
            if slot.athlete is not None and slot.athlete.id == athlete_id:
                return slot.seed
        return None

    def first_round_pairings(self) -> List[Tuple[BracketSlot, BracketSlot]]:
        """Adjacent slot pairs (1-2, 3-4, ...) fencing each other in round one."""
        return [(self.slots[i], self.slots[i + 1]) for i in range(0, len(self.slots), 2)]

    def bouts_in_round(self, round_number: int) -> List[BracketBout]:
        return sorted(
            (b for b in self.bouts if b.round_number == round_number),
            key=lambda b: b.match_number,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize bracket to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "phase_id": self.phase_id,
            "bracket_type": self.bracket_type.value,
            "size": self.size,
            "seeding_method": self.seeding_method.value,
            "bye_distribution": self.bye_distribution.value,
            "source_bracket": self.source_bracket,
            "repechage_source": (
                self.repechage_source.value if self.repechage_source else None
            ),
            "classification_positions": list(self.classification_positions),
            "slots": [slot.to_dict() for slot in self.slots],
            "bouts": [bout.to_dict() for bout in self.bouts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bracket":
        """Deserialize bracket from dictionary."""
        repechage_source = data.get("repechage_source")
        kwargs: Dict[str, Any] = {
            "bracket_type": BracketType(data["bracket_type"]),
            "size": data["size"],
            "seeding_method": SeedingMethod(data.get("seeding_method", "RANKING")),
            "bye_distribution": ByeDistribution(data.get("bye_distribution", "top")),
            "slots": tuple(BracketSlot.from_dict(s) for s in data.get("slots", [])),
            "bouts": [BracketBout.from_dict(b) for b in data.get("bouts", [])],
            "name": data.get("name", ""),
            "source_bracket": data.get("source_bracket"),
            "repechage_source": (
                RepechageSource(repechage_source) if repechage_source else None
            ),
            "classification_positions": tuple(
                data.get("classification_positions", ())
            ),
            "phase_id": data.get("phase_id"),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)
