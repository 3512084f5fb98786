"""Import of Engarde tournament formulas.

An Engarde formula lists rounds of poules, each with the size of every
poule, the separation it applies and the number of fencers it qualifies,
followed by one direct elimination tableau. Rounds become poule phases with
explicit poule sizes; the tableau becomes a Main bracket.
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

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pisteformula.bracket.seed_table import bracket_size_for
from pisteformula.exceptions import ConfigurationError
from pisteformula.models.enums import (
    BracketType,
    PhaseType,
    PouleSizeMethod,
    SeedingMethod,
)
from pisteformula.models.phase import (
    BracketConfig,
    Competition,
    EliminationPhaseConfig,
    Phase,
    PoulePhaseConfig,
    SeparationRules,
)
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)

ENGARDE_SEPARATIONS = ("clubs", "nations")
DEFAULT_IMPORT_NAME = "Imported from Engarde"


@dataclass(frozen=True)
class EngardeRound:
    """One round of poules.

    Attributes:
        round_number: Position of the round, from 1
        poule_sizes: Size of each poule, in poule-number order
        qualified: Fencers advancing out of the round
        separation: Any of ``"clubs"`` and ``"nations"``
    """

    round_number: int
    poule_sizes: Tuple[int, ...]
    qualified: int
    separation: Tuple[str, ...] = ()

    @property
    def capacity(self) -> int:
        return sum(self.poule_sizes)


@dataclass(frozen=True)
class EngardeElimination:
    tableau_size: int
    has_third_place: bool = False
    repechage: bool = False


@dataclass(frozen=True)
class EngardeFormula:
    total_fencers: int
    rounds: Tuple[EngardeRound, ...]
    elimination: EngardeElimination

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngardeFormula":
        """Read a formula in Engarde's export layout.

        Expected keys: ``totalFencers``, ``rounds`` (each with
        ``roundNumber``, ``poules``, ``pouleSizes``, ``separation``,
        ``qualified``) and ``elimination`` (``tableauSize``,
        ``hasThirdPlace``, ``repechage``).

        Raises:
            ConfigurationError: If a key is missing or a value is malformed
        """
        try:
            rounds = []
            for entry in data["rounds"]:
                sizes = tuple(int(s) for s in entry["pouleSizes"])
                declared = entry.get("poules", len(sizes))
                if int(declared) != len(sizes):
                    raise ConfigurationError(
                        f"Round {entry['roundNumber']} declares {declared} poules "
                        f"but lists {len(sizes)} sizes"
                    )
                separation = tuple(str(s).lower() for s in entry.get("separation", ()))
                unknown = [s for s in separation if s not in ENGARDE_SEPARATIONS]
                if unknown:
                    raise ConfigurationError(
                        f"Unknown separation {unknown} in round {entry['roundNumber']}"
                    )
                rounds.append(
                    EngardeRound(
                        round_number=int(entry["roundNumber"]),
                        poule_sizes=sizes,
                        qualified=int(entry["qualified"]),
                        separation=separation,
                    )
                )
            elimination = data["elimination"]
            return cls(
                total_fencers=int(data["totalFencers"]),
                rounds=tuple(sorted(rounds, key=lambda r: r.round_number)),
                elimination=EngardeElimination(
                    tableau_size=int(elimination["tableauSize"]),
                    has_third_place=bool(elimination.get("hasThirdPlace", False)),
                    repechage=bool(elimination.get("repechage", False)),
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed Engarde formula: {e!r}") from e


def _round_phase(round_: EngardeRound, order: int, field_size: int) -> Phase:
    if not round_.poule_sizes:
        raise ConfigurationError(f"Round {round_.round_number} has no poules")
    if not 0 < round_.qualified <= field_size:
        raise ConfigurationError(
            f"Round {round_.round_number} qualifies {round_.qualified} of "
            f"{field_size} fencers"
        )
    if round_.capacity != field_size:
        logger.warning(
            "Round %s: poule sizes total %s but %s fencers are expected",
            round_.round_number,
            round_.capacity,
            field_size,
        )

    config = PoulePhaseConfig(
        poule_count=len(round_.poule_sizes),
        poule_size=max(round_.poule_sizes),
        separation=SeparationRules(
            separate_clubs="clubs" in round_.separation,
            separate_countries="nations" in round_.separation,
        ),
        size_method=PouleSizeMethod.VARIABLE,
        poule_sizes=list(round_.poule_sizes),
    )
    config.validate(field_size)
    return Phase.create(
        name=f"Round {round_.round_number}",
        phase_type=PhaseType.POULE,
        sequence_order=order,
        configuration=config,
        qualification_quota=round_.qualified,
    )


def _elimination_phase(
    elimination: EngardeElimination, order: int, field_size: int
) -> Phase:
    bracket_size_for(field_size, elimination.tableau_size)
    brackets = [
        BracketConfig(
            size=elimination.tableau_size, seeding_method=SeedingMethod.RANKING
        )
    ]
    if elimination.repechage:
        brackets.append(BracketConfig(bracket_type=BracketType.REPECHAGE))
    if elimination.has_third_place:
        logger.warning("Third place bouts are not supported; the flag is ignored")
    return Phase.create(
        name="Direct Elimination",
        phase_type=PhaseType.DIRECT_ELIMINATION,
        sequence_order=order,
        configuration=EliminationPhaseConfig(brackets=brackets),
    )


def competition_from_engarde(
    formula: EngardeFormula,
    competition_id: str,
    name: Optional[str] = None,
    category: Optional[str] = None,
) -> Competition:
    """Create a competition from an Engarde formula.

    Each round becomes a poule phase with VARIABLE poule sizes, a
    qualification quota and club or nation separation; the tableau becomes
    a final direct elimination phase. A round whose poule sizes do not add
    up to its expected field is logged, not rejected, as long as the poules
    can hold every fencer.

    Args:
        formula: Parsed formula, see :meth:`EngardeFormula.from_dict`
        competition_id: Id of the new competition
        name: Competition name
        category: Optional age category

    Raises:
        ConfigurationError: If a round cannot hold its fencers, qualifies
            more fencers than it has, or the tableau does not fit the final
            qualifiers
    """
    if formula.total_fencers < 1:
        raise ConfigurationError(
            f"Engarde formula without fencers: {formula.total_fencers}"
        )
    competition = Competition(
        id=competition_id, name=name or DEFAULT_IMPORT_NAME, category=category
    )

    field_size = formula.total_fencers
    for order, round_ in enumerate(formula.rounds, start=1):
        competition.add_phase(_round_phase(round_, order, field_size))
        field_size = round_.qualified
    competition.add_phase(
        _elimination_phase(formula.elimination, len(formula.rounds) + 1, field_size)
    )

    competition.validate()
    logger.info(
        "Imported Engarde formula: %s round(s) of poules, tableau of %s",
        len(formula.rounds),
        formula.elimination.tableau_size,
    )
    return competition
