"""Phase, competition and per-phase configuration data classes.

The configuration of a phase is a tagged union keyed by ``phase_type``:
poule phases carry a :class:`PoulePhaseConfig`, elimination-type phases
(direct elimination, classification, repechage) carry an
:class:`EliminationPhaseConfig`.
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

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pisteformula.constants import (
    AGE_CATEGORIES,
    BRACKET_SIZES,
    DEFAULT_CLASSIFICATION_POSITIONS,
    DEFAULT_MAX_REPAIR_ITERATIONS,
    DEFAULT_MAX_SAME_CLUB_PER_POULE,
    DEFAULT_MAX_SAME_COUNTRY_PER_POULE,
    DEFAULT_MIN_POULE_SIZE_FOR_INCOMPLETE,
    MAX_POULE_SIZE,
    MIN_POULE_SIZE,
)
from pisteformula.exceptions import ConfigurationError, DependencyError
from pisteformula.models.bracket import Bracket
from pisteformula.models.enums import (
    BracketType,
    ByeDistribution,
    PhaseStatus,
    PhaseType,
    PouleSizeMethod,
    RepechageSource,
    SeedingMethod,
)
from pisteformula.models.poule import Poule
from pisteformula.utils import generate_id


# ========== Qualification ==========


@dataclass
class QualificationRule:
    """How many athletes leave a phase for the next one.

    Quota and percentage are mutually exclusive. With neither set, every
    ranked athlete qualifies.

    Attributes:
        quota: Top-N athletes qualify
        percentage: Percent of the field (0 < p <= 100), rounded half up
    """

    quota: Optional[int] = None
    percentage: Optional[float] = None

    def __post_init__(self) -> None:
        if self.quota is not None and self.percentage is not None:
            raise ConfigurationError(
                "Qualification quota and percentage are mutually exclusive"
            )
        if self.quota is not None and self.quota < 1:
            raise ConfigurationError(
                f"Qualification quota must be at least 1: {self.quota}"
            )
        if self.percentage is not None and not 0 < self.percentage <= 100:
            raise ConfigurationError(
                f"Qualification percentage must be in (0, 100]: {self.percentage}"
            )

    @property
    def method(self) -> str:
        if self.quota is not None:
            return "quota"
        if self.percentage is not None:
            return "percentage"
        return "all"

    def qualifier_count(self, field_size: int) -> int:
        """Number of qualifiers out of ``field_size`` ranked athletes.

        Percentages round half up: 70% of 23 is 16.1 -> 16, 50% of 23 is
        11.5 -> 12. A quota larger than the field is capped to the field.
        """
        if self.quota is not None:
            return min(self.quota, field_size)
        if self.percentage is not None:
            exact = Decimal(field_size) * Decimal(str(self.percentage)) / Decimal(100)
            return min(
                int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP)), field_size
            )
        return field_size

    def to_dict(self) -> Dict[str, Any]:
        return {"quota": self.quota, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "QualificationRule":
        data = data or {}
        return cls(quota=data.get("quota"), percentage=data.get("percentage"))


# ========== Poule phase configuration ==========


@dataclass
class SeparationRules:
    """Club and country caps per poule.

    Attributes:
        separate_clubs: Whether the club cap applies
        separate_countries: Whether the country cap applies
        max_same_club_per_poule: Most athletes of one club in a poule
        max_same_country_per_poule: Most athletes of one country in a poule
    """

    separate_clubs: bool = True
    separate_countries: bool = True
    max_same_club_per_poule: int = DEFAULT_MAX_SAME_CLUB_PER_POULE
    max_same_country_per_poule: int = DEFAULT_MAX_SAME_COUNTRY_PER_POULE

    def __post_init__(self) -> None:
        if self.max_same_club_per_poule < 1 or self.max_same_country_per_poule < 1:
            raise ConfigurationError("Separation caps must be at least 1")

    @property
    def club_limit(self) -> Optional[int]:
        return self.max_same_club_per_poule if self.separate_clubs else None

    @property
    def country_limit(self) -> Optional[int]:
        return self.max_same_country_per_poule if self.separate_countries else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "separate_clubs": self.separate_clubs,
            "separate_countries": self.separate_countries,
            "max_same_club_per_poule": self.max_same_club_per_poule,
            "max_same_country_per_poule": self.max_same_country_per_poule,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SeparationRules":
        data = data or {}
        return cls(
            separate_clubs=data.get("separate_clubs", True),
            separate_countries=data.get("separate_countries", True),
            max_same_club_per_poule=data.get(
                "max_same_club_per_poule", DEFAULT_MAX_SAME_CLUB_PER_POULE
            ),
            max_same_country_per_poule=data.get(
                "max_same_country_per_poule", DEFAULT_MAX_SAME_COUNTRY_PER_POULE
            ),
        )


@dataclass
class PoulePhaseConfig:
    """Configuration of a poule phase.

    Attributes:
        poule_count: Target number of poules (P)
        poule_size: Maximum athletes per poule (S), between 3 and 12
        seeding_method: How athletes are ordered and dealt into poules
        separation: Club and country caps
        allow_incomplete_poules: Fill poules to S and leave one short poule
        min_poule_size_for_incomplete: Short poules below this are merged
        random_seed: Required for RANDOM seeding
        max_repair_iterations: Hard cap on separation repair swaps
        manual_assignment: One athlete-id list per poule for MANUAL seeding
        size_method: How poule sizes are decided (see :class:`PouleSizeMethod`)
        poule_sizes: Explicit size of each poule for the VARIABLE method
    """

    KIND: ClassVar[str] = "poule"

    poule_count: int
    poule_size: int
    seeding_method: SeedingMethod = SeedingMethod.SNAKE
    separation: SeparationRules = field(default_factory=SeparationRules)
    allow_incomplete_poules: bool = False
    min_poule_size_for_incomplete: int = DEFAULT_MIN_POULE_SIZE_FOR_INCOMPLETE
    random_seed: Optional[int] = None
    max_repair_iterations: int = DEFAULT_MAX_REPAIR_ITERATIONS
    manual_assignment: Optional[List[List[str]]] = None
    size_method: PouleSizeMethod = PouleSizeMethod.BALANCED
    poule_sizes: Optional[List[int]] = None

    def validate(self, athlete_count: int) -> None:
        """Check the configuration against the number of athletes.

        Only BALANCED poules are bound by ``poule_count``; FIXED and OPTIMAL
        derive the number of poules from the field, VARIABLE from
        ``poule_sizes``.

        Raises:
            ConfigurationError: If the poules cannot hold the athletes or a
                parameter is out of range
        """
        if self.poule_count < 1:
            raise ConfigurationError(
                f"At least 1 poule is required: {self.poule_count}"
            )
        if not MIN_POULE_SIZE <= self.poule_size <= MAX_POULE_SIZE:
            raise ConfigurationError(
                f"Poule size must be between {MIN_POULE_SIZE} and "
                f"{MAX_POULE_SIZE}: {self.poule_size}"
            )
        if self.size_method is PouleSizeMethod.VARIABLE:
            self._validate_variable_sizes(athlete_count)
        elif (
            self.size_method is PouleSizeMethod.BALANCED
            and self.poule_count * self.poule_size < athlete_count
        ):
            raise ConfigurationError(
                f"{self.poule_count} poules of {self.poule_size} cannot hold "
                f"{athlete_count} athletes"
            )
        if self.max_repair_iterations < 0:
            raise ConfigurationError("Repair iteration cap must not be negative")
        if self.seeding_method is SeedingMethod.RANDOM and self.random_seed is None:
            raise ConfigurationError("RANDOM seeding needs a random_seed")
        if (
            self.seeding_method is SeedingMethod.MANUAL
            and self.manual_assignment is None
        ):
            raise ConfigurationError("MANUAL seeding needs a manual_assignment")

    def _validate_variable_sizes(self, athlete_count: int) -> None:
        if not self.poule_sizes:
            raise ConfigurationError("VARIABLE poule sizes need a poule_sizes list")
        if len(self.poule_sizes) != self.poule_count:
            raise ConfigurationError(
                f"{len(self.poule_sizes)} poule sizes given for "
                f"{self.poule_count} poules"
            )
        invalid = [
            s for s in self.poule_sizes if not MIN_POULE_SIZE <= s <= self.poule_size
        ]
        if invalid:
            raise ConfigurationError(
                f"Poule sizes must be between {MIN_POULE_SIZE} and "
                f"{self.poule_size}: {invalid}"
            )
        if sum(self.poule_sizes) < athlete_count:
            raise ConfigurationError(
                f"Poule sizes {self.poule_sizes} hold {sum(self.poule_sizes)} "
                f"athletes, not {athlete_count}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poule_count": self.poule_count,
            "poule_size": self.poule_size,
            "seeding_method": self.seeding_method.value,
            "separation": self.separation.to_dict(),
            "allow_incomplete_poules": self.allow_incomplete_poules,
            "min_poule_size_for_incomplete": self.min_poule_size_for_incomplete,
            "random_seed": self.random_seed,
            "max_repair_iterations": self.max_repair_iterations,
            "manual_assignment": self.manual_assignment,
            "size_method": self.size_method.value,
            "poule_sizes": self.poule_sizes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoulePhaseConfig":
        return cls(
            poule_count=data["poule_count"],
            poule_size=data["poule_size"],
            seeding_method=SeedingMethod(data.get("seeding_method", "SNAKE")),
            separation=SeparationRules.from_dict(data.get("separation")),
            allow_incomplete_poules=data.get("allow_incomplete_poules", False),
            min_poule_size_for_incomplete=data.get(
                "min_poule_size_for_incomplete", DEFAULT_MIN_POULE_SIZE_FOR_INCOMPLETE
            ),
            random_seed=data.get("random_seed"),
            max_repair_iterations=data.get(
                "max_repair_iterations", DEFAULT_MAX_REPAIR_ITERATIONS
            ),
            manual_assignment=data.get("manual_assignment"),
            size_method=PouleSizeMethod(data.get("size_method", "balanced")),
            poule_sizes=data.get("poule_sizes"),
        )


# ========== Elimination phase configuration ==========


@dataclass
class BracketConfig:
    """Configuration of one elimination bracket.

    Attributes:
        bracket_type: MAIN or a bracket depending on a MAIN bracket
        size: Explicit bracket size, or None to fit the qualifiers
        seeding_method: RANKING, SNAKE, RANDOM or MANUAL
        bye_distribution: Which seeds get byes
        name: Unique within the phase, defaults to the type's display name
        source_bracket: MAIN bracket a dependent bracket draws from
        repechage_source: Stage whose losers enter a repechage
        classification_positions: Places decided by a classification bracket
        random_seed: Required for RANDOM seeding
        manual_slots: Full slot order for MANUAL seeding (None marks a bye)
    """

    bracket_type: BracketType = BracketType.MAIN
    size: Optional[int] = None
    seeding_method: SeedingMethod = SeedingMethod.RANKING
    bye_distribution: ByeDistribution = ByeDistribution.TOP
    name: str = ""
    source_bracket: Optional[str] = None
    repechage_source: Optional[RepechageSource] = None
    classification_positions: Tuple[int, ...] = ()
    random_seed: Optional[int] = None
    manual_slots: Optional[List[Optional[str]]] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.bracket_type.display_name
        if self.size is not None and self.size not in BRACKET_SIZES:
            raise ConfigurationError(
                f"Bracket size must be one of {BRACKET_SIZES}: {self.size}"
            )
        if self.bracket_type is BracketType.REPECHAGE and self.repechage_source is None:
            self.repechage_source = RepechageSource.FIRST_ROUND
        if (
            self.bracket_type is BracketType.CLASSIFICATION
            and not self.classification_positions
        ):
            self.classification_positions = DEFAULT_CLASSIFICATION_POSITIONS
        self.classification_positions = tuple(self.classification_positions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bracket_type": self.bracket_type.value,
            "size": self.size,
            "seeding_method": self.seeding_method.value,
            "bye_distribution": self.bye_distribution.value,
            "name": self.name,
            "source_bracket": self.source_bracket,
            "repechage_source": (
                self.repechage_source.value if self.repechage_source else None
            ),
            "classification_positions": list(self.classification_positions),
            "random_seed": self.random_seed,
            "manual_slots": self.manual_slots,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketConfig":
        repechage_source = data.get("repechage_source")
        return cls(
            bracket_type=BracketType(data.get("bracket_type", "MAIN")),
            size=data.get("size"),
            seeding_method=SeedingMethod(data.get("seeding_method", "RANKING")),
            bye_distribution=ByeDistribution(data.get("bye_distribution", "top")),
            name=data.get("name", ""),
            source_bracket=data.get("source_bracket"),
            repechage_source=(
                RepechageSource(repechage_source) if repechage_source else None
            ),
            classification_positions=tuple(data.get("classification_positions", ())),
            random_seed=data.get("random_seed"),
            manual_slots=data.get("manual_slots"),
        )


@dataclass
class EliminationPhaseConfig:
    """Configuration of an elimination-type phase: its list of brackets."""

    KIND: ClassVar[str] = "elimination"

    brackets: List[BracketConfig] = field(default_factory=lambda: [BracketConfig()])

    def __post_init__(self) -> None:
        self.validate()
        # Canonical execution order, stable for brackets of the same type
        self.brackets = sorted(self.brackets, key=lambda b: b.bracket_type.priority)

    def validate(self) -> None:
        """Check bracket names and dependencies.

        Raises:
            ConfigurationError: If there is no bracket or names repeat
            DependencyError: If a dependent bracket has no MAIN bracket
        """
        if not self.brackets:
            raise ConfigurationError("At least one bracket is required")

        names = [b.name for b in self.brackets]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate bracket names: {duplicates}")

        main_names = {
            b.name for b in self.brackets if b.bracket_type is BracketType.MAIN
        }
        for bracket in self.brackets:
            if not bracket.bracket_type.requires_main:
                continue
            if not main_names:
                raise DependencyError(
                    f"{bracket.bracket_type.display_name} bracket "
                    f"'{bracket.name}' requires a Main bracket"
                )
            if bracket.source_bracket and bracket.source_bracket not in main_names:
                raise DependencyError(
                    f"Bracket '{bracket.name}' depends on unknown Main bracket "
                    f"'{bracket.source_bracket}'"
                )

    def bracket_config(self, name: str) -> Optional[BracketConfig]:
        for bracket in self.brackets:
            if bracket.name == name:
                return bracket
        return None

    def dependents_of(self, main_name: str) -> List[BracketConfig]:
        """Configured brackets drawing from the MAIN bracket ``main_name``."""
        return [
            b
            for b in self.brackets
            if b.bracket_type.requires_main
            and (b.source_bracket is None or b.source_bracket == main_name)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {"brackets": [b.to_dict() for b in self.brackets]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EliminationPhaseConfig":
        return cls(
            brackets=[BracketConfig.from_dict(b) for b in data.get("brackets", [])]
        )


PhaseConfig = Union[PoulePhaseConfig, EliminationPhaseConfig]


def phase_config_to_dict(config: PhaseConfig) -> Dict[str, Any]:
    """Serialize a phase configuration with its variant tag."""
    data = config.to_dict()
    data["kind"] = config.KIND
    return data


def phase_config_from_dict(phase_type: PhaseType, data: Dict[str, Any]) -> PhaseConfig:
    """Deserialize the configuration variant matching ``phase_type``.

    Raises:
        ConfigurationError: If the stored tag does not match the phase type
    """
    expected = (
        EliminationPhaseConfig if phase_type.is_elimination else PoulePhaseConfig
    )
    kind = data.get("kind", expected.KIND)
    if kind != expected.KIND:
        raise ConfigurationError(
            f"{phase_type.value} phase cannot use a '{kind}' configuration"
        )
    return expected.from_dict(data)


# ========== Phase and competition ==========


@dataclass
class Phase:
    """One sequential stage of a competition.

    A phase owns its poules (POULE) or its brackets (elimination types)
    exclusively.

    Attributes
    ----------
    name : str
        Display name.
    phase_type : PhaseType
        Kind of phase; selects the configuration variant.
    sequence_order : int
        1-based order within the competition.
    configuration : PoulePhaseConfig or EliminationPhaseConfig
        Type-specific configuration.
    qualification : QualificationRule
        How many athletes advance to the next phase.
    status : PhaseStatus
        SCHEDULED, IN_PROGRESS or COMPLETED. Only moves forward.
    """

    name: str
    phase_type: PhaseType
    sequence_order: int
    configuration: PhaseConfig
    qualification: QualificationRule = field(default_factory=QualificationRule)
    status: PhaseStatus = PhaseStatus.SCHEDULED
    poules: List[Poule] = field(default_factory=list)
    brackets: List[Bracket] = field(default_factory=list)
    competition_id: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("Phase"))

    def __post_init__(self) -> None:
        if self.sequence_order < 1:
            raise ConfigurationError(
                f"Phase sequence order must be at least 1: {self.sequence_order}"
            )
        expected = (
            EliminationPhaseConfig
            if self.phase_type.is_elimination
            else PoulePhaseConfig
        )
        if not isinstance(self.configuration, expected):
            raise ConfigurationError(
                f"{self.phase_type.value} phase '{self.name}' needs a "
                f"{expected.__name__}, got {type(self.configuration).__name__}"
            )

    @classmethod
    def create(
        cls,
        name: str,
        phase_type: PhaseType,
        sequence_order: int,
        configuration: PhaseConfig,
        qualification_quota: Optional[int] = None,
        qualification_percentage: Optional[float] = None,
    ) -> "Phase":
        """Build a phase from flat qualification settings.

        Raises:
            ConfigurationError: If both quota and percentage are given, or the
                configuration does not match the phase type
        """
        return cls(
            name=name,
            phase_type=phase_type,
            sequence_order=sequence_order,
            configuration=configuration,
            qualification=QualificationRule(
                quota=qualification_quota, percentage=qualification_percentage
            ),
        )

    @property
    def is_poule_phase(self) -> bool:
        return self.phase_type is PhaseType.POULE

    def bracket(self, name: str) -> Optional[Bracket]:
        for bracket in self.brackets:
            if bracket.name == name:
                return bracket
        return None

    def poule(self, number: int) -> Optional[Poule]:
        for poule in self.poules:
            if poule.number == number:
                return poule
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize phase to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "phase_type": self.phase_type.value,
            "sequence_order": self.sequence_order,
            "status": self.status.value,
            "competition_id": self.competition_id,
            "qualification": self.qualification.to_dict(),
            "configuration": phase_config_to_dict(self.configuration),
            "poules": [p.to_dict() for p in self.poules],
            "brackets": [b.to_dict() for b in self.brackets],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Phase":
        """Deserialize phase from dictionary."""
        phase_type = PhaseType(data["phase_type"])
        kwargs: Dict[str, Any] = {
            "name": data["name"],
            "phase_type": phase_type,
            "sequence_order": data["sequence_order"],
            "configuration": phase_config_from_dict(
                phase_type, data.get("configuration", {})
            ),
            "qualification": QualificationRule.from_dict(data.get("qualification")),
            "status": PhaseStatus(data.get("status", "SCHEDULED")),
            "poules": [Poule.from_dict(p) for p in data.get("poules", [])],
            "brackets": [Bracket.from_dict(b) for b in data.get("brackets", [])],
            "competition_id": data.get("competition_id"),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


@dataclass
class Competition:
    """A competition (one weapon/category) and its ordered phases.

    Attributes:
        id: Competition identifier
        name: Display name
        category: Age category key from ``AGE_CATEGORIES``, or None
        reference_date: Date on which ages are evaluated for the category
        phases: Phases sorted by sequence order
    """

    id: str
    name: str
    category: Optional[str] = None
    reference_date: Optional[date] = None
    phases: List[Phase] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.category is not None:
            self.category = self.category.upper()
            if self.category not in AGE_CATEGORIES:
                raise ConfigurationError(f"Unknown age category: {self.category}")
        existing = list(self.phases)
        self.phases = []
        for phase in existing:
            self.add_phase(phase)

    def add_phase(self, phase: Phase) -> Phase:
        """Attach a phase, keeping phases sorted by sequence order.

        Raises:
            ConfigurationError: If the sequence order is already taken
        """
        if any(p.sequence_order == phase.sequence_order for p in self.phases):
            raise ConfigurationError(
                f"Sequence order {phase.sequence_order} is already used in "
                f"competition {self.id}"
            )
        phase.competition_id = self.id
        self.phases.append(phase)
        self.phases.sort(key=lambda p: p.sequence_order)
        return phase

    def validate(self) -> None:
        """Check the competition formula as a whole.

        Raises:
            ConfigurationError: If there are no phases or sequence orders are
                not consecutive from 1
        """
        if not self.phases:
            raise ConfigurationError("At least one phase is required")
        orders = [p.sequence_order for p in self.phases]
        if orders != list(range(1, len(orders) + 1)):
            raise ConfigurationError(
                f"Phase sequence orders must be consecutive starting from 1: {orders}"
            )

    def phase_by_order(self, sequence_order: int) -> Optional[Phase]:
        for phase in self.phases:
            if phase.sequence_order == sequence_order:
                return phase
        return None

    def previous_phase(self, phase: Phase) -> Optional[Phase]:
        earlier = [p for p in self.phases if p.sequence_order < phase.sequence_order]
        return earlier[-1] if earlier else None

    def next_phase(self, phase: Phase) -> Optional[Phase]:
        later = [p for p in self.phases if p.sequence_order > phase.sequence_order]
        return later[0] if later else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize competition to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "reference_date": (
                self.reference_date.isoformat() if self.reference_date else None
            ),
            "phases": [p.to_dict() for p in self.phases],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Competition":
        """Deserialize competition from dictionary."""
        reference_date = data.get("reference_date")
        return cls(
            id=data["id"],
            name=data.get("name", "Untitled Competition"),
            category=data.get("category"),
            reference_date=(
                date.fromisoformat(reference_date) if reference_date else None
            ),
            phases=[Phase.from_dict(p) for p in data.get("phases", [])],
        )
