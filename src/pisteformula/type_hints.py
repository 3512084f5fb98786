"""Type hints used in Piste Formula."""

from typing import Optional, Sequence

# Athlete identifiers are opaque strings supplied by the roster provider
AthleteId = str
MaybeAthleteId = Optional[str]

# One athlete-id list per poule, in poule-number order (manual seeding)
ManualPouleAssignment = Sequence[Sequence[AthleteId]]
# One entry per bracket slot, None marks a bye (manual bracket seeding)
ManualSlotOrder = Sequence[MaybeAthleteId]
