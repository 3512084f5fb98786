from collections import Counter
from itertools import combinations

import pytest

from pisteformula.exceptions import (
    ConfigurationError,
    PouleBalanceWarning,
    SeparationWarning,
)
from pisteformula.models import (
    Athlete,
    PoulePhaseConfig,
    PouleSizeMethod,
    SeedingMethod,
    SeparationRules,
)
from pisteformula.seeding import (
    balanced_poule_sizes,
    generate_poules,
    incomplete_poule_sizes,
    optimal_poule_sizes,
    round_robin_order,
    suggest_poule_layout,
    variable_poule_sizes,
)

NO_SEPARATION = SeparationRules(separate_clubs=False, separate_countries=False)


def _athlete(n, club=None, country=None):
    return Athlete(
        id=f"A{n:02d}",
        club_ids=(club,) if club else (),
        nationality=country,
        ranking_score=100 - n,
    )


def _roster(count, **kwargs):
    return [_athlete(n, **kwargs) for n in range(1, count + 1)]


def _seeds(poule):
    return [a.seed for a in poule.assignments]


def test_23_athletes_in_4_poules_are_balanced():
    athletes = _roster(23)
    config = PoulePhaseConfig(poule_count=4, poule_size=6, separation=NO_SEPARATION)

    result = generate_poules(athletes, config)

    assert [p.size for p in result.poules] == [6, 6, 6, 5]
    assigned = [a for p in result.poules for a in p.athlete_ids]
    assert sorted(assigned) == sorted(a.id for a in athletes)
    assert len(set(assigned)) == 23
    for poule in result.poules:
        assert [a.position for a in poule.assignments] == list(range(1, poule.size + 1))
    assert result.warnings == []
    assert result.size_distribution == {5: 1, 6: 3}


def test_every_pair_fences_exactly_once():
    result = generate_poules(
        _roster(23),
        PoulePhaseConfig(poule_count=4, poule_size=6, separation=NO_SEPARATION),
    )

    for poule in result.poules:
        assert len(poule.bouts) == poule.size * (poule.size - 1) // 2
        pairs = [b.pair for b in poule.bouts]
        expected = {frozenset(p) for p in combinations(poule.athlete_ids, 2)}
        assert set(pairs) == expected
        assert len(pairs) == len(expected)
        assert all(b.poule_id == poule.id for b in poule.bouts)


def test_round_robin_order_rests_athletes_evenly():
    order = round_robin_order(5)

    assert len(order) == 10
    assert len(set(order)) == 10
    appearances = Counter(p for pair in order for p in pair)
    assert set(appearances.values()) == {4}


def test_snake_seeding_deals_serpentine():
    config = PoulePhaseConfig(poule_count=2, poule_size=4, separation=NO_SEPARATION)

    result = generate_poules(_roster(8), config)

    assert _seeds(result.poules[0]) == [1, 4, 5, 8]
    assert _seeds(result.poules[1]) == [2, 3, 6, 7]


def test_ranking_seeding_deals_straight():
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=4,
        seeding_method=SeedingMethod.RANKING,
        separation=NO_SEPARATION,
    )

    result = generate_poules(_roster(8), config)

    assert _seeds(result.poules[0]) == [1, 3, 5, 7]
    assert _seeds(result.poules[1]) == [2, 4, 6, 8]


def test_ranking_ties_are_broken_by_id():
    athletes = [Athlete(id=i, ranking_score=10) for i in ("C", "A", "B")]
    config = PoulePhaseConfig(poule_count=1, poule_size=3, separation=NO_SEPARATION)

    result = generate_poules(athletes, config)

    assert [a.id for a in result.seeding_order] == ["A", "B", "C"]


def test_previous_ranking_overrides_ranking_score():
    config = PoulePhaseConfig(poule_count=2, poule_size=4, separation=NO_SEPARATION)
    previous = ["A08", "A03", "A01", "A05", "A02", "A04"]

    result = generate_poules(_roster(8), config, previous_ranking=previous)

    # A06 and A07 were not ranked before and follow by ranking score
    assert [a.id for a in result.seeding_order] == previous + ["A06", "A07"]
    assert result.poules[0].athlete_ids[0] == "A08"
    assert _seeds(result.poules[0]) == [1, 4, 5, 8]


def test_random_seeding_is_reproducible():
    config = PoulePhaseConfig(
        poule_count=3,
        poule_size=6,
        seeding_method=SeedingMethod.RANDOM,
        random_seed=42,
        separation=NO_SEPARATION,
    )

    first = generate_poules(_roster(17), config)
    second = generate_poules(_roster(17), config)

    assert [p.athlete_ids for p in first.poules] == [
        p.athlete_ids for p in second.poules
    ]


def test_random_seeding_requires_seed():
    config = PoulePhaseConfig(
        poule_count=2, poule_size=6, seeding_method=SeedingMethod.RANDOM
    )
    with pytest.raises(ConfigurationError):
        generate_poules(_roster(10), config)


def test_separation_repair_swaps_within_seed_tier():
    athletes = _roster(12)
    # Snake puts seeds 1, 4 and 5 in poule 1
    for n in (1, 4, 5):
        athletes[n - 1] = _athlete(n, club="X")
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=6,
        separation=SeparationRules(separate_countries=False),
    )

    result = generate_poules(athletes, config)

    assert result.warnings == []
    for poule in result.poules:
        clubs = Counter(c for a in poule.athletes for c in a.club_ids)
        assert clubs["X"] <= 2
    # Seeds 5 and 6 share a snake row and trade places
    moved = result.poules[1].assignments[2]
    assert moved.athlete.id == "A05"
    assert result.poules[0].assignments[2].athlete.id == "A06"


def test_unresolvable_separation_is_reported_not_raised():
    athletes = _roster(6, club="X")
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=3,
        separation=SeparationRules(separate_countries=False),
    )

    result = generate_poules(athletes, config)

    assert sum(p.size for p in result.poules) == 6
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert isinstance(warning, SeparationWarning)
    assert {v.poule_number for v in warning.violations} == {1, 2}
    assert all(v.key == "X" and v.excess == 1 for v in warning.violations)


def test_country_cap_is_enforced_separately():
    athletes = _roster(8)
    for n in (1, 4, 5, 8):
        athletes[n - 1] = _athlete(n, country="FRA")
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=4,
        separation=SeparationRules(separate_clubs=False, max_same_country_per_poule=2),
    )

    result = generate_poules(athletes, config)

    assert result.warnings == []
    for poule in result.poules:
        assert sum(1 for a in poule.athletes if a.nationality == "FRA") == 2


def test_incomplete_poules_fill_to_size():
    config = PoulePhaseConfig(
        poule_count=4, poule_size=6, allow_incomplete_poules=True, separation=NO_SEPARATION
    )

    result = generate_poules(_roster(22), config)

    assert [p.size for p in result.poules] == [6, 6, 6, 4]


def test_short_poule_is_merged_into_neighbours():
    config = PoulePhaseConfig(
        poule_count=4, poule_size=6, allow_incomplete_poules=True, separation=NO_SEPARATION
    )

    result = generate_poules(_roster(20), config)

    assert [p.size for p in result.poules] == [6, 7, 7]
    assert sum(p.size for p in result.poules) == 20


def test_merge_beyond_maximum_size_fails():
    with pytest.raises(ConfigurationError):
        incomplete_poule_sizes(25, 12, 4)


def test_manual_assignment_is_validated_not_repaired():
    athletes = [_athlete(n, club="X" if n <= 3 else None) for n in range(1, 7)]
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=3,
        seeding_method=SeedingMethod.MANUAL,
        manual_assignment=[["A01", "A02", "A03"], ["A04", "A05", "A06"]],
    )

    result = generate_poules(athletes, config)

    assert result.poules[0].athlete_ids == ["A01", "A02", "A03"]
    assert len(result.warnings) == 1
    assert result.warnings[0].violations[0].poule_number == 1


@pytest.mark.parametrize(
    "assignment",
    [
        [["A01", "A02", "A03"], ["A04", "A05"]],
        [["A01", "A02", "A03"], ["A04", "A05", "A05"]],
        [["A01", "A02", "A03"], ["A04", "A05", "A99"]],
        [["A01", "A02", "A03", "A04", "A05", "A06"]],
    ],
)
def test_invalid_manual_assignment(assignment):
    config = PoulePhaseConfig(
        poule_count=2,
        poule_size=3,
        seeding_method=SeedingMethod.MANUAL,
        manual_assignment=assignment,
    )
    with pytest.raises(ConfigurationError):
        generate_poules(_roster(6), config)


@pytest.mark.parametrize(
    "count, poule_count, poule_size",
    [
        (20, 3, 6),  # poules cannot hold the athletes
        (10, 2, 2),  # poule size below 3
        (10, 1, 13),  # poule size above 12
        (10, 0, 6),  # no poule
        (5, 2, 3),  # balanced poule of 2
    ],
)
def test_invalid_configuration(count, poule_count, poule_size):
    config = PoulePhaseConfig(poule_count=poule_count, poule_size=poule_size)
    with pytest.raises(ConfigurationError):
        generate_poules(_roster(count), config)


def test_empty_or_duplicate_roster():
    config = PoulePhaseConfig(poule_count=1, poule_size=6)
    with pytest.raises(ConfigurationError):
        generate_poules([], config)
    with pytest.raises(ConfigurationError):
        generate_poules(_roster(4) + [_athlete(1)], config)


def test_balanced_sizes_put_larger_poules_first():
    assert balanced_poule_sizes(23, 4) == [6, 6, 6, 5]
    assert balanced_poule_sizes(25, 4) == [7, 6, 6, 6]


def test_suggested_layout():
    assert suggest_poule_layout(30) == (5, 6)
    assert suggest_poule_layout(25) == (4, 7)
    assert suggest_poule_layout(16) == (3, 6)
    with pytest.raises(ConfigurationError):
        suggest_poule_layout(2)


def _sized(method, poule_size, poule_sizes=None, poule_count=None, **kwargs):
    return PoulePhaseConfig(
        poule_count=poule_count or (len(poule_sizes) if poule_sizes else 1),
        poule_size=poule_size,
        size_method=method,
        poule_sizes=poule_sizes,
        separation=NO_SEPARATION,
        **kwargs,
    )


def test_variable_poule_sizes():
    config = _sized(PouleSizeMethod.VARIABLE, 7, [7, 6, 6])

    result = generate_poules(_roster(19), config)

    assert [p.size for p in result.poules] == [7, 6, 6]
    assert result.warnings == []


def test_variable_sizes_larger_than_the_field_are_trimmed():
    config = _sized(PouleSizeMethod.VARIABLE, 7, [7, 7, 7, 6])

    result = generate_poules(_roster(25), config)

    assert [p.size for p in result.poules] == [7, 7, 6, 5]
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert isinstance(warning, PouleBalanceWarning)
    assert (warning.capacity, warning.athlete_count) == (27, 25)


@pytest.mark.parametrize(
    "poule_sizes, poule_count, count",
    [
        ([6, 6], None, 13),  # too few places
        ([7, 6], 3, 13),  # sizes do not match the poule count
        ([7, 2, 4], None, 13),  # poule below the minimum
        ([8, 6], None, 14),  # poule above poule_size
        (None, None, 13),  # no sizes
    ],
)
def test_invalid_variable_sizes(poule_sizes, poule_count, count):
    config = _sized(PouleSizeMethod.VARIABLE, 7, poule_sizes, poule_count=poule_count)
    with pytest.raises(ConfigurationError):
        generate_poules(_roster(count), config)


def test_trimming_below_minimum_fails():
    with pytest.raises(ConfigurationError):
        variable_poule_sizes(5, [4, 4])


def test_fixed_size_derives_the_poule_count():
    config = _sized(PouleSizeMethod.FIXED, 6)

    result = generate_poules(_roster(23), config)

    assert [p.size for p in result.poules] == [6, 6, 6, 5]


def test_optimal_sizes_fill_full_poules_first():
    assert optimal_poule_sizes(26, 7, 5) == [7, 7, 7, 5]
    assert optimal_poule_sizes(21, 7, 5) == [7, 7, 7]
    assert optimal_poule_sizes(23, 7, 5) == [7, 7, 5, 4]
    assert optimal_poule_sizes(4, 7, 5) == [4]

    config = _sized(PouleSizeMethod.OPTIMAL, 7, min_poule_size_for_incomplete=5)
    result = generate_poules(_roster(23), config)
    assert [p.size for p in result.poules] == [7, 7, 5, 4]
