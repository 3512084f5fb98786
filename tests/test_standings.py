import pytest

from pisteformula.exceptions import InvalidScoreError
from pisteformula.models import Athlete, Bout, Poule, PouleAssignment
from pisteformula.seeding import generate_bouts
from pisteformula.tournament import (
    compute_phase_ranking,
    compute_standings,
    phase_criteria,
    unresolved_ties,
)


def _poule(ids, number=1):
    poule = Poule(
        number=number,
        assignments=[
            PouleAssignment(athlete=Athlete(id=athlete_id), position=i, seed=i)
            for i, athlete_id in enumerate(ids, start=1)
        ],
    )
    poule.bouts = generate_bouts(poule)
    return poule


def _score(poule, first, second, first_score, second_score, winner_id=None):
    """Record ``first`` scoring ``first_score`` against ``second``."""
    bout = poule.bout_between(first, second)
    if bout.athlete_a_id == first:
        bout.record_score(first_score, second_score, winner_id)
    else:
        bout.record_score(second_score, first_score, winner_id)


def _by_id(standings):
    return {s.athlete_id: s for s in standings}


def _complete_poule_of_six():
    poule = _poule(["A", "B", "C", "D", "E", "F"])
    for other in "BCDEF":
        _score(poule, "A", other, 5, 2)
    for other in "CDEF":
        _score(poule, "B", other, 5, 3)
    for other in "DEF":
        _score(poule, "C", other, 5, 4)
    for other in "EF":
        _score(poule, "D", other, 5, 1)
    _score(poule, "E", "F", 5, 0)
    return poule


def test_complete_poule_of_six():
    poule = _complete_poule_of_six()
    assert poule.is_complete

    standings = compute_standings(poule)

    leader = _by_id(standings)["A"]
    assert leader.victories == 5
    assert leader.touches_scored == 25
    assert leader.touches_received == 10
    assert leader.indicator == 15
    assert leader.place == 1
    assert [s.athlete_id for s in standings] == ["A", "B", "C", "D", "E", "F"]
    assert [s.place for s in standings] == [1, 2, 3, 4, 5, 6]
    assert not any(s.tied for s in standings)
    assert all(s.poule_number == 1 for s in standings)


def test_indicators_sum_to_zero():
    standings = compute_standings(_complete_poule_of_six())

    assert sum(s.indicator for s in standings) == 0
    assert sum(s.victories for s in standings) == 15


def test_standings_are_idempotent():
    poule = _complete_poule_of_six()

    assert compute_standings(poule) == compute_standings(poule)


def test_partial_poule_counts_only_recorded_bouts():
    poule = _poule(["A", "B", "C", "D"])
    _score(poule, "B", "C", 5, 3)

    standings = compute_standings(poule)

    assert not poule.is_complete
    by_id = _by_id(standings)
    assert by_id["B"].victories == 1
    assert by_id["B"].bouts_fenced == 1
    assert by_id["A"].bouts_fenced == 0
    assert standings[0].athlete_id == "B"
    assert standings[-1].athlete_id == "C"
    # A and D have fenced nothing yet
    assert by_id["A"].tied and by_id["D"].tied


def test_indicator_then_touches_scored_break_ties():
    poule = _poule(["A", "B", "C", "D"])
    _score(poule, "A", "B", 5, 3)
    _score(poule, "C", "D", 4, 2)

    standings = compute_standings(poule)

    # A and C: one victory, +2 each; A scored more
    assert [s.athlete_id for s in standings] == ["A", "C", "B", "D"]
    assert not any(s.tied for s in standings)


def test_three_way_tie_is_flagged():
    poule = _poule(["C", "A", "B"])
    _score(poule, "A", "B", 5, 3)
    _score(poule, "B", "C", 5, 3)
    _score(poule, "C", "A", 5, 3)

    standings = compute_standings(poule)

    assert [s.athlete_id for s in standings] == ["A", "B", "C"]
    assert [s.place for s in standings] == [1, 2, 3]
    assert all(s.tied for s in standings)
    groups = unresolved_ties(standings)
    assert len(groups) == 1
    assert [s.athlete_id for s in groups[0]] == ["A", "B", "C"]


def test_no_ties_without_equal_keys():
    poule = _poule(["A", "B", "C"])
    _score(poule, "A", "B", 5, 0)
    _score(poule, "B", "C", 5, 4)
    _score(poule, "C", "A", 5, 4)

    standings = compute_standings(poule)

    assert [s.athlete_id for s in standings] == ["A", "C", "B"]
    assert [s.indicator for s in standings] == [4, 0, -4]
    assert unresolved_ties(standings) == []


def test_priority_victory_on_equal_score():
    poule = _poule(["A", "B", "C"])
    _score(poule, "A", "B", 4, 4, winner_id="B")

    by_id = _by_id(compute_standings(poule))

    assert by_id["B"].victories == 1
    assert by_id["A"].victories == 0
    assert by_id["A"].indicator == 0


def test_equal_score_without_winner_is_rejected():
    poule = _poule(["A", "B", "C"])
    bout = poule.bout_between("A", "B")

    with pytest.raises(InvalidScoreError):
        bout.record_score(3, 3)
    with pytest.raises(InvalidScoreError):
        bout.record_score(16, 3)
    with pytest.raises(InvalidScoreError):
        bout.record_score(3, 3, winner_id="C")
    assert bout.winner_id is None


def test_foreign_bout_is_ignored():
    poule = _poule(["A", "B", "C"])
    poule.bouts[0].athlete_b_id = "Z"
    poule.bouts[0].record_score(5, 0)

    standings = compute_standings(poule)

    assert {s.athlete_id for s in standings} == {"A", "B", "C"}
    assert sum(s.victories for s in standings) == 0


def test_phase_ranking_uses_victory_ratio():
    small = _poule(["A", "B", "C"], number=1)
    _score(small, "A", "B", 5, 0)
    _score(small, "A", "C", 5, 0)
    _score(small, "B", "C", 5, 0)
    large = _poule(["D", "E", "F", "G"], number=2)
    for other in "EFG":
        _score(large, "D", other, 5, 0)

    ranking = compute_phase_ranking([small, large])

    assert len(ranking) == 7
    # A and D both won every bout; D has the better indicator
    assert [s.athlete_id for s in ranking[:3]] == ["D", "A", "B"]
    assert ranking[0].poule_number == 2
    assert ranking[0].victory_ratio == 1.0
    assert [s.place for s in ranking] == list(range(1, 8))


def test_bout_without_scores_is_not_counted():
    poule = _poule(["X", "Y", "Z"])
    stored = Bout.from_dict(
        {
            "id": "stored",
            "pouleId": "p1",
            "athleteAId": "X",
            "athleteBId": "Y",
            "scoreA": None,
            "scoreB": None,
            "winnerId": "Y",
        }
    )
    poule.bouts[poule.bouts.index(poule.bout_between("X", "Y"))] = stored

    by_id = _by_id(compute_standings(poule))

    assert by_id["Y"].victories == 0
    assert by_id["Y"].bouts_fenced == 0
    assert by_id["X"].bouts_fenced == 0


def _poule_with_two_adjacent_tied_pairs():
    poule = _poule(["A", "B", "C", "D", "E", "F", "G", "H"])
    _score(poule, "A", "E", 5, 1)
    _score(poule, "A", "F", 5, 1)
    _score(poule, "B", "G", 5, 1)
    _score(poule, "B", "H", 5, 1)
    _score(poule, "C", "E", 10, 2)
    _score(poule, "D", "F", 10, 2)
    return poule


def test_ties_are_grouped_by_the_ranking_criteria():
    standings = compute_standings(_poule_with_two_adjacent_tied_pairs())

    # A, B won twice and C, D once, all at V/M 1.0 with +8 and 10 scored
    assert [s.athlete_id for s in standings[:4]] == ["A", "B", "C", "D"]
    groups = unresolved_ties(standings)
    assert [[s.athlete_id for s in g] for g in groups] == [
        ["A", "B"],
        ["C", "D"],
        ["G", "H"],
        ["E", "F"],
    ]

    by_ratio = unresolved_ties(standings, phase_criteria)
    assert [s.athlete_id for s in by_ratio[0]] == ["A", "B", "C", "D"]
