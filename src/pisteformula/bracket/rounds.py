"""Round-by-round progression inside one bracket."""


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

from typing import Dict, List, Optional

from pisteformula.exceptions import IncompletePhaseError
from pisteformula.models.athlete import Athlete
from pisteformula.models.bracket import Bracket, BracketBout
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


def create_first_round_bouts(bracket: Bracket) -> List[BracketBout]:
    """Create the round-one bouts of a bracket from its slots.

    An athlete facing a bye gets a bye bout that is already won. Any bouts
    the bracket held before are replaced.
    """
    bouts = []
    for match_number, (top, bottom) in enumerate(
        bracket.first_round_pairings(), start=1
    ):
        if top.is_bye or bottom.is_bye:
            athlete_id = bottom.athlete_id if top.is_bye else top.athlete_id
            bouts.append(
                BracketBout(
                    athlete_a_id=athlete_id,
                    athlete_b_id=None,
                    round_number=1,
                    match_number=match_number,
                    is_bye=True,
                    winner_id=athlete_id,
                )
            )
        else:
            bouts.append(
                BracketBout(
                    athlete_a_id=top.athlete_id,
                    athlete_b_id=bottom.athlete_id,
                    round_number=1,
                    match_number=match_number,
                )
            )
    bracket.bouts = bouts
    logger.debug(
        "Bracket '%s': %s first-round bout(s), %s bye(s)",
        bracket.name,
        len(bouts),
        sum(1 for b in bouts if b.is_bye),
    )
    return bouts


def advance_round(bracket: Bracket) -> List[BracketBout]:
    """Create the next round from the winners of the current one.

    Returns:
        The new bouts; empty once the final has been fenced

    Raises:
        IncompletePhaseError: If the current round has unresolved bouts
    """
    current = bracket.current_round
    if current == 0:
        return create_first_round_bouts(bracket)

    bouts = bracket.bouts_in_round(current)
    unresolved = [b for b in bouts if not b.is_complete]
    if unresolved:
        logger.error(
            "Bracket '%s' round %s has %s unresolved bout(s)",
            bracket.name,
            current,
            len(unresolved),
        )
        raise IncompletePhaseError(
            f"Round {current} of bracket '{bracket.name}' has "
            f"{len(unresolved)} unresolved bout(s)"
        )
    if current >= bracket.round_count:
        return []

    winners = [b.winner_id for b in bouts]
    new_bouts = [
        BracketBout(
            athlete_a_id=winners[i],
            athlete_b_id=winners[i + 1],
            round_number=current + 1,
            match_number=i // 2 + 1,
        )
        for i in range(0, len(winners), 2)
    ]
    bracket.bouts.extend(new_bouts)
    logger.info(
        "Bracket '%s' advanced to the table of %s",
        bracket.name,
        bracket.round_field(current + 1),
    )
    return new_bouts


def losers_of_round(bracket: Bracket, round_number: int) -> List[str]:
    """Athletes eliminated in a round, in match order. Byes eliminate nobody."""
    return [
        b.loser_id
        for b in bracket.bouts_in_round(round_number)
        if b.loser_id is not None
    ]


def is_finished(bracket: Bracket) -> bool:
    """Whether the final has a winner."""
    return champion(bracket) is not None


def champion(bracket: Bracket) -> Optional[str]:
    """Winner of the final, None until it is fenced."""
    final = bracket.bouts_in_round(bracket.round_count)
    if len(final) == 1 and final[0].is_complete:
        return final[0].winner_id
    return None


def final_ranking(bracket: Bracket) -> List[Athlete]:
    """Athletes of the bracket from first to last.

    Athletes still in the bracket (the champion once decided) come first;
    the others follow by the round in which they lost, latest first, then
    by seed.
    """
    eliminated_in: Dict[str, int] = {}
    for bout in bracket.bouts:
        if bout.loser_id is not None:
            eliminated_in[bout.loser_id] = bout.round_number

    still_in = bracket.round_count + 1

    def rank_key(athlete: Athlete):
        seed = bracket.seed_of(athlete.id)
        return (-eliminated_in.get(athlete.id, still_in), seed or 0)

    return sorted(bracket.athletes, key=rank_key)
