"""Elimination brackets: seeding, byes, registration and rounds."""


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

from pisteformula.bracket.builder import (
    BracketBuilder,
    build_bracket,
    register_bracket,
)
from pisteformula.bracket.rounds import (
    advance_round,
    champion,
    create_first_round_bouts,
    final_ranking,
    is_finished,
    losers_of_round,
)
from pisteformula.bracket.seed_table import (
    bracket_size_for,
    bye_receivers,
    first_round_units,
    seeded_slot_order,
    standard_seed_order,
)

__all__ = [
    "BracketBuilder",
    "advance_round",
    "bracket_size_for",
    "build_bracket",
    "bye_receivers",
    "first_round_units",
    "champion",
    "create_first_round_bouts",
    "final_ranking",
    "is_finished",
    "losers_of_round",
    "register_bracket",
    "seeded_slot_order",
    "standard_seed_order",
]
