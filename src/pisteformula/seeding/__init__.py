"""Poule seeding: sizes, dealing, separation repair and bout generation."""

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

from pisteformula.seeding.poule_sizes import (
    balanced_poule_sizes,
    compute_poule_sizes,
    incomplete_poule_sizes,
    optimal_poule_sizes,
    poule_balance_warnings,
    suggest_poule_layout,
    variable_poule_sizes,
)
from pisteformula.seeding.round_robin import generate_bouts, round_robin_order
from pisteformula.seeding.seeder import (
    PouleGenerationResult,
    generate_poules,
    order_by_ranking,
)
from pisteformula.seeding.separation import SeparationRepairer

__all__ = [
    "PouleGenerationResult",
    "SeparationRepairer",
    "balanced_poule_sizes",
    "compute_poule_sizes",
    "generate_bouts",
    "generate_poules",
    "incomplete_poule_sizes",
    "optimal_poule_sizes",
    "order_by_ranking",
    "poule_balance_warnings",
    "round_robin_order",
    "suggest_poule_layout",
    "variable_poule_sizes",
]
