"""Seed tables, bracket sizes and bye receivers."""


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

from typing import List, Optional, Set, Tuple

from pisteformula.constants import BRACKET_SIZES, MAX_BRACKET_SIZE
from pisteformula.exceptions import ConfigurationError
from pisteformula.models.enums import ByeDistribution


def standard_seed_order(size: int) -> List[int]:
    """Seeds in slot order for a full bracket of ``size``.

    The table is built by folding: each seed ``s`` of the previous table is
    followed by its first-round opponent ``2 * len + 1 - s``. Size 8 gives
    ``[1, 8, 4, 5, 2, 7, 3, 6]``, so seeds 1 and 2 can only meet in the
    final and seeds 3 and 4 only in the semi-finals.
    """
    if size < 1 or size & (size - 1):
        raise ConfigurationError(f"Bracket size must be a power of two: {size}")
    order = [1]
    while len(order) < size:
        total = len(order) * 2 + 1
        order = [seed for s in order for seed in (s, total - s)]
    return order


def bracket_size_for(qualifier_count: int, requested: Optional[int] = None) -> int:
    """Bracket size for a number of qualifiers.

    Args:
        qualifier_count: Athletes entering the bracket
        requested: Explicit size, or None for the smallest size that fits

    Raises:
        ConfigurationError: If there are no qualifiers, too many, or the
            requested size is not allowed, too small or so large that two
            byes would meet
    """
    if qualifier_count < 1:
        raise ConfigurationError("A bracket needs at least one qualifier")
    if qualifier_count > MAX_BRACKET_SIZE:
        raise ConfigurationError(
            f"{qualifier_count} qualifiers exceed the largest bracket "
            f"({MAX_BRACKET_SIZE})"
        )
    if requested is None:
        size = next(s for s in BRACKET_SIZES if s >= qualifier_count)
    elif requested not in BRACKET_SIZES:
        raise ConfigurationError(
            f"Bracket size must be one of {BRACKET_SIZES}: {requested}"
        )
    elif requested < qualifier_count:
        raise ConfigurationError(
            f"Bracket of {requested} cannot hold {qualifier_count} qualifiers"
        )
    else:
        size = requested
    if size - qualifier_count > qualifier_count:
        raise ConfigurationError(
            f"Bracket of {size} for {qualifier_count} qualifier(s) would "
            f"pair two byes in the first round"
        )
    return size


def _spread_bye_ranks(unit_count: int, byes: int) -> Set[int]:
    # Unit positions evenly spaced over the bracket, as unit ranks
    table = standard_seed_order(unit_count)
    return {table[i * unit_count // byes] for i in range(byes)}


def first_round_units(
    qualifier_count: int, size: int, distribution: ByeDistribution
) -> List[Tuple[int, Optional[int]]]:
    """First-round units ranked by their best seed.

    A unit is a bye receiver ``(seed, None)`` or a folded pair of the other
    seeds ``(best, worst)``. Unit ``r`` takes position ``r`` of the standard
    table of ``size // 2``.

    - top: seeds 1..b receive the byes
    - bottom: the b weakest seeds receive the byes
    - spread: byes go to units at evenly spaced bracket positions, so every
      part of the bracket gets its share
    """
    unit_count = size // 2
    byes = size - qualifier_count
    if distribution is ByeDistribution.SPREAD and byes > 0:
        bye_ranks = _spread_bye_ranks(unit_count, byes)
        pool = list(range(1, qualifier_count + 1))
        units: List[Tuple[int, Optional[int]]] = []
        for rank in range(1, unit_count + 1):
            best = pool.pop(0)
            units.append((best, None) if rank in bye_ranks else (best, pool.pop()))
        return units

    if byes <= 0:
        receivers: List[int] = []
    elif distribution is ByeDistribution.TOP:
        receivers = list(range(1, byes + 1))
    else:
        receivers = list(range(qualifier_count - byes + 1, qualifier_count + 1))
    receiver_set = set(receivers)
    others = [s for s in range(1, qualifier_count + 1) if s not in receiver_set]

    units = [(s, None) for s in receivers]
    half = len(others) // 2
    units.extend((others[i], others[-1 - i]) for i in range(half))
    units.sort(key=lambda unit: unit[0])
    return units


def bye_receivers(
    qualifier_count: int, size: int, distribution: ByeDistribution
) -> List[int]:
    """Seeds that meet a bye in the first round, ascending."""
    units = first_round_units(qualifier_count, size, distribution)
    return sorted(best for best, opponent in units if opponent is None)


def seeded_slot_order(
    qualifier_count: int, size: int, distribution: ByeDistribution
) -> List[Optional[int]]:
    """Seed in each slot of the bracket, None for a bye.

    Units are laid out with the standard table of ``size // 2``, so a full
    field gives exactly the standard table and ``top`` byes fall to the
    strongest seeds in their standard places.
    """
    units = first_round_units(qualifier_count, size, distribution)
    slots: List[Optional[int]] = []
    for rank in standard_seed_order(size // 2):
        best, opponent = units[rank - 1]
        slots.extend((best, opponent))
    return slots
