"""Round-robin bout generation for poules.

Bouts are ordered with the circle method: position 1 stays fixed while the
others rotate, so every athlete fences once per rotation and rests evenly.
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

from typing import List, Optional, Tuple

from pisteformula.models.poule import Bout, Poule


def round_robin_order(size: int) -> List[Tuple[int, int]]:
    """Position pairs of a complete round robin, in fencing order.

    Args:
        size: Number of athletes in the poule

    Returns:
        ``size * (size - 1) / 2`` pairs of 1-based positions, lower first
    """
    positions: List[Optional[int]] = list(range(1, size + 1))
    if size % 2:
        positions.append(None)  # rest slot

    count = len(positions)
    order: List[Tuple[int, int]] = []
    for _ in range(count - 1):
        for i in range(count // 2):
            a, b = positions[i], positions[count - 1 - i]
            if a is not None and b is not None:
                order.append((min(a, b), max(a, b)))
        positions = [positions[0], positions[-1]] + positions[1:-1]
    return order


def generate_bouts(poule: Poule) -> List[Bout]:
    """Create the empty bouts of a poule, one per athlete pair."""
    by_position = {a.position: a.athlete.id for a in poule.assignments}
    return [
        Bout(
            athlete_a_id=by_position[a],
            athlete_b_id=by_position[b],
            poule_id=poule.id,
            number=number,
        )
        for number, (a, b) in enumerate(round_robin_order(poule.size), start=1)
    ]
