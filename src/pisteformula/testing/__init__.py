"""Testing tools for Piste Formula.

This module provides:
- Random Roster Generator (reproducible fields with club/country clustering)
- Bout simulation for poules and brackets
- A command-line driver: python -m pisteformula.testing
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

from pisteformula.testing.rtg import (
    BoutSimulator,
    RandomRosterGenerator,
    RosterConfig,
    create_international_roster,
    create_small_roster,
)

__all__ = [
    "BoutSimulator",
    "RandomRosterGenerator",
    "RosterConfig",
    "create_international_roster",
    "create_small_roster",
]
