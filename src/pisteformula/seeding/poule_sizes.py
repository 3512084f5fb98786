"""Poule size calculation."""

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

import math
from typing import List, Sequence, Tuple

from pisteformula.constants import (
    ALTERNATE_POULE_SIZE,
    MAX_POULE_SIZE,
    MIN_POULE_SIZE,
    PREFERRED_POULE_SIZE,
)
from pisteformula.exceptions import ConfigurationError, PouleBalanceWarning
from pisteformula.models.enums import PouleSizeMethod
from pisteformula.models.phase import PoulePhaseConfig
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


def balanced_poule_sizes(athlete_count: int, poule_count: int) -> List[int]:
    """Split athletes over poules so sizes differ by at most one.

    Larger poules come first: 23 athletes in 4 poules gives [6, 6, 6, 5].

    Raises:
        ConfigurationError: If a poule would hold fewer than 3 athletes
    """
    base, extra = divmod(athlete_count, poule_count)
    sizes = [base + 1] * extra + [base] * (poule_count - extra)
    if sizes[-1] < MIN_POULE_SIZE:
        raise ConfigurationError(
            f"{athlete_count} athletes in {poule_count} poules leaves a poule "
            f"of {sizes[-1]}; the minimum is {MIN_POULE_SIZE}"
        )
    return sizes


def incomplete_poule_sizes(
    athlete_count: int, poule_size: int, min_poule_size_for_incomplete: int
) -> List[int]:
    """Fill poules to ``poule_size`` and leave the remainder in a short poule.

    A short poule below ``min_poule_size_for_incomplete`` is dissolved: its
    athletes join the neighbouring poules one each, nearest first.

    Raises:
        ConfigurationError: If merging pushes a poule above the maximum size
            or a lone poule is too small
    """
    full, remainder = divmod(athlete_count, poule_size)
    if full == 0:
        if remainder < MIN_POULE_SIZE:
            raise ConfigurationError(
                f"{athlete_count} athletes are too few for a poule"
            )
        return [remainder]

    sizes = [poule_size] * full
    if remainder == 0:
        return sizes
    if remainder >= max(min_poule_size_for_incomplete, MIN_POULE_SIZE):
        return sizes + [remainder]

    logger.info(
        "Merging short poule of %s into %s neighbouring poule(s)",
        remainder,
        min(remainder, full),
    )
    for i in range(remainder):
        sizes[full - 1 - (i % full)] += 1
    if max(sizes) > MAX_POULE_SIZE:
        raise ConfigurationError(
            f"Merging a short poule of {remainder} would create a poule of "
            f"{max(sizes)}; the maximum is {MAX_POULE_SIZE}"
        )
    return sizes


def optimal_poule_sizes(athlete_count: int, max_size: int, min_size: int) -> List[int]:
    """Fill as many poules of ``max_size`` as possible.

    A remainder of at least ``min_size`` forms its own poule. A smaller one
    is pooled with the last full poule and the pool split in two: 23
    athletes with sizes 5..7 gives [7, 7, 5, 4].

    Raises:
        ConfigurationError: If the split leaves a poule below the minimum
    """
    if athlete_count < MIN_POULE_SIZE:
        raise ConfigurationError(f"{athlete_count} athletes are too few for a poule")
    full, remainder = divmod(athlete_count, max_size)
    if full == 0:
        return [remainder]

    sizes = [max_size] * full
    if remainder == 0:
        return sizes
    if remainder >= min_size:
        return sizes + [remainder]

    pooled = sizes.pop() + remainder
    sizes.extend((pooled - pooled // 2, pooled // 2))
    if sizes[-1] < MIN_POULE_SIZE:
        raise ConfigurationError(
            f"Splitting {pooled} athletes leaves a poule of {sizes[-1]}; "
            f"the minimum is {MIN_POULE_SIZE}"
        )
    return sizes


def variable_poule_sizes(athlete_count: int, poule_sizes: Sequence[int]) -> List[int]:
    """Explicit poule sizes trimmed to the field.

    Surplus places are taken from the last poules, one per poule, so
    [7, 7, 7, 6] for 25 athletes becomes [7, 7, 6, 5].

    Raises:
        ConfigurationError: If the sizes cannot hold the field or trimming
            leaves a poule below the minimum
    """
    sizes = list(poule_sizes)
    surplus = sum(sizes) - athlete_count
    if surplus < 0:
        raise ConfigurationError(
            f"Poule sizes {sizes} cannot hold {athlete_count} athletes"
        )
    for i in range(surplus):
        sizes[len(sizes) - 1 - (i % len(sizes))] -= 1
    if min(sizes) < MIN_POULE_SIZE:
        raise ConfigurationError(
            f"Poule sizes {list(poule_sizes)} leave a poule of {min(sizes)} for "
            f"{athlete_count} athletes; the minimum is {MIN_POULE_SIZE}"
        )
    return sizes


def compute_poule_sizes(athlete_count: int, config: PoulePhaseConfig) -> List[int]:
    """Poule sizes for a poule phase, one entry per poule number."""
    method = config.size_method
    if method is PouleSizeMethod.VARIABLE:
        return variable_poule_sizes(athlete_count, config.poule_sizes)
    if method is PouleSizeMethod.FIXED:
        return balanced_poule_sizes(
            athlete_count, math.ceil(athlete_count / config.poule_size)
        )
    if method is PouleSizeMethod.OPTIMAL:
        return optimal_poule_sizes(
            athlete_count,
            config.poule_size,
            max(config.min_poule_size_for_incomplete, MIN_POULE_SIZE),
        )

    if config.allow_incomplete_poules and athlete_count % config.poule_size:
        return incomplete_poule_sizes(
            athlete_count, config.poule_size, config.min_poule_size_for_incomplete
        )
    if config.allow_incomplete_poules:
        return [config.poule_size] * (athlete_count // config.poule_size)
    return balanced_poule_sizes(athlete_count, config.poule_count)


def poule_balance_warnings(
    athlete_count: int, config: PoulePhaseConfig
) -> List[PouleBalanceWarning]:
    """Warn when explicit poule sizes do not add up to the field."""
    if config.size_method is not PouleSizeMethod.VARIABLE or not config.poule_sizes:
        return []
    capacity = sum(config.poule_sizes)
    if capacity == athlete_count:
        return []
    return [PouleBalanceWarning(capacity, athlete_count)]


def suggest_poule_layout(athlete_count: int) -> Tuple[int, int]:
    """Recommend a (poule count, poule size) pair for a field.

    Poules of 6 are preferred; when that leaves a remainder of one or two,
    poules of 7 are used instead.

    Raises:
        ConfigurationError: If there are fewer than 3 athletes
    """
    if athlete_count < MIN_POULE_SIZE:
        raise ConfigurationError(
            f"At least {MIN_POULE_SIZE} athletes are needed: {athlete_count}"
        )
    size = PREFERRED_POULE_SIZE
    remainder = athlete_count % size
    if remainder and remainder < MIN_POULE_SIZE:
        size = ALTERNATE_POULE_SIZE
    count = math.ceil(athlete_count / size)
    return count, min(size, athlete_count)
