"""Competition formulas."""


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

from pisteformula.formats.engarde import (
    EngardeElimination,
    EngardeFormula,
    EngardeRound,
    competition_from_engarde,
)
from pisteformula.formats.presets import (
    BUILT_IN_PRESETS,
    FormulaPreset,
    PresetBracket,
    PresetPhase,
    build_competition_from_preset,
    get_preset,
    suggest_presets,
)

__all__ = [
    "BUILT_IN_PRESETS",
    "EngardeElimination",
    "EngardeFormula",
    "EngardeRound",
    "FormulaPreset",
    "PresetBracket",
    "PresetPhase",
    "build_competition_from_preset",
    "competition_from_engarde",
    "get_preset",
    "suggest_presets",
]
