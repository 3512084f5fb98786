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

# --- Constants ---
LOG_LEVEL_ENV_VAR = "PISTEFORMULA_LOG_LEVEL"

# Poule sizes
MIN_POULE_SIZE = 3
MAX_POULE_SIZE = 12
PREFERRED_POULE_SIZE = 6
ALTERNATE_POULE_SIZE = 7
DEFAULT_MIN_POULE_SIZE_FOR_INCOMPLETE = 4

# Bout scores (touches). Poule bouts go to 5, elimination bouts to 15.
MIN_SCORE = 0
MAX_SCORE = 15
POULE_BOUT_TOUCHES = 5
ELIMINATION_BOUT_TOUCHES = 15

# Separation defaults
DEFAULT_MAX_SAME_CLUB_PER_POULE = 2
DEFAULT_MAX_SAME_COUNTRY_PER_POULE = 4
DEFAULT_MAX_REPAIR_ITERATIONS = 500
# A swap may move an athlete at most this many snake rows away
MAX_SEED_TIER_SHIFT = 1

# Bracket sizes
BRACKET_SIZES = (4, 8, 16, 32, 64, 128, 256)
MAX_BRACKET_SIZE = BRACKET_SIZES[-1]

# Athletes left in the main bracket at each later repechage source stage
REPECHAGE_QUARTER_FINALS = "quarter_finals"
REPECHAGE_SEMI_FINALS = "semi_finals"
REPECHAGE_STAGE_FIELD = {
    REPECHAGE_QUARTER_FINALS: 8,
    REPECHAGE_SEMI_FINALS: 4,
}

# Default classification bracket decides places 9 to 16
DEFAULT_CLASSIFICATION_POSITIONS = tuple(range(9, 17))

# Separation kinds
SEPARATION_CLUB = "club"
SEPARATION_COUNTRY = "country"

# Age categories: name -> (minimum age, maximum age) on the reference date.
# None means no bound.
AGE_CATEGORIES = {
    "U14": (None, 13),
    "CADET": (None, 16),
    "JUNIOR": (None, 19),
    "SENIOR": (None, None),
    "VETERAN": (40, None),
}

# Display names
PHASE_TYPE_NAMES = {
    "POULE": "Poules",
    "DIRECT_ELIMINATION": "Direct Elimination",
    "CLASSIFICATION": "Classification",
    "REPECHAGE": "Repechage",
}

BRACKET_TYPE_NAMES = {
    "MAIN": "Main Bracket",
    "REPECHAGE": "Repechage",
    "CLASSIFICATION": "Classification",
    "CONSOLATION": "Consolation",
}
