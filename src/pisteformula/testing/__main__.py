"""Command-line driver for Piste Formula testing tools.

Generates random rosters and runs them through poule seeding, standings and
bracket building, printing the result. Without arguments it starts an
interactive session.
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

import argparse
import json
import shlex
import sys
from typing import Callable, Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from pisteformula.bracket.builder import build_bracket
from pisteformula.exceptions import FormulaEngineException
from pisteformula.formats.engarde import EngardeFormula, competition_from_engarde
from pisteformula.formats.presets import BUILT_IN_PRESETS, suggest_presets
from pisteformula.models.enums import ByeDistribution, SeedingMethod
from pisteformula.models.phase import BracketConfig, PoulePhaseConfig, SeparationRules
from pisteformula.seeding.poule_sizes import suggest_poule_layout
from pisteformula.seeding.seeder import generate_poules, order_by_ranking
from pisteformula.testing.rtg import RandomRosterGenerator, RosterConfig
from pisteformula.tournament.standings_calculator import (
    compute_phase_ranking,
    compute_standings,
)
from pisteformula.utils import setup_logger

logger = setup_logger(__name__)


class Colors:
    """ANSI color codes for terminal output."""

    HEADER = "\033[95m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


def _roster(args: argparse.Namespace, count: int) -> RandomRosterGenerator:
    return RandomRosterGenerator(
        RosterConfig(
            num_athletes=count,
            num_clubs=args.clubs,
            num_countries=args.countries,
            seed=args.seed,
        )
    )


def run_poules_command(args: argparse.Namespace) -> int:
    """Seed a random roster into poules and optionally fence them."""
    generator = _roster(args, args.athletes)
    athletes = generator.create_athletes()

    poule_count, poule_size = suggest_poule_layout(args.athletes)
    config = PoulePhaseConfig(
        poule_count=args.poules or poule_count,
        poule_size=args.size or poule_size,
        seeding_method=SeedingMethod[args.method.upper()],
        separation=SeparationRules(
            separate_clubs=not args.no_separation,
            separate_countries=not args.no_separation,
        ),
        random_seed=args.seed if args.seed is not None else 0,
    )
    if args.simulate:
        result = generator.run_poule_phase(athletes, config)
    else:
        result = generate_poules(athletes, config)

    for poule in result.poules:
        print(f"\n{Colors.BOLD}Poule {poule.number}{Colors.ENDC} ({poule.size})")
        for assignment in poule.assignments:
            athlete = assignment.athlete
            print(
                f"  {assignment.position:>2}. {athlete.id}  seed {assignment.seed:>3}  "
                f"{athlete.club_id or '-':<7} {athlete.nationality or '-'}"
            )
        if args.simulate:
            for standing in compute_standings(poule):
                tie = " (tie)" if standing.tied else ""
                print(
                    f"     {standing.place}. {standing.athlete_id}  "
                    f"V={standing.victories}  Ind={standing.indicator:+d}  "
                    f"TS={standing.touches_scored}{tie}"
                )

    for warning in result.warnings:
        print(f"\n{Colors.WARNING}{warning}{Colors.ENDC}")

    if args.simulate:
        print(f"\n{Colors.BOLD}Phase ranking{Colors.ENDC}")
        for standing in compute_phase_ranking(result.poules):
            print(
                f"  {standing.place:>3}. {standing.athlete_id}  "
                f"V/M={standing.victory_ratio:.3f}  Ind={standing.indicator:+d}"
            )
    return 0


def run_bracket_command(args: argparse.Namespace) -> int:
    """Build a bracket for a random field and optionally fence it."""
    generator = _roster(args, args.qualifiers)
    qualifiers = order_by_ranking(generator.create_athletes())
    config = BracketConfig(
        size=args.size,
        bye_distribution=ByeDistribution(args.distribution),
    )
    bracket = build_bracket(qualifiers, config)

    print(
        f"\n{Colors.BOLD}{bracket.name}{Colors.ENDC}: table of {bracket.size}, "
        f"{bracket.bye_count} bye(s)"
    )
    for top, bottom in bracket.first_round_pairings():
        left = f"({top.seed}) {top.athlete_id}" if not top.is_bye else "BYE"
        right = f"({bottom.seed}) {bottom.athlete_id}" if not bottom.is_bye else "BYE"
        print(f"  {left:<14} v  {right}")

    if args.simulate:
        winner = generator.simulator().fence_bracket(bracket)
        print(f"\n{Colors.OKGREEN}Champion: {winner}{Colors.ENDC}")
    return 0


def run_presets_command(args: argparse.Namespace) -> int:
    """List built-in presets, or those suited to a field size."""
    presets = (
        suggest_presets(args.field) if args.field else list(BUILT_IN_PRESETS.values())
    )
    for preset in presets:
        print(f"{Colors.BOLD}{preset.id}{Colors.ENDC}: {preset.name}")
        for order, phase in enumerate(preset.phases, start=1):
            print(f"  {order}. {phase.name} ({phase.phase_type.display_name})")
    return 0


def run_engarde_command(args: argparse.Namespace) -> int:
    """Import an Engarde formula from a JSON file and show its phases."""
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"{Colors.FAIL}Cannot read {args.file}: {e}{Colors.ENDC}")
        return 1

    competition = competition_from_engarde(EngardeFormula.from_dict(data), "engarde")
    print(f"\n{Colors.BOLD}{competition.name}{Colors.ENDC}")
    for phase in competition.phases:
        config = phase.configuration
        if phase.is_poule_phase:
            detail = (
                f"poules {config.poule_sizes}, {phase.qualification.method} "
                f"{phase.qualification.quota}"
            )
        else:
            detail = ", ".join(
                f"{b.name} ({b.size or 'fit'})" for b in config.brackets
            )
        print(f"  {phase.sequence_order}. {phase.name}: {detail}")
    return 0


def _add_roster_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--clubs", type=int, default=8, help="Number of clubs")
    parser.add_argument("--countries", type=int, default=4, help="Number of countries")
    parser.add_argument("--seed", type=int, help="Random seed")


def create_main_parser() -> argparse.ArgumentParser:
    """Create main argument parser."""
    parser = argparse.ArgumentParser(
        prog="pisteformula-test",
        description="Testing CLI for Piste Formula",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  python -m pisteformula.testing

  # Seed 30 athletes into poules and fence them
  python -m pisteformula.testing poules --athletes 30 --simulate --seed 7

  # Table of 16 for 13 qualifiers, byes spread out
  python -m pisteformula.testing bracket --qualifiers 13 --distribution spread

  # Show the phases of an Engarde formula
  python -m pisteformula.testing engarde formula.json
        """,
    )
    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    poules_parser = subparsers.add_parser("poules", help="Generate poules")
    poules_parser.add_argument("--athletes", type=int, default=30)
    poules_parser.add_argument("--poules", type=int, help="Number of poules")
    poules_parser.add_argument("--size", type=int, help="Maximum poule size")
    poules_parser.add_argument(
        "--method", choices=["ranking", "snake", "random"], default="snake"
    )
    poules_parser.add_argument("--no-separation", action="store_true")
    poules_parser.add_argument("--simulate", action="store_true", help="Fence bouts")
    _add_roster_arguments(poules_parser)
    poules_parser.set_defaults(func=run_poules_command)

    bracket_parser = subparsers.add_parser("bracket", help="Build a bracket")
    bracket_parser.add_argument("--qualifiers", type=int, default=13)
    bracket_parser.add_argument("--size", type=int, help="Explicit bracket size")
    bracket_parser.add_argument(
        "--distribution", choices=[d.value for d in ByeDistribution], default="top"
    )
    bracket_parser.add_argument("--simulate", action="store_true", help="Fence bouts")
    _add_roster_arguments(bracket_parser)
    bracket_parser.set_defaults(func=run_bracket_command)

    presets_parser = subparsers.add_parser("presets", help="List formula presets")
    presets_parser.add_argument("--field", type=int, help="Suggest for a field size")
    presets_parser.set_defaults(func=run_presets_command)

    engarde_parser = subparsers.add_parser(
        "engarde", help="Import an Engarde formula (JSON)"
    )
    engarde_parser.add_argument("file", help="Formula file")
    engarde_parser.set_defaults(func=run_engarde_command)

    return parser


COMMANDS: Dict[str, Callable[[argparse.Namespace], int]] = {
    "poules": run_poules_command,
    "bracket": run_bracket_command,
    "presets": run_presets_command,
    "engarde": run_engarde_command,
}


def run_command(argv: List[str]) -> int:
    """Parse ``argv`` and run the selected subcommand."""
    parser = create_main_parser()
    args = parser.parse_args(argv)
    if getattr(args, "func", None) is None:
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except FormulaEngineException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        return 1


def run_interactive_mode() -> int:
    """Run in interactive mode with autocomplete."""
    print(f"{Colors.HEADER}{Colors.BOLD}Piste Formula testing CLI{Colors.ENDC}")
    print("Commands: " + ", ".join(COMMANDS) + ". Type 'exit' to leave.")

    session = PromptSession(
        completer=WordCompleter(list(COMMANDS) + ["help", "exit"]),
        history=InMemoryHistory(),
        style=Style.from_dict({"prompt": "#00aa00 bold"}),
    )
    while True:
        try:
            user_input = session.prompt("piste-test> ").strip()
        except KeyboardInterrupt:
            print(f"\n{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
            continue
        except EOFError:
            break

        if not user_input:
            continue
        if user_input in ("exit", "quit", "q"):
            break
        if user_input in ("help", "?"):
            create_main_parser().print_help()
            continue

        try:
            run_command(shlex.split(user_input))
        except SystemExit:
            # argparse exits on bad arguments
            continue
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the testing CLI."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv or "--interactive" in argv or "-i" in argv:
        return run_interactive_mode()
    return run_command(argv)


if __name__ == "__main__":
    sys.exit(main())
