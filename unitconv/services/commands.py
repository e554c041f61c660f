"""Command parsing and execution for the interactive loop.

Output is returned as text so the REPL, the one-shot CLI and tests share the
same behaviour.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from unitconv.core.errors import ParseError
from unitconv.models.constants import CURRENCIES
from unitconv.models.units import Unit, units_by_category
from unitconv.services.conversion import ConversionResult, convert_any, resolve_unit
from unitconv.services.rates.cache_service import RateCache

logger = logging.getLogger("unitconv.commands")

CONVERSION_RE = re.compile(r"^([-+]?\d+(?:\.\d+)?)\s+(\S+)\s*->\s*(\S+)$")

HELP_TEXT = """\
Commands:
  <value> <unit> -> <unit>   convert a value, e.g. 100 m -> km or 20 USD -> EUR
  units                      list available units and currencies
  help                       show this message
  exit                       save cached rates and quit"""


class CommandKind(str, Enum):
    CONVERT = "convert"
    UNITS = "units"
    HELP = "help"
    EXIT = "exit"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    value: float = 0.0
    source: str = ""
    target: str = ""


@dataclass
class CommandOutput:
    text: str
    warnings: List[str] = field(default_factory=list)


def parse_command(line: str) -> Command:
    text = line.strip()
    for kind in (CommandKind.UNITS, CommandKind.HELP, CommandKind.EXIT):
        if text == kind.value:
            return Command(kind)
    match = CONVERSION_RE.match(text)
    if not match:
        raise ParseError(
            "Invalid input. Expression should be in the form <value> <unit> -> <unit>."
        )
    return Command(
        CommandKind.CONVERT,
        value=float(match.group(1)),
        source=match.group(2),
        target=match.group(3),
    )


def format_number(value: float) -> str:
    """Six significant digits, no trailing zeros."""
    return f"{value:.6g}"


def format_result(result: ConversionResult) -> str:
    target = result.target
    label = target.abbreviation if isinstance(target, Unit) else target
    return f"{format_number(result.result)} {label}"


def units_listing() -> str:
    lines = ["Available units:"]
    for cat, units in units_by_category().items():
        lines.append(f"{cat.value.capitalize()}:")
        lines.extend(f"  {unit}" for unit in units)
    lines.append("Currency:")
    lines.append("  " + ", ".join(CURRENCIES))
    return "\n".join(lines)


def run_conversion(
    value: float, source: str, target: str, rates: RateCache
) -> ConversionResult:
    src = resolve_unit(source)
    dst = resolve_unit(target)
    return convert_any(value, src, dst, rates)


class CommandProcessor:
    """Executes parsed commands against a RateCache owned by the caller."""

    def __init__(self, rates: RateCache):
        self._rates = rates

    def execute(self, command: Command) -> Optional[CommandOutput]:
        """Return the output of a command, or None for EXIT.

        Conversion failures propagate as UnitConvError subclasses.
        """
        if command.kind is CommandKind.EXIT:
            return None
        if command.kind is CommandKind.HELP:
            return CommandOutput(HELP_TEXT)
        if command.kind is CommandKind.UNITS:
            return CommandOutput(units_listing())
        self._rates.take_warnings()  # drop leftovers from a failed command
        result = run_conversion(command.value, command.source, command.target, self._rates)
        logger.debug(
            "converted %s %s -> %s = %r",
            command.value,
            command.source,
            command.target,
            result.result,
        )
        return CommandOutput(format_result(result), self._rates.take_warnings())
