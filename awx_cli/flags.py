"""
Flag registry with an alias overlay.

Flags are owned by a FlagSet rather than by argparse so that every command
can answer "was this flag (or one of its aliases) set explicitly?" and so the
same bindings can be re-applied when a router re-dispatches a command.
"""

from __future__ import annotations

import argparse
from typing import Any, Dict, Iterator, List, Optional

from awx_cli.exceptions import CliError, CommandConstructionError

ALIAS_ANNOTATION = "alias-of"

STRING = "string"
INT = "int"
BOOL = "bool"

_TRUE_VALUES = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE_VALUES = {"0", "f", "F", "false", "FALSE", "False"}


def parse_bool(raw: str) -> bool:
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(raw)


# ---------------------------------------------------------------------------
# Bindings
# ---------------------------------------------------------------------------


class Flag:
    """A canonical flag binding: owns its value and its changed bit."""

    def __init__(
        self,
        name: str,
        kind: str,
        default: Any,
        usage: str = "",
        shorthand: Optional[str] = None,
        choices: Optional[tuple] = None,
        hidden: bool = False,
    ):
        self.name = name
        self.kind = kind
        self.default = default
        self.value = default
        self.usage = usage
        self.shorthand = shorthand
        self.choices = choices
        self.hidden = hidden
        self.changed = False
        self.required = False
        self.aliases: List[str] = []
        self.annotations: Dict[str, List[str]] = {}

    @property
    def help_text(self) -> str:
        if not self.aliases:
            return self.usage
        hint = ", ".join(f"--{a}" for a in self.aliases)
        return f"{self.usage} [{hint}]" if self.usage else f"[{hint}]"

    def convert(self, raw: Any) -> Any:
        if self.kind == BOOL:
            if isinstance(raw, bool):
                return raw
            try:
                return parse_bool(str(raw))
            except ValueError:
                raise CliError(
                    f'[ERROR] invalid argument "{raw}" for "--{self.name}" flag: expected true or false'
                ) from None
        if self.kind == INT:
            if isinstance(raw, int) and not isinstance(raw, bool):
                return raw
            try:
                return int(str(raw).strip())
            except ValueError:
                raise CliError(
                    f'[ERROR] invalid argument "{raw}" for "--{self.name}" flag: expected an integer'
                ) from None
        value = str(raw)
        if self.choices and value not in self.choices:
            raise CliError(
                f'[ERROR] invalid value "{value}" for --{self.name} '
                f"(expected one of: {', '.join(self.choices)})"
            )
        return value

    def set(self, raw: Any) -> None:
        self.value = self.convert(raw)
        self.changed = True

    def __repr__(self):
        return f"Flag(--{self.name}={self.value!r}, changed={self.changed})"


class AliasFlag:
    """A hidden secondary name. Owns no storage: writes go to the target."""

    def __init__(self, name: str, target: Flag):
        self.name = name
        self.target = target
        self.usage = ""
        self.shorthand = None
        self.hidden = True
        self.required = False
        self.changed = False
        self.annotations = {ALIAS_ANNOTATION: [target.name]}

    @property
    def kind(self) -> str:
        return self.target.kind

    @property
    def value(self) -> Any:
        return self.target.value

    @property
    def help_text(self) -> str:
        return ""

    def set(self, raw: Any) -> None:
        self.target.set(raw)
        self.changed = True

    def __repr__(self):
        return f"AliasFlag(--{self.name} -> --{self.target.name})"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class FlagSet:
    """Named flags for one command (or for the global scope)."""

    def __init__(self, name: str = ""):
        self.name = name
        self._flags: Dict[str, Any] = {}
        self._short: Dict[str, Any] = {}

    def add(self, flag):
        if flag.name in self._flags:
            raise CommandConstructionError(f"{self.name}: flag --{flag.name} is already defined")
        if flag.shorthand:
            if flag.shorthand in self._short:
                raise CommandConstructionError(
                    f"{self.name}: shorthand -{flag.shorthand} is already used"
                )
            self._short[flag.shorthand] = flag
        self._flags[flag.name] = flag
        return flag

    def add_string(self, name, default="", usage="", shorthand=None, choices=None, hidden=False):
        return self.add(Flag(name, STRING, default, usage, shorthand, choices, hidden))

    def add_int(self, name, default=0, usage="", shorthand=None, hidden=False):
        return self.add(Flag(name, INT, default, usage, shorthand, hidden=hidden))

    def add_bool(self, name, default=False, usage="", shorthand=None, hidden=False):
        return self.add(Flag(name, BOOL, default, usage, shorthand, hidden=hidden))

    def lookup(self, name: str):
        return self._flags.get(name)

    def shorthand(self, char: str):
        return self._short.get(char)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._flags.values())

    def __contains__(self, name) -> bool:
        return name in self._flags

    def value(self, name: str) -> Any:
        flag = self._flags.get(name)
        if flag is None:
            raise KeyError(name)
        return flag.value

    def mark_required(self, name: str) -> None:
        flag = self._flags.get(name)
        if flag is None or isinstance(flag, AliasFlag):
            raise CommandConstructionError(f"{self.name}: cannot require unknown flag --{name}")
        flag.required = True

    def missing_required(self) -> List[str]:
        return [
            f.name
            for f in self._flags.values()
            if isinstance(f, Flag) and f.required and not flag_or_alias_changed(self, f.name)
        ]

    def check_required(self) -> None:
        missing = self.missing_required()
        if missing:
            names = ", ".join(f'"{n}"' for n in missing)
            raise CliError(f"[ERROR] required flag(s) {names} not set")

    def explicit(self) -> List[Flag]:
        """Canonical flags that were set on the command line, sorted by name."""
        return sorted(
            (f for f in self._flags.values() if isinstance(f, Flag) and f.changed),
            key=lambda f: f.name,
        )

    def extract(self, argv: List[str]) -> List[str]:
        """Consume known flags from anywhere in *argv*; return the rest.

        Handles ``--name value``, ``--name=value``, ``-s value`` and bare
        booleans. Everything after ``--`` is left alone.
        """
        remaining = []
        i = 0
        while i < len(argv):
            token = argv[i]
            if token == "--":
                remaining.extend(argv[i:])
                break
            flag = None
            inline = None
            if token.startswith("--") and len(token) > 2:
                name, eq, val = token[2:].partition("=")
                flag = self._flags.get(name)
                inline = val if eq else None
            elif token.startswith("-") and len(token) >= 2 and token[1] != "-":
                flag = self._short.get(token[1])
                if len(token) > 2:
                    rest = token[2:]
                    inline = rest[1:] if rest.startswith("=") else rest
                    if flag is not None and flag.kind == BOOL and not rest.startswith("="):
                        flag = None
            if flag is None:
                remaining.append(token)
                i += 1
                continue
            if flag.kind == BOOL:
                flag.set(True if inline is None else inline)
            elif inline is not None:
                flag.set(inline)
            elif i + 1 < len(argv):
                flag.set(argv[i + 1])
                i += 1
            else:
                raise CliError(f"[ERROR] flag needs an argument: --{flag.name}")
            i += 1
        return remaining

    def bind(self, parser: argparse.ArgumentParser) -> None:
        """Register every binding on an argparse parser."""
        for flag in self._flags.values():
            strings = [f"--{flag.name}"]
            if flag.shorthand:
                strings.append(f"-{flag.shorthand}")
            help_text = argparse.SUPPRESS if flag.hidden else (flag.help_text or None)
            dest = "_flag_" + flag.name.replace("-", "_")
            if flag.kind == BOOL:
                parser.add_argument(
                    *strings, action=_FlagAction, binding=flag, nargs=0,
                    dest=dest, default=argparse.SUPPRESS, help=help_text,
                )
                # argparse matches exact option strings before splitting on "=".
                parser.add_argument(
                    f"--{flag.name}=true", f"--{flag.name}=false",
                    action=_FlagAction, binding=flag, nargs=0,
                    dest=dest + "_literal", default=argparse.SUPPRESS, help=argparse.SUPPRESS,
                )
            else:
                parser.add_argument(
                    *strings, action=_FlagAction, binding=flag,
                    dest=dest, default=argparse.SUPPRESS, help=help_text,
                    metavar=flag.kind,
                )


class _FlagAction(argparse.Action):
    """Route an argparse match into the owning binding."""

    def __init__(self, option_strings, dest, binding=None, **kwargs):
        super().__init__(option_strings, dest, **kwargs)
        self.binding = binding

    def __call__(self, parser, namespace, values, option_string=None):
        if self.binding.kind == BOOL:
            if option_string and "=" in option_string:
                self.binding.set(option_string.split("=", 1)[1])
            else:
                self.binding.set(True)
        else:
            self.binding.set(values)


# ---------------------------------------------------------------------------
# Alias overlay
# ---------------------------------------------------------------------------


def register_alias(flags: FlagSet, canonical: str, alias: str) -> AliasFlag:
    """Add *alias* as a hidden second name for the *canonical* flag."""
    target = flags.lookup(canonical)
    if target is None:
        raise CommandConstructionError(
            f"{flags.name}: cannot alias --{alias}: flag --{canonical} is not defined"
        )
    if isinstance(target, AliasFlag):
        raise CommandConstructionError(
            f"{flags.name}: cannot alias --{alias} to alias --{canonical}"
        )
    if flags.lookup(alias) is not None:
        raise CommandConstructionError(f"{flags.name}: flag --{alias} is already defined")
    binding = flags.add(AliasFlag(alias, target))
    target.aliases.append(alias)
    return binding


def flag_or_alias_changed(flags: FlagSet, name: str) -> bool:
    """True if the canonical flag or any of its aliases was set explicitly."""
    flag = flags.lookup(name)
    if flag is None:
        return False
    if flag.changed:
        return True
    return any(flags.lookup(a).changed for a in getattr(flag, "aliases", ()))
