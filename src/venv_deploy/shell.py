"""Shell command line construction.

Every argument goes through ``shlex.quote``; command lines are only ever
combined with the helpers below.
"""
import re
import shlex

_SED_PATTERN_SPECIAL = re.compile(r"([\\.*\[\]^$|])")
_SED_REPLACEMENT_SPECIAL = re.compile(r"([\\&|])")


def command(*args: object) -> str:
    """Render an argument vector as one shell-safe command."""
    return " ".join(shlex.quote(str(arg)) for arg in args)


def chain(*cmdlines: str) -> str:
    """Run commands in order, stopping at the first failure."""
    return " && ".join(cmdlines)


def either(first: str, second: str) -> str:
    """Run ``second`` only when ``first`` fails."""
    return f"( {first} || {second} )"


def sed_pattern(text: str) -> str:
    """Escape text so it matches literally inside a ``|``-delimited sed regex."""
    return _SED_PATTERN_SPECIAL.sub(r"\\\1", text)


def sed_replacement(text: str) -> str:
    """Escape text for the replacement part of a ``|``-delimited sed substitution."""
    return _SED_REPLACEMENT_SPECIAL.sub(r"\\\1", text)
