import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import ValidationError

Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class Regex:
    """A regular expression used exactly as given."""

    pattern: re.Pattern[str]

    def compile(self) -> re.Pattern[str]:
        return self.pattern


@dataclass(frozen=True)
class Glob:
    """
    A simple glob where `*` stands for any run of characters.

    Runs of `*` become `.*` and everything else is left to the regex engine,
    so the result matches anywhere in the name rather than the whole name.
    """

    pattern: str

    def compile(self) -> re.Pattern[str]:
        return re.compile(re.sub(r"\*+", ".*", self.pattern))


PatternType = Union[None, str, re.Pattern[str], Regex, Glob]


def matcher(pattern: PatternType = None, name: str = "sftp.list") -> Predicate:
    """Resolve a listing pattern into a single name predicate.

    Args:
        pattern: None to match everything, a compiled regex, or a glob string
        name: Operation name used in validation errors

    Returns:
        Predicate: Function telling whether an entry name is selected

    Raises:
        ValidationError: If the pattern has the wrong type or does not compile
    """
    if pattern is None:
        return lambda entry: True

    resolved: Optional[Union[Regex, Glob]]
    if isinstance(pattern, (Regex, Glob)):
        resolved = pattern
    elif isinstance(pattern, re.Pattern):
        resolved = Regex(pattern)
    elif isinstance(pattern, str):
        resolved = Glob(pattern)
    else:
        raise ValidationError(
            f"{name}: Pattern must be a regular expression or a string, "
            f"not {type(pattern).__name__}",
            operation=name,
        )

    try:
        search = resolved.compile().search
    except re.error as error:
        raise ValidationError(
            f"{name}: Invalid pattern {pattern!r}: {error}", operation=name
        ) from error

    return lambda entry: search(entry) is not None
