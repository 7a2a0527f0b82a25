from dataclasses import dataclass
import json
import re
from typing import Any, List, Mapping, Optional, Union

from sanic.log import logger

from prlint.model import Rule, RuleSet, ValidationFailure

_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "y": 0,
}


class PatternError(Exception):
    pass


@dataclass
class Matcher:
    regex: re.Pattern
    sticky: bool = False

    def test(self, value: str) -> bool:
        if self.sticky:
            return self.regex.match(value) is not None
        return self.regex.search(value) is not None


def compile_pattern(
    pattern: Optional[str], flags: Optional[str] = None
) -> Union[Matcher, PatternError]:
    """Compile a rule pattern using JavaScript flag letters.

    A missing pattern matches any value. Returns the error instead of raising
    it so callers can record it like any other failing rule.
    """
    if pattern is None:
        pattern = ""
    elif not isinstance(pattern, str):
        return PatternError(f"Invalid pattern {pattern!r}")

    flags = flags or ""
    value = 0
    for flag in flags:
        if flag not in _FLAGS:
            return PatternError(f"Invalid flags supplied to pattern: '{flags}'")
        value |= _FLAGS[flag]
    if len(set(flags)) != len(flags):
        return PatternError(f"Duplicate flags supplied to pattern: '{flags}'")

    try:
        regex = re.compile(pattern, value)
    except re.error as e:
        return PatternError(f"Invalid pattern /{pattern}/: {e}")
    return Matcher(regex=regex, sticky="y" in flags)


def coerce(value: Any) -> str:
    """String form of a flattened value, spelled the way JSON spells it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return json.dumps(value)


def evaluate_rule(
    field: str,
    index: int,
    rule: Rule,
    pull_request: Mapping[str, Any],
    default_url: str,
) -> Optional[ValidationFailure]:
    matcher = compile_pattern(rule.pattern, rule.flags)
    if isinstance(matcher, PatternError):
        logger.debug("Rule %s[%d] has an invalid pattern: %s", field, index, matcher)
        return ValidationFailure(message=matcher, details_url=default_url)

    value = pull_request.get(field)
    if value is not None and matcher.test(coerce(value)):
        return None

    logger.debug("Rule %s[%d] failed on value %r", field, index, value)
    return ValidationFailure(
        message=rule.message or f"Rule `{field}[{index}]` failed",
        details_url=rule.details_url or default_url,
    )


def evaluate(
    rule_set: RuleSet, pull_request: Mapping[str, Any], default_url: str
) -> List[ValidationFailure]:
    """Run every rule against the flattened pull request.

    Fields are visited in the order of the rule set, rules in list order. An
    empty result means all rules passed.
    """
    failures: List[ValidationFailure] = []
    for field, rules in rule_set.items():
        if not rules:
            continue
        for index, rule in enumerate(rules):
            failure = evaluate_rule(field, index, rule, pull_request, default_url)
            if failure is not None:
                failures.append(failure)
    logger.debug("Have %d failing rules", len(failures))
    return failures
