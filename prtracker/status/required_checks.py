"""
Rule table deciding which CI checks count towards the merge verdict.

A check is required unless its name matches one of the optional rules. The
table is ordered so the first matching rule is the one reported when a
classification is logged.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from prtracker.utils.logger import logger


@dataclass(frozen=True)
class OptionalCheckRule:
    """A case-insensitive name pattern marking a check as optional."""

    name: str
    pattern: Pattern

    @classmethod
    def compile(cls, name: str, expression: str) -> "OptionalCheckRule":
        return cls(name=name, pattern=re.compile(expression, re.IGNORECASE))

    def matches(self, check_name: str) -> bool:
        return self.pattern.search(check_name) is not None


OPTIONAL_PATTERNS: List[OptionalCheckRule] = [
    # Common optional checks
    OptionalCheckRule.compile("optional", r"optional"),
    OptionalCheckRule.compile("lint", r"lint"),
    OptionalCheckRule.compile("format", r"format"),
    OptionalCheckRule.compile("style", r"style"),
    OptionalCheckRule.compile("documentation", r"documentation"),
    OptionalCheckRule.compile("docs", r"docs"),
    OptionalCheckRule.compile("spell", r"spell"),
    OptionalCheckRule.compile("typo", r"typo"),
    # Known optional Polkadot/Substrate jobs
    OptionalCheckRule.compile("semver", r"check.*semver"),
    OptionalCheckRule.compile("prdoc", r"check.*prdoc"),
    OptionalCheckRule.compile("migration", r"check.*migration"),
    OptionalCheckRule.compile("runtime-upgrade", r"check.*runtime.*upgrade"),
    OptionalCheckRule.compile("weights", r"check.*weights"),
    OptionalCheckRule.compile("zombienet", r"zombienet"),
    # Performance
    OptionalCheckRule.compile("benchmark", r"benchmark"),
    OptionalCheckRule.compile("performance", r"performance"),
    OptionalCheckRule.compile("perf", r"perf"),
    # Code quality
    OptionalCheckRule.compile("clippy", r"clippy"),
    OptionalCheckRule.compile("rustfmt", r"rustfmt"),
    OptionalCheckRule.compile("cargo-fmt", r"cargo.*fmt"),
    # Coverage
    OptionalCheckRule.compile("coverage", r"coverage"),
    OptionalCheckRule.compile("codecov", r"codecov"),
    # Deployment / release
    OptionalCheckRule.compile("deploy", r"deploy"),
    OptionalCheckRule.compile("release", r"release"),
    OptionalCheckRule.compile("publish", r"publish"),
]


class RequiredCheckRules:
    """Classifies check names against an ordered table of optional rules."""

    def __init__(self, rules: Optional[Iterable[OptionalCheckRule]] = None):
        self.rules = list(OPTIONAL_PATTERNS if rules is None else rules)

    def matching_rule(self, check_name: str) -> Optional[OptionalCheckRule]:
        for rule in self.rules:
            if rule.matches(check_name or ""):
                return rule
        return None

    def is_required(self, check_name: str, check_type: str = "check") -> bool:
        rule = self.matching_rule(check_name)
        if rule is not None:
            logger.debug(
                f'"{check_name}" ({check_type}): OPTIONAL (matched rule "{rule.name}")'
            )
            return False
        logger.debug(f'"{check_name}" ({check_type}): REQUIRED')
        return True


default_rules = RequiredCheckRules()


def is_required_check(check_name: str, check_type: str = "check") -> bool:
    return default_rules.is_required(check_name, check_type)
