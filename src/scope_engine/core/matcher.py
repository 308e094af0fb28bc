"""
Scope Matcher.
Selects the catalog rules whose conditions all hold for a zone.
"""

from dataclasses import dataclass, field

import structlog

from .catalog import LineItemRule, RuleCatalog
from .models import Zone

logger = structlog.get_logger()


@dataclass(frozen=True)
class RuleMatch:
    """A rule whose conditions matched a zone, with the reasons."""

    rule: LineItemRule
    matched_conditions: list[str] = field(default_factory=list)

    @property
    def code(self) -> str:
        return self.rule.code


class ScopeMatcher:
    """
    Matches zones against a rule catalog.

    Results are ordered by descending priority; equal priorities keep
    catalog declaration order.
    """

    def __init__(self, catalog: RuleCatalog) -> None:
        self.catalog = catalog

    def match_rule(self, rule: LineItemRule, zone: Zone) -> RuleMatch | None:
        """Test a single rule. Rules without conditions never match."""
        if rule.is_auto_only:
            return None

        reasons: list[str] = []
        for condition in rule.conditions:
            reason = condition.evaluate(zone)
            if reason is None:
                return None
            reasons.append(reason)
        return RuleMatch(rule=rule, matched_conditions=reasons)

    def match(self, zone: Zone) -> list[RuleMatch]:
        """Return every matching rule, highest priority first."""
        matches = [
            found
            for rule in self.catalog
            if (found := self.match_rule(rule, zone)) is not None
        ]
        matches.sort(key=lambda m: (-m.rule.priority, self.catalog.index_of(m.code)))

        logger.debug(
            "rules_matched",
            zone_id=zone.id,
            evaluated=len(self.catalog),
            matched=[m.code for m in matches],
        )
        return matches


def match_rules(zone: Zone, catalog: RuleCatalog) -> list[RuleMatch]:
    """Convenience wrapper around ScopeMatcher.match."""
    return ScopeMatcher(catalog).match(zone)
