"""
Dependency Resolver.
Expands matched rules through auto-add edges and applies exclusions,
replacements and orphan pruning until the item set is stable.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field, replace

import structlog

from ..config import settings
from ..exceptions import CatalogCycleError
from .catalog import LineItemRule, RuleCatalog
from .matcher import RuleMatch
from .models import ExcludedItem, ExclusionKind

logger = structlog.get_logger()

_Recorder = Callable[[str, str, str, ExclusionKind, bool], None]


@dataclass(frozen=True)
class ResolvedItem:
    """Rule that made it into the resolved scope."""

    rule: LineItemRule
    is_auto_added: bool = False
    added_by_item: str | None = None
    reasons: list[str] = field(default_factory=list)

    @property
    def code(self) -> str:
        return self.rule.code


@dataclass
class Resolution:
    """Final item set plus everything that was kept out of it."""

    items: list[ResolvedItem] = field(default_factory=list)
    excluded: list[ExcludedItem] = field(default_factory=list)
    iterations: int = 0

    @property
    def codes(self) -> list[str]:
        return [item.code for item in self.items]


class DependencyResolver:
    """
    Worklist resolver over the catalog graph.

    Exclusions are checked against the current result set in both
    directions whenever an item is popped, so pending items are filtered
    at the moment they would enter the scope.
    """

    def __init__(self, catalog: RuleCatalog, iteration_cap: int | None = None) -> None:
        self.catalog = catalog
        self.iteration_cap = iteration_cap if iteration_cap is not None else settings.resolver_iteration_cap

    def resolve(self, candidates: list[RuleMatch]) -> Resolution:
        """
        Resolve directly matched rules into the final item set.

        Args:
            candidates: Matched rules in processing order

        Returns:
            Resolution with items in insertion order and excluded records

        Raises:
            CatalogCycleError: If the iteration cap is exceeded
        """
        worklist: deque[ResolvedItem] = deque(
            ResolvedItem(rule=match.rule, reasons=list(match.matched_conditions))
            for match in candidates
        )
        present: dict[str, ResolvedItem] = {}
        excluded: dict[str, ExcludedItem] = {}
        iterations = 0

        def record(code: str, by: str, reason: str, kind: ExclusionKind, auto: bool) -> None:
            logger.debug("item_excluded", code=code, excluded_by=by, kind=kind.value)
            excluded[code] = ExcludedItem(
                code=code, excluded_by=by, reason=reason, kind=kind, was_auto_added=auto
            )

        while worklist:
            iterations += 1
            if iterations > self.iteration_cap:
                pending = [item.code for item in worklist]
                logger.error("resolver_iteration_cap_exceeded", cap=self.iteration_cap, pending=pending[:10])
                raise CatalogCycleError(
                    pending[:10],
                    message=f"Resolution exceeded {self.iteration_cap} iterations",
                )

            item = worklist.popleft()
            code = item.code

            if code in present:
                # A direct match outranks an earlier auto-add of the same code
                if present[code].is_auto_added and not item.is_auto_added:
                    present[code] = item
                continue

            blocker = next((other for other in present if self.catalog.excludes(other, code)), None)
            if blocker is not None:
                record(code, blocker, f"Excluded by {blocker}", ExclusionKind.EXCLUDED, item.is_auto_added)
                continue

            victims = [other for other in present if self.catalog.excludes(code, other)]
            protected = [
                other for other in victims
                if not item.is_auto_added and not present[other].is_auto_added
            ]
            if protected:
                winner = protected[0]
                record(
                    code,
                    winner,
                    f"Conflicts with {winner}, which matched first",
                    ExclusionKind.CONFLICT,
                    item.is_auto_added,
                )
                continue

            for victim in victims:
                removed = present.pop(victim)
                record(victim, code, f"Excluded by {code}", ExclusionKind.EXCLUDED, removed.is_auto_added)

            present[code] = item
            excluded.pop(code, None)

            for target in self.catalog.auto_adds_of(code):
                if target not in present:
                    worklist.append(
                        ResolvedItem(
                            rule=self.catalog.get(target),
                            is_auto_added=True,
                            added_by_item=code,
                            reasons=[f"Auto-added by {code}"],
                        )
                    )

        self._apply_replacements(present, record)
        self._prune_orphans(present, record)

        resolution = Resolution(
            items=list(present.values()),
            excluded=[entry for code, entry in excluded.items() if code not in present],
            iterations=iterations,
        )
        logger.info(
            "scope_resolved",
            candidates=len(candidates),
            items=len(resolution.items),
            excluded=len(resolution.excluded),
            iterations=iterations,
        )
        return resolution

    def _apply_replacements(self, present: dict[str, ResolvedItem], record: _Recorder) -> None:
        snapshot = list(present)
        for code in snapshot:
            replacers = [other for other in self.catalog.replacements_for(code) if other in snapshot]
            if not replacers:
                continue
            # Prefer a replacement that itself survives
            survivor = next((other for other in replacers if other in present), replacers[0])
            removed = present.pop(code)
            record(code, survivor, f"Replaced by {survivor}", ExclusionKind.REPLACED, removed.is_auto_added)

    def _prune_orphans(self, present: dict[str, ResolvedItem], record: _Recorder) -> None:
        changed = True
        while changed:
            changed = False
            for code, item in list(present.items()):
                if not item.is_auto_added or item.added_by_item in present:
                    continue

                parent = next(
                    (other for other in self.catalog.triggers_of(code) if other in present),
                    None,
                )
                if parent is not None:
                    present[code] = replace(item, added_by_item=parent, reasons=[f"Auto-added by {parent}"])
                    continue

                present.pop(code)
                record(
                    code,
                    item.added_by_item or "",
                    f"Trigger {item.added_by_item} is no longer in scope",
                    ExclusionKind.ORPHANED,
                    True,
                )
                changed = True


def resolve(
    candidates: list[RuleMatch],
    catalog: RuleCatalog,
    iteration_cap: int | None = None,
) -> Resolution:
    """Convenience wrapper around DependencyResolver.resolve."""
    return DependencyResolver(catalog, iteration_cap=iteration_cap).resolve(candidates)
