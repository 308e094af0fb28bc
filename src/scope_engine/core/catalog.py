"""
Scope Rule Catalog.
Immutable registry of line-item rules stored as an index-addressed graph
with auto-add, exclusion and replacement edges validated at load time.
"""

import json
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import Any

import structlog
from pydantic import (
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..exceptions import (
    CatalogCycleError,
    CatalogError,
    EmptyCatalogError,
    ErrorCode,
    FormulaError,
    UnknownRuleError,
)
from .conditions import Condition, SurfaceCondition, conditions_from_mapping
from .formula import Formula, get_parser
from .metrics import MetricAlias
from .models import CarrierSensitivity, FrozenContractModel

logger = structlog.get_logger()


class LineItemRule(FrozenContractModel):
    """Catalog entry describing when and how a line item applies."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1)
    description: str
    unit: str = "EA"
    category: str = "general"
    priority: int = Field(default=0, description="Higher priority is processed first")
    conditions: list[Condition] = Field(default_factory=list)
    quantity_formula: str | None = None
    fixed_quantity: float | None = Field(default=None, ge=0)
    auto_adds: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    requires_any: list[str] = Field(default_factory=list)
    replaces: list[str] = Field(default_factory=list)
    replaced_by: list[str] = Field(default_factory=list)
    carrier_sensitivity: CarrierSensitivity = CarrierSensitivity.LOW
    quantity_bound: MetricAlias | None = None
    max_quantity: float | None = Field(default=None, gt=0)
    notes: str | None = None

    @field_validator("conditions", mode="before")
    @classmethod
    def _expand_condition_mapping(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, dict):
            return conditions_from_mapping(value, rule_code=info.data.get("code"))
        return value

    @field_validator("unit")
    @classmethod
    def _upper_unit(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("quantity_bound", mode="before")
    @classmethod
    def _parse_bound(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_quantity_source(self) -> "LineItemRule":
        if self.quantity_formula is not None and self.fixed_quantity is not None:
            raise ValueError(f"rule {self.code} sets both quantity_formula and fixed_quantity")
        return self

    @property
    def surfaces(self) -> set[str]:
        """Surfaces this rule addresses through its surface conditions."""
        found: set[str] = set()
        for condition in self.conditions:
            if isinstance(condition, SurfaceCondition):
                found.update(condition.any_of)
        return found

    @property
    def is_auto_only(self) -> bool:
        """Rules without conditions never match directly."""
        return not self.conditions


def _find_cycle(adjacency: Sequence[Sequence[int]]) -> list[int] | None:
    """Iterative three-color DFS; returns the first cycle found as a node path."""
    white, grey, black = 0, 1, 2
    color = [white] * len(adjacency)

    for start in range(len(adjacency)):
        if color[start] != white:
            continue
        path = [start]
        stack: list[Iterator[int]] = [iter(adjacency[start])]
        color[start] = grey

        while stack:
            advanced = False
            for neighbour in stack[-1]:
                if color[neighbour] == grey:
                    return path[path.index(neighbour):] + [neighbour]
                if color[neighbour] == white:
                    color[neighbour] = grey
                    path.append(neighbour)
                    stack.append(iter(adjacency[neighbour]))
                    advanced = True
                    break
            if not advanced:
                color[path.pop()] = black
                stack.pop()

    return None


class RuleCatalog:
    """
    Immutable rule catalog.

    Rules live in an arena addressed by declaration index. Auto-add,
    exclusion and replacement relationships are adjacency lists over
    those indices. Loading fails on unknown references, bad formulas and
    cycles, so a constructed catalog is always safe to resolve against.
    """

    def __init__(self, rules: Iterable[LineItemRule | dict[str, Any]], name: str = "catalog") -> None:
        self.name = name
        self._rules: list[LineItemRule] = [self._coerce(rule) for rule in rules]
        if not self._rules:
            raise EmptyCatalogError(f"Rule catalog '{name}' is empty")

        self._index: dict[str, int] = {}
        for position, rule in enumerate(self._rules):
            if rule.code in self._index:
                raise CatalogError(
                    f"Duplicate line item code: {rule.code}",
                    details={"code": rule.code},
                    code=ErrorCode.DUPLICATE_RULE,
                )
            self._index[rule.code] = position

        size = len(self._rules)
        self._auto_adds: list[tuple[int, ...]] = []
        self._excludes: list[frozenset[int]] = []
        replaces: list[set[int]] = [set() for _ in range(size)]

        for position, rule in enumerate(self._rules):
            self._auto_adds.append(tuple(self._resolve(code, rule.code) for code in rule.auto_adds))
            self._excludes.append(frozenset(self._resolve(code, rule.code) for code in rule.excludes))
            for code in rule.requires + rule.requires_any:
                self._resolve(code, rule.code)
            for code in rule.replaces:
                replaces[position].add(self._resolve(code, rule.code))
            for code in rule.replaced_by:
                replaces[self._resolve(code, rule.code)].add(position)

        self._replaces: list[frozenset[int]] = [frozenset(targets) for targets in replaces]
        self._replaced_by: list[frozenset[int]] = [
            frozenset(src for src in range(size) if target in self._replaces[src])
            for target in range(size)
        ]

        self._check_self_conflicts()
        self._formulas: dict[int, Formula] = self._compile_formulas()
        self._check_cycles()

        logger.info("catalog_loaded", catalog=name, rules=size, formulas=len(self._formulas))

    @staticmethod
    def _coerce(rule: LineItemRule | dict[str, Any]) -> LineItemRule:
        if isinstance(rule, LineItemRule):
            return rule
        try:
            return LineItemRule.model_validate(rule)
        except ValidationError as e:
            code = rule.get("code") if isinstance(rule, dict) else None
            raise CatalogError(
                f"Invalid rule definition{f' {code}' if code else ''}: {e.error_count()} error(s)",
                details={"code": code, "errors": str(e)},
            ) from e

    def _resolve(self, code: str, referenced_by: str) -> int:
        position = self._index.get(code)
        if position is None:
            raise UnknownRuleError(code, referenced_by=referenced_by)
        return position

    def _check_self_conflicts(self) -> None:
        for position, rule in enumerate(self._rules):
            if position in self._excludes[position]:
                raise CatalogError(f"Rule {rule.code} excludes itself", details={"code": rule.code})
            clashing = [
                self._rules[target].code
                for target in self._auto_adds[position]
                if self.conflicts(rule.code, self._rules[target].code)
            ]
            if clashing:
                raise CatalogError(
                    f"Rule {rule.code} auto-adds items it conflicts with: {', '.join(clashing)}",
                    details={"code": rule.code, "conflicting": clashing},
                )

    def _compile_formulas(self) -> dict[int, Formula]:
        parser = get_parser()
        formulas: dict[int, Formula] = {}
        for position, rule in enumerate(self._rules):
            if rule.quantity_formula is None:
                continue
            try:
                formulas[position] = parser.parse(rule.quantity_formula)
            except FormulaError as e:
                e.details["rule"] = rule.code
                logger.error("catalog_formula_invalid", rule=rule.code, error=e.message)
                raise
        return formulas

    def _check_cycles(self) -> None:
        for label, adjacency in (
            ("auto-add", self._auto_adds),
            ("replacement", [tuple(targets) for targets in self._replaces]),
        ):
            cycle = _find_cycle(adjacency)
            if cycle is not None:
                codes = [self._rules[position].code for position in cycle]
                logger.error("catalog_cycle_detected", graph=label, cycle=codes)
                raise CatalogCycleError(
                    codes, message=f"Cycle in {label} graph: {' -> '.join(codes)}"
                )

    # Lookup

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[LineItemRule]:
        return iter(self._rules)

    def __contains__(self, code: object) -> bool:
        return code in self._index

    @property
    def codes(self) -> list[str]:
        return [rule.code for rule in self._rules]

    def get(self, code: str) -> LineItemRule:
        """Get a rule by code."""
        position = self._index.get(code)
        if position is None:
            raise UnknownRuleError(code)
        return self._rules[position]

    def find(self, code: str) -> LineItemRule | None:
        position = self._index.get(code)
        return self._rules[position] if position is not None else None

    def index_of(self, code: str) -> int:
        """Declaration position of a rule, used as the stable tie-break."""
        position = self._index.get(code)
        if position is None:
            raise UnknownRuleError(code)
        return position

    def formula_for(self, code: str) -> Formula | None:
        """Parsed quantity formula for a rule, if it has one."""
        return self._formulas.get(self.index_of(code))

    # Graph queries

    def auto_adds_of(self, code: str) -> list[str]:
        return [self._rules[target].code for target in self._auto_adds[self.index_of(code)]]

    def triggers_of(self, code: str) -> list[str]:
        """Rules that auto-add the given code."""
        position = self.index_of(code)
        return [
            rule.code
            for source, rule in enumerate(self._rules)
            if position in self._auto_adds[source]
        ]

    def excludes(self, code: str, other: str) -> bool:
        """True when ``code`` declares an exclusion of ``other``."""
        return self.index_of(other) in self._excludes[self.index_of(code)]

    def conflicts(self, code: str, other: str) -> bool:
        """True when either rule excludes the other."""
        return self.excludes(code, other) or self.excludes(other, code)

    def replacements_for(self, code: str) -> list[str]:
        """Rules that supersede the given code."""
        return [self._rules[source].code for source in sorted(self._replaced_by[self.index_of(code)])]

    def replaced_targets(self, code: str) -> list[str]:
        """Rules the given code supersedes."""
        return [self._rules[target].code for target in sorted(self._replaces[self.index_of(code)])]

    def rules_for_surface(self, surface: str) -> list[LineItemRule]:
        surface = surface.strip().lower()
        return [rule for rule in self._rules if surface in rule.surfaces]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [rule.model_dump(mode="json", exclude_none=True) for rule in self._rules]

    # Loading

    @classmethod
    def from_dicts(cls, rules: Iterable[dict[str, Any]], name: str = "catalog") -> "RuleCatalog":
        return cls(rules, name=name)

    @classmethod
    def from_json(cls, text: str, name: str = "catalog") -> "RuleCatalog":
        """Load a catalog from a JSON array, or an object with a "rules" array."""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise CatalogError(f"Catalog is not valid JSON: {e.msg}", details={"line": e.lineno}) from e

        if isinstance(payload, dict):
            name = payload.get("name", name)
            payload = payload.get("rules", [])
        if not isinstance(payload, list):
            raise CatalogError("Catalog JSON must be a list of rules")
        return cls(payload, name=name)


def load_catalog(path: str | Path) -> RuleCatalog:
    """Load a rule catalog from a JSON file."""
    file_path = Path(path)
    logger.info("catalog_loading", path=str(file_path))
    return RuleCatalog.from_json(file_path.read_text(encoding="utf-8"), name=file_path.stem)
