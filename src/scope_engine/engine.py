"""
Zone Scope Engine - Main Orchestrator.
Runs metrics, matching, resolution, quantities and validation for zones.
"""

from collections.abc import Iterable
from typing import Any

import structlog

from .config import Settings
from .config import settings as default_settings
from .core.catalog import RuleCatalog
from .core.check_engine import CheckEngine
from .core.matcher import ScopeMatcher
from .core.metrics import compute_zone_metrics
from .core.models import (
    EstimateScopeResult,
    IssueCategory,
    ScopeResult,
    SuggestedItem,
    ValidationResult,
    Zone,
    ZoneMetrics,
    ZoneReport,
)
from .core.quantity import QuantityEvaluator
from .core.resolver import DependencyResolver
from .core.validator import ScopeValidator
from .modules import (
    FlooringModule,
    InteriorRepairModule,
    RoofingModule,
    WaterMitigationModule,
    default_catalog,
)

logger = structlog.get_logger()

ZoneInput = Zone | dict[str, Any]


class ScopeEngine:
    """
    Main orchestrator for the Zone Scope Engine.

    Components are built lazily on first use. Module flags decide which
    domain completeness checks are registered; the catalog itself is
    shared by all of them.
    """

    def __init__(
        self,
        catalog: RuleCatalog | None = None,
        settings: Settings | None = None,
        enable_water_mitigation: bool = True,
        enable_interior_repair: bool = True,
        enable_flooring: bool = True,
        enable_roofing: bool = True,
        enable_dependency_check: bool = True,
        enable_quantity_check: bool = True,
        enable_exclusion_check: bool = True,
        enable_completeness_check: bool = True,
    ) -> None:
        """
        Initialize the Zone Scope Engine.

        Args:
            catalog: Rule catalog (defaults to the bundled catalog)
            settings: Engine settings (defaults to the environment settings)
            enable_water_mitigation: Register water mitigation checks
            enable_interior_repair: Register interior repair checks
            enable_flooring: Register flooring checks
            enable_roofing: Register roofing checks
            enable_dependency_check: Run dependency checks
            enable_quantity_check: Run quantity bound checks
            enable_exclusion_check: Run exclusion checks
            enable_completeness_check: Run completeness checks
        """
        self.settings = settings or default_settings
        self.settings.validate()
        self.enable_water_mitigation = enable_water_mitigation
        self.enable_interior_repair = enable_interior_repair
        self.enable_flooring = enable_flooring
        self.enable_roofing = enable_roofing
        self.enable_dependency_check = enable_dependency_check
        self.enable_quantity_check = enable_quantity_check
        self.enable_exclusion_check = enable_exclusion_check
        self.enable_completeness_check = enable_completeness_check

        self._catalog = catalog
        self._matcher: ScopeMatcher | None = None
        self._resolver: DependencyResolver | None = None
        self._evaluator: QuantityEvaluator | None = None
        self._validator: ScopeValidator | None = None

    @property
    def catalog(self) -> RuleCatalog:
        """Get the catalog, loading the bundled one if none was given."""
        if self._catalog is None:
            self._catalog = default_catalog()
        return self._catalog

    @property
    def matcher(self) -> ScopeMatcher:
        """Get or create the scope matcher."""
        if self._matcher is None:
            self._matcher = ScopeMatcher(self.catalog)
        return self._matcher

    @property
    def resolver(self) -> DependencyResolver:
        """Get or create the dependency resolver."""
        if self._resolver is None:
            self._resolver = DependencyResolver(
                self.catalog, iteration_cap=self.settings.resolver_iteration_cap
            )
        return self._resolver

    @property
    def evaluator(self) -> QuantityEvaluator:
        """Get or create the quantity evaluator."""
        if self._evaluator is None:
            self._evaluator = QuantityEvaluator(self.catalog, precision=self.settings.metric_precision)
        return self._evaluator

    @property
    def validator(self) -> ScopeValidator:
        """Get or create the validator with the enabled modules' checks."""
        if self._validator is None:
            check_engine = CheckEngine()
            validator = ScopeValidator(check_engine, tolerance=self.settings.quantity_tolerance)
            if self.enable_water_mitigation:
                WaterMitigationModule(check_engine)
            if self.enable_interior_repair:
                InteriorRepairModule(check_engine)
            if self.enable_flooring:
                FlooringModule(check_engine)
            if self.enable_roofing:
                RoofingModule(check_engine)
            self._validator = validator
            self._apply_category_flags()
        return self._validator

    def _apply_category_flags(self) -> None:
        engine = self._validator.engine
        engine.set_category_enabled(IssueCategory.DEPENDENCY, self.enable_dependency_check)
        engine.set_category_enabled(IssueCategory.QUANTITY, self.enable_quantity_check)
        engine.set_category_enabled(IssueCategory.EXCLUSION, self.enable_exclusion_check)
        engine.set_category_enabled(IssueCategory.COMPLETENESS, self.enable_completeness_check)

    @staticmethod
    def _coerce_zone(zone: ZoneInput) -> Zone:
        if isinstance(zone, dict):
            return Zone.model_validate(zone)
        return zone

    def compute_metrics(self, zone: ZoneInput) -> ZoneMetrics:
        """Compute the metrics snapshot for a zone."""
        return compute_zone_metrics(
            self._coerce_zone(zone),
            default_height_ft=self.settings.default_height_ft,
            precision=self.settings.metric_precision,
        )

    def evaluate_zone(self, zone: ZoneInput) -> ScopeResult:
        """
        Derive the suggested line items for a zone.

        Args:
            zone: The zone to scope (Zone or dict)

        Returns:
            ScopeResult with suggested and excluded items

        Raises:
            CatalogCycleError: If resolution exceeds the iteration cap
        """
        zone = self._coerce_zone(zone)
        log = logger.bind(zone_id=zone.id)

        metrics = self.compute_metrics(zone)
        matches = self.matcher.match(zone)
        resolution = self.resolver.resolve(matches)

        warnings: list[str] = []
        if not metrics.is_known:
            warnings.append("Zone dimensions are missing; formula quantities evaluate to zero")

        items: list[SuggestedItem] = []
        for resolved in resolution.items:
            rule = resolved.rule
            quantity = self.evaluator.evaluate(rule, metrics)
            warnings.extend(f"{rule.code}: {warning}" for warning in quantity.warnings)
            items.append(
                SuggestedItem(
                    code=rule.code,
                    description=rule.description,
                    category=rule.category,
                    unit=quantity.unit,
                    quantity=quantity.quantity,
                    quantity_source=quantity.source,
                    formula=quantity.formula,
                    explanation=quantity.explanation,
                    is_auto_added=resolved.is_auto_added,
                    added_by_item=resolved.added_by_item,
                    reasons=list(resolved.reasons),
                    carrier_sensitivity=rule.carrier_sensitivity,
                )
            )

        log.info(
            "zone_scoped",
            matched=len(matches),
            suggested=len(items),
            excluded=len(resolution.excluded),
            warnings=len(warnings),
        )
        return ScopeResult(
            zone_id=zone.id,
            zone_name=zone.name,
            metrics=metrics,
            suggested_items=items,
            excluded_items=resolution.excluded,
            warnings=warnings,
            items_evaluated=len(self.catalog),
            items_matched=len(matches),
        )

    def validate(
        self,
        scope: ScopeResult | list[SuggestedItem],
        zone: ZoneInput,
    ) -> ValidationResult:
        """
        Validate a scope result, or a user-edited list of items, for a zone.

        Args:
            scope: ScopeResult from evaluate_zone, or the items themselves
            zone: The zone the items belong to

        Returns:
            ValidationResult for the zone
        """
        zone = self._coerce_zone(zone)
        if isinstance(scope, ScopeResult):
            items, metrics = list(scope.suggested_items), scope.metrics
        else:
            items, metrics = list(scope), self.compute_metrics(zone)
        return self.validator.validate(items, zone, self.catalog, metrics)

    def run(self, zone: ZoneInput) -> ZoneReport:
        """
        Scope and validate a zone in one pass.

        Returns:
            ZoneReport whose items carry their validation status
        """
        zone = self._coerce_zone(zone)
        scope = self.evaluate_zone(zone)
        validation = self.validate(scope, zone)
        scope = scope.model_copy(
            update={"suggested_items": validation.annotate(scope.suggested_items)}
        )
        return ZoneReport(scope=scope, validation=validation)

    def evaluate_estimate(
        self,
        zones: Iterable[ZoneInput],
        estimate_id: str = "estimate",
    ) -> EstimateScopeResult:
        """
        Scope and validate every zone of an estimate.

        Args:
            zones: Zones to process, in order
            estimate_id: Identifier carried onto the roll-up

        Returns:
            EstimateScopeResult with per-zone reports and totals
        """
        reports = [self.run(zone) for zone in zones]

        result = EstimateScopeResult(
            estimate_id=estimate_id,
            zones=reports,
            total_suggested=sum(len(r.scope.suggested_items) for r in reports),
            total_excluded=sum(len(r.scope.excluded_items) for r in reports),
            total_errors=sum(r.validation.error_count for r in reports),
            total_warnings=sum(r.validation.warning_count for r in reports),
            total_info=sum(r.validation.info_count for r in reports),
            is_valid=all(r.validation.is_valid for r in reports),
        )
        logger.info(
            "estimate_scoped",
            estimate_id=estimate_id,
            zones=len(reports),
            suggested=result.total_suggested,
            errors=result.total_errors,
        )
        return result

    def get_enabled_modules(self) -> list[str]:
        """Get list of enabled modules."""
        modules = []
        if self.enable_water_mitigation:
            modules.append(WaterMitigationModule.NAME)
        if self.enable_interior_repair:
            modules.append(InteriorRepairModule.NAME)
        if self.enable_flooring:
            modules.append(FlooringModule.NAME)
        if self.enable_roofing:
            modules.append(RoofingModule.NAME)
        return modules

    def configure(
        self,
        enable_water_mitigation: bool | None = None,
        enable_interior_repair: bool | None = None,
        enable_flooring: bool | None = None,
        enable_roofing: bool | None = None,
        enable_dependency_check: bool | None = None,
        enable_quantity_check: bool | None = None,
        enable_exclusion_check: bool | None = None,
        enable_completeness_check: bool | None = None,
    ) -> "ScopeEngine":
        """
        Configure the engine settings.

        Changing a module flag rebuilds the validator on next use; check
        category flags are applied to the current validator straight away.

        Returns:
            Self for method chaining
        """
        modules_before = self.get_enabled_modules()

        if enable_water_mitigation is not None:
            self.enable_water_mitigation = enable_water_mitigation
        if enable_interior_repair is not None:
            self.enable_interior_repair = enable_interior_repair
        if enable_flooring is not None:
            self.enable_flooring = enable_flooring
        if enable_roofing is not None:
            self.enable_roofing = enable_roofing
        if enable_dependency_check is not None:
            self.enable_dependency_check = enable_dependency_check
        if enable_quantity_check is not None:
            self.enable_quantity_check = enable_quantity_check
        if enable_exclusion_check is not None:
            self.enable_exclusion_check = enable_exclusion_check
        if enable_completeness_check is not None:
            self.enable_completeness_check = enable_completeness_check

        if self.get_enabled_modules() != modules_before:
            self._validator = None
        elif self._validator is not None:
            self._apply_category_flags()
        return self


# Convenience function for one-off zones
def scope_zone(zone: ZoneInput, catalog: RuleCatalog | None = None) -> ZoneReport:
    """
    Convenience function to scope and validate a single zone.

    Args:
        zone: The zone to scope
        catalog: Rule catalog (defaults to the bundled catalog)

    Returns:
        ZoneReport with scope and validation
    """
    engine = ScopeEngine(catalog=catalog)
    return engine.run(zone)
