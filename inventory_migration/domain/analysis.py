"""
Migration analysis -- pure grouping, comparison and progress arithmetic.

Responsibility:
    Turn legacy per-product records into per-category ``MigrationRule``s,
    compare rules against persisted inventories, and compute batch
    progress.  ZERO I/O; ``MigrationService`` supplies every input.

Invariants enforced:
    - Every legacy product lands in at most one rule.
    - Products without a category are grouped under the uncategorized id.
    - Products referencing an unknown category are skipped, never guessed.
    - Progress during the batch phase stays within [10, 90].
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Iterator, Mapping, Sequence, TypeVar

from inventory_migration.domain.types import (
    CategoryDiscrepancy,
    LegacyProduct,
    MigrationAnalysis,
    MigrationRule,
    RuleProduct,
    ValidationResult,
)

T = TypeVar("T")

DEFAULT_THRESHOLD = 5
ANALYSIS_PROGRESS = 10
BATCH_PROGRESS_CEILING = 90
VALIDATION_PROGRESS = 95


def resolve_uncategorized_id(
    categories: Mapping[str, str],
    uncategorized_id: str,
    uncategorized_name: str,
) -> str | None:
    """
    Find an existing uncategorized category by id, else by case-insensitive name.

    Returns None if neither exists.
    """
    if uncategorized_id in categories:
        return uncategorized_id
    wanted = uncategorized_name.casefold()
    for category_id, name in sorted(categories.items()):
        if name.casefold() == wanted:
            return category_id
    return None


def rule_threshold(products: Iterable[RuleProduct], default: int = DEFAULT_THRESHOLD) -> int:
    """Minimum positive product threshold, or ``default`` if there is none."""
    positives = [
        p.low_stock_threshold for p in products
        if p.low_stock_threshold is not None and p.low_stock_threshold > 0
    ]
    return min(positives) if positives else default


def build_analysis(
    products: Sequence[LegacyProduct],
    categories: Mapping[str, str],
    uncategorized_id: str | None,
    default_threshold: int = DEFAULT_THRESHOLD,
) -> MigrationAnalysis:
    """
    Group legacy products into per-category migration rules.

    Preconditions:
        - ``categories`` maps every existing category id to its name.
        - ``uncategorized_id`` is in ``categories`` whenever any product
          lacks a category.

    Postconditions:
        - Rules are ordered by category id; products keep input order.
        - A missing product quantity counts as 0.
        - ``skipped_products`` lists SKUs whose category does not exist.
    """
    grouped: dict[str, list[RuleProduct]] = {}
    skipped: list[str] = []
    uncategorized = 0

    for product in products:
        if product.category_id:
            target = product.category_id
        else:
            uncategorized += 1
            target = uncategorized_id
        if target is None or target not in categories:
            skipped.append(product.sku)
            continue
        grouped.setdefault(target, []).append(
            RuleProduct(
                sku=product.sku,
                name=product.name,
                quantity=product.quantity or 0,
                low_stock_threshold=product.low_stock_threshold,
            )
        )

    rules = tuple(
        MigrationRule(
            category_id=category_id,
            category_name=categories[category_id],
            products=tuple(items),
            low_stock_threshold=rule_threshold(items, default_threshold),
        )
        for category_id, items in sorted(grouped.items())
    )

    return MigrationAnalysis(
        total_categories=len(categories),
        categories_with_products=len(rules),
        uncategorized_products=uncategorized,
        rules=rules,
        uncategorized_category_id=uncategorized_id if uncategorized else None,
        skipped_products=tuple(skipped),
    )


def find_orphans(
    products: Iterable[LegacyProduct], category_ids: Iterable[str],
) -> tuple[str, ...]:
    """SKUs whose category id is set but does not exist."""
    known = set(category_ids)
    return tuple(sorted(
        p.sku for p in products if p.category_id and p.category_id not in known
    ))


def find_duplicates(products: Iterable[LegacyProduct]) -> tuple[str, ...]:
    counts = Counter(p.sku for p in products)
    return tuple(sorted(sku for sku, n in counts.items() if n > 1))


def compare(
    rules: Iterable[MigrationRule], actual: Mapping[str, int],
) -> tuple[CategoryDiscrepancy, ...]:
    """
    Discrepancies between expected aggregates and persisted quantities.

    A category missing from ``actual`` counts as quantity 0.
    """
    discrepancies = []
    for rule in rules:
        got = actual.get(rule.category_id, 0)
        if got != rule.aggregated_quantity:
            discrepancies.append(
                CategoryDiscrepancy(
                    category_id=rule.category_id,
                    category_name=rule.category_name,
                    expected_quantity=rule.aggregated_quantity,
                    actual_quantity=got,
                )
            )
    return tuple(discrepancies)


def build_validation(
    analysis: MigrationAnalysis,
    products: Sequence[LegacyProduct],
    categories: Mapping[str, str],
    actual: Mapping[str, int],
) -> ValidationResult:
    return ValidationResult(
        category_discrepancies=compare(analysis.rules, actual),
        orphaned_products=find_orphans(products, categories),
        duplicate_products=find_duplicates(products),
    )


def discrepancy_warnings(result: ValidationResult) -> tuple[str, ...]:
    if not result.category_discrepancies:
        return ()
    lines = [
        f"Migration validation found {result.total_discrepancies} discrepancies"
    ]
    lines.extend(
        f"Category {d.category_name}: expected {d.expected_quantity}, "
        f"got {d.actual_quantity}"
        for d in result.category_discrepancies
    )
    return tuple(lines)


def chunked(items: Sequence[T], size: int) -> Iterator[tuple[int, Sequence[T]]]:
    """Yield ``(start_index, chunk)`` pairs of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


def batch_progress(attempted: int, total: int) -> int:
    """Progress after ``attempted`` of ``total`` categories, capped at 90."""
    if total <= 0:
        return BATCH_PROGRESS_CEILING
    span = BATCH_PROGRESS_CEILING - ANALYSIS_PROGRESS
    return min(BATCH_PROGRESS_CEILING, ANALYSIS_PROGRESS + attempted * span // total)
