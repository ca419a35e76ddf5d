"""Referential usage checks that gate deletion of shared entities.

``USAGE_RULES`` lists, per source entity type, which dependent model points
at it and through which foreign-key column. ``check_usage`` counts active
dependents rule by rule and returns a ``UsageReport``; delete handlers refuse
the delete when the report says the entity is still in use.

Rule evaluation is best effort: a rule that cannot be resolved, fails or
times out is skipped and its label is recorded in ``UsageReport.degraded``.
Each count is bounded by a server-side ``statement_timeout``.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.base_model import Base
from app.core.logging import get_logger

logger = get_logger(__name__)

BACKSTOP_FACTOR = 2


class UsageRuleConfigError(RuntimeError):
    """A usage rule points at a model or column that does not exist."""


@dataclass(frozen=True)
class UsageRule:
    """Dependents of ``dependent_model`` referencing ``source_entity_type``.

    Soft-deleted dependents are ignored unless ``include_soft_deleted`` is set,
    which is needed when the source row is hard-deleted and the foreign key
    still restricts it.
    """

    source_entity_type: str
    dependent_model: str
    foreign_key_field: str
    label: str
    include_soft_deleted: bool = False


@dataclass
class UsageReport:
    """Result of a usage check. Computed on demand, never stored."""

    is_used: bool = False
    message: str = ""
    dependencies: dict[str, int] = field(default_factory=dict)
    degraded: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_used": self.is_used,
            "message": self.message,
            "dependencies": dict(self.dependencies),
            "degraded": list(self.degraded),
        }


USAGE_RULES: tuple[UsageRule, ...] = (
    UsageRule("Category", "Subcategory", "category_id", "subcategories"),
    UsageRule("Category", "Review", "category_id", "reviews"),
    UsageRule("Category", "TechNews", "category_id", "tech news"),
    UsageRule("Subcategory", "Review", "subcategory_id", "reviews"),
    UsageRule("Subcategory", "TechNews", "subcategory_id", "tech news"),
    UsageRule("Role", "User", "role_id", "users", include_soft_deleted=True),
    UsageRule("Review", "Comment", "review_id", "comments"),
    UsageRule("Review", "Comparison", "product_a_id", "comparisons"),
    UsageRule("Review", "Comparison", "product_b_id", "comparisons"),
    UsageRule("TechNews", "Comment", "tech_news_id", "comments"),
)


def _resolve_model(name: str) -> type[Base]:
    for mapper in Base.registry.mappers:
        if mapper.class_.__name__ == name:
            return mapper.class_
    raise UsageRuleConfigError(f"Model '{name}' is not mapped")


def _resolve_column(rule: UsageRule) -> tuple[type[Base], Any]:
    model = _resolve_model(rule.dependent_model)
    if rule.foreign_key_field not in inspect(model).columns:
        raise UsageRuleConfigError(
            f"{rule.dependent_model}.{rule.foreign_key_field} is not a mapped column"
        )
    return model, getattr(model, rule.foreign_key_field)


def validate_usage_rules(rules: Sequence[UsageRule] | None = None) -> None:
    """Fail fast if any rule references a missing model or column.

    Call after all model modules have been imported.
    """
    rules = USAGE_RULES if rules is None else rules
    errors: list[str] = []
    for rule in rules:
        try:
            _resolve_column(rule)
        except UsageRuleConfigError as e:
            errors.append(f"{rule.source_entity_type} -> {rule.label}: {e}")

    if errors:
        raise UsageRuleConfigError("Invalid usage rules: " + "; ".join(errors))

    logger.debug("usage_rules_validated", count=len(rules))


def build_count_query(rule: UsageRule, entity_id: UUID) -> Select:
    model, column = _resolve_column(rule)

    stmt = select(func.count()).select_from(model).where(column == entity_id)
    if hasattr(model, "deleted_at") and not rule.include_soft_deleted:
        stmt = stmt.where(model.deleted_at.is_(None))
    return stmt


async def _count_dependents(
    db: AsyncSession,
    rule: UsageRule,
    entity_id: UUID,
    timeout: float,
) -> int:
    stmt = build_count_query(rule, entity_id)

    # A failed count must not leave the caller's transaction aborted
    async with db.begin_nested():
        # Scoped to the savepoint's transaction; the server cancels the query
        conn = await db.connection()
        await conn.exec_driver_sql(
            f"SET LOCAL statement_timeout = {max(int(timeout * 1000), 1)}"
        )
        result = await db.execute(stmt)
        count = result.scalar() or 0
        # SET LOCAL outlives a released savepoint
        await conn.exec_driver_sql("SET LOCAL statement_timeout = DEFAULT")
        return count


async def check_usage(
    db: AsyncSession,
    entity_type: str,
    entity_id: UUID,
    *,
    rules: Sequence[UsageRule] | None = None,
) -> UsageReport:
    """Count active records that still reference ``entity_id``.

    Unknown entity types have no rules and always come back unused.
    """
    rules = USAGE_RULES if rules is None else rules
    timeout = settings.usage_check_timeout_seconds

    report = UsageReport()

    for rule in rules:
        if rule.source_entity_type != entity_type:
            continue

        try:
            # Backstop in case the server-side timeout is never applied
            count = await asyncio.wait_for(
                _count_dependents(db, rule, entity_id, timeout),
                timeout=timeout * BACKSTOP_FACTOR,
            )
        except (UsageRuleConfigError, SQLAlchemyError, TimeoutError) as e:
            logger.warning(
                "usage_rule_degraded",
                entity_type=entity_type,
                entity_id=str(entity_id),
                dependent_model=rule.dependent_model,
                label=rule.label,
                error=str(e) or type(e).__name__,
            )
            if rule.label not in report.degraded:
                report.degraded.append(rule.label)
            continue

        if count > 0:
            report.dependencies[rule.label] = report.dependencies.get(rule.label, 0) + count

    # Rules sharing a label (both sides of a comparison) report one clause
    report.is_used = bool(report.dependencies)
    report.message = ", ".join(
        f"used in {count} {label}" for label, count in report.dependencies.items()
    )
    return report
