"""Translation of database constraint violations into API errors.

Services check uniqueness before writing, but two concurrent requests can
both pass the check. The loser's ``IntegrityError`` is mapped here to the
same error the pre-check would have raised.
"""

import re

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AlreadyExistsError,
    AppException,
    EntityInUseError,
    SortOrderConflictError,
)
from app.core.sort_order import SORT_ORDER_INDEXES

# Unique constraint or index name -> (resource, field)
UNIQUE_CONSTRAINTS: dict[str, tuple[str, str]] = {
    "uq_roles_tenant_name": ("Role", "name"),
    "uq_users_tenant_email": ("User", "email"),
    "uq_users_tenant_username": ("User", "username"),
    "uq_categories_tenant_slug": ("Category", "slug"),
    "uq_subcategories_category_slug": ("Subcategory", "slug"),
    "uq_reviews_tenant_slug": ("Review", "slug"),
    "uq_tech_news_tenant_slug": ("TechNews", "slug"),
    "uq_static_pages_tenant_slug": ("StaticPage", "slug"),
    "uq_comparisons_tenant_slug": ("Comparison", "slug"),
    "tenants_slug_key": ("Tenant", "slug"),
    "tenants_domain_key": ("Tenant", "domain"),
}

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_KEY_VALUE_RE = re.compile(r"Key \((?P<columns>[^)]*)\)=\((?P<values>.*)\)")
_REFERENCING_TABLE_RE = re.compile(r'referenced from table "(?P<table>[^"]+)"')


def _driver_error(error: IntegrityError) -> BaseException | None:
    # asyncpg's exception sits behind SQLAlchemy's DBAPI adapter
    orig = error.orig
    if orig is None:
        return None
    return orig.__cause__ or orig


def _sqlstate(error: IntegrityError) -> str | None:
    for candidate in (error.orig, _driver_error(error)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _constraint_name(error: IntegrityError, known: frozenset[str] | set[str]) -> str | None:
    name = getattr(_driver_error(error), "constraint_name", None)
    if name:
        return name
    message = str(error.orig) if error.orig is not None else str(error)
    return next((n for n in known if f'"{n}"' in message), None)


def _detail(error: IntegrityError) -> str:
    detail = getattr(_driver_error(error), "detail", None)
    if detail:
        return detail
    return str(error.orig) if error.orig is not None else str(error)


def _conflicting_value(error: IntegrityError, field: str) -> str:
    match = _KEY_VALUE_RE.search(_detail(error))
    if match is None:
        return ""
    columns = [c.strip() for c in match.group("columns").split(",")]
    values = [v.strip() for v in match.group("values").split(",")]
    if field in columns and len(columns) == len(values):
        return values[columns.index(field)]
    return values[-1]


def translate_integrity_error(error: IntegrityError) -> AppException | None:
    """Map a constraint violation to the matching API error.

    Returns ``None`` for violations with no client-facing meaning, such as
    NOT NULL failures or unknown constraints; those stay storage errors.
    """
    code = _sqlstate(error)
    known = set(UNIQUE_CONSTRAINTS) | set(SORT_ORDER_INDEXES)
    name = _constraint_name(error, known)

    if name in SORT_ORDER_INDEXES:
        value = _conflicting_value(error, "sort_order")
        return SortOrderConflictError(int(value) if value.isdigit() else 0)

    if name in UNIQUE_CONSTRAINTS and code in (UNIQUE_VIOLATION, None):
        resource, field = UNIQUE_CONSTRAINTS[name]
        return AlreadyExistsError(resource, field, _conflicting_value(error, field))

    if code == FOREIGN_KEY_VIOLATION and "update or delete" in str(error.orig):
        match = _REFERENCING_TABLE_RE.search(_detail(error))
        label = match.group("table").replace("_", " ") if match else "records"
        table = re.search(r'on table "(?P<table>[^"]+)"', str(error.orig))
        resource = table.group("table") if table else "entity"
        return EntityInUseError(resource, f"referenced by {label}", {})

    return None
