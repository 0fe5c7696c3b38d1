"""
Composable WHERE clauses and offset pagination.

`Predicate` collects conditions as SQL fragments written with a `{}` slot
where the value goes; the slot is replaced by the next asyncpg placeholder
($1, $2, ...). Values are never put into the SQL text.

    where = Predicate()
    where.add("m.nodo_id = {}", 7)
    where.add("m.topico ILIKE {}", "%temp%")
    sql = f"SELECT ... WHERE {where.sql()} LIMIT {where.next_placeholder()}"
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


class Predicate:
    def __init__(self) -> None:
        self._clauses: list[str] = []
        self._params: list[Any] = []

    def add(self, template: str, *values: Any) -> Predicate:
        if template.count("{}") != len(values):
            raise ValueError("Each value needs exactly one {} slot in the template.")
        placeholders = []
        for value in values:
            self._params.append(value)
            placeholders.append(f"${len(self._params)}")
        self._clauses.append(template.format(*placeholders))
        return self

    def add_if(self, value: Any, template: str) -> Predicate:
        """
        Add `template` bound to `value` only when value is not None.
        """
        if value is None:
            return self
        return self.add(template, value)

    def sql(self) -> str:
        if not self._clauses:
            return "TRUE"
        return " AND ".join(self._clauses)

    @property
    def params(self) -> list[Any]:
        return list(self._params)

    def next_placeholder(self, offset: int = 0) -> str:
        """
        Placeholder for a value appended after the predicate's own params
        (e.g. LIMIT/OFFSET).
        """
        return f"${len(self._params) + 1 + offset}"


def like_pattern(text: str) -> str:
    """
    Substring pattern for LIKE/ILIKE with the wildcards in `text` escaped.
    """
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class Page:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        if total <= 0:
            return 0
        return math.ceil(total / self.limit)

    def describe(self, total: int) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": self.total_pages(total),
        }
