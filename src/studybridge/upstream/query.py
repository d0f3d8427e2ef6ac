"""Builder for the upstream filter-query dialect.

The content service reads nested query keys in bracket notation:

    filters[user][email][$eq]=ana@example.com
    filters[$or][0][ownerProfile][id][$eq]=12
    populate[topics][fields][0]=name
    pagination[limit]=1

StrapiQuery assembles these keys through chained calls and hands back a flat
mapping suitable for ``httpx`` ``params=``. Relation paths are dotted
(``"user.email"``) and expand to one bracket segment per part.

Example:
    params = (
        StrapiQuery()
        .eq("topic.id", 5)
        .eq("profile.id", 9)
        .limit(1)
        .to_params()
    )
"""

from __future__ import annotations

from typing import Any, Iterable

EQ = "$eq"
GT = "$gt"
CONTAINS = "$contains"
IN = "$in"
OR = "$or"
AND = "$and"
NULL = "$null"

# A single condition for or_(): (dotted path, operator, value)
Condition = tuple[str, str, Any]


def _brackets(path: str) -> str:
    """Expand a dotted relation path into bracket segments."""
    return "".join(f"[{part}]" for part in path.split(".") if part)


def _stringify(value: Any) -> str:
    """Render a filter value the way the query string expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StrapiQuery:
    """Chainable builder for upstream query parameters."""

    def __init__(self) -> None:
        self._params: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"StrapiQuery({self._params!r})"

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def where(self, path: str, operator: str, value: Any) -> StrapiQuery:
        """Add ``filters[path][operator]=value``."""
        self._params[f"filters{_brackets(path)}[{operator}]"] = _stringify(value)
        return self

    def eq(self, path: str, value: Any) -> StrapiQuery:
        return self.where(path, EQ, value)

    def gt(self, path: str, value: Any) -> StrapiQuery:
        return self.where(path, GT, value)

    def contains(self, path: str, value: Any) -> StrapiQuery:
        return self.where(path, CONTAINS, value)

    def in_(self, path: str, values: Iterable[Any]) -> StrapiQuery:
        """Add an indexed ``$in`` filter, one key per member."""
        for index, value in enumerate(values):
            self._params[f"filters{_brackets(path)}[{IN}][{index}]"] = _stringify(value)
        return self

    def and_eq(self, path: str, value: Any, index: int = 0) -> StrapiQuery:
        """Add ``filters[$and][index][path][$eq]=value``."""
        self._params[f"filters[{AND}][{index}]{_brackets(path)}[{EQ}]"] = _stringify(value)
        return self

    def or_(self, *branches: Condition) -> StrapiQuery:
        """Match any of the given conditions."""
        for index, (path, operator, value) in enumerate(branches):
            key = f"filters[{OR}][{index}]{_brackets(path)}[{operator}]"
            self._params[key] = _stringify(value)
        return self

    def since(self, timestamp: str | None) -> StrapiQuery:
        """Restrict to records updated strictly after ``timestamp``.

        A missing timestamp leaves the query unrestricted.
        """
        if timestamp:
            self.gt("updatedAt", timestamp)
        return self

    # ------------------------------------------------------------------
    # Projection, population, pagination
    # ------------------------------------------------------------------

    def fields(self, *names: str) -> StrapiQuery:
        for index, name in enumerate(names):
            self._params[f"fields[{index}]"] = name
        return self

    def populate_all(self) -> StrapiQuery:
        self._params["populate"] = "*"
        return self

    def populate(self, *relations: str) -> StrapiQuery:
        """Populate relations by name; dotted names populate nested relations."""
        for index, relation in enumerate(relations):
            self._params[f"populate[{index}]"] = relation
        return self

    def populate_fields(self, relation: str, *names: str) -> StrapiQuery:
        for index, name in enumerate(names):
            self._params[f"populate{_brackets(relation)}[fields][{index}]"] = name
        return self

    def populate_filter(
        self, relation: str, path: str, operator: str, value: Any
    ) -> StrapiQuery:
        """Filter the members of a populated relation."""
        key = f"populate{_brackets(relation)}[filters]{_brackets(path)}[{operator}]"
        self._params[key] = _stringify(value)
        return self

    def populate_or(self, relation: str, *branches: Condition) -> StrapiQuery:
        """Filter a populated relation with ``$or`` branches."""
        for index, (path, operator, value) in enumerate(branches):
            key = (
                f"populate{_brackets(relation)}[filters][{OR}][{index}]"
                f"{_brackets(path)}[{operator}]"
            )
            self._params[key] = _stringify(value)
        return self

    def limit(self, count: int) -> StrapiQuery:
        self._params["pagination[limit]"] = str(count)
        return self

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def passthrough(
        self,
        params: Iterable[tuple[str, str]],
        exclude: Iterable[str] = (),
    ) -> StrapiQuery:
        """Copy inbound query parameters that were not translated.

        Keys listed in ``exclude`` (the ones a route already understood) and
        keys the builder has already set are skipped.
        """
        skip = set(exclude)
        for key, value in params:
            if key in skip or key in self._params:
                continue
            self._params[key] = value
        return self

    def to_params(self) -> dict[str, str]:
        return dict(self._params)
