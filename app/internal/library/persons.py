"""
Groups library items by the people credited on them.

Each distinct person name (case-insensitive) becomes a group. Groups carry a
deferred filter that recomputes the matching items on demand from an
immutable snapshot of the input, so a group can be evaluated repeatedly and
from any thread.
"""
from functools import partial
from typing import Callable, Collection, Generic, Iterable, Iterator, Sequence, TypeAlias, TypeVar

from app.internal.models import HasPeople, PersonInfo
from app.util.log import logger

T = TypeVar("T")

ReferenceAccessor: TypeAlias = Callable[[T], Sequence[PersonInfo] | None]
LazyFilter: TypeAlias = Callable[[], list[T]]


def people_of(item: HasPeople) -> Sequence[PersonInfo] | None:
    return item.people


def parse_type_filter(raw: str | None) -> frozenset[str]:
    """
    Parse a comma-separated person type filter ("Actor,Director").

    Entries are trimmed and lower-cased. Empty entries are dropped, so a
    filter made only of commas or whitespace means no filtering at all.
    """
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def normalize_type_filter(person_types: Iterable[str] | None) -> frozenset[str]:
    if not person_types:
        return frozenset()
    return frozenset(t.strip().lower() for t in person_types if t and t.strip())


def _type_matches(person: PersonInfo, person_types: frozenset[str]) -> bool:
    if not person_types:
        return True
    return (person.type or "").lower() in person_types


def _ordered_by_type(people: Sequence[PersonInfo]) -> list[PersonInfo]:
    return sorted(people, key=lambda p: p.type or "")


def filter_by_person(
    items: Sequence[T],
    name: str,
    person_types: frozenset[str],
    references: ReferenceAccessor[T],
) -> list[T]:
    """Return every item crediting `name`, restricted to `person_types` when given."""
    wanted = name.lower()
    return [
        item
        for item in items
        if any(
            p.name.lower() == wanted and _type_matches(p, person_types)
            for p in references(item) or ()
        )
    ]


class PersonIndex(Generic[T]):
    """Distinct person names over a snapshot of items, with per-name lazy filters."""

    _items: tuple[T, ...]
    _person_types: frozenset[str]
    _references: ReferenceAccessor[T]
    _names: dict[str, str]

    def __init__(
        self,
        items: Sequence[T],
        person_types: frozenset[str],
        references: ReferenceAccessor[T],
        names: dict[str, str],
    ):
        self._items = tuple(items)
        self._person_types = person_types
        self._references = references
        self._names = names

    @property
    def names(self) -> list[str]:
        return list(self._names.values())

    @property
    def person_types(self) -> frozenset[str]:
        return self._person_types

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[tuple[str, LazyFilter[T]]]:
        return iter(self.groups())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._names

    def lazy_filter(self, name: str) -> LazyFilter[T]:
        return partial(
            filter_by_person, self._items, name, self._person_types, self._references
        )

    def groups(self) -> list[tuple[str, LazyFilter[T]]]:
        return [(name, self.lazy_filter(name)) for name in self._names.values()]

    def items_for(self, name: str) -> list[T]:
        if name not in self:
            return []
        return self.lazy_filter(name)()


def index_people(
    items: Iterable[T],
    person_types: Collection[str] | None = None,
    references: ReferenceAccessor[T] = people_of,
) -> PersonIndex[T]:
    """
    Build the person groups for a set of library items.

    Items without any people are excluded entirely. Each item's people are
    visited ordered by type (a missing type sorts first) and, when a type
    filter is given, only people with a matching type contribute a name. The
    first casing seen for a name is kept as its display form.

    Args:
        items: Library items; not mutated.
        person_types: Person types to keep (case-insensitive). Empty or None
            keeps every person.
        references: Accessor returning the people of an item.

    Returns:
        A PersonIndex whose groups enumerate in first-encounter order.
    """
    types = normalize_type_filter(person_types)
    with_people = [item for item in items if references(item)]

    names: dict[str, str] = {}
    for item in with_people:
        for person in _ordered_by_type(references(item) or ()):
            if not _type_matches(person, types):
                continue
            names.setdefault(person.name.lower(), person.name)

    logger.debug(
        "Indexed people",
        items=len(with_people),
        names=len(names),
        person_types=sorted(types),
    )
    return PersonIndex(with_people, types, references, names)
