"""Query options for ``p4 fstat`` and their compilation into command flags."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from p4file.exceptions import InvalidArgumentError
from p4file.filter.expression import FilterExpression
from p4file.validate import DEFAULT_CHANGE, is_valid_attribute_name, is_valid_change_number

logger = logging.getLogger(__name__)


class SortDirection(str, enum.Enum):
    """Sort direction markers understood by ``fstat -S``."""

    ASCENDING = "a"
    DESCENDING = "d"


# Server-side sort fields. The two-letter prefix is part of the server's
# encoding and is stripped (with the '#') in the general -S form.
SORT_DATE = "#REdate"
SORT_HEAD_REV = "#RErev"
SORT_HAVE_REV = "#NEhrev"
SORT_FILE_TYPE = "#NEtype"
SORT_FILE_SIZE = "#REsize"

# Short flags older servers understand for a single internal sort field.
_SHORT_SORT_FLAGS: dict[str, str] = {
    SORT_DATE: "-Sd",
    SORT_HEAD_REV: "-Sr",
    SORT_HAVE_REV: "-Sh",
    SORT_FILE_TYPE: "-St",
    SORT_FILE_SIZE: "-Ss",
}

INTERNAL_SORT_FIELDS: frozenset[str] = frozenset(_SHORT_SORT_FLAGS)

# Multi-clause sorting arrived with 2010.2 servers, limited to two clauses.
SORT_CLAUSE_COUNT_2010_2 = 2

ATTRIBUTE_PREFIX = "attr-"

SortClauses = dict[str, tuple[SortDirection, ...] | None]


@dataclass
class QueryOptions:
    """Current state of a file query."""

    filter: FilterExpression | None = None
    sort_by: SortClauses | None = None
    reverse_order: bool = False
    limit_fields: list[str] | None = None
    limit_to_changelist: int | str | None = None
    limit_to_needs_resolve: bool = False
    limit_to_opened: bool = False
    max_results: int | None = None
    start_row: int | None = None
    filespecs: list[str] | None = None


def _to_flag(value: object, name: str) -> bool:
    """Accept booleans, integers and numeric strings as a flag value."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped == "":
            return False
        try:
            return bool(int(stripped))
        except ValueError:
            pass
    raise InvalidArgumentError(f"Cannot set {name}; argument must be a boolean.")


def _to_count(value: object, name: str) -> int | None:
    """Accept a non-negative int (or numeric string); 0 means unset."""
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            raise InvalidArgumentError(
                f"Cannot set {name}; argument must be a positive integer or null."
            ) from None
    if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
        raise InvalidArgumentError(
            f"Cannot set {name}; argument must be a positive integer or null."
        )
    return value or None


def _to_string_list(value: object, name: str) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence) and all(isinstance(item, str) for item in value):
        return list(value)
    raise InvalidArgumentError(f"Cannot set {name}; argument must be a string, an array, or null.")


class QueryBuilder:
    """Container for fstat query options.

    Holds filter, sort, pagination and scope limiters and compiles them
    into the flag list passed to ``p4 fstat``. Setters validate their input
    and return the builder for chaining.

    Usage:
        query = QueryBuilder({"filespecs": "//depot/..."})
        query.set_filter(FilterExpression().add_condition("attr-title", "Hello"))
        query.set_sort_by(SORT_DATE).set_max_results(50)
        query.compile_flags()
        # ['-F', 'attr-title~=\\^Hello\\$', '-m', '50', '-Sd', '-Oal']
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        sort_clause_count: int = SORT_CLAUSE_COUNT_2010_2,
    ) -> None:
        self._sort_clause_count = sort_clause_count
        self._options = QueryOptions()
        for key, value in (options or {}).items():
            setter = getattr(self, f"set_{key}", None)
            if key in QueryOptions.__dataclass_fields__ and setter is not None:
                setter(value)

    @classmethod
    def create(cls, options: Mapping[str, Any] | None = None, **kwargs: Any) -> QueryBuilder:
        return cls(options, **kwargs)

    def reset(self) -> QueryBuilder:
        """Restore every option to its default."""
        self._options = QueryOptions()
        return self

    @property
    def options(self) -> QueryOptions:
        return self._options

    def to_dict(self) -> dict[str, Any]:
        """Current options as a plain dictionary."""
        data = asdict(self._options)
        # asdict() would deep-copy the expression; keep the caller's object.
        data["filter"] = self._options.filter
        return data

    # -- filter ---------------------------------------------------------

    @property
    def filter(self) -> FilterExpression | None:
        return self._options.filter

    def set_filter(self, filter: FilterExpression | str | None = None) -> QueryBuilder:
        """Set the filter; a string is used verbatim as the expression."""
        if isinstance(filter, str):
            filter = FilterExpression(filter)
        if filter is not None and not isinstance(filter, FilterExpression):
            raise InvalidArgumentError(
                "Cannot set filter; argument must be a FilterExpression, a string, or null."
            )
        self._options.filter = filter
        return self

    # -- sorting --------------------------------------------------------

    @property
    def sort_clause_count(self) -> int:
        """Number of sort clauses the server supports."""
        return self._sort_clause_count

    @property
    def sort_by(self) -> SortClauses | None:
        return self._options.sort_by

    def set_sort_by(
        self,
        sort_by: str | Sequence[str] | Mapping[str, Sequence[SortDirection | str] | None] | None = None,
        options: Sequence[SortDirection | str] | None = None,
    ) -> QueryBuilder:
        """Set the field(s) used to sort results.

        Args:
            sort_by: A field name (with ``options`` as its directions), a
                sequence of field names, or a mapping of field name to
                directions. Fields are attribute names or one of the
                ``SORT_*`` constants. None restores the default order.
            options: Directions for a single string field.

        Raises:
            InvalidArgumentError: On too many clauses, an invalid field or
                more than one direction in a clause.
        """
        raw: list[tuple[object, object]]
        if sort_by is None:
            raw = []
        elif isinstance(sort_by, str):
            raw = [(sort_by, options)]
        elif isinstance(sort_by, Mapping):
            raw = list(sort_by.items())
        elif isinstance(sort_by, Sequence):
            raw = [(item, None) for item in sort_by]
        else:
            raise InvalidArgumentError(
                "Cannot set sort by; argument must be an array, string, or null."
            )

        if len(raw) > self._sort_clause_count:
            raise InvalidArgumentError(
                f"Cannot set sort by; argument contains more than "
                f"{self._sort_clause_count} clauses."
            )

        clauses: SortClauses = {}
        for number, (sort_field, directions) in enumerate(raw, start=1):
            if not self._is_valid_sort_field(sort_field):
                raise InvalidArgumentError(
                    f"Cannot set sort by; invalid field name in clause #{number}."
                )
            normalized = self._normalize_sort_options(directions)
            if normalized is False:
                raise InvalidArgumentError(
                    f"Cannot set sort by; invalid sort options in clause #{number}."
                )
            clauses[sort_field] = normalized  # type: ignore[index]

        self._options.sort_by = clauses or None
        return self

    @staticmethod
    def is_internal_sort_field(sort_field: object) -> bool:
        return isinstance(sort_field, str) and sort_field in INTERNAL_SORT_FIELDS

    def _is_valid_sort_field(self, sort_field: object) -> bool:
        if not isinstance(sort_field, str) or not sort_field:
            return False
        return self.is_internal_sort_field(sort_field) or is_valid_attribute_name(sort_field)

    @staticmethod
    def _normalize_sort_options(
        directions: object,
    ) -> tuple[SortDirection, ...] | None | bool:
        """Return normalized directions, None for default, or False if invalid."""
        if directions is None:
            return None
        if isinstance(directions, (str, SortDirection)):
            directions = [directions]
        if not isinstance(directions, Sequence):
            return False

        normalized: list[SortDirection] = []
        for direction in directions:
            try:
                normalized.append(SortDirection(direction))
            except ValueError:
                return False
        if len(normalized) > 1:
            return False
        return tuple(normalized)

    @property
    def reverse_order(self) -> bool:
        return self._options.reverse_order

    def set_reverse_order(self, reverse: bool = False) -> QueryBuilder:
        self._options.reverse_order = bool(reverse)
        return self

    # -- limits ---------------------------------------------------------

    @property
    def limit_fields(self) -> list[str] | None:
        return self._options.limit_fields

    def set_limit_fields(self, fields: str | Sequence[str] | None = None) -> QueryBuilder:
        """Restrict the fields returned by the server; None returns all."""
        self._options.limit_fields = _to_string_list(fields, "limiting fields")
        return self

    @property
    def limit_to_changelist(self) -> int | str | None:
        return self._options.limit_to_changelist

    def set_limit_to_changelist(self, changelist: int | str | None = None) -> QueryBuilder:
        """Limit results to files in a changelist ('default' or a number)."""
        if isinstance(changelist, str) and changelist != DEFAULT_CHANGE:
            try:
                changelist = int(changelist)
            except ValueError:
                changelist = -1
        if changelist is not None and not is_valid_change_number(changelist):
            raise InvalidArgumentError(
                "Cannot set limit to changelist; argument must be a changelist id, "
                "'default', or null."
            )
        self._options.limit_to_changelist = changelist
        return self

    @property
    def limit_to_needs_resolve(self) -> bool:
        return self._options.limit_to_needs_resolve

    def set_limit_to_needs_resolve(self, limit: bool | int | str = False) -> QueryBuilder:
        self._options.limit_to_needs_resolve = _to_flag(limit, "limit to needs resolve")
        return self

    @property
    def limit_to_opened(self) -> bool:
        return self._options.limit_to_opened

    def set_limit_to_opened(self, limit: bool | int | str = False) -> QueryBuilder:
        self._options.limit_to_opened = _to_flag(limit, "limit to opened files")
        return self

    @property
    def start_row(self) -> int | None:
        return self._options.start_row

    def set_start_row(self, row: int | str | None = None) -> QueryBuilder:
        self._options.start_row = _to_count(row, "start row")
        return self

    @property
    def max_results(self) -> int | None:
        return self._options.max_results

    def set_max_results(self, max_results: int | str | None = None) -> QueryBuilder:
        self._options.max_results = _to_count(max_results, "max results")
        return self

    # -- filespecs ------------------------------------------------------

    @property
    def filespecs(self) -> list[str] | None:
        return self._options.filespecs

    def set_filespecs(self, filespecs: str | Sequence[str] | None = None) -> QueryBuilder:
        """Set the filespecs to query (depot, client or local syntax)."""
        self._options.filespecs = _to_string_list(filespecs, "filespecs")
        return self

    def add_filespec(self, filespec: str) -> QueryBuilder:
        if not isinstance(filespec, str):
            raise InvalidArgumentError("Cannot add filespec; argument must be a string.")
        return self.add_filespecs([filespec])

    def add_filespecs(self, filespecs: Sequence[str]) -> QueryBuilder:
        if isinstance(filespecs, str) or not isinstance(filespecs, Sequence):
            raise InvalidArgumentError("Cannot add filespecs; argument must be an array.")
        if not all(isinstance(item, str) for item in filespecs):
            raise InvalidArgumentError("Cannot add filespecs; array must contain only strings.")
        self._options.filespecs = (self._options.filespecs or []) + list(filespecs)
        return self

    # -- compilation ----------------------------------------------------

    def compile_flags(self) -> list[str]:
        """Produce the ``p4 fstat`` flags for the current options.

        Limiting to the default changelist also turns on limit-to-opened,
        since the default change only has opened files.
        """
        flags: list[str] = []
        opts = self._options

        expression = opts.filter.render() if opts.filter is not None else ""
        if opts.start_row:
            expression = f"({expression}) & " if expression else ""
            expression += f"rowNumber > {opts.start_row}"

        if expression:
            flags += ["-F", expression]

        if opts.limit_fields:
            flags += ["-T", " ".join(opts.limit_fields)]

        if opts.max_results is not None:
            flags += ["-m", str(opts.max_results)]

        if opts.limit_to_changelist is not None:
            flags += ["-e", str(opts.limit_to_changelist)]
            if opts.limit_to_changelist == DEFAULT_CHANGE:
                opts.limit_to_opened = True

        if opts.limit_to_opened:
            flags.append("-Ro")

        if opts.limit_to_needs_resolve:
            flags.append("-Ru")

        if opts.sort_by:
            flags += self._compile_sort_flags(opts.sort_by)

        if opts.reverse_order:
            flags.append("-r")

        # include open-file and attribute fields
        flags.append("-Oal")

        logger.debug("Compiled fstat flags: %s", flags)
        return flags

    def _compile_sort_flags(self, clauses: SortClauses) -> list[str]:
        if len(clauses) == 1:
            ((sort_field, directions),) = clauses.items()
            if self.is_internal_sort_field(sort_field) and directions is None:
                return [_SHORT_SORT_FLAGS[sort_field]]

        expressions: list[str] = []
        for sort_field, directions in clauses.items():
            if "#" in sort_field:
                name = sort_field.replace("#", "")
            else:
                name = ATTRIBUTE_PREFIX + sort_field
            markers = directions or (SortDirection.ASCENDING,)
            expressions.append(f"{name}=" + "".join(d.value for d in markers))
        return ["-S", ",".join(expressions)]

    def fstat_args(self) -> list[str]:
        """Flags followed by the filespecs, ready for ``p4 fstat``."""
        return self.compile_flags() + list(self._options.filespecs or [])
