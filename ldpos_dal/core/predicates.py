"""
Typed predicate builder for storage queries.

Each table declares which columns may appear in a filter and which may be
used for ordering. A Where is a conjunction of constraints; either() adds a
disjunction of nested Where objects as one more conjunct.
"""
import operator
from typing import Any, Callable, Dict, FrozenSet, List, Sequence, Tuple

from sqlalchemy import Table, and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from ..errors import UnknownColumnError

FILTERABLE_COLUMNS: Dict[str, FrozenSet[str]] = {
    'accounts': frozenset({'address', 'type'}),
    'delegates': frozenset({'address'}),
    'ballots': frozenset({'id', 'voter_address', 'delegate_address', 'type', 'active'}),
    'multisig_memberships': frozenset({'multisig_account_address', 'member_address'}),
    'blocks': frozenset({'id', 'height', 'timestamp', 'synched'}),
    'transactions': frozenset({
        'id', 'block_id', 'index_in_block', 'sender_address', 'recipient_address', 'timestamp', 'type'
    }),
    'store': frozenset({'key'}),
}

SORTABLE_COLUMNS: Dict[str, FrozenSet[str]] = {
    'accounts': frozenset({'address', 'balance'}),
    'delegates': frozenset({'address', 'vote_weight'}),
    'ballots': frozenset({'id'}),
    'multisig_memberships': frozenset({'member_address'}),
    'blocks': frozenset({'height', 'timestamp'}),
    'transactions': frozenset({'timestamp', 'index_in_block', 'id'}),
    'store': frozenset({'key'}),
}

# Non-negative integers stored as decimal text.
NUMERIC_TEXT_COLUMNS: Dict[str, FrozenSet[str]] = {
    'accounts': frozenset({'balance'}),
    'delegates': frozenset({'vote_weight'}),
}

_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    '=': operator.eq,
    '>': operator.gt,
    '>=': operator.ge,
    '<': operator.lt,
    '<=': operator.le,
}

OrderBy = Sequence[Tuple[str, str]]


def check_sortable(table: str, order_by: OrderBy) -> None:
    for column, _direction in order_by:
        if column not in SORTABLE_COLUMNS.get(table, frozenset()):
            raise UnknownColumnError(table, column)


class Where:
    """Conjunction of equality and range constraints on one table."""

    def __init__(self, table: str):
        if table not in FILTERABLE_COLUMNS:
            raise UnknownColumnError(table, '*')
        self.table = table
        self._constraints: List[Tuple[str, str, Any]] = []
        self._alternatives: List[Tuple['Where', ...]] = []

    @classmethod
    def matching(cls, table: str, **values: Any) -> 'Where':
        where = cls(table)
        for column, value in values.items():
            where.eq(column, value)
        return where

    def _add(self, column: str, op: str, value: Any) -> 'Where':
        if column not in FILTERABLE_COLUMNS[self.table]:
            raise UnknownColumnError(self.table, column)
        self._constraints.append((column, op, value))
        return self

    def eq(self, column: str, value: Any) -> 'Where':
        return self._add(column, '=', value)

    def gt(self, column: str, value: Any) -> 'Where':
        return self._add(column, '>', value)

    def gte(self, column: str, value: Any) -> 'Where':
        return self._add(column, '>=', value)

    def lt(self, column: str, value: Any) -> 'Where':
        return self._add(column, '<', value)

    def lte(self, column: str, value: Any) -> 'Where':
        return self._add(column, '<=', value)

    def either(self, *alternatives: 'Where') -> 'Where':
        for alternative in alternatives:
            if alternative.table != self.table:
                raise ValueError(
                    f"Cannot combine predicates on {alternative.table} and {self.table}"
                )
        self._alternatives.append(tuple(alternatives))
        return self

    def compile(self, table: Table) -> ColumnElement:
        clauses = [
            _OPERATORS[op](table.c[column], value)
            for column, op, value in self._constraints
        ]
        for alternatives in self._alternatives:
            clauses.append(or_(*(alternative.compile(table) for alternative in alternatives)))
        if not clauses:
            return true()
        return and_(*clauses)

    def __repr__(self) -> str:
        return f"Where({self.table!r}, {self._constraints!r})"
