#  Copyright 2016-2023. Couchbase, Inc.
#  All Rights Reserved.
#
#  Licensed under the Apache License, Version 2.0 (the "License")
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

from __future__ import annotations

from enum import Enum
from typing import (Iterator,
                    Optional,
                    Tuple)

from couchbase_data._utils import (is_null_or_empty,
                                   validate_int)
from couchbase_data.exceptions import InvalidArgumentException


class Direction(Enum):
    """
    Sort direction of an :class:`.Order`.
    """
    ASC = 'ASC'
    DESC = 'DESC'


class Order:
    """A property to sort by and the direction to sort in."""

    def __init__(self,
                 prop,  # type: str
                 direction=Direction.ASC  # type: Direction
                 ):
        if not isinstance(prop, str) or is_null_or_empty(prop):
            raise InvalidArgumentException('Sort property must be a non-empty string!')
        if not isinstance(direction, Direction):
            raise InvalidArgumentException(f'Expected direction to be a Direction instead of {direction!r}.')
        self._property = prop
        self._direction = direction

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def is_ascending(self) -> bool:
        return self._direction == Direction.ASC

    def with_direction(self, direction  # type: Direction
                       ) -> Order:
        return Order(self._property, direction)

    @classmethod
    def asc(cls, prop  # type: str
            ) -> Order:
        return cls(prop, Direction.ASC)

    @classmethod
    def desc(cls, prop  # type: str
             ) -> Order:
        return cls(prop, Direction.DESC)

    def __eq__(self, other):
        if not isinstance(other, Order):
            return NotImplemented
        return self._property == other._property and self._direction == other._direction

    def __hash__(self):
        return hash((self._property, self._direction))

    def __repr__(self):
        return f'{self._property}: {self._direction.value}'

    # defined last, the name shadows the builtin for the rest of the class body
    @property
    def property(self) -> str:
        return self._property


class Sort:
    """An immutable, ordered collection of :class:`.Order` instances.

    An empty ``Sort`` is falsy and means "unsorted".

    Examples:

        Sort by name, then most recent first::

            sort = Sort.by('name').and_(Sort.by('created').descending())
    """

    def __init__(self, orders=()  # type: Tuple[Order, ...]
                 ):
        orders = tuple(orders)
        for order in orders:
            if not isinstance(order, Order):
                raise InvalidArgumentException(f'Expected an Order instead of {order!r}.')
        self._orders = orders

    @classmethod
    def by(cls, *props  # type: str
           ) -> Sort:
        return cls(tuple(Order(p) for p in props))

    @classmethod
    def by_orders(cls, *orders  # type: Order
                  ) -> Sort:
        return cls(orders)

    @classmethod
    def unsorted(cls) -> Sort:
        return cls()

    @property
    def orders(self) -> Tuple[Order, ...]:
        return self._orders

    @property
    def is_sorted(self) -> bool:
        return len(self._orders) > 0

    def ascending(self) -> Sort:
        return Sort(tuple(o.with_direction(Direction.ASC) for o in self._orders))

    def descending(self) -> Sort:
        return Sort(tuple(o.with_direction(Direction.DESC) for o in self._orders))

    def and_(self, other  # type: Sort
             ) -> Sort:
        if other is None:
            raise InvalidArgumentException('Sort must not be None!')
        return Sort(self._orders + tuple(other))

    def get_order_for(self, prop  # type: str
                      ) -> Optional[Order]:
        for order in self._orders:
            if order.property == prop:
                return order
        return None

    def __iter__(self) -> Iterator[Order]:
        return iter(self._orders)

    def __len__(self):
        return len(self._orders)

    def __bool__(self):
        return self.is_sorted

    def __eq__(self, other):
        if not isinstance(other, Sort):
            return NotImplemented
        return self._orders == other._orders

    def __hash__(self):
        return hash(self._orders)

    def __repr__(self):
        if not self._orders:
            return 'UNSORTED'
        return ', '.join(repr(o) for o in self._orders)


class Query:
    """Immutable description of which documents of an entity type to fetch.

    Only ordering and paging are modelled: the operations implementation decides how a ``Query`` is
    executed.
    """

    def __init__(self,
                 sort=None,  # type: Optional[Sort]
                 skip=0,  # type: int
                 limit=None  # type: Optional[int]
                 ):
        if sort is not None and not isinstance(sort, Sort):
            raise InvalidArgumentException(f'Expected sort to be a Sort instead of {sort!r}.')
        self._sort = sort if sort is not None else Sort.unsorted()
        self._skip = validate_int(skip, 'skip')
        self._limit = validate_int(limit, 'limit') if limit is not None else None

    @property
    def sort(self) -> Sort:
        return self._sort

    @property
    def skip(self) -> int:
        return self._skip

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    def with_sort(self, sort  # type: Optional[Sort]
                  ) -> Query:
        """Returns a copy of this query additionally ordered by ``sort``.

        ``None`` or an unsorted ``Sort`` leave the ordering untouched.
        """
        if not sort:
            return self
        return Query(self._sort.and_(sort), self._skip, self._limit)

    def skip_by(self, skip  # type: int
                ) -> Query:
        return Query(self._sort, skip, self._limit)

    def limit_to(self, limit  # type: Optional[int]
                 ) -> Query:
        return Query(self._sort, self._skip, limit)

    def __eq__(self, other):
        if not isinstance(other, Query):
            return NotImplemented
        return (self._sort, self._skip, self._limit) == (other._sort, other._skip, other._limit)

    def __hash__(self):
        return hash((self._sort, self._skip, self._limit))

    def __repr__(self):
        return f'Query(sort={self._sort!r}, skip={self._skip}, limit={self._limit})'
