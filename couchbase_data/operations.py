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

"""
The narrow interface a repository uses to reach a document store.

Single-valued operations are coroutines; multi-valued operations return async iterators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import (TYPE_CHECKING,
                    Any,
                    AsyncIterator,
                    Dict,
                    Generic,
                    List,
                    Optional,
                    Type,
                    TypeVar)

from couchbase_data.query import Query

if TYPE_CHECKING:
    from couchbase_data.entity import CouchbaseEntityInformation

T = TypeVar('T')


class RemoveResult:
    """Outcome of removing a single document."""

    def __init__(self,
                 id,  # type: str
                 cas=None,  # type: Optional[int]
                 mutation_token=None  # type: Optional[Any]
                 ):
        self._id = id
        self._cas = cas
        self._mutation_token = mutation_token

    @property
    def id(self) -> str:
        return self._id

    @property
    def cas(self) -> Optional[int]:
        return self._cas

    @property
    def mutation_token(self) -> Optional[Any]:
        return self._mutation_token

    def __eq__(self, other):
        if not isinstance(other, RemoveResult):
            return NotImplemented
        return (self._id, self._cas) == (other._id, other._cas)

    def __hash__(self):
        return hash((self._id, self._cas))

    def __repr__(self):
        return f'RemoveResult(id={self._id!r}, cas={self._cas})'


class ReactiveUpsertById(ABC, Generic[T]):

    @abstractmethod
    async def one(self, entity  # type: T
                  ) -> T:
        """Inserts or replaces ``entity`` and returns the stored entity."""
        raise NotImplementedError()

    @abstractmethod
    def all(self, entities  # type: List[T]
            ) -> AsyncIterator[T]:
        raise NotImplementedError()


class ReactiveFindById(ABC, Generic[T]):

    @abstractmethod
    async def one(self, id  # type: str
                  ) -> Optional[T]:
        """Returns the entity stored under ``id``, ``None`` if there is none."""
        raise NotImplementedError()

    @abstractmethod
    def all(self, ids  # type: List[str]
            ) -> AsyncIterator[T]:
        """Emits the entities found for ``ids``. Ids without a document are skipped."""
        raise NotImplementedError()


class ReactiveExistsById(ABC):

    @abstractmethod
    async def one(self, id  # type: str
                  ) -> bool:
        raise NotImplementedError()

    @abstractmethod
    async def all(self, ids  # type: List[str]
                  ) -> Dict[str, bool]:
        raise NotImplementedError()


class ReactiveRemoveById(ABC):

    @abstractmethod
    async def one(self, id  # type: str
                  ) -> RemoveResult:
        raise NotImplementedError()

    @abstractmethod
    def all(self, ids  # type: List[str]
            ) -> AsyncIterator[RemoveResult]:
        raise NotImplementedError()


class ReactiveFindByQuery(ABC, Generic[T]):

    @abstractmethod
    def matching(self, query  # type: Query
                 ) -> ReactiveFindByQuery[T]:
        """Returns a new operation restricted by ``query``."""
        raise NotImplementedError()

    @abstractmethod
    def all(self) -> AsyncIterator[T]:
        raise NotImplementedError()

    @abstractmethod
    async def one(self) -> Optional[T]:
        """Returns the only matching entity, ``None`` if nothing matches.

        Raises:
            :class:`~couchbase_data.exceptions.DataAccessException`: If more than one entity matches.
        """
        raise NotImplementedError()

    @abstractmethod
    async def first(self) -> Optional[T]:
        raise NotImplementedError()

    @abstractmethod
    async def count(self) -> int:
        raise NotImplementedError()

    @abstractmethod
    async def exists(self) -> bool:
        raise NotImplementedError()


class ReactiveRemoveByQuery(ABC, Generic[T]):

    @abstractmethod
    def matching(self, query  # type: Query
                 ) -> ReactiveRemoveByQuery[T]:
        raise NotImplementedError()

    @abstractmethod
    def all(self) -> AsyncIterator[RemoveResult]:
        raise NotImplementedError()


class ReactiveCouchbaseOperations(ABC):
    """Entry points to the document store used by
    :class:`~acouchbase_data.repository.ReactiveCouchbaseRepository`.

    Ids are always passed as ``str``.
    """

    def register(self, entity_information  # type: CouchbaseEntityInformation
                 ) -> None:
        """Makes the operations use ``entity_information`` for its entity type.

        Called by the repository on creation.  Operations keeping no mapping metadata ignore it.
        """

    @abstractmethod
    def upsert_by_id(self, domain_type  # type: Type[T]
                     ) -> ReactiveUpsertById[T]:
        raise NotImplementedError()

    @abstractmethod
    def find_by_id(self, domain_type  # type: Type[T]
                   ) -> ReactiveFindById[T]:
        raise NotImplementedError()

    @abstractmethod
    def exists_by_id(self) -> ReactiveExistsById:
        raise NotImplementedError()

    @abstractmethod
    def remove_by_id(self) -> ReactiveRemoveById:
        raise NotImplementedError()

    @abstractmethod
    def find_by_query(self, domain_type  # type: Type[T]
                      ) -> ReactiveFindByQuery[T]:
        raise NotImplementedError()

    @abstractmethod
    def remove_by_query(self, domain_type  # type: Type[T]
                        ) -> ReactiveRemoveByQuery[T]:
        raise NotImplementedError()
