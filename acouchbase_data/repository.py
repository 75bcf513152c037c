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

import logging
from typing import (Any,
                    AsyncIterable,
                    AsyncIterator,
                    Generic,
                    Iterable,
                    Optional,
                    TypeVar,
                    Union)

from couchbase_data._utils import (drain,
                                   first,
                                   is_async_iterable,
                                   to_id_list,
                                   to_id_str,
                                   validate_not_none)
from couchbase_data.entity import CouchbaseEntityInformation
from couchbase_data.exceptions import InvalidArgumentException
from couchbase_data.operations import ReactiveCouchbaseOperations
from couchbase_data.query import Query, Sort

T = TypeVar('T')
ID = TypeVar('ID')

logger = logging.getLogger(__name__)

_ALL = object()
_EMPTY = object()


class ReactiveCouchbaseRepository(Generic[T, ID]):
    """Asynchronous CRUD repository for a single entity type.

    Every call validates its arguments, converts ids to ``str`` and delegates to the
    :class:`~couchbase_data.operations.ReactiveCouchbaseOperations` it was created with.

    Methods accepting several values take either a regular iterable, which is handed to the operations
    object in one call, or an async iterable, which is consumed item by item in arrival order.  Methods
    returning several values return an async iterator; their arguments are validated when the method is
    called, not when iteration starts.

    Args:
        entity_information (:class:`~couchbase_data.entity.CouchbaseEntityInformation`): Metadata about
            the managed entity type. It is registered with ``operations``.
        operations (:class:`~couchbase_data.operations.ReactiveCouchbaseOperations`): The store client
            calls are delegated to.

    Raises:
        :class:`~couchbase_data.exceptions.InvalidArgumentException`: If either argument is ``None``.

    Examples:

        Save and read back an entity::

            template = ReactiveCouchbaseTemplate(bucket.scope('inventory'), 'airline')
            repo = ReactiveCouchbaseRepository(CouchbaseEntityInformation(Airline), template)

            await repo.save(Airline(id='airline_10', name='40-Mile Air'))
            airline = await repo.find_by_id('airline_10')

        Stream every airline, sorted by name::

            async for airline in repo.find_all(Sort.by('name')):
                print(airline.name)
    """

    def __init__(self,
                 entity_information,  # type: CouchbaseEntityInformation[T]
                 operations,  # type: ReactiveCouchbaseOperations
                 ):
        validate_not_none(operations, 'ReactiveCouchbaseOperations must not be None!')
        validate_not_none(entity_information, 'CouchbaseEntityInformation must not be None!')
        self._entity_information = entity_information
        self._operations = operations
        operations.register(entity_information)

    @property
    def entity_information(self) -> CouchbaseEntityInformation[T]:
        """
        Returns:
            :class:`~couchbase_data.entity.CouchbaseEntityInformation`: Metadata about the managed entity.
        """
        return self._entity_information

    @property
    def operations(self) -> ReactiveCouchbaseOperations:
        """
        Returns:
            :class:`~couchbase_data.operations.ReactiveCouchbaseOperations`: The underlying store client.
        """
        return self._operations

    @property
    def _entity_type(self):
        return self._entity_information.entity_type

    async def save(self, entity  # type: T
                   ) -> T:
        """Inserts or replaces ``entity``.

        Returns:
            The saved entity, as returned by the operations object.
        """
        validate_not_none(entity, 'Entity must not be None!')
        logger.trace(f'Saving {type(entity).__name__} entity')
        return await self._operations.upsert_by_id(self._entity_type).one(entity)

    def save_all(self, entities  # type: Union[Iterable[T], AsyncIterable[T]]
                 ) -> AsyncIterator[T]:
        """Inserts or replaces every entity of ``entities``.

        Returns:
            AsyncIterator: The saved entities.
        """
        validate_not_none(entities, 'The given Iterable of entities must not be None!')
        if is_async_iterable(entities):
            return self._save_stream(entities)
        entities = self._as_list(entities, 'entities')
        logger.debug(f'Saving {len(entities)} {self._entity_type.__name__} entities')
        return self._operations.upsert_by_id(self._entity_type).all(entities)

    async def _save_stream(self, entities):
        async for entity in entities:
            yield await self.save(entity)

    async def find_by_id(self, id  # type: Union[ID, AsyncIterable[ID]]
                         ) -> Optional[T]:
        """Retrieves an entity by its id.

        Args:
            id: The id, or an async iterable whose first item is used as the id.

        Returns:
            The entity, ``None`` if it does not exist or ``id`` is an empty stream.
        """
        validate_not_none(id, 'The given id must not be None!')
        if is_async_iterable(id):
            id = await first(id, _EMPTY)
            if id is _EMPTY:
                return None
        doc_id = to_id_str(id)
        return await self._operations.find_by_id(self._entity_type).one(doc_id)

    async def exists_by_id(self, id  # type: Union[ID, AsyncIterable[ID]]
                           ) -> bool:
        """Checks whether an entity with the given id exists.

        Args:
            id: The id, or an async iterable whose first item is used as the id.

        Returns:
            bool: ``True`` if it exists, ``False`` otherwise or if ``id`` is an empty stream.
        """
        validate_not_none(id, 'The given id must not be None!')
        if is_async_iterable(id):
            id = await first(id, _EMPTY)
            if id is _EMPTY:
                return False
        doc_id = to_id_str(id)
        return await self._operations.exists_by_id().one(doc_id)

    def find_all(self, sort=None  # type: Optional[Sort]
                 ) -> AsyncIterator[T]:
        """Returns every entity of the managed type, ordered by ``sort`` if given."""
        query = Query().with_sort(sort)
        return self._operations.find_by_query(self._entity_type).matching(query).all()

    def find_all_by_id(self, ids  # type: Union[Iterable[ID], AsyncIterable[ID]]
                       ) -> AsyncIterator[T]:
        """Returns the entities with the given ids.  Ids without an entity are skipped."""
        validate_not_none(ids, 'The given Iterable of ids must not be None!')
        if is_async_iterable(ids):
            return self._find_stream(ids)
        converted_ids = to_id_list(self._as_list(ids, 'ids'))
        return self._operations.find_by_id(self._entity_type).all(converted_ids)

    async def _find_stream(self, ids):
        async for id in ids:
            entity = await self.find_by_id(id)
            if entity is not None:
                yield entity

    async def delete_by_id(self, id  # type: Union[ID, AsyncIterable[ID]]
                           ) -> None:
        """Deletes the entity with the given id.

        Args:
            id: The id, or an async iterable whose first item is used as the id.  An empty stream deletes
                nothing.
        """
        validate_not_none(id, 'The given id must not be None!')
        if is_async_iterable(id):
            id = await first(id, _EMPTY)
            if id is _EMPTY:
                return
        doc_id = to_id_str(id)
        await self._operations.remove_by_id().one(doc_id)

    async def delete(self, entity  # type: T
                     ) -> None:
        id = self._require_id(entity)
        await self._operations.remove_by_id().one(id)

    async def delete_all_by_id(self, ids  # type: Union[Iterable[ID], AsyncIterable[ID]]
                               ) -> None:
        validate_not_none(ids, 'The given Iterable of ids must not be None!')
        if is_async_iterable(ids):
            async for id in ids:
                await self.delete_by_id(id)
            return
        converted_ids = to_id_list(self._as_list(ids, 'ids'))
        await drain(self._operations.remove_by_id().all(converted_ids))

    async def delete_all(self, entities=_ALL  # type: Union[Iterable[T], AsyncIterable[T]]
                         ) -> None:
        """Deletes entities of the managed type.

        Called without arguments, every entity of the managed type is deleted.  Otherwise only the given
        entities are.

        Raises:
            :class:`~couchbase_data.exceptions.InvalidArgumentException`: If ``entities`` is ``None`` or one
                of the entities has no id.
        """
        if entities is _ALL:
            logger.debug(f'Deleting all {self._entity_type.__name__} entities')
            await drain(self._operations.remove_by_query(self._entity_type).all())
            return

        validate_not_none(entities, 'The given Iterable of entities must not be None!')
        if is_async_iterable(entities):
            async for entity in entities:
                await self.delete(entity)
            return
        ids = [self._require_id(e) for e in self._as_list(entities, 'entities')]
        await drain(self._operations.remove_by_id().all(ids))

    async def count(self) -> int:
        return await self._operations.find_by_query(self._entity_type).count()

    def _require_id(self, entity):
        validate_not_none(entity, 'Entity must not be None!')
        id = self._entity_information.get_id(entity)
        if id is None:
            raise InvalidArgumentException(f'{self._entity_type.__name__} has no id and cannot be deleted!')
        return id

    @staticmethod
    def _as_list(values,  # type: Any
                 name  # type: str
                 ):
        if isinstance(values, (str, bytes, dict)):
            raise InvalidArgumentException(f'Expected {name} to be an iterable of values instead of {values!r}.')
        try:
            return list(values)
        except TypeError:
            raise InvalidArgumentException(f'Expected {name} to be an iterable instead of {values!r}.') from None
