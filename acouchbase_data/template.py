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

import asyncio
import logging
from functools import wraps
from typing import (TYPE_CHECKING,
                    Any,
                    AsyncIterator,
                    Awaitable,
                    Dict,
                    List,
                    Optional,
                    Type,
                    TypeVar)

from couchbase.exceptions import (AmbiguousTimeoutException,
                                  CasMismatchException,
                                  CouchbaseException,
                                  DocumentExistsException,
                                  DocumentNotFoundException,
                                  TemporaryFailException,
                                  TimeoutException,
                                  UnAmbiguousTimeoutException)
from couchbase.options import (ExistsOptions,
                               GetOptions,
                               QueryOptions,
                               RemoveOptions,
                               UpsertOptions)

from acouchbase_data.repository import ReactiveCouchbaseRepository
from couchbase_data._utils import (is_null_or_empty,
                                   to_id_str,
                                   validate_not_none)
from couchbase_data.convert import (META_CAS_KEY,
                                    META_ID_KEY,
                                    MappingCouchbaseConverter)
from couchbase_data.entity import CouchbaseEntityInformation
from couchbase_data.exceptions import (DataAccessException,
                                       DataRetrievalFailureException,
                                       InvalidArgumentException,
                                       OptimisticLockingFailureException,
                                       TransientDataAccessException,
                                       UncategorizedCouchbaseException)
from couchbase_data.operations import (ReactiveCouchbaseOperations,
                                       ReactiveExistsById,
                                       ReactiveFindById,
                                       ReactiveFindByQuery,
                                       ReactiveRemoveById,
                                       ReactiveRemoveByQuery,
                                       ReactiveUpsertById,
                                       RemoveResult)
from couchbase_data.options import TemplateOptions
from couchbase_data.query import Query

if TYPE_CHECKING:
    from acouchbase.scope import AsyncScope

T = TypeVar('T')

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = '_default'

_EXCEPTION_MAP = [
    ((DocumentNotFoundException,), DataRetrievalFailureException),
    ((DocumentExistsException, CasMismatchException), OptimisticLockingFailureException),
    ((AmbiguousTimeoutException,
      UnAmbiguousTimeoutException,
      TimeoutException,
      TemporaryFailException), TransientDataAccessException),
]


def translate_exception(ex,  # type: CouchbaseException
                        **context  # type: Any
                        ) -> DataAccessException:
    """Maps an exception raised by the Couchbase SDK onto the
    :class:`~couchbase_data.exceptions.DataAccessException` hierarchy.
    """
    exc_cls = UncategorizedCouchbaseException
    for sdk_types, mapped_cls in _EXCEPTION_MAP:
        if isinstance(ex, sdk_types):
            exc_cls = mapped_cls
            break
    message = getattr(ex, 'message', None) or type(ex).__name__
    return exc_cls(message, context=context or None, exc_info={'inner_cause': ex})


def _translate_exceptions(fn):
    @wraps(fn)
    async def wrapped(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except CouchbaseException as ex:
            raise translate_exception(ex, operation=fn.__qualname__) from ex
    return wrapped


class ReactiveCouchbaseTemplate(ReactiveCouchbaseOperations):
    """:class:`~couchbase_data.operations.ReactiveCouchbaseOperations` backed by an ``acouchbase`` scope.

    Key-value operations go to a single collection of the scope; query based operations run N1QL
    statements against that collection, selecting documents by the entity's type alias.

    .. note::
        Query based operations require a primary index, or an index on the type key, on the collection.

    Args:
        scope (:class:`~acouchbase.scope.AsyncScope`): The scope holding the collection. The scope's bucket
            must be connected.
        collection_name (str, optional): Name of the collection documents are stored in. Defaults to
            ``_default``.
        converter (:class:`~couchbase_data.convert.MappingCouchbaseConverter`, optional): Converter used to
            map entities. Defaults to a converter using the type key of ``options``.
        options (:class:`~couchbase_data.options.TemplateOptions`, optional): Options for this template.

    Raises:
        :class:`~couchbase_data.exceptions.InvalidArgumentException`: If ``scope`` is ``None`` or the
            converter and options disagree on the type key.

    Examples:

        Create a template for the ``airline`` collection::

            from acouchbase.cluster import Cluster
            from couchbase.auth import PasswordAuthenticator
            from couchbase.options import ClusterOptions

            cluster = await Cluster.connect('couchbase://localhost',
                                            ClusterOptions(PasswordAuthenticator('Administrator', 'password')))
            bucket = cluster.bucket('travel-sample')
            await bucket.on_connect()
            template = ReactiveCouchbaseTemplate(bucket.scope('inventory'), 'airline')
    """

    def __init__(self,
                 scope,  # type: AsyncScope
                 collection_name=DEFAULT_COLLECTION,  # type: str
                 converter=None,  # type: Optional[MappingCouchbaseConverter]
                 options=None  # type: Optional[TemplateOptions]
                 ):
        validate_not_none(scope, 'Scope must not be None!')
        if not isinstance(collection_name, str) or is_null_or_empty(collection_name):
            raise InvalidArgumentException('Collection name must be a non-empty string!')
        if options is None:
            options = TemplateOptions()
        elif not isinstance(options, TemplateOptions):
            options = TemplateOptions(**options)
        if converter is None:
            converter = MappingCouchbaseConverter(options.type_key)
        elif converter.type_key != options.type_key:
            raise InvalidArgumentException((f'Converter type key {converter.type_key!r} does not match '
                                            f'template type key {options.type_key!r}.'))

        self._scope = scope
        self._collection_name = collection_name
        self._collection = scope.collection(collection_name)
        self._converter = converter
        self._options = options

    @property
    def scope(self):
        return self._scope

    @property
    def collection(self):
        return self._collection

    @property
    def converter(self) -> MappingCouchbaseConverter:
        return self._converter

    @property
    def options(self) -> TemplateOptions:
        return self._options

    @property
    def keyspace(self) -> str:
        """
        Returns:
            str: The fully qualified, escaped name of the collection, e.g. ```travel-sample`.`inventory`.`airline```.
        """
        return f'`{self._scope.bucket_name}`.`{self._scope.name}`.`{self._collection_name}`'

    def register(self, entity_information  # type: CouchbaseEntityInformation
                 ) -> None:
        """Makes the template map ``entity_information.entity_type`` with the given metadata."""
        self._converter.register(entity_information)

    def entity_information(self, domain_type  # type: Type[T]
                           ) -> CouchbaseEntityInformation[T]:
        return self._converter.get_entity_information(domain_type)

    def repository(self, entity_information  # type: CouchbaseEntityInformation[T]
                   ) -> ReactiveCouchbaseRepository[T, Any]:
        """Creates a repository for ``entity_information.entity_type`` backed by this template.

        Args:
            entity_information (:class:`~couchbase_data.entity.CouchbaseEntityInformation`): Metadata about
                the managed entity type. It replaces any metadata registered earlier for that type.

        Returns:
            :class:`~acouchbase_data.repository.ReactiveCouchbaseRepository`: The repository.

        Examples:

            Manage airports keyed by their code::

                repo = template.repository(CouchbaseEntityInformation(Airport, id_attribute='code'))
                await repo.save(Airport('SFO', 'San Francisco'))
        """
        return ReactiveCouchbaseRepository(entity_information, self)

    def upsert_by_id(self, domain_type  # type: Type[T]
                     ) -> ReactiveUpsertById[T]:
        return _UpsertById(self, self.entity_information(domain_type))

    def find_by_id(self, domain_type  # type: Type[T]
                   ) -> ReactiveFindById[T]:
        return _FindById(self, self.entity_information(domain_type))

    def exists_by_id(self) -> ReactiveExistsById:
        return _ExistsById(self)

    def remove_by_id(self) -> ReactiveRemoveById:
        return _RemoveById(self)

    def find_by_query(self, domain_type  # type: Type[T]
                      ) -> ReactiveFindByQuery[T]:
        return _FindByQuery(self, self.entity_information(domain_type), Query())

    def remove_by_query(self, domain_type  # type: Type[T]
                        ) -> ReactiveRemoveByQuery[T]:
        return _RemoveByQuery(self, self.entity_information(domain_type), Query())

    def _kv_options(self, **kwargs):
        opts = self._options.kv_options()
        opts.update({k: v for k, v in kwargs.items() if v is not None})
        return opts

    def _query(self,
               statement,  # type: str
               entity_information  # type: CouchbaseEntityInformation
               ):
        """**INTERNAL**"""
        opts = {
            'named_parameters': {'type_alias': entity_information.type_alias},
            'scan_consistency': self._options.scan_consistency,
        }
        if self._options.timeout:
            opts['timeout'] = self._options.timeout
        logger.debug(f'Executing query: {statement}')
        return self._scope.query(statement, QueryOptions(**opts))

    def _where_type(self) -> str:
        return f'WHERE d.`{self._options.type_key}` = $type_alias'

    def _render_order_by(self,
                         query,  # type: Query
                         entity_information  # type: CouchbaseEntityInformation
                         ) -> str:
        if not query.sort:
            return ''
        terms = []
        for order in query.sort:
            if order.property == entity_information.id_attribute:
                path = 'META(d).id'
            else:
                path = 'd.' + '.'.join(_escape_identifier(p) for p in order.property.split('.'))
            terms.append(f'{path} {order.direction.value}')
        return ' ORDER BY ' + ', '.join(terms)

    @staticmethod
    def _render_paging(query  # type: Query
                       ) -> str:
        paging = ''
        if query.limit is not None:
            paging += f' LIMIT {query.limit}'
        if query.skip:
            paging += f' OFFSET {query.skip}'
        return paging

    def select_statement(self,
                         query,  # type: Query
                         entity_information  # type: CouchbaseEntityInformation
                         ) -> str:
        return (f'SELECT META(d).id AS {META_ID_KEY}, META(d).cas AS {META_CAS_KEY}, d.* '
                f'FROM {self.keyspace} AS d {self._where_type()}'
                f'{self._render_order_by(query, entity_information)}{self._render_paging(query)}')

    def count_statement(self, entity_information  # type: CouchbaseEntityInformation
                        ) -> str:
        return f'SELECT RAW COUNT(*) FROM {self.keyspace} AS d {self._where_type()}'

    def delete_statement(self,
                         query,  # type: Query
                         entity_information  # type: CouchbaseEntityInformation
                         ) -> str:
        if query.skip:
            raise InvalidArgumentException('Remove by query does not support skip.')
        limit = f' LIMIT {query.limit}' if query.limit is not None else ''
        return (f'DELETE FROM {self.keyspace} AS d {self._where_type()}{limit} '
                f'RETURNING META(d).id AS {META_ID_KEY}, META(d).cas AS {META_CAS_KEY}')


def _escape_identifier(name  # type: str
                       ) -> str:
    if is_null_or_empty(name) or '`' in name:
        raise InvalidArgumentException(f'Invalid property name {name!r}.')
    return f'`{name}`'


async def _settle(calls  # type: List[Awaitable[Any]]
                  ) -> List[Any]:
    """**INTERNAL**

    Awaits every call concurrently. Once all of them have completed, raises the first failure in input
    order, otherwise returns the results in input order.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        if len(failures) > 1:
            logger.debug(f'{len(failures)} of {len(results)} calls failed, raising the first failure')
        raise failures[0]
    return results


class _UpsertById(ReactiveUpsertById[T]):

    def __init__(self,
                 template,  # type: ReactiveCouchbaseTemplate
                 entity_information  # type: CouchbaseEntityInformation[T]
                 ):
        self._template = template
        self._entity_information = entity_information

    @_translate_exceptions
    async def one(self, entity  # type: T
                  ) -> T:
        validate_not_none(entity, 'Entity must not be None!')
        doc_id, content = self._template.converter.write(entity, self._entity_information)
        opts = self._template._kv_options(expiry=self._entity_information.expiry)
        await self._template.collection.upsert(doc_id, content, UpsertOptions(**opts))
        logger.trace(f'Upserted document {doc_id!r}')
        return entity

    async def all(self, entities  # type: List[T]
                  ) -> AsyncIterator[T]:
        results = await _settle([self.one(e) for e in entities])
        for entity in results:
            yield entity


class _FindById(ReactiveFindById[T]):

    def __init__(self,
                 template,  # type: ReactiveCouchbaseTemplate
                 entity_information  # type: CouchbaseEntityInformation[T]
                 ):
        self._template = template
        self._entity_information = entity_information

    @_translate_exceptions
    async def one(self, id  # type: str
                  ) -> Optional[T]:
        doc_id = to_id_str(id)
        try:
            res = await self._template.collection.get(doc_id, GetOptions(**self._template._kv_options()))
        except DocumentNotFoundException:
            logger.trace(f'Document {doc_id!r} not found')
            return None
        return self._template.converter.read(self._entity_information, doc_id, res.content_as[dict])

    async def all(self, ids  # type: List[str]
                  ) -> AsyncIterator[T]:
        results = await _settle([self.one(i) for i in ids])
        for entity in results:
            if entity is not None:
                yield entity


class _ExistsById(ReactiveExistsById):

    def __init__(self, template  # type: ReactiveCouchbaseTemplate
                 ):
        self._template = template

    @_translate_exceptions
    async def one(self, id  # type: str
                  ) -> bool:
        res = await self._template.collection.exists(to_id_str(id), ExistsOptions(**self._template._kv_options()))
        return res.exists

    async def all(self, ids  # type: List[str]
                  ) -> Dict[str, bool]:
        ids = [to_id_str(i) for i in ids]
        results = await _settle([self.one(i) for i in ids])
        return dict(zip(ids, results))


class _RemoveById(ReactiveRemoveById):

    def __init__(self, template  # type: ReactiveCouchbaseTemplate
                 ):
        self._template = template

    @_translate_exceptions
    async def one(self, id  # type: str
                  ) -> RemoveResult:
        doc_id = to_id_str(id)
        res = await self._template.collection.remove(doc_id, RemoveOptions(**self._template._kv_options()))
        logger.trace(f'Removed document {doc_id!r}')
        return RemoveResult(doc_id, res.cas)

    async def all(self, ids  # type: List[str]
                  ) -> AsyncIterator[RemoveResult]:
        results = await _settle([self.one(i) for i in ids])
        for result in results:
            yield result


class _QueryOperation:

    def __init__(self,
                 template,  # type: ReactiveCouchbaseTemplate
                 entity_information,  # type: CouchbaseEntityInformation[T]
                 query  # type: Query
                 ):
        validate_not_none(query, 'Query must not be None!')
        self._template = template
        self._entity_information = entity_information
        self._query = query

    async def _rows(self, statement  # type: str
                    ) -> AsyncIterator[Any]:
        try:
            result = self._template._query(statement, self._entity_information)
            async for row in result.rows():
                yield row
        except CouchbaseException as ex:
            raise translate_exception(ex, statement=statement) from ex


class _FindByQuery(_QueryOperation, ReactiveFindByQuery[T]):

    def matching(self, query  # type: Query
                 ) -> ReactiveFindByQuery[T]:
        return _FindByQuery(self._template, self._entity_information, query)

    async def all(self) -> AsyncIterator[T]:
        statement = self._template.select_statement(self._query, self._entity_information)
        converter = self._template.converter
        async for row in self._rows(statement):
            yield converter.read(self._entity_information, row[META_ID_KEY], row)

    async def _limited(self, limit  # type: int
                       ) -> List[T]:
        if self._query.limit is not None:
            limit = min(limit, self._query.limit)
        return [e async for e in self.matching(self._query.limit_to(limit)).all()]

    async def one(self) -> Optional[T]:
        entities = await self._limited(2)
        if len(entities) > 1:
            raise DataAccessException((f'Expected at most one {self._entity_information.entity_type.__name__} '
                                       'but the query matched more.'))
        return entities[0] if entities else None

    async def first(self) -> Optional[T]:
        entities = await self._limited(1)
        return entities[0] if entities else None

    async def count(self) -> int:
        statement = self._template.count_statement(self._entity_information)
        rows = [r async for r in self._rows(statement)]
        return int(rows[0]) if rows else 0

    async def exists(self) -> bool:
        return await self.first() is not None


class _RemoveByQuery(_QueryOperation, ReactiveRemoveByQuery[T]):

    def matching(self, query  # type: Query
                 ) -> ReactiveRemoveByQuery[T]:
        return _RemoveByQuery(self._template, self._entity_information, query)

    async def all(self) -> AsyncIterator[RemoveResult]:
        statement = self._template.delete_statement(self._query, self._entity_information)
        async for row in self._rows(statement):
            yield RemoveResult(row[META_ID_KEY], row.get(META_CAS_KEY, None))
