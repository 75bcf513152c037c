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

import copy
import uuid

import pytest

from acouchbase_data.repository import ReactiveCouchbaseRepository
from couchbase_data.entity import CouchbaseEntityInformation
from couchbase_data.exceptions import InvalidArgumentException
from couchbase_data.query import (Direction,
                                  Query,
                                  Sort)

from ._test_utils import (AIRLINES,
                          Airline,
                          Call,
                          FakeOperations,
                          async_stream)


class RepositoryTests:

    @pytest.fixture(name='entity_info')
    def entity_information(self):
        return CouchbaseEntityInformation(Airline, type_alias='airline')

    @pytest.fixture(name='ops')
    def operations(self, entity_info):
        ops = FakeOperations(entity_info)
        ops.seed(AIRLINES)
        return ops

    @pytest.fixture(name='repo')
    def repository(self, entity_info, ops):
        return ReactiveCouchbaseRepository(entity_info, ops)

    @pytest.fixture(name='new_airline')
    def new_airline(self):
        return Airline(f'airline_{uuid.uuid4()}', 'Jet Set', 'Canada', 'JSET')

    def test_requires_operations(self, entity_info):
        with pytest.raises(InvalidArgumentException):
            ReactiveCouchbaseRepository(entity_info, None)

    def test_requires_entity_information(self, ops):
        with pytest.raises(InvalidArgumentException):
            ReactiveCouchbaseRepository(None, ops)

    def test_accessors(self, repo, entity_info, ops):
        assert repo.entity_information is entity_info
        assert repo.operations is ops

    @pytest.mark.asyncio
    async def test_save(self, repo, ops, new_airline):
        saved = await repo.save(new_airline)
        assert saved is new_airline
        assert ops.calls == [Call('upsert_by_id', Airline), Call('upsert_by_id.one', new_airline)]
        assert ops.store[new_airline.id] == new_airline

    @pytest.mark.asyncio
    async def test_save_none(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.save(None)
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_save_all_iterable(self, repo, ops):
        airlines = [Airline(f'airline_{i}', f'Airline {i}') for i in range(3)]
        saved = [a async for a in repo.save_all(a for a in airlines)]
        assert saved == airlines
        # an eager collection is handed over in a single call
        assert ops.call_names() == ['upsert_by_id', 'upsert_by_id.all']
        assert ops.calls[1].args == (airlines,)

    @pytest.mark.asyncio
    async def test_save_all_stream(self, repo, ops):
        airlines = [Airline(f'airline_{i}', f'Airline {i}') for i in range(3)]
        saved = [a async for a in repo.save_all(async_stream(airlines))]
        assert saved == airlines
        assert ops.call_names() == ['upsert_by_id', 'upsert_by_id.one'] * 3
        assert [c.args[0] for c in ops.calls if c.name == 'upsert_by_id.one'] == airlines

    def test_save_all_none_raises_at_call_time(self, repo):
        with pytest.raises(InvalidArgumentException):
            repo.save_all(None)

    def test_save_all_rejects_non_iterable(self, repo):
        with pytest.raises(InvalidArgumentException):
            repo.save_all(42)
        with pytest.raises(InvalidArgumentException):
            repo.save_all('airline_10')

    @pytest.mark.asyncio
    async def test_find_by_id(self, repo, ops):
        airline = await repo.find_by_id('airline_10')
        assert airline == AIRLINES[0]
        assert ops.calls == [Call('find_by_id', Airline), Call('find_by_id.one', 'airline_10')]

    @pytest.mark.asyncio
    async def test_find_by_id_not_found(self, repo):
        assert await repo.find_by_id('not-a-key') is None

    @pytest.mark.asyncio
    async def test_find_by_id_stringifies(self, entity_info, ops):
        repo = ReactiveCouchbaseRepository(entity_info, ops)
        await repo.find_by_id(10123)
        await repo.find_by_id(uuid.UUID(int=1))
        ids = [c.args[0] for c in ops.calls if c.name == 'find_by_id.one']
        assert ids == ['10123', '00000000-0000-0000-0000-000000000001']

    @pytest.mark.asyncio
    async def test_find_by_id_none(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.find_by_id(None)
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_find_by_id_stream(self, repo, ops):
        airline = await repo.find_by_id(async_stream(['airline_1191', 'airline_10']))
        assert airline == AIRLINES[3]
        # only the first id of the stream is used
        assert [c for c in ops.calls if c.name == 'find_by_id.one'] == [Call('find_by_id.one', 'airline_1191')]

    @pytest.mark.asyncio
    async def test_find_by_id_empty_stream(self, repo, ops):
        assert await repo.find_by_id(async_stream([])) is None
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_stream_with_none_first_id(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.find_by_id(async_stream([None, 'airline_10']))
        with pytest.raises(InvalidArgumentException):
            await repo.exists_by_id(async_stream([None]))
        with pytest.raises(InvalidArgumentException):
            await repo.delete_by_id(async_stream([None]))
        assert ops.calls == []
        assert 'airline_10' in ops.store

    @pytest.mark.asyncio
    async def test_exists_by_id(self, repo, ops):
        assert await repo.exists_by_id('airline_10') is True
        assert await repo.exists_by_id('not-a-key') is False
        assert ops.calls == [Call('exists_by_id'),
                             Call('exists_by_id.one', 'airline_10'),
                             Call('exists_by_id'),
                             Call('exists_by_id.one', 'not-a-key')]

    @pytest.mark.asyncio
    async def test_exists_by_id_none(self, repo):
        with pytest.raises(InvalidArgumentException):
            await repo.exists_by_id(None)

    @pytest.mark.asyncio
    async def test_exists_by_id_stream(self, repo):
        assert await repo.exists_by_id(async_stream(['airline_10226'])) is True
        assert await repo.exists_by_id(async_stream([])) is False

    @pytest.mark.asyncio
    async def test_find_all(self, repo, ops):
        airlines = [a async for a in repo.find_all()]
        assert sorted(a.id for a in airlines) == sorted(a.id for a in AIRLINES)
        assert ops.calls[:2] == [Call('find_by_query', Airline), Call('find_by_query.matching', Query())]

    @pytest.mark.asyncio
    async def test_find_all_sorted(self, repo, ops):
        sort = Sort.by('name').descending()
        airlines = [a async for a in repo.find_all(sort)]
        assert [a.name for a in airlines] == sorted((a.name for a in AIRLINES), reverse=True)
        query = ops.calls[1].args[0]
        assert query.sort == sort
        assert query.sort.orders[0].direction == Direction.DESC

    @pytest.mark.asyncio
    async def test_find_all_by_id(self, repo, ops):
        airlines = [a async for a in repo.find_all_by_id(['airline_10', 'not-a-key', 'airline_1191'])]
        assert airlines == [AIRLINES[0], AIRLINES[3]]
        assert ops.calls == [Call('find_by_id', Airline),
                             Call('find_by_id.all', ['airline_10', 'not-a-key', 'airline_1191'])]

    @pytest.mark.asyncio
    async def test_find_all_by_id_stringifies(self, repo, ops):
        _ = [a async for a in repo.find_all_by_id((1, 2.5, 'three'))]
        assert ops.calls[-1] == Call('find_by_id.all', ['1', '2.5', 'three'])

    def test_find_all_by_id_none(self, repo):
        with pytest.raises(InvalidArgumentException):
            repo.find_all_by_id(None)

    def test_find_all_by_id_none_element(self, repo):
        with pytest.raises(InvalidArgumentException):
            repo.find_all_by_id(['airline_10', None])

    @pytest.mark.asyncio
    async def test_find_all_by_id_stream(self, repo, ops):
        ids = async_stream(['airline_10226', 'not-a-key', 'airline_10'])
        airlines = [a async for a in repo.find_all_by_id(ids)]
        assert airlines == [AIRLINES[2], AIRLINES[0]]
        assert [c.args[0] for c in ops.calls if c.name == 'find_by_id.one'] == ['airline_10226',
                                                                                'not-a-key',
                                                                                'airline_10']

    @pytest.mark.asyncio
    async def test_delete_by_id(self, repo, ops):
        assert await repo.delete_by_id('airline_10') is None
        assert 'airline_10' not in ops.store
        assert ops.calls == [Call('remove_by_id'), Call('remove_by_id.one', 'airline_10')]

    @pytest.mark.asyncio
    async def test_delete_by_id_none(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.delete_by_id(None)
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_delete_by_id_stream(self, repo, ops):
        await repo.delete_by_id(async_stream(['airline_10123', 'airline_10']))
        assert 'airline_10123' not in ops.store
        assert 'airline_10' in ops.store

    @pytest.mark.asyncio
    async def test_delete_by_id_empty_stream(self, repo, ops):
        await repo.delete_by_id(async_stream([]))
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_delete(self, repo, ops):
        await repo.delete(copy.deepcopy(AIRLINES[1]))
        assert ops.calls == [Call('remove_by_id'), Call('remove_by_id.one', 'airline_10123')]

    @pytest.mark.asyncio
    async def test_delete_none(self, repo):
        with pytest.raises(InvalidArgumentException):
            await repo.delete(None)

    @pytest.mark.asyncio
    async def test_delete_without_id(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.delete(Airline(None, 'No Id Air'))
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_delete_all_by_id(self, repo, ops):
        await repo.delete_all_by_id(['airline_10', 10226])
        assert ops.calls == [Call('remove_by_id'), Call('remove_by_id.all', ['airline_10', '10226'])]
        assert 'airline_10' not in ops.store

    @pytest.mark.asyncio
    async def test_delete_all_by_id_stream(self, repo, ops):
        await repo.delete_all_by_id(async_stream(['airline_10', 'airline_1191']))
        assert sorted(ops.store.keys()) == ['airline_10123', 'airline_10226']

    @pytest.mark.asyncio
    async def test_delete_all_by_id_none(self, repo):
        with pytest.raises(InvalidArgumentException):
            await repo.delete_all_by_id(None)

    @pytest.mark.asyncio
    async def test_delete_all(self, repo, ops):
        await repo.delete_all()
        assert ops.store == {}
        assert ops.calls == [Call('remove_by_query', Airline), Call('remove_by_query.all')]

    @pytest.mark.asyncio
    async def test_delete_all_entities(self, repo, ops):
        await repo.delete_all(AIRLINES[:2])
        assert ops.calls == [Call('remove_by_id'), Call('remove_by_id.all', ['airline_10', 'airline_10123'])]
        assert sorted(ops.store.keys()) == ['airline_10226', 'airline_1191']

    @pytest.mark.asyncio
    async def test_delete_all_entities_stream(self, repo, ops):
        await repo.delete_all(async_stream(AIRLINES[2:]))
        assert [c.args[0] for c in ops.calls if c.name == 'remove_by_id.one'] == ['airline_10226',
                                                                                  'airline_1191']
        assert sorted(ops.store.keys()) == ['airline_10', 'airline_10123']

    @pytest.mark.asyncio
    async def test_delete_all_empty_stream(self, repo, ops):
        await repo.delete_all(async_stream([]))
        assert ops.calls == []
        assert len(ops.store) == len(AIRLINES)

    @pytest.mark.asyncio
    async def test_delete_all_none(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.delete_all(None)
        assert len(ops.store) == len(AIRLINES)

    @pytest.mark.asyncio
    async def test_delete_all_entity_without_id(self, repo, ops):
        with pytest.raises(InvalidArgumentException):
            await repo.delete_all([AIRLINES[0], Airline(None, 'No Id Air')])
        assert ops.calls == []

    @pytest.mark.asyncio
    async def test_count(self, repo, ops):
        assert await repo.count() == len(AIRLINES)
        assert ops.calls == [Call('find_by_query', Airline), Call('find_by_query.count')]
