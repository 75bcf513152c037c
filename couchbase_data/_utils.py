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

from datetime import timedelta
from typing import (Any,
                    AsyncIterable,
                    AsyncIterator,
                    Iterable,
                    List,
                    Optional,
                    TypeVar)

from couchbase_data.exceptions import InvalidArgumentException

T = TypeVar('T')


def is_null_or_empty(
    value  # type: Optional[str]
) -> bool:
    return not (value and not value.isspace())


def validate_not_none(value,  # type: Any
                      message  # type: str
                      ) -> Any:
    if value is None:
        raise InvalidArgumentException(message)
    return value


def validate_int(value,  # type: int
                 name  # type: str
                 ) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentException(message=f'Expected {name} to be of type int.')
    if value < 0:
        raise InvalidArgumentException(message=f'Expected {name} to be zero or greater, got {value}.')
    return value


def validate_timedelta(value,  # type: Optional[timedelta]
                       name  # type: str
                       ) -> Optional[timedelta]:
    if value is not None and not isinstance(value, timedelta):
        raise InvalidArgumentException(message=f'Expected {name} to be a timedelta instead of {value}.')
    return value


def is_async_iterable(value  # type: Any
                      ) -> bool:
    return hasattr(value, '__aiter__')


def to_id_str(value  # type: Any
              ) -> str:
    if value is None:
        raise InvalidArgumentException('The given id must not be None!')
    if isinstance(value, bytes):
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError as ex:
            raise InvalidArgumentException('The given id must be valid UTF-8!',
                                           exc_info={'inner_cause': ex}) from ex
    return str(value)


def to_id_list(values  # type: Iterable[Any]
               ) -> List[str]:
    return [to_id_str(v) for v in values]


async def first(stream,  # type: AsyncIterable[T]
                default=None  # type: Any
                ) -> Optional[T]:
    """Returns the first item emitted by ``stream``, ``default`` if it is empty.

    The stream is closed once the first item has been received.
    """
    iterator = stream.__aiter__()
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return default
    finally:
        aclose = getattr(iterator, 'aclose', None)
        if aclose is not None:
            await aclose()


async def drain(stream  # type: AsyncIterable[Any]
                ) -> int:
    """Consumes ``stream`` and returns the number of items it emitted."""
    count = 0
    async for _ in stream:
        count += 1
    return count


async def collect(stream  # type: AsyncIterable[T]
                  ) -> List[T]:
    return [item async for item in stream]


async def from_iterable(values  # type: Iterable[T]
                        ) -> AsyncIterator[T]:
    for value in values:
        yield value
