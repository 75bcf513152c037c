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

import dataclasses
from datetime import timedelta
from typing import (Any,
                    Generic,
                    Optional,
                    Type,
                    TypeVar)

from couchbase_data._utils import (is_null_or_empty,
                                   to_id_str,
                                   validate_not_none,
                                   validate_timedelta)
from couchbase_data.exceptions import (InvalidArgumentException,
                                       MappingException)

T = TypeVar('T')


class CouchbaseEntityInformation(Generic[T]):
    """Metadata about the entity type a repository manages.

    Args:
        entity_type (Type[T]): The entity class.
        id_attribute (str, optional): Name of the attribute holding the document id. Defaults to ``id``.
        type_alias (str, optional): Value stored under the converter's type key to identify documents of this
            entity type. Defaults to the fully qualified class name.
        expiry (timedelta, optional): Expiry applied to documents when they are upserted.

    Raises:
        :class:`~couchbase_data.exceptions.InvalidArgumentException`: If ``entity_type`` is ``None`` or
            ``id_attribute`` is empty.
        :class:`~couchbase_data.exceptions.MappingException`: If ``entity_type`` is a dataclass without an
            ``id_attribute`` field.

    Examples:

        Describe a dataclass entity::

            @dataclass
            class Airline:
                id: str
                name: str
                country: str = None

            info = CouchbaseEntityInformation(Airline, type_alias='airline')
    """

    def __init__(self,
                 entity_type,  # type: Type[T]
                 id_attribute='id',  # type: str
                 type_alias=None,  # type: Optional[str]
                 expiry=None,  # type: Optional[timedelta]
                 ):
        validate_not_none(entity_type, 'Entity type must not be None!')
        if not isinstance(entity_type, type):
            raise InvalidArgumentException(f'Expected entity type to be a class instead of {entity_type!r}.')
        if is_null_or_empty(id_attribute):
            raise InvalidArgumentException('Id attribute must not be empty!')
        if dataclasses.is_dataclass(entity_type):
            field_names = {f.name for f in dataclasses.fields(entity_type)}
            if id_attribute not in field_names:
                raise MappingException(f'{entity_type.__name__} has no id field named {id_attribute!r}.')

        self._entity_type = entity_type
        self._id_attribute = id_attribute
        self._type_alias = type_alias or f'{entity_type.__module__}.{entity_type.__qualname__}'
        self._expiry = validate_timedelta(expiry, 'expiry')

    @property
    def entity_type(self) -> Type[T]:
        return self._entity_type

    @property
    def id_attribute(self) -> str:
        return self._id_attribute

    @property
    def type_alias(self) -> str:
        return self._type_alias

    @property
    def expiry(self) -> Optional[timedelta]:
        return self._expiry

    def get_raw_id(self, entity  # type: T
                   ) -> Any:
        self._check_entity(entity)
        return getattr(entity, self._id_attribute, None)

    def get_id(self, entity  # type: T
               ) -> Optional[str]:
        """Returns the entity's id as a string, ``None`` if it has none yet."""
        raw_id = self.get_raw_id(entity)
        if raw_id is None:
            return None
        return to_id_str(raw_id)

    def set_id(self,
               entity,  # type: T
               value  # type: Any
               ) -> None:
        self._check_entity(entity)
        setattr(entity, self._id_attribute, value)

    def is_new(self, entity  # type: T
               ) -> bool:
        return self.get_raw_id(entity) is None

    def _check_entity(self, entity):
        validate_not_none(entity, 'Entity must not be None!')
        if not isinstance(entity, self._entity_type):
            raise MappingException((f'Expected entity of type {self._entity_type.__name__} '
                                    f'instead of {type(entity).__name__}.'))

    def __eq__(self, other):
        if not isinstance(other, CouchbaseEntityInformation):
            return NotImplemented
        return (self._entity_type is other._entity_type
                and self._id_attribute == other._id_attribute
                and self._type_alias == other._type_alias
                and self._expiry == other._expiry)

    def __hash__(self):
        return hash((self._entity_type, self._id_attribute, self._type_alias))

    def __repr__(self):
        return (f'CouchbaseEntityInformation(entity_type={self._entity_type.__name__}, '
                f'id_attribute={self._id_attribute!r}, type_alias={self._type_alias!r})')
