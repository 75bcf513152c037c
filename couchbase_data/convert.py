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

import copy
import dataclasses
import logging
from typing import (Any,
                    Dict,
                    Optional,
                    Tuple,
                    Type,
                    TypeVar,
                    Union,
                    get_args,
                    get_origin,
                    get_type_hints)

from couchbase_data._utils import (is_null_or_empty,
                                   validate_not_none)
from couchbase_data.entity import CouchbaseEntityInformation
from couchbase_data.exceptions import (InvalidArgumentException,
                                       MappingException)
from couchbase_data.options import DEFAULT_TYPE_KEY

T = TypeVar('T')

logger = logging.getLogger(__name__)

# projected by query statements alongside the document body
META_ID_KEY = '__id'
META_CAS_KEY = '__cas'


class MappingCouchbaseConverter:
    """Converts entities to JSON documents and back.

    The id attribute is never part of the document body, it becomes the document key.  The entity's type
    alias is stored under ``type_key`` so documents of different entity types can share a collection.

    Args:
        type_key (str, optional): Document field holding the type alias. Defaults to ``_class``.
    """

    def __init__(self, type_key=DEFAULT_TYPE_KEY  # type: str
                 ):
        if not isinstance(type_key, str) or is_null_or_empty(type_key):
            raise InvalidArgumentException('type_key must be a non-empty string.')
        self._type_key = type_key
        self._entity_information = {}  # type: Dict[type, CouchbaseEntityInformation]

    @property
    def type_key(self) -> str:
        return self._type_key

    def register(self, entity_information  # type: CouchbaseEntityInformation
                 ) -> None:
        validate_not_none(entity_information, 'CouchbaseEntityInformation must not be None!')
        self._entity_information[entity_information.entity_type] = entity_information

    def get_entity_information(self, domain_type  # type: Type[T]
                               ) -> CouchbaseEntityInformation[T]:
        validate_not_none(domain_type, 'Domain type must not be None!')
        info = self._entity_information.get(domain_type, None)
        if info is None:
            info = CouchbaseEntityInformation(domain_type)
            self._entity_information[domain_type] = info
        return info

    def write(self,
              entity,  # type: T
              entity_information  # type: CouchbaseEntityInformation[T]
              ) -> Tuple[str, Dict[str, Any]]:
        doc_id = entity_information.get_id(entity)
        if doc_id is None:
            raise MappingException((f'Cannot write {type(entity).__name__} without a value for '
                                    f'{entity_information.id_attribute!r}.'))

        if dataclasses.is_dataclass(entity):
            content = dataclasses.asdict(entity)
        else:
            content = {k: _to_document_value(v) for k, v in vars(entity).items() if not k.startswith('_')}

        content.pop(entity_information.id_attribute, None)
        if self._type_key in content:
            raise MappingException(f'{type(entity).__name__} uses the reserved attribute {self._type_key!r}.')
        content[self._type_key] = entity_information.type_alias
        logger.trace(f'Wrote document {doc_id!r} for {type(entity).__name__}: {content}')
        return doc_id, content

    def read(self,
             entity_information,  # type: CouchbaseEntityInformation[T]
             doc_id,  # type: str
             content  # type: Dict[str, Any]
             ) -> T:
        if not isinstance(content, dict):
            raise MappingException(f'Expected document {doc_id!r} to be a JSON object.')

        values = {k: v for k, v in content.items() if k not in (self._type_key, META_ID_KEY, META_CAS_KEY)}
        values[entity_information.id_attribute] = doc_id
        entity_type = entity_information.entity_type

        if dataclasses.is_dataclass(entity_type):
            entity = _build_dataclass(entity_type, values, doc_id)
        else:
            entity = entity_type.__new__(entity_type)
            entity.__dict__.update(values)

        return entity


def _to_document_value(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, dict):
        return {k: _to_document_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_document_value(v) for v in value]
    return copy.deepcopy(value)


def _nested_dataclass(hint  # type: Any
                      ) -> Optional[type]:
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return hint
    if get_origin(hint) is Union:
        candidates = [a for a in get_args(hint) if isinstance(a, type) and dataclasses.is_dataclass(a)]
        if len(candidates) == 1:
            return candidates[0]
    return None


def _build_dataclass(entity_type,  # type: Type[T]
                     values,  # type: Dict[str, Any]
                     doc_id  # type: str
                     ) -> T:
    """**INTERNAL**

    Creates ``entity_type`` from ``values``, turning JSON objects held by dataclass typed fields back into
    dataclasses.
    """
    try:
        hints = get_type_hints(entity_type)
    except NameError as ex:
        raise MappingException(f'Unable to resolve the field types of {entity_type.__name__}.',
                               exc_info={'inner_cause': ex}) from ex

    for name, value in list(values.items()):
        nested_type = _nested_dataclass(hints.get(name, None))
        if nested_type is not None and isinstance(value, dict):
            values[name] = _build_dataclass(nested_type, dict(value), doc_id)

    init_fields = {f.name for f in dataclasses.fields(entity_type) if f.init}
    try:
        entity = entity_type(**{k: v for k, v in values.items() if k in init_fields})
    except TypeError as ex:
        raise MappingException(f'Unable to create {entity_type.__name__} from document {doc_id!r}.',
                               exc_info={'inner_cause': ex}) from ex
    for k, v in values.items():
        if k not in init_fields:
            setattr(entity, k, v)
    return entity
