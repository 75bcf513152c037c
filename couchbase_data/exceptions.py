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

from typing import (Any,
                    Dict,
                    Optional)


class CouchbaseDataException(Exception):
    def __init__(self,
                 message=None,  # type: Optional[str]
                 context=None,  # type: Optional[Dict[str, Any]]
                 exc_info=None  # type: Optional[Dict[str, Any]]
                 ):
        self._message = message
        self._context = context
        self._exc_info = exc_info
        super().__init__(message)

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def context(self) -> Dict[str, Any]:
        """
        Returns:
            Dict[str, Any]: Details about the operation that failed (id, entity type, statement...).
        """
        return self._context or {}

    @property
    def inner_cause(self) -> Optional[Exception]:
        """
        **VOLATILE** This API is subject to change at any time.

        Returns:
            Optional[Exception]: Exception's inner cause, if it exists.
        """
        if not self._exc_info:
            return None
        return self._exc_info.get('inner_cause', None)

    def __repr__(self):
        from couchbase_data._utils import is_null_or_empty
        details = []
        if not is_null_or_empty(self._message):
            details.append(f'message={self._message}')
        if self._context:
            details.append(f'context={self._context}')
        if self._exc_info and 'inner_cause' in self._exc_info:
            details.append('inner_cause={0!r}'.format(self._exc_info['inner_cause']))
        return "<{}>".format(", ".join(details))

    def __str__(self):
        return self.__repr__()


class InvalidArgumentException(CouchbaseDataException):
    """ Raised when a provided argmument is missing (``None``)
        and/or has an invalid type.
    """

    def __init__(self, message=None, **kwargs):
        if message and isinstance(message, str) and 'message' not in kwargs:
            kwargs['message'] = message
        super().__init__(**kwargs)

    def __repr__(self):
        return f"{type(self).__name__}({super().__repr__()})"

    def __str__(self):
        return self.__repr__()


class MappingException(CouchbaseDataException):
    """Raised when an entity cannot be converted to or from a document."""

    def __init__(self, message=None, **kwargs):
        if message and isinstance(message, str) and 'message' not in kwargs:
            kwargs['message'] = message
        super().__init__(**kwargs)

    def __repr__(self):
        return f"{type(self).__name__}({super().__repr__()})"

    def __str__(self):
        return self.__repr__()


# store errors, raised by operations implementations
class DataAccessException(CouchbaseDataException):
    def __init__(self, message=None, **kwargs):
        if message and isinstance(message, str) and 'message' not in kwargs:
            kwargs['message'] = message
        super().__init__(**kwargs)

    def __repr__(self):
        return f"{type(self).__name__}({super().__repr__()})"

    def __str__(self):
        return self.__repr__()


class DataRetrievalFailureException(DataAccessException):
    """Indicates that the referenced document does not exist."""


class OptimisticLockingFailureException(DataAccessException):
    """Indicates a CAS mismatch or that a document unexpectedly already exists."""


class TransientDataAccessException(DataAccessException):
    """Indicates a failure that might succeed if retried (timeouts, temporary failures)."""


class UncategorizedCouchbaseException(DataAccessException):
    """Any other error raised by the Couchbase SDK."""
