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

from datetime import timedelta
from typing import (Any,
                    Dict,
                    Optional,
                    overload)

from couchbase.n1ql import QueryScanConsistency

from couchbase_data._utils import (is_null_or_empty,
                                   validate_timedelta)
from couchbase_data.exceptions import InvalidArgumentException

DEFAULT_TYPE_KEY = '_class'


class TemplateOptions(dict):
    """Available options for a :class:`~acouchbase_data.template.ReactiveCouchbaseTemplate`.

    Args:
        timeout (timedelta, optional): Timeout applied to every key-value and query operation. Defaults to
            the SDK's configured timeouts.
        scan_consistency (:class:`~couchbase.n1ql.QueryScanConsistency`, optional): Scan consistency used for
            queries. Defaults to :attr:`~couchbase.n1ql.QueryScanConsistency.NOT_BOUNDED`.
        type_key (str, optional): Document field holding the entity type alias. Defaults to ``_class``.
    """

    _VALID_OPTS = {'timeout', 'scan_consistency', 'type_key'}

    @overload
    def __init__(self,
                 timeout=None,  # type: Optional[timedelta]
                 scan_consistency=None,  # type: Optional[QueryScanConsistency]
                 type_key=None  # type: Optional[str]
                 ):
        pass

    def __init__(self, **kwargs):
        invalid = [k for k in kwargs.keys() if k not in self._VALID_OPTS]
        if invalid:
            raise InvalidArgumentException(f'Invalid template option(s): {", ".join(sorted(invalid))}.')
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        validate_timedelta(kwargs.get('timeout', None), 'timeout')
        consistency = kwargs.get('scan_consistency', None)
        if consistency is not None and not isinstance(consistency, QueryScanConsistency):
            raise InvalidArgumentException(('Expected scan_consistency to be a QueryScanConsistency '
                                            f'instead of {consistency!r}.'))
        type_key = kwargs.get('type_key', None)
        if type_key is not None and (not isinstance(type_key, str) or is_null_or_empty(type_key)):
            raise InvalidArgumentException('type_key must be a non-empty string.')
        super().__init__(**kwargs)

    @property
    def timeout(self) -> Optional[timedelta]:
        return self.get('timeout', None)

    @property
    def scan_consistency(self) -> QueryScanConsistency:
        return self.get('scan_consistency', QueryScanConsistency.NOT_BOUNDED)

    @property
    def type_key(self) -> str:
        return self.get('type_key', DEFAULT_TYPE_KEY)

    def kv_options(self) -> Dict[str, Any]:
        """**INTERNAL**"""
        return {'timeout': self.timeout} if self.timeout else {}
