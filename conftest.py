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

import pytest

_REPOSITORY_TESTS = [
    "acouchbase_data/tests/repository_t.py::RepositoryTests",
]

_TEMPLATE_TESTS = [
    "acouchbase_data/tests/template_t.py::TemplateTests",
    "acouchbase_data/tests/template_t.py::ExceptionTranslationTests",
]


def pytest_collection_modifyitems(items):
    for item in items:
        item_details = item.nodeid.split('::')

        item_api = item_details[0].split('/')
        if item_api[0] == 'couchbase_data':
            item.add_marker(pytest.mark.cbdata_couchbase)
        elif item_api[0] == 'acouchbase_data':
            item.add_marker(pytest.mark.cbdata_acouchbase)

        test_class_path = '::'.join(item_details[:-1])
        if test_class_path in _REPOSITORY_TESTS:
            item.add_marker(pytest.mark.cbdata_repository)
        elif test_class_path in _TEMPLATE_TESTS:
            item.add_marker(pytest.mark.cbdata_template)
