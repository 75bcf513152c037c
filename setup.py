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

import os
import re

from setuptools import find_packages, setup

CBDATA_ROOT = os.path.dirname(os.path.abspath(__file__))
CBDATA_README = os.path.join(CBDATA_ROOT, 'README.md')


def get_version():
    version_file = os.path.join(CBDATA_ROOT, 'couchbase_data', '_version.py')
    with open(version_file, 'r') as f:
        match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", f.read(), re.M)
    if match is None:
        raise RuntimeError(f'Unable to find version string in {version_file}.')
    return match.group(1)


CBDATA_VERSION = get_version()

print(f'Couchbase data repository version: {CBDATA_VERSION}')

setup(name='couchbase-data',
      version=CBDATA_VERSION,
      python_requires='>=3.8',
      packages=find_packages(
          include=['acouchbase_data', 'couchbase_data', 'acouchbase_data.*', 'couchbase_data.*'],
          exclude=['acouchbase_data.tests', 'couchbase_data.tests']),
      install_requires=['couchbase>=4.1'],
      extras_require={
          'test': ['pytest>=7.0', 'pytest-asyncio>=0.21'],
      },
      author="Couchbase, Inc.",
      license="Apache License 2.0",
      description="Reactive CRUD repositories for Couchbase",
      long_description=open(CBDATA_README, "r").read(),
      long_description_content_type='text/markdown',
      keywords=["couchbase", "nosql", "repository", "asyncio"],
      classifiers=[
          "Development Status :: 4 - Beta",
          "License :: OSI Approved :: Apache Software License",
          "Intended Audience :: Developers",
          "Operating System :: OS Independent",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
          "Framework :: AsyncIO",
          "Topic :: Database",
          "Topic :: Software Development :: Libraries",
          "Topic :: Software Development :: Libraries :: Python Modules"],
      )
