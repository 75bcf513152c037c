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

import logging
import os
from functools import partial, partialmethod
from typing import Optional

from couchbase_data._version import __version__

CBDATA_VERSION = f'python/{__version__}'

""" Add support for logging, adding a TRACE level to logging """
TRACE = 5
logging.TRACE = TRACE
logging.addLevelName(TRACE, 'TRACE')
logging.Logger.trace = partialmethod(logging.Logger.log, TRACE)
logging.trace = partial(logging.log, TRACE)

logging.getLogger(__name__).addHandler(logging.NullHandler())


"""

Logging methods

"""


def configure_logging(name,  # type: str
                      level=logging.INFO,  # type: int
                      parent_logger=None  # type: Optional[logging.Logger]
                      ) -> logging.Logger:
    """Routes the library loggers (``couchbase_data`` and ``acouchbase_data``) into
    an application logger.

    Args:
        name (str): Name of the logger to forward library records to.
        level (int, optional): Level applied to the library loggers. Defaults to ``logging.INFO``.
        parent_logger (``logging.Logger``, optional): If provided, ``name`` is created as a child
            of this logger.

    Returns:
        ``logging.Logger``: The logger records are forwarded to.
    """
    if parent_logger:
        name = f'{parent_logger.name}.{name}'
    logger = logging.getLogger(name)
    for lib_name in ('couchbase_data', 'acouchbase_data'):
        lib_logger = logging.getLogger(lib_name)
        lib_logger.setLevel(level)
        lib_logger.propagate = False
        for handler in [h for h in lib_logger.handlers if isinstance(h, _ForwardingHandler)]:
            lib_logger.removeHandler(handler)
        lib_logger.addHandler(_ForwardingHandler(logger))
    logger.debug(f'couchbase_data {CBDATA_VERSION} logging configured at level {logging.getLevelName(level)}')
    return logger


def configure_console_logger():
    log_level = os.getenv('CBDATA_LOG_LEVEL', None)
    if not log_level:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    for lib_name in ('couchbase_data', 'acouchbase_data'):
        lib_logger = logging.getLogger(lib_name)
        lib_logger.setLevel(level)
        lib_logger.addHandler(handler)


class _ForwardingHandler(logging.Handler):
    """**INTERNAL**"""

    def __init__(self, target):
        super().__init__()
        self._target = target

    def emit(self, record):
        if self._target.isEnabledFor(record.levelno):
            self._target.handle(record)


configure_console_logger()
