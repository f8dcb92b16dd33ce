""" Python implementation of syrpc: request/response calls correlated over
    a RabbitMQ broker. Clients put typed requests on a shared request queue
    and wait for the matching result; servers take requests off that queue
    and publish results to one of a fixed set of result queues, selected by
    a keyed hash of the request identifier.
"""

# Utility components.

from . import json
from . import ident
from . import shard
from . import log

# Submodules used by multiple other components.

from . import config
from . import protocol
from . import transport

# Primary public-facing interfaces.

from .config import Settings
from .client import Client
from .server import Server, NO_WORK

from .transport import (
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    PublishError,
    EmptyRequestError,
)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
