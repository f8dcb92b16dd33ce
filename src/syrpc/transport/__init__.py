"""Transport layer: broker topology and the exceptions raised across it."""

from .base import (
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    PublishError,
    EmptyRequestError,
)

from . import consumer
from . import topology
from .topology import Topology
