"""Transport-layer exceptions.

These are the only errors the client and server raise on their own account;
pika exceptions are translated into them where they cross into syrpc.
"""

from __future__ import annotations


class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError, ConnectionError):
    """The broker is unreachable, rejected the credentials, or dropped the
    connection. This is fatal for the instance that raised it."""


class TransportTimeout(TransportError, TimeoutError):
    """No matching message arrived before the deadline. Callers polling for
    work treat this as "nothing to do" and try again."""


class PublishError(TransportError):
    """The broker did not accept a published message."""


class EmptyRequestError(TransportError):
    """A delivered request could not be decoded into an envelope. The
    message has been dropped; the caller may simply ask for the next one."""
