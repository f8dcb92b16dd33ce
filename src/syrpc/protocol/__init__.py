from . import fields
from . import envelope

from .envelope import Request, Result, split_body


"""
syrpc Protocol Layer
====================

The protocol layer defines what travels between clients and servers: the
JSON envelopes, the names of the broker resources, and the message
properties. It MUST NOT depend on the transport implementation.

Message flow
------------

Client                                          Server
  │  Request{result_id, type, data}               │
  │ ───────────── {app}_request ────────────────▶ │
  │                                               │ process
  │  Result{result_id, data}                      │
  │ ◀──── {app}_result_exchange, key = shard ──── │
  │       {app}_result_queue_{shard}              │

The shard is a keyed hash of the result_id, reduced modulo the number of
result queues; both sides compute it independently (see syrpc.shard).
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
