""" Envelope classes for the messages exchanged between clients and servers.
    A :class:`Request` travels from a client to a server on the request
    exchange; a :class:`Result` travels back on the result exchange. Both
    are JSON dictionaries on the wire, identified by the same *result_id*.
"""

import re

from .. import json
from . import fields


_unprintable = re.compile(rb'[\x00-\x1f\x80-\xff]')


class Envelope:
    """ Common base for :class:`Request` and :class:`Result`. Subclasses
        name the JSON fields they carry in :attr:`keys`; every one of them
        is required when decoding.
    """

    keys = (fields.RESULT_ID, fields.DATA)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()


    def __repr__(self):
        arguments = ', '.join('%s=%r' % (key, value) for key, value in self.to_dict().items())
        return '%s(%s)' % (type(self).__name__, arguments)


    def to_dict(self):
        payload = dict()
        for key in self.keys:
            payload[key] = getattr(self, key)
        return payload


    def encode(self, encoding=fields.ENCODING):
        """ Return the JSON encoding of this envelope as bytes in the
            requested *encoding*.
        """

        encoded = json.dumps(self.to_dict())

        if _is_utf8(encoding):
            return encoded

        return encoded.decode('utf-8').encode(encoding)


    @classmethod
    def decode(cls, body, encoding=fields.ENCODING):
        """ Interpret *body* as an encoded envelope. A ValueError is raised
            if the body is not a JSON dictionary containing all of the
            expected fields.
        """

        # The encoding usually comes from the message properties, so an
        # unknown codec name is as much a malformed message as bad JSON.

        try:
            if isinstance(body, str) or _is_utf8(encoding):
                text = body
            else:
                text = body.decode(encoding)
            decoded = json.loads(text)
        except (json.DecodeError, UnicodeDecodeError, LookupError) as e:
            raise ValueError('undecodable envelope: ' + str(e)) from e

        if not isinstance(decoded, dict):
            raise ValueError('envelope is not a JSON object: ' + repr(decoded))

        missing = [key for key in cls.keys if key not in decoded]
        if missing:
            raise ValueError('envelope is missing fields: ' + ', '.join(missing))

        arguments = [decoded[key] for key in cls.keys]
        return cls(*arguments)


# end of class Envelope



class Request(Envelope):
    """ A request for the server to process. The *type* selects what the
        server should do with the *data*; leading and trailing whitespace
        is not significant and is removed.
    """

    keys = (fields.RESULT_ID, fields.TYPE, fields.DATA)

    def __init__(self, result_id, type, data=None):
        self.result_id = str(result_id)
        self.type = str(type).strip()
        self.data = data


    def __iter__(self):
        """ Unpack as the (type, result_id, data) triplet handed back to
            servers by :func:`syrpc.server.Server.get_request`.
        """

        return iter((self.type, self.result_id, self.data))


# end of class Request



class Result(Envelope):
    """ The response to a :class:`Request`, addressed to the client waiting
        on *result_id*.
    """

    keys = (fields.RESULT_ID, fields.DATA)

    def __init__(self, result_id, data):
        self.result_id = str(result_id)
        self.data = data


# end of class Result



def split_body(body):
    """ A received message may carry its encoding in front of the body,
        separated by a NUL byte. Return only the body, with the prefix and
        any control or non-ASCII bytes removed. A body without a NUL byte
        is returned unchanged.
    """

    if isinstance(body, str):
        body = body.encode('utf-8')

    index = body.find(b'\0')
    if index < 0:
        return body

    return _unprintable.sub(b'', body[index:])


def _is_utf8(encoding):
    if encoding is None:
        return True
    return encoding.lower().replace('_', '-') in ('utf-8', 'utf8')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
