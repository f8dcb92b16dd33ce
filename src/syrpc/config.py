""" Settings for syrpc clients and servers. A :class:`Settings` instance
    is built from a plain dictionary, a JSON file, or the process
    environment, and is handed to :class:`syrpc.Client` or
    :class:`syrpc.Server` at construction.
"""

import os

from . import json
from . import shard
from .protocol import fields


# Default values for all optional settings. Time intervals are in seconds.

defaults = dict()
defaults['amq_virtualhost'] = '/'
defaults['amq_port'] = 5672
defaults['amq_user'] = 'guest'
defaults['amq_password'] = 'guest'
defaults['amq_ttl'] = 3 * 60 * 60
defaults['amq_msg_ttl'] = 10
defaults['amq_num_queues'] = shard.NUM_QUEUES
defaults['amq_heartbeat'] = 600
defaults['amq_blocked_timeout'] = 300
defaults['amq_hash_key'] = shard.KEY
defaults['msg_encoding'] = fields.ENCODING
defaults['timeout'] = 30
defaults['ack_late'] = False

required = ('app_name', 'amq_host')

integers = set(('amq_port', 'amq_ttl', 'amq_msg_ttl', 'amq_num_queues',
                'amq_heartbeat', 'amq_blocked_timeout'))
numbers = set(('timeout',))
booleans = set(('ack_late',))

environment_prefix = 'SYRPC_'


class Settings:
    """ Validated settings. Every recognized option is available as an
        attribute of the same name; a missing required option or an
        unrecognized one raises ValueError.

        The recognized options are:

        * app_name (required): prefix for every exchange and queue name.
        * amq_host (required): hostname of the RabbitMQ broker.
        * amq_virtualhost, amq_port, amq_user, amq_password: the rest of
          the connection parameters.
        * amq_ttl: seconds a result queue may go unused before the broker
          deletes it.
        * amq_msg_ttl: seconds a result may sit in a result queue before
          the broker drops it.
        * amq_num_queues: number of result queues (shards).
        * amq_heartbeat, amq_blocked_timeout: pika connection tuning.
        * amq_hash_key: 16-byte key for the shard hash.
        * msg_encoding: character encoding of message bodies.
        * timeout: default number of seconds to wait for a message.
        * ack_late: servers acknowledge a request only once its result has
          been put, instead of on receipt.
    """

    def __init__(self, settings=None, **kwargs):

        for key, value in defaults.items():
            setattr(self, key, value)

        self.app_name = None
        self.amq_host = None

        if settings is None:
            settings = dict()
        else:
            settings = dict(settings)

        settings.update(kwargs)
        self.load(settings)


    def __repr__(self):
        shown = dict(vars(self))
        shown['amq_password'] = '***'
        return 'Settings(%r)' % (shown)


    def load(self, settings):
        """ Apply the options in the *settings* dictionary on top of the
            current values, then validate the result.
        """

        for key, value in settings.items():
            if key not in defaults and key not in required:
                raise ValueError('unrecognized setting: ' + repr(key))

            setattr(self, key, _coerce(key, value))

        self.validate()


    def validate(self):

        for key in required:
            value = getattr(self, key)
            if value is None or value == '':
                raise ValueError('missing required setting: ' + key)

        if self.amq_num_queues < 1:
            raise ValueError('amq_num_queues must be positive')

        for key in ('amq_ttl', 'amq_msg_ttl'):
            if getattr(self, key) <= 0:
                raise ValueError(key + ' must be positive')

        if self.timeout is not None and self.timeout < 0:
            raise ValueError('timeout cannot be negative')

        if len(self.amq_hash_key) != 16:
            raise ValueError('amq_hash_key must be exactly 16 bytes')


    @property
    def request_name(self):
        """ Name shared by the request exchange, the request queue, and the
            routing key binding them.
        """

        return fields.REQUEST_NAME % (self.app_name)


    @property
    def result_exchange(self):
        return fields.RESULT_EXCHANGE_NAME % (self.app_name)


    def result_queue_name(self, index):
        return fields.RESULT_QUEUE_NAME % (self.app_name, index)


    def shard(self, result_id):
        """ Return the result shard index for the given *result_id*.
        """

        return shard.shard(result_id, self.amq_num_queues, self.amq_hash_key)


# end of class Settings



def from_file(filename, **overrides):
    """ Return a :class:`Settings` instance loaded from a JSON file
        containing a single dictionary of options.
    """

    with open(filename, 'rb') as contents:
        raw = contents.read()

    try:
        settings = json.loads(raw)
    except json.DecodeError as e:
        raise ValueError('cannot parse settings file %s: %s' % (filename, e)) from e

    if not isinstance(settings, dict):
        raise ValueError('settings file does not contain a dictionary: ' + filename)

    settings.update(overrides)
    return Settings(settings)


def from_environment(environ=None, **fallback):
    """ Return a :class:`Settings` instance built from SYRPC_* environment
        variables, for example SYRPC_AMQ_HOST. Any keyword arguments are
        used for options not present in the environment.
    """

    if environ is None:
        environ = os.environ

    settings = dict(fallback)
    known = set(defaults.keys())
    known.update(required)

    for key in known:
        variable = environment_prefix + key.upper()
        try:
            settings[key] = environ[variable]
        except KeyError:
            continue

    return Settings(settings)


def _coerce(key, value):
    """ Environment variables and hand-written files deliver most values as
        strings; convert them to the type expected for *key*.
    """

    if value is None:
        return value

    if key in integers:
        return int(value)

    if key in numbers:
        return float(value)

    if key in booleans:
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    if key == 'amq_hash_key':
        if isinstance(value, str):
            value = value.encode('utf-8')
        return bytes(value)

    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
