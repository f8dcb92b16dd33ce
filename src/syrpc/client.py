""" Client side of the request/response protocol: put a request on the
    request exchange, then wait on the matching result queue for the
    result carrying the same identifier.
"""

import logging
import time

from . import ident
from .protocol import Request, Result, split_body
from .transport import Topology, TransportTimeout
from .transport.consumer import Consumer


logger = logging.getLogger(__name__)

_no_data = object()


class Client:
    """ Sends requests and receives results through a RabbitMQ broker.
        The broker connection is opened, and the request and result
        exchanges declared, when the instance is created; a
        :class:`syrpc.transport.TransportConnectionError` is raised if the
        broker cannot be reached.

        An instance supports one outstanding :func:`get_result` call at a
        time. Independent callers should each use their own instance.

        The *settings* argument is a :class:`syrpc.config.Settings`
        instance; *connection_factory* is passed through to the
        :class:`syrpc.transport.Topology`.
    """

    def __init__(self, settings, connection_factory=None):

        self.settings = settings
        self.topology = Topology(settings, connection_factory)

        try:
            self.topology.declare()
        except Exception:
            self.topology.close()
            raise


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    def close(self):
        self.topology.close()


    def put_request(self, type, data=_no_data):
        """ Put a request of the given *type* on the request exchange, and
            return the freshly generated identifier needed to retrieve the
            result. This returns as soon as the broker has accepted the
            request; it does not wait for any server to handle it.
            Omitting *data* sends an empty dictionary; an explicit None is
            sent as JSON null.
        """

        if data is _no_data:
            data = dict()

        result_id = ident.new()
        request = Request(result_id, type, data)
        body = request.encode(self.settings.msg_encoding)

        topology = self.topology
        topology.publish(topology.request_channel,
                         topology.request_exchange,
                         topology.request_routing_key,
                         body, result_id)

        logger.debug("Client put request %s on %s", result_id, topology.request_exchange)
        return result_id


    def get_result(self, result_id, timeout=None):
        """ Wait for the result of the request identified by *result_id*,
            and return its data. Results for other requests that land on
            the same result queue are handed back to the broker untouched.

            If *timeout* is None the default from the settings is used. A
            :class:`syrpc.transport.TransportTimeout` is raised if no
            matching result arrives within *timeout* seconds.
        """

        if timeout is None:
            timeout = self.settings.timeout

        topology = self.topology
        index = self.settings.shard(result_id)
        queue = topology.result_queue(index)

        logger.debug("Client waiting for request %s during %ss on %s (exchange %s)",
                     result_id, timeout, queue, topology.result_exchange)

        deadline = None if timeout is None else time.monotonic() + timeout

        with Consumer(topology, topology.result_channel, queue) as consumer:
            while True:
                delivery = consumer.next(deadline)
                if delivery is None:
                    break

                result = self._match(consumer, delivery, result_id)
                if result is not None:
                    return result.data

                # A rejected result may be redelivered here straight away,
                # so the inbox alone never runs dry; check the clock too.

                if deadline is not None and time.monotonic() >= deadline:
                    break

            logger.warning("Client hit the timeout after %ss waiting for %s", timeout, result_id)
            raise TransportTimeout(f"no result for {result_id} within {timeout}s")


    def _match(self, consumer, delivery, result_id):
        """ Acknowledge and return the decoded :class:`Result` if *delivery*
            is the one being waited for, otherwise requeue it for whoever
            is waiting on it and return None.
        """

        logger.debug("Client received a result msg")

        encoding = delivery.encoding or self.settings.msg_encoding

        try:
            result = Result.decode(split_body(delivery.body), encoding)
        except ValueError as e:
            # An undecodable result can never match anyone; drop it rather
            # than have it bounce between waiters until it expires.
            logger.warning("Client dropped an undecodable result: %s", e)
            consumer.reject(delivery, requeue=False)
            return None

        if result.result_id == result_id:
            logger.debug("Client got result for %s", result_id)
            consumer.ack(delivery)
            return result

        logger.warning("Client received a wrong result %s", result.result_id)
        consumer.reject(delivery, requeue=True)
        return None


# end of class Client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
