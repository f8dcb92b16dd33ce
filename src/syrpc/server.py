""" Server side of the request/response protocol: take requests off the
    request queue one at a time and publish each result to the result
    queue its identifier hashes to.
"""

import logging
import time

from .protocol import Request, Result, split_body
from .transport import EmptyRequestError, Topology, TransportTimeout
from .transport.consumer import Consumer
from .transport.topology import translated


logger = logging.getLogger(__name__)


class NoWork:
    """ Returned by :func:`Server.poll` when no request arrived in time.
        There is a single instance, :data:`NO_WORK`; it is always false.
    """

    def __bool__(self):
        return False

    def __repr__(self):
        return 'NO_WORK'


NO_WORK = NoWork()



class Server:
    """ Receives requests and sends results through a RabbitMQ broker. As
        with :class:`syrpc.Client`, the connection is established and the
        topology declared when the instance is created.

        By default a request is acknowledged as soon as it is received; if
        the server dies before putting the result, the request is lost. With
        the *ack_late* setting enabled the acknowledgement is held back until
        :func:`put_result` is called for the request, or until it is settled
        explicitly with :func:`ack` or :func:`reject`. A request still held
        when the connection goes away is redelivered by the broker, possibly
        to another server.
    """

    def __init__(self, settings, connection_factory=None):

        self.settings = settings
        self.ack_late = settings.ack_late
        self.topology = Topology(settings, connection_factory)

        # Deliveries held back for a late acknowledgement, by result id.
        self.pending = dict()

        topology = self.topology

        try:
            topology.declare()
            with translated("limiting request prefetch"):
                topology.request_channel.basic_qos(prefetch_count=1)
            self.consumer = Consumer(topology, topology.request_channel, topology.request_queue)
            self.consumer.start()
        except Exception:
            topology.close()
            raise


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    def close(self):
        try:
            self.consumer.cancel()
        finally:
            self.pending.clear()
            self.topology.close()


    def poll(self, timeout=None):
        """ Wait up to *timeout* seconds for a request. Return the received
            :class:`syrpc.protocol.Request`, or :data:`NO_WORK` if none
            arrived in time. If *timeout* is None the default from the
            settings is used.

            A delivered message that cannot be decoded is dropped and
            :class:`syrpc.transport.EmptyRequestError` is raised.
        """

        if timeout is None:
            timeout = self.settings.timeout

        logger.debug("Server waiting for requests during %ss on %s",
                     timeout, self.topology.request_exchange)

        deadline = None if timeout is None else time.monotonic() + timeout
        delivery = self.consumer.next(deadline)

        if delivery is None:
            logger.debug("Server ran into timeout after %ss", timeout)
            return NO_WORK

        logger.debug("Server received a msg: %r", delivery.body)

        body = split_body(delivery.body)
        encoding = delivery.encoding or self.settings.msg_encoding

        try:
            if not body:
                raise ValueError('empty body')
            request = Request.decode(body, encoding)
        except ValueError as e:
            logger.warning("Server dropped an undecodable request (%s): %s", delivery.tag, e)
            self.consumer.reject(delivery, requeue=False)
            raise EmptyRequestError(f"cannot decode request {delivery.tag}: {e}") from e

        logger.debug("Server received request %s (%s)", request.result_id, delivery.tag)

        if self.ack_late:
            self.pending[request.result_id] = delivery
        else:
            self.consumer.ack(delivery)

        return request


    def get_request(self, timeout=None):
        """ Wait up to *timeout* seconds for a request, and return it as a
            (type, result_id, data) tuple. Raises
            :class:`syrpc.transport.TransportTimeout` if no request arrived,
            which the caller may treat as "no work available".
        """

        request = self.poll(timeout)

        if request is NO_WORK:
            if timeout is None:
                timeout = self.settings.timeout
            raise TransportTimeout(f"no request within {timeout}s")

        logger.debug("Server got a response")
        return tuple(request)


    def put_result(self, result_id, data):
        """ Publish *data* as the result for *result_id*, on the result queue
            the identifier hashes to. The queue is declared if this is its
            first use. Nothing is known about whether a client picks the
            result up.
        """

        topology = self.topology
        index = self.settings.shard(result_id)
        queue = topology.result_queue(index)

        result = Result(result_id, data)
        body = result.encode(self.settings.msg_encoding)

        topology.publish(topology.result_channel,
                         topology.result_exchange,
                         str(index),
                         body, result.result_id)

        logger.debug("Server published result %s within %s -> %s",
                     result_id, queue, topology.result_exchange)

        if self.ack_late:
            self.ack(result_id)


    def ack(self, result_id):
        """ Acknowledge the held request for *result_id*, if any. Only
            meaningful with *ack_late* enabled.
        """

        try:
            delivery = self.pending.pop(result_id)
        except KeyError:
            return

        self.consumer.ack(delivery)


    def reject(self, result_id, requeue=True):
        """ Hand the held request for *result_id* back to the broker; with
            *requeue* False the broker discards it instead.
        """

        try:
            delivery = self.pending.pop(result_id)
        except KeyError:
            return

        self.consumer.reject(delivery, requeue=requeue)


    def serve_one(self, handlers, timeout=None):
        """ Handle at most one request. *handlers* maps request types to
            callables, each invoked with the request data; the return value
            is put as the result. Return True if a request was received,
            False if there was nothing to do.
        """

        try:
            request = self.poll(timeout)
        except EmptyRequestError as e:
            logger.warning("Server skipped a request: %s", e)
            return False

        if request is NO_WORK:
            logger.debug("Server got no request within timeout")
            return False

        logger.debug("Server got request %s", request.result_id)

        try:
            handler = handlers[request.type]
        except KeyError:
            logger.warning("Server has no handler for request type %r, dropping %s",
                           request.type, request.result_id)
            self.reject(request.result_id, requeue=False)
            return True

        try:
            data = handler(request.data)
        except Exception:
            logger.exception("Server failed to handle request %s", request.result_id)
            self.reject(request.result_id, requeue=False)
            raise

        self.put_result(request.result_id, data)
        logger.debug("Server put result for request %s", request.result_id)
        return True


    def serve(self, handlers, timeout=None, forever=False):
        """ Handle requests with :func:`serve_one`. In *forever* mode keep
            going indefinitely, treating an empty wait as a reason to wait
            again; otherwise handle a single request. Connection errors and
            handler exceptions always propagate.
        """

        if forever:
            logger.debug("Starting server in forever mode")
            while True:
                self.serve_one(handlers, timeout)

        return self.serve_one(handlers, timeout)


# end of class Server


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
