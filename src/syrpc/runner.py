""" Demonstration driver, runnable as ``syrpc`` or ``python -m syrpc``.
    The server side answers 'echo' requests with their own data; the client
    side sends one echo request and checks what comes back. Connection
    settings are read from SYRPC_* environment variables.
"""

import argparse
import logging
import sys

from . import config
from . import log
from .client import Client
from .server import Server
from .transport import TransportConnectionError, TransportTimeout


logger = logging.getLogger(__name__)

MODE_CLIENT = 'client'
MODE_SERVER = 'server'

echo_data = {'foo': 'bar', 'baz': 9001}


def echo(data):
    return data


handlers = {'echo': echo}


def get_settings(environ=None):
    return config.from_environment(environ, app_name='syrpc', amq_host='localhost')


def run_client(settings, connection_factory=None, timeout=None):
    """ Put one echo request and wait for its result. Return the process
        exit status: 0 if the echoed data matches, 1 otherwise.
    """

    with Client(settings, connection_factory) as client:
        result_id = client.put_request('echo', echo_data)
        logger.debug("Client put request %s on AMQ", result_id)

        try:
            result = client.get_result(result_id, timeout)
        except TransportTimeout as e:
            logger.error("Client got no result for %s: %s", result_id, e)
            return 1

    logger.debug("Client got data for %s", result_id)

    if result == echo_data:
        return 0

    print('Client received wrong data for ' + result_id)
    return 1


def run_server(settings, forever=False, connection_factory=None, timeout=None):
    """ Serve echo requests: a single one, or indefinitely if *forever* is
        set. Return the process exit status.
    """

    logger.debug("Starting server in forever mode: %s", forever)

    with Server(settings, connection_factory) as server:
        server.serve(handlers, timeout, forever=forever)

    return 0


def parse_arguments(argv=None):

    parser = argparse.ArgumentParser(prog='syrpc', description='Run one side of the syrpc echo demonstration.')
    parser.add_argument('mode', choices=(MODE_CLIENT, MODE_SERVER),
                        help="run either side of the echo exchange")
    parser.add_argument('forever', nargs='?', choices=('forever',),
                        help="keep serving instead of handling a single request")
    parser.add_argument('-t', '--timeout', type=float, default=None,
                        help="seconds to wait for a message (default: SYRPC_TIMEOUT or 30)")
    parser.add_argument('--syslog', action='store_true',
                        help="log to syslog instead of stderr")
    parser.add_argument('-q', '--quiet', action='store_true',
                        help="only log warnings and errors")

    return parser.parse_args(argv)


def main(argv=None):

    arguments = parse_arguments(argv)

    level = logging.WARNING if arguments.quiet else logging.DEBUG
    log.setup('syrpc-python-test', level, syslog=arguments.syslog)

    try:
        settings = get_settings()
    except ValueError as e:
        logger.critical("Invalid settings: %s", e)
        return 2

    try:
        if arguments.mode == MODE_CLIENT:
            return run_client(settings, timeout=arguments.timeout)
        else:
            forever = arguments.forever == 'forever'
            return run_server(settings, forever, timeout=arguments.timeout)
    except TransportConnectionError as e:
        logger.critical("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    sys.exit(main())

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
