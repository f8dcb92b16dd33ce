import logging

import pytest
import syrpc

from syrpc import runner


def test_echo_round_trip(broker, settings):

    with syrpc.Client(settings, broker.connect) as client:
        result_id = client.put_request('echo', runner.echo_data)

    assert runner.run_server(settings, connection_factory=broker.connect, timeout=1) == 0

    # The result is waiting on its shard for a client to collect it.

    index = settings.shard(result_id)
    assert len(broker.queues[settings.result_queue_name(index)].messages) == 1


def test_run_server_no_work(broker, settings):

    assert runner.run_server(settings, connection_factory=broker.connect, timeout=0.05) == 0


def test_run_client_timeout(broker, settings):

    assert runner.run_client(settings, connection_factory=broker.connect, timeout=0.1) == 1


def test_run_client(broker, settings, monkeypatch):

    def respond(self, result_id, timeout=None):
        # Stand in for a server answering between put and get.

        with syrpc.Server(settings, broker.connect) as server:
            type, request_id, data = server.get_request(1)
            server.put_result(request_id, data)

        return original(self, result_id, timeout)

    original = syrpc.Client.get_result
    monkeypatch.setattr(syrpc.Client, 'get_result', respond)

    assert runner.run_client(settings, connection_factory=broker.connect, timeout=1) == 0


def test_run_client_wrong_data(broker, settings, monkeypatch, capsys):

    def respond(self, result_id, timeout=None):
        with syrpc.Server(settings, broker.connect) as server:
            type, request_id, data = server.get_request(1)
            server.put_result(request_id, {'foo': 'not bar'})
        return original(self, result_id, timeout)

    original = syrpc.Client.get_result
    monkeypatch.setattr(syrpc.Client, 'get_result', respond)

    assert runner.run_client(settings, connection_factory=broker.connect, timeout=1) == 1
    assert 'wrong data' in capsys.readouterr().out


def test_arguments():

    arguments = runner.parse_arguments(['server', 'forever', '-t', '5'])
    assert arguments.mode == 'server'
    assert arguments.forever == 'forever'
    assert arguments.timeout == 5.0

    arguments = runner.parse_arguments(['client'])
    assert arguments.mode == 'client'
    assert arguments.forever is None
    assert arguments.timeout is None

    with pytest.raises(SystemExit):
        runner.parse_arguments(['neither'])


def test_main_connection_failure(monkeypatch):

    # Nothing listens on this port; the connection attempt fails quickly.

    monkeypatch.setenv('SYRPC_AMQ_HOST', '127.0.0.1')
    monkeypatch.setenv('SYRPC_AMQ_PORT', '1')

    assert runner.main(['client', '--quiet']) == 1


def test_main_invalid_settings(monkeypatch):

    monkeypatch.setenv('SYRPC_AMQ_NUM_QUEUES', '0')
    assert runner.main(['server', '--quiet']) == 2


def test_log_setup():

    logger = syrpc.log.setup(level=logging.INFO)
    assert logger.name == 'syrpc'

    handlers = list(logger.handlers)
    again = syrpc.log.setup(level=logging.DEBUG)

    assert again is logger
    assert logger.handlers == handlers


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
