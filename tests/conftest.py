import pytest
import syrpc

import fakebroker


@pytest.fixture
def broker():
    return fakebroker.Broker()


@pytest.fixture
def settings():
    return syrpc.Settings(app_name='unittest', amq_host='localhost',
                          amq_num_queues=8, timeout=1)


@pytest.fixture
def client(broker, settings):
    client = syrpc.Client(settings, broker.connect)
    yield client
    client.close()


@pytest.fixture
def server(broker, settings):
    server = syrpc.Server(settings, broker.connect)
    yield server
    server.close()


@pytest.fixture
def same_shard(settings):
    """ Return a function yielding distinct identifiers that all hash to
        one shard.
    """

    def ids(count=2):
        return same_shard_ids(settings, count)

    return ids


def same_shard_ids(settings, count=2):
    """ Return *count* distinct identifiers that all hash to one shard.
    """

    by_shard = dict()

    while True:
        result_id = syrpc.ident.new()
        index = settings.shard(result_id)
        found = by_shard.setdefault(index, list())
        found.append(result_id)

        if len(found) == count:
            return found


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
