import os

import pytest
import syrpc


def test_defaults():

    settings = syrpc.Settings(app_name='unittest', amq_host='broker.example')

    assert settings.app_name == 'unittest'
    assert settings.amq_host == 'broker.example'
    assert settings.amq_virtualhost == '/'
    assert settings.amq_port == 5672
    assert settings.amq_user == 'guest'
    assert settings.amq_password == 'guest'
    assert settings.amq_ttl == 3 * 60 * 60
    assert settings.amq_msg_ttl == 10
    assert settings.amq_num_queues == 64
    assert settings.msg_encoding == 'utf-8'
    assert settings.timeout == 30
    assert settings.ack_late == False
    assert len(settings.amq_hash_key) == 16


def test_names():

    settings = syrpc.Settings(dict(app_name='syrpc', amq_host='localhost'))

    assert settings.request_name == 'syrpc_request'
    assert settings.result_exchange == 'syrpc_result_exchange'
    assert settings.result_exchange != settings.request_name
    assert settings.result_queue_name(0) == 'syrpc_result_queue_0'
    assert settings.result_queue_name(63) == 'syrpc_result_queue_63'


def test_required():

    with pytest.raises(ValueError):
        syrpc.Settings(amq_host='localhost')

    with pytest.raises(ValueError):
        syrpc.Settings(app_name='unittest')

    with pytest.raises(ValueError):
        syrpc.Settings(app_name='', amq_host='localhost')


def test_invalid():

    base = dict(app_name='unittest', amq_host='localhost')

    with pytest.raises(ValueError):
        syrpc.Settings(base, amq_transport='tcp')

    with pytest.raises(ValueError):
        syrpc.Settings(base, amq_num_queues=0)

    with pytest.raises(ValueError):
        syrpc.Settings(base, amq_msg_ttl=0)

    with pytest.raises(ValueError):
        syrpc.Settings(base, amq_hash_key='short')

    with pytest.raises(ValueError):
        syrpc.Settings(base, amq_port='not a number')


def test_load():

    settings = syrpc.Settings(app_name='unittest', amq_host='localhost')
    settings.load(dict(amq_num_queues='16', timeout='2.5', ack_late='yes'))

    assert settings.amq_num_queues == 16
    assert settings.timeout == 2.5
    assert settings.ack_late == True

    with pytest.raises(ValueError):
        settings.load(dict(amq_num_queues=-1))


def test_repr_hides_password():

    settings = syrpc.Settings(app_name='unittest', amq_host='localhost',
                              amq_password='secret')
    assert 'secret' not in repr(settings)
    assert settings.amq_password == 'secret'


def test_from_environment():

    environ = dict()
    environ['SYRPC_APP_NAME'] = 'fromenv'
    environ['SYRPC_AMQ_HOST'] = 'rabbit'
    environ['SYRPC_AMQ_NUM_QUEUES'] = '32'
    environ['SYRPC_AMQ_HASH_KEY'] = '0123456789abcdef'
    environ['UNRELATED'] = 'ignored'

    settings = syrpc.config.from_environment(environ)

    assert settings.app_name == 'fromenv'
    assert settings.amq_host == 'rabbit'
    assert settings.amq_num_queues == 32
    assert settings.amq_hash_key == b'0123456789abcdef'

    # Keyword arguments fill in for missing variables only.

    settings = syrpc.config.from_environment(dict(SYRPC_AMQ_HOST='rabbit'),
                                             app_name='fallback', amq_host='localhost')
    assert settings.app_name == 'fallback'
    assert settings.amq_host == 'rabbit'


def test_from_file(tmp_path):

    filename = os.path.join(str(tmp_path), 'settings.json')

    with open(filename, 'wb') as contents:
        contents.write(syrpc.json.dumps(dict(app_name='fromfile', amq_host='rabbit', amq_ttl=60)))

    settings = syrpc.config.from_file(filename)
    assert settings.app_name == 'fromfile'
    assert settings.amq_ttl == 60

    settings = syrpc.config.from_file(filename, amq_ttl=120)
    assert settings.amq_ttl == 120

    with open(filename, 'wb') as contents:
        contents.write(b'[1, 2')

    with pytest.raises(ValueError):
        syrpc.config.from_file(filename)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
