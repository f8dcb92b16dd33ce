""" Logging setup for processes built on syrpc. Library modules only ever
    call :func:`logging.getLogger`; a process that wants to see their output
    calls :func:`setup` once.
"""

import logging
import logging.handlers
import os


name = 'syrpc'
identity = 'syrpc'
format = '%(asctime)s %(levelname)s %(name)s: %(message)s'
syslog_format = '%(ident)s[%(process)d]: %(levelname)s %(name)s: %(message)s'

_setup_done = False


def setup(ident=identity, level=logging.DEBUG, syslog=False):
    """ Attach a handler to the top-level syrpc logger, at the requested
        *level*. With *syslog* set the messages go to the local syslog
        daemon tagged with *ident*, otherwise to stderr. Repeated calls
        return the already configured logger untouched.
    """

    global _setup_done

    logger = logging.getLogger(name)

    if _setup_done:
        return logger

    if syslog:
        address = '/dev/log' if os.path.exists('/dev/log') else ('localhost', 514)
        handler = logging.handlers.SysLogHandler(address=address,
                facility=logging.handlers.SysLogHandler.LOG_USER)
        handler.setFormatter(logging.Formatter(syslog_format.replace('%(ident)s', ident)))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(format))

    logger.addHandler(handler)
    logger.setLevel(level)

    _setup_done = True
    return logger


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
