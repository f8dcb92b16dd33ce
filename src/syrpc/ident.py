""" Correlation identifiers. Every request is tagged with a fresh
    identifier so its result can be picked out of a shared result queue.
"""

import uuid


def new():
    """ Return a random (version 4) UUID as its canonical 8-4-4-4-12
        hexadecimal string.
    """

    return str(uuid.uuid4())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
