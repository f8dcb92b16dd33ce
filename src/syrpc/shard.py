""" Deterministic assignment of correlation identifiers to result shards.
    The client waiting for a result and the server publishing it compute
    the shard independently, so the mapping must be identical across
    processes: it depends only on the identifier, the shard count, and a
    key shared through configuration.
"""

from siphashc import siphash


# Application-wide key for the shard hash. Every client and server of a
# deployment must agree on it; override it with the amq_hash_key setting.

KEY = b'EdaeYa6eesh3ahSh'
NUM_QUEUES = 64


def hash32(string, key=KEY):
    """ Return a keyed 31-bit hash of *string*. The 64-bit SipHash-2-4
        value is cut down to its low 32 bits, and the sign bit of those
        is masked off so the value is never negative. This matches the
        sip_hash32() based shard selection of the PHP implementation.
    """

    if isinstance(string, str):
        string = string.encode('utf-8')

    hash64 = siphash(key, string)

    return (hash64 & 0xFFFFFFFF) & 0x7FFFFFFF


def shard(string, count=NUM_QUEUES, key=KEY):
    """ Return the shard index in [0, *count*) for *string*. A power of two
        for *count* keeps the distribution uniform, since the hash covers
        exactly 2**31 values.
    """

    count = int(count)
    if count < 1:
        raise ValueError('shard count must be positive, not ' + repr(count))

    return hash32(string, key) % count


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
