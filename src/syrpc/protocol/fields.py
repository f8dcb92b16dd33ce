"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Envelope keys, as they appear in the JSON body of every message.
RESULT_ID = "result_id"
TYPE = "type"
DATA = "data"

# Message properties.
CONTENT_TYPE = "application/json"
DELIVERY_MODE = 2                       # persistent
ENCODING = "utf-8"

# Naming scheme for broker resources; each is formatted with the
# application name, the result queue additionally with its shard index.
REQUEST_NAME = "%s_request"
REQUEST_EXCHANGE_TYPE = "direct"
RESULT_EXCHANGE_NAME = "%s_result_exchange"
RESULT_EXCHANGE_TYPE = "direct"
RESULT_QUEUE_NAME = "%s_result_queue_%d"

# Queue arguments understood by RabbitMQ, both in milliseconds.
QUEUE_EXPIRES = "x-expires"
MESSAGE_TTL = "x-message-ttl"
