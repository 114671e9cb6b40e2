"""ELM327 adapter layer: serial transport, AT command channel, PID codec."""

from .channel import CommandChannel
from .codec import decode_response, encode_request
from .transport import Connection, open_connection
