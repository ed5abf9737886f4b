from .base import Transport
from .socket_transport import TcpTransport, UnixSocketTransport, encode_lines

__all__ = ["Transport", "TcpTransport", "UnixSocketTransport", "encode_lines"]
