"""Building blocks of a Redis-compatible server: protocol, parser, pub/sub, networking and utilities."""

__version__ = "1.2.8"
__all__ = [
    "client",
    "connection",
    "consistenthash",
    "geohash",
    "idgenerator",
    "logger",
    "parser",
    "pool",
    "protocol",
    "pubsub",
    "syncutil",
    "tcp",
    "timewheel",
    "utils",
    "wildcard",
]