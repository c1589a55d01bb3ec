# godis

Building blocks for a Redis-compatible key-value server, in pure Python with
no third-party dependencies. Python 3.10 or newer is required.

## Modules

- `godis.protocol`: RESP reply types, each serialised with `to_bytes()`:
  `StatusReply`, `IntReply`, `BulkReply`, `MultiBulkReply`, `MultiRawReply`,
  `OkReply`, `PongReply`, `QueuedReply`, `NullBulkReply`,
  `EmptyMultiBulkReply`, `NoReply`, and the error replies
  `StandardErrReply`, `UnknownErrReply`, `ArgNumErrReply`, `SyntaxErrReply`,
  `WrongTypeErrReply` and `ProtocolErrReply` (these are also exceptions).
  `is_ok_reply` and `is_error_reply` classify a reply by its encoding.
- `godis.parser`: a streaming RESP parser. `parse_stream(reader)` yields
  `Payload` objects carrying either `data` (a reply) or `error`; recoverable
  protocol errors are reported as `ProtocolError` payloads and parsing goes on.
  Inline text commands such as `set a a\r\n` become a `MultiBulkReply`.
  `parse_bytes` returns every reply in a byte string and `parse_one` the first,
  both raising the first error met.
- `godis.connection`: per-client state (`Connection`: subscriptions,
  transaction queue, selected database, replica/master flags) and `FakeConn`,
  an in-memory connection whose written bytes can be read back with `read()`
  or `getvalue()`.
- `godis.pubsub`: channel subscriptions with `Hub`, `subscribe`,
  `unsubscribe`, `unsubscribe_all` and `publish`. Confirmations and messages
  are written straight to the subscribing connections.
- `godis.tcp`: a threaded TCP accept loop. `listen_and_serve(listener,
  handler, close_event)` serves each connection in a thread until the
  `threading.Event` is set; `listen_and_serve_with_signal(ServerConfig(...),
  handler)` binds the address and stops on SIGHUP, SIGQUIT, SIGTERM or SIGINT.
  `EchoHandler` sends every received line back and is useful for checking the
  loop works.
- `godis.client`: `Client(addr)`, a pipelining client with a heartbeat every
  ten seconds and reconnection. `send(args)` returns the reply, or a
  `StandardErrReply` of `client closed`, `server time out` (after three
  seconds) or `request failed`.
- `godis.pool`: `Pool(factory, finalizer, PoolConfig(max_idle, max_active))`
  hands out objects, creating them up to `max_active` and otherwise waiting
  for one to be returned with `put`. `get` on a closed pool raises
  `PoolClosedError`.
- `godis.timewheel`: `TimeWheel(interval, slot_num)` runs jobs after a delay
  (seconds or `timedelta`); jobs with a non-empty key can be replaced or
  cancelled. The module-level `delay`, `at` and `cancel` use a shared wheel
  with a one-second tick and 3600 slots.
- `godis.geohash`: `encode`, `decode`, `to_string`, `to_int`, `from_int`,
  `to_range`, `distance` (metres) and `get_neighbours` (code ranges of the
  nine blocks around a point).
- `godis.consistenthash`: `HashRing`, a consistent hash ring honouring hash
  tags such as `{abc}`; CRC-32 is the default hash.
- `godis.wildcard`: `compile_pattern` turns glob patterns (`*`, `?`, `[...]`,
  `[^...]`, `\` escapes) into a `Pattern` with `is_match`; a pattern ending in
  a lone backslash raises `PatternError`.
- `godis.idgenerator`: `IDGenerator(node)`, snowflake-style unique 64-bit ids.
- `godis.utils`, `godis.syncutil` (`AtomicBool`, `Wait`) and `godis.logger`
  (`setup(Settings(...))` adds a dated log file under `logs/` by default).

## Examples

Parse a RESP message and serialise it back:

```python
from godis.parser import parse_one

reply = parse_one(b":1\r\n")
assert reply.to_bytes() == b":1\r\n"
```

Match keys against glob patterns:

```python
from godis.wildcard import compile_pattern

pattern = compile_pattern("h[a-c]llo")
assert pattern.is_match("hallo")
assert not pattern.is_match("hello")
```

Spread keys over nodes with a consistent hash ring:

```python
from godis.consistenthash import HashRing

ring = HashRing(3, None)
ring.add_node("a", "b", "c", "d")
print(ring.pick_node("123{abc}"))
```

Encode coordinates as a geohash:

```python
from godis import geohash

code = geohash.encode(48.669, -4.32913)
assert geohash.to_string(geohash.from_int(code)) == "gbsuv7zt7zntw"
latitude, longitude = geohash.decode(code)
```

Publish to subscribers:

```python
from godis.connection import FakeConn
from godis.pubsub import Hub, publish, subscribe
from godis.utils import to_cmd_line

hub = Hub()
conn = FakeConn()
subscribe(hub, conn, to_cmd_line("news"))
conn.clean()
publish(hub, to_cmd_line("news", "hello"))
print(conn.getvalue())
```

Run a job later:

```python
from godis.timewheel import cancel, delay

delay(5, "reminder", lambda: print("five seconds passed"))
cancel("reminder")
```

Generate unique, roughly time-ordered ids:

```python
from godis.idgenerator import IDGenerator

generator = IDGenerator("node-a")
first, second = generator.next_id(), generator.next_id()
assert first < second
```

## What this package does not do

There is no key-value store here: no database, no command table and no
handler that executes commands such as GET or SET. The TCP loop only comes
with the `EchoHandler`; to serve the Redis protocol you supply your own
handler with `handle(conn)` and `close()` methods. There is also no
persistence (append-only file or snapshots), no cluster mode, no
configuration-file loading and no command-line program.