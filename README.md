# p2pcore

Core building blocks for peer-to-peer networking, with no dependencies beyond
the Python standard library.

## What is inside

| Module | Purpose |
| --- | --- |
| `p2pcore.peer` | `PeerID`: derive, encode, decode and validate peer identities |
| `p2pcore.addrinfo` | `AddrInfo`: a peer ID together with its transport addresses |
| `p2pcore.multiaddr` | `Multiaddr` and `Component`: self-describing network addresses |
| `p2pcore.multiformats` | base58, multihash and CID helpers |
| `p2pcore.keys` | `PublicKey` / `PrivateKey` and their protobuf wire form |
| `p2pcore.record` | the `Record` interface and the payload-type registry |
| `p2pcore.envelope` | signed `Envelope`s: `seal`, `consume_envelope`, `consume_typed_envelope` |
| `p2pcore.peer_record` | `PeerRecord`: signed, sequenced lists of a peer's addresses |
| `p2pcore.pnet` | reading pre-shared keys for private networks |
| `p2pcore.protocol` | protocol IDs and the `Router` / `Negotiator` / `Switch` interfaces |
| `p2pcore.query` | query events published through a cancellable `Context` |
| `p2pcore.routing` | routing interfaces and `get_public_key` |
| `p2pcore.routing_options` | `Options`, `expired` and `offline` |
| `p2pcore.peerstore` | peerstore interfaces and the `addr_infos` helper |
| `p2pcore.wire` | varints and a minimal protobuf message codec |

## Peer IDs

A peer ID is a multihash of a peer's public key. Its usual text form is
base58.

```python
from p2pcore.peer import decode, encode

pid = decode("QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va")
assert encode(pid) == "QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va"
print(pid.short_string())
```

`decode` also accepts a CID of type `libp2p-key`; `to_cid` and `from_cid`
convert in both directions. `id_from_public_key` derives the ID of a key,
inlining short keys with the identity hash when `enable_inlining` is true,
and `PeerID.extract_public_key` recovers such an inlined key.

## Addresses

```python
from p2pcore.addrinfo import addr_info_from_string, addr_info_to_p2p_addrs

info = addr_info_from_string(
    "/ip4/127.0.0.1/tcp/1234/p2p/QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va"
)
print(info.addrs)
print(addr_info_to_p2p_addrs(info))
```

`split_addr` separates the transport part of an address from its `/p2p`
part, and `addr_infos_from_p2p_addrs` groups many addresses by peer,
keeping their order. An address without a `/p2p` part raises
`InvalidAddrError`.

## Signed envelopes and peer records

A record is any object with `domain()`, `codec()`, `marshal_record()` and
`unmarshal_record(data)`. `seal(rec, private_key)` signs it into an
`Envelope`; `Envelope.marshal()` gives the bytes to send. On the receiving
side `consume_envelope(data, domain)` checks the signature and returns the
envelope together with the record, built from the type registered for the
envelope's payload type with `register_type`. A bad signature raises
`InvalidSignatureError`; an unknown payload type raises
`PayloadTypeNotRegisteredError`.

`PeerRecord` is such a record. It is registered on import, and
`timestamp_seq()` hands out strictly increasing sequence numbers for it.

## Private networks

```python
import io
from p2pcore.pnet import decode_v1_psk

key_file = io.BytesIO(b"/key/swarm/psk/1.0.0/\n/base16/\n" + b"ff" * 32)
psk = decode_v1_psk(key_file)
assert psk == b"\xff" * 32
```

Keys may be encoded as `/base16/`, `/base64/` or `/bin/`, with Unix or
Windows line endings. `force_private_network(environ)` tells whether the
environment demands a private network, and errors made by `new_error` are
recognised by `is_pnet_error`.

## Query events

```python
from p2pcore.query import (
    Context, QueryEvent, publish_query_event, register_for_query_events,
)

ctx, events = register_for_query_events(Context())
publish_query_event(ctx, QueryEvent(extra="hello"))
ctx.cancel()
```

Once the context is cancelled the event stream ends and further events are
dropped.

## Running the tests

Install the `test` extra and run pytest from the project directory.