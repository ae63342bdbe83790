import pytest

from p2pcore.envelope import (
    EmptyDomainError,
    EmptyPayloadTypeError,
    EnvelopeError,
    consume_envelope,
    consume_typed_envelope,
    seal,
    unmarshal_envelope,
)
from p2pcore.keys import Ed25519PrivateKey
from p2pcore.record import Record, register_type
from p2pcore.wire import decode_message, encode_message


class SimpleRecord(Record):
    def __init__(self, message="", test_domain=None, test_codec=None):
        self.message = message
        self.test_domain = test_domain
        self.test_codec = test_codec

    def domain(self):
        if self.test_domain is not None:
            return self.test_domain
        return "libp2p-testing"

    def codec(self):
        if self.test_codec is not None:
            return self.test_codec
        return b"/libp2p/testdata"

    def marshal_record(self):
        return self.message.encode()

    def unmarshal_record(self, data):
        self.message = bytes(data).decode()


class FailingRecord(Record):
    def __init__(self, allow_marshal=False, allow_unmarshal=False):
        self.allow_marshal = allow_marshal
        self.allow_unmarshal = allow_unmarshal

    def domain(self):
        return "testing"

    def codec(self):
        return b"doesn't matter"

    def marshal_record(self):
        if self.allow_marshal:
            return b""
        raise ValueError("marshal failed")

    def unmarshal_record(self, data):
        if not self.allow_unmarshal:
            raise ValueError("unmarshal failed")


@pytest.fixture
def priv():
    return Ed25519PrivateKey(bytes(range(32)))


def _alter(envelope, field_number, value):
    fields = decode_message(envelope.marshal())
    altered = [(n, value if n == field_number else v) for n, v in fields]
    return encode_message(altered)


def test_happy_path(priv):
    rec = SimpleRecord("hello world!")
    payload = rec.marshal_record()
    envelope = seal(rec, priv)
    assert envelope.public_key.equals(priv.get_public())
    assert envelope.payload_type == rec.codec()

    serialized = envelope.marshal()
    register_type(SimpleRecord())
    deserialized, rec2 = consume_envelope(serialized, rec.domain())
    assert deserialized.raw_payload == payload
    assert deserialized == envelope
    assert isinstance(rec2, SimpleRecord)
    assert rec2.message == "hello world!"


def test_signature_covers_length_prefixed_fields(priv):
    envelope = seal(SimpleRecord("hello world!"), priv)
    unsigned = b"\x0elibp2p-testing\x10/libp2p/testdata\x0chello world!"
    assert envelope.public_key.verify(unsigned, envelope.signature) is True


def test_marshal_field_numbers(priv):
    envelope = seal(SimpleRecord("hi"), priv)
    assert [n for n, _ in decode_message(envelope.marshal())] == [1, 2, 3, 5]


def test_consume_typed_envelope(priv):
    envelope = seal(SimpleRecord("hello world!"), priv)
    rec2 = SimpleRecord()
    env2 = consume_typed_envelope(envelope.marshal(), rec2)
    assert rec2.message == "hello world!"
    assert env2.record() is rec2


def test_typed_record(priv):
    envelope = seal(SimpleRecord("typed"), priv)
    dest = SimpleRecord()
    envelope.typed_record(dest)
    assert dest.message == "typed"


def test_record_is_cached(priv):
    register_type(SimpleRecord())
    envelope = unmarshal_envelope(seal(SimpleRecord("cached"), priv).marshal())
    first = envelope.record()
    assert first is envelope.record()
    assert first.message == "cached"


def test_seal_fails_with_empty_domain(priv):
    with pytest.raises(EmptyDomainError):
        seal(SimpleRecord("hello world!", test_domain=""), priv)


def test_seal_fails_with_empty_payload_type(priv):
    with pytest.raises(EmptyPayloadTypeError):
        seal(SimpleRecord("hello world!", test_codec=b""), priv)


def test_seal_fails_if_record_marshal_fails(priv):
    with pytest.raises(EnvelopeError, match="error marshaling record"):
        seal(FailingRecord(), priv)


def test_consume_fails_if_envelope_unmarshal_fails():
    with pytest.raises(EnvelopeError, match="failed when unmarshalling"):
        consume_envelope(b"not an Envelope protobuf", "doesn't-matter")


def test_consume_fails_if_record_unmarshal_fails(priv):
    register_type(FailingRecord())
    rec = FailingRecord(allow_marshal=True)
    env_bytes = seal(rec, priv).marshal()
    with pytest.raises(EnvelopeError, match="failed to unmarshal envelope payload") as info:
        consume_envelope(env_bytes, rec.domain())
    assert info.value.envelope is not None


def test_consume_typed_fails_if_record_unmarshal_fails(priv):
    register_type(FailingRecord())
    env_bytes = seal(FailingRecord(allow_marshal=True), priv).marshal()
    with pytest.raises(EnvelopeError, match="failed to unmarshal envelope payload"):
        consume_typed_envelope(env_bytes, FailingRecord())


def test_validate_fails_for_different_domain(priv):
    serialized = seal(SimpleRecord("hello world"), priv).marshal()
    with pytest.raises(EnvelopeError, match="failed to validate envelope") as info:
        consume_envelope(serialized, "wrong-domain")
    assert info.value.envelope.raw_payload == b"hello world"


def test_validate_fails_if_payload_type_altered(priv):
    envelope = seal(SimpleRecord("hello world!"), priv)
    serialized = _alter(envelope, 2, b"foo")
    with pytest.raises(EnvelopeError, match="failed to validate envelope"):
        consume_envelope(serialized, "libp2p-testing")


def test_validate_fails_if_contents_altered(priv):
    envelope = seal(SimpleRecord("hello world!"), priv)
    serialized = _alter(envelope, 3, b"totally legit, trust me")
    with pytest.raises(EnvelopeError, match="failed to validate envelope"):
        consume_envelope(serialized, "libp2p-testing")


def test_envelopes_from_different_keys_differ(priv):
    other = Ed25519PrivateKey(bytes([7]) * 32)
    rec = SimpleRecord("same")
    assert seal(rec, priv) != seal(rec, other)