import pytest

from p2pcore.keys import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
    KeyCodecError,
    PublicKey,
    marshal_public_key,
    register_key_type,
    unmarshal_public_key,
)


def test_rfc8032_vector():
    sk = Ed25519PrivateKey(bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"))
    assert sk.get_public().raw().hex() == "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
    assert sk.sign(b"").hex() == (
        "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065"
        "224901555fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
    )


def test_sign_verify():
    sk = Ed25519PrivateKey.generate()
    sig = sk.sign(b"message")
    pk = sk.get_public()
    assert pk.verify(b"message", sig) is True
    assert pk.verify(b"other", sig) is False
    assert pk.verify(b"message", sig[:-1] + bytes([sig[-1] ^ 1])) is False


def test_marshal_round_trip():
    pk = Ed25519PrivateKey.generate().get_public()
    data = marshal_public_key(pk)
    assert data[:4] == b"\x08\x01\x12\x20"
    assert unmarshal_public_key(data).equals(pk)


def test_unmarshal_errors():
    with pytest.raises(KeyCodecError):
        unmarshal_public_key(b"\x08\x01")
    with pytest.raises(KeyCodecError):
        unmarshal_public_key(b"\x08\x09\x12\x01a")
    with pytest.raises(KeyCodecError):
        Ed25519PublicKey(b"short")


class _CustomKey(PublicKey):
    def __init__(self, raw):
        self._raw = raw

    @property
    def key_type(self):
        return 42

    def raw(self):
        return self._raw

    def verify(self, data, signature):
        return signature == data


def test_register_custom_type():
    register_key_type(42, _CustomKey)
    key = unmarshal_public_key(marshal_public_key(_CustomKey(b"abc")))
    assert isinstance(key, _CustomKey)
    assert key.raw() == b"abc"
    assert not key.equals(Ed25519PrivateKey.generate().get_public())