import os

import pytest

from p2pcore.keys import Ed25519PrivateKey, PublicKey, marshal_public_key
from p2pcore.multiformats import IDENTITY, SHA2_256, multihash_sum
from p2pcore.peer import (
    EmptyPeerIDError,
    NoPublicKeyError,
    PeerID,
    PeerIDError,
    decode,
    encode,
    format_ids,
    from_cid,
    id_from_bytes,
    id_from_private_key,
    id_from_public_key,
    to_cid,
)

HPKP_MAN = "QmcJeseojbPW9hSejUM1sQ1a2QmbrryPK4Z8pWbRUPaYEn"


class _BigKey(PublicKey):
    @property
    def key_type(self):
        return 0

    def raw(self):
        return bytes(range(256))

    def verify(self, data, signature):
        return False


def rand_peer_id():
    return PeerID(multihash_sum(os.urandom(16), SHA2_256))


def _keysets():
    sk = Ed25519PrivateKey.generate()
    pk = sk.get_public()
    return [
        (sk, pk, multihash_sum(marshal_public_key(pk), IDENTITY)),
        (None, _BigKey(), multihash_sum(marshal_public_key(_BigKey()), SHA2_256)),
    ]


@pytest.mark.parametrize("sk,pk,hpk", _keysets())
def test_id_matches_keys(sk, pk, hpk):
    hpkp = encode(hpk)
    p1 = decode(hpkp)
    assert bytes(p1) == hpk
    assert p1.matches_public_key(pk)
    p2 = id_from_public_key(pk)
    assert p1 == p2
    assert p2.pretty() == hpkp
    if sk is not None:
        assert p1.matches_private_key(sk)
        assert id_from_private_key(sk) == p1


@pytest.mark.parametrize("sk,pk,hpk", _keysets())
def test_id_encoding(sk, pk, hpk):
    p1 = decode(encode(hpk))
    c = to_cid(p1)
    assert from_cid(c) == p1
    assert decode(str(c)) == p1
    assert encode(p1) == encode(hpk)


def test_manual_id_decodes():
    pid = decode(HPKP_MAN)
    assert pid[:2] == b"\x12\x20"
    assert pid.pretty() == HPKP_MAN


def test_refuses_non_peer_cid():
    with pytest.raises(PeerIDError):
        decode("bafkreifoybygix7fh3r3g5rqle3wcnhqldgdg4shzf4k3ulyw3gn7mabt4")
    assert not to_cid(PeerID()).defined()


def test_public_key_extraction():
    pk = Ed25519PrivateKey.generate().get_public()
    assert id_from_public_key(pk).extract_public_key().equals(pk)
    with pytest.raises(ValueError):
        PeerID().extract_public_key()
    with pytest.raises(NoPublicKeyError):
        id_from_public_key(_BigKey()).extract_public_key()


def test_validate():
    with pytest.raises(EmptyPeerIDError):
        PeerID().validate()
    p = rand_peer_id()
    p.validate()
    assert len(p) == 34


def test_serde_binary():
    pid = rand_peer_id()
    assert id_from_bytes(bytes(pid)) == pid


def test_serde_json():
    pid = rand_peer_id()
    assert PeerID.from_json(pid.to_json()) == pid


def test_serde_text():
    pid = rand_peer_id()
    assert PeerID.from_text(str(pid).encode()) == pid


def test_short_string_and_format():
    pid = decode("QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va")
    assert pid.short_string() == "<peer.ID Qm*i1K5Va>"
    assert format_ids([pid, pid]) == f"{pid}, {pid}"
    assert pid.loggable() == {"peerID": "QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va"}


def test_id_from_bytes_rejects():
    with pytest.raises(PeerIDError):
        id_from_bytes(b"not a multihash")