"""Unit tests for the user ancestry encoding."""

from uuid import uuid4

from orgtree.modules.users.models import User, encode_id_path, id_path_fragment


def test_encode_wraps_every_id():
    a, b = uuid4(), uuid4()

    assert encode_id_path([str(a), b]) == f"/{a}/{b}/"


def test_fragment_matches_only_whole_ids():
    a, b = uuid4(), uuid4()
    encoded = encode_id_path([a, b])

    assert id_path_fragment(a) in encoded
    assert id_path_fragment(b) in encoded
    assert id_path_fragment(uuid4()) not in encoded


def test_entity_ancestor_ids_decodes():
    a, b = uuid4(), uuid4()
    user = User(entity_id_path=encode_id_path([a, b]))

    assert user.entity_ancestor_ids == [a, b]
