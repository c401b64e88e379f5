import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from jsonrest.clients.errors import DeserializationError, SerializationError
from jsonrest.clients.headers import HeaderMap
from jsonrest.core.request import DEFAULT_CONTENT_TYPE, decode_into, encode_body, with_default_content_type


@dataclass
class User:
    id: str = ""
    name: str = ""
    age: int = 0


@dataclass
class Renamed:
    user_id: str = field(default="", metadata={"json": "userId"})


@dataclass(frozen=True)
class Frozen:
    id: str = ""


class Plain:
    def __init__(self):
        self.id = ""
        self.name = ""

    def save(self):
        return "saved"


@dataclass
class Tag:
    label: str = field(default="", metadata={"json": "tagLabel"})


@dataclass
class Post:
    title: str = ""
    views: int = 0
    author: Optional[User] = None
    tags: List[Tag] = field(default_factory=list)
    by_lang: Dict[str, Tag] = field(default_factory=dict)


def test_default_content_type_added_when_missing():
    assert with_default_content_type(None).get("Content-Type") == DEFAULT_CONTENT_TYPE
    assert with_default_content_type(HeaderMap()).get("Content-Type") == DEFAULT_CONTENT_TYPE


def test_default_content_type_replaces_empty_value():
    headers = HeaderMap({"Content-Type": ""})
    assert with_default_content_type(headers).get("Content-Type") == DEFAULT_CONTENT_TYPE


def test_explicit_content_type_preserved_and_input_untouched():
    headers = HeaderMap({"Authorization": "token"})
    prepared = with_default_content_type(headers)
    assert "Content-Type" not in headers
    assert prepared.get("Authorization") == "token"

    custom = HeaderMap({"content-type": "application/vnd.api+json"})
    assert with_default_content_type(custom).get("Content-Type") == "application/vnd.api+json"


def test_encode_body_none_is_no_body():
    assert encode_body(None) is None


def test_encode_body_dataclass_uses_field_names_and_aliases():
    assert encode_body(User("a", "b", 20)) == b'{"id": "a", "name": "b", "age": 20}'
    assert encode_body(Renamed("u1")) == b'{"userId": "u1"}'
    assert encode_body({"users": [User("a", "b", 1)]}) == b'{"users": [{"id": "a", "name": "b", "age": 1}]}'


@pytest.mark.parametrize("body", [object(), {"x": {1, 2}.__iter__()}, {"nan": math.nan}])
def test_encode_body_rejects_unencodable_values(body):
    with pytest.raises(SerializationError):
        encode_body(body)


def test_decode_into_dict_updates_in_place():
    sink = {"kept": True}
    value = decode_into(b'{"id": "a"}', sink)
    assert sink == {"kept": True, "id": "a"}
    assert value == {"id": "a"}


def test_decode_into_list_replaces_contents():
    sink = [1, 2, 3]
    decode_into(b'["a"]', sink)
    assert sink == ["a"]


def test_decode_into_dataclass_ignores_unknown_keys():
    sink = User(name="unchanged")
    decode_into(b'{"id": "a", "age": 20, "extra": 1}', sink)
    assert sink == User(id="a", name="unchanged", age=20)


def test_decode_into_dataclass_honours_alias():
    sink = Renamed()
    decode_into(b'{"userId": "u1"}', sink)
    assert sink.user_id == "u1"


def test_decode_into_plain_object_and_callable():
    sink = Plain()
    decode_into(b'{"id": "a", "name": "b", "unknown": 1}', sink)
    assert (sink.id, sink.name) == ("a", "b")
    assert not hasattr(sink, "unknown")

    received = []
    decode_into(b"42", received.append)
    assert received == [42]


@pytest.mark.parametrize(
    "content, sink",
    [
        (b"not json", {}),
        (b"", {}),
        (b"[1]", {}),
        (b'{"a": 1}', []),
        (b"[1]", User()),
        (b'{"id": "a"}', Frozen()),
        (b'{"id": "a"}', "immutable"),
    ],
)
def test_decode_into_failures(content, sink):
    with pytest.raises(DeserializationError):
        decode_into(content, sink)


def test_decode_into_dataclass_rebuilds_nested_types():
    sink = Post()
    decode_into(
        b'{"title": "t", "views": "7", "author": {"id": "a", "name": "b", "age": 3},'
        b' "tags": [{"tagLabel": "x"}], "by_lang": {"ko": {"tagLabel": "y"}}}',
        sink,
    )
    assert sink == Post("t", 7, User("a", "b", 3), [Tag("x")], {"ko": Tag("y")})


def test_decode_into_dataclass_accepts_null_optional():
    sink = Post(author=User("a"))
    decode_into(b'{"author": null}', sink)
    assert sink.author is None


@pytest.mark.parametrize(
    "content",
    [b'{"views": "many"}', b'{"author": "nobody"}', b'{"tags": [1]}', b'{"author": {"age": "old"}}'],
)
def test_decode_into_dataclass_type_mismatch(content):
    with pytest.raises(DeserializationError):
        decode_into(content, Post())


@pytest.mark.parametrize("sink", [{"kept": 1}, ["kept"], User(id="kept"), Plain()])
def test_decode_null_leaves_sink_untouched(sink):
    before = repr(sink) if not isinstance(sink, Plain) else dict(vars(sink))
    assert decode_into(b"null", sink) is None
    after = repr(sink) if not isinstance(sink, Plain) else dict(vars(sink))
    assert before == after


def test_decode_into_plain_object_skips_private_and_method_names():
    sink = Plain()
    decode_into(b'{"__class__": "x", "_hidden": 1, "save": 2, "id": "a"}', sink)
    assert type(sink) is Plain
    assert sink.id == "a"
    assert sink.save() == "saved"
    assert not hasattr(sink, "_hidden")


class Slotted:
    __slots__ = ("id",)


class ReadOnly:
    def __init__(self):
        self.__dict__["id"] = ""

    def __setattr__(self, key, value):
        raise AttributeError(f"{key} is read-only")


def test_decode_into_plain_object_assignment_failure():
    with pytest.raises(DeserializationError):
        decode_into(b'{"id": "a"}', ReadOnly())
    with pytest.raises(DeserializationError):
        decode_into(b'{"id": "a"}', Slotted())
