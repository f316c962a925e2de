import pytest
from redis_object import MemoryStore, StoreError
from redis_object.globmatch import compile_glob

def test_set_get_delete():
    s = MemoryStore()
    s.set("a", "1")
    s.set("b", 2)
    s.set("c", b"bytes")
    assert s.get("a") == "1"
    assert s.get("b") == "2"
    assert s.get("c") == "bytes"
    assert s.get("missing") is None
    assert s.delete("a", "missing") == 1
    assert s.get("a") is None
    assert len(s) == 2

def test_incr():
    s = MemoryStore()
    assert s.incr("n") == 1
    assert s.incr("n", 5) == 6
    assert s.get("n") == "6"
    s.set("txt", "abc")
    with pytest.raises(StoreError):
        s.incr("txt")

def test_invalid_values():
    s = MemoryStore()
    with pytest.raises(StoreError):
        s.set("k", True)
    with pytest.raises(StoreError):
        s.set("k", {"a": 1})

def test_closed_store():
    s = MemoryStore({"a": "1"})
    s.close()
    with pytest.raises(StoreError):
        s.get("a")

def test_keys_pattern():
    s = MemoryStore({
        "t:1:_": 1,
        "t:1:name": "x",
        "t:1:_:name:A_b": 1,
        "t:12:_": 1,
        "t:_id": 12,
        "u:1:_": 1,
    })
    assert sorted(s.keys("t:1:*")) == ["t:1:_", "t:1:_:name:A_b", "t:1:name"]
    assert sorted(s.keys("t:*:_")) == ["t:12:_", "t:1:_"]
    assert sorted(s.keys("t:*")) == ["t:12:_", "t:1:_", "t:1:_:name:A_b", "t:1:name", "t:_id"]
    assert s.keys("t:*:_:name:a_b") == []

@pytest.mark.parametrize("pattern,key,expected", [
    ("h?llo", "hello", True),
    ("h?llo", "hllo", False),
    ("h*llo", "heeeello", True),
    ("h[ae]llo", "hallo", True),
    ("h[ae]llo", "hillo", False),
    ("h[^e]llo", "hallo", True),
    ("h[^e]llo", "hello", False),
    ("h[a-b]llo", "hbllo", True),
    ("h[a-b]llo", "hcllo", False),
    ("h\\*llo", "h*llo", True),
    ("h\\*llo", "hello", False),
    ("a.b", "axb", False),
    ("[x", "[x", True),
])
def test_glob_match(pattern, key, expected):
    assert (compile_glob(pattern).match(key) is not None) is expected
