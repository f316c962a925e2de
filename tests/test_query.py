import re
import pytest
from redis_object import Database, MemoryStore, Prefix, Regex, ValidationError

def make_schema():
    return {
        "People": {
            "name":  {"type": "str", "mandatory": True, "index": True},
            "city":  {"type": "str_indexed", "mandatory": True},
            "title": {"type": "str", "default": ""},
            "age":   {"type": "int", "default": 0},
            "meta":  {"type": "dict", "default": {}},
        },
    }

PEOPLE = [
    ("Alice Smith", "Wien", "Doctor", 30),
    ("Bob", "Graz", "Developer", 25),
    ("Charlie", "Wien", "Developer", 50),
    ("Alice Smith", "Linz", "Designer", 41),
]

def make_db():
    store = MemoryStore()
    db = Database(store, make_schema())
    for name, city, title, age in PEOPLE:
        db.create("People", {"name": name, "city": city, "title": title, "age": age})
    return store, db

def ids(result):
    return sorted(r.id for r in result)

def test_indexed_exact_search():
    _, db = make_db()
    assert ids(db.search("People", {"name": "Alice Smith"})) == [1, 4]
    assert ids(db.search("People", {"name": "Alice  Smith"})) == [1, 4]
    assert ids(db.search("People", {"name": "alice smith"})) == []
    assert ids(db.search("People", {"city": "Wien"})) == [1, 3]

def test_indexed_wildcard_and_prefix_clause():
    _, db = make_db()
    assert ids(db.search("People", {"name": "Ali*"})) == [1, 4]
    assert ids(db.search("People", {"name": Prefix("Ch")})) == [3]
    assert ids(db.search("People", {"city": Prefix("")})) == [1, 2, 3, 4]

def test_glob_characters_in_value_are_literal():
    _, db = make_db()
    db.create("People", {"name": "Q?", "city": "[x]"})
    assert ids(db.search("People", {"name": "Q?"})) == [5]
    assert ids(db.search("People", {"name": "Qa"})) == []
    assert ids(db.search("People", {"city": "[x]"})) == [5]
    assert ids(db.search("People", {"city": "x"})) == []

def test_non_indexed_equality_and_prefix():
    _, db = make_db()
    assert ids(db.search("People", {"title": "Developer"})) == [2, 3]
    assert ids(db.search("People", {"title": "De*"})) == [2, 3, 4]
    assert ids(db.search("People", {"age": 25})) == [2]
    assert ids(db.search("People", {"age": "25"})) == [2]

def test_regex_and_function_clauses():
    _, db = make_db()
    assert ids(db.search("People", {"title": re.compile(r"^D.*er$")})) == [2, 3, 4]
    assert ids(db.search("People", {"name": Regex("^[AB]")})) == [1, 2, 4]
    assert ids(db.search("People", {"age": lambda v: v >= 41})) == [3, 4]

def test_callable_filter():
    _, db = make_db()
    res = db.search("People", lambda rec: rec["city"] == "Wien" and rec["age"] > 40)
    assert ids(res) == [3]

def test_and_search_mixes_index_and_predicates():
    _, db = make_db()
    assert ids(db.search("People", {"city": "Wien", "title": "Developer"})) == [3]
    assert ids(db.search("People", {"name": "Alice Smith", "age": lambda v: v < 35})) == [1]

def test_and_search_intersects_index_sets():
    _, db = make_db()
    # both clauses indexed, no post-fetch tests
    assert ids(db.search("People", {"name": "Alice Smith", "city": "Linz"})) == [4]
    assert ids(db.search("People", {"name": "Bob", "city": "Wien"})) == []

def test_or_search():
    _, db = make_db()
    res = db.search("People", {"name": "Bob", "city": "Linz"}, or_search=True)
    assert ids(res) == [2, 4]
    res = db.search("People", {"title": "Doctor", "age": 50}, or_search=True)
    assert ids(res) == [1, 3]
    res = db.search("People", {"name": "Charlie", "title": "Doctor"}, or_search=True)
    assert ids(res) == [1, 3]

def test_empty_filter_matches_all():
    _, db = make_db()
    assert ids(db.search("People", {})) == [1, 2, 3, 4]
    assert ids(db.search("People", {}, or_search=True)) == [1, 2, 3, 4]

def test_full_scan_skips_missing_ids():
    _, db = make_db()
    db.find("People", 2).remove()
    assert ids(db.search("People", {"title": "De*"})) == [3, 4]
    # last id is part of the scan
    assert ids(db.search("People", {"age": 41})) == [4]

def test_cursor_next_and_position():
    _, db = make_db()
    res = db.search("People", {"city": "Wien"})
    assert res.position == -1
    first = res.next()
    assert first.id == 1
    assert res.next().id == 3
    assert res.next() is None
    assert res.next() is None

def test_reset_reflects_mutation():
    _, db = make_db()
    res = db.search("People", {"city": "Wien"})
    assert len(res.all()) == 2
    db.create("People", {"name": "Dora", "city": "Wien"})
    db.find("People", 1).remove()
    assert res.all() == []
    res.reset()
    assert ids(res) == [3, 5]

def test_update_all_and_remove_all():
    store, db = make_db()
    res = db.search("People", {"title": "Developer"})
    assert res.update_all({"city": "Salzburg"}) == 2
    assert ids(db.search("People", {"city": "Salzburg"})) == [2, 3]
    assert ids(db.search("People", {"city": "Wien"})) == [1]
    assert store.keys("people:3:_:city:*") == ["people:3:_:city:Salzburg"]

    assert db.search("People", {"city": "Salzburg"}).remove_all() == 2
    assert db.count("People") == 2
    assert db.delete("People", {"name": "Alice Smith"}) == 2
    assert db.count("People") == 0

def test_invalid_filters():
    _, db = make_db()
    with pytest.raises(TypeError):
        db.search("People", ["name"])
    with pytest.raises(ValidationError):
        db.search("People", {"nope": 1})

def test_update_all_with_empty_fields_still_rewrites():
    store, db = make_db()
    store.set("people:2:_", 0)
    assert db.search("People", {"title": "Developer"}).update_all({}) == 2
    assert store.get("people:2:_") != "0"
    assert db.find("People", 2)["city"] == "Graz"

def test_full_scan_sees_records_created_while_iterating():
    _, db = make_db()
    seen = []
    for rec in db.search("People", {"title": "Developer*"}):
        seen.append(rec.id)
        if rec.id == 2:
            db.create("People", {"name": "Eve", "city": "Wien", "title": "Developer"})
    assert seen == [2, 3, 5]
