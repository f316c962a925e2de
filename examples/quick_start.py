#!/usr/bin/env python3
# Example usage of redis_object against a local Redis server.
# Set REDIS_OBJECT_SERVER / REDIS_OBJECT_PREFIX to point it elsewhere.

import re

from redis_object import Database

# Two tables: "name" and "city" get index keys, "profile" is stored as a JSON envelope
SCHEMA = {
    "Users": {
        "name": {"type": "str", "mandatory": True, "index": True},
        "city": {"type": "str_indexed_safe", "mandatory": True},
        "age": {"type": "int", "default": 0},
        "profile": {"type": "dict", "default": {}},
    },
    "Logins": {
        "user": {"type": "str_indexed", "mandatory": True},
        "count": {"type": "int", "default": 0},
    },
}

def main() -> None:
    db = Database.connect(SCHEMA)

    rec = db.create("Users", {"name": "Alice", "city": "Wien", "age": 33, "profile": {"lang": "de"}})
    print("Created:", rec.id)

    loaded = db.find("Users", rec.id)
    print("Loaded:", loaded)

    # Index-assisted and full-scan clauses can be mixed
    for r in db.search("Users", {"city": "Wien", "age": lambda v: v >= 18}):
        print("Adult in Wien:", r["name"], r["age"])

    for r in db.search("Users", {"name": re.compile("^A")}):
        print("Starts with A:", r["name"])

    rec.save({"age": 34})
    login = db.create("Logins", {"user": "Alice"})
    login.increment("count")

    changed = db.search("Users", {"name": "Alice"}).update_all({"city": "Graz"})
    print("Updated records:", changed)

    removed = db.delete("Users", {"city": "Graz"})
    print("Removed:", removed, "left:", db.count("Users"))

if __name__ == "__main__":
    main()
