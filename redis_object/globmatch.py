import re
from functools import lru_cache
from typing import Pattern

# Redis KEYS glob syntax: * ? [abc] [^a] [a-z] and \ to escape the next char.


def _class_pattern(body: str) -> str:
    negate = body.startswith("^")
    if negate:
        body = body[1:]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(re.escape(body[i + 1]))
            i += 2
            continue
        if ch == "-" and out and i + 1 < len(body):
            out.append("-")
        else:
            out.append(re.escape(ch))
        i += 1
    return "[" + ("^" if negate else "") + "".join(out) + "]"


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    segs = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            segs.append(re.escape(pattern[i + 1]))
            i += 2
        elif ch == "*":
            segs.append(".*")
            i += 1
        elif ch == "?":
            segs.append(".")
            i += 1
        elif ch == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                segs.append(re.escape(ch))
                i += 1
            else:
                segs.append(_class_pattern(pattern[i + 1:end]))
                i = end + 1
        else:
            segs.append(re.escape(ch))
            i += 1
    return re.compile("".join(segs) + r"\Z", re.DOTALL)
