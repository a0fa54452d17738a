"""URL slugs for listings."""
from __future__ import annotations

import re
from typing import Any, Dict, List

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    text = (value or "").lower().strip().replace("&", " and ")
    return _NON_ALNUM.sub("-", text).strip("-")


def assign_slugs(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return copies of rows with a unique "slug" in collection order.

    The first place with a given base slug keeps it bare; the n-th
    repeat gets "-n". A numbered slug that collides with a real base is
    bumped until it is free.
    """
    used: Dict[str, int] = {}
    taken = set()
    out: List[Dict[str, Any]] = []
    for row in rows:
        base = slugify(str(row.get("name") or "")) or "place"
        count = used.get(base, 0) + 1
        slug = base if count == 1 else f"{base}-{count}"
        while slug in taken:
            count += 1
            slug = f"{base}-{count}"
        used[base] = count
        taken.add(slug)
        out.append({**row, "slug": slug})
    return out
