"""
auth/permissions.py -- Role permission matching.

Permissions are dotted strings ("orders.create"). A role holds a list of
grant patterns, each one of:
  "*"            -- every permission
  "orders.view"  -- exactly that permission
  "orders.*"     -- anything under the "orders." prefix

has_permission() is a pure function over that list so it can be used by the
Role dataclass, the session, and tests alike.

There is no role-name shortcut: a role called "admin" gets everything only
because it is seeded with "*".
"""

from __future__ import annotations

from collections.abc import Iterable

WILDCARD = "*"
_PREFIX_SUFFIX = ".*"


def has_permission(grants: Iterable[str], name: str) -> bool:
    """Return True if any grant in grants covers the permission name.

    Evaluation order, first match wins:
      1. "*" grants everything.
      2. An exact match.
      3. A "prefix.*" grant matches names starting with "prefix.".
    An empty grant list grants nothing.
    """
    grants = list(grants)
    if WILDCARD in grants:
        return True
    if name in grants:
        return True
    for grant in grants:
        if grant.endswith(_PREFIX_SUFFIX):
            prefix = grant[: -len(_PREFIX_SUFFIX)]
            if name.startswith(prefix + "."):
                return True
    return False


def is_valid_grant(grant: str) -> bool:
    """Return True if grant is "*", an exact dotted name, or a "prefix.*" pattern.

    Rejects blanks, embedded whitespace, and stray "*" anywhere other than the
    two allowed positions.
    """
    if not grant or grant != grant.strip() or any(ch.isspace() for ch in grant):
        return False
    if grant == WILDCARD:
        return True
    body = grant[: -len(_PREFIX_SUFFIX)] if grant.endswith(_PREFIX_SUFFIX) else grant
    return bool(body) and WILDCARD not in body and not body.startswith(".") and not body.endswith(".")
