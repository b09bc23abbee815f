# Overview: Role names understood by the location policy.

"""
Roles come from the external user directory as plain strings. Only the four
employee roles below can be restricted by a location policy; anything else
(including SuperAdmin) is never enforced.
"""

from __future__ import annotations

from .errors import ValidationError


ROLE_ADMIN = "Admin"
ROLE_AGENT = "Agent"
ROLE_QA = "QA"
ROLE_TL = "TL"
ROLE_SUPERADMIN = "SuperAdmin"

KNOWN_ROLES = (ROLE_ADMIN, ROLE_AGENT, ROLE_QA, ROLE_TL)

# Enforced whenever the organization has at least one active allowed location,
# even if the policy's role list leaves them out.
ALWAYS_ENFORCED_ROLES = frozenset({ROLE_AGENT, ROLE_QA, ROLE_TL})

_CANONICAL = {name.lower(): name for name in KNOWN_ROLES + (ROLE_SUPERADMIN,)}


def canonical_role(role: str | None) -> str | None:
    """Return the canonical spelling of a role, or the stripped input if unknown."""
    if role is None:
        return None
    stripped = str(role).strip()
    return _CANONICAL.get(stripped.lower(), stripped)


def normalize_policy_roles(roles) -> list[str]:
    """
    Validate a role list for a policy.

    Raises ValidationError if it is not a list or names a role outside KNOWN_ROLES.
    Duplicates are dropped; output keeps KNOWN_ROLES ordering.
    """
    if roles is None or isinstance(roles, (str, bytes)) or not hasattr(roles, "__iter__"):
        raise ValidationError("roles must be a list of role names")

    selected = set()
    unknown = []
    for raw in roles:
        name = canonical_role(raw) if isinstance(raw, str) else None
        if name not in KNOWN_ROLES:
            unknown.append(str(raw))
            continue
        selected.add(name)

    if unknown:
        raise ValidationError(
            f"Unknown role(s): {', '.join(unknown)}. Allowed: {', '.join(KNOWN_ROLES)}"
        )
    return [name for name in KNOWN_ROLES if name in selected]
