"""Status vocabulary shared by the DOB, ECB and HPD registries.

Each agency uses its own free-form status strings. These helpers decide whether
a status string means the violation is resolved.
"""

RESOLVED_VIOLATION_STATUSES = (
    "written off",
    "closed",
    "close",
    "dismissed",
    "paid",
    "paid in full",
    "resolved",
    "resolve",
    "complied",
    "withdrawn",
    "stipulation",
    "certified",
    "default - paid",
    "in violation - resolved",
    "in violation - paid",
)

# Statuses that carry no information either way
AMBIGUOUS_STATUSES = ("", "unknown", "n/a", "none")


def normalize_status(status: str | None) -> str:
    return (status or "").strip().lower()


def is_ambiguous_status(status: str | None) -> bool:
    return normalize_status(status) in AMBIGUOUS_STATUSES


def is_resolved_status(status: str | None) -> bool:
    """True if *status* matches one of the resolved-status phrases.

    Matching is substring-based because agencies decorate statuses,
    e.g. "V*-DOB VIOLATION - Resolved" or "RESOLVE".
    """
    normalized = normalize_status(status)
    if normalized in AMBIGUOUS_STATUSES:
        return False
    # "unresolved", "unpaid", "not complied with" must not read as resolved
    if "unresolved" in normalized or "unpaid" in normalized or normalized.startswith("not "):
        return False
    return any(resolved in normalized for resolved in RESOLVED_VIOLATION_STATUSES)

