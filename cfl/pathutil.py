from __future__ import annotations

def safe_member_name(name: str) -> str:
    """Normalize an archive member name into a relative extraction path.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments and names that normalize to nothing
    """
    p = name.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError(f"Member name may not contain '..': {name!r}")
    if not parts:
        raise ValueError(f"Member name is empty after normalization: {name!r}")
    return "/".join(parts)
