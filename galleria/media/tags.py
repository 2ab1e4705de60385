"""Comma-separated tag strings."""


def parse_tags(tags: str | None) -> list[str]:
    """Split ``"a, b,,c"`` into ``["a", "b", "c"]``."""
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def normalize_tags(tags: str | None) -> str:
    """Canonical storage form: trimmed, de-duplicated, comma-joined."""
    seen: dict[str, str] = {}
    for tag in parse_tags(tags):
        seen.setdefault(tag.lower(), tag)
    return ",".join(seen.values())
