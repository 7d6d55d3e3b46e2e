"""
Shared helpers for schema modules. Not a schema itself.
"""


def slugify(value: str) -> str:
    return value.strip().lower().replace(" ", "-")
