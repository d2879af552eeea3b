from __future__ import annotations

from jsonfoundry.core.jsonschema.pointers import resolve_pointer
from jsonfoundry.core.jsonschema.types import JsonSchema


def is_local_reference(reference: object) -> bool:
    return isinstance(reference, str) and (reference == "#" or reference.startswith("#/"))


def resolve_local_reference(root: JsonSchema, reference: str) -> tuple[str, JsonSchema] | None:
    """Resolve an in-document `$ref`.

    Returns the canonical pointer of the target together with the target itself, or `None`
    if the reference is remote or points nowhere.
    """
    if not is_local_reference(reference):
        return None
    try:
        target = resolve_pointer(root, reference)
    except LookupError:
        return None
    if not isinstance(target, (dict, bool)):
        return None
    return reference, target
