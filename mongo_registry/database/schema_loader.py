"""
Schema discovery and loading.

Resolves include/exclude glob patterns against a project root and loads
each matched file as a SchemaDefinition.

Supported files:
- ``.py`` modules defining ``SCHEMA_MANIFEST``, either a SchemaDefinition or a
  mapping with ``name``, ``document`` (a pydantic model class) and optional
  ``collection`` and ``indexes``
- ``.json`` documents with ``name``, ``fields`` and optional ``collection``
  and ``indexes``; the document model is built from ``fields``
"""
import asyncio
import glob
import hashlib
import importlib.util
import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError, create_model

from mongo_registry.core.errors import SchemaResolutionError
from mongo_registry.models.schema import SchemaDefinition

logger = logging.getLogger(__name__)

NEGATION = "!"
MANIFEST_ATTRIBUTE = "SCHEMA_MANIFEST"

# Guards sys.modules while schema modules load on worker threads
_IMPORT_LOCK = threading.Lock()

FIELD_TYPES: dict[str, Any] = {
    "str": str,
    "string": str,
    "int": int,
    "integer": int,
    "float": float,
    "number": float,
    "bool": bool,
    "boolean": bool,
    "datetime": datetime,
    "date": datetime,
    "list": list,
    "array": list,
    "dict": dict,
    "object": dict,
    "any": Any,
}


# ==================== Pattern Resolution ====================

def _split_alternatives(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    parts.append(current)
    return parts


def expand_braces(pattern: str) -> list[str]:
    """
    Expand ``{a,b}`` alternatives, e.g. ``*.{py,json}`` -> ``*.py``, ``*.json``.

    Unbalanced or single-item braces are kept literally.
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    end = -1
    for index in range(start, len(pattern)):
        if pattern[index] == "{":
            depth += 1
        elif pattern[index] == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
    if end == -1:
        return [pattern]

    prefix, body, suffix = pattern[:start], pattern[start + 1:end], pattern[end + 1:]
    alternatives = _split_alternatives(body)
    if len(alternatives) < 2:
        literal = pattern[:end + 1]
        return [literal + rest for rest in expand_braces(suffix)]

    expanded: list[str] = []
    for alternative in alternatives:
        for item in expand_braces(prefix + alternative + suffix):
            if item not in expanded:
                expanded.append(item)
    return expanded


def _glob(pattern: str, root: Path) -> set[Path]:
    matches: set[Path] = set()
    for expanded in expand_braces(pattern):
        for match in glob.glob(expanded, root_dir=root, recursive=True):
            path = (root / match).resolve()
            if path.is_file():
                matches.add(path)
    return matches


def resolve_patterns(patterns: Iterable[str], root: Union[str, Path]) -> list[Path]:
    """
    Resolve glob patterns to a sorted, deduplicated file list.

    Patterns prefixed with ``!`` exclude files. Exclusions apply after all
    inclusions, whatever their position in the list.

    Args:
        patterns: Include and exclude patterns, relative to root
        root: Project root the patterns are resolved against

    Returns:
        Absolute file paths; empty when nothing matches
    """
    root = Path(root)
    included: set[Path] = set()
    excluded: set[Path] = set()

    for pattern in patterns:
        if pattern.startswith(NEGATION):
            excluded |= _glob(pattern[len(NEGATION):], root)
        else:
            included |= _glob(pattern, root)

    return sorted(included - excluded)


# ==================== Schema Loading ====================

def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:12]
    return f"mongo_registry_schema_{path.stem}_{digest}"


def _load_python_manifest(path: Path) -> Any:
    module_name = _module_name(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SchemaResolutionError(path, "not an importable module")

    module = importlib.util.module_from_spec(spec)
    with _IMPORT_LOCK:
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise SchemaResolutionError(path, f"import failed: {e}") from e

    if not hasattr(module, MANIFEST_ATTRIBUTE):
        raise SchemaResolutionError(path, f"module does not define {MANIFEST_ATTRIBUTE}")
    return getattr(module, MANIFEST_ATTRIBUTE)


def _build_document(name: str, fields: Any, path: Path) -> type[BaseModel]:
    if not isinstance(fields, Mapping):
        raise SchemaResolutionError(path, "'fields' must be an object")

    definitions: dict[str, Any] = {}
    for field_name, field_spec in fields.items():
        if isinstance(field_spec, str):
            type_name, required, default = field_spec, True, None
        elif isinstance(field_spec, Mapping):
            type_name = field_spec.get("type", "any")
            required = field_spec.get("required", "default" not in field_spec)
            default = field_spec.get("default")
        else:
            raise SchemaResolutionError(path, f"invalid definition for field '{field_name}'")

        python_type = FIELD_TYPES.get(str(type_name).lower())
        if python_type is None:
            raise SchemaResolutionError(
                path, f"unknown type '{type_name}' for field '{field_name}'"
            )

        if required:
            definitions[field_name] = (python_type, ...)
        else:
            definitions[field_name] = (Optional[python_type], default)

    try:
        return create_model(name, **definitions)
    except (TypeError, ValueError) as e:
        raise SchemaResolutionError(path, f"invalid fields: {e}") from e


def _load_json_manifest(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SchemaResolutionError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SchemaResolutionError(path, "top-level JSON value must be an object")
    if not data.get("name"):
        raise SchemaResolutionError(path, "schema declares no name")

    manifest = {k: v for k, v in data.items() if k != "fields"}
    manifest["document"] = _build_document(str(data["name"]), data.get("fields", {}), path)
    return manifest


def load_schema(path: Union[str, Path]) -> SchemaDefinition:
    """
    Load one schema file.

    The model name comes from the declared ``name``, never the filename.

    Raises:
        SchemaResolutionError: the file cannot be loaded or declares no schema
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".py":
        manifest = _load_python_manifest(path)
    elif suffix == ".json":
        manifest = _load_json_manifest(path)
    else:
        raise SchemaResolutionError(path, f"unsupported schema file type '{suffix}'")

    if isinstance(manifest, SchemaDefinition):
        return manifest.model_copy(update={"source": path})
    if not isinstance(manifest, Mapping):
        raise SchemaResolutionError(path, f"{MANIFEST_ATTRIBUTE} must be a mapping")
    if not manifest.get("name"):
        raise SchemaResolutionError(path, "schema declares no name")

    try:
        return SchemaDefinition.model_validate({**manifest, "source": path})
    except ValidationError as e:
        raise SchemaResolutionError(path, f"invalid schema manifest: {e}") from e


def load_schemas(patterns: Iterable[str], root: Union[str, Path]) -> list[SchemaDefinition]:
    """Resolve patterns and load every matched file, failing on the first bad one."""
    paths = resolve_patterns(patterns, root)
    definitions = [load_schema(path) for path in paths]
    logger.debug(f"Loaded {len(definitions)} schema(s) from {len(paths)} file(s)")
    return definitions


async def resolve_schemas(
    patterns: Iterable[str],
    root: Union[str, Path],
) -> list[SchemaDefinition]:
    """Async wrapper running discovery and imports off the event loop."""
    patterns = list(patterns)
    if not patterns:
        return []
    return await asyncio.to_thread(load_schemas, patterns, root)
