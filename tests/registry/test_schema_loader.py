"""
Tests for schema discovery and loading.

These tests cover:
- Brace expansion and glob resolution
- Exclusion precedence and deterministic ordering
- Loading Python and JSON schema files
- Resolution errors for bad files
"""

import asyncio
import sys

import pytest

from mongo_registry.core.errors import SchemaResolutionError
from mongo_registry.database.schema_loader import (
    _module_name,
    expand_braces,
    load_schema,
    load_schemas,
    resolve_patterns,
    resolve_schemas,
)
from mongo_registry.models.schema import SchemaDefinition


SCHEMA_PATTERNS = [
    "schemas/**/*.{py,json}",
    "!schemas/*.py",
    "!**/*.json",
]


def write_schema(path, name):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "from pydantic import BaseModel\n"
        "\n"
        f"class {name}Document(BaseModel):\n"
        "    label: str\n"
        "\n"
        f"SCHEMA_MANIFEST = {{'name': '{name}', 'document': {name}Document}}\n"
    )


class TestExpandBraces:
    """Tests for brace expansion."""

    def test_no_braces(self):
        assert expand_braces("schemas/**/*.py") == ["schemas/**/*.py"]

    def test_alternatives(self):
        assert expand_braces("schemas/*.{py,json}") == ["schemas/*.py", "schemas/*.json"]

    def test_multiple_groups(self):
        assert expand_braces("{a,b}/*.{py,json}") == ["a/*.py", "a/*.json", "b/*.py", "b/*.json"]

    def test_nested_groups(self):
        assert expand_braces("x.{py,j{s,son}}") == ["x.py", "x.js", "x.json"]

    def test_unbalanced_kept_literally(self):
        assert expand_braces("schemas/{broken.py") == ["schemas/{broken.py"]


class TestResolvePatterns:
    """Tests for resolve_patterns."""

    def test_exclusions_remove_matches(self, fixtures_dir):
        paths = resolve_patterns(SCHEMA_PATTERNS, fixtures_dir)

        assert [p.name for p in paths] == ["blog.py", "animal.py"]

    def test_exclusion_applies_regardless_of_order(self, fixtures_dir):
        forward = resolve_patterns(SCHEMA_PATTERNS, fixtures_dir)
        reordered = resolve_patterns(list(reversed(SCHEMA_PATTERNS)), fixtures_dir)

        assert forward == reordered

    def test_duplicates_removed(self, fixtures_dir):
        paths = resolve_patterns(
            ["schemas/zoo/animal.py", "schemas/**/animal.py", "schemas/zoo/*.py"],
            fixtures_dir,
        )

        assert len(paths) == 1
        assert paths[0] == (fixtures_dir / "schemas" / "zoo" / "animal.py").resolve()

    def test_results_sorted_and_absolute(self, fixtures_dir):
        paths = resolve_patterns(["schemas/**/*"], fixtures_dir)

        assert paths == sorted(paths)
        assert all(p.is_absolute() and p.is_file() for p in paths)

    def test_no_patterns_or_no_matches_is_empty(self, fixtures_dir):
        assert resolve_patterns([], fixtures_dir) == []
        assert resolve_patterns(["nothing/**/*.py"], fixtures_dir) == []

    def test_keep_and_skip_files(self, tmp_path):
        write_schema(tmp_path / "a" / "keep.py", "Keep")
        write_schema(tmp_path / "a" / "skip.py", "Skip")

        paths = resolve_patterns(["a/**/*.py", "!a/skip.py"], tmp_path)

        assert [p.name for p in paths] == ["keep.py"]


class TestLoadSchema:
    """Tests for load_schema."""

    def test_python_manifest(self, fixtures_dir):
        definition = load_schema(fixtures_dir / "schemas" / "zoo" / "animal.py")

        assert isinstance(definition, SchemaDefinition)
        assert definition.name == "Animal"
        assert definition.collection_name == "animals"
        assert set(definition.fields()) == {"name", "type", "age"}
        assert definition.indexes[0].keys == [("name", 1)]
        assert definition.source.name == "animal.py"

    def test_name_comes_from_declaration_not_filename(self, fixtures_dir):
        definition = load_schema(fixtures_dir / "conflict" / "pet.py")

        assert definition.name == "Animal"

    def test_collection_override(self, fixtures_dir):
        definition = load_schema(fixtures_dir / "schemas" / "blog" / "blog.py")

        assert definition.collection_name == "blog_posts"
        assert definition.indexes[0].unique is True

    def test_json_schema(self, fixtures_dir):
        definition = load_schema(fixtures_dir / "schemas" / "blog" / "comment.json")

        assert definition.name == "Comment"
        assert definition.collection_name == "comments"
        assert set(definition.fields()) == {"blog_title", "text", "likes"}

        document = definition.document.model_validate({"blog_title": "Hello", "text": "Nice"})
        assert document.likes == 0

    def test_module_without_manifest(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError, match="SCHEMA_MANIFEST"):
            load_schema(fixtures_dir / "schemas" / "helpers.py")

    def test_manifest_without_name(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError, match="declares no name"):
            load_schema(fixtures_dir / "broken" / "nameless.py")

    def test_module_raising_on_import(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError, match="import failed"):
            load_schema(fixtures_dir / "broken" / "raises.py")

    def test_invalid_json(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError, match="invalid JSON"):
            load_schema(fixtures_dir / "broken" / "invalid.json")

    def test_unknown_json_field_type(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError, match="unknown type 'complex'"):
            load_schema(fixtures_dir / "broken" / "unknown_type.json")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("name: Thing\n")

        with pytest.raises(SchemaResolutionError, match="unsupported schema file type"):
            load_schema(path)

    def test_document_must_be_pydantic_model(self, tmp_path):
        path = tmp_path / "plain.py"
        path.write_text("SCHEMA_MANIFEST = {'name': 'Plain', 'document': dict}\n")

        with pytest.raises(SchemaResolutionError, match="invalid schema manifest"):
            load_schema(path)

    def test_error_names_the_file(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError) as exc_info:
            load_schema(fixtures_dir / "broken" / "nameless.py")

        assert exc_info.value.path.name == "nameless.py"
        assert "nameless.py" in str(exc_info.value)


class TestLoadSchemas:
    """Tests for pattern-driven loading."""

    def test_loads_animal_and_blog(self, fixtures_dir):
        definitions = load_schemas(SCHEMA_PATTERNS, fixtures_dir)

        assert {d.name for d in definitions} == {"Animal", "Blog"}

    def test_same_patterns_same_names(self, fixtures_dir):
        first = {d.name for d in load_schemas(SCHEMA_PATTERNS, fixtures_dir)}
        second = {d.name for d in load_schemas(SCHEMA_PATTERNS, fixtures_dir)}

        assert first == second

    def test_one_bad_file_fails_all(self, fixtures_dir):
        with pytest.raises(SchemaResolutionError):
            load_schemas(["schemas/zoo/*.py", "broken/*.py"], fixtures_dir)

    @pytest.mark.asyncio
    async def test_resolve_schemas_runs_off_loop(self, fixtures_dir):
        definitions = await resolve_schemas(["schemas/**/*.json"], fixtures_dir)

        assert [d.name for d in definitions] == ["Comment"]

    @pytest.mark.asyncio
    async def test_concurrent_loads_of_same_files(self, fixtures_dir):
        results = await asyncio.gather(
            *(resolve_schemas(["schemas/zoo/*.py"], fixtures_dir) for _ in range(8)),
            *(resolve_schemas(["broken/raises.py"], fixtures_dir) for _ in range(8)),
            return_exceptions=True,
        )
        loaded, failed = results[:8], results[8:]

        assert all([d.name for d in definitions] == ["Animal"] for definitions in loaded)
        assert all(isinstance(e, SchemaResolutionError) for e in failed)
        assert _module_name(loaded[0][0].source) in sys.modules

    @pytest.mark.asyncio
    async def test_resolve_schemas_without_patterns(self, fixtures_dir):
        assert await resolve_schemas([], fixtures_dir) == []

    @pytest.mark.asyncio
    async def test_keep_model_from_tmp_tree(self, tmp_path):
        write_schema(tmp_path / "a" / "keep.py", "Keep")
        write_schema(tmp_path / "a" / "nested" / "other.py", "Other")
        (tmp_path / "a" / "skip.py").write_text("raise RuntimeError('never imported')\n")

        definitions = await resolve_schemas(["a/**/*.py", "!a/skip.py"], tmp_path)

        assert sorted(d.name for d in definitions) == ["Keep", "Other"]
