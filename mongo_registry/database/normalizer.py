"""
Option normalization.

Turns single or list plugin options into an ordered list of ConnectionSpec
records, each with a unique registry key. Pure: no network or filesystem
access happens here.
"""
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError
from pymongo.errors import PyMongoError
from pymongo.uri_parser import parse_uri

from mongo_registry.core.errors import ConfigurationError
from mongo_registry.models.connection import ConnectionSpec
from mongo_registry.schemas.options import PluginOptions

logger = logging.getLogger(__name__)

MONGO_SCHEME = "mongodb://"
SRV_SCHEME = "mongodb+srv://"


def _parse(uri: str) -> dict[str, Any]:
    # SRV URIs are parsed as plain ones so no DNS lookup happens
    if not uri or not uri.strip():
        raise ConfigurationError("connection uri is required")

    if uri.startswith(SRV_SCHEME):
        candidate = MONGO_SCHEME + uri[len(SRV_SCHEME):]
        validate = False
    elif uri.startswith(MONGO_SCHEME):
        candidate = uri
        validate = True
    else:
        raise ConfigurationError(
            f"invalid connection uri '{uri}': must start with "
            f"'{MONGO_SCHEME}' or '{SRV_SCHEME}'"
        )

    try:
        return parse_uri(candidate, validate=validate, warn=False)
    except (PyMongoError, ValueError) as e:
        raise ConfigurationError(f"invalid connection uri '{uri}': {e}") from e


def parse_target(uri: str) -> tuple[str, int, Optional[str]]:
    """
    Extract host, port and database name from a MongoDB URI.

    SRV URIs are parsed as plain ones so no DNS lookup happens.

    Raises:
        ConfigurationError: URI is empty, has an unknown scheme, or is malformed
    """
    parsed = _parse(uri)
    host, port = parsed["nodelist"][0]
    return host, port, parsed.get("database") or None


def uri_option_names(uri: str) -> tuple[str, ...]:
    """Names of the driver options set in the URI query string, lowercased."""
    return tuple(sorted(name.lower() for name in _parse(uri)["options"]))


def _coerce_options(options: Union[PluginOptions, Mapping[str, Any]]) -> PluginOptions:
    if isinstance(options, PluginOptions):
        return options
    if not isinstance(options, Mapping):
        raise ConfigurationError(
            f"plugin options must be a mapping, got {type(options).__name__}"
        )
    try:
        return PluginOptions.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(f"invalid plugin options: {e}") from e


def normalize_options(
    options: Union[PluginOptions, Mapping[str, Any]],
) -> list[ConnectionSpec]:
    """
    Normalize plugin options into connection specs.

    Key derivation per descriptor: the alias when given, else the database
    name in the URI, else the descriptor's position in the list.

    Args:
        options: PluginOptions or an equivalent mapping

    Returns:
        Connection specs in configuration order

    Raises:
        ConfigurationError: invalid options, malformed URI, or duplicate keys
    """
    plugin_options = _coerce_options(options)

    specs: list[ConnectionSpec] = []
    seen: set[str] = set()

    for index, descriptor in enumerate(plugin_options.descriptors):
        host, port, database = parse_target(descriptor.uri)
        key = descriptor.alias or database or str(index)

        if key in seen:
            raise ConfigurationError(f"duplicate connection key '{key}'")
        seen.add(key)

        specs.append(
            ConnectionSpec(
                key=key,
                uri=descriptor.uri,
                host=host,
                port=port,
                database=database,
                driver_options=dict(descriptor.options),
                uri_options=uri_option_names(descriptor.uri),
                schema_patterns=list(descriptor.schema_patterns),
            )
        )

    logger.debug(f"Normalized {len(specs)} connection(s): {[s.key for s in specs]}")
    return specs
