"""Executable schema: SDL plus resolvers, and the default field resolver."""

from collections.abc import Mapping
from datetime import datetime
from functools import lru_cache
from typing import Any

from bson import ObjectId
from graphql import GraphQLObjectType, GraphQLResolveInfo, GraphQLSchema, build_ast_schema, parse
from pydantic.alias_generators import to_snake

from .resolvers import RESOLVERS
from .type_defs import TYPE_DEFS


@lru_cache(maxsize=512)
def storage_name(field_name: str) -> str:
    """Map a camelCase GraphQL field name to its snake_case stored name."""
    return to_snake(field_name)


def _output_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ObjectId):
        return str(value)
    return value


def resolve_field(source: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
    """
    Default resolver for fields without an explicit resolver.

    Reads the snake_case key from documents (dicts) or the snake_case
    attribute from pydantic models. Datetimes are rendered as ISO-8601 text
    and ObjectIds as their hex string.
    """
    key = storage_name(info.field_name)
    if isinstance(source, Mapping):
        value = source.get(key)
    else:
        value = getattr(source, key, None)
    return _output_value(value)


def build_schema() -> GraphQLSchema:
    schema = build_ast_schema(parse(TYPE_DEFS))
    for type_name, field_resolvers in RESOLVERS.items():
        gql_type = schema.get_type(type_name)
        if not isinstance(gql_type, GraphQLObjectType):
            raise TypeError(f"{type_name} is not an object type in the schema")
        for field_name, resolver in field_resolvers.items():
            gql_type.fields[field_name].resolve = resolver
    return schema


schema = build_schema()
