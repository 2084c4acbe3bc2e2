# Copyright 2017-present Kensho Technologies, LLC.
from .entity import EntityDescriptor, RelationDescriptor, RelationKind  # noqa
from .schema_info import SchemaInfo, make_schema_info  # noqa
