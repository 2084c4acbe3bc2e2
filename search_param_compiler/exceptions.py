# Copyright 2017-present Kensho Technologies, LLC.
class SearchParamCompilerError(Exception):
    """Generic error when compiling request parameters into a query plan."""


class InvalidEntityError(SearchParamCompilerError):
    """Exception raised when the compiler is invoked against something that is not an entity.

    The root of the compilation must be an EntityDescriptor registered in the SchemaInfo,
    or the name of one. No query plan is produced.
    """


class ConflictingModifiersError(SearchParamCompilerError):
    """Exception raised when the request asks for mutually exclusive plan modifiers.

    For example:
    - the request asks for ordering by a field and for random ordering at the same time.
    """


class SchemaError(SearchParamCompilerError):
    """Base class for all errors related to the schema."""


class InvalidSchemaError(SchemaError):
    """Raised when the entity descriptors given for a SchemaInfo are inconsistent.

    Possible reasons include:
        - Two entity descriptors share the same name.
        - A relation points to an entity that is not part of the schema.
    """


class InvalidRelationError(SchemaError):
    """Raised when a relation provided during SQLAlchemy schema generation is invalid.

    This may be raised if the relation refers to a non-existent entity, or to a non-existent
    column in the table of the source or target entity.
    """


class MissingPrimaryKeyError(SchemaError):
    """Raised when a SQLAlchemy Table object is missing a single-column primary key.

    Every entity needs a primary key in order to be the destination of a to-one join or
    the source of a to-many join. The primary key in the SQLAlchemy Table object need not be
    the primary key in the underlying table. It may simply be a non-null and unique identifier
    of each row.
    """
