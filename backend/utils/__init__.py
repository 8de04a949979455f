from sqlalchemy.orm import class_mapper


def column_values(obj) -> dict:
    """Raw column values of a SQLAlchemy object, keyed by attribute name."""
    mapper = class_mapper(obj.__class__)
    return {c.key: getattr(obj, c.key) for c in mapper.column_attrs}

__all__ = ['column_values']
