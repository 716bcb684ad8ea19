# retail_ledger/models/types.py
from sqlalchemy import JSON, Enum as SAEnum, Numeric
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON everywhere else; Python None is stored as SQL NULL
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

Money = Numeric(10, 2, asdecimal=True)


def value_enum(enum_cls, name: str) -> SAEnum:
    """Enum column stored by member value ('insert', 'cart_add', ...) rather than member name."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
