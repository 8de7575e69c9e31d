"""Enum helpers shared by the sizing interface.

Two things live here: a ``StrEnum`` that renders as its value on every
supported interpreter, and ``enum_docstrings`` which lifts the string literal
written under each member into that member's ``__doc__`` so catalogs and the
CLI can describe an option without a second lookup table.
"""

import ast
import inspect
import sys
from enum import Enum
from typing import Any
from typing import cast
from typing import Dict
from typing import TypeVar

from pydantic.json_schema import JsonSchemaValue
from pydantic_core import CoreSchema


__all__ = ["StrEnum", "enum_docstrings", "describe"]

if sys.version_info >= (3, 11):
    from enum import StrEnum as StrEnum  # pylint: disable=useless-import-alias
else:

    class StrEnum(str, Enum):
        """str-valued Enum whose str() and format() give the raw value"""

        def __new__(cls, value: str, *args: Any, **kwargs: Any) -> "StrEnum":
            if not isinstance(value, str):
                raise TypeError(f"{value!r} is not a string")
            member = str.__new__(cls, value)
            member._value_ = value
            return member

        def __str__(self) -> str:
            return str(self.value)

        def __format__(self, format_spec: str) -> str:
            return str(self.value).__format__(format_spec)


E = TypeVar("E", bound=Enum)


def _member_docstrings(enum: type[Enum]) -> Dict[str, str]:
    try:
        tree = ast.parse(inspect.getsource(enum))
    except (OSError, TypeError):
        return {}

    if not tree.body or not isinstance(tree.body[0], ast.ClassDef):
        return {}

    found: Dict[str, str] = {}
    pending = None
    for node in tree.body[0].body:
        match node:
            case ast.Assign(targets=[ast.Name(id=name)]) if name in enum.__members__:
                pending = name
                continue
            case ast.Expr(value=ast.Constant(value=str() as text)) if pending:
                found[pending] = inspect.cleandoc(text)
        pending = None
    return found


def enum_docstrings(enum: type[E]) -> type[E]:
    """Attach the literal under each member as that member's ``__doc__``

    Example:
        @enum_docstrings
        class Color(StrEnum):
            \"\"\"Paint colors\"\"\"

            red = "red"
            \"\"\"The red one\"\"\"

        Color.red.__doc__  # 'The red one'

    Members without a literal keep the class docstring. Enums whose source
    cannot be read are returned untouched. The JSON schema pydantic emits for
    a decorated enum lists every member with its description.
    """
    for name, text in _member_docstrings(enum).items():
        enum[name].__doc__ = text

    def __get_pydantic_json_schema__(
        cls: type[E], core_schema: CoreSchema, handler: Any
    ) -> JsonSchemaValue:
        json_schema = cast(JsonSchemaValue, handler(core_schema))
        json_schema["oneOf"] = [
            {"const": member.value, "title": member.name, "description": member.__doc__}
            for member in cls
        ]
        return json_schema

    setattr(
        enum, "__get_pydantic_json_schema__", classmethod(__get_pydantic_json_schema__)
    )
    return enum


def describe(member: Enum) -> str:
    """Human readable description of an enum member, falling back to its name"""
    doc = member.__doc__
    if doc is None or doc == type(member).__doc__:
        return member.name.replace("_", " ")
    return doc
