"""
Cypher identifier helpers.

Labels, relationship types and property keys cannot be bound as query
parameters, so they are interpolated quoted with backticks.
"""

from enum import Enum
from typing import Any


def name_of(value: Any) -> str:
    """Return the plain name of a label/property given as str or Enum member."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def quote(value: Any) -> str:
    """Quote an identifier with backticks, doubling embedded backticks."""
    name = name_of(value)
    if not name:
        raise ValueError("Cypher identifier must not be empty")
    return "`" + name.replace("`", "``") + "`"


def label_expression(labels: Any) -> str:
    """Render one or more labels as a `:A:B` expression."""
    if isinstance(labels, (str, Enum)):
        labels = [labels]
    names = [quote(label) for label in labels]
    if not names:
        raise ValueError("At least one label is required")
    return ":" + ":".join(names)
