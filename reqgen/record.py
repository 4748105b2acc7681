# reqgen/record.py
"""
Record: one unit of test input or output data.

A record has exactly one shape, fixed at construction:

    Scalar        a single string value
    NamedFields   field name -> string value (one spreadsheet row with headers)
    IndexedList   ordered list of strings (one row without headers)

Getters called on the wrong shape raise WrongVariantAccess. Mutators
(set/has/remove) called with arguments meant for another shape do
nothing and return False.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from reqgen.errors import IndexOutOfRange, WrongVariantAccess

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    SCALAR = "scalar"
    NAMED_FIELDS = "named_fields"
    INDEXED_LIST = "indexed_list"


Selector = Union[str, int, None]


class Record:
    """Base class; use Scalar, NamedFields or IndexedList."""

    kind: RecordKind

    def get(self, selector: Selector = None) -> str:
        raise WrongVariantAccess(self.kind.value, _describe_get(selector))

    def set(self, *args) -> bool:
        logger.debug(f"set{args!r} ignored on {self.kind.value} record")
        return False

    def has(self, value: str) -> bool:
        return False

    def remove(self, value: Union[str, int]) -> bool:
        return False

    def size(self) -> int:
        raise NotImplementedError

    def __len__(self) -> int:
        return self.size()


def _describe_get(selector: Selector) -> str:
    if selector is None:
        return "get()"
    if isinstance(selector, bool) or not isinstance(selector, (str, int)):
        return f"get({type(selector).__name__})"
    return "get(key)" if isinstance(selector, str) else "get(index)"


class Scalar(Record):
    kind = RecordKind.SCALAR

    def __init__(self, value: str = ""):
        self.value = value

    def get(self, selector: Selector = None) -> str:
        if selector is not None:
            return super().get(selector)
        return self.value

    def set(self, *args) -> bool:
        if len(args) != 1 or not isinstance(args[0], str):
            return super().set(*args)
        self.value = args[0]
        return True

    def has(self, value: str) -> bool:
        return self.value == value

    def remove(self, value: Union[str, int]) -> bool:
        if isinstance(value, str) and self.value == value:
            self.value = ""
            return True
        return False

    def size(self) -> int:
        return 1

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Scalar) and other.value == self.value

    def __repr__(self) -> str:
        return f"Scalar({self.value!r})"


class NamedFields(Record):
    kind = RecordKind.NAMED_FIELDS

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self._fields: Dict[str, str] = dict(mapping or {})

    def get(self, selector: Selector = None) -> str:
        """Absent keys return an empty string; use has() when presence matters."""
        if not isinstance(selector, str):
            return super().get(selector)
        return self._fields.get(selector, "")

    def set(self, *args) -> bool:
        if len(args) != 2 or not all(isinstance(a, str) for a in args):
            return super().set(*args)
        key, value = args
        self._fields[key] = value
        return True

    def has(self, value: str) -> bool:
        return value in self._fields

    def remove(self, value: Union[str, int]) -> bool:
        if isinstance(value, str) and value in self._fields:
            del self._fields[value]
            return True
        return False

    def size(self) -> int:
        return len(self._fields)

    def keys(self) -> List[str]:
        return list(self._fields)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._fields)

    def missing(self, required: Iterable[str]) -> List[str]:
        return [k for k in required if k not in self._fields]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NamedFields) and other._fields == self._fields

    def __repr__(self) -> str:
        return f"NamedFields({self._fields!r})"


class IndexedList(Record):
    kind = RecordKind.INDEXED_LIST

    def __init__(self, items: Optional[Iterable[str]] = None):
        self._items: List[str] = list(items or [])

    def get(self, selector: Selector = None) -> str:
        if isinstance(selector, bool) or not isinstance(selector, int):
            return super().get(selector)
        if selector < 0 or selector >= len(self._items):
            raise IndexOutOfRange(selector, len(self._items))
        return self._items[selector]

    def set(self, *args) -> bool:
        if len(args) != 2 or isinstance(args[0], bool) or not isinstance(args[0], int) \
                or not isinstance(args[1], str):
            return super().set(*args)
        index, value = args
        if not 0 <= index < len(self._items):
            return False
        self._items[index] = value
        return True

    def append(self, value: str) -> bool:
        self._items.append(value)
        return True

    def has(self, value: str) -> bool:
        return value in self._items

    def remove(self, value: Union[str, int]) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            if 0 <= value < len(self._items):
                del self._items[value]
                return True
            return False
        if value in self._items:
            self._items.remove(value)
            return True
        return False

    def size(self) -> int:
        return len(self._items)

    def as_list(self) -> List[str]:
        return list(self._items)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IndexedList) and other._items == self._items

    def __repr__(self) -> str:
        return f"IndexedList({self._items!r})"
