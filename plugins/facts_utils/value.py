# vim: ts=4:sw=4:sts=4:et:ft=python
# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; -*-
#
# GNU General Public License v3.0+
# SPDX-License-Identifier: GPL-3.0-or-later
# (see COPYING or https://www.gnu.org/licenses/gpl-3.0.txt)
#
# Copyright (c) 2025 oØ.o (@o0-o)
#
# This file is part of the o0_o.hostfacts Ansible Collection.

"""
Typed fact values.

A fact value is one of a closed set of variants: string, integer,
boolean, double, ordered array or ordered map. Values are immutable
once built and form a strict tree: a composite adopts its children and
a child can only ever have one owner. Every variant renders to three
equivalent forms:

* a JSON-compatible document tree (:meth:`Value.to_document`)
* human-readable text (:meth:`Value.write`)
* a YAML node whose strings are always double-quoted
  (:meth:`Value.to_markup`)
"""

from __future__ import annotations

import io
import json
import math
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    TextIO,
    Tuple,
)

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

STR_TAG = "tag:yaml.org,2002:str"
INT_TAG = "tag:yaml.org,2002:int"
BOOL_TAG = "tag:yaml.org,2002:bool"
FLOAT_TAG = "tag:yaml.org,2002:float"
SEQ_TAG = "tag:yaml.org,2002:seq"
MAP_TAG = "tag:yaml.org,2002:map"

INDENT = "  "


class Value:
    """Base class of all fact values."""

    __slots__ = ("_owned",)

    def __init__(self) -> None:
        self._owned = False

    def __copy__(self) -> "Value":
        raise TypeError(f"{type(self).__name__} can not be copied")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Value":
        raise TypeError(f"{type(self).__name__} can not be copied")

    def adopt(self) -> "Value":
        """
        Mark this value as owned by a composite or a collection.

        :returns Value: This value
        :raises ValueError: If the value already has an owner
        """
        if self._owned:
            raise ValueError(
                f"{type(self).__name__} is already owned and can not be "
                "shared"
            )
        self._owned = True
        return self

    @property
    def value(self) -> Any:
        """The plain Python payload of this value."""
        raise NotImplementedError

    def to_document(self) -> Any:
        """Render as a JSON-compatible tree."""
        raise NotImplementedError

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        """
        Render as human-readable text.

        :param TextIO stream: Stream to write to
        :param bool quoted: Whether strings are wrapped in double quotes
        :param int level: Indentation level of nested members
        :returns TextIO: The stream
        """
        raise NotImplementedError

    def to_markup(self) -> Node:
        """Render as a YAML node."""
        raise NotImplementedError

    def to_text(self, quoted: bool = True) -> str:
        """Render as human-readable text and return it."""
        stream = io.StringIO()
        self.write(stream, quoted=quoted)
        return stream.getvalue()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class ScalarValue(Value):
    """Base class of the scalar variants."""

    __slots__ = ("_value",)

    python_type: type = object

    def __init__(self, value: Any) -> None:
        super().__init__()
        self._value = self.python_type(value)

    @property
    def value(self) -> Any:
        return self._value

    def to_document(self) -> Any:
        return self._value

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        stream.write(str(self._value))
        return stream


class StringValue(ScalarValue):
    """A string fact value."""

    __slots__ = ()

    python_type = str

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        if quoted:
            stream.write(f'"{self._value}"')
        else:
            stream.write(self._value)
        return stream

    def to_markup(self) -> Node:
        # Always quote so readers never retype "2" or "true"
        return ScalarNode(STR_TAG, self._value, style='"')


class IntegerValue(ScalarValue):
    """An integer fact value."""

    __slots__ = ()

    python_type = int

    def to_markup(self) -> Node:
        return ScalarNode(INT_TAG, str(self._value))


class BooleanValue(ScalarValue):
    """A boolean fact value."""

    __slots__ = ()

    python_type = bool

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        stream.write("true" if self._value else "false")
        return stream

    def to_markup(self) -> Node:
        return ScalarNode(BOOL_TAG, "true" if self._value else "false")


class DoubleValue(ScalarValue):
    """A double precision fact value."""

    __slots__ = ()

    python_type = float

    def to_markup(self) -> Node:
        if math.isnan(self._value):
            text = ".nan"
        elif math.isinf(self._value):
            text = ".inf" if self._value > 0 else "-.inf"
        else:
            text = repr(self._value).lower()
            if "." not in text and "e" in text:
                text = text.replace("e", ".0e", 1)
        return ScalarNode(FLOAT_TAG, text)


class ArrayValue(Value):
    """An ordered list of fact values."""

    __slots__ = ("_elements",)

    def __init__(self, elements: Iterable[Any] = ()) -> None:
        super().__init__()
        self._elements: Tuple[Value, ...] = tuple(
            make_value(element).adopt() for element in elements
        )

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[Value]:
        return iter(self._elements)

    def __getitem__(self, index: int) -> Value:
        return self._elements[index]

    @property
    def value(self) -> List[Any]:
        return [element.value for element in self._elements]

    def to_document(self) -> List[Any]:
        return [element.to_document() for element in self._elements]

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        if not self._elements:
            stream.write("[]")
            return stream

        stream.write("[\n")
        for i, element in enumerate(self._elements):
            if i:
                stream.write(",\n")
            stream.write(INDENT * level)
            element.write(stream, quoted=True, level=level + 1)
        stream.write("\n" + INDENT * (level - 1) + "]")
        return stream

    def to_markup(self) -> Node:
        return SequenceNode(
            SEQ_TAG,
            [element.to_markup() for element in self._elements],
            flow_style=False,
        )


class MapValue(Value):
    """An ordered mapping of names to fact values."""

    __slots__ = ("_elements",)

    def __init__(self, elements: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__()
        self._elements: Dict[str, Value] = {}
        for key, element in (elements or {}).items():
            self._elements[str(key)] = make_value(element).adopt()

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[str]:
        return iter(self._elements)

    def __contains__(self, key: object) -> bool:
        return key in self._elements

    def __getitem__(self, key: str) -> Value:
        return self._elements[key]

    def get(self, key: str) -> Optional[Value]:
        return self._elements.get(key)

    def items(self) -> Iterable[Tuple[str, Value]]:
        return self._elements.items()

    @property
    def value(self) -> Dict[str, Any]:
        return {key: element.value for key, element in self._elements.items()}

    def to_document(self) -> Dict[str, Any]:
        return {
            key: element.to_document()
            for key, element in self._elements.items()
        }

    def write(
        self, stream: TextIO, quoted: bool = True, level: int = 1
    ) -> TextIO:
        if not self._elements:
            stream.write("{}")
            return stream

        stream.write("{\n")
        for i, (key, element) in enumerate(self._elements.items()):
            if i:
                stream.write(",\n")
            stream.write(f"{INDENT * level}{key} => ")
            element.write(stream, quoted=True, level=level + 1)
        stream.write("\n" + INDENT * (level - 1) + "}")
        return stream

    def to_markup(self) -> Node:
        return MappingNode(
            MAP_TAG,
            [
                (ScalarNode(STR_TAG, key), element.to_markup())
                for key, element in self._elements.items()
            ],
            flow_style=False,
        )


VARIANTS = {
    "string": StringValue,
    "integer": IntegerValue,
    "boolean": BooleanValue,
    "double": DoubleValue,
    "array": ArrayValue,
    "map": MapValue,
}


def make_value(payload: Any, variant: Optional[str] = None) -> Value:
    """
    Build a fact value from a Python payload.

    Nested lists and mappings become arrays and maps. Passing
    ``variant`` forces the tag, e.g. ``make_value("2", "string")``.
    Existing values are returned unchanged.

    :param Any payload: Python value or fact value
    :param Optional[str] variant: One of the keys of ``VARIANTS``
    :returns Value: The fact value
    :raises ValueError: If ``variant`` is unknown
    :raises TypeError: If the payload type has no variant
    """
    if isinstance(payload, Value):
        return payload

    if variant is not None:
        try:
            return VARIANTS[variant](payload)
        except KeyError:
            raise ValueError(f"Unknown value variant: {variant}")

    # bool is a subclass of int, check it first
    if isinstance(payload, bool):
        return BooleanValue(payload)
    if isinstance(payload, int):
        return IntegerValue(payload)
    if isinstance(payload, float):
        return DoubleValue(payload)
    if isinstance(payload, str):
        return StringValue(payload)
    if isinstance(payload, Mapping):
        return MapValue(payload)
    if isinstance(payload, (list, tuple)):
        return ArrayValue(payload)

    raise TypeError(
        f"Unsupported fact value type: {type(payload).__name__}"
    )


def dump_document(
    facts: Iterable[Tuple[str, Value]], indent: Optional[int] = 2
) -> str:
    """Render ``(name, value)`` pairs as a JSON document."""
    return json.dumps(
        {name: value.to_document() for name, value in facts},
        indent=indent,
        ensure_ascii=False,
    )


def dump_markup(facts: Iterable[Tuple[str, Value]]) -> str:
    """Render ``(name, value)`` pairs as a block-style YAML document."""
    node = MappingNode(
        MAP_TAG,
        [
            (ScalarNode(STR_TAG, name), value.to_markup())
            for name, value in facts
        ],
        flow_style=False,
    )
    return yaml.serialize(
        node,
        Dumper=yaml.SafeDumper,
        allow_unicode=True,
    )


def dump_text(facts: Iterable[Tuple[str, Value]]) -> str:
    """
    Render ``(name, value)`` pairs as ``name => value`` lines.

    Top-level strings are written unquoted; nested members are quoted.
    A single fact is written as its bare value.
    """
    pairs = list(facts)
    stream = io.StringIO()

    if len(pairs) == 1:
        pairs[0][1].write(stream, quoted=False)
        stream.write("\n")
        return stream.getvalue()

    for name, value in pairs:
        stream.write(f"{name} => ")
        value.write(stream, quoted=False)
        stream.write("\n")
    return stream.getvalue()
