# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Value <-> bytes codecs. The protocol treats them as black boxes."""

import dataclasses
import json
import types
import typing
from typing import Any, Protocol, TypeVar, runtime_checkable

from keepsake.errors import DecodeError

T = TypeVar("T")


@runtime_checkable
class Serializer(Protocol):
    """Deterministic encoder plus all-or-nothing decoder."""

    def encode(self, value: Any) -> bytes:
        """Value -> bytes."""
        ...

    def decode(self, data: bytes, type_: type[T]) -> T:
        """Bytes -> value of ``type_``. Raises DecodeError, never returns partial objects."""
        ...


class JsonSerializer:
    """UTF-8 JSON. Handles builtins and (nested) dataclasses.

    Dataclasses are rebuilt from their fields on decode; unknown keys are
    dropped and missing keys fall back to field defaults.
    """

    def __init__(self, *, indent: int | None = 2, sort_keys: bool = True) -> None:
        self._indent = indent
        self._sort_keys = sort_keys

    def encode(self, value: Any) -> bytes:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        text = json.dumps(value, indent=self._indent, sort_keys=self._sort_keys)
        return text.encode("utf-8")

    def decode(self, data: bytes, type_: type[T]) -> T:
        try:
            obj = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
            raise DecodeError(str(exc)) from exc
        return _build(obj, type_)  # type: ignore[no-any-return]


def _build(obj: Any, type_: Any) -> Any:
    """Shape a parsed JSON object into ``type_``, recursing through generics."""
    if type_ is Any or type_ is object:
        return obj
    origin = typing.get_origin(type_)
    if origin is not None:
        return _build_generic(obj, origin, typing.get_args(type_))
    if dataclasses.is_dataclass(type_):
        return _build_dataclass(obj, type_)
    if isinstance(type_, type):
        # JSON does not distinguish 1 from 1.0, and has no tuples.
        if type_ is float and isinstance(obj, int) and not isinstance(obj, bool):
            return float(obj)
        if type_ is tuple and isinstance(obj, list):
            return tuple(obj)
        if not isinstance(obj, type_):
            raise DecodeError(_mismatch(type_, obj))
    return obj


def _build_dataclass(obj: Any, type_: Any) -> Any:
    if not isinstance(obj, dict):
        raise DecodeError(_mismatch(type_, obj))
    hints = _field_types(type_)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(type_):
        if f.name in obj:
            kwargs[f.name] = _build(obj[f.name], hints.get(f.name, Any))
    try:
        return type_(**kwargs)
    except TypeError as exc:
        raise DecodeError(str(exc)) from exc


def _build_generic(obj: Any, origin: Any, args: tuple[Any, ...]) -> Any:
    if origin is typing.Union or origin is types.UnionType:
        if obj is None and type(None) in args:
            return None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _build(obj, arg)
            except DecodeError:
                continue
        raise DecodeError(_mismatch(origin, obj))
    if origin is typing.Literal:
        if obj not in args:
            msg = f"expected one of {args!r}, got {obj!r}"
            raise DecodeError(msg)
        return obj
    if origin is list:
        if not isinstance(obj, list):
            raise DecodeError(_mismatch(list, obj))
        item = args[0] if args else Any
        return [_build(x, item) for x in obj]
    if origin is tuple:
        if not isinstance(obj, list | tuple):
            raise DecodeError(_mismatch(tuple, obj))
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_build(x, args[0]) for x in obj)
        if not args:
            return tuple(obj)
        if len(args) != len(obj):
            msg = f"expected {len(args)} items, got {len(obj)}"
            raise DecodeError(msg)
        return tuple(_build(x, a) for x, a in zip(obj, args, strict=True))
    if origin is dict:
        if not isinstance(obj, dict):
            raise DecodeError(_mismatch(dict, obj))
        key_t, val_t = args if args else (Any, Any)
        return {_build_key(k, key_t): _build(v, val_t) for k, v in obj.items()}
    # Other generics (sets, callables, ...) are not JSON shapes; pass through.
    return obj


def _build_key(key: str, type_: Any) -> Any:
    """JSON object keys are always strings; restore int keys."""
    if type_ is int:
        try:
            return int(key)
        except ValueError as exc:
            raise DecodeError(f"expected int key, got {key!r}") from exc
    return _build(key, type_)


def _field_types(cls: type) -> dict[str, Any]:
    """Resolved field annotations; empty when they cannot be resolved."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def _mismatch(type_: Any, obj: Any) -> str:
    name = getattr(type_, "__name__", repr(type_))
    return f"expected {name}, got {type(obj).__name__}"
