"""Reactive containers: objects whose attributes track their readers.

observe(obj) makes an object reactive in place. Every attribute found in the
instance __dict__ at that moment becomes a reactive slot:

- reading it inside a running task registers the task as a dependant
- assigning it stores the value and re-runs every dependant

The object keeps its identity and stays an instance of its class: observe()
swaps obj.__class__ for a cached subclass that carries one ReactiveSlot data
descriptor per reactive key. Values stay in the instance __dict__, which acts
as the shadow storage behind the descriptors.

Only instances of ordinary Python classes can be observed. Builtin collections
(list, dict, tuple, set, ...) are not: there is no per-element tracking, only
whole-reference replacement of an attribute holding one is tracked.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence, Set
from typing import TypeVar

from cellflow import settings
from cellflow.dependency import DependencyStore
from cellflow.errors import InvalidArgument, message
from cellflow.registry import Task

T = TypeVar("T")

# Instance __dict__ key marking an object as observed (or ignored).
MARKER = "__reactive__"

# Marker value for containers opted out with ignore().
IGNORED = object()

_HEAPTYPE = 1 << 9  # Py_TPFLAGS_HEAPTYPE: instances allow __class__ assignment


class Kind(enum.Enum):
    AGGREGATE = "aggregate"
    CALLABLE_AGGREGATE = "callable aggregate"
    EXCLUDED = "collection"
    PRIMITIVE = "primitive"


def classify(value: object) -> Kind:
    """Decide how observe() treats value."""
    if isinstance(value, (str, bytes, memoryview, enum.Enum)):
        return Kind.PRIMITIVE
    if isinstance(value, (Mapping, Sequence, Set, bytearray)):
        return Kind.EXCLUDED
    if isinstance(value, type) or not type(value).__flags__ & _HEAPTYPE:
        return Kind.PRIMITIVE
    try:
        vars(value)
    except TypeError:
        return Kind.PRIMITIVE
    return Kind.CALLABLE_AGGREGATE if callable(value) else Kind.AGGREGATE


class SlotTable:
    """Per-object bookkeeping: one DependencyStore per reactive key."""

    __slots__ = ("stores",)

    def __init__(self) -> None:
        self.stores: dict[str, DependencyStore] = {}

    def __repr__(self) -> str:
        return f"SlotTable({list(self.stores)!r})"


class ReactiveSlot:
    """Data descriptor installed on reactive subclasses, one per key."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def _store(self, obj) -> DependencyStore | None:
        table = obj.__dict__.get(MARKER)
        if isinstance(table, SlotTable):
            return table.stores.get(self.name)
        return None

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        store = self._store(obj)
        if store is not None:
            store.track()
        try:
            return obj.__dict__[self.name]
        except KeyError:
            raise AttributeError(
                f"{type(obj).__name__!r} object has no attribute {self.name!r}"
            ) from None

    def __set__(self, obj, value) -> None:
        if classify(value) is Kind.AGGREGATE:
            _install(value)
        obj.__dict__[self.name] = value
        store = self._store(obj)
        if store is not None:
            store.notify()

    def __delete__(self, obj) -> None:
        if self._store(obj) is not None:
            raise AttributeError(f"cannot delete reactive attribute {self.name!r}")
        try:
            del obj.__dict__[self.name]
        except KeyError:
            raise AttributeError(self.name) from None

    def __repr__(self) -> str:
        return f"ReactiveSlot({self.name!r})"


# (base class, reactive keys) -> generated subclass
_reactive_classes: dict[tuple[type, tuple[str, ...]], type] = {}


def _reactive_class(base: type, keys: tuple[str, ...]) -> type:
    cls = _reactive_classes.get((base, keys))
    if cls is None:
        namespace: dict[str, object] = {key: ReactiveSlot(key) for key in keys}
        namespace.update(
            __slots__=(),
            __module__=base.__module__,
            __qualname__=base.__qualname__,
            __reactive_base__=base,
        )
        cls = type(base)(base.__name__, (base,), namespace)
        _reactive_classes[(base, keys)] = cls
    return cls


def _is_slot_key(cls: type, key: object) -> bool:
    """Can the instance attribute `key` become a reactive slot?"""
    if not isinstance(key, str):
        return False
    if key.startswith("__") and key.endswith("__"):
        return False
    if key in getattr(cls, "__nonreactive__", ()):
        return False
    for klass in cls.__mro__:
        if key in vars(klass):
            attr = vars(klass)[key]
            if isinstance(attr, ReactiveSlot):
                return True
            # A class-level data descriptor (property, ...) hides the instance value.
            kind = type(attr)
            return not (hasattr(kind, "__set__") or hasattr(kind, "__delete__"))
    return True


def _install(obj) -> None:
    """Make obj reactive unless it already carries the marker.

    On failure the object is left exactly as it was: no marker, original class.
    """
    namespace = vars(obj)
    if MARKER in namespace:
        return
    original = type(obj)
    base = getattr(original, "__reactive_base__", original)
    keys = tuple(key for key in list(namespace) if _is_slot_key(base, key))
    cls = _reactive_class(base, keys) if keys else None

    # Mark before recursing so cyclic references terminate.
    table = SlotTable()
    namespace[MARKER] = table
    try:
        if cls is not None:
            # Bypass __setattr__ overrides (frozen dataclasses, ...).
            object.__setattr__(obj, "__class__", cls)
        for key in keys:
            value = namespace[key]
            if classify(value) is Kind.AGGREGATE:
                _install(value)
            table.stores[key] = DependencyStore()
    except BaseException:
        namespace.pop(MARKER, None)
        if type(obj) is not original:
            object.__setattr__(obj, "__class__", original)
        raise


def _check(obj: object, fn: str) -> None:
    kind = classify(obj)
    if kind is Kind.AGGREGATE:
        return
    if kind is Kind.CALLABLE_AGGREGATE and settings.current.observe_callables:
        return
    raise InvalidArgument(message(
        f"Attempted to {fn} a value that is not an observable object",
        f"{fn}(obj) expects an instance of a Python class, got {kind.value} {obj!r}",
    ))


def observe(obj: T) -> T:
    """Make obj reactive in place and return it.

    Observing an already reactive (or ignored) object is a no-op.

    Usage:
        class Cell:
            def __init__(self):
                self.a = 1
                self.b = 0

        x = observe(Cell())
        computed(lambda: setattr(x, "b", x.a * 2))
        # x.b == 2
        x.a = 5
        # x.b == 10
    """
    _check(obj, "observe")
    _install(obj)
    return obj


def ignore(obj: T) -> T:
    """Mark obj so observe() (direct or recursive) leaves it untouched."""
    _check(obj, "ignore")
    vars(obj).setdefault(MARKER, IGNORED)
    return obj


def is_reactive(obj: object) -> bool:
    """Has obj been made reactive by observe()?"""
    try:
        return isinstance(vars(obj).get(MARKER), SlotTable)
    except TypeError:
        return False


def dependants(obj: object, name: str) -> list[Task]:
    """Tasks currently registered on the reactive attribute obj.<name>."""
    try:
        table = vars(obj).get(MARKER)
    except TypeError:
        table = None
    if not isinstance(table, SlotTable) or name not in table.stores:
        raise InvalidArgument(message(
            "Attempted to inspect a non-reactive attribute",
            f"dependants(obj, name) got {name!r} on {obj!r}",
        ))
    return list(table.stores[name])
