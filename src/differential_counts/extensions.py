"""
Accessor registration for dataset classes.

A statistical backend attaches its dataset-level entry points under a
namespace (``dataset.deseq2.run()``) by decorating an accessor class. The
dataset module never imports the backend; registration happens when the
backend module is imported.

Example:
    >>> from differential_counts.countdataset import register_dataset_accessor
    >>> @register_dataset_accessor("qc")
    ... class QCAccessor:
    ...     def __init__(self, dataset):
    ...         self._dataset = dataset
    ...     def library_sizes(self):
    ...         return self._dataset.counts_frame().sum()
    >>> ds.qc.library_sizes()
"""

from __future__ import annotations

import warnings
from typing import Any, Callable, Type, TypeVar

A = TypeVar("A")

_CACHE_ATTR = "_accessor_cache"


class AccessorRegistrationWarning(Warning):
    """Warning for an accessor name that shadows an existing attribute."""


class _CachedAccessor:
    """
    Descriptor building one accessor per dataset instance.

    The cache lives on the instance and remembers which dataset each
    accessor was built for. BiocPy copies carry the instance dict along, so
    a copy gets a fresh accessor bound to itself instead of its source's.
    """

    def __init__(self, name: str, accessor: Type) -> None:
        self._name = name
        self._accessor = accessor

    def __get__(self, obj: Any, cls: type):
        if obj is None:
            return self._accessor

        cache = obj.__dict__.setdefault(_CACHE_ATTR, {})
        owner, accessor_obj = cache.get(self._name, (None, None))
        if owner is obj:
            return accessor_obj

        try:
            accessor_obj = self._accessor(obj)
        except AttributeError as err:
            # keep attribute lookup from treating the failure as a missing accessor
            raise RuntimeError(f"Error initializing {self._name!r} accessor") from err

        cache[self._name] = (obj, accessor_obj)
        return accessor_obj


def register_accessor(target: type, name: str) -> Callable[[Type[A]], Type[A]]:
    """
    Return a class decorator registering an accessor on `target` under `name`.

    Args:
        target: Class receiving the accessor, e.g. CountDataset.
        name: Attribute name of the namespace.

    Returns:
        The decorator; it returns the accessor class unchanged.

    Warns:
        AccessorRegistrationWarning: If `name` shadows an existing attribute
            that is not itself an accessor.
    """
    def decorator(accessor: Type[A]) -> Type[A]:
        existing = target.__dict__.get(name)
        if hasattr(target, name) and not isinstance(existing, _CachedAccessor):
            warnings.warn(
                f"Accessor {accessor.__name__!r} registered as {target.__name__}.{name} "
                f"shadows an existing attribute",
                AccessorRegistrationWarning,
                stacklevel=2,
            )
        setattr(target, name, _CachedAccessor(name, accessor))
        return accessor

    return decorator
