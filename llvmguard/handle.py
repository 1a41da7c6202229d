"""
Handle core: checked native pointers tied to the lifetime of their owner.

Every native object is represented by a ``Handle`` holding a non-null raw
address and the ``Lifetime`` of whatever owns it. Objects that need an
explicit dispose call are ``OwnedHandle``s; they own a ``Lifetime`` of their
own which derived handles borrow. A ``Lifetime`` is the runtime stand-in for a
borrow: once it ends, every handle borrowing it (directly or through a parent
chain) raises ``LLVMUseAfterFreeError`` instead of reaching the toolkit.

Disposal order is reverse-of-construction: disposing an owner first disposes
the owned handles still registered on its lifetime, newest first.

A lifetime holds the handle currently responsible for it, so anything that
borrows a module (functions, blocks, instructions) keeps that module, or the
engine it was moved into, from being collected. An owner and its lifetime form
a cycle until disposal; a leaked owner is reported when the cycle collector
reaches it.
"""

import itertools
import logging
import sys
import threading
import warnings
import weakref

from . import ffi
from .errors import (
    LLVMAssertionError,
    LLVMNullPointerError,
    LLVMUseAfterFreeError,
)

logger = logging.getLogger(__name__)

_serials = itertools.count(1)


def check_pointer(raw, what="native call"):
    """Return ``raw`` as an int address, or raise LLVMNullPointerError."""
    if not raw:
        raise LLVMNullPointerError(what)
    return int(raw)


class Lifetime:
    """Validity token for an owner and the registry of what it owns."""

    def __init__(self, label, parent=None):
        self.label = label
        self.parent = parent
        self.alive = True
        self.reason = None
        self.thread = threading.get_ident()
        # The OwnedHandle currently responsible for the object. Handles that
        # borrow this lifetime keep it, and so their owner, reachable.
        self.holder = None
        self._dependents = {}

    @classmethod
    def ended(cls, label, reason):
        lifetime = cls(label)
        lifetime.end(reason)
        return lifetime

    @property
    def valid(self):
        lifetime = self
        while lifetime is not None:
            if not lifetime.alive:
                return False
            lifetime = lifetime.parent
        return True

    def check(self):
        lifetime = self
        while lifetime is not None:
            if not lifetime.alive:
                raise LLVMUseAfterFreeError(
                    f"{lifetime.label} has been {lifetime.reason}"
                )
            lifetime = lifetime.parent
        if threading.get_ident() != self.thread:
            raise LLVMAssertionError(
                f"{self.label} was created on another thread and cannot be "
                f"used from this one"
            )

    def end(self, reason="disposed"):
        self.alive = False
        self.reason = reason
        self.holder = None

    def adopt(self, handle):
        self._dependents[handle._serial] = weakref.ref(handle)

    def forget(self, handle):
        self._dependents.pop(handle._serial, None)

    def dependents(self):
        """Live owned handles, newest first."""
        live = []
        for serial in sorted(self._dependents, reverse=True):
            handle = self._dependents[serial]()
            if handle is not None:
                live.append(handle)
        return live

    def release_dependents(self):
        for handle in self.dependents():
            handle.dispose()

    def __repr__(self):
        state = "alive" if self.alive else self.reason
        return f"<Lifetime {self.label} ({state})>"


class Handle:
    """A checked, non-null native pointer borrowing ``lifetime``."""

    def __init__(self, ptr, lifetime):
        self._ptr = check_pointer(ptr, type(self).__name__)
        self._lifetime = lifetime

    def _inner(self):
        """Raw address for native calls; only layer code may use this."""
        self._lifetime.check()
        return self._ptr

    @property
    def is_valid(self):
        return self._lifetime.valid

    def __eq__(self, other):
        if not isinstance(other, Handle):
            return NotImplemented
        return self._ptr == other._ptr

    def __hash__(self):
        return hash(self._ptr)

    def __repr__(self):
        state = "" if self.is_valid else " (invalid)"
        return f"<{type(self).__name__} 0x{self._ptr:x}{state}>"


class OwnedHandle(Handle):
    """A handle with exactly one disposal path.

    Subclasses name their native destructor in ``_dispose_fn``. ``owner`` is
    the OwnedHandle this one borrows from (if any); it is registered on the
    owner's lifetime so the owner's disposal tears it down first.
    """

    _dispose_fn = None

    def __init__(self, ptr, owner=None, label=None, lifetime=None):
        label = label or type(self).__name__
        parent = owner._lifetime if owner is not None else None
        if parent is not None:
            parent.check()
        if lifetime is None:
            lifetime = Lifetime(label, parent)
        else:
            lifetime.label = label
            lifetime.parent = parent
        self._serial = next(_serials)
        self._armed = False
        Handle.__init__(self, check_pointer(ptr, label), lifetime)
        self._owner = owner
        self._backend = ffi.installed_library()
        self._armed = True
        lifetime.holder = self
        if parent is not None:
            parent.adopt(self)

    @property
    def is_disposed(self):
        return not self._armed

    def _dispose_native(self):
        if self._dispose_fn is not None:
            getattr(ffi.lib, self._dispose_fn)(self._ptr)

    def dispose(self):
        """Release the native object; later calls do nothing."""
        if not self._armed:
            return
        self._armed = False
        lifetime = self._lifetime
        lifetime.release_dependents()
        self._dispose_native()
        lifetime.end("disposed")
        if lifetime.parent is not None:
            lifetime.parent.forget(self)
        logger.debug("disposed %s", lifetime.label)

    def _release(self, reason="moved"):
        """Give up ownership to a new owner.

        Returns the raw pointer and the lifetime that derived handles borrow;
        the receiver becomes responsible for both. This handle is disarmed and
        any further use of it raises LLVMUseAfterFreeError.
        """
        self._lifetime.check()
        if not self._armed:
            raise LLVMUseAfterFreeError(f"{self._lifetime.label} is not owned")
        self._armed = False
        lifetime = self._lifetime
        lifetime.holder = None
        if lifetime.parent is not None:
            lifetime.parent.forget(self)
        self._lifetime = Lifetime.ended(lifetime.label, reason)
        return self._ptr, lifetime

    def __enter__(self):
        self._lifetime.check()
        return self

    def __exit__(self, *exc):
        self.dispose()
        return False

    def __del__(self):
        if not getattr(self, "_armed", False) or sys.is_finalizing():
            return
        parent = self._lifetime.parent
        if parent is not None and not parent.valid:
            # The owner's teardown already freed the native object.
            self._armed = False
            return
        if self._backend is not ffi.installed_library():
            # Created against a native library that is no longer installed.
            self._armed = False
            return
        warnings.warn(
            f"{self._lifetime.label} was never disposed; disposing it now",
            ResourceWarning,
            stacklevel=2,
        )
        self.dispose()
