"""
Stable type identifiers for program return and argument types.

Programs store the qualified name of each type instead of the class itself,
so they can be copied and persisted without the type being importable at
that moment. The registry turns identifiers back into classes on demand.
"""

import builtins
import importlib
from typing import Dict, Optional


# Placeholder returned for identifiers that cannot be resolved
VOID_TYPE = type(None)


class TypeResolutionError(LookupError):
    """Exception raised when a type identifier cannot be resolved."""
    pass


class TypeRegistry:
    """
    Maps types to identifiers and back.

    Unregistered types use ``module.qualname``. Types that cannot be found by
    import (defined in ``__main__``, inside functions, or created dynamically)
    can be registered under an explicit alias.
    """

    def __init__(self):
        self._by_identifier: Dict[str, type] = {}
        self._by_type: Dict[type, str] = {}
        # NoneType is not reachable as an attribute of builtins
        self.register(VOID_TYPE, "builtins.NoneType")

    def register(self, type_: type, identifier: Optional[str] = None) -> str:
        """
        Register a type under an identifier.

        Args:
            type_: The class to register
            identifier: Alias to store for it (defaults to the qualified name)

        Returns:
            The identifier the type is stored under
        """
        if not isinstance(type_, type):
            raise TypeError(f"Expected a type, got {type_!r}")
        identifier = identifier or self._qualified_name(type_)
        self._by_identifier[identifier] = type_
        self._by_type[type_] = identifier
        return identifier

    def identifier_for(self, type_: type) -> str:
        """Get the stable identifier of a type."""
        if not isinstance(type_, type):
            raise TypeError(f"Expected a type, got {type_!r}")
        registered = self._by_type.get(type_)
        if registered is not None:
            return registered
        return self._qualified_name(type_)

    def resolve(self, identifier: str) -> type:
        """
        Resolve an identifier back to a live type.

        Raises:
            TypeResolutionError: If the identifier names no known type
        """
        registered = self._by_identifier.get(identifier)
        if registered is not None:
            return registered

        if not identifier or not isinstance(identifier, str):
            raise TypeResolutionError(f"Invalid type identifier: {identifier!r}")

        if "." not in identifier:
            resolved = getattr(builtins, identifier, None)
            if isinstance(resolved, type):
                return resolved
            raise TypeResolutionError(f"Unknown type identifier: '{identifier}'")

        # Find the longest importable module prefix, then walk the rest
        parts = identifier.split(".")
        if not all(parts):
            raise TypeResolutionError(f"Invalid type identifier: '{identifier}'")
        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                obj = importlib.import_module(module_name)
            except ImportError:
                continue
            for attr in parts[split:]:
                obj = getattr(obj, attr, None)
                if obj is None:
                    break
            if isinstance(obj, type):
                return obj
            break

        raise TypeResolutionError(f"Unknown type identifier: '{identifier}'")

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._by_identifier

    @staticmethod
    def _qualified_name(type_: type) -> str:
        if type_.__module__ == "builtins":
            return f"builtins.{type_.__qualname__}"
        return f"{type_.__module__}.{type_.__qualname__}"
