"""
Tests for type identifiers and their resolution.
"""

import decimal
import fractions
import pytest
from collections import OrderedDict
from evoprog.core.types import TypeRegistry, TypeResolutionError, VOID_TYPE


class TestTypeRegistry:
    """Test identifier creation and resolution."""

    def test_builtin_identifiers(self):
        """Test builtins get qualified identifiers and resolve back."""
        registry = TypeRegistry()

        assert registry.identifier_for(int) == "builtins.int"
        assert registry.resolve("builtins.int") is int
        assert registry.resolve("float") is float

    def test_module_types(self):
        """Test types from importable modules round-trip."""
        registry = TypeRegistry()

        for type_ in (decimal.Decimal, fractions.Fraction, OrderedDict):
            identifier = registry.identifier_for(type_)
            assert registry.resolve(identifier) is type_

    def test_void_type_round_trip(self):
        """Test the placeholder type itself can be stored."""
        registry = TypeRegistry()

        identifier = registry.identifier_for(VOID_TYPE)
        assert identifier == "builtins.NoneType"
        assert registry.resolve(identifier) is VOID_TYPE

    def test_registered_alias(self):
        """Test types that cannot be imported are resolved through an alias."""
        class Local:
            pass

        registry = TypeRegistry()
        identifier = registry.register(Local, "tests.Local")

        assert identifier == "tests.Local"
        assert registry.identifier_for(Local) == "tests.Local"
        assert registry.resolve("tests.Local") is Local
        assert "tests.Local" in registry

    def test_register_default_identifier(self):
        """Test registering without an alias uses the qualified name."""
        registry = TypeRegistry()

        assert registry.register(decimal.Decimal) == "decimal.Decimal"

    @pytest.mark.parametrize("identifier", [
        "no_such_module.Thing",
        "decimal.NoSuchClass",
        "decimal.getcontext",  # exists but is not a type
        "NoSuchBuiltin",
        ".leading.dot",
        "",
    ])
    def test_unresolvable_identifiers(self, identifier):
        """Test unknown identifiers raise TypeResolutionError."""
        registry = TypeRegistry()

        with pytest.raises(TypeResolutionError):
            registry.resolve(identifier)

    def test_resolution_error_is_lookup_error(self):
        """Test the error can be handled as a LookupError."""
        with pytest.raises(LookupError):
            TypeRegistry().resolve("no_such_module.Thing")

    def test_identifier_for_rejects_instances(self):
        """Test that only types can be given identifiers."""
        registry = TypeRegistry()

        with pytest.raises(TypeError):
            registry.identifier_for(42)
        with pytest.raises(TypeError):
            registry.register("int")
