"""twinform — form objects that twin domain objects.

Read a domain object into a form, validate an input document against it,
then sync the result back and save, all as explicit steps.
"""

from twinform.config.settings import TwinformSettings
from twinform.domain.coercion import CoercionTable, register_coercer
from twinform.domain.errors import ConfigurationError, ErrorCollection, TwinformError
from twinform.domain.rules import (
    Confirmation,
    Custom,
    Format,
    Inclusion,
    Length,
    Numericality,
    Predicate,
    Presence,
)
from twinform.domain.types import SaveStrategy
from twinform.form import Collection, Form, Nested, Property
from twinform.infrastructure.accessors import AttributeAccessor, MappingAccessor
from twinform.infrastructure.documents import dump_form, load_document
from twinform.plugins import PluginManager, hookimpl
from twinform.services.result import SaveFailure, SaveResult

__version__ = "0.1.0"

__all__ = [
    "AttributeAccessor",
    "CoercionTable",
    "Collection",
    "ConfigurationError",
    "Confirmation",
    "Custom",
    "ErrorCollection",
    "Form",
    "Format",
    "Inclusion",
    "Length",
    "MappingAccessor",
    "Nested",
    "Numericality",
    "PluginManager",
    "Predicate",
    "Presence",
    "Property",
    "SaveFailure",
    "SaveResult",
    "SaveStrategy",
    "TwinformError",
    "TwinformSettings",
    "dump_form",
    "hookimpl",
    "load_document",
    "register_coercer",
]
