"""Input documents and form snapshots as YAML.

``load_document`` parses a YAML (or JSON, which is YAML) request body into
the nested mapping the deserializer consumes. ``dump_form`` renders a form
snapshot, virtual fields included, back to YAML.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from twinform.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from twinform.form import Form


def _new_yaml(typ: str = "safe") -> YAML:
    """Create a fresh YAML instance.

    ruamel.yaml's YAML object is stateful; a failed dump can leave it
    broken, so each call gets its own.
    """
    y = YAML(typ=typ, pure=True)
    y.default_flow_style = False
    return y


def load_document(text: str) -> dict[str, Any]:
    """Parse *text* into an input document.

    An empty document is ``{}``.

    Raises:
        ConfigurationError: If *text* is not valid YAML or its root is not
            a mapping.
    """
    try:
        data = _new_yaml().load(text)
    except YAMLError as exc:
        msg = f"Invalid YAML document: {exc}"
        raise ConfigurationError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        msg = f"Input document must be a mapping, got {type(data).__name__}"
        raise ConfigurationError(msg)
    return dict(data)


def _plain(value: Any) -> Any:
    """Reduce a snapshot to types the safe representer can emit."""
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if value is None or isinstance(value, (str, int, float, bool, date)):
        return value
    return str(value)


def dump_data(data: Mapping[str, Any]) -> str:
    buf = StringIO()
    _new_yaml().dump(_plain(data), buf)
    return buf.getvalue()


def dump_form(form: Form) -> str:
    """Render ``form.to_dict()`` as a YAML document."""
    return dump_data(form.to_dict())
