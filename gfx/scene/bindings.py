"""
Binding resolution: merge fetched data records into element content.

The resolver never touches the entity model. It produces a ``BindingOverlay``
of per-element overrides that the evaluator layers over authored values.
Misses (no data for the source, record index out of range, path not found)
are soft: each is collected as a ``BindingMissError``, logged, and the
element keeps its last-known bound value or, failing that, its authored one.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from gfx.utils.logs import get_logger

from .errors import BindingMissError
from .sdk import Binding, ElementType, Template, default_target_property

log = get_logger("bindings")

_PATH_SPLIT = re.compile(r"[.\[\]]+")
_MISSING = object()

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "CAD": "CA$", "AUD": "A$"}
_ZERO_DECIMAL_CURRENCIES = {"JPY"}


@dataclass(frozen=True)
class RecordSet:
    """Already-fetched records of one data source."""

    source: str
    records: Tuple[Mapping[str, Any], ...] = ()
    fetched_at: float = 0.0

    def __post_init__(self):
        if not isinstance(self.records, tuple):
            object.__setattr__(self, "records", tuple(self.records))


@dataclass(frozen=True)
class BindingOverlay:
    # element id -> {target property -> bound value}
    overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    hidden: frozenset = frozenset()
    misses: Tuple[BindingMissError, ...] = ()

    def __post_init__(self):
        frozen = {eid: MappingProxyType(dict(vals)) for eid, vals in self.overrides.items()}
        object.__setattr__(self, "overrides", MappingProxyType(frozen))

    def value_for(self, element_id: str, target: str, default: Any = None) -> Any:
        return self.overrides.get(element_id, {}).get(target, default)

    def content_for(self, element_id: str) -> Dict[str, Any]:
        return _scoped(self.overrides.get(element_id, {}), "content")

    def style_for(self, element_id: str) -> Dict[str, Any]:
        return _scoped(self.overrides.get(element_id, {}), "style")

    def is_hidden(self, element_id: str) -> bool:
        return element_id in self.hidden


EMPTY_OVERLAY = BindingOverlay()


def _scoped(values: Mapping[str, Any], scope: str) -> Dict[str, Any]:
    prefix = scope + "."
    return {k[len(prefix):]: v for k, v in values.items() if k.startswith(prefix)}


def get_nested_value(record: Any, path: str) -> Any:
    """Follow ``home.players[0].name`` style paths; returns ``_MISSING`` if any hop fails."""
    current = record
    for part in (p for p in _PATH_SPLIT.split(path) if p):
        if isinstance(current, Mapping):
            if part not in current:
                return _MISSING
            current = current[part]
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_number(value: float, decimals: Optional[int]) -> str:
    if decimals is not None:
        return f"{value:,.{int(decimals)}f}"
    if isinstance(value, int):
        return f"{value:,}"
    # up to three fraction digits, trailing zeros dropped
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text


def _format_currency(value: float, code: str) -> str:
    code = code.upper()
    decimals = 0 if code in _ZERO_DECIMAL_CURRENCIES else 2
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def apply_formatter(value: Any, formatter: Optional[str], options: Optional[Mapping[str, Any]] = None) -> Any:
    """Format a raw bound value; prefix/suffix options apply whatever the formatter."""
    options = options or {}
    result = value

    if formatter == "number":
        if _is_number(value):
            result = _format_number(value, options.get("decimals"))
    elif formatter == "currency":
        if _is_number(value):
            result = _format_currency(value, str(options.get("currency") or "USD"))
    elif formatter == "percentage":
        if _is_number(value):
            decimals = options.get("decimals")
            decimals = 1 if decimals is None else int(decimals)
            result = f"{value:.{decimals}f}%"
    elif formatter == "uppercase":
        if isinstance(value, str):
            result = value.upper()
    elif formatter == "lowercase":
        if isinstance(value, str):
            result = value.lower()
    elif formatter == "capitalize":
        if isinstance(value, str):
            result = value[:1].upper() + value[1:].lower()
    elif formatter == "truncate":
        if isinstance(value, str):
            max_length = int(options.get("maxLength") or 50)
            suffix = str(options.get("truncateSuffix") or "...")
            if len(value) > max_length:
                result = value[: max(0, max_length - len(suffix))] + suffix

    prefix = options.get("prefix")
    suffix = options.get("suffix")
    if prefix or suffix:
        result = f"{prefix or ''}{result}{suffix or ''}"
    return result


def should_hide(value: Any, options: Optional[Mapping[str, Any]]) -> bool:
    if not options:
        return False
    if options.get("hideOnNull") and (value is None or value == ""):
        return True
    if options.get("hideOnZero") and _is_number(value) and value == 0:
        return True
    return False


def _index_records(data: Union[Mapping[str, Any], Iterable[RecordSet], None]) -> Dict[str, Tuple[Any, ...]]:
    if data is None:
        return {}
    if isinstance(data, Mapping):
        out = {}
        for source, value in data.items():
            out[source] = value.records if isinstance(value, RecordSet) else tuple(value)
        return out
    return {rs.source: rs.records for rs in data}


def resolve_bindings(
    bindings: Iterable[Binding],
    data: Union[Mapping[str, Any], Iterable[RecordSet], None],
    selection: Optional[Mapping[str, int]] = None,
    previous: Optional[BindingOverlay] = None,
    *,
    element_types: Optional[Mapping[str, ElementType]] = None,
) -> BindingOverlay:
    """
    Resolve ``bindings`` against ``data`` into a new overlay.

    ``selection`` maps a source name to the record index the operator picked;
    without one each binding reads its own ``record_index`` (first record by
    default). ``previous`` supplies last-known values for bindings that miss.
    """
    records = _index_records(data)
    selection = selection or {}
    element_types = element_types or {}
    overrides: Dict[str, Dict[str, Any]] = {}
    hidden = set()
    misses: List[BindingMissError] = []

    for b in bindings:
        target = b.target_property
        if target is None:
            target = default_target_property(element_types.get(b.element_id, ElementType.TEXT)) or "content.text"

        source_records = records.get(b.source)
        index = selection.get(b.source, b.record_index)
        if source_records is None:
            reason = f"no data for source '{b.source}'"
            value = _MISSING
        elif not 0 <= index < len(source_records):
            reason = f"record {index} out of range for source '{b.source}' ({len(source_records)} records)"
            value = _MISSING
        else:
            value = get_nested_value(source_records[index], b.field_path)
            reason = f"path '{b.field_path}' not found in '{b.source}' record {index}"

        if value is _MISSING:
            miss = BindingMissError(
                reason, binding_id=b.id, element_id=b.element_id, source=b.source, field=b.field_path
            )
            misses.append(miss)
            log.warning(f"[binding {b.id}] {reason}")
            if previous is not None:
                last = previous.value_for(b.element_id, target, _MISSING)
                if last is not _MISSING:
                    overrides.setdefault(b.element_id, {})[target] = last
                if previous.is_hidden(b.element_id):
                    hidden.add(b.element_id)
            continue

        if should_hide(value, b.formatter_options):
            hidden.add(b.element_id)
            continue
        if value is None:
            value = b.default_value if b.default_value is not None else ""
        overrides.setdefault(b.element_id, {})[target] = apply_formatter(value, b.formatter, b.formatter_options)

    return BindingOverlay(overrides, frozenset(hidden), tuple(misses))


def resolve_template_bindings(
    template: Template,
    data: Union[Mapping[str, Any], Iterable[RecordSet], None],
    selection: Optional[Mapping[str, int]] = None,
    previous: Optional[BindingOverlay] = None,
) -> BindingOverlay:
    """Resolve all bindings of ``template``; default targets follow each element's type."""
    types = {eid: el.type for eid, el in template.element_index().items()}
    return resolve_bindings(template.bindings, data, selection, previous, element_types=types)
