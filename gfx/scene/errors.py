"""
Engine error taxonomy.

ValidationError is raised; BindingMissError and EvaluationError are collected
on the result objects and reported to the host, never raised out of a frame.
"""

from typing import Optional


class EngineError(Exception):
    """Base class carrying enough context for the editor to point at the culprit."""

    def __init__(self, message: str, *, element_id: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.element_id = element_id
        self.field = field

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "element_id": self.element_id,
            "field": self.field,
        }


class ValidationError(EngineError, ValueError):
    """An entity invariant was violated at construction or mutation time."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        entity: Optional[str] = None,
        element_id: Optional[str] = None,
    ):
        super().__init__(message, element_id=element_id, field=field)
        self.entity = entity

    @classmethod
    def from_pydantic(cls, exc, entity: str) -> "ValidationError":
        errors = exc.errors()
        first = errors[0] if errors else {}
        parts = [str(part) for part in first.get("loc", ())]
        msg = first.get("msg", str(exc))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        element_id = None
        inner = (first.get("ctx") or {}).get("error")
        if isinstance(inner, ValidationError):
            element_id = inner.element_id
            if inner.field:
                # field validators already sit at the field's own location
                if parts and (inner.field == parts[-1] or inner.field.startswith(parts[-1] + ".")):
                    parts = parts[:-1]
                parts.append(inner.field)
        field = ".".join(parts) or None
        where = f"{entity}.{field}" if field else entity
        return cls(f"{where}: {msg}", field=field, entity=entity, element_id=element_id)


class BindingMissError(EngineError):
    """A binding could not be resolved against the current record set (soft)."""

    def __init__(self, message: str, *, binding_id: str, element_id: str, source: str, field: str):
        super().__init__(message, element_id=element_id, field=field)
        self.binding_id = binding_id
        self.source = source

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update(binding_id=self.binding_id, source=self.source)
        return out


class EvaluationError(EngineError):
    """Malformed animation data discovered while evaluating one element."""

    def __init__(self, message: str, *, element_id: str, field: Optional[str] = None, animation_id: Optional[str] = None):
        super().__init__(message, element_id=element_id, field=field)
        self.animation_id = animation_id
