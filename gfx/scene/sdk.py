"""
Core SDK for the Scene & Timeline Engine

This module is the single source of truth for entity types and constants.
Every other module imports its models from here to avoid drift.

Entities are frozen pydantic models with tuple collections: a value handed out
once is never changed afterwards, so history snapshots, live state and
played-out instances can share untouched subtrees safely.
"""

import math
import re
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .easing import is_known_easing
from .errors import ValidationError


# ============================================================================
# CONSTANTS
# ============================================================================

CANVAS_W = 1920
CANVAS_H = 1080
FPS = 30
MAX_GROUP_DEPTH = 8
KEYFRAME_MIN = 0.0
KEYFRAME_MAX = 100.0

# Element-level numeric properties a keyframe may animate
GEOMETRY_KEYS = (
    "position_x",
    "position_y",
    "width",
    "height",
    "rotation",
    "scale_x",
    "scale_y",
    "opacity",
)
TRANSFORM_KEY = "transform"

FORMATTERS = frozenset(
    {"number", "currency", "percentage", "uppercase", "lowercase", "capitalize", "truncate"}
)

_TARGET_RE = re.compile(r"^(content|style)\.[A-Za-z_][\w-]*$")


class ElementType(str, Enum):
    TEXT = "text"
    SHAPE = "shape"
    IMAGE = "image"
    GROUP = "group"


class Phase(str, Enum):
    IN = "in"
    LOOP = "loop"
    OUT = "out"


# ============================================================================
# BASE MODEL
# ============================================================================


class EntityModel(BaseModel):
    """Frozen base model that reports invariant violations as ValidationError."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, type(self).__name__) from None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, cls.__name__) from None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def evolve(self, **changes: Any):
        """Return a re-validated copy with ``changes`` applied; untouched fields are shared."""
        fields = type(self).model_fields
        unknown = sorted(set(changes) - set(fields))
        if unknown:
            raise ValidationError(
                f"{type(self).__name__}.{unknown[0]}: unknown field",
                field=unknown[0],
                entity=type(self).__name__,
            )
        data = {name: getattr(self, name) for name in fields}
        data.update(changes)
        return type(self)(**data)


# ============================================================================
# CONTENT
# ============================================================================


class TextContent(EntityModel):
    type: Literal["text"] = "text"
    text: str = ""


class ShapeContent(EntityModel):
    type: Literal["shape"] = "shape"
    shape: str = "rectangle"
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = Field(0.0, ge=0)
    corner_radius: float = Field(0.0, ge=0)


class ImageContent(EntityModel):
    type: Literal["image"] = "image"
    src: str = ""
    fit: Literal["cover", "contain", "fill", "none"] = "cover"


class GroupContent(EntityModel):
    type: Literal["group"] = "group"
    children: Tuple["Element", ...] = ()


Content = Annotated[
    Union[TextContent, ShapeContent, ImageContent, GroupContent],
    Field(discriminator="type"),
]

# Bindable content fields per content type
CONTENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "text": ("text",),
    "shape": ("shape", "fill", "stroke", "stroke_width", "corner_radius"),
    "image": ("src", "fit"),
    "group": (),
}


# ============================================================================
# ENTITIES
# ============================================================================


class Element(EntityModel):
    """Positioned visual element; z-order is its index in the containing tuple."""

    id: str = Field(..., min_length=1)
    name: str = ""
    type: ElementType
    position_x: float = 0.0
    position_y: float = 0.0
    width: float = Field(100.0, ge=0)
    height: float = Field(100.0, ge=0)
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    visible: bool = True
    locked: bool = False
    style: Dict[str, Any] = Field(default_factory=dict, validate_default=True)
    content: Content

    @field_validator("style")
    @classmethod
    def _freeze_style(cls, v: Dict[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    @field_serializer("style")
    def _dump_style(self, v: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(v)

    @model_validator(mode="before")
    @classmethod
    def _default_content(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("content") is None and data.get("type") is not None:
            kind = data["type"]
            data = dict(data)
            data["content"] = {"type": kind.value if isinstance(kind, Enum) else kind}
        return data

    @model_validator(mode="after")
    def _check_content(self) -> "Element":
        if self.content.type != self.type.value:
            raise ValidationError(
                f"content type '{self.content.type}' does not match element type '{self.type.value}'",
                field="content",
                element_id=self.id,
            )
        if isinstance(self.content, GroupContent):
            _check_nesting(self)
        return self

    @property
    def children(self) -> Tuple["Element", ...]:
        if isinstance(self.content, GroupContent):
            return self.content.children
        return ()

    def geometry(self) -> Dict[str, float]:
        return {key: float(getattr(self, key)) for key in GEOMETRY_KEYS}


def _check_nesting(root: Element) -> None:
    """Reject self-containment (by id, transitively) and over-deep groups."""
    stack = [(root, (root.id,), 0)]
    while stack:
        element, path, depth = stack.pop()
        if depth > MAX_GROUP_DEPTH:
            raise ValidationError(
                f"group nesting exceeds {MAX_GROUP_DEPTH} levels",
                field="content.children",
                element_id=root.id,
            )
        for child in element.children:
            if child.id in path:
                raise ValidationError(
                    f"element '{child.id}' contains itself",
                    field="content.children",
                    element_id=child.id,
                )
            stack.append((child, path + (child.id,), depth + 1))


GroupContent.model_rebuild()
Element.model_rebuild()


class Keyframe(EntityModel):
    """Sparse property deltas at ``position`` percent of the animation duration."""

    position: float = Field(..., ge=KEYFRAME_MIN, le=KEYFRAME_MAX)
    properties: Dict[str, Union[float, str]] = Field(default_factory=dict, validate_default=True)

    @field_validator("properties")
    @classmethod
    def _check_properties(cls, v: Dict[str, Union[float, str]]) -> Mapping[str, Union[float, str]]:
        for key, value in v.items():
            if isinstance(value, float) and not math.isfinite(value):
                raise ValidationError(f"property '{key}' must be finite", field=f"properties.{key}")
            if key == "opacity" and isinstance(value, float) and not 0.0 <= value <= 1.0:
                raise ValidationError("opacity must be between 0.0 and 1.0", field="properties.opacity")
        return MappingProxyType(dict(v))

    @field_serializer("properties")
    def _dump_properties(self, v: Mapping[str, Union[float, str]]) -> Dict[str, Union[float, str]]:
        return dict(v)


class Animation(EntityModel):
    id: str = Field(..., min_length=1)
    element_id: str = Field(..., min_length=1)
    phase: Phase
    duration: float = Field(500.0, ge=0)
    delay: float = Field(0.0, ge=0)
    easing: str = "linear"
    keyframes: Tuple[Keyframe, ...] = ()

    @field_validator("easing")
    @classmethod
    def _check_easing(cls, v: str) -> str:
        if not is_known_easing(v):
            raise ValidationError(f"unknown easing '{v}'", field="easing")
        return v

    @model_validator(mode="after")
    def _check_order(self) -> "Animation":
        for i in range(1, len(self.keyframes)):
            prev, cur = self.keyframes[i - 1].position, self.keyframes[i].position
            if cur < prev:
                raise ValidationError(
                    f"keyframe positions must be non-decreasing ({prev} then {cur})",
                    field=f"keyframes.{i}.position",
                    element_id=self.element_id,
                )
        return self

    @property
    def span(self) -> float:
        """Delay plus duration: the local time at which the animation completes."""
        return self.delay + self.duration


class Binding(EntityModel):
    id: str = Field(..., min_length=1)
    element_id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    field_path: str = Field(..., min_length=1)
    target_property: Optional[str] = None
    formatter: Optional[str] = None
    formatter_options: Dict[str, Any] = Field(default_factory=dict)
    record_index: int = Field(0, ge=0)
    # used when the field exists but holds null
    default_value: Optional[str] = None

    @field_validator("formatter")
    @classmethod
    def _check_formatter(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in FORMATTERS:
            raise ValidationError(f"formatter must be one of: {sorted(FORMATTERS)}", field="formatter")
        return v

    @field_validator("target_property")
    @classmethod
    def _check_target(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _TARGET_RE.match(v):
            raise ValidationError(
                "target_property must look like 'content.<field>' or 'style.<key>'",
                field="target_property",
            )
        return v


class Template(EntityModel):
    """A reusable composition of elements, their animations and their bindings."""

    id: str = Field(..., min_length=1)
    name: str = ""
    elements: Tuple[Element, ...] = ()
    animations: Tuple[Animation, ...] = ()
    bindings: Tuple[Binding, ...] = ()
    source_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_references(self) -> "Template":
        index: Dict[str, Element] = {}
        for element, _parent, _depth in walk_elements(self.elements):
            if element.id in index:
                raise ValidationError(
                    f"duplicate element id '{element.id}'", field="elements", element_id=element.id
                )
            index[element.id] = element

        anim_ids = set()
        pairs = set()
        for i, anim in enumerate(self.animations):
            if anim.id in anim_ids:
                raise ValidationError(f"duplicate animation id '{anim.id}'", field=f"animations.{i}.id")
            anim_ids.add(anim.id)
            if anim.element_id not in index:
                raise ValidationError(
                    f"animation '{anim.id}' targets unknown element '{anim.element_id}'",
                    field=f"animations.{i}.element_id",
                    element_id=anim.element_id,
                )
            if (anim.element_id, anim.phase) in pairs:
                raise ValidationError(
                    f"element '{anim.element_id}' already has a '{anim.phase.value}' animation",
                    field=f"animations.{i}.phase",
                    element_id=anim.element_id,
                )
            pairs.add((anim.element_id, anim.phase))

        binding_ids = set()
        for i, binding in enumerate(self.bindings):
            if binding.id in binding_ids:
                raise ValidationError(f"duplicate binding id '{binding.id}'", field=f"bindings.{i}.id")
            binding_ids.add(binding.id)
            element = index.get(binding.element_id)
            if element is None:
                raise ValidationError(
                    f"binding '{binding.id}' targets unknown element '{binding.element_id}'",
                    field=f"bindings.{i}.element_id",
                    element_id=binding.element_id,
                )
            target = binding.target_property or default_target_property(element.type)
            if target is None:
                raise ValidationError(
                    f"binding '{binding.id}' needs a target_property for a {element.type.value} element",
                    field=f"bindings.{i}.target_property",
                    element_id=element.id,
                )
            scope, _, name = target.partition(".")
            if scope == "content" and name not in CONTENT_FIELDS[element.type.value]:
                raise ValidationError(
                    f"{element.type.value} content has no field '{name}'",
                    field=f"bindings.{i}.target_property",
                    element_id=element.id,
                )
        return self

    def element_index(self) -> Dict[str, Element]:
        return {el.id: el for el, _parent, _depth in walk_elements(self.elements)}

    def find_element(self, element_id: str) -> Optional[Element]:
        for element, _parent, _depth in walk_elements(self.elements):
            if element.id == element_id:
                return element
        return None

    def animation_for(self, element_id: str, phase: Union[Phase, str]) -> Optional[Animation]:
        phase = Phase(phase)
        for anim in self.animations:
            if anim.element_id == element_id and anim.phase == phase:
                return anim
        return None

    def animations_for(self, element_id: str) -> Dict[Phase, Animation]:
        return {a.phase: a for a in self.animations if a.element_id == element_id}

    def bindings_for(self, element_id: str) -> List[Binding]:
        return [b for b in self.bindings if b.element_id == element_id]


class Layer(EntityModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    templates: Tuple[Template, ...] = ()

    @model_validator(mode="after")
    def _check_templates(self) -> "Layer":
        seen = set()
        for i, template in enumerate(self.templates):
            if template.id in seen:
                raise ValidationError(f"duplicate template id '{template.id}'", field=f"templates.{i}.id")
            seen.add(template.id)
        return self


class Project(EntityModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    width: int = Field(CANVAS_W, gt=0)
    height: int = Field(CANVAS_H, gt=0)
    frame_rate: float = Field(float(FPS), gt=0)
    layers: Tuple[Layer, ...] = ()

    @model_validator(mode="after")
    def _check_layers(self) -> "Project":
        seen = set()
        for i, layer in enumerate(self.layers):
            if layer.id in seen:
                raise ValidationError(f"duplicate layer id '{layer.id}'", field=f"layers.{i}.id")
            seen.add(layer.id)
        return self

    def find_template(self, template_id: str) -> Optional[Template]:
        for layer in self.layers:
            for template in layer.templates:
                if template.id == template_id:
                    return template
        return None


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def walk_elements(
    elements: Tuple[Element, ...], parent_id: Optional[str] = None, depth: int = 0
) -> Iterator[Tuple[Element, Optional[str], int]]:
    """Depth-first walk yielding (element, parent id, depth) in paint order."""
    for element in elements:
        yield element, parent_id, depth
        if element.children:
            yield from walk_elements(element.children, element.id, depth + 1)


def default_target_property(element_type: Union[ElementType, str]) -> Optional[str]:
    kind = ElementType(element_type)
    if kind == ElementType.TEXT:
        return "content.text"
    if kind == ElementType.IMAGE:
        return "content.src"
    if kind == ElementType.SHAPE:
        return "content.fill"
    return None


def instantiate_template(template: Template, instance_id: str) -> Template:
    """Copy a template into a playout item; the instance remembers its source."""
    return template.evolve(id=instance_id, source_id=template.id)


def validate_template(data: Union[Dict, Template]) -> Template:
    """Validate and return a Template instance."""
    if isinstance(data, dict):
        return Template.from_dict(data)
    elif isinstance(data, Template):
        return data
    else:
        raise TypeError("Data must be a dict or Template instance")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    # Constants
    'CANVAS_W', 'CANVAS_H', 'FPS', 'MAX_GROUP_DEPTH', 'KEYFRAME_MIN', 'KEYFRAME_MAX',
    'GEOMETRY_KEYS', 'TRANSFORM_KEY', 'FORMATTERS', 'CONTENT_FIELDS',

    # Enums
    'ElementType', 'Phase',

    # Models
    'EntityModel', 'TextContent', 'ShapeContent', 'ImageContent', 'GroupContent',
    'Element', 'Keyframe', 'Animation', 'Binding', 'Template', 'Layer', 'Project',

    # Helper functions
    'walk_elements', 'default_target_property', 'instantiate_template', 'validate_template',
]
