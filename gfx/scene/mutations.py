"""
Pure mutations over templates and projects.

Every function takes a value and returns a new one; inputs are never changed
and untouched subtrees are reused as-is. Results are re-validated, so a
mutation that would break an invariant raises ``ValidationError`` instead of
producing a broken value.
"""

from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple

from .errors import ValidationError
from .sdk import (
    Animation,
    Binding,
    Element,
    ElementType,
    GroupContent,
    Layer,
    Project,
    Template,
    walk_elements,
)

Elements = Tuple[Element, ...]


# ----------------------------------------------------------------------------
# Tree helpers
# ----------------------------------------------------------------------------


def _with_children(group: Element, children: Elements) -> Element:
    return group.evolve(content=group.content.evolve(children=tuple(children)))


def _rewrite(elements: Elements, fn: Callable[[Element], Optional[Element]]) -> Elements:
    """Apply ``fn`` bottom-up; returning None drops the element. Unchanged tuples are reused."""
    out: List[Element] = []
    changed = False
    for el in elements:
        new = el
        if el.children:
            kids = _rewrite(el.children, fn)
            if kids is not el.children:
                new = _with_children(el, kids)
        replaced = fn(new)
        if replaced is not el:
            changed = True
        if replaced is not None:
            out.append(replaced)
    return tuple(out) if changed else elements


def _siblings(template: Template, parent_id: Optional[str]) -> Elements:
    if parent_id is None:
        return template.elements
    parent = template.find_element(parent_id)
    if parent is None or parent.type != ElementType.GROUP:
        raise ValidationError(f"'{parent_id}' is not a group", field="parent_id", element_id=parent_id)
    return parent.children


def _replace_siblings(template: Template, parent_id: Optional[str], siblings: Elements) -> Template:
    if parent_id is None:
        return template.evolve(elements=tuple(siblings))
    elements = _rewrite(
        template.elements,
        lambda el: _with_children(el, siblings) if el.id == parent_id else el,
    )
    return template.evolve(elements=elements)


def parent_of(template: Template, element_id: str) -> Optional[str]:
    for el, parent_id, _depth in walk_elements(template.elements):
        if el.id == element_id:
            return parent_id
    raise ValidationError(f"unknown element '{element_id}'", field="element_id", element_id=element_id)


def descendant_ids(element: Element) -> Set[str]:
    return {el.id for el, _p, _d in walk_elements((element,))}


# ----------------------------------------------------------------------------
# Elements
# ----------------------------------------------------------------------------


def add_element(
    template: Template, element: Element, parent_id: Optional[str] = None, index: Optional[int] = None
) -> Template:
    """Insert ``element`` among the children of ``parent_id`` (top level by default); default is topmost."""
    siblings = list(_siblings(template, parent_id))
    siblings.insert(len(siblings) if index is None else index, element)
    return _replace_siblings(template, parent_id, tuple(siblings))


def update_elements(template: Template, changes: Mapping[str, Mapping[str, Any]]) -> Template:
    """Apply per-element field changes ``{element_id: {field: value}}`` in one pass."""
    known = template.element_index()
    missing = sorted(set(changes) - set(known))
    if missing:
        raise ValidationError(f"unknown element '{missing[0]}'", field="element_id", element_id=missing[0])
    if not changes:
        return template
    elements = _rewrite(
        template.elements,
        lambda el: el.evolve(**changes[el.id]) if el.id in changes else el,
    )
    return template.evolve(elements=elements)


def update_element(template: Template, element_id: str, **fields: Any) -> Template:
    return update_elements(template, {element_id: fields})


def move_elements(template: Template, element_ids: Iterable[str], dx: float, dy: float) -> Template:
    """Offset the given elements by (dx, dy); locked elements stay put."""
    index = template.element_index()
    changes = {}
    for eid in element_ids:
        el = index.get(eid)
        if el is None:
            raise ValidationError(f"unknown element '{eid}'", field="element_id", element_id=eid)
        if el.locked:
            continue
        changes[eid] = {"position_x": el.position_x + dx, "position_y": el.position_y + dy}
    return update_elements(template, changes)


def delete_elements(template: Template, element_ids: Iterable[str]) -> Template:
    """Remove elements with their descendants, animations and bindings."""
    targets = set(element_ids)
    removed: Set[str] = set()
    for el, _parent, _depth in walk_elements(template.elements):
        if el.id in targets:
            removed |= descendant_ids(el)
    if not removed:
        return template
    elements = _rewrite(template.elements, lambda el: None if el.id in removed else el)
    return template.evolve(
        elements=elements,
        animations=tuple(a for a in template.animations if a.element_id not in removed),
        bindings=tuple(b for b in template.bindings if b.element_id not in removed),
    )


def group_elements(template: Template, element_ids: Iterable[str], group_id: str, name: Optional[str] = None) -> Template:
    """
    Wrap sibling elements in a new group sized to their bounding box.

    Child positions become relative to the group origin; the group takes the
    paint slot of the lowest grouped element.
    """
    ids = list(dict.fromkeys(element_ids))
    if len(ids) < 2:
        raise ValidationError("grouping needs at least two elements", field="element_ids")
    parents = {parent_of(template, eid) for eid in ids}
    if len(parents) != 1:
        raise ValidationError("grouped elements must share a parent", field="element_ids")
    parent_id = parents.pop()
    siblings = _siblings(template, parent_id)
    members = [el for el in siblings if el.id in ids]

    min_x = min(el.position_x for el in members)
    min_y = min(el.position_y for el in members)
    max_x = max(el.position_x + el.width for el in members)
    max_y = max(el.position_y + el.height for el in members)

    children = tuple(
        el.evolve(position_x=el.position_x - min_x, position_y=el.position_y - min_y) for el in members
    )
    group = Element(
        id=group_id,
        name=name or f"Group ({len(members)})",
        type=ElementType.GROUP,
        position_x=min_x,
        position_y=min_y,
        width=max_x - min_x,
        height=max_y - min_y,
        content=GroupContent(children=children),
    )
    slot = min(i for i, el in enumerate(siblings) if el.id in ids)
    rest = [el for el in siblings if el.id not in ids]
    rest.insert(slot, group)
    return _replace_siblings(template, parent_id, tuple(rest))


def ungroup_element(template: Template, group_id: str) -> Template:
    """Dissolve a group, restoring child positions to the parent's coordinates."""
    group = template.find_element(group_id)
    if group is None or group.type != ElementType.GROUP:
        raise ValidationError(f"'{group_id}' is not a group", field="element_id", element_id=group_id)
    parent_id = parent_of(template, group_id)
    siblings = list(_siblings(template, parent_id))
    slot = next(i for i, el in enumerate(siblings) if el.id == group_id)
    freed = [
        el.evolve(position_x=el.position_x + group.position_x, position_y=el.position_y + group.position_y)
        for el in group.children
    ]
    siblings[slot:slot + 1] = freed
    template = _replace_siblings(template, parent_id, tuple(siblings))
    return template.evolve(
        animations=tuple(a for a in template.animations if a.element_id != group_id),
        bindings=tuple(b for b in template.bindings if b.element_id != group_id),
    )


# ----------------------------------------------------------------------------
# Z-order (index in the containing tuple is paint order)
# ----------------------------------------------------------------------------


def _reorder(template: Template, element_id: str, pick: Callable[[int, int], int]) -> Template:
    parent_id = parent_of(template, element_id)
    siblings = list(_siblings(template, parent_id))
    i = next(n for n, el in enumerate(siblings) if el.id == element_id)
    j = max(0, min(len(siblings) - 1, pick(i, len(siblings))))
    if i == j:
        return template
    siblings.insert(j, siblings.pop(i))
    return _replace_siblings(template, parent_id, tuple(siblings))


def bring_to_front(template: Template, element_id: str) -> Template:
    return _reorder(template, element_id, lambda i, n: n - 1)


def send_to_back(template: Template, element_id: str) -> Template:
    return _reorder(template, element_id, lambda i, n: 0)


def bring_forward(template: Template, element_id: str) -> Template:
    return _reorder(template, element_id, lambda i, n: i + 1)


def send_backward(template: Template, element_id: str) -> Template:
    return _reorder(template, element_id, lambda i, n: i - 1)


# ----------------------------------------------------------------------------
# Animations and bindings
# ----------------------------------------------------------------------------


def set_animation(template: Template, animation: Animation) -> Template:
    """Add ``animation``, replacing any with the same id or the same (element, phase)."""
    kept = tuple(
        a
        for a in template.animations
        if a.id != animation.id and (a.element_id, a.phase) != (animation.element_id, animation.phase)
    )
    return template.evolve(animations=kept + (animation,))


def remove_animation(template: Template, animation_id: str) -> Template:
    return template.evolve(animations=tuple(a for a in template.animations if a.id != animation_id))


def set_binding(template: Template, binding: Binding) -> Template:
    kept = tuple(b for b in template.bindings if b.id != binding.id)
    return template.evolve(bindings=kept + (binding,))


def remove_binding(template: Template, binding_id: str) -> Template:
    return template.evolve(bindings=tuple(b for b in template.bindings if b.id != binding_id))


# ----------------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------------


def _map_layer(project: Project, layer_id: str, fn: Callable[[Layer], Layer]) -> Project:
    if not any(layer.id == layer_id for layer in project.layers):
        raise ValidationError(f"unknown layer '{layer_id}'", field="layer_id")
    return project.evolve(layers=tuple(fn(l) if l.id == layer_id else l for l in project.layers))


def add_layer(project: Project, layer: Layer) -> Project:
    return project.evolve(layers=project.layers + (layer,))


def delete_layer(project: Project, layer_id: str) -> Project:
    """Remove a layer together with the templates it owns."""
    return project.evolve(layers=tuple(l for l in project.layers if l.id != layer_id))


def add_template(project: Project, layer_id: str, template: Template) -> Project:
    return _map_layer(project, layer_id, lambda l: l.evolve(templates=l.templates + (template,)))


def replace_template(project: Project, template: Template) -> Project:
    """Swap in a new value of an existing template (matched by id)."""
    if project.find_template(template.id) is None:
        raise ValidationError(f"unknown template '{template.id}'", field="template_id")
    return project.evolve(
        layers=tuple(
            l.evolve(templates=tuple(template if t.id == template.id else t for t in l.templates))
            if any(t.id == template.id for t in l.templates)
            else l
            for l in project.layers
        )
    )


def delete_template(project: Project, template_id: str) -> Project:
    """Remove a template and, with it, its elements."""
    return project.evolve(
        layers=tuple(
            l.evolve(templates=tuple(t for t in l.templates if t.id != template_id))
            if any(t.id == template_id for t in l.templates)
            else l
            for l in project.layers
        )
    )
