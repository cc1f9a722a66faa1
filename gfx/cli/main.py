#!/usr/bin/env python3
"""
gfx-engine - validate and evaluate template files from the command line

    gfx-engine validate lower_third.json -v
    gfx-engine evaluate lower_third.json --phase in --time 250 --data scores.json

The core engine does no I/O; this module is the host glue that reads files,
loads configuration and prints results.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from gfx.cli.args import build_parser
from gfx.scene.bindings import RecordSet, resolve_template_bindings
from gfx.scene.errors import ValidationError
from gfx.scene.sdk import Project, Template, walk_elements
from gfx.scene.timeline import evaluate_phase
from gfx.utils.config import load_engine_config
from gfx.utils.logs import configure_logging, get_logger

log = get_logger("cli")


def _read_json(path: str) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_document(path: str) -> Union[Template, Project]:
    """A document with ``layers`` is a project; anything else is a template."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: top level must be an object", entity="document")
    if "layers" in data:
        return Project.from_dict(data)
    return Template.from_dict(data)


def load_records(path: str) -> List[RecordSet]:
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: data file must map source names to record lists", entity="data")
    out = []
    for source, records in data.items():
        if isinstance(records, dict):
            records = [records]
        out.append(RecordSet(source, tuple(records)))
    return out


def _pick_template(doc: Union[Template, Project], template_id: Optional[str]) -> Template:
    if isinstance(doc, Template):
        return doc
    if template_id is None:
        templates = [t for layer in doc.layers for t in layer.templates]
        if len(templates) != 1:
            raise ValidationError(
                f"project has {len(templates)} templates; pass --template", field="template", entity="Project"
            )
        return templates[0]
    template = doc.find_template(template_id)
    if template is None:
        raise ValidationError(f"no template '{template_id}' in project", field="template", entity="Project")
    return template


def _summary(doc: Union[Template, Project]) -> Dict[str, Any]:
    templates = [doc] if isinstance(doc, Template) else [t for layer in doc.layers for t in layer.templates]
    return {
        "templates": len(templates),
        "elements": sum(1 for t in templates for _ in walk_elements(t.elements)),
        "animations": sum(len(t.animations) for t in templates),
        "bindings": sum(len(t.bindings) for t in templates),
    }


def cmd_validate(args) -> int:
    doc = load_document(args.path)
    print(f"✅ {type(doc).__name__} '{doc.id}' is valid")
    if args.verbose:
        for key, value in _summary(doc).items():
            print(f"  {key.capitalize()}: {value}")
    return 0


def cmd_evaluate(args) -> int:
    template = _pick_template(load_document(args.path), args.template)
    overlay = None
    if args.data:
        overlay = resolve_template_bindings(template, load_records(args.data))
    snapshot = evaluate_phase(template, args.phase, args.time, overlay)
    print(json.dumps(snapshot.to_dict(), indent=args.indent or None))
    return 0 if not snapshot.errors else 2


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {"logging": {"level": args.log_level}} if args.log_level else None
    try:
        cfg = load_engine_config(args.config, overrides=overrides)
        configure_logging(cfg.logging.level, cfg.logging.log_file)
    except PydanticValidationError as e:
        print(f"❌ Invalid configuration: {e.errors()[0]['msg']}", file=sys.stderr)
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    handlers = {"validate": cmd_validate, "evaluate": cmd_evaluate}
    try:
        return handlers[args.command](args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
