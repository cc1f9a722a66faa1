import argparse

PHASES = ["in", "loop", "out"]


def build_common_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(add_help=False)
    ap.add_argument("--config", default=None, help="Path to engine YAML (default conf/engine.yaml or $GFX_CONFIG)")
    ap.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging.level",
    )
    return ap


def build_parser() -> argparse.ArgumentParser:
    common = build_common_parser()
    ap = argparse.ArgumentParser(prog="gfx-engine", description="Scene & timeline engine tools")
    sub = ap.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", parents=[common], help="Validate a template or project JSON file")
    v.add_argument("path", help="Template or project JSON file")
    v.add_argument("--verbose", "-v", action="store_true", help="Print a summary of the validated file")

    e = sub.add_parser("evaluate", parents=[common], help="Print the resolved frame of a template as JSON")
    e.add_argument("path", help="Template or project JSON file")
    e.add_argument("--phase", choices=PHASES, default="in", help="Phase to scrub (default: in)")
    e.add_argument("--time", type=float, default=0.0, help="Phase-local time in ms (default: 0)")
    e.add_argument("--template", default=None, help="Template id when PATH is a project")
    e.add_argument("--data", default=None, help="JSON file mapping data source names to record lists")
    e.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    return ap
