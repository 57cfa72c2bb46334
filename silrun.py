import sys
from pathlib import Path

from sil.sil_runtime import ScriptRunner
from sil.sil_printer import Printer
from sil.sil_serialize import detect_format, load_program

USAGE = "usage: silrun.py PROGRAM [--dump] [--format json|yaml]"


def replay_side_effects(side_effects):
    """Write program output to stdout and diagnostics to stderr, in order."""
    for effect in side_effects:
        if effect.get('topics') == ['stdout']:
            sys.stdout.write(effect.get('message', ''))
        elif effect.get('topics') == ['stderr']:
            print(effect.get('message', ''), file=sys.stderr)
    sys.stdout.flush()


def run_program_file(file_path: str, *, fmt=None, dump=False):
    """Run a SIL AST document non-interactively and exit with appropriate status."""
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    fmt = fmt or detect_format(filename=p.name, data_hint=source)
    if dump:
        try:
            root = load_program(source, fmt=fmt)
        except Exception as e:
            print(f"DocumentError: {e}", file=sys.stderr)
            raise SystemExit(1)
        print(Printer().pformat(root))
        return

    runner = ScriptRunner()
    result = runner.handle_document(source, fmt=fmt)
    replay_side_effects(result.side_effects)
    if result.status == 'error':
        raise SystemExit(1)


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    dump = False
    fmt = None
    paths = []
    while args:
        arg = args.pop(0)
        if arg == "--dump":
            dump = True
        elif arg == "--format":
            if not args:
                print(USAGE, file=sys.stderr)
                raise SystemExit(2)
            fmt = args.pop(0)
        elif arg in ("-h", "--help"):
            print(USAGE)
            return
        elif arg.startswith("-"):
            print(f"Error: unknown option {arg}\n{USAGE}", file=sys.stderr)
            raise SystemExit(2)
        else:
            paths.append(arg)

    if len(paths) != 1:
        print(USAGE, file=sys.stderr)
        raise SystemExit(2)
    run_program_file(paths[0], fmt=fmt, dump=dump)


if __name__ == "__main__":
    main()
