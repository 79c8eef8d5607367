import argparse
import json
from pathlib import Path

from . import __version__
from .config import load_allocation_config, load_settings
from .database import get_session, init_database
from .env import load_env
from .errors import AllocationError, ValidationError
from .logger import configure_logger, get_logger
from .retry import RetryError
from .schema import validate_records
from .service import allocate_records, import_records, run_allocation
from .storage import list_allocations, load_store, save_store


def _read_input(path_str: str) -> dict:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    try:
        return load_store(input_path)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Input file is not valid JSON: {e}")
    except ValueError as e:
        raise SystemExit(f"Invalid input file: {e}")


def _print_errors(errors) -> None:
    print("Invalid:")
    for e in errors:
        print(f" - {e}")


def cmd_init_db(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_validate(args: argparse.Namespace) -> None:
    store = _read_input(args.input)
    errors = validate_records(store["students"], store["internships"])
    if errors:
        _print_errors(errors)
        raise SystemExit(2)
    print(f"Valid ({len(store['students'])} students, {len(store['internships'])} internships)")


def cmd_import(args: argparse.Namespace) -> None:
    store = _read_input(args.input)
    try:
        counts = import_records(Path(args.db), store["students"], store["internships"])
    except ValidationError as e:
        _print_errors(e.errors)
        raise SystemExit(2)
    for kind, stats in counts.items():
        print(f"{kind}: new={stats['new']} updated={stats['updated']} no-change={stats['no-change']}")


def cmd_allocate(args: argparse.Namespace) -> None:
    try:
        outcome = run_allocation(
            Path(args.db),
            config=load_allocation_config(),
            lock_timeout=args.settings.run_lock_timeout,
            max_retries=args.settings.db_max_retries,
        )
    except ValidationError as e:
        _print_errors(e.errors)
        raise SystemExit(2)
    except (AllocationError, RetryError) as e:
        raise SystemExit(f"Allocation failed: {e}")
    print(outcome["message"])
    print(f"Processed: {outcome['processed']}")
    get_logger().log_metrics_summary()


def cmd_allocate_file(args: argparse.Namespace) -> None:
    store = _read_input(args.input)
    try:
        result = allocate_records(store["students"], store["internships"], load_allocation_config())
    except ValidationError as e:
        _print_errors(e.errors)
        raise SystemExit(2)
    except AllocationError as e:
        raise SystemExit(f"Allocation failed: {e}")

    if args.output:
        save_store(Path(args.output), result.to_dict())
        print(f"Wrote {len(result.assignments)} assignments to {args.output}")
    else:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def cmd_list(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return
    session = get_session(db_path)
    try:
        rows = list_allocations(session)
    finally:
        session.close()
    if not rows:
        print("No allocations in database.")
        return
    print(f"Found {len(rows)} allocations in {db_path}:\n")
    for row in rows:
        print(f"Student: {row['student_name'] or row['student_id']} ({row['category']})")
        label = " - ".join(p for p in (row["company"] or row["internship_id"], row["role"]) if p)
        print(f"  Internship: {label}")
        print(f"  Sector: {row['sector']}")
        print(f"  Score: {row['score']}")
        print(f"  Reason: {row['reason']}")
        print()


def main(argv=None):
    # Load .env if present (INTERNMATCH_DB, INTERNMATCH_MIN_SCORE, etc.)
    load_env()
    settings = load_settings()
    default_db = str(settings.db_path)

    parser = argparse.ArgumentParser(prog="internmatch", description="Quota-aware internship allocation")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create the SQLite database and tables")
    ini.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")
    ini.set_defaults(func=cmd_init_db)

    val = subparsers.add_parser("validate", help="Validate a students/internships JSON file")
    val.add_argument("--input", required=True, help="Path to JSON file with 'students' and 'internships'")
    val.set_defaults(func=cmd_validate)

    imp = subparsers.add_parser("import", help="Validate and upsert students/internships into the database")
    imp.add_argument("--input", required=True, help="Path to JSON file with 'students' and 'internships'")
    imp.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")
    imp.set_defaults(func=cmd_import)

    alc = subparsers.add_parser("allocate", help="Replace stored allocations with a fresh run")
    alc.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")
    alc.set_defaults(func=cmd_allocate)

    alf = subparsers.add_parser("allocate-file", help="Run allocation on a JSON file without a database")
    alf.add_argument("--input", required=True, help="Path to JSON file with 'students' and 'internships'")
    alf.add_argument("--output", help="Write assignments and summary here instead of stdout")
    alf.set_defaults(func=cmd_allocate_file)

    lst = subparsers.add_parser("list", help="List stored allocations")
    lst.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")
    lst.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)
    args.settings = settings

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        configure_logger(settings)
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
