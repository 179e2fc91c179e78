import argparse
import logging
import random
import sys
import traceback
from pathlib import Path

from .aggregate import SaveAggregate
from .errors import SaveError
from .paths import AppPaths
from .revisions import load_revisions
from .settings import Settings
from .utils.fs import ensure_dir
from .utils.logging import configure_logging

CRASH_LOG = "horizonsave-crash.log"

logger = logging.getLogger(__name__)


def _int(value: str) -> int:
    return int(value, 0)


def _hex_bytes(value: str) -> bytes:
    try:
        return bytes.fromhex(value.replace(" ", ""))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a hex byte string: {value!r}") from e


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="horizonsave",
        description="Inspect, verify, re-key and back up console save folders.",
    )
    parser.add_argument(
        "--settings",
        dest="settings_path",
        type=Path,
        default=None,
        help="Path to a user settings YAML file to load/override defaults.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the config and backup folders and write the effective settings.")

    p = sub.add_parser("info", help="Show the resolved folders, revision and players.")
    p.add_argument("folder", type=Path)

    p = sub.add_parser("verify", help="Check record sizes and checksums.")
    p.add_argument("folder", type=Path)

    p = sub.add_parser("save", help="Re-hash and re-encrypt every record, then mirror.")
    p.add_argument("folder", type=Path)
    p.add_argument("--seed", type=_int, default=None, help="Encryption seed (random if omitted).")

    p = sub.add_parser("patch", help="Replace an identity byte pattern in every record and save.")
    p.add_argument("folder", type=Path)
    p.add_argument("--original", type=_hex_bytes, required=True)
    p.add_argument("--updated", type=_hex_bytes, required=True)
    p.add_argument("--seed", type=_int, default=None)

    p = sub.add_parser("backup", help="Copy the primary save folder into the backup root.")
    p.add_argument("folder", type=Path)
    p.add_argument("--dest", type=Path, default=None, help="Backup root (defaults to settings).")

    return parser.parse_args(argv)


def _seed(value):
    return value if value is not None else random.getrandbits(32)


def _load(args, settings: Settings) -> SaveAggregate:
    revisions = load_revisions(settings.revisions_path) if settings.revisions_path else None
    return SaveAggregate(args.folder, revisions)


def run(args, settings: Settings) -> int:
    if args.command == "init":
        paths = AppPaths()
        paths.ensure_dirs()
        ensure_dir(settings.backup_dir)
        settings.save(paths.settings_file)
        print(f"Settings: {paths.settings_file}")
        return 0

    save = _load(args, settings)

    if args.command == "info":
        print(f"Primary: {save.active_save_folder}")
        for mirror in save.mirror_save_folders:
            print(f"Mirror:  {mirror}")
        print(f"Revision: {save.revision_name or 'unknown'}")
        for player in save.players:
            print(f"Player:  {player} ({player.directory.name})")
        if save.revision_name is not None and save.players:
            print(save.get_save_title("Save"))
        return 0

    if args.command == "verify":
        sizes_ok = save.validate_sizes()
        invalid = save.invalid_hashes()
        print(f"Sizes: {'ok' if sizes_ok else 'MISMATCH'}")
        for region in invalid:
            print(f"Invalid hash: {region}")
        return 0 if sizes_ok and not invalid else 2

    if args.command == "patch":
        count = save.change_identity(args.original, args.updated)
        print(f"Replaced {count} occurrences")

    if args.command in ("save", "patch"):
        seed = _seed(args.seed)
        save.save(seed, settings.persist_mode)
        print(f"Saved with seed {seed:#010x}")
        return 0

    if args.command == "backup":
        destination = save.backup(args.dest or settings.backup_dir)
        print(f"Backup: {destination}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = Settings.load(user_path=args.settings_path)
    configure_logging(logging.DEBUG if args.debug else settings.log_level)

    try:
        return run(args, settings)
    except SaveError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:
        text = traceback.format_exc()
        crash_log = AppPaths().config_dir / CRASH_LOG
        try:
            ensure_dir(crash_log.parent)
            crash_log.write_text(text, encoding="utf-8")
        except OSError:
            logger.debug("Could not write crash log", exc_info=True)
        logger.critical("Unexpected failure; details written to %s\n%s", crash_log, text)
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
