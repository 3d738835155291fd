"""argparse entry points for ``encrypt`` and ``decrypt``."""

from __future__ import annotations

import argparse
import sys

from cryptdir import __version__
from cryptdir.errors import CryptdirError, UserAborted


def build_parser(prog: str = "encrypt") -> argparse.ArgumentParser:
    if prog == "decrypt":
        description = "Mount the encrypted volume behind DIRECTORY."
    else:
        description = (
            "Encrypt DIRECTORY at rest with encfs, or reseal it after use. "
            "With -d, mount it instead."
        )
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=(
            "states:\n"
            "  plain       -> encrypt moves the contents into a new volume\n"
            "  encrypted   -> decrypt mounts the volume at DIRECTORY\n"
            "  mounted     -> encrypt unmounts and reseals it\n"
            "\n"
            "run with -s to see which state DIRECTORY is in"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-d", "--decrypt", action="store_true",
        help="Decrypt (mount) instead of encrypt",
    )
    parser.add_argument(
        "-f", "--fast", action="store_true",
        help="Skip the secure wipe of plain-text originals after encrypting",
    )
    parser.add_argument(
        "-p", "--password", default=None,
        help="Password for decrypting without a prompt (decrypt only)",
    )
    parser.add_argument(
        "-i", "--idle", type=int, default=None, metavar="MINUTES",
        help="Unmount automatically after MINUTES of inactivity (0: never)",
    )
    parser.add_argument(
        "-s", "--status", action="store_true",
        help="Show the state of DIRECTORY and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show debug output (external commands, classification)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument("directory", help="Directory to encrypt or decrypt")
    return parser


def run(args: argparse.Namespace) -> int:
    from cryptdir.config import config_file_path, load_merged_config
    from cryptdir.encfs import EncFS
    from cryptdir.engine import Operation, TransitionEngine, TransitionOptions
    from cryptdir.filetools import Rsync, Shredder
    from cryptdir.paths import naming_rule, resolve_paths
    from cryptdir.report import report
    from cryptdir.state import classify, describe

    if args.password is not None and not args.decrypt:
        raise CryptdirError(
            "-p/--password is only accepted when decrypting; "
            "encfs asks for the new password itself."
        )
    if args.idle is not None and args.idle < 0:
        raise CryptdirError("-i/--idle must be 0 or more minutes.")

    config = load_merged_config(
        config_file_path(),
        cli_overrides={"mount_idle_minutes": args.idle},
    )
    paths = resolve_paths(args.directory, naming_rule(config.layout_scheme))
    encfs = EncFS(config.mount_command, config.mount_unmount_command)
    classification = classify(paths, encfs)

    if args.status:
        print(describe(classification))
        return 0

    engine = TransitionEngine(
        encfs,
        Rsync(config.copy_command),
        Shredder(config.wipe_command, config.wipe_passes),
        config,
    )
    operation = Operation.decrypt if args.decrypt else Operation.encrypt
    options = TransitionOptions(
        fast=args.fast,
        password=args.password,
        idle_minutes=config.mount_idle_minutes,
    )
    return report(engine.transition(classification, operation, options))


def main(argv: list[str] | None = None, *, prog: str = "encrypt") -> None:
    parser = build_parser(prog)

    import argcomplete
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    if prog == "decrypt":
        args.decrypt = True

    from cryptdir.log import setup_logging
    setup_logging(verbose=args.verbose)

    from cryptdir.report import report_failure

    try:
        rc = run(args)
    except UserAborted:
        print("Aborted.")
        rc = 1
    except CryptdirError as e:
        rc = report_failure(e)
    except KeyboardInterrupt:
        print()
        rc = 130

    sys.exit(rc)


def main_decrypt(argv: list[str] | None = None) -> None:
    """``decrypt DIR`` is ``encrypt -d DIR``."""
    main(argv, prog="decrypt")
