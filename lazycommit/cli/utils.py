"""CLI Utility Functions"""

import logging
import os
import subprocess
import sys
import tempfile

from lazycommit.output import bold, dim, info, colorize_commit_type


def configure_logging(verbose: bool) -> None:
    """Send library logs to stderr; debug detail only with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def display_options(options: list[str]) -> int | None:
    """Show numbered options and return the chosen index, or None to cancel."""
    print()
    for i, opt in enumerate(options, 1):
        print(f"{info(f'[{i}]')} {bold(colorize_commit_type(opt))}")

    print()
    while True:
        try:
            choice = input(f"Select [1-{len(options)}] or (q)uit: ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            return None
        if choice == 'q':
            return None
        try:
            idx = int(choice) - 1
        except ValueError:
            idx = -1
        if 0 <= idx < len(options):
            return idx
        print(f"Enter 1-{len(options)} or q")


def ask_action(message: str) -> str:
    """Ask what to do with a single message: 'accept', 'edit', 'regenerate' or 'cancel'."""
    try:
        action = input(f"\n{dim('(e)dit, (r)egenerate, (c)ancel, or Enter to commit: ')}").strip().lower()
    except (KeyboardInterrupt, EOFError):
        return 'cancel'
    return {'': 'accept', 'y': 'accept', 'e': 'edit', 'r': 'regenerate', 'c': 'cancel', 'n': 'cancel'}.get(action, 'cancel')


def edit_message(message: str) -> str | None:
    """Open message in user's editor. Returns edited text or None on failure."""
    editor = os.environ.get('VISUAL') or os.environ.get('EDITOR')
    if not editor:
        editor = 'notepad' if sys.platform == 'win32' else 'vi'

    tmp = tempfile.NamedTemporaryFile(mode='w', suffix='.gitcommit', delete=False, encoding='utf-8')
    try:
        tmp.write(message)
        tmp.close()
        subprocess.run([editor, tmp.name], check=True)
        with open(tmp.name, 'r', encoding='utf-8') as f:
            edited = f.read().strip()
        return edited if edited else None
    except (subprocess.CalledProcessError, OSError):
        return None
    finally:
        try:
            os.unlink(tmp.name)
        except OSError as e:
            logging.getLogger(__name__).warning("Could not delete temp file %s: %s", tmp.name, e)
