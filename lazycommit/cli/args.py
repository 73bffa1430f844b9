"""CLI Argument Parsing"""

import argparse
import argcomplete

from lazycommit import COMMIT_STYLES, __version__
from lazycommit.config import VALID_PROVIDERS
from lazycommit.generation import Strategy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lazycommit',
        description='Generate AI-powered commit messages for staged changes',
        epilog='Unrecognized arguments are passed through to git commit. Example: lazycommit -g 3 -x "*.svg"'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')

    # Generation options
    parser.add_argument('-g', '--generate', type=int, metavar='N', help='Number of messages to generate (1-5)')
    parser.add_argument('-x', '--exclude', action='append', default=[], metavar='PATTERN', help='Exclude files from the diff (repeatable)')
    parser.add_argument('-a', '--all', action='store_true', help='Stage all tracked changes first, like git commit --all')
    parser.add_argument('-t', '--type', type=str, choices=COMMIT_STYLES, help='Commit message style')
    parser.add_argument('-l', '--locale', type=str, metavar='LOCALE', help='Message language, e.g. en, pt-br')
    parser.add_argument('--max-length', type=int, metavar='N', help='Maximum message length (20-200)')
    parser.add_argument('--hint', type=str, metavar='TEXT', help='Add context: --hint "fixing the login bug"')
    parser.add_argument('--strategy', type=str, choices=['auto', *(s.value for s in Strategy)], default='auto',
                        help='Force direct, summary or chunked generation')
    parser.add_argument('--chunk-size', type=int, metavar='TOKENS', help='Token budget per diff chunk')

    # LLM options
    parser.add_argument('-p', '--provider', type=str, choices=sorted(VALID_PROVIDERS), help='LLM provider')
    parser.add_argument('-m', '--model', type=str, metavar='MODEL', help='Model name')
    parser.add_argument('--timeout', type=float, metavar='SECONDS', help='Request timeout in seconds')
    parser.add_argument('--proxy', type=str, metavar='URL', help='HTTP(S) proxy for API requests')

    # Output options
    parser.add_argument('--no-commit', action='store_true', help='Print the chosen message instead of committing')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging (strategy, chunk failures)')

    # Setup/config
    parser.add_argument('--set', nargs='+', metavar='KEY=VALUE', help='Save settings to ~/.lazycommitrc')
    parser.add_argument('--display-config', action='store_true', help='Show current configuration')
    parser.add_argument('--install-completion', action='store_true', help='Install shell tab completion')
    parser.add_argument('--hook', nargs='+', metavar=('MSGFILE', 'SOURCE'),
                        help='Run as a prepare-commit-msg hook')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    args, git_args = parser.parse_known_args(argv)
    args.git_args = git_args
    return args
