"""CLI Main Entry Point"""

import os
import sys

from lazycommit.config import Config, ConfigError, load_config
from lazycommit.generation import CandidateMessage, GenerationRequest, MessageGenerator, Strategy, prepare_payload
from lazycommit.git import GitAnalyzer, GitError, StagedChanges
from lazycommit.llm import CompletionService, LLMError, get_client
from lazycommit.output import warning, dim, bold, print_error, print_success, Spinner, colorize_commit_type
from lazycommit.secrets import default_resolver

from lazycommit.cli.args import parse_args
from lazycommit.cli.commands import display_config, run_set, run_install_completion
from lazycommit.cli.hook import run_hook
from lazycommit.cli.utils import ask_action, configure_logging, display_options, edit_message

PROXY_ENV_VARS = ('https_proxy', 'HTTPS_PROXY', 'http_proxy', 'HTTP_PROXY')


def _display_file_list(staged: StagedChanges, max_shown: int) -> None:
    """Show which files will be analyzed, collapsing long lists."""
    if staged.is_empty:
        return
    count = staged.total_files
    print(bold(f"Detected {count} staged file{'s' if count != 1 else ''}:"))
    shown = staged.files[:max_shown]
    for f in shown:
        print(dim(f"  {f.path} (+{f.additions} -{f.deletions})"))
    remaining = count - len(shown)
    if remaining > 0:
        print(dim(f"  ... and {remaining} more files"))


def _display_message(message: str) -> None:
    """Display commit message between horizontal rules."""
    width = max(len(message), 40)
    print(f"\n{dim('─' * width)}")
    print(bold(colorize_commit_type(message)))
    print(dim('─' * width))


def _handle_subcommands(args):
    """Handle subcommands that exit early.

    Returns:
        tuple: (exit_code, should_exit) - exit_code if should_exit is True
    """
    if args.install_completion:
        return run_install_completion(), True
    if args.display_config:
        return display_config(), True
    if args.set:
        return run_set(args.set), True
    return 0, False


def apply_overrides(args, config: Config, environ=None) -> Config:
    """Fold CLI flags and environment into config.

    Precedence: CLI args > environment variables > config file
    """
    environ = os.environ if environ is None else environ
    pairs = []

    provider = args.provider or environ.get('LAZYCOMMIT_PROVIDER')
    if provider:
        pairs.append(f"provider={provider}")
    model = args.model or environ.get('LAZYCOMMIT_MODEL')
    if model:
        pairs.append(f"model={model}")

    # Only http(s) proxies from the environment; anything else is for other tools
    env_proxy = next((environ[v] for v in PROXY_ENV_VARS if environ.get(v, '').startswith(('http://', 'https://'))), None)
    proxy = args.proxy or env_proxy or config.proxy
    if proxy:
        pairs.append(f"proxy={proxy}")

    flags = {
        'generate': args.generate,
        'style': args.type,
        'locale': args.locale,
        'max_length': args.max_length,
        'timeout': args.timeout,
        'chunk_size': args.chunk_size,
    }
    pairs.extend(f"{key}={value}" for key, value in flags.items() if value is not None)

    config.set_values(pairs)
    config.exclude = [*config.exclude, *args.exclude]
    return config


def _create_service(config: Config, environ=None) -> CompletionService:
    environ = os.environ if environ is None else environ
    resolver = default_resolver(config, environ)
    return get_client(
        provider=config.provider,
        model=config.model,
        get_secret=resolver.get,
        proxy=config.proxy,
        ollama_host=environ.get('OLLAMA_HOST'),
    )


def _collect_statistics(analyzer: GitAnalyzer, exclude: list[str]):
    """Per-file stats for the summary path, or None when they cannot be read."""
    try:
        statistics = analyzer.get_change_statistics(exclude)
    except GitError as e:
        print(warning(f"Could not read file statistics, using chunked generation: {e}"), file=sys.stderr)
        return None
    return statistics.stats if statistics else None


def _choose_message(messages: list[CandidateMessage]) -> tuple[str, str | None]:
    """Let the user pick or edit a message.

    Returns:
        tuple: (action, message) where action is 'accept', 'regenerate' or 'cancel'
    """
    if len(messages) > 1:
        idx = display_options([m.text for m in messages])
        if idx is None:
            return 'cancel', None
        return 'accept', messages[idx].text

    message = messages[0].text
    _display_message(message)
    action = ask_action(message)
    if action == 'edit':
        edited = edit_message(message)
        if not edited:
            return 'cancel', None
        _display_message(edited)
        return 'accept', edited
    return action, message


def _generate_commit_flow(args, config: Config) -> int:
    """Main commit message generation flow.

    Returns:
        int: Exit code
    """
    is_pipe = not sys.stdout.isatty()
    is_interactive = sys.stdin.isatty() and not is_pipe

    try:
        analyzer = GitAnalyzer()
        if args.all:
            analyzer.stage_tracked()
        staged = analyzer.get_staged_changes(config.exclude)
    except GitError as e:
        print_error(str(e))
        return 1

    if staged is None:
        print_error(
            "No staged changes found. Stage your changes manually, "
            "or automatically stage all changes with the --all flag."
        )
        return 1

    if not is_pipe:
        _display_file_list(staged, config.max_file_display)

    stats = _collect_statistics(analyzer, config.exclude)
    context = analyzer.get_commit_context() if config.commit_context else None
    request = GenerationRequest.from_config(config, hint=args.hint, context=context)
    force = None if args.strategy == 'auto' else Strategy(args.strategy)
    strategy, payload = prepare_payload(
        staged.diff, stats, request, config.large_diff_threshold, config.digest_max_files, force=force
    )

    if strategy is not Strategy.DIRECT and not is_pipe:
        print(warning(f"Large diff detected - using {strategy.value} generation"))

    try:
        service = _create_service(config)
    except LLMError as e:
        print_error(str(e))
        return 1

    if not is_pipe:
        print(f"Analyzing changes using {service.name}...")

    # Generation + selection loop (supports regeneration)
    while True:
        try:
            with Spinner():
                messages = MessageGenerator(service, request).generate(payload)
        except LLMError as e:
            print_error(str(e))
            return 1

        if is_pipe or not is_interactive:
            print(messages[0].text)
            return 0

        action, message = _choose_message(messages)
        if action == 'regenerate':
            print("\nRegenerating...")
            continue
        break

    if action == 'cancel' or not message:
        print(dim("Commit cancelled."))
        return 0

    if args.no_commit:
        print(message)
        return 0

    try:
        analyzer.commit(message, args.git_args)
    except GitError as e:
        print_error(str(e))
        return 1

    print_success("Successfully committed!")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    # Handle subcommands that exit early
    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    try:
        config = apply_overrides(args, load_config())
    except ConfigError as e:
        print_error(str(e))
        return 1

    if args.hook:
        message_file = args.hook[0]
        source = args.hook[1] if len(args.hook) > 1 else None
        return run_hook(message_file, source, config, lambda: _create_service(config))

    return _generate_commit_flow(args, config)


def run() -> None:
    sys.exit(main())
