"""prepare-commit-msg Hook Handler

Git calls the hook with the path of the message file and, when the message
already has a source (-m, merge, squash, amend), that source. Only commits
without a source get a generated message.
"""

import logging
from pathlib import Path

from lazycommit.config import Config
from lazycommit.generation import GenerationRequest, MessageGenerator, Strategy, prepare_payload
from lazycommit.git import GitAnalyzer, GitError
from lazycommit.llm import CompletionService, LLMError
from lazycommit.output import print_error, print_success, Spinner

logger = logging.getLogger(__name__)

HOOK_MARKER = "# AI generated commit message"


def format_hook_message(messages: list[str], base_message: str) -> str:
    """Place generated messages above whatever git already wrote to the file.

    An empty base message means comments will not be stripped (--no-edit),
    so nothing is commented and only the first message is used.
    """
    supports_comments = base_message != ""

    if len(messages) > 1 and supports_comments:
        commit_message = "# AI generated commit messages\n"
        commit_message += "# Select one of the following messages by uncommenting:\n\n"
        commit_message += "\n".join(f"# {m}" for m in messages)
    elif supports_comments:
        commit_message = f"{messages[0]}\n\n{HOOK_MARKER}"
    else:
        commit_message = messages[0]

    return f"{commit_message}\n\n{base_message}" if base_message else commit_message


def run_hook(message_file: str, source: str | None, config: Config, get_service) -> int:
    """Fill the commit message file. `get_service` builds the completion client lazily."""
    if source:
        logger.debug("Commit message comes from %s, leaving it untouched", source)
        return 0

    try:
        analyzer = GitAnalyzer()
        staged = analyzer.get_staged_changes(config.exclude)
        if staged is None:
            # Everything staged was excluded
            return 0
        statistics = analyzer.get_change_statistics(config.exclude)
        context = analyzer.get_commit_context() if config.commit_context else None
    except GitError as e:
        print_error(str(e))
        return 1

    request = GenerationRequest.from_config(config, context=context)
    _, payload = prepare_payload(
        staged.diff,
        statistics.stats if statistics else None,
        request,
        config.large_diff_threshold,
        config.digest_max_files,
        force=Strategy.SUMMARY,
    )

    try:
        service: CompletionService = get_service()
        with Spinner():
            messages = [c.text for c in MessageGenerator(service, request).generate(payload)]
    except LLMError as e:
        print_error(str(e))
        return 1

    path = Path(message_file)
    base_message = path.read_text(encoding='utf-8') if path.exists() else ""
    path.write_text(format_hook_message(messages, base_message), encoding='utf-8')
    print_success("Saved commit message!")
    return 0
