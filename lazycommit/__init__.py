"""
lazycommit

Draft commit messages for staged git changes, including diffs too large to
send to a language model in one piece.
"""

__version__ = "1.0.0"

# Centralized commit types - single source of truth
# Used by: prompts/builder.py (conventional style), output (type colours)
COMMIT_TYPES = {
    'feat': 'A new feature for the user',
    'fix': 'A bug fix',
    'docs': 'Documentation only changes',
    'style': 'Changes that do not affect the meaning of the code (white-space, formatting, etc)',
    'refactor': 'A code change that neither fixes a bug nor adds a feature',
    'perf': 'A code change that improves performance',
    'test': 'Adding missing tests or correcting existing tests',
    'build': 'Changes that affect the build system or external dependencies',
    'ci': 'Changes to CI configuration files and scripts',
    'chore': "Other changes that don't modify src or test files",
    'revert': 'Reverts a previous commit',
}

COMMIT_TYPE_NAMES = list(COMMIT_TYPES.keys())

# Message styles: "conventional" is type(scope): subject, "simple" is a plain subject
COMMIT_STYLES = ['conventional', 'simple']
