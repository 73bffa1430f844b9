"""Prompt Builder - Construct system and user prompts for each generation strategy."""

from dataclasses import dataclass

from lazycommit import COMMIT_TYPES

_FORMAT_SIMPLE = "<subject line>"
_FORMAT_TYPED = "<type>(<optional scope>): <subject line>"

FORMAT_TEMPLATES: dict[str, str] = {
    "simple": _FORMAT_SIMPLE,
    "conventional": _FORMAT_TYPED,
}

_EXAMPLES_SIMPLE = """\
Add JWT authentication to the login endpoint
Close file handles in the image processing pipeline
Replace raw SQL queries with prepared statements"""

_EXAMPLES_TYPED = """\
feat(auth): add JWT authentication to the login endpoint
fix(images): close file handles in the processing pipeline
refactor(db): replace raw SQL queries with prepared statements"""


@dataclass
class PromptConfig:
    """Settings shared by every prompt of one generation request."""
    locale: str = "en"
    max_length: int = 100
    style: str = "conventional"
    hint: str | None = None


class PromptBuilder:
    """Builds the prompts sent to the completion service.

    Every strategy uses the same system prompt so the output format and length
    limit do not depend on how the diff was reduced.
    """

    def __init__(self, config: PromptConfig | None = None):
        self.config = config or PromptConfig()

    def system_prompt(self) -> str:
        sections = [
            self._build_role_section(),
            self._build_format_section(),
            self._build_type_section(),
            self._build_examples_section(),
            self._build_hints_section(),
            self._build_final_instructions(),
        ]
        return "\n\n".join(filter(None, sections))

    def _build_role_section(self) -> str:
        return """You are an expert software engineer and git commit message writer. Analyze the staged changes you are given and write a clear, specific commit message.

Core principles:
- Identify the PRIMARY purpose and impact of the changes
- Use present tense, imperative mood ("Add feature", not "Added feature")
- Be specific about what changed; avoid vague verbs like "update", "change", "fix stuff"
- Focus on the business value or technical improvement"""

    def _build_format_section(self) -> str:
        c = self.config
        fmt = FORMAT_TEMPLATES.get(c.style, _FORMAT_TYPED)
        return f"""<format>
Language: {c.locale}
Maximum length: {c.max_length} characters
Output format: {fmt}
Write a single line. No body, no bullet points.
</format>"""

    def _build_type_section(self) -> str:
        if self.config.style == "simple":
            return ""
        types_list = "\n".join(f"  - {t}: {desc}" for t, desc in COMMIT_TYPES.items())
        return f"""<types>
Choose the most appropriate type:
{types_list}

IMPORTANT: Use the exact type name from the list above.
</types>"""

    def _build_examples_section(self) -> str:
        examples = _EXAMPLES_SIMPLE if self.config.style == "simple" else _EXAMPLES_TYPED
        return f"""<format-examples>
These show FORMAT only. Describe the ACTUAL changes.

{examples}
</format-examples>"""

    def _build_hints_section(self) -> str:
        if not self.config.hint:
            return ""
        return f"""<context>
The developer provided this context about the changes:
"{self.config.hint}"

Use this to inform your message, but verify it matches the changes.
</context>"""

    def _build_final_instructions(self) -> str:
        return """<instructions>
- Respond with the commit message only
- No markdown formatting, no quotes
- No preamble like "Here's a commit message:"
- No explanation after the message
</instructions>"""

    # User-turn payloads, one per strategy

    def direct_prompt(self, diff: str) -> str:
        return diff

    def summary_prompt(self, digest_text: str, context: str | None = None) -> str:
        prompt = (
            "This is a compact summary of staged changes. Generate a single, concise commit message "
            f"within {self.config.max_length} characters that reflects the overall intent.\n\n{digest_text}"
        )
        if context:
            prompt += f"\n\n{context}"
        return prompt

    def chunk_prompt(self, chunk_text: str, index: int, total: int) -> str:
        return (
            f"This is part {index} of {total} of a large staged diff. Write ONE concise commit message "
            f"within {self.config.max_length} characters describing only the changes in this part.\n\n"
            f"{chunk_text}"
        )

    def synthesis_prompt(self, messages: list[str]) -> str:
        numbered = "\n".join(f"{i}. {m}" for i, m in enumerate(messages, 1))
        return (
            "These commit messages each describe part of one large change:\n\n"
            f"{numbered}\n\n"
            f"Combine them into ONE commit message within {self.config.max_length} characters "
            "that captures their combined intent."
        )

    def fallback_prompt(self, file_names: list[str]) -> str:
        return (
            f"Generate a single commit message within {self.config.max_length} characters "
            f"for changes to these files: {', '.join(file_names)}"
        )
