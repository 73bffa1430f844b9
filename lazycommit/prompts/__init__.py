"""Prompt Construction Package"""

from lazycommit.prompts.builder import PromptBuilder, PromptConfig

__all__ = ["PromptBuilder", "PromptConfig"]
