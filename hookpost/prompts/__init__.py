"""User prompt contract and implementations."""

from hookpost.prompts.base import CANCELLED, ProfileFields, Prompter
from hookpost.prompts.terminal import TerminalPrompter

__all__ = [
    "CANCELLED",
    "ProfileFields",
    "Prompter",
    "TerminalPrompter",
]
