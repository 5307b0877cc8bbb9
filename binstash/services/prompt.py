# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Interactive Prompts

Single responsibility: Read answers from the user
"""

import logging
from typing import Callable, Sequence

from binstash.core.errors import UserAbortedError

logger = logging.getLogger(__name__)

AskFunction = Callable[[str], str]


def interactive_ask(prompt: str) -> str:
    """
    Read one line from stdin.

    Raises:
        UserAbortedError: On EOF or Ctrl-C
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        raise UserAbortedError()


def confirm(ask: AskFunction, prompt: str) -> bool:
    """Yes/no question, default no"""
    return ask(f"{prompt} (y/N) ").strip().lower() == "y"


def choose_index(
    labels: Sequence[str],
    ask: AskFunction,
    prompt: str,
    emit: Callable[[str], None] = print
) -> int:
    """
    Show a numbered list and ask until a valid 1-based choice is given.

    Args:
        labels: One line per option
        ask: Prompt function returning the user's answer
        prompt: Prompt prefix, the range is appended
        emit: Output function for the list

    Returns:
        Zero-based index of the chosen option
    """
    for i, label in enumerate(labels, start=1):
        emit(f"{i}. {label}")

    max_choice = len(labels)
    while True:
        response = ask(f"{prompt} (1-{max_choice}): ").strip()
        if response.isdigit() and 0 < int(response) <= max_choice:
            return int(response) - 1
        logger.error("Invalid selection, please try again.")
