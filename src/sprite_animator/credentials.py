from __future__ import annotations

import getpass
import logging
import os
import sys
from typing import Optional, Protocol

from .config import API_KEY_ENV, Settings

logger = logging.getLogger(__name__)

SETUP_NOTICE = "Please configure an API key in the environment first."


class CredentialPrompter(Protocol):
    """
    Host-supplied way of letting a user pick an API key.

    Hosts without an interactive mechanism set `can_prompt = False`.
    """

    can_prompt: bool

    def has_selected_key(self) -> bool:
        ...

    def open_select_key(self) -> None:
        ...


class NoticePrompter:
    """No interactive mechanism: tells the user what to do and returns."""

    can_prompt = False

    def __init__(self, stream=None):
        self.stream = stream

    def has_selected_key(self) -> bool:
        return False

    def open_select_key(self) -> None:
        logger.warning("Interactive API key selection is not available in this environment.")
        print(SETUP_NOTICE, file=self.stream or sys.stderr)


class ConsolePrompter:
    """
    Asks for the key on the terminal and exports it for this process.

    A later `Settings.from_env()` picks the key up.
    """

    can_prompt = True

    def __init__(self, env_var: str = API_KEY_ENV):
        self.env_var = env_var

    def has_selected_key(self) -> bool:
        return bool(os.environ.get(self.env_var, "").strip())

    def open_select_key(self) -> None:
        key = getpass.getpass(f"{self.env_var}: ").strip()
        if not key:
            logger.warning("No API key entered.")
            return
        os.environ[self.env_var] = key


def has_valid_credential(
    settings: Optional[Settings] = None,
    prompter: Optional[CredentialPrompter] = None,
) -> bool:
    """True when an API key is configured or the host reports one as selected."""
    settings = settings or Settings.from_env()
    if settings.has_api_key:
        return True

    if prompter is None:
        return False
    try:
        return bool(prompter.has_selected_key())
    except Exception as e:
        logger.warning("Failed to check for a selected API key: %s", e)
        return False


def request_credential_setup(prompter: Optional[CredentialPrompter] = None) -> None:
    """Let the user set a key, or show a notice when the host cannot prompt."""
    if prompter is not None and prompter.can_prompt:
        prompter.open_select_key()
        return
    NoticePrompter().open_select_key()
