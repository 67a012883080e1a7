"""Operator prompts.

All interactive input goes through a Prompter so that the provisioner,
deployer and menu can be driven by a scripted prompter in tests.
"""
from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Prompt

from pvedeploy.core.logger import console as default_console


class Prompter:
    """Reads operator input from the terminal using Rich prompts."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or default_console

    def ask(self, message: str, default: Optional[str] = None) -> str:
        """Read one line of free text."""
        if default is None:
            answer = Prompt.ask(message, console=self.console)
        else:
            answer = Prompt.ask(
                message, console=self.console, default=default, show_default=False
            )
        return answer or ""

    def secret(self, message: str) -> str:
        """Read one line without echoing it."""
        answer = Prompt.ask(message, console=self.console, password=True)
        return answer or ""

    def choice(self, message: str, options: Sequence[str]) -> int:
        """Ask the operator to pick one of ``options`` by number.

        Returns:
            Zero-based index of the chosen option
        """
        for index, option in enumerate(options, start=1):
            self.console.print(f"  {index}. {option}")

        while True:
            answer = self.ask(f"{message} [1-{len(options)}]").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            self.console.print(f"[red]Invalid selection:[/red] {answer!r}")

    def pause(self, message: str = "Press Enter to continue...") -> None:
        self.ask(message, default="")


def is_affirmative(answer: str) -> bool:
    """Only an explicit 'y' counts as yes."""
    return answer.strip().lower() == "y"


def ask_yes_no(prompter: Prompter, message: str) -> bool:
    """Ask a [y/N] question; anything but 'y'/'Y' is a no."""
    return is_affirmative(prompter.ask(f"{message} [y/N]", default=""))


def ask_confirmed_secret(
    prompter: Prompter,
    label: str,
    confirm_label: str = "Confirm password",
) -> str:
    """Prompt for a secret twice until both entries match and are non-empty."""
    while True:
        first = prompter.secret(label)
        second = prompter.secret(confirm_label)
        if first and first == second:
            return first
        prompter.console.print(
            "[red]!! ERROR:[/red] Passwords do not match or are empty. Please try again."
        )
