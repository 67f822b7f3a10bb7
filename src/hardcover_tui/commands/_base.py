"""Click classes that add an eager ``--examples`` flag.

``--help`` stays short; ``hardcover-tui auth login --examples`` prints the
usage lines attached to the command and exits.
"""

from __future__ import annotations

from typing import Any

import click


class ExamplesMixin:
    """Adds the ``examples`` keyword to a Click command or group."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
            ctx.exit(0)


class HcCommand(ExamplesMixin, click.Command):
    pass


class HcGroup(ExamplesMixin, click.Group):
    command_class = HcCommand
