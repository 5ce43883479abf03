"""CLI entry point for prq.

Commands:
  queue      list open PRs waiting for your review
  review     generate and print an AI review plan for a PR
  draft      generate a review plan and save it locally as a draft
  submit     post the saved draft to GitHub as an inline-commented review
  discard    delete the saved draft for a PR
  followup   show new commits and open threads since your last review
"""

from __future__ import annotations

import importlib.metadata
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from prq_cli.commands.discard import discard_cmd
from prq_cli.commands.draft import draft_cmd
from prq_cli.commands.followup import followup_cmd
from prq_cli.commands.queue import queue_cmd
from prq_cli.commands.review import review_cmd
from prq_cli.commands.submit import submit_cmd
from prq_core.config import ConfigError
from prq_core.errors import OperationCancelled, PrqError
from prq_store.base import NotFoundError

console = Console()


def build_store(config: dict):
    """Instantiate the store for ``db_path``.

    ``:memory:`` gives a MemoryStore that lives for one invocation; anything
    else is a SQLite file shared by every prq run on the machine.
    """
    db_path = str(config.get("db_path") or "")
    if db_path == ":memory:":
        from prq_store.memory import MemoryStore

        return MemoryStore()

    from prq_store.sqlite import SQLiteStore

    return SQLiteStore(db_path=db_path) if db_path else SQLiteStore()


def build_host(config: dict):
    """Return the code host: fixtures when ``fixtures_dir`` is set, GitHub otherwise."""
    if config.get("fixtures_dir"):
        from prq_core.gh.fixtures import FixtureHost

        return FixtureHost(config["fixtures_dir"])

    from prq_cli.auth import resolve_github_token
    from prq_core.gh.host import GitHubHost

    token = config.get("github_token") or resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return GitHubHost(token=token, timeout=config["timeout"])


def build_provider(config: dict):
    provider = config["provider"]

    if provider == "fixture" or config.get("provider_fixture"):
        from prq_core.providers.fixture import FixtureProvider

        fixture = config.get("provider_fixture")
        if not fixture and config.get("fixtures_dir"):
            fixture = Path(config["fixtures_dir"]) / "provider" / "review.json"
        if not fixture:
            raise click.UsageError("provider 'fixture' requires provider_fixture (or fixtures_dir) in the config file.")
        return FixtureProvider(fixture)

    if provider == "anthropic":
        from prq_core.providers.anthropic import AnthropicProvider

        if not config.get("anthropic_api_key"):
            raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
        return AnthropicProvider(api_key=config["anthropic_api_key"], model=config.get("model"), timeout=config["timeout"])

    if provider == "openai":
        from prq_core.providers.openai import OpenAIProvider

        if not config.get("openai_api_key"):
            raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
        return OpenAIProvider(api_key=config["openai_api_key"], model=config.get("model"), timeout=config["timeout"])

    from prq_core.providers.claude_cli import ClaudeCLIProvider

    return ClaudeCLIProvider(
        command=config.get("provider_command") or "claude",
        args=config.get("provider_args") or [],
        timeout=config["timeout"],
    )


class App:
    """Per-invocation state shared by every command via ``ctx.obj["app"]``.

    The host and provider are built on first use so commands that never
    touch GitHub or the AI (``discard``) need no credentials.
    """

    def __init__(self, config: dict, store, host=None, provider=None):
        self.config = config
        self.store = store
        self._host = host
        self._provider = provider

    @property
    def host(self):
        if self._host is None:
            self._host = build_host(self.config)
        return self._host

    @property
    def provider(self):
        if self._provider is None:
            self._provider = build_provider(self.config)
        return self._provider


class PrqGroup(click.Group):
    """Click group that reports prq errors as a one-line ``Error:`` and exit code 1."""

    def invoke(self, ctx: click.Context):
        try:
            try:
                return super().invoke(ctx)
            except KeyboardInterrupt:
                raise OperationCancelled("interrupted by user") from None
        except (PrqError, NotFoundError, ConfigError) as e:
            raise click.ClickException(str(e)) from e


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group(cls=PrqGroup)
@click.version_option(
    version=importlib.metadata.version("prq"),
    prog_name="prq",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to the configuration file.  [default: .prq.yml]",
    envvar="PRQ_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """Work through your pull request review queue with AI-drafted reviews."""
    from prq_core.config import load_config

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    if "app" not in ctx.obj:
        config = load_config(config_path)
        ctx.obj["app"] = App(config=config, store=build_store(config))
    ctx.call_on_close(ctx.obj["app"].store.close)


main.add_command(queue_cmd)
main.add_command(review_cmd)
main.add_command(draft_cmd)
main.add_command(submit_cmd)
main.add_command(discard_cmd)
main.add_command(followup_cmd)
