"""CLI entry point for ai-services."""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ai_services.config import AIServicesConfig, load_config
from ai_services.config.loader import DEFAULT_CONFIG_TEMPLATE, PROJECT_CONFIG
from ai_services.contracts import GenerativeAIService
from ai_services.exceptions import GenerativeAIError, ServiceNotAvailableError
from ai_services.logging_setup import configure_logging
from ai_services.registry import ServicesRegistry, create_default_registry
from ai_services.types import AICapability, Candidates, ModelMetadata
from ai_services.util import (
    get_candidate_contents,
    get_text_from_contents,
    text_and_data_to_content_async,
    text_to_content,
)

app = typer.Typer(
    name="ai-services",
    help="Talk to Google, OpenAI and Anthropic models through one interface.",
)

config_app = typer.Typer(help="Manage ai-services configuration.")
app.add_typer(config_app, name="config")

console = Console()

# Global state
_config: AIServicesConfig | None = None


def _get_config() -> AIServicesConfig:
    if _config is None:
        return load_config()
    return _config


def _get_registry() -> ServicesRegistry:
    return create_default_registry(_get_config())


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to ai-services.yaml")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging("debug" if verbose else _config.log_level, _config.log_format)


def _format_capabilities(capabilities: list[AICapability]) -> str:
    return ", ".join(str(AICapability(c).value) for c in capabilities) or "-"


@app.command()
def services() -> None:
    """List registered services and whether they are available."""
    registry = _get_registry()
    try:
        described = asyncio.run(registry.describe_services())
    except GenerativeAIError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Services ({len(described)})")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Status", justify="center")
    table.add_column("Capabilities", style="green")
    table.add_column("Models", justify="right")
    for service in described:
        status = "[green]available[/green]" if service.is_available else "[dim]unavailable[/dim]"
        table.add_row(
            service.slug,
            service.name,
            status,
            _format_capabilities(service.capabilities),
            str(len(service.available_models)),
        )
    rprint(table)


async def _list_models(registry: ServicesRegistry, slug: str) -> dict[str, ModelMetadata]:
    service = await registry.get_available_service(slug)
    return await service.list_models()


@app.command()
def models(
    slug: str = typer.Argument(..., help="Service slug, e.g. google, openai or anthropic"),
) -> None:
    """List the models of an available service."""
    registry = _get_registry()
    try:
        available = asyncio.run(_list_models(registry, slug))
    except (ServiceNotAvailableError, GenerativeAIError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not available:
        rprint(f"[yellow]No models found for '{slug}'.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"{registry.get_service_name(slug)} models ({len(available)})")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Capabilities", style="green")
    for metadata in available.values():
        table.add_row(metadata.slug, metadata.name, _format_capabilities(metadata.capabilities))
    rprint(table)


async def _resolve_service(
    registry: ServicesRegistry, slug: str | None, capabilities: list[AICapability]
) -> GenerativeAIService:
    if slug:
        return await registry.get_available_service(slug)
    return await registry.get_available_service(capabilities=capabilities)


def _model_params(
    model: str | None,
    system: str | None,
    temperature: float | None,
    max_tokens: int | None,
    top_p: float | None,
    capabilities: list[AICapability],
) -> dict[str, Any]:
    generation_config = {
        key: value
        for key, value in {
            "temperature": temperature,
            "max_output_tokens": max_tokens,
            "top_p": top_p,
        }.items()
        if value is not None
    }
    params: dict[str, Any] = {"capabilities": capabilities}
    if model:
        params["model"] = model
    if system:
        params["system_instruction"] = system
    if generation_config:
        params["generation_config"] = generation_config
    return params


def _candidates_text(candidates: Candidates) -> str:
    return get_text_from_contents(get_candidate_contents(candidates))


async def _generate(
    registry: ServicesRegistry,
    prompt: str,
    slug: str | None,
    params: dict[str, Any],
    attachment: str | None,
    stream: bool,
) -> str:
    service = await _resolve_service(registry, slug, params["capabilities"])
    model = service.get_model(params)
    if attachment:
        content = await text_and_data_to_content_async(prompt, attachment)
    else:
        content = text_to_content(prompt)

    if not stream:
        candidates = await model.generate_text(content)
        return _candidates_text(candidates)

    chunks: list[str] = []
    async for chunk in model.stream_generate_text(content):
        text = _candidates_text(chunk)
        if text:
            console.print(text, end="", markup=False, highlight=False)
            chunks.append(text)
    console.print()
    return "".join(chunks)


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    service: Annotated[
        str | None, typer.Option("--service", "-s", help="Service slug; first available if omitted")
    ] = None,
    model: Annotated[str | None, typer.Option("--model", "-m", help="Model slug")] = None,
    system: Annotated[str | None, typer.Option("--system", help="System instruction")] = None,
    temperature: Annotated[
        float | None, typer.Option("--temperature", "-t", min=0.0, max=1.0, help="0.0 to 1.0")
    ] = None,
    max_tokens: Annotated[
        int | None, typer.Option("--max-tokens", min=1, help="Maximum output tokens")
    ] = None,
    top_p: Annotated[float | None, typer.Option("--top-p", help="Nucleus sampling")] = None,
    attach: Annotated[
        str | None, typer.Option("--attach", "-a", help="Image or audio file path or URL")
    ] = None,
    stream: bool = typer.Option(False, "--stream", help="Print the response as it arrives"),
) -> None:
    """Generate text from a prompt."""
    capabilities = [AICapability.TEXT_GENERATION]
    if attach:
        capabilities.append(AICapability.MULTIMODAL_INPUT)
    params = _model_params(model, system, temperature, max_tokens, top_p, capabilities)

    registry = _get_registry()
    try:
        text = asyncio.run(_generate(registry, prompt, service, params, attach, stream))
    except (ServiceNotAvailableError, GenerativeAIError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not stream:
        rprint(Panel(text or "[dim](empty response)[/dim]", title="Response", border_style="green"))


async def _chat_loop(registry: ServicesRegistry, slug: str | None, params: dict[str, Any]) -> int:
    service = await _resolve_service(registry, slug, params["capabilities"])
    model = service.get_model(params)
    session = model.start_chat()
    rprint(
        f"[bold]Chatting with[/bold] {service.get_service_slug()}/{model.get_model_slug()} "
        "[dim](type 'exit' to quit)[/dim]"
    )
    turns = 0
    while True:
        try:
            message = typer.prompt("You", prompt_suffix="> ")
        except typer.Abort:
            break
        if message.strip().lower() in ("exit", "quit"):
            break
        response = await session.send_message(message)
        rprint(f"[cyan]Model>[/cyan] {get_text_from_contents([response])}")
        turns += 1
    return turns


@app.command()
def chat(
    service: Annotated[
        str | None, typer.Option("--service", "-s", help="Service slug; first available if omitted")
    ] = None,
    model: Annotated[str | None, typer.Option("--model", "-m", help="Model slug")] = None,
    system: Annotated[str | None, typer.Option("--system", help="System instruction")] = None,
) -> None:
    """Start an interactive chat session."""
    capabilities = [AICapability.TEXT_GENERATION, AICapability.CHAT_HISTORY]
    params = _model_params(model, system, None, None, None, capabilities)

    registry = _get_registry()
    try:
        turns = asyncio.run(_chat_loop(registry, service, params))
    except (ServiceNotAvailableError, GenerativeAIError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[dim]{turns} turn(s).[/dim]")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default ai-services.yaml in current directory."""
    target = PROJECT_CONFIG
    if target.exists() and not force:
        rprint(f"[yellow]{target} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
