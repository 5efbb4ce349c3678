"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich table output (default) and machine-parseable
JSON output (--json flag). Provider credentials are masked in both.
"""

import json

from rich.console import Console
from rich.table import Table

from a2a_desk.services.a2a_message import build_message_parts
from a2a_desk.services.record_types import AgentServerRecord, ModelProviderRecord

console = Console()


def mask_secret(value: str | None) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return "—"
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def _enabled_cell(enabled: bool) -> str:
    return "[green]yes[/green]" if enabled else "[dim]no[/dim]"


def _render(table: Table) -> str:
    with console.capture() as capture:
        console.print(table)
    return capture.get()


def format_model_table(models: list[ModelProviderRecord], as_json: bool = False) -> str:
    """Format model providers as a Rich table or JSON.

    Args:
        models: Records to display.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        rows = []
        for m in models:
            row = m.model_dump()
            row["api_key"] = mask_secret(m.api_key)
            rows.append(row)
        return json.dumps(rows, indent=2)

    if not models:
        return "No model providers configured."

    table = Table(title="Model Providers", show_lines=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Key", style="white")
    table.add_column("Enabled")
    table.add_column("API URL")
    table.add_column("API Key", style="dim")

    for m in models:
        table.add_row(
            str(m.id), m.model_key, _enabled_cell(m.enabled), m.api_url, mask_secret(m.api_key),
        )
    return _render(table)


def format_agent_table(agents: list[AgentServerRecord], as_json: bool = False) -> str:
    """Format agent servers as a Rich table or JSON.

    Custom headers are never printed, only whether any are stored.
    """
    if as_json:
        rows = []
        for a in agents:
            row = a.model_dump(exclude={"agent_card_json"})
            row["custom_header_json"] = "***" if a.custom_header_json else None
            rows.append(row)
        return json.dumps(rows, indent=2)

    if not agents:
        return "No agent servers configured."

    table = Table(title="A2A Servers", show_lines=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Enabled")
    table.add_column("Agent Card URL")
    table.add_column("Mode")
    table.add_column("Card", justify="center")
    table.add_column("Updated")

    for a in agents:
        mode = build_message_parts(a.protocol_data_object_settings, "")[0].kind
        table.add_row(
            str(a.id),
            a.name,
            _enabled_cell(a.enabled),
            a.agent_card_url,
            mode,
            "✓" if a.agent_card_json else "—",
            a.updated_at[:19] if a.updated_at else "—",
        )
    return _render(table)
