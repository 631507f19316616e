"""
Condo Messaging CLI

Command-line interface for pipeline administration.

Commands:
- init-db: Create tables (development)
- classify: Run the Intent Classifier on one message
- search-knowledge: Run Knowledge Lookup for a building
- backfill-embeddings: Embed knowledge entries that have no embedding
- list-conversations: List conversations for a building
"""

import asyncio
import json
from typing import Optional
from uuid import UUID

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="condo-messaging",
    help="Condo Messaging pipeline CLI",
)

console = Console()


def get_db():
    """Get database session."""
    from condocore.db import get_db as _get_db
    return next(_get_db())


def parse_building_id(building_id: str) -> UUID:
    try:
        return UUID(building_id)
    except ValueError:
        rprint(f"[red]Invalid building ID: {building_id}[/red]")
        raise typer.Exit(1)


@app.callback()
def main():
    """Configure logging for every command."""
    from condocore.logging import setup_logging

    setup_logging()


@app.command()
def init_db():
    """
    Create all pipeline tables.

    Development only; production schemas are managed by Alembic.
    """
    from condocore.db import get_engine
    from condo_messaging.persistence.models import CondoBase

    CondoBase.metadata.create_all(get_engine())
    rprint("[green]Tables created[/green]")


@app.command()
def classify(
    text: str = typer.Argument(..., help="Message text"),
    role: str = typer.Option("renter", help="Sender role (owner, renter)"),
    language: str = typer.Option("es", help="Reply language (es, en)"),
    building_id: Optional[str] = typer.Option(None, help="Building UUID for knowledge grounding"),
):
    """
    Classify one message and print the Classification Result.
    """
    from condocore.settings import get_settings
    from condo_messaging.classification.classifier import IntentClassifier
    from condo_messaging.contracts.payloads import Language, ResidentRole
    from condo_messaging.knowledge.lookup import KnowledgeLookup
    from condo_messaging.persistence.repo import CondoRepository
    from condo_messaging.providers import build_classifier_provider, build_embedding_provider

    try:
        sender_role = ResidentRole(role)
    except ValueError:
        rprint(f"[red]Unknown role: {role}[/red]")
        raise typer.Exit(1)

    settings = get_settings()
    tenant_id = parse_building_id(building_id) if building_id else None
    db = get_db()

    try:
        repo = CondoRepository(db)
        tenant_name = ""
        if tenant_id:
            building = repo.get_building(tenant_id)
            if not building:
                rprint(f"[red]Building not found: {building_id}[/red]")
                raise typer.Exit(1)
            tenant_name = building.name

        classifier = IntentClassifier(
            build_classifier_provider(settings),
            knowledge=KnowledgeLookup(
                repo,
                embedder=build_embedding_provider(settings),
                threshold=settings.KNOWLEDGE_MATCH_THRESHOLD,
                count=settings.KNOWLEDGE_MATCH_COUNT,
            ),
            timeout_seconds=settings.CLASSIFIER_TIMEOUT_SECONDS,
        )
        result = asyncio.run(
            classifier.classify(
                message_text=text,
                sender_role=sender_role,
                language=Language.coerce(language),
                tenant_name=tenant_name,
                tenant_id=tenant_id,
            )
        )
        console.print_json(json.dumps(result.to_metadata(), ensure_ascii=False))

    finally:
        db.close()


@app.command()
def search_knowledge(
    query: str = typer.Argument(..., help="Search text"),
    building_id: str = typer.Option(..., help="Building UUID"),
):
    """
    Search a building's knowledge base.
    """
    from condocore.settings import get_settings
    from condo_messaging.knowledge.lookup import KnowledgeLookup
    from condo_messaging.persistence.repo import CondoRepository
    from condo_messaging.providers import build_embedding_provider

    settings = get_settings()
    tenant_id = parse_building_id(building_id)
    db = get_db()

    try:
        lookup = KnowledgeLookup(
            CondoRepository(db),
            embedder=build_embedding_provider(settings),
            threshold=settings.KNOWLEDGE_MATCH_THRESHOLD,
            count=settings.KNOWLEDGE_MATCH_COUNT,
        )
        snippets = asyncio.run(lookup.search(query, tenant_id))

        if not snippets:
            rprint("[yellow]No matching entries[/yellow]")
            raise typer.Exit(0)

        table = Table(title=f"Knowledge for building {building_id[:8]}...")
        table.add_column("Question")
        table.add_column("Answer")
        table.add_column("Category")
        table.add_column("Similarity")

        for snippet in snippets:
            table.add_row(
                snippet.question,
                snippet.answer,
                snippet.category,
                f"{snippet.similarity:.2f}" if snippet.similarity is not None else "keyword",
            )

        console.print(table)

    finally:
        db.close()


@app.command()
def backfill_embeddings(
    building_id: Optional[str] = typer.Option(None, help="Only this building"),
):
    """
    Compute embeddings for active knowledge entries that have none.
    """
    from condocore.settings import get_settings
    from condo_messaging.knowledge.lookup import backfill_embeddings as _backfill
    from condo_messaging.persistence.repo import CondoRepository
    from condo_messaging.providers import build_embedding_provider

    embedder = build_embedding_provider(get_settings())
    if embedder is None:
        rprint("[red]OPENAI_API_KEY is not set[/red]")
        raise typer.Exit(1)

    tenant_id = parse_building_id(building_id) if building_id else None
    db = get_db()

    try:
        embedded, failed = asyncio.run(_backfill(CondoRepository(db), embedder, tenant_id))
        rprint(f"[green]Embedded {embedded} entries[/green]")
        if failed:
            rprint(f"[red]{failed} entries failed[/red]")
            raise typer.Exit(1)

    finally:
        db.close()


@app.command()
def list_conversations(
    building_id: str = typer.Argument(..., help="Building UUID"),
    status: Optional[str] = typer.Option(None, help="Filter by status (active, closed)"),
    limit: int = typer.Option(20, help="Maximum number of conversations to show"),
):
    """
    List conversations for a building.
    """
    tenant_id = parse_building_id(building_id)
    db = get_db()

    try:
        from condo_messaging.persistence.models import ConversationStatus
        from condo_messaging.persistence.repo import CondoRepository

        repo = CondoRepository(db)

        status_filter = None
        if status:
            try:
                status_filter = ConversationStatus(status)
            except ValueError:
                rprint(f"[yellow]Unknown status: {status}[/yellow]")

        conversations = repo.list_conversations(tenant_id=tenant_id, status=status_filter, limit=limit)

        if not conversations:
            rprint("[yellow]No conversations found[/yellow]")
            raise typer.Exit(0)

        table = Table(title=f"Conversations for building {building_id[:8]}...")
        table.add_column("ID", style="dim")
        table.add_column("Resident")
        table.add_column("Channel")
        table.add_column("Status")
        table.add_column("Last Message")

        for conv in conversations:
            resident = repo.get_resident(tenant_id, conv.resident_id)
            table.add_row(
                str(conv.id)[:8] + "...",
                resident.full_name if resident else "-",
                conv.channel,
                conv.status,
                conv.last_message_at.strftime("%Y-%m-%d %H:%M") if conv.last_message_at else "-",
            )

        console.print(table)

    finally:
        db.close()


if __name__ == "__main__":
    app()
