from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from . import config
from .cards.contact import ContactKind
from .cards.layouts import search_layouts
from .cards.wizard import BusinessCardWizard
from .errors import LogoStudioError
from .models import UserStatus, init_db, reset_engine
from .seed import image_to_data_uri, seed_catalog
from .storage import safe_slug, write_artifact

app = typer.Typer(help="Logo studio: API server and business card tooling")


@app.callback()
def main(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    config.configure_logging(log_level)
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    import uvicorn

    uvicorn.run("logostudio.api.server:create_app", factory=True, host=host, port=port, reload=reload)


@app.command()
def layouts(
    theme: Optional[str] = typer.Option(None, "--theme", help="Filter by theme"),
    search: Optional[str] = typer.Option(None, "--search", help="Free-text search"),
) -> None:
    matches = search_layouts(search, theme)
    if not matches:
        typer.echo("No layouts match")
        return
    for layout in matches:
        enlarged = "yes" if layout.metadata.allow_enlarged_logo else "no"
        typer.echo(f"{layout.catalog_id}  {layout.theme:<13} {layout.style:<16} {layout.name} (enlarged logo: {enlarged})")


@app.command()
def cards(
    layout: str = typer.Option(..., "--layout", help="Layout catalog id, e.g. BC001"),
    name: str = typer.Option(..., "--name"),
    company: str = typer.Option(..., "--company"),
    title: str = typer.Option("", "--title"),
    phone: List[str] = typer.Option([], "--phone", help="Repeatable"),
    email: List[str] = typer.Option([], "--email", help="Repeatable"),
    website: List[str] = typer.Option([], "--website", help="Repeatable"),
    logo: Optional[Path] = typer.Option(None, "--logo", help="Logo image file"),
    count: int = typer.Option(config.CARDS_PER_SHEET, "--count", help="Cards on the sheet (1-10)"),
) -> None:
    wizard = BusinessCardWizard()
    try:
        wizard.update_info(name=name, company_name=company, title=title)
        for kind, values in ((ContactKind.PHONE, phone), (ContactKind.EMAIL, email), (ContactKind.WEBSITE, website)):
            for i, value in enumerate(values):
                wizard.set_field(kind, i, value)
        if logo:
            wizard.set_logo(None, image_to_data_uri(logo))
    except (LogoStudioError, ValueError) as exc:
        typer.echo(f"Invalid input: {exc}")
        raise typer.Exit(code=2)

    if not wizard.next():
        typer.echo("Missing details: " + "; ".join(wizard.validation_errors()))
        raise typer.Exit(code=2)
    wizard.select_layout(layout)
    wizard.next()
    if wizard.error:
        typer.echo(wizard.error)
        raise typer.Exit(code=1)

    wizard.render_preview()
    pdf = wizard.export_pdf(count)
    if pdf is None:
        typer.echo(wizard.error or "Export failed")
        raise typer.Exit(code=1)

    slug = safe_slug(f"{layout} {company}")
    write_artifact(slug, "card_html", wizard.preview_html or "")
    write_artifact(slug, "card_png", wizard.preview_image.png)
    path = write_artifact(slug, "cards_pdf", pdf)
    typer.echo(f"READY: {path}")


@app.command("seed-catalog")
def seed_catalog_cmd(csv: Path = typer.Option(..., "--csv", help="CSV with company_name,image[,industry,style]")) -> None:
    added, skipped = seed_catalog(csv)
    typer.echo(f"ADDED: {len(added)}")
    typer.echo(f"SKIPPED: {skipped}")
    for entry in added:
        typer.echo(f"{entry['catalogCode']}  {entry['originalCompanyName']}")


@app.command("create-user")
def create_user_cmd(
    email: str = typer.Option(..., "--email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    status: UserStatus = typer.Option(UserStatus.ACTIVE, "--status"),
    logos_limit: Optional[int] = typer.Option(None, "--logos-limit"),
) -> None:
    from .auth.sessions import create_user

    init_db()
    try:
        user = create_user(email, password, status=status, logos_limit=logos_limit)
    except LogoStudioError as exc:
        typer.echo(exc.message)
        raise typer.Exit(code=1)
    typer.echo(f"Created {user.email} (id={user.id}, limit={user.logos_limit})")


@app.command()
def certificate(
    email: str = typer.Option(..., "--email"),
    logo: Optional[Path] = typer.Option(None, "--logo", help="Logo image to show on the certificate"),
) -> None:
    from .certificates import issue_certificate, render_certificate_pdf

    cert = issue_certificate(email)
    pdf = render_certificate_pdf(cert, image_to_data_uri(logo) if logo else None)
    path = write_artifact(safe_slug(cert.certificate_id), "certificate_pdf", pdf)
    typer.echo(f"{cert.certificate_id}")
    typer.echo(f"Signature: {cert.signature}")
    typer.echo(f"READY: {path}")


if __name__ == "__main__":
    app()
