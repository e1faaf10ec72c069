import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box
from config.settings import settings
from core.exceptions import ConfigurationError, OdooLensError

console = Console()

LEVEL_COLORS = {"high": "bold red", "medium": "bold yellow", "low": "bold green"}


def banner():
    console.print(f"""
[bold blue]╔══════════════════════════════════════════════╗
║   Odoo Lens  v{settings.VERSION}                          ║
║   Faculty, Permission & Model Explorer       ║
╚══════════════════════════════════════════════╝[/bold blue]
""")
    mode = "[yellow]MOCK[/yellow]" if settings.MOCK_MODE else "[green]LIVE[/green]"
    console.print(f"  Mode: {mode}  |  Odoo: [bold]{settings.ODOO_URL or 'not set'}[/bold]\n")
    for w in settings.validate():
        console.print(f"  [yellow]⚠  {w}[/yellow]")
    console.print()


def fail(e: OdooLensError):
    console.print(f"\n[red]✘ {e.message}[/red]\n")
    raise click.exceptions.Exit(1)


@click.group()
def cli():
    """Odoo Lens — Odoo faculty, permission and model explorer"""
    banner()


@cli.command("status")
def check_status():
    """Check configuration status."""
    tbl = Table(box=box.ROUNDED, header_style="bold cyan")
    tbl.add_column("Component", style="bold")
    tbl.add_column("Status")
    tbl.add_column("Details")

    if settings.MOCK_MODE:
        tbl.add_row("Odoo API", "[yellow]MOCK[/yellow]", "Simulation mode active")
    elif settings.is_odoo_configured():
        tbl.add_row("Odoo API", "[green]CONFIGURED[/green]", settings.ODOO_URL)
    else:
        tbl.add_row("Odoo API", "[red]NOT CONFIGURED[/red]",
                    "Set ODOO_URL and ODOO_SESSION_ID in .env")

    if settings.is_openai_configured():
        tbl.add_row("AI Analysis", "[green]CONFIGURED[/green]", settings.OPENAI_MODEL)
    else:
        tbl.add_row("AI Analysis", "[yellow]DISABLED[/yellow]", "Set OPENAI_API_KEY in .env")

    override = "[yellow]ON[/yellow]" if settings.RISK_TEXT_OVERRIDE else "[green]OFF[/green]"
    tbl.add_row("Text Risk Override", override, "RISK_TEXT_OVERRIDE")
    tbl.add_row("Report Output", "[green]OK[/green]", str(settings.REPORT_OUTPUT_DIR))
    console.print(tbl)
    console.print()


@cli.command("connect")
def test_connection():
    """Verify the Odoo session cookie."""
    from integrations.odoo_client import OdooClient
    try:
        info = OdooClient().session_info()
    except OdooLensError as e:
        console.print("Troubleshooting:")
        console.print("  1. Log in to Odoo in a browser and copy the session_id cookie")
        console.print("  2. Set ODOO_SESSION_ID in your .env")
        console.print("  3. Check outbound access to ODOO_URL\n")
        fail(e)

    tbl = Table(box=box.ROUNDED, header_style="bold cyan")
    tbl.add_column("Key", style="bold")
    tbl.add_column("Value")
    for key in ("username", "name", "uid", "db", "server_version"):
        tbl.add_row(key, str(info.get(key, "")))
    console.print(tbl)
    console.print("\n[green]✔ Session valid.[/green]\n")


@cli.command("faculty")
@click.argument("query")
@click.option("--limit", default=10, show_default=True, help="Maximum records")
@click.option("--text", is_flag=True, default=False, help="Print plain-text cards")
def search_faculty(query, limit, text):
    """Search faculty members by name."""
    from integrations.odoo_client import OdooClient
    from core.faculty import format_faculty_text
    client = OdooClient()
    try:
        records = client.search_faculty(query, limit)
        if not records:
            console.print("[yellow]No faculty found.[/yellow]\n")
            return
        names = client.group_names(sorted({g for f in records for g in f.res_group_id}))
    except OdooLensError as e:
        fail(e)

    if text:
        for f in records:
            console.print(format_faculty_text(f, names), markup=False)
            console.print()
        return

    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan")
    tbl.add_column("ID", justify="right")
    tbl.add_column("Name", style="bold")
    tbl.add_column("Login")
    tbl.add_column("Department")
    tbl.add_column("Campus")
    tbl.add_column("Groups")
    for f in records:
        tbl.add_row(str(f.id), f.name, f.login or "", f.department_name or "",
                    f.campus_name or "",
                    ", ".join(names.get(g, str(g)) for g in f.res_group_id))
    console.print(tbl)


@cli.command("groups")
@click.argument("query", default="")
@click.option("--limit", default=20, show_default=True)
def search_groups(query, limit):
    """Search access groups by name."""
    from integrations.odoo_client import OdooClient
    try:
        groups = OdooClient().search_groups(query, limit)
    except OdooLensError as e:
        fail(e)
    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan")
    tbl.add_column("ID", justify="right")
    tbl.add_column("Group")
    for g in groups:
        tbl.add_row(str(g.id), g.display_name)
    console.print(tbl)


def _review_table(reviews, flagged=()):
    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan")
    tbl.add_column("Group")
    for label in ("Create", "Read", "Update", "Delete"):
        tbl.add_column(label, justify="right")
    for r in reviews:
        name = f"[bold red]{r.group_name}[/bold red]" if r.group_name in flagged else r.group_name
        if r.error:
            tbl.add_row(name, "[red]error[/red]", "", "", "")
            continue
        s = r.summary
        tbl.add_row(name, str(s.create), str(s.read), str(s.update), str(s.delete))
    return tbl


@cli.command("permissions")
@click.argument("group_ids", nargs=-1, type=int, required=True)
@click.option("--details", "-d", is_flag=True, default=False, help="Show per-model rules")
def review_permissions(group_ids, details):
    """Review CRUD permissions of one or more groups."""
    from integrations.odoo_client import OdooClient
    from services.review_service import PermissionReviewService
    from core.permissions import total_permissions
    try:
        reviews = PermissionReviewService(OdooClient()).review_groups(list(group_ids))
    except OdooLensError as e:
        fail(e)

    console.print(_review_table(reviews))
    total = total_permissions(reviews)
    console.print(f"  [bold]Total:[/bold] Create {total.create}  Read {total.read}  "
                  f"Update {total.update}  Delete {total.delete}\n")

    if details:
        for r in reviews:
            if r.error:
                console.print(Panel(r.error, title=r.group_name, border_style="red"))
                continue
            tbl = Table(box=box.SIMPLE, header_style="bold cyan", title=r.group_name)
            tbl.add_column("Model")
            for label in ("C", "R", "U", "D"):
                tbl.add_column(label, justify="center")
            mark = lambda v: "[green]✔[/green]" if v else "[dim]·[/dim]"
            for p in sorted(r.permissions, key=lambda p: p.model_name):
                tbl.add_row(p.model_name or str(p.model_id), mark(p.perm_create),
                            mark(p.perm_read), mark(p.perm_write), mark(p.perm_unlink))
            console.print(tbl)


@cli.command("fields")
@click.argument("model")
def explore_model(model):
    """Show field metadata of an Odoo model."""
    from integrations.odoo_client import OdooClient
    try:
        fields = OdooClient().get_model_fields(model)
    except OdooLensError as e:
        fail(e)
    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan", title=model)
    tbl.add_column("Field", style="bold")
    tbl.add_column("Label")
    tbl.add_column("Type")
    tbl.add_column("Required", justify="center")
    tbl.add_column("Readonly", justify="center")
    tbl.add_column("Relation")
    for f in fields:
        tbl.add_row(f.name, f.string, f.type, "✔" if f.required else "",
                    "✔" if f.readonly else "", f.relation or "")
    console.print(tbl)


@cli.command("query")
@click.argument("model")
@click.option("--field", "-f", "fields", multiple=True, required=True, help="Field to read")
@click.option("--filter-field", default=None)
@click.option("--filter-value", default=None)
@click.option("--limit", default=100, show_default=True)
def data_query(model, fields, filter_field, filter_value, limit):
    """Run a search_read on any model."""
    from integrations.odoo_client import OdooClient
    from models.odoo import DataQueryParams
    params = DataQueryParams(model=model, fields=list(fields), filter_field=filter_field,
                             filter_value=filter_value, limit=limit)
    try:
        result = OdooClient().data_query(params)
    except OdooLensError as e:
        fail(e)
    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan",
                title=f"{model} ({result.length} records)")
    for name in params.fields:
        tbl.add_column(name)
    for row in result.records:
        tbl.add_row(*(_cell(row.get(name)) for name in params.fields))
    console.print(tbl)


def _cell(value) -> str:
    if value is False or value is None:
        return ""
    if isinstance(value, list) and len(value) == 2 and isinstance(value[0], int):
        return str(value[1])
    return str(value)


@cli.command("analyze")
@click.argument("group_ids", nargs=-1, type=int)
@click.option("--faculty", "faculty_id", type=int, default=None, help="Analyze a faculty member's groups")
@click.option("--concise", is_flag=True, default=False, help="Ask for a short analysis")
@click.option("--plain", is_flag=True, default=False, help="Ask for plain text, no markdown")
@click.option("--pdf", is_flag=True, default=False, help="Write a PDF report")
def analyze(group_ids, faculty_id, concise, plain, pdf):
    """Score permission risk and generate an AI analysis."""
    from integrations.odoo_client import OdooClient
    from services.review_service import PermissionReviewService
    from services.permission_analysis import NarrativeFailed, PermissionAnalysisService
    from core.permissions import to_analysis_input
    from models.permissions import FormatOptions

    if not group_ids and faculty_id is None:
        raise click.UsageError("Give GROUP_IDS or --faculty.")

    service = PermissionAnalysisService()
    analysis = None
    with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=console) as p:
        t = p.add_task("Fetching permissions...", total=None)
        try:
            reviewer = PermissionReviewService(OdooClient())
            if faculty_id is not None:
                review = reviewer.review_faculty(faculty_id)
                reviews, subject = review.groups, review.faculty.name
            else:
                reviews = reviewer.review_groups(list(group_ids))
                subject = ", ".join(r.group_name for r in reviews)
            groups = to_analysis_input(reviews)
            p.update(t, description="Analyzing permissions...")
            try:
                result = service.analyze(groups, FormatOptions(concise=concise, avoid_markdown=plain))
                analysis = result.analysis
            except ConfigurationError as e:
                result = service.assess(groups)
                console.print(f"[yellow]⚠  {e.message} — showing the computed score only.[/yellow]")
            except NarrativeFailed as e:
                result = e.assessment
                console.print(f"[yellow]⚠  AI analysis failed: {e.message}[/yellow]")
        except OdooLensError as e:
            p.stop()
            fail(e)
        p.update(t, description="Done!")

    color = LEVEL_COLORS.get(result.risk_level.value, "")
    console.print(Panel(
        f"[bold]Subject:[/bold] {subject}\n"
        f"[bold]Risk:[/bold] [{color}]{result.risk_level.value.upper()}[/{color}] "
        f"({result.risk_score:.1f}/100)\n"
        f"[bold]High-risk groups:[/bold] {', '.join(result.high_risk_groups) or 'none'}",
        title="[bold blue]Permission Risk[/bold blue]"
    ))
    console.print(_review_table(reviews, set(result.high_risk_groups)))

    if analysis:
        console.print(Panel(analysis, title="[bold blue]AI Analysis[/bold blue]"))

    if pdf:
        from reporting.pdf_report import PermissionReportGenerator
        console.print("\n[bold]Generating PDF report...[/bold]")
        try:
            path = PermissionReportGenerator(result, reviews, subject, analysis).generate()
            console.print(f"\n[green]✔ Report saved:[/green] {path}\n")
        except Exception as e:
            console.print(f"\n[red]✘ PDF generation failed:[/red] {e}\n")


@cli.command("serve")
@click.option("--host", default=settings.SERVER_HOST, show_default=True)
@click.option("--port", default=settings.SERVER_PORT, show_default=True, type=int)
def serve(host, port):
    """Run the Odoo Lens REST API."""
    import uvicorn
    from server.app import create_app
    console.print(f"[bold]Serving on[/bold] http://{host}:{port}\n")
    uvicorn.run(create_app(), host=host, port=port, log_level=settings.LOG_LEVEL.lower())


@cli.command("mock")
def toggle_mock():
    """Show how to switch between MOCK and LIVE mode."""
    console.print("\n[bold]Mode Switching Guide[/bold]\n")
    console.print(Panel(
        "[bold]MOCK MODE[/bold] — Safe for demos, no real API calls\n"
        "  In your .env:\n"
        "  [green]MOCK_MODE=true[/green]\n\n"
        "[bold]LIVE MODE[/bold] — Real Odoo instance\n"
        "  In your .env:\n"
        "  [yellow]MOCK_MODE=false[/yellow]\n"
        "  ODOO_URL=https://erp.example.com\n"
        "  ODOO_SESSION_ID=your_session_cookie\n\n"
        "After editing .env, run:\n"
        "  [cyan]python main.py connect[/cyan]   ← verify session\n"
        "  [cyan]python main.py analyze 1 2[/cyan] ← analyze groups",
        title="[bold blue]Mode Configuration[/bold blue]"
    ))
    console.print()
