"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from resume_screener.clients.gemini_client import GeminiClient
from resume_screener.clients.llm_client import AnthropicClient
from resume_screener.config import AppConfig, load_config, load_credentials
from resume_screener.errors import JobNotFound, ScreenerError
from resume_screener.logging.cost_calculator import calculate_cost
from resume_screener.logging.models import UsageLog
from resume_screener.logging.usage_store import UsageStore
from resume_screener.models.analysis import ResumeAnalysis
from resume_screener.parsers.job_parser import load_job_file
from resume_screener.parsers.resume_parser import DOCX_MIME, PDF_MIME, extract_upload
from resume_screener.pipeline.batch import BatchProcessor, UploadedFile, collect_calls
from resume_screener.pipeline.orchestrator import ResumeAnalyzer
from resume_screener.store.candidate_store import CandidateStore

app = typer.Typer(
    name="resume-screener",
    help="AI resume screening against job postings",
    no_args_is_help=True,
)
console = Console()

RECOMMENDATION_COLORS = {"Shortlist": "green", "Review": "yellow", "Reject": "red"}
CONTENT_TYPES = {".pdf": PDF_MIME, ".docx": DOCX_MIME}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _build_analyzer(config: AppConfig) -> ResumeAnalyzer:
    credentials = load_credentials()
    primary = AnthropicClient(api_key=credentials.anthropic_api_key, timeout=config.llm.timeout)
    secondary = GeminiClient(api_key=credentials.google_api_key, timeout=config.llm.timeout)
    return ResumeAnalyzer(
        primary,
        secondary,
        llm_config=config.llm,
        policy=config.scoring.policy,
    )


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _render_analysis(title: str, analysis: ResumeAnalysis, note: str = "") -> None:
    color = RECOMMENDATION_COLORS[analysis.recommendation]
    candidate = analysis.parsed_data
    body = (
        f"[bold]{candidate.name or 'Unknown'}[/bold] {candidate.email} {candidate.phone}\n"
        f"Skills: {', '.join(candidate.skills)}\n"
        f"Experience: {candidate.experience_years:g} years\n\n"
        f"Match: {analysis.match_score:g} | Skills: {analysis.skill_match_score:g} | "
        f"Experience: {analysis.experience_match_score:g} | "
        f"[bold {color}]{analysis.recommendation}[/bold {color}]\n\n"
        f"{analysis.explanation}"
    )
    if analysis.strengths:
        body += "\n\n[green]Strengths:[/green] " + "; ".join(analysis.strengths)
    if analysis.gaps:
        body += "\n[yellow]Gaps:[/yellow] " + "; ".join(analysis.gaps)
    if note:
        body += f"\n\n[dim]{note}[/dim]"
    console.print(Panel(body, title=title))


@app.command()
def analyze(
    resume: Path = typer.Argument(help="Resume file (PDF/DOCX)"),
    job: Path = typer.Option(..., "--job", "-j", help="Job definition file (YAML)"),
) -> None:
    """Analyze one resume against a job definition without storing it."""
    if not resume.exists():
        _fail(f"Resume file not found: {resume}")
    if not job.exists():
        _fail(f"Job file not found: {job}")

    config = load_config()
    try:
        requirements = load_job_file(job)
        analyzer = _build_analyzer(config)
        resume_text = extract_upload(resume.read_bytes(), resume.name, config.extraction)
    except ScreenerError as exc:
        _fail(str(exc))

    with console.status("Analyzing resume..."):
        result = asyncio.run(analyzer.analyze_detailed(resume_text, requirements))

    calls = collect_calls(analyzer)
    UsageStore(config.store.resolved_usage_db_path).save_log(
        UsageLog(
            mode="single_analysis",
            job_title=requirements.title,
            files_total=1,
            files_succeeded=1,
            fallback_count=int(result.fallback),
            degraded_count=int(result.degraded),
            elapsed_seconds=result.elapsed_seconds,
            total_input_tokens=sum(c[1] for c in calls),
            total_output_tokens=sum(c[2] for c in calls),
            estimated_cost_usd=calculate_cost(calls),
        )
    )

    if result.fallback:
        note = "Automatic analysis incomplete; fallback record shown"
    else:
        note = f"via {result.provider}/{result.model}" + (" (degraded)" if result.degraded else "")
    _render_analysis(resume.name, result.analysis, note)


@app.command("create-job")
def create_job(
    job: Path = typer.Argument(help="Job definition file (YAML)"),
    draft: bool = typer.Option(False, "--draft", help="Create the job as a draft"),
) -> None:
    """Create a job posting from a YAML file."""
    config = load_config()
    try:
        requirements = load_job_file(job)
    except (ScreenerError, OSError) as exc:
        _fail(str(exc))
    store = CandidateStore(config.store.resolved_db_path)
    posting = store.create_job(requirements, status="draft" if draft else "active")
    console.print(f"[green]Created job {posting.id}: {posting.title}[/green]")


@app.command()
def jobs(
    status: str = typer.Option(None, "--status", help="Filter by active/closed/draft"),
) -> None:
    """List job postings."""
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    postings = store.list_jobs(status=status)
    if not postings:
        console.print("[yellow]No jobs found.[/yellow]")
        return

    table = Table(title="Jobs")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Experience")
    table.add_column("Processed", justify="right")
    for p in postings:
        table.add_row(
            p.id,
            p.title,
            p.status,
            f"{p.experience_min}-{p.experience_max}y",
            f"{p.processed_resumes}/{p.total_resumes}",
        )
    console.print(table)


@app.command("close-job")
def close_job(job_id: str = typer.Argument(help="Job ID")) -> None:
    """Mark a job as closed. Its candidates are kept."""
    _set_status(job_id, "closed")


@app.command("activate-job")
def activate_job(job_id: str = typer.Argument(help="Job ID")) -> None:
    """Mark a draft or closed job as active."""
    _set_status(job_id, "active")


def _set_status(job_id: str, status: str) -> None:
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    try:
        posting = store.update_job_status(job_id, status)
    except JobNotFound:
        _fail(f"Job not found: {job_id}")
    console.print(f"[green]Job {posting.title} is now {posting.status}[/green]")


@app.command("delete-job")
def delete_job(
    job_id: str = typer.Argument(help="Job ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete a job together with all of its analyzed candidates."""
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    posting = store.get_job(job_id)
    if posting is None:
        _fail(f"Job not found: {job_id}")
    count = len(store.list_candidates(job_id))
    if not yes and not typer.confirm(
        f"Delete '{posting.title}' and {count} candidate(s)?"
    ):
        raise typer.Abort()
    store.delete_job(job_id)
    console.print(f"[green]Deleted job {posting.title} and {count} candidate(s)[/green]")


@app.command()
def upload(
    job_id: str = typer.Argument(help="Job ID to score against"),
    files: list[Path] = typer.Argument(help="Resume files (PDF/DOCX)"),
) -> None:
    """Analyze and store a batch of resumes for a job."""
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    if store.get_job(job_id) is None:
        _fail(f"Job not found: {job_id}")
    missing = [f for f in files if not f.exists()]
    if missing:
        _fail("File(s) not found: " + ", ".join(str(f) for f in missing))

    try:
        analyzer = _build_analyzer(config)
    except ScreenerError as exc:
        _fail(str(exc))
    processor = BatchProcessor(
        analyzer,
        store,
        extraction=config.extraction,
        usage_store=UsageStore(config.store.resolved_usage_db_path),
    )
    uploads = [
        UploadedFile(
            filename=f.name,
            content=f.read_bytes(),
            content_type=CONTENT_TYPES.get(f.suffix.lower(), ""),
        )
        for f in files
    ]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing resumes...", total=len(uploads))

        def on_progress(index: int, total: int, filename: str) -> None:
            progress.update(task, completed=index, description=filename or "Done")

        report = asyncio.run(processor.process(job_id, uploads, on_progress=on_progress))

    for outcome in report.outcomes:
        if outcome.success:
            analysis = outcome.candidate.analysis
            color = RECOMMENDATION_COLORS[analysis.recommendation]
            console.print(
                f"  [green]OK[/green] {outcome.filename}: {analysis.match_score:g} "
                f"[{color}]{analysis.recommendation}[/{color}]"
            )
        else:
            console.print(f"  [red]FAILED[/red] {outcome.filename}: {outcome.error}")

    summary = f"{report.succeeded} resume(s) analyzed successfully."
    if report.failed:
        summary += f" {report.failed} failed."
    if report.usage is not None:
        summary += f"\nEstimated cost: ${report.usage.estimated_cost_usd:.4f}"
    console.print(Panel(summary, title="Batch complete"))


@app.command()
def candidates(
    job_id: str = typer.Argument(help="Job ID"),
    recommendation: str = typer.Option(
        None, "--recommendation", "-r", help="Filter by Shortlist/Review/Reject"
    ),
    min_score: float = typer.Option(None, "--min-score", help="Minimum match score"),
    detail: bool = typer.Option(False, "--detail", help="Show full analysis for each candidate"),
) -> None:
    """List analyzed candidates for a job, best match first."""
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    posting = store.get_job(job_id)
    if posting is None:
        _fail(f"Job not found: {job_id}")

    records = store.list_candidates(job_id, recommendation=recommendation, min_score=min_score)
    if not records:
        console.print("[yellow]No candidates found.[/yellow]")
        return

    if detail:
        for r in records:
            _render_analysis(r.resume_filename, r.analysis)
        return

    table = Table(title=f"Candidates - {posting.title}")
    table.add_column("Name")
    table.add_column("File", style="dim")
    table.add_column("Match", justify="right")
    table.add_column("Skills", justify="right")
    table.add_column("Experience", justify="right")
    table.add_column("Recommendation")
    for r in records:
        a = r.analysis
        color = RECOMMENDATION_COLORS[a.recommendation]
        table.add_row(
            a.parsed_data.name,
            r.resume_filename,
            f"{a.match_score:g}",
            f"{a.skill_match_score:g}",
            f"{a.experience_match_score:g}",
            f"[{color}]{a.recommendation}[/{color}]",
        )
    console.print(table)


@app.command()
def stats() -> None:
    """Show dashboard totals and this month's usage."""
    config = load_config()
    store = CandidateStore(config.store.resolved_db_path)
    dash = store.dashboard_stats()
    usage = UsageStore(config.store.resolved_usage_db_path).get_monthly_stats()

    avg = dash["avg_match_score"]
    console.print(Panel(
        f"Jobs: {dash['total_jobs']} ({dash['active_jobs']} active)\n"
        f"Candidates: {dash['total_candidates']} | "
        f"[green]Shortlist {dash['shortlisted']}[/green] | "
        f"[yellow]Review {dash['review']}[/yellow] | "
        f"[red]Reject {dash['rejected']}[/red]\n"
        f"Average match: {avg if avg is not None else '-'}\n\n"
        f"{usage['month']}: {usage['total_runs']} run(s), "
        f"{usage['files_succeeded']}/{usage['files_total']} files, "
        f"{usage['fallback_count']} fallback(s), ${usage['total_cost_usd']:.4f}",
        title="Dashboard",
    ))


if __name__ == "__main__":
    app()
