"""
Root Typer application for the dockhand CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from dockhand.cli.utils import (
    console,
    fail,
    guarded,
    make_orchestrator,
    output_outcome,
    output_workloads,
    print_dict,
    run_async,
)
from dockhand.core.models import Actor, GrantClass, GrantScope, Operation
from dockhand.service import ListFilter

app = Typer(
    name="dockhand",
    help="dockhand — permission-gated container lifecycle control.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("dockhand")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"dockhand {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """dockhand CLI — start, stop and repair containers on behalf of actors."""


# ── Workloads ────────────────────────────────────────────────────────────


@app.command("list")
def list_cmd(
    listing: ListFilter = typer.Option(ListFilter.ALL, "--filter", "-f", help="running, stopped or all"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List containers known to the runtime."""
    orchestrator = make_orchestrator()
    workloads = run_async(orchestrator.list_workloads(listing))
    title = "Containers" if listing is ListFilter.ALL else f"{listing.value.title()} containers"
    output_workloads(workloads, as_json=json_out, title=title)


@app.command("run")
def run_cmd(
    operation: str = typer.Argument(..., help="start, stop, restart or exec"),
    target: str = typer.Argument(..., help="Container name"),
    actor: str = typer.Option(..., "--actor", "-a", help="Requesting user id"),
    roles: list[str] = typer.Option([], "--role", "-r", help="Role ids held by the actor"),
    cli: str | None = typer.Option(None, "--cli", help="Shell command for exec"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one lifecycle operation against a container."""
    orchestrator = make_orchestrator()
    op = operation.strip().lower()
    if op in (Operation.START.value, Operation.STOP.value, Operation.RESTART.value) and not json_out:
        budget = orchestrator.policy.budget_seconds
        console.print(f"[dim]Awaiting response. This will take up to {budget} seconds.[/dim]")
    outcome = run_async(orchestrator.run_operation(Actor.of(actor, roles), op, target, cli))
    output_outcome(outcome, as_json=json_out)


@app.command("fix")
def fix_cmd(
    actor: str = typer.Option(..., "--actor", "-a", help="Requesting user id"),
    roles: list[str] = typer.Option([], "--role", "-r", help="Role ids held by the actor"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run the remediation workflow (stop group, start primary, start dependents)."""
    orchestrator = make_orchestrator()
    if not json_out:
        console.print(f"[dim]Starting {orchestrator.remediation.name}. This may take several minutes...[/dim]")
    outcome = run_async(orchestrator.run_operation(Actor.of(actor, roles), Operation.REMEDIATE))
    output_outcome(outcome, as_json=json_out)


@app.command("health")
def health_cmd(json_out: bool = typer.Option(False, "--json")) -> None:
    """Check that the runtime answers and count its containers."""
    orchestrator = make_orchestrator()
    report = run_async(orchestrator.health())
    if json_out:
        console.print_json(data=report)
    else:
        print_dict(report, title="Health")
    if not report["healthy"]:
        raise typer.Exit(code=1)


# ── Permissions ──────────────────────────────────────────────────────────


def _subject_label(subject: str, scope: GrantScope) -> str:
    return f"role {subject}" if scope is GrantScope.ROLE else subject


@app.command("grant")
def grant_cmd(
    subject: str = typer.Argument(..., help="User or role id"),
    workload: str = typer.Argument(..., help="Container name"),
    grant_class: GrantClass = typer.Option(..., "--class", "-c", help="start or stop"),
    scope: GrantScope = typer.Option(GrantScope.USER, "--scope", "-s", help="user or role"),
) -> None:
    """Allow a user or role to start or stop a container."""
    orchestrator = make_orchestrator()
    label = _subject_label(subject, scope)
    if run_async(orchestrator.grant(subject, workload, grant_class, scope)):
        console.print(f"Added {grant_class.value} permission for {label} on container {workload}.")
    else:
        console.print(f"{label} already has {grant_class.value} permission on container {workload}.")


@app.command("revoke")
def revoke_cmd(
    subject: str = typer.Argument(..., help="User or role id"),
    workload: str = typer.Argument(..., help="Container name"),
    grant_class: GrantClass = typer.Option(..., "--class", "-c", help="start or stop"),
    scope: GrantScope = typer.Option(GrantScope.USER, "--scope", "-s", help="user or role"),
) -> None:
    """Remove a start or stop grant."""
    orchestrator = make_orchestrator()
    label = _subject_label(subject, scope)
    if guarded(orchestrator.revoke, subject, workload, grant_class, scope):
        console.print(f"Removed {grant_class.value} permission for {label} on container {workload}.")
    else:
        console.print(f"{label} has no {grant_class.value} permission on container {workload}.")


@app.command("grants")
def grants_cmd(
    subject: str = typer.Argument(..., help="User or role id"),
    scope: GrantScope = typer.Option(GrantScope.USER, "--scope", "-s", help="user or role"),
) -> None:
    """Show the grants recorded for one user or role."""
    orchestrator = make_orchestrator()
    grants = guarded(orchestrator.grants_for, subject, scope)
    console.print(f"[bold]Permissions for {_subject_label(subject, scope)}:[/bold]")
    if not grants[GrantClass.START] and not grants[GrantClass.STOP]:
        console.print("No permissions configured.")
        return
    if grants[GrantClass.START]:
        console.print("[bold]Start Permissions:[/bold]")
        console.print("\n".join(grants[GrantClass.START]))
    if grants[GrantClass.STOP]:
        console.print("[bold]Stop/Restart Permissions:[/bold]")
        console.print("\n".join(grants[GrantClass.STOP]))


@app.command("permissions")
def permissions_cmd(
    actor: str = typer.Option(..., "--actor", "-a", help="User id"),
    roles: list[str] = typer.Option([], "--role", "-r", help="Role ids held by the actor"),
) -> None:
    """Show everything an actor may do, merged across user and role grants."""
    orchestrator = make_orchestrator()
    permissions = guarded(orchestrator.effective_permissions, Actor.of(actor, roles))
    available = None
    if permissions.is_admin:
        available = [w.display_name for w in run_async(orchestrator.list_workloads())]
    console.print(permissions.render(available), markup=False, highlight=False)


# ── Admins ───────────────────────────────────────────────────────────────

admin_app = Typer(no_args_is_help=True)
app.add_typer(admin_app, name="admin", help="Admin list management.")


@admin_app.command("add")
def admin_add(actor: str = typer.Argument(..., help="User id")) -> None:
    """Give a user full access."""
    if guarded(make_orchestrator().add_admin, actor):
        console.print(f"Added {actor} to admin list successfully.")
    else:
        fail(f"User {actor} is already an admin.")


@admin_app.command("remove")
def admin_remove(actor: str = typer.Argument(..., help="User id")) -> None:
    """Remove a user from the admin list."""
    if guarded(make_orchestrator().remove_admin, actor):
        console.print(f"Removed {actor} from admin list successfully.")
    else:
        fail(f"User {actor} is not an admin.")


@admin_app.command("list")
def admin_list() -> None:
    """List admin user ids."""
    admins = guarded(make_orchestrator().list_admins)
    if not admins:
        console.print("No admins are configured.")
        return
    console.print("[bold]Admin Users:[/bold]")
    for admin in admins:
        console.print(admin)
