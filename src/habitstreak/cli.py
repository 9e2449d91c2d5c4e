"""Command line interface for HabitStreak."""

from __future__ import annotations

import json

import click

from .config import resolve_config
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .models.habit import HabitFrequency
from .services import habits as habit_service
from .services.frequency import is_completed_today, is_overdue

pass_app = click.make_pass_decorator(AppContext)


def _user_id(app: AppContext) -> str:
    try:
        return app.require_user_id()
    except RuntimeError as exc:
        raise click.UsageError(str(exc)) from exc


@click.group()
@click.option("--user", "user_id", envvar="HABITSTREAK_USER_ID", help="Current user id.")
@click.option("--env", "env_name", envvar="HABITSTREAK_ENV", default=None, help="Config profile.")
@click.pass_context
def cli(ctx: click.Context, user_id: str | None, env_name: str | None) -> None:
    """Track habits and the streaks derived from their completions."""

    if ctx.obj is None:
        config = resolve_config(env_name)()
        setup_logging(config)
        ctx.obj = create_app_context(config, user_id=user_id)
    elif user_id:
        ctx.obj.current_user_id = user_id


@cli.command("add")
@click.argument("title")
@click.option("--description", "-d", required=True, help="What the habit involves.")
@click.option(
    "--frequency",
    "-f",
    type=click.Choice([item.value for item in HabitFrequency]),
    default=HabitFrequency.DAILY.value,
    show_default=True,
)
@pass_app
def add_habit(app: AppContext, title: str, description: str, frequency: str) -> None:
    """Create a new habit."""

    payload = {"title": title, "description": description, "frequency": frequency}
    try:
        habit = habit_service.create_habit(app.habit_repo, payload, user_id=_user_id(app))
    except habit_service.HabitValidationError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Created habit {habit.id}: {habit.title}")


@cli.command("list")
@pass_app
def list_habits(app: AppContext) -> None:
    """Show habits with today's status."""

    dashboard = app.dashboard().load()
    try:
        if not dashboard.habits:
            click.echo("No habits yet.")
            return
        for habit in dashboard.habits:
            if is_completed_today(habit):
                status = "done today"
            elif is_overdue(habit):
                status = "overdue"
            else:
                status = "on track"
            click.echo(
                f"{habit.id}  {habit.title}  [{habit.frequency}]  "
                f"{habit.streak_count} day streak  {status}"
            )
        click.echo(dashboard.today_summary().label)
    finally:
        dashboard.close()


@cli.command("complete")
@click.argument("habit_id")
@pass_app
def complete(app: AppContext, habit_id: str) -> None:
    """Mark a habit complete for today."""

    try:
        completion = habit_service.complete_habit(app.habit_repo, habit_id, user_id=_user_id(app))
    except habit_service.HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    if completion is None:
        click.echo("Already completed today.")
    else:
        click.echo(f"Completed {habit_id} at {completion.completed_at:%Y-%m-%d %H:%M}")


@cli.command("delete")
@click.argument("habit_id")
@click.confirmation_option(prompt="Delete this habit and its history?")
@pass_app
def delete(app: AppContext, habit_id: str) -> None:
    """Delete a habit and its completions."""

    try:
        habit_service.delete_habit(app.habit_repo, habit_id, user_id=_user_id(app))
    except habit_service.HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {habit_id}")


@cli.command("streaks")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON.")
@click.option("--top", type=int, default=None, help="Only the N best habits.")
@pass_app
def streaks(app: AppContext, as_json: bool, top: int | None) -> None:
    """Show streaks ranked by longest streak."""

    dashboard = app.dashboard().load()
    try:
        ranked = dashboard.top_performers(top) if top else dashboard.ranked()
    finally:
        dashboard.close()

    if as_json:
        rows = [
            {"habitId": item.habit.id, "title": item.habit.title, **item.streak.as_payload()}
            for item in ranked
        ]
        click.echo(json.dumps(rows, indent=2))
        return

    if not ranked:
        click.echo("No habits yet.")
        return
    for position, item in enumerate(ranked, start=1):
        click.echo(
            f"{position}. {item.habit.title}: current {item.current_streak}, "
            f"longest {item.longest_streak}, total {item.total_completions}"
        )


@cli.command("reconcile")
@click.argument("habit_id", required=False)
@pass_app
def reconcile(app: AppContext, habit_id: str | None) -> None:
    """Rewrite cached streak counts from completion history."""

    user_id = _user_id(app)
    habit_ids = [habit_id] if habit_id else [h.id for h in app.habit_repo.list_by_owner(user_id=user_id)]
    for target in habit_ids:
        try:
            habit = habit_service.reconcile_habit(app.habit_repo, target, user_id=user_id)
        except habit_service.HabitNotFoundError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"{habit.id}: streak_count={habit.streak_count}")


def main() -> None:  # pragma: no cover - console entry point
    cli()


__all__ = ["cli", "main"]
