"""Flask CLI commands for MicroHabits."""

from __future__ import annotations

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("microhabits-init-db")
    def microhabits_init_db() -> None:
        """Create database tables."""

        from .extensions import get_services
        from .infra.database import init_database

        init_database(get_services().engine)
        click.echo("Database initialized.")

    @app.cli.command("microhabits-stats")
    @click.argument("email")
    def microhabits_stats(email: str) -> None:
        """Print habit statistics and XP for the account EMAIL."""

        from .extensions import get_services, tracker_for
        from .services.auth import get_user_by_email
        from .services.gamification import calculate_xp

        services = get_services()
        user = get_user_by_email(email, session_factory=services.session_factory)
        if user is None:
            raise click.ClickException(f"No account for {email}")

        tracker = tracker_for(user)
        tracker.refresh()
        if tracker.error:
            raise click.ClickException(tracker.error)
        if not tracker.habits:
            click.echo("No habits yet.")
        for item in tracker.habits:
            stats = item.stats
            done = "x" if stats.is_completed_today else " "
            click.echo(
                f"[{done}] {item.habit.name}: streak {stats.current_streak} "
                f"(best {stats.longest_streak}), {stats.completion_rate:.0f}% "
                f"of {item.habit.target_frequency.value} target, "
                f"{stats.total_completions} total"
            )
        xp = calculate_xp(tracker.habits)
        click.echo(f"Level {xp.level} - {xp.total_xp} XP ({xp.xp_to_next_level} to next level)")
