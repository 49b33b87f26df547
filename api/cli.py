"""Maintenance commands, run with `flask --app api <command>`."""
import click
from flask import current_app


def register_commands(app):
    @app.cli.command("purge-refresh-tokens")
    def purge_refresh_tokens():
        """Delete refresh tokens that are past their expiry."""
        count = current_app.extensions["auth"].refresh_tokens.purge_expired()
        click.echo(f"Purged {count} expired refresh token(s)")
