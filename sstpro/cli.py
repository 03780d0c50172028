# sstpro/cli.py
import click
from flask import Flask

from .db import apply_schema
from .models import UserRole
from .services.user_service import UserService


def register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db_command():
        """Cria tabelas e a view do painel (schema.sql)."""
        apply_schema()
        click.echo("Schema aplicado.")

    @app.cli.command("hash-password")
    @click.argument("password", required=False)
    def hash_password_command(password):
        """Gera o hash bcrypt para popular profiles.password_hash."""
        if not password:
            password = click.prompt("Senha", hide_input=True, confirmation_prompt=True)
        click.echo(UserService.hash_password(password))

    @app.cli.command("create-user")
    @click.option("--name", required=True)
    @click.option("--email", required=True)
    @click.option("--role", type=click.Choice([r.value for r in UserRole]), required=True)
    @click.option("--company-id", default=None, help="Obrigatório para EMPRESA.")
    @click.option("--registration", default="", help="Registro profissional do técnico.")
    @click.password_option("--password")
    def create_user_command(name, email, role, company_id, registration, password):
        """Cadastra um perfil (técnico ou usuário de empresa)."""
        try:
            user_id = UserService().create_user(name, email, password, role, company_id, registration)
        except ValueError as e:
            raise click.ClickException(str(e))
        click.echo(f"Perfil criado: {user_id}")
