from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

import click
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from vcs_core import logging as core_logging
from vcs_core import paths as core_paths
from vcs_core import shared as core_shared
from vcs_core.config import SiteConfig, load_site_config
from vcs_core.errors import ConfigError, TypedRepositoryError, typed_error_payload

from vcs_hub.api.routes import register_repository_routes
from vcs_hub.clone_uri import CloneURIComposer
from vcs_hub.commands import CommandBuilder, CommandSpec
from vcs_hub.credentials import CredentialResolver, JsonCredentialVault
from vcs_hub.domains import RepositoryDomain
from vcs_hub.integrations.command_runner import run_command_spec
from vcs_hub.services.repository_service import RepositoryService
from vcs_hub.store.state_store import RepositoryStateStore
from vcs_hub.validation import check_remote_uri

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8790
STATE_FILE_NAME = "state.json"
VAULT_FILE_NAME = "credentials.json"
HUB_LOG_LEVEL_CHOICES = ("critical", "error", "warning", "info", "debug")

LOGGER = logging.getLogger("vcs_hub")
LOGGER.addHandler(logging.NullHandler())


def _repo_root() -> Path:
    return core_shared.repo_root(Path(__file__))


def _default_config_file() -> Path:
    return core_shared.default_config_file(_repo_root())


def _normalize_log_level(value: Any) -> str:
    normalized = str(value or "").strip().lower()
    if normalized in HUB_LOG_LEVEL_CHOICES:
        return normalized
    return "info"


def _configure_hub_logging(level: str) -> None:
    core_logging.configure_structured_logger(LOGGER, level=_normalize_log_level(level))


def _resolve_hub_log_level(log_level: str | None, config: SiteConfig | None) -> str:
    cli_value = str(log_level or "").strip()
    if cli_value:
        return _normalize_log_level(cli_value)
    if config is not None:
        config_value = str(config.logging.values.get("level") or "").strip()
        if config_value:
            return _normalize_log_level(config_value)
    return "info"


def _configure_domain_log_levels(config: SiteConfig | None) -> None:
    if config is None:
        return
    core_logging.configure_domain_log_levels(
        domains=config.logging.values.get("domains"),
        logger_prefix="vcs_hub",
        normalize_level=_normalize_log_level,
    )


def _core_error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    typed_payload = typed_error_payload(exc)
    if typed_payload is not None:
        status_by_code = {
            "CONFIG_ERROR": 400,
            "UNSUPPORTED_VCS": 400,
            "MALFORMED_URI": 422,
            "AMBIGUOUS_SCP_SYNTAX": 422,
            "DISALLOWED_PROTOCOL": 422,
            "WORKING_COPY_UNAVAILABLE": 409,
            "CREDENTIAL_RESOLUTION_ERROR": 401,
            "CREDENTIAL_NOT_FOUND": 404,
            "COMMAND_FORMAT_ERROR": 500,
            "COMMAND_EXECUTION_ERROR": 502,
            "REPOSITORY_NOT_FOUND": 404,
        }
        status = status_by_code.get(str(typed_payload.get("error_code") or ""), 500)
        return status, typed_payload
    return 500, {"error_code": "INTERNAL_ERROR", "detail": core_logging.redact_log_text(str(exc))}


def _http_error_code(status_code: int) -> str:
    status = int(status_code or 500)
    if status == 400:
        return "BAD_REQUEST"
    if status == 404:
        return "NOT_FOUND"
    if status == 409:
        return "CONFLICT"
    if status == 422:
        return "UNPROCESSABLE_ENTITY"
    return f"HTTP_{status}"


def _uvicorn_log_level(hub_level: str) -> str:
    normalized = _normalize_log_level(hub_level)
    if normalized == "debug":
        return "info"
    return normalized


class RepositoryHub:
    """Wires configuration, persistence and the remote-access layer together."""

    def __init__(self, *, config: SiteConfig, data_dir: Path | None = None) -> None:
        self.config = config
        self.data_dir = Path(data_dir) if data_dir is not None else core_paths.resolve_vcs_hub_data_dir(
            config.paths.values
        )
        self.support_paths = core_paths.SupportPaths(
            wrapper_root=core_paths.resolve_wrapper_root(config.paths.values)
        )
        self.store = RepositoryStateStore(state_file=self.data_dir / STATE_FILE_NAME, lock=Lock())
        self.vault = JsonCredentialVault(vault_file=self.data_dir / VAULT_FILE_NAME)
        self.resolver = CredentialResolver(vault=self.vault)
        self.clone_uris = CloneURIComposer(diffusion=config.diffusion, resolver=self.resolver)
        self.commands = CommandBuilder(
            paths=self.support_paths,
            environment_name=config.environment.name,
            resolver=self.resolver,
        )
        self.repository_domain = RepositoryDomain(state=self)
        self.repository_service = RepositoryService(domain=self.repository_domain)


def create_app(state: RepositoryHub) -> FastAPI:
    app = FastAPI()
    app.state.hub_state = state

    @app.exception_handler(TypedRepositoryError)
    async def _handle_typed_repository_error(_request: Request, exc: TypedRepositoryError) -> JSONResponse:
        status, payload = _core_error_payload(exc)
        LOGGER.warning(
            "Request failed: %s",
            payload.get("detail"),
            extra={
                "component": "api",
                "operation": "request",
                "result": "error",
                "error_class": type(exc).__name__,
            },
        )
        return JSONResponse(status_code=status, content=payload)

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(_request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=int(exc.status_code or 500),
            content={"error_code": _http_error_code(int(exc.status_code or 500)), "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    register_repository_routes(app, state=state, logger=logging.getLogger("vcs_hub.api"))
    return app


def _load_hub(config_file: Path, data_dir: Path | None, log_level: str | None) -> tuple[RepositoryHub, str]:
    try:
        config = load_site_config(config_file)
    except ConfigError as exc:
        click.echo(
            json.dumps(
                {
                    "event": "vcs_hub_config_load_error",
                    "config_path": str(config_file),
                    "error": str(exc),
                },
                sort_keys=True,
            ),
            err=True,
        )
        raise click.ClickException(str(exc)) from exc
    normalized_log_level = _resolve_hub_log_level(log_level, config)
    _configure_hub_logging(normalized_log_level)
    _configure_domain_log_levels(config)
    return RepositoryHub(config=config, data_dir=data_dir), normalized_log_level


def _echo_typed_error(exc: TypedRepositoryError) -> None:
    click.echo(json.dumps(exc.payload(), sort_keys=True), err=True)


@click.group(help="Repository remote-access tooling.")
@click.option("--config-file", default=str(_default_config_file()), show_default=True, type=click.Path(dir_okay=False, path_type=Path), help="Site configuration TOML file.")
@click.option("--data-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for repository state and the credential vault (default: paths.data_dir).")
@click.option(
    "--log-level",
    default=None,
    show_default="config logging.level or info",
    type=click.Choice(HUB_LOG_LEVEL_CHOICES, case_sensitive=False),
    help="Logging verbosity.",
)
@click.pass_context
def main(ctx: click.Context, config_file: Path, data_dir: Path | None, log_level: str | None) -> None:
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["data_dir"] = data_dir
    ctx.obj["log_level"] = log_level


def _hub_from_context(ctx: click.Context) -> tuple[RepositoryHub, str]:
    obj = ctx.find_root().obj
    config_file = Path(obj["config_file"])
    if not config_file.exists():
        raise click.ClickException(f"Missing config file: {config_file}")
    return _load_hub(config_file, obj["data_dir"], obj["log_level"])


@main.command("serve", help="Run the repository HTTP API.")
@click.option("--host", default=DEFAULT_HOST, show_default=True)
@click.option("--port", default=DEFAULT_PORT, show_default=True, type=int)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    state, normalized_log_level = _hub_from_context(ctx)
    LOGGER.info(
        "Starting VCS Hub host=%s port=%s environment=%s",
        host,
        port,
        state.config.environment.name,
        extra={"component": "startup", "operation": "hub_start", "result": "started"},
    )
    app = create_app(state)
    uvicorn.run(app, host=host, port=port, log_level=_uvicorn_log_level(normalized_log_level))


@main.command("validate-uri", help="Check a remote URI against the allowed protocols.")
@click.argument("uri")
def validate_uri(uri: str) -> None:
    result = check_remote_uri(uri)
    click.echo(json.dumps(result.payload(), sort_keys=True))
    if not result.ok:
        raise SystemExit(1)


@main.command("clone-uri", help="Print the public clone URI for a repository.")
@click.argument("repository_id", type=int)
@click.pass_context
def clone_uri(ctx: click.Context, repository_id: int) -> None:
    state, _log_level = _hub_from_context(ctx)
    try:
        payload = state.repository_service.public_clone_uri(repository_id)
    except TypedRepositoryError as exc:
        _echo_typed_error(exc)
        raise SystemExit(1) from exc
    click.echo(payload["clone_uri"])


@main.command("store-credential", help="Store a username/password pair under a credential reference.")
@click.argument("credential_ref")
@click.option("--username", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_context
def store_credential(ctx: click.Context, credential_ref: str, username: str, password: str) -> None:
    state, _log_level = _hub_from_context(ctx)
    try:
        state.vault.store(credential_ref, username=username, password=password)
    except TypedRepositoryError as exc:
        _echo_typed_error(exc)
        raise SystemExit(1) from exc
    click.echo(f"Stored credential {credential_ref.strip()}.")


@main.command("remove-credential", help="Delete a credential reference from the vault.")
@click.argument("credential_ref")
@click.pass_context
def remove_credential(ctx: click.Context, credential_ref: str) -> None:
    state, _log_level = _hub_from_context(ctx)
    try:
        removed = state.vault.remove(credential_ref)
    except TypedRepositoryError as exc:
        _echo_typed_error(exc)
        raise SystemExit(1) from exc
    if not removed:
        raise click.ClickException(f"Unknown credential {credential_ref}.")
    click.echo(f"Removed credential {credential_ref}.")


@main.command("command", help="Build (and optionally run) a version control command for a repository.")
@click.argument("repository_id", type=int)
@click.argument("pattern")
@click.argument("args", nargs=-1)
@click.option("--local", "local", is_flag=True, default=False, help="Run against the working copy instead of the remote.")
@click.option("--with-remote-uri", is_flag=True, default=False, help="Append the authenticated remote URI as a final %P argument.")
@click.option("--execute", is_flag=True, default=False, help="Run the command after printing it.")
@click.pass_context
def command(
    ctx: click.Context,
    repository_id: int,
    pattern: str,
    args: tuple[str, ...],
    local: bool,
    with_remote_uri: bool,
    execute: bool,
) -> None:
    state, _log_level = _hub_from_context(ctx)
    service = state.repository_service
    try:
        command_args: list[Any] = list(args)
        if with_remote_uri:
            repository = service.repository(repository_id)
            command_args.append(state.clone_uris.remote_uri_envelope(repository))
        if local:
            spec: CommandSpec = service.build_local_command(repository_id, pattern, *command_args)
        else:
            spec = service.build_remote_command(repository_id, pattern, *command_args)
        click.echo(spec.display_command())
        for key in sorted(spec.env):
            click.echo(f"{key}={spec.env[key]}")
        if execute:
            result = run_command_spec(spec)
            click.echo(result.stdout, nl=False)
    except TypedRepositoryError as exc:
        _echo_typed_error(exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
