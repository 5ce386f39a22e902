"""shry CLI entry point."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shry import __version__, cli_logger, exit_codes
from shry.add import AddResult, DestinationConflictError, FileOutcome, FileStatus, add_component
from shry.cache import RegistryCache, RegistryCacheError
from shry.component import ComponentIndex, ComponentLoadError, DuplicateComponentError, group_by_category
from shry.component_schema import ComponentSchema, MissingVariablesError
from shry.errors import handle_cli_error
from shry.git import AuthenticationRequiredError, GitCommandError, is_git_available
from shry.global_config import (
    GlobalConfig,
    HttpAuth,
    RegistryAuth,
    SshAuth,
    load_global_config,
    save_global_config,
)
from shry.interaction import ConsoleInteraction
from shry.location import is_git_location, split_registry_spec
from shry.paths import CACHE_DIR_ENV_VAR, GLOBAL_CONFIG_ENV_VAR, get_cache_dir, get_global_config_path
from shry.project_config import (
    PROJECT_CONFIG_FILE,
    ProjectConfig,
    ProjectNotFoundError,
    find_nearest_project_config,
    load_project_config,
    save_project_config,
)
from shry.registry import ComponentLookupError, Registry
from shry.template import VariableNotDefinedError

app = typer.Typer(
    name="shry",
    help="Add and share components for generic projects and platforms.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage global configuration.", no_args_is_help=True)
registry_app = typer.Typer(help="Manage component registries.", no_args_is_help=True)
cache_app = typer.Typer(help="Manage the registry cache.", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(registry_app, name="registry")
app.add_typer(cache_app, name="cache")

console = Console()

FILE_STATUS_LABELS = {
    FileStatus.ADDED: "[green]Added[/green]",
    FileStatus.UNCHANGED: "[dim]Unchanged[/dim]",
    FileStatus.SKIPPED: "[yellow]Skipped[/yellow]",
    FileStatus.OVERWRITTEN: "[blue]Overwrote[/blue]",
}


@dataclass
class Settings:
    """Global options shared by all commands."""

    cache_dir: Path
    global_config_path: Path
    verbose: bool = False


def get_settings(ctx: typer.Context) -> Settings:
    """Return the settings stored by the main callback."""
    settings = ctx.find_object(Settings)
    if settings is None:
        settings = Settings(cache_dir=get_cache_dir(), global_config_path=get_global_config_path())
    return settings


def require_git() -> None:
    """Verify git is available on the system.

    Raises:
        typer.Exit: With GIT_ERROR if git is not available.
    """
    if not is_git_available():
        cli_logger.error("Git is not available")
        cli_logger.dim("  • shry requires git to access remote registries")
        raise typer.Exit(exit_codes.GIT_ERROR)


def require_project() -> ProjectConfig:
    """Find and load the nearest project config.

    Raises:
        typer.Exit: With PROJECT_NOT_INITIALIZED if there is no project config.
        typer.Exit: With CONFIG_INVALID if the project config is invalid.
    """
    try:
        return find_nearest_project_config()
    except ProjectNotFoundError as e:
        cli_logger.error(str(e))
        cli_logger.info("  Run [bold]shry init[/bold] first.")
        raise typer.Exit(exit_codes.PROJECT_NOT_INITIALIZED) from None
    except ValueError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from None


def require_global_config(settings: Settings) -> GlobalConfig:
    """Load the global config.

    Raises:
        typer.Exit: With CONFIG_INVALID if the global config is invalid.
    """
    try:
        return load_global_config(settings.global_config_path)
    except ValueError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from None


def open_registry(
    cache: RegistryCache,
    location: str,
    ref: str,
    project_root: Path,
) -> Registry:
    """Resolve a registry, turning failures into CLI errors.

    Raises:
        typer.Exit: With AUTH_REQUIRED, GIT_ERROR or GENERAL_ERROR.
    """
    if is_git_location(location):
        require_git()

    try:
        return cache.get_registry(location, ref, project_root)
    except AuthenticationRequiredError:
        cli_logger.error(f"Authentication required for registry {location}")
        cli_logger.info(
            f"  Configure credentials with [bold]shry config set-auth --registry {escape(location)}[/bold]"
        )
        raise typer.Exit(exit_codes.AUTH_REQUIRED) from None
    except GitCommandError as e:
        cli_logger.error(f"Failed to fetch registry {location}: {e}")
        raise typer.Exit(exit_codes.GIT_ERROR) from None
    except RegistryCacheError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.GIT_ERROR) from None
    except FileNotFoundError as e:
        cli_logger.error(f"Registry not found: {e.filename or location}")
        raise typer.Exit(exit_codes.GENERAL_ERROR) from None


def scan_registry(registry: Registry) -> ComponentIndex:
    """Scan a registry for components, turning manifest errors into CLI errors.

    Raises:
        typer.Exit: With CONFIG_INVALID if a manifest is invalid or duplicated.
    """
    try:
        return registry.scan_components()
    except (ComponentLoadError, DuplicateComponentError) as e:
        cli_logger.error(f"Invalid registry {registry.name}: {e}")
        raise typer.Exit(exit_codes.CONFIG_INVALID) from None


def count_components(components: ComponentIndex) -> int:
    """Total number of components across all platforms."""
    return sum(len(platform_components) for platform_components in components.values())


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"shry {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    cache_dir: Annotated[
        Path | None,
        typer.Option(
            "--cache-dir",
            envvar=CACHE_DIR_ENV_VAR,
            help="Directory to cache component registries. Defaults to ~/.cache/shry",
        ),
    ] = None,
    global_config: Annotated[
        Path | None,
        typer.Option(
            "--global-config",
            envvar=GLOBAL_CONFIG_ENV_VAR,
            help="Global config path. Defaults to ~/.config/shry/config.yaml",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", envvar="SHRY_VERBOSE", help="Show git commands and progress."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show shry version and exit.",
        ),
    ] = False,
) -> None:
    """Add and share components for generic projects and platforms."""
    cli_logger.set_verbose(verbose)
    ctx.obj = Settings(
        cache_dir=cache_dir or get_cache_dir(),
        global_config_path=global_config or get_global_config_path(),
        verbose=verbose,
    )


@app.command()
def init(
    ctx: typer.Context,
    registry: Annotated[
        str | None,
        typer.Option(
            "--registry",
            "-r",
            help="Registry location, e.g. github.com/org/components[@ref] or ./components",
        ),
    ] = None,
    platform: Annotated[
        str | None,
        typer.Option("--platform", "-p", help="Platform to use for the project."),
    ] = None,
) -> None:
    """Initialize a project in the current directory.

    Creates .shry.yaml or updates the registry and platform of an existing one.
    Prompts for the registry (from the global config) and the platform when
    they are not given.
    """
    settings = get_settings(ctx)
    global_config = require_global_config(settings)
    interaction = ConsoleInteraction(console)

    if not registry:
        locations = global_config.registry_locations()
        if not locations:
            cli_logger.error("No registry specified and no registries configured")
            cli_logger.info("  Add one with [bold]shry registry add <location>[/bold] or pass --registry.")
            raise typer.Exit(exit_codes.INVALID_ARGS)
        registry = interaction.select("Select a registry", locations)
        if registry is None:
            cli_logger.info("Init cancelled")
            raise typer.Exit(exit_codes.SUCCESS)

    location, ref = split_registry_spec(registry)
    project_dir = Path.cwd()
    cache = RegistryCache(settings.cache_dir, global_config, verbose=settings.verbose)
    components = scan_registry(open_registry(cache, location, ref, project_dir))

    if platform:
        if platform not in components:
            cli_logger.error(f"Platform '{platform}' not found in registry {location}")
            if components:
                cli_logger.dim(f"  • Available platforms: {', '.join(sorted(components))}")
            raise typer.Exit(exit_codes.COMPONENT_NOT_FOUND)
    else:
        if not components:
            cli_logger.error(f"Registry {location} contains no components")
            raise typer.Exit(exit_codes.COMPONENT_NOT_FOUND)
        platform = interaction.select("Select a platform", sorted(components))
        if platform is None:
            cli_logger.info("Init cancelled")
            raise typer.Exit(exit_codes.SUCCESS)

    try:
        config = load_project_config(project_dir)
        config.registry = registry
        config.platform = platform
    except FileNotFoundError:
        config = ProjectConfig(registry=registry, platform=platform, project_dir=project_dir)
    except ValueError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from None

    config_path = save_project_config(config)
    cli_logger.success(f"Initialized project at {config_path}")
    cli_logger.dim(f"  • Registry: {registry}")
    cli_logger.dim(f"  • Platform: {platform}")


class ConsoleAddListener:
    """Prints progress while components are added."""

    def component_started(self, component: ComponentSchema, is_dependency: bool) -> None:
        kind = "dependency" if is_dependency else "component"
        cli_logger.info(f"Adding {kind} [bold]{escape(component.name)}[/bold]...")

    def file_processed(self, outcome: FileOutcome) -> None:
        cli_logger.info(f"  {FILE_STATUS_LABELS[outcome.status]} {escape(outcome.dst)}")


def _print_add_summary(result: AddResult) -> None:
    added = result.count(FileStatus.ADDED) + result.count(FileStatus.OVERWRITTEN)
    cli_logger.success(
        f"Added {len(result.components)} component(s), "
        f"{added} file(s) written, {result.count(FileStatus.UNCHANGED)} unchanged, "
        f"{result.count(FileStatus.SKIPPED)} skipped"
    )


@app.command()
def add(
    ctx: typer.Context,
    component: Annotated[
        str | None,
        typer.Argument(help="Component name. Prompts for a component when omitted."),
    ] = None,
) -> None:
    """Add a component and its dependencies to the project.

    Variables from .shry.yaml are substituted into file paths and contents.
    Existing files with different content can be skipped, overwritten or
    compared first.
    """
    settings = get_settings(ctx)
    project = require_project()
    global_config = require_global_config(settings)
    cache = RegistryCache(settings.cache_dir, global_config, verbose=settings.verbose)
    registry = open_registry(cache, project.registry_location, project.registry_ref, project.project_dir)
    interaction = ConsoleInteraction(console)

    if component is None:
        platform_components = scan_registry(registry).get(project.platform, {})
        if not platform_components:
            cli_logger.error(f"No components found for platform '{project.platform}'")
            raise typer.Exit(exit_codes.COMPONENT_NOT_FOUND)
        component = interaction.select("Select a component", sorted(platform_components))
        if component is None:
            cli_logger.info("Add cancelled")
            raise typer.Exit(exit_codes.SUCCESS)

    result = AddResult()
    try:
        add_component(project, registry, component, interaction, result, ConsoleAddListener())
    except ComponentLookupError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.COMPONENT_NOT_FOUND) from None
    except (MissingVariablesError, VariableNotDefinedError) as e:
        cli_logger.error(str(e))
        cli_logger.info(f"  Define it under [bold]variables[/bold] in {PROJECT_CONFIG_FILE}.")
        raise typer.Exit(exit_codes.VARIABLE_NOT_DEFINED) from None
    except (ComponentLoadError, DuplicateComponentError) as e:
        cli_logger.error(f"Invalid registry {registry.name}: {e}")
        raise typer.Exit(exit_codes.CONFIG_INVALID) from None
    except DestinationConflictError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.GENERAL_ERROR) from None
    except OSError as e:
        cli_logger.error(f"Failed to add component: {e.strerror or e}: {e.filename}")
        raise typer.Exit(exit_codes.GENERAL_ERROR) from None

    _print_add_summary(result)


@app.command(name="ls")
def list_components(ctx: typer.Context) -> None:
    """List the components available for the project's platform."""
    settings = get_settings(ctx)
    project = require_project()
    global_config = require_global_config(settings)
    cache = RegistryCache(settings.cache_dir, global_config, verbose=settings.verbose)
    registry = open_registry(cache, project.registry_location, project.registry_ref, project.project_dir)

    platform_components = scan_registry(registry).get(project.platform, {})
    if not platform_components:
        cli_logger.dim(f"No components found for platform '{project.platform}'.")
        raise typer.Exit(exit_codes.SUCCESS)

    table = Table(
        title=f"Components for platform {escape(project.platform)}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("CATEGORY", style="magenta")
    table.add_column("NAME", style="cyan")
    table.add_column("DESCRIPTION")

    for category, components in group_by_category(platform_components.values()):
        for index, component in enumerate(components):
            table.add_row(
                escape(category) if index == 0 else "",
                escape(component.name),
                escape(component.description or component.display_title),
            )

    console.print(table)


def _auth_from_options(
    username: str | None,
    password: str | None,
    private_key: str | None,
    key_password: str | None,
) -> RegistryAuth | None:
    """Build credentials from command line options, None if none were given."""
    if not username and not private_key:
        return None
    return RegistryAuth(
        http=HttpAuth(username=username, password=password or "") if username else None,
        ssh=SshAuth(private_key_path=private_key, password=key_password or None) if private_key else None,
    )


def _prompt_auth(
    username: str | None,
    password: str | None,
    private_key: str | None,
    key_password: str | None,
) -> RegistryAuth:
    """Ask for an authentication method and any credentials not given as options."""
    method = ConsoleInteraction(console).choose(
        "Authentication required. Choose authentication method", ["http", "ssh"]
    )

    if method == "http":
        username = username or typer.prompt("Username")
        password = password or typer.prompt("Password or token", hide_input=True)
        return RegistryAuth(http=HttpAuth(username=username, password=password))

    private_key = private_key or typer.prompt("Path to private key file")
    if key_password is None:
        key_password = typer.prompt(
            "Password for private key (empty if not encrypted)",
            default="",
            hide_input=True,
            show_default=False,
        )
    return RegistryAuth(ssh=SshAuth(private_key_path=private_key, password=key_password or None))


UsernameOption = Annotated[str | None, typer.Option("--username", help="Username for HTTP authentication.")]
PasswordOption = Annotated[
    str | None, typer.Option("--password", help="Password or token for HTTP authentication.")
]
PrivateKeyOption = Annotated[
    str | None, typer.Option("--private-key", help="Path to private key file for SSH authentication.")
]
KeyPasswordOption = Annotated[
    str | None, typer.Option("--key-password", help="Password for the private key (if encrypted).")
]


@registry_app.command(name="add")
def registry_add(
    ctx: typer.Context,
    location: Annotated[
        str,
        typer.Argument(help="Registry location: git host/path, git URL or local directory."),
    ],
    username: UsernameOption = None,
    password: PasswordOption = None,
    private_key: PrivateKeyOption = None,
    key_password: KeyPasswordOption = None,
) -> None:
    """Add a registry to the global config.

    Verifies that the registry can be fetched and scanned. If the registry
    requires authentication, prompts for credentials and tries once more.
    """
    settings = get_settings(ctx)
    global_config = require_global_config(settings)
    location, ref = split_registry_spec(location)
    cache = RegistryCache(settings.cache_dir, global_config, verbose=settings.verbose)

    if is_git_location(location):
        require_git()
        auth = _auth_from_options(username, password, private_key, key_password)
        if auth is not None:
            global_config.set_auth(location, auth)
        try:
            registry = cache.get_registry(location, ref)
        except AuthenticationRequiredError:
            global_config.set_auth(location, _prompt_auth(username, password, private_key, key_password))
            registry = open_registry(cache, location, ref, Path.cwd())
        except (GitCommandError, RegistryCacheError) as e:
            cli_logger.error(f"Failed to access registry {location}: {e}")
            raise typer.Exit(exit_codes.GIT_ERROR) from None
        name = location
    else:
        registry = open_registry(cache, location, ref, Path.cwd())
        name = registry.name

    components = scan_registry(registry)

    global_config.add_registry(name)
    save_global_config(global_config)

    cli_logger.success(f"Added registry {name}")
    if not components:
        cli_logger.warning("Registry contains no components")
        return
    cli_logger.info("Found components for platforms:")
    for platform in sorted(components):
        cli_logger.info(f"  • {escape(platform)} ({len(components[platform])} components)")


@registry_app.command(name="list")
def registry_list(ctx: typer.Context) -> None:
    """List configured registries with their status."""
    settings = get_settings(ctx)
    global_config = require_global_config(settings)
    locations = global_config.registry_locations()

    if not locations:
        cli_logger.dim("No registries configured.")
        cli_logger.info("  Add one with [bold]shry registry add <location>[/bold].")
        raise typer.Exit(exit_codes.SUCCESS)

    cache = RegistryCache(settings.cache_dir, global_config, verbose=settings.verbose)

    table = Table(show_header=True, header_style="bold")
    table.add_column("REGISTRY", style="cyan")
    table.add_column("STATUS")
    table.add_column("PLATFORMS", justify="right")
    table.add_column("COMPONENTS", justify="right")

    for location in locations:
        try:
            components = cache.get_registry(location).scan_components()
        except (
            GitCommandError,
            RegistryCacheError,
            ComponentLoadError,
            DuplicateComponentError,
            OSError,
        ) as e:
            cli_logger.debug(f"{location}: {e}")
            table.add_row(escape(location), "[red]error[/red]", "-", "-")
            continue
        table.add_row(
            escape(location),
            "[green]ok[/green]",
            str(len(components)),
            str(count_components(components)),
        )

    console.print(table)


@registry_app.command(name="remove")
def registry_remove(
    ctx: typer.Context,
    location: Annotated[
        str | None,
        typer.Argument(help="Registry location to remove. Prompts when omitted."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a registry and its credentials from the global config."""
    settings = get_settings(ctx)
    global_config = require_global_config(settings)
    interaction = ConsoleInteraction(console)

    if location is None:
        locations = global_config.registry_locations()
        if not locations:
            cli_logger.dim("No registries configured.")
            raise typer.Exit(exit_codes.SUCCESS)
        location = interaction.select("Select a registry to remove", locations)
        if location is None:
            cli_logger.info("Remove cancelled")
            raise typer.Exit(exit_codes.SUCCESS)

    if location not in global_config.registries:
        cli_logger.error(f"Registry {location} not found")
        raise typer.Exit(exit_codes.INVALID_ARGS)

    if not force and not interaction.confirm(
        f"Remove registry {location}?",
        "Stored credentials for this registry will be deleted.",
    ):
        cli_logger.info("Remove cancelled")
        raise typer.Exit(exit_codes.SUCCESS)

    global_config.remove_registry(location)
    save_global_config(global_config)
    cli_logger.success(f"Removed registry {location}")


RegistryOption = Annotated[
    str,
    typer.Option("--registry", "-r", help="Registry location, e.g. github.com/org/components"),
]


@config_app.command(name="set-auth")
def config_set_auth(
    ctx: typer.Context,
    registry: RegistryOption,
    username: UsernameOption = None,
    password: PasswordOption = None,
    private_key: PrivateKeyOption = None,
    key_password: KeyPasswordOption = None,
) -> None:
    """Set authentication for a registry.

    HTTP credentials (--username/--password) take precedence over SSH
    credentials (--private-key/--key-password) when both are set.
    """
    settings = get_settings(ctx)
    global_config = require_global_config(settings)

    auth = _auth_from_options(username, password, private_key, key_password)
    if auth is None:
        cli_logger.error("Specify --username or --private-key")
        raise typer.Exit(exit_codes.INVALID_ARGS)

    global_config.set_auth(registry, auth)
    save_global_config(global_config)
    cli_logger.success(f"Authentication configured for registry {registry}")


@config_app.command(name="remove-auth")
def config_remove_auth(ctx: typer.Context, registry: RegistryOption) -> None:
    """Remove authentication for a registry."""
    settings = get_settings(ctx)
    global_config = require_global_config(settings)

    if not global_config.remove_auth(registry):
        cli_logger.warning(f"Registry {registry} not configured (no-op)")
        raise typer.Exit(exit_codes.SUCCESS)

    save_global_config(global_config)
    cli_logger.success(f"Authentication removed for registry {registry}")


@cache_app.command(name="list")
def cache_list(ctx: typer.Context) -> None:
    """List cached git registries."""
    settings = get_settings(ctx)
    cache = RegistryCache(settings.cache_dir, GlobalConfig())

    registries = cache.list_registries()
    if not registries:
        cli_logger.dim(f"No cached registries in {settings.cache_dir}.")
        raise typer.Exit(exit_codes.SUCCESS)

    for registry in registries:
        cli_logger.info(escape(registry))


@cache_app.command(name="clear")
def cache_clear(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete all cached registries."""
    settings = get_settings(ctx)

    if not force and not ConsoleInteraction(console).confirm(
        f"Delete cache directory {settings.cache_dir}?",
        "Registries will be cloned again on next use.",
    ):
        cli_logger.info("Clear cancelled")
        raise typer.Exit(exit_codes.SUCCESS)

    RegistryCache(settings.cache_dir, GlobalConfig()).clear()
    cli_logger.success(f"Cleared registry cache at {settings.cache_dir}")


def main_cli() -> None:
    """CLI entry point with top-level exception handling.

    Wraps the Typer app to catch any unhandled exceptions and format them
    as clean error messages instead of raw tracebacks.
    """
    try:
        app()
    except Exception as e:
        sys.exit(handle_cli_error(e))


if __name__ == "__main__":
    main_cli()
