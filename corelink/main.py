"""Main entry point for the corelink application.

Sets up the Typer CLI application, performs dependency injection (Composition
Root), defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Annotated, Any, Awaitable, Callable, Dict, Optional

import typer

from corelink.core.command_handler import CommandHandler
from corelink.core.services.core_api_service import CoreApiService
from corelink.core.services.endpoint_resolver import EndpointResolver
from corelink.domain.errors import StorageError
from corelink.infrastructure.cli.display import ConsoleDisplay
from corelink.infrastructure.config.settings import get_config, load_node_settings
from corelink.infrastructure.discovery.dns_resolver import DnsTxtResolver
from corelink.infrastructure.http.httpx_transport import HttpxTransport
from corelink.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, resolve_log_level, setup_logging
from corelink.infrastructure.resilience.request_dispatcher import CoreRequestDispatcher
from corelink.infrastructure.state.disk_store import DiskKeyValueStore
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay()}
    try:
        # 1. Configuration and logging
        settings = load_node_settings()
        setup_logging(
            log_level=resolve_log_level(get_config('logging.level', 'INFO')),
            log_file=get_config('logging.file'),
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        )
        dependencies['settings'] = settings

        # 2. Infrastructure adapters
        dependencies['state_store'] = DiskKeyValueStore(settings.state_dir)
        dependencies['endpoint_store'] = CurrentEndpointStore(dependencies['state_store'], settings.endpoint_mode)
        dependencies['txt_resolver'] = DnsTxtResolver(lifetime=settings.dns_timeout_s)
        dependencies['transport'] = HttpxTransport(timeout=settings.request_timeout_s)

        # 3. Resilience and core services
        dependencies['dispatcher'] = CoreRequestDispatcher(
            endpoint_store=dependencies['endpoint_store'],
            transport=dependencies['transport'],
            node_version=settings.node_version,
            node_address=settings.node_address,
            policy=settings.retry_policy,
        )
        dependencies['core_api'] = CoreApiService(dependencies['dispatcher'])
        dependencies['resolver'] = EndpointResolver(
            endpoint_mode=settings.endpoint_mode,
            endpoint_store=dependencies['endpoint_store'],
            txt_resolver=dependencies['txt_resolver'],
        )

        # 4. Command handler
        dependencies['command_handler'] = CommandHandler(
            settings=settings,
            resolver=dependencies['resolver'],
            endpoint_store=dependencies['endpoint_store'],
            core_api=dependencies['core_api'],
            ui=dependencies['ui'],
        )
        logger.debug("All dependencies initialized successfully.")
        return dependencies

    except (ValueError, StorageError) as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        raise typer.Exit(code=1)


# --- Typer App Definition ---
app = typer.Typer(
    name="corelink",
    help="corelink: discover a Core and send it requests with bounded retries.",
    add_completion=False,
)


def run_command(action: Callable[[CommandHandler], Awaitable[bool]]) -> None:
    """Builds dependencies, runs one async handler method and sets the exit code."""
    dependencies = create_dependencies()
    handler: CommandHandler = dependencies['command_handler']

    async def _run() -> bool:
        try:
            return await action(handler)
        finally:
            transport = dependencies.get('transport')
            if transport is not None:
                await transport.aclose()

    ok = asyncio.run(_run())
    if not ok:
        raise typer.Exit(code=1)


# --- CLI Commands ---

EndpointOption = Annotated[
    Optional[str],
    typer.Option("--endpoint", "-e", help="Core host to use instead of the current one (e.g. 'core.example.org')."),
]


@app.command()
def discover():
    """Select the Core host (statically or via DNS) and persist it."""
    run_command(lambda handler: handler.handle_discover())


@app.command()
def status():
    """Show the endpoint mode, current Core and discovered candidates."""
    run_command(lambda handler: handler.handle_status())


@app.command()
def config(endpoint: EndpointOption = None):
    """Fetch the /config document of the current Core."""
    run_command(lambda handler: handler.handle_config(endpoint))


@app.command()
def request(
    path: Annotated[str, typer.Argument(help="Request path, e.g. /hashes.")],
    method: Annotated[str, typer.Option("--method", "-X", help="HTTP method.")] = "GET",
    data: Annotated[Optional[str], typer.Option("--data", "-d", help="JSON request body.")] = None,
    endpoint: EndpointOption = None,
    quiet_retries: Annotated[bool, typer.Option("--quiet-retries", help="Do not log each retry.")] = False,
):
    """Send a request to the current Core (or --endpoint) with retries."""
    run_command(lambda handler: handler.handle_request(
        path, method=method, data=data, endpoint=endpoint, quiet_retries=quiet_retries
    ))


def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
