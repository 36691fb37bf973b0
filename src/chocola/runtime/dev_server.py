"""Development server with rebuild on change and reload polling."""

import asyncio
import logging
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import (
    FileResponse,
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    Response,
)
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from chocola.compiler.build import BuildSummary, SiteBuilder
from chocola.compiler.config import ChocolaConfig, load_config
from chocola.compiler.exceptions import ChocolaError
from chocola.runtime.error_renderer import render_build_error

# Force terminal so colors survive when piped
console = Console(force_terminal=True, markup=True)
logger = logging.getLogger(__name__)

VERSION_PATH = "/__chocola/version"
RELOAD_CLIENT_PATH = "/__chocola/reload.js"

RELOAD_CLIENT = """\
(() => {
  let current = null;
  setInterval(async () => {
    try {
      const res = await fetch("%s", { cache: "no-store" });
      const data = await res.json();
      if (current === null) current = data.version;
      else if (data.version !== current) location.reload();
    } catch (e) {}
  }, 1000);
})();
""" % VERSION_PATH


@dataclass
class DevState:
    """Outcome of the latest build, shared with the request handlers."""

    version: int = 0
    error: Optional[ChocolaError] = None
    summary: Optional[BuildSummary] = None


def rebuild(
    root_dir: Path,
    state: DevState,
    config: Optional[ChocolaConfig] = None,
    strict: bool = False,
    recursive: bool = False,
) -> bool:
    """Run a full build and record the outcome in ``state``."""
    try:
        builder = SiteBuilder(
            root_dir,
            config=config,
            strict=strict,
            recursive=recursive,
            extra_scripts=[RELOAD_CLIENT_PATH],
        )
        state.summary = builder.build()
        state.error = None
    except ChocolaError as e:
        state.error = e
        logger.error("[bold red]Build failed[/]: %s", e.format())
    state.version += 1
    return state.error is None


def create_app(out_dir: Path, state: DevState) -> Starlette:
    """Starlette app serving the build output of ``out_dir``."""

    async def version(request: Request) -> Response:
        return JSONResponse({"version": state.version, "error": state.error is not None})

    async def reload_client(request: Request) -> Response:
        return PlainTextResponse(RELOAD_CLIENT, media_type="text/javascript")

    async def index(request: Request) -> Response:
        if state.error is not None:
            return HTMLResponse(
                render_build_error(state.error, state.version, RELOAD_CLIENT_PATH),
                status_code=500,
            )
        index_path = out_dir / "index.html"
        if not index_path.exists():
            return HTMLResponse("<h1>404 Not Found</h1>", status_code=404)
        return FileResponse(index_path, headers={"Cache-Control": "no-store"})

    routes = [
        Route(VERSION_PATH, version),
        Route(RELOAD_CLIENT_PATH, reload_client),
        Route("/", index),
        Mount("/", app=StaticFiles(directory=out_dir, html=True, check_dir=False)),
    ]
    return Starlette(routes=routes)


def _watch_targets(root_dir: Path, config: ChocolaConfig) -> List[Path]:
    targets = [root_dir / config.bundle.src_dir]
    if config.path is not None:
        targets.append(config.path)
    return [t for t in targets if t.exists()]


async def run_dev_server(
    root_dir: Path,
    host: Optional[str] = None,
    port: Optional[int] = None,
    strict: bool = False,
    recursive: bool = False,
) -> None:
    """Build the project, serve it and rebuild whenever sources change."""
    import uvicorn
    from watchfiles import awatch

    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )

    config = load_config(root_dir)
    host = host or config.dev.hostname
    port = port or config.dev.port
    out_dir = (root_dir / config.bundle.out_dir).resolve()

    state = DevState()
    rebuild(root_dir, state, config=config, strict=strict, recursive=recursive)

    shutdown_event = asyncio.Event()

    async def _handle_signal() -> None:
        console.print("\n[bold]chocola: Shutting down...[/]")
        shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(_handle_signal()))
    except NotImplementedError:
        pass

    async def watch_changes() -> None:
        nonlocal config
        targets = _watch_targets(root_dir, config)
        console.print(
            "[bold cyan]chocola[/]: Watching "
            + ", ".join(f"[bold]{t}[/]" for t in targets)
            + " for changes..."
        )
        async for changes in awatch(*targets, stop_event=shutdown_event):
            changed = sorted({Path(path).name for _, path in changes})
            console.print(
                f"[bold green]chocola[/]: {', '.join(changed)} changed, rebuilding..."
            )
            try:
                config = load_config(root_dir)
            except ChocolaError as e:
                state.error = e
                state.version += 1
                logger.error("[bold red]Config error[/]: %s", e.format())
                continue

            ok = await asyncio.to_thread(
                rebuild, root_dir, state, config, strict, recursive
            )
            if ok:
                logger.info("Dev server updated")

    app = create_app(out_dir, state)
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
        use_colors=True,
    )
    server = uvicorn.Server(uv_config)

    # Signals are handled above
    server.install_signal_handlers = lambda: None  # type: ignore

    async def stop_uvicorn() -> None:
        await shutdown_event.wait()
        server.should_exit = True

    async def serve() -> None:
        await server.serve()
        # Server gone (startup failure or exit): stop the watcher too
        shutdown_event.set()

    console.print(
        f"[bold cyan]chocola[/]: Running on [link=http://{host}:{port}]http://{host}:{port}[/link]"
    )

    async with asyncio.TaskGroup() as tg:
        tg.create_task(serve())
        tg.create_task(stop_uvicorn())
        tg.create_task(watch_changes())
