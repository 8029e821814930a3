"""Development server for Pyslate.

Serves the build directory with live reload:
- Injects a reload script into HTML responses.
- Rejects directory listings and missing paths with a 404.
- Watches the source directory and reruns the targets mapped to the changed
  path by WATCH_RULES.
- Watches the build directory and tells connected browsers which file changed.

Source events go through a single RebuildDispatcher thread that waits for a
quiet period, merges the targets of every queued event and runs them once, so
the same task never runs twice at the same time.

Key classes:
- DevServer: Main class for running the development server.
- RebuildDispatcher: Debounced queue from source changes to target runs.
- WatchRule: One row of the watch table.
"""

from __future__ import annotations

import asyncio
import functools
import json
import queue
import threading
import time
import webbrowser
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .build import AGGREGATE_TARGET, UNCOMPRESSED_TARGET, BuildOptions, Orchestrator
from .errors import PyslateError
from .tasks import RunReport
from .utils import matches_pattern, relative_posix

CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


@dataclass(frozen=True)
class WatchRule:
    """Targets to rerun when a source path matching ``pattern`` changes.

    Attributes:
        pattern: Glob pattern relative to the source directory.
        targets: Target names, in run order.
    """

    pattern: str
    targets: tuple[str, ...]


WATCH_RULES = (
    WatchRule("*.html", ("build-html",)),
    WatchRule("includes/**", ("build-html",)),
    WatchRule("javascripts/**", (UNCOMPRESSED_TARGET,)),
    WatchRule("stylesheets/**", ("build-css",)),
    WatchRule("index.yml", ("build-highlightjs", UNCOMPRESSED_TARGET, "build-html")),
)


def targets_for(rel_paths: Iterable[str], rules: Iterable[WatchRule] = WATCH_RULES) -> list[str]:
    """Return the targets to rerun for changed source paths.

    Targets keep the order of the rule table and appear once.
    """
    rules = tuple(rules)
    targets: dict[str, None] = {}
    for rel_path in rel_paths:
        for rule in rules:
            if matches_pattern(rel_path, rule.pattern):
                targets.update(dict.fromkeys(rule.targets))
    return list(targets)


class RebuildDispatcher:
    """Runs targets for source changes on a single worker thread.

    Attributes:
        debounce_seconds: Quiet period that ends a batch of events.
    """

    def __init__(
        self,
        run_targets: Callable[[list[str]], RunReport],
        rules: Iterable[WatchRule] = WATCH_RULES,
        debounce_seconds: float = 0.2,
    ):
        self._run_targets = run_targets
        self.rules = tuple(rules)
        self.debounce_seconds = debounce_seconds
        self._queue: queue.Queue[str | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stopped = threading.Event()

    def submit(self, rel_path: str) -> None:
        self._queue.put(rel_path)

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        self._queue.put(None)
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def collect(self) -> list[str] | None:
        """Block for the next batch of changed paths.

        Returns:
            Paths queued until no event arrived for ``debounce_seconds``, or
            None once the dispatcher is stopped.
        """
        first = self._queue.get()
        if first is None:
            return None
        paths = [first]
        while True:
            try:
                item = self._queue.get(timeout=self.debounce_seconds)
            except queue.Empty:
                return paths
            if item is None:
                self._stopped.set()
                return paths
            paths.append(item)

    def dispatch(self, paths: list[str]) -> RunReport | None:
        """Run the targets mapped to ``paths``, reporting failures."""
        targets = targets_for(paths, self.rules)
        if not targets:
            return None
        print(f"Change detected in {', '.join(sorted(set(paths)))}; running {', '.join(targets)}")
        try:
            report = self._run_targets(targets)
        except PyslateError as exc:
            print(f"Rebuild failed: {exc}")
            return None
        for failure in report.failures:
            print(f"Rebuild of {failure.name} failed: {failure.error}")
        return report

    def _run_forever(self) -> None:  # pragma: no cover - thread loop
        while not self._stopped.is_set():
            paths = self.collect()
            if paths is None:
                return
            self.dispatch(paths)


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript code for WebSocket connection to trigger reloads.
    """

    reload_script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type !== 'reload') return;
        if (data.path && data.path.endsWith('.css')) {{
          document.querySelectorAll('link[rel="stylesheet"]').forEach((link) => {{
            const url = new URL(link.href);
            url.searchParams.set('reload', Date.now());
            link.href = url.toString();
          }});
          return;
        }}
        location.reload();
      }};
    }})();
    </script>
    """
    reload_script = reload_script_template.format(ws_port=35729)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def log_message(self, format, *args):  # pragma: no cover - quiet request log
        pass

    def _inject(self, content: str) -> bytes:
        if "</body>" in content:
            content = content.replace("</body>", f"{self.reload_script}</body>")
        else:
            content += self.reload_script
        return content.encode("utf-8")

    def _serve_404(self):
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            encoded = self._inject(error_page.read_text(encoding="utf-8"))
            self.send_response(404)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path = self.translate_path(self.path)
        path_obj = Path(path)
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if index_path.exists():
                path = str(index_path)
                path_obj = index_path
            else:
                return self._serve_404()
        elif not path_obj.exists():
            return self._serve_404()

        if path.endswith(".html"):
            encoded = self._inject(path_obj.read_text(encoding="utf-8"))
            self.send_response(200)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        return super().send_head()


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        project_root: Root directory of the project.
        orchestrator: Runs build targets.
        source_dir: Directory watched for source changes.
        output_dir: Directory served over HTTP and watched for output changes.
        http_port: Port for the HTTP server.
        ws_port: Port for live reload WebSocket connections.
        options: Build options for every rebuild; uncompressed by default.
        dispatcher: Debounced rebuild queue.
    """

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
        options: BuildOptions | None = None,
        open_browser: bool = True,
    ):
        self.project_root = project_root
        self.orchestrator = Orchestrator(project_root)
        settings = self.orchestrator.settings
        self.source_dir = self.orchestrator.source_dir
        self.output_dir = self.orchestrator.output_dir
        self.http_port = int(http_port or settings["port"])
        self.ws_port = int(ws_port or settings["ws_port"])
        self.options = options or BuildOptions(compress=False)
        self.open_browser = open_browser
        self._reload_script = _ReloadHandler.reload_script_template.format(
            ws_port=self.ws_port
        )
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self.dispatcher = RebuildDispatcher(self.run_targets)

    @property
    def url(self) -> str:
        return f"http://localhost:{self.http_port}"

    def run_targets(self, targets: list[str]) -> RunReport:
        return self.orchestrator.run(targets, self.options)

    def start(self) -> None:  # pragma: no cover - integration path
        report = self.run_targets([AGGREGATE_TARGET])
        for failure in report.failures:
            print(f"Initial build of {failure.name} failed: {failure.error}")
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self.dispatcher.start()
        self._start_watcher()
        if self.open_browser:
            webbrowser.open(self.url)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self.dispatcher.stop()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at {self.url}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")
            return

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def notify(self, rel_path: str) -> None:
        """Tell connected browsers that an output file changed."""
        message = json.dumps({"type": "reload", "path": rel_path})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        observer = Observer()
        if self.source_dir.exists():
            observer.schedule(
                _ChangeHandler(self.source_dir, self.dispatcher.submit),
                str(self.source_dir),
                recursive=True,
            )
        self.output_dir.mkdir(parents=True, exist_ok=True)
        observer.schedule(
            _ChangeHandler(self.output_dir, self.notify),
            str(self.output_dir),
            recursive=True,
        )
        observer.start()
        self._observer = observer


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file changes below ``root`` as relative POSIX paths."""

    def __init__(self, root: Path, callback: Callable[[str], None]):
        super().__init__()
        self.root = root
        self.callback = callback

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in CHANGE_EVENTS:
            return
        paths = [event.src_path]
        if event.event_type == EVENT_TYPE_MOVED:
            paths.append(event.dest_path)
        for raw in paths:
            rel = relative_posix(Path(raw), self.root)
            if rel is not None:
                self.callback(rel)
