"""Health probes and Prometheus metrics on a single HTTP port."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Response

# Liveness and readiness are both "process is up": reconciliation state
# lives in the resources and is reported through metrics.
PROBES = {
    "/healthz": '{"status":"ok"}',
    "/readyz": '{"status":"ready"}',
}


def create_combined_wsgi_app() -> Any:
    """WSGI app answering the probe paths and serving metrics for everything else."""
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        body = PROBES.get(environ.get("PATH_INFO", ""))
        if body is None:
            return metrics_app(environ, start_response)
        return Response(body, mimetype="application/json")(environ, start_response)

    return combined_app


def start_metrics_server(port: int) -> threading.Thread:
    """Serve probes and metrics on ``port`` from a daemon thread."""
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True)
    thread.start()
    return thread
