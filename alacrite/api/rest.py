"""
REST API for the Alacrite Node

Read-only reporting surface over the peer registry. Every request reads a
registry snapshot, so responses never mix two discovery updates.

Endpoints:
- GET /         basic info
- GET /status   advertised identity and peer count
- GET /peers    discovered peers
"""

import logging
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .. import __version__

logger = logging.getLogger(__name__)


# === Pydantic Models ===

class NodeStatus(BaseModel):
    """Node status response."""
    running: bool
    service_name: Optional[str]
    host: Optional[str]
    port: int
    discovered_peers: int


class PeerInfo(BaseModel):
    """Information about a peer."""
    name: str
    host: str


# === API Creation ===

def create_app(node=None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        node: AlacriteNode instance to report on

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API server starting...")
        yield
        logger.info("API server stopping...")

    app = FastAPI(
        title="Alacrite Discovery API",
        description="Peers discovered on the local network",
        version=__version__,
        lifespan=lifespan,
    )

    def require_node():
        if node is None:
            raise HTTPException(status_code=503, detail="Node not initialized")
        return node

    @app.get("/", tags=["General"])
    async def root():
        """API root - basic info."""
        return {
            "name": "Alacrite",
            "version": __version__,
            "status": "running" if node and node.is_running else "not running",
        }

    @app.get("/status", response_model=NodeStatus, tags=["Node"])
    async def get_status():
        """Get node status."""
        stats = require_node().get_stats()
        return NodeStatus(
            running=stats['running'],
            service_name=stats['service']['name'],
            host=stats['service']['host'],
            port=stats['service']['port'],
            discovered_peers=stats['discovery']['total_peers'],
        )

    @app.get("/peers", response_model=List[PeerInfo], tags=["Peers"])
    async def list_peers():
        """List discovered peers."""
        peers = require_node().get_peers()
        return [
            PeerInfo(name=name, host=host)
            for name, host in sorted(peers.items())
        ]

    return app


async def run_api_server(node, host: str = "0.0.0.0", port: int = 8081):
    """
    Run the API server.

    Args:
        node: AlacriteNode instance
        host: Host to bind to
        port: Port to listen on
    """
    import uvicorn

    app = create_app(node)

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()
