#!/usr/bin/env python3
"""
WMS MCP Server - Entry Point

Starts the async MCP server for WMS tile addressing and tile retrieval.
Supports both stdio (for Claude Desktop) and HTTP (for API access) transports.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .constants import EnvVar, ServerConfig, SessionProvider, StorageProvider

env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 8005


def _store_settings() -> dict[str, Any] | None:
    """Artifact store keyword arguments from the environment; None if unusable."""
    provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)
    redis_url = os.environ.get(EnvVar.REDIS_URL)
    settings: dict[str, Any] = {
        "session_provider": SessionProvider.REDIS if redis_url else SessionProvider.MEMORY,
    }

    if provider == StorageProvider.S3:
        bucket = os.environ.get(EnvVar.BUCKET_NAME)
        credentials = [
            os.environ.get(EnvVar.AWS_ACCESS_KEY_ID),
            os.environ.get(EnvVar.AWS_SECRET_ACCESS_KEY),
        ]
        if not bucket or not all(credentials):
            logger.warning(
                f"S3 artifact storage needs {EnvVar.BUCKET_NAME}, "
                f"{EnvVar.AWS_ACCESS_KEY_ID} and {EnvVar.AWS_SECRET_ACCESS_KEY}"
            )
            return None
        endpoint = os.environ.get(EnvVar.AWS_ENDPOINT_URL_S3) or "default endpoint"
        logger.info(f"S3 artifact storage: bucket {bucket} ({endpoint})")
        settings["bucket"] = bucket

    elif provider == StorageProvider.FILESYSTEM:
        artifacts_path = os.environ.get(EnvVar.ARTIFACTS_PATH)
        if artifacts_path:
            Path(artifacts_path).mkdir(parents=True, exist_ok=True)
            logger.info(f"Filesystem artifact storage at {artifacts_path}")
            settings["bucket"] = artifacts_path
        else:
            logger.warning(f"{EnvVar.ARTIFACTS_PATH} not set; using memory artifact storage")
            provider = StorageProvider.MEMORY

    settings["storage_provider"] = provider
    return settings


def _init_artifact_store() -> bool:
    """
    Initialize the global artifact store from environment variables.

    Returns:
        True if artifact store was initialized, False otherwise
    """
    settings = _store_settings()
    if settings is None:
        return False

    try:
        from chuk_artifacts import ArtifactStore
        from chuk_mcp_server import set_global_artifact_store

        set_global_artifact_store(ArtifactStore(**settings))
        logger.info(f"Artifact store ready (provider: {settings['storage_provider']})")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize artifact store: {e}")
        return False


from .async_server import mcp  # noqa: F401, E402


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    _init_artifact_store()

    parser = argparse.ArgumentParser(description=ServerConfig.DESCRIPTION)
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http"],
        default=None,
        help="Transport mode (stdio for Claude Desktop, http for API)",
    )
    parser.add_argument(
        "--host", default="localhost", help="Host for HTTP mode (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"Port for HTTP mode (default: {DEFAULT_HTTP_PORT})",
    )

    args = parser.parse_args()

    mode = args.mode
    if mode is None:
        auto_stdio = os.environ.get(EnvVar.MCP_STDIO) or not sys.stdin.isatty()
        mode = "stdio" if auto_stdio else "http"

    if mode == "stdio":
        print("WMS MCP Server starting in STDIO mode", file=sys.stderr)
        mcp.run(stdio=True)
    else:
        print(f"WMS MCP Server starting in HTTP mode on {args.host}:{args.port}", file=sys.stderr)
        mcp.run(host=args.host, port=args.port, stdio=False)


if __name__ == "__main__":
    main()
