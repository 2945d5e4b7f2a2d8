#!/usr/bin/env python3
"""
Capabilities Demo -- chuk-mcp-wms

Opens a public WMS, resolves its tiling profile, and prints the request
URIs for the level-0 tiles. Fetches the first tile into the in-memory
artifact store.

Usage:
    python examples/capabilities_demo.py [WMS_URL] [LAYERS]
"""

import asyncio
import sys

from tool_runner import ToolRunner

DEFAULT_URL = "https://ows.terrestris.de/osm/service"
DEFAULT_LAYERS = "OSM-WMS"


async def main() -> None:
    url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_URL
    layers = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_LAYERS
    runner = ToolRunner()

    print("=" * 60)
    print("chuk-mcp-wms -- Server Capabilities")
    print("=" * 60)
    print(await runner.run_text("wms_capabilities"))

    print("\n" + "-" * 60)
    print(f"Opening {url} [{layers}]")
    print("-" * 60)
    source = await runner.run("wms_open_source", url=url, layers=layers, format="png")
    print(await runner.run_text("wms_describe_source", source_id=source["source_id"]))
    if source["state"] != "ready":
        return

    wide, high = source["tiles_at_level0"]
    print(f"\nLevel 0 request URIs ({wide}x{high} tiles):")
    for y in range(high):
        for x in range(wide):
            tile = await runner.run(
                "wms_tile_uri", source_id=source["source_id"], level=0, x=x, y=y
            )
            print(f"  {tile['tile']}: {tile['uri']}")

    print("\nFetching tile 1/0/0:")
    print(await runner.run_text("wms_fetch_tile", source_id=source["source_id"], level=1, x=0, y=0))

    print("\n" + await runner.run_text("wms_status"))


if __name__ == "__main__":
    asyncio.run(main())
