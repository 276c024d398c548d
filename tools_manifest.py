# tools_manifest.py
# Writes the Bluum tool declarations (tools/list payload) to an MCP manifest file
# Usage: python tools_manifest.py [--out .mcp.json]

import argparse
from typing import List, Optional

from bluum_mcp.schemas.mcp import ManifestResponse
from bluum_mcp.tools import _list_tools


def build_manifest() -> ManifestResponse:
    tools, _ = _list_tools(None)
    return ManifestResponse.model_validate({"tools": tools})


def write_manifest(path: str) -> int:
    manifest = build_manifest()
    with open(path, "w", encoding="utf-8") as f:
        f.write(manifest.model_dump_json(indent=2))
        f.write("\n")
    return len(manifest.tools)


def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(description="Generate the Bluum MCP tool manifest")
    p.add_argument("--out", default=".mcp.json", help="Output path (default: .mcp.json)")
    args = p.parse_args(argv)
    count = write_manifest(args.out)
    print(f"{args.out} manifest generated ({count} tools).")


if __name__ == "__main__":
    main()
