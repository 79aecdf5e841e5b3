"""
Generate OpenAPI specification from FastAPI application.

Outputs the OpenAPI JSON spec to stdout or a file.

Usage:
    python scripts/generate_openapi.py                  # Print to stdout
    python scripts/generate_openapi.py --output api.json  # Save to file
"""

import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.server import create_app
from connectors import ERPConfig, SimulatorConnector
from core.config import Settings


def generate_openapi_spec(output_path: str = None) -> dict:
    """Generate OpenAPI spec from the FastAPI app.

    The app is built with the simulator so no ERP settings are needed.

    Args:
        output_path: Optional file path to save spec

    Returns:
        OpenAPI specification dict
    """
    app = create_app(
        Settings(require_api_key=False),
        connector=SimulatorConnector(ERPConfig(connector_type="simulator")),
    )
    openapi_spec = app.openapi()

    if output_path:
        with open(output_path, "w") as f:
            json.dump(openapi_spec, f, indent=2)
        print(f"OpenAPI spec written to: {output_path}")
    else:
        print(json.dumps(openapi_spec, indent=2))

    return openapi_spec


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Generate OpenAPI specification")
    parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)"
    )
    args = parser.parse_args()

    spec = generate_openapi_spec(args.output)
    paths = spec.get("paths", {})
    endpoints = sum(len(methods) for methods in paths.values())
    print(f"{len(paths)} paths, {endpoints} endpoints", file=sys.stderr)


if __name__ == "__main__":
    main()
