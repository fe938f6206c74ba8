import argparse
import logging
from datetime import UTC, datetime

from pydantic import BaseModel

from transit_live.app import mcp


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the transit live server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from transit_live import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="transit-live",
        description="Live transit map MCP server",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server (default)")
    # SUPPRESS keeps the subcommand from resetting a top-level -v
    serve_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # register tools
    from transit_live.tools import map_tools, stop_tools  # noqa: F401

    mcp.run()


if __name__ == "__main__":
    main()
