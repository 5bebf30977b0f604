"""Entry point for running the weather agent as an MCP stdio server."""
import logging
import os
import sys

# Logs go to stderr; stdout carries the MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)],
    force=True
)
logger = logging.getLogger(__name__)

logger.info("x402 weather agent starting...")
logger.info(f"Python version: {sys.version}")
logger.info(f"Working directory: {os.getcwd()}")

try:
    from weather_agent.server import main
except Exception as e:
    logger.error(f"Failed to import weather agent: {e}", exc_info=True)
    raise

if __name__ == "__main__":
    main()
