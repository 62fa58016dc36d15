"""
Ustadgee API server runner
Run this as a separate process: python run_server.py
"""

import logging
import os
import sys

import uvicorn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")  # noqa: S104
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"🚀 Starting Ustadgee API on {host}:{port}...")
    try:
        uvicorn.run("ustadgee.main:app", host=host, port=port)
    except KeyboardInterrupt:
        logger.info("👋 Server stopped by user")
