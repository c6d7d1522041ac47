"""Command line interface for running the API server."""
import asyncio
import logging

import uvicorn

from config import settings_conf

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

class UvicornServer:
    """Wrapper for running uvicorn with proper lifecycle management."""

    def __init__(self, app_path: str = "api:create_app", host: str = "0.0.0.0", port: int = 8000):
        self.config = uvicorn.Config(
            app_path,
            host=host,
            port=port,
            factory=True,
            log_level="info"
        )
        self.server = uvicorn.Server(self.config)

    async def run(self):
        """Run the server until it is asked to exit."""
        await self.server.serve()

async def main():
    server = UvicornServer(host=settings_conf['host'], port=settings_conf['port'])
    logger.info(f"Starting API on {settings_conf['host']}:{settings_conf['port']}")
    try:
        await server.run()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        logger.info("API server stopped.")

if __name__ == "__main__":
    asyncio.run(main())
