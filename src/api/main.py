"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging

from src.api.app import create_app
from src.utils.catalog_config_loader import load_catalog_config

catalog_cfg = load_catalog_config()

# Setup logging
logging.basicConfig(
    level=getattr(logging, catalog_cfg.logging.level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app(catalog_cfg)


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting catalog API on 0.0.0.0:3000")
    uvicorn.run(app, host="0.0.0.0", port=3000)
