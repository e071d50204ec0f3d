"""
Uvicorn Startup Script
----------------------
Runs the TomeVault API with uvicorn using the configured host and port.
"""

import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import uvicorn
from app.core.config_manager import settings


if __name__ == "__main__":
    uvicorn.run(
        app="app.app:app",
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
