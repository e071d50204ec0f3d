"""
Pytest configuration for TomeVault API tests.
Sets up the Python path and test environment before the app is imported.
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path for all tests
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Set up test environment variables
os.environ.setdefault("DATABASE_DSN", "sqlite+aiosqlite:///./tomevault-test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")
