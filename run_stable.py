"""
Run script to start the FastAPI server (no reload).
"""
import uvicorn
import os
import sys

# Add the project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sentinel.config import settings


def main():
    """Start the Uvicorn server."""
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    print(f"Starting {settings.PROJECT_NAME} API...")
    print(f"API Documentation: http://localhost:{port}/docs")
    print("-" * 50)

    uvicorn.run(
        "sentinel.main:app",
        host=host,
        port=port,
        reload=False,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
