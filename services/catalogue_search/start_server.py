#!/usr/bin/env python3
"""
Server startup script for the catalogue search service
"""
import sys
import os
import uvicorn
from pathlib import Path

# Add current directory to Python path
current_dir = Path(__file__).parent.absolute()
sys.path.insert(0, str(current_dir))

# Set environment variables
os.environ.setdefault("PYTHONPATH", str(current_dir))

def main():
    """Start the server"""
    from app.config.settings import settings

    print("Starting catalogue search service...")
    print(f"OpenSearch index: {settings.opensearch_index} at {settings.opensearch_host}:{settings.opensearch_port}")
    print(f"Working directory: {current_dir}")

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower()
    )

if __name__ == "__main__":
    main()
