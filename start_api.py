#!/usr/bin/env python3
"""
Startup script for the Endorse Alignment Rankings API.
"""

import uvicorn

if __name__ == "__main__":
    print("Starting Endorse Alignment Rankings API...")
    print("API Documentation: http://localhost:8000/docs")
    print("Health Check: http://localhost:8000/health")
    print("\nPress CTRL+C to stop\n")

    uvicorn.run(
        "endorse.api.ranking_api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
