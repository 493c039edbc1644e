#!/usr/bin/env python3
import uvicorn
import os

if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    reload = os.getenv("ENVIRONMENT", "development") != "production"

    uvicorn.run(
        "haven_admin.main:app",
        host="0.0.0.0",
        port=port,
        reload=reload,
        log_level="info"
    )
