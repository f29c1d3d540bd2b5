"""Entry point for running as a module."""
import os

import uvicorn

from listening_insights.api import app

if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
