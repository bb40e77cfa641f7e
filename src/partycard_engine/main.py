"""FastAPI main application for the party card game backend"""

import logging
import os

from . import __version__
from .ws.server import app

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@app.get("/")
async def root():
    return {"message": "Party Card Game API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
