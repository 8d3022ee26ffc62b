import logging

from fastapi import FastAPI

from move_authority.api.routes import router
from move_authority.settings import settings_from_env

app = FastAPI(title="move-authority", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=settings_from_env().log_level)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "move-authority", "version": "0.1.0"}
