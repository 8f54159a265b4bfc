"""FastAPI application entrypoint for the job board server."""
import uvicorn
from fastapi import FastAPI

from . import auth, jobs, rooms, users
from .config import LOG_FILE
from .database import Base, engine
from ..shared.logging_config import configure_logging

logger = configure_logging("jobboard_server", LOG_FILE)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="JobBoard Server", version="1.0.0")
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(jobs.router)
app.include_router(rooms.router)


@app.get("/")
def root():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("jobboard.server.main:app", host="0.0.0.0", port=8000, reload=False)
