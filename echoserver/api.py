# echoserver/api.py
"""
Echo server control API (FastAPI)

- GET    /api/healthz
- GET    /api/version
- POST   /api/servers/start      {port, host?} -> {server_id}
- POST   /api/servers/stop       {server_id}
- POST   /api/servers/stop_all
- GET    /api/servers/status
- DELETE /api/servers/{server_id}

Run with: uvicorn echoserver.api:app --port 8001
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from echoserver import __version__
from echoserver.errors import BindError
from echoserver.manager import ServerManager

manager = ServerManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    manager.stop_all()


app = FastAPI(title="echoserver API", version=__version__, lifespan=lifespan)


class StartRequest(BaseModel):
    port: int = Field(..., ge=1, le=65535)
    host: Optional[str] = None


class StopRequest(BaseModel):
    server_id: str


@app.get("/api/healthz", include_in_schema=False)
def healthz():
    return {"ok": True}


@app.get("/api/version")
def version():
    return {"name": "echoserver", "version": __version__}


@app.post("/api/servers/start")
def start_server(req: StartRequest):
    try:
        server_id = manager.start_server(req.port, req.host)
    except BindError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"server_id": server_id}


@app.post("/api/servers/stop")
def stop_server(req: StopRequest):
    if not manager.stop_server(req.server_id):
        raise HTTPException(status_code=404, detail="Unknown server_id")
    return {"stopped": True}


@app.post("/api/servers/stop_all")
def stop_all():
    return {"stopped": manager.stop_all()}


@app.get("/api/servers/status")
def status():
    return manager.status()


@app.delete("/api/servers/{server_id}")
def delete_server(server_id: str):
    if not manager.remove(server_id):
        raise HTTPException(status_code=404, detail="Unknown server_id")
    return {"deleted": server_id}
