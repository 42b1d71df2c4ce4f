from __future__ import annotations

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import AsyncIterator, List, Optional, Sequence, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from ..sim.core.config import AppConfig, BoidsConfig
from ..sim.core.world import World
from ..sim.types.snapshot import RenderedAgent, render_frame

logger = logging.getLogger(__name__)

_MIN_SPEED = 0.1
_MAX_SPEED = 5.0


class FrameBroadcaster:
    """Render sink that fans the latest frame out to WebSocket viewers.

    Only the most recent frame is held. A viewer that joins late receives
    that frame and nothing older; frames produced while nobody is watching
    are simply overwritten.
    """

    def __init__(self, world: World):
        self._world = world
        self._frame: List[RenderedAgent] = render_frame(world.generation)
        self._message: Optional[str] = None
        self.clients: Set[WebSocket] = set()
        world.add_sink(self)

    def __call__(self, frame: Sequence[RenderedAgent]) -> None:
        self._frame = list(frame)
        self._message = None

    def latest_message(self) -> str:
        # Encoded lazily so ticks nobody watches cost no JSON work.
        if self._message is None:
            self._message = self._encode()
        return self._message

    def _encode(self) -> str:
        snapshot = self._world.snapshot()
        return json.dumps(
            {
                "type": "frame",
                "tick": snapshot.tick,
                "payload": {
                    "tick": snapshot.tick,
                    "metrics": asdict(snapshot.metrics),
                    "agents": [
                        {
                            "id": agent.id,
                            "x": agent.position[0],
                            "y": agent.position[1],
                            "heading": agent.facing_degrees,
                            "alive": agent.alive,
                        }
                        for agent in self._frame
                    ],
                    "world": asdict(snapshot.world),
                    "metadata": asdict(snapshot.metadata),
                },
            }
        )

    async def join(self, client: WebSocket) -> None:
        self.clients.add(client)
        logger.info("viewer joined at tick %d (%d connected)", self._world.tick, len(self.clients))
        await self._send(client, self.latest_message())

    def leave(self, client: WebSocket) -> None:
        if client in self.clients:
            self.clients.discard(client)
            logger.info("viewer left (%d connected)", len(self.clients))

    async def flush(self) -> None:
        if not self.clients:
            return
        message = self.latest_message()
        for client in list(self.clients):
            await self._send(client, message)

    async def _send(self, client: WebSocket, message: str) -> None:
        try:
            await client.send_text(message)
        except (WebSocketDisconnect, RuntimeError):
            self.leave(client)


class SimulationRunner:
    """Drives a ``World`` on the configured cadence and feeds the broadcaster."""

    def __init__(self, config: BoidsConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcaster = FrameBroadcaster(self.world)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.tick

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            self._task.add_done_callback(self._on_loop_done)
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
        await self.broadcaster.flush()

    async def step(self) -> None:
        async with self._lock:
            self.world.step()
        if self.tick % self.broadcast_interval == 0:
            await self.broadcaster.flush()

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(_MIN_SPEED, min(_MAX_SPEED, multiplier))
        return self.speed_multiplier

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if self.running:
                await self.step()

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.running = False
            logger.error("simulation loop stopped at tick %d", self.tick, exc_info=error)


def _load_app_config() -> AppConfig:
    path = os.environ.get("BOIDS_CONFIG")
    return AppConfig.from_yaml(Path(path)) if path else AppConfig()


app_config = _load_app_config()
runner = SimulationRunner(app_config.simulation, app_config.broadcast_interval)
static_dir = Path(__file__).parent / "static"


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    await runner.start()
    try:
        yield
    finally:
        await runner.shutdown()


app = FastAPI(title="Boids Simulation", lifespan=_lifespan)
app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _status() -> dict:
    metrics = runner.world.snapshot().metrics
    return {
        "running": runner.running,
        "tick": runner.tick,
        "speed": runner.speed_multiplier,
        "viewers": len(runner.broadcaster.clients),
        "metrics": asdict(metrics),
    }


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(_status())


@app.get("/api/config")
async def config() -> JSONResponse:
    return JSONResponse({"simulation": asdict(runner.config), "broadcast_interval": runner.broadcast_interval})


@app.post("/api/control/{action}")
async def control(action: str) -> JSONResponse:
    if action == "start":
        await runner.start()
    elif action == "stop":
        await runner.stop()
    elif action == "step":
        await runner.step()
    elif action == "reset":
        await runner.reset()
    else:
        raise HTTPException(status_code=404, detail=f"unknown action: {action}")
    return JSONResponse(_status())


@app.post("/api/speed")
async def speed(payload: dict) -> JSONResponse:
    try:
        multiplier = float(payload.get("multiplier", 1.0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=422, detail="multiplier must be a number")
    return JSONResponse({"multiplier": runner.set_speed(multiplier)})


@app.websocket("/ws")
async def frames(websocket: WebSocket) -> None:
    await websocket.accept()
    await runner.broadcaster.join(websocket)
    try:
        while True:
            # Viewers are receive-only; anything they send is dropped.
            message = await websocket.receive_text()
            logger.debug("ignoring viewer message: %r", message)
    except WebSocketDisconnect:
        runner.broadcaster.leave(websocket)


__all__ = ["app", "runner", "FrameBroadcaster", "SimulationRunner"]
