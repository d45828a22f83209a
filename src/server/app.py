from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Dict, Optional, Set

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from dispatch import (
    CapacityExceeded,
    Controller,
    DispatchConfig,
    DispatchError,
    InvalidFloor,
    UnknownCar,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidFloor: 400,
    UnknownCar: 404,
    CapacityExceeded: 409,
}


class HallCall(BaseModel):
    floor: int
    direction: str


class DestinationSelection(BaseModel):
    floor: int


class LoadUpdate(BaseModel):
    load: int


class ScoringSelection(BaseModel):
    name: str
    options: Dict[str, object] = {}


class AvailabilityUpdate(BaseModel):
    available: bool
    reason: Optional[str] = None


class ControllerManager:
    def __init__(
        self,
        num_floors: int = 20,
        car_count: int = 4,
        tick_interval: float = 0.25,
        controller: Optional[Controller] = None,
    ) -> None:
        self.controller = controller or Controller.build(
            DispatchConfig(num_floors=num_floors, car_count=car_count)
        )
        self.tick_interval = tick_interval
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            self.controller.tick()
            await self.broadcast(self.current_state())
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        return self.controller.snapshot()

    def set_availability(self, car_id: int, available: bool, reason: Optional[str]) -> dict:
        if available:
            self.controller.restore_service(car_id)
        else:
            logger.info("Car %s taken out of service: %s", car_id, reason or "no reason given")
            self.controller.take_out_of_service(car_id)
        state = self.current_state()
        state["car_id"] = car_id
        state["available"] = available
        state["reason"] = reason
        return state


def create_app(manager: ControllerManager) -> FastAPI:
    app = FastAPI(title="LiftDispatch Controller API")
    app.state.manager = manager
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    controller = manager.controller

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
        status_code = next(
            (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
            400,
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.on_event("startup")
    async def on_startup() -> None:
        await manager.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await manager.stop()

    @app.get("/state")
    async def get_state() -> dict:
        return manager.current_state()

    @app.get("/cars/{car_id}")
    async def get_car(car_id: int) -> dict:
        return controller.car_status(car_id).as_dict()

    @app.post("/requests", status_code=202)
    async def request_elevator(call: HallCall) -> dict:
        try:
            request = controller.request_elevator(call.floor, call.direction)
        except InvalidFloor:
            raise
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"request_id": request.request_id, "timestamp": request.timestamp}

    @app.delete("/requests/{request_id}")
    async def cancel_request(request_id: int) -> dict:
        if not controller.cancel_request(request_id):
            raise HTTPException(status_code=404, detail=f"Request {request_id} is not pending")
        return {"request_id": request_id, "cancelled": True}

    @app.post("/cars/{car_id}/destinations", status_code=202)
    async def select_destination(car_id: int, selection: DestinationSelection) -> dict:
        request = controller.select_destination(car_id, selection.floor)
        return {"request_id": request.request_id, "car": controller.car_status(car_id).as_dict()}

    @app.delete("/cars/{car_id}/destinations/{floor}")
    async def remove_destination(car_id: int, floor: int) -> dict:
        if not controller.remove_destination(car_id, floor):
            raise HTTPException(status_code=404, detail=f"Floor {floor} is not queued for car {car_id}")
        return controller.car_status(car_id).as_dict()

    @app.post("/cars/{car_id}/emergency", status_code=202)
    async def trigger_emergency(car_id: int) -> dict:
        controller.trigger_emergency(car_id)
        return {"car_id": car_id, "emergency": True}

    @app.post("/cars/{car_id}/availability")
    async def update_availability(car_id: int, availability: AvailabilityUpdate) -> dict:
        return manager.set_availability(car_id, availability.available, availability.reason)

    @app.put("/cars/{car_id}/load")
    async def update_load(car_id: int, update: LoadUpdate) -> dict:
        try:
            controller.update_load(car_id, update.load)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return controller.car_status(car_id).as_dict()

    @app.post("/scoring")
    async def set_scoring(selection: ScoringSelection) -> dict:
        try:
            controller.set_scoring(selection.name, **selection.options)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return manager.current_state()

    @app.websocket("/ws/stream")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await manager.register(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            await manager.unregister(websocket)

    return app


app = create_app(ControllerManager())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
