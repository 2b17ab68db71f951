from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..controller import vend_failure
from ..exceptions import BusyError, ItemsValidationError

router = APIRouter(tags=["vmc"])

@router.post("/vend")
async def vend(request: Request, payload: dict):
    controller = request.app.state.controller
    try:
        return await controller.vend(payload.get("items"))
    except ItemsValidationError as e:
        return JSONResponse(vend_failure(str(e)), status_code=400)
    except BusyError as e:
        return JSONResponse(vend_failure(str(e), current_items=e.current_items), status_code=409)

@router.get("/status")
async def status(request: Request):
    return await request.app.state.controller.status()

@router.get("/health")
async def health(request: Request):
    return request.app.state.controller.health()
