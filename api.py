"""
api.py
FastAPI wrapper around SpamService.
Run:
  uvicorn api:app --reload --host 0.0.0.0 --port 8000
Then:
  GET /train
  GET /predict?message=how+are+you
  GET /evaluate
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from service_config import Settings, configure_logging
from spam_errors import SpamClassifierError
from spam_service import SpamService

logger = logging.getLogger(__name__)


class StatusResponse(BaseModel):
    status: str


class PredictResponse(BaseModel):
    status: str
    message: str
    label: str


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


def get_service(request: Request) -> SpamService:
    return request.app.state.service


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="SMS Spam Classifier", version="1.0")
    app.state.service = SpamService(settings)

    @app.exception_handler(SpamClassifierError)
    async def handle_classifier_error(request: Request, exc: SpamClassifierError):
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        body = ErrorResponse(message=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.get("/")
    def root(request: Request):
        return {"message": "api is working!", "model": get_service(request).state.name}

    @app.api_route("/train", methods=["GET", "POST"], response_model=StatusResponse)
    def train(request: Request):
        get_service(request).train()
        return StatusResponse(status="success")

    @app.get("/predict", response_model=PredictResponse)
    def predict(request: Request, message: Optional[str] = None):
        result = get_service(request).predict(message)
        return PredictResponse(status="success", message=result.input_text, label=result.label)

    @app.get("/evaluate", response_class=PlainTextResponse)
    def evaluate(request: Request):
        return PlainTextResponse(get_service(request).evaluate())

    return app


app = create_app()
