# FILE: main.py
# LOCATION: derivator/main.py

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
import uvicorn

from config import config
from errors import DerivationError
from remote import remote_service
# Import our actual solver function from the other file
from solver import solve_derivative

logging.basicConfig(
    level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("derivator")

# --- Pydantic Models ---
# These models define the structure of the JSON data for our API.
# FastAPI uses them to validate incoming requests and format outgoing responses.

class Step(BaseModel):
    rule_name: str
    before: str
    result: str
    explanation: Optional[str] = None

class DeriveRequest(BaseModel):
    expression: str = Field(..., min_length=1, max_length=1000)
    variable: str = Field("x", pattern=r"^[A-Za-z]+$")
    eval_point: Optional[float] = Field(
        None, description="Optional point to evaluate the derivative at"
    )
    verify: Optional[bool] = Field(
        None, description="Cross-check the result with SymPy (defaults to server setting)"
    )

    @field_validator("expression")
    @classmethod
    def validate_expression(cls, v):
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v

class DeriveResponse(BaseModel):
    input: str
    variable: str
    derivative: str
    solution_summary: str
    steps: List[Step]
    value: Optional[float] = None
    verified: Optional[bool] = None

# Create the main FastAPI application instance
app = FastAPI(
    title="Derivator API",
    description="An API for symbolic differentiation with step-by-step solutions.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- API Endpoints ---

@app.post("/derive", response_model=DeriveResponse)
def derive_endpoint(request: DeriveRequest):
    """
    Receives an expression, differentiates it, and returns the result with its steps.
    """
    logger.info(f"Received expression to derive: {request.expression} (d/d{request.variable})")

    try:
        result = solve_derivative(
            request.expression,
            variable=request.variable,
            eval_point=request.eval_point,
            verify=request.verify,
        )
    except DerivationError as e:
        # Typed engine failures become a 400 with a machine-readable body
        logger.warning(f"Invalid input: {e}")
        raise HTTPException(status_code=400, detail=e.to_dict())

    return result


@app.post("/proxy")
async def proxy_endpoint(payload: Dict[str, Any] = Body(...)):
    """
    Degraded mode: forwards the request body to the remote differentiation service.
    """
    return await remote_service.forward(payload)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


def run():
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
