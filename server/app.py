"""FastAPI web server for loanbook."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from loanbook import __version__
from loanbook.config import get_server_config
from loanbook.db.database import Database
from loanbook.errors import NotFoundError, StoreFailure, ValidationFailure
from loanbook.models.loan import Loan, LoanPatch
from loanbook.models.special_payment import SpecialPayment
from loanbook.services.loan_service import LoanService

logger = logging.getLogger(__name__)


# Request Models
#
# Missing fields fall back to zero values so the validation layer reports
# them with its own messages instead of a schema error.
class LoanCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    amount: float = 0
    interest_rate: float = Field(default=0, alias="interestRate")
    start_date: str = Field(default="", alias="startDate")
    fixed_interest_years: int = Field(default=0, alias="fixedInterestYears")
    repayment_type: str = Field(default="", alias="repaymentType")
    repayment_value: float = Field(default=0, alias="repaymentValue")

    def to_loan(self) -> Loan:
        return Loan(**self.model_dump())


class LoanUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    amount: Optional[float] = None
    interest_rate: Optional[float] = Field(default=None, alias="interestRate")
    start_date: Optional[str] = Field(default=None, alias="startDate")
    fixed_interest_years: Optional[int] = Field(default=None, alias="fixedInterestYears")
    repayment_type: Optional[str] = Field(default=None, alias="repaymentType")
    repayment_value: Optional[float] = Field(default=None, alias="repaymentValue")

    def to_patch(self) -> LoanPatch:
        return LoanPatch(**self.model_dump())


class SpecialPaymentCreate(BaseModel):
    date: str = ""
    amount: float = 0
    note: Optional[str] = None

    def to_payment(self) -> SpecialPayment:
        return SpecialPayment(date=self.date, amount=self.amount, note=self.note)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def get_service(request: Request) -> LoanService:
    return request.app.state.loan_service


def create_app(db: Optional[Database] = None, static_dir: Optional[Path] = None) -> FastAPI:
    """Build the application. ``db`` defaults to one built from the environment."""
    if static_dir is None:
        static_dir = get_server_config().static_dir

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = db if db is not None else Database.from_config()
        database.initialize()
        app.state.db = database
        app.state.loan_service = LoanService(database)
        logger.info(f"Server started - DB: {database.path}")
        yield
        database.shutdown()
        logger.info("Server shutting down")

    app = FastAPI(
        title="loanbook API",
        description="Mortgage loans and special payments",
        version=__version__,
        lifespan=lifespan,
    )

    # -- middleware & error mapping -------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            response = _error(500, "Internal server error")
        duration_ms = (time.perf_counter() - start) * 1000
        client = request.client.host if request.client else "-"
        logger.info(
            f"[{request.method}] {request.url.path} {client} - "
            f"Status: {response.status_code} - Duration: {duration_ms:.1f}ms"
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")

    @app.exception_handler(ValidationFailure)
    async def validation_failed(request: Request, exc: ValidationFailure):
        return _error(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(StoreFailure)
    async def store_failed(request: Request, exc: StoreFailure):
        logger.error(f"Store failure: {exc}")
        return _error(500, f"Failed to {exc.operation}")

    # -- API routes ------------------------------------------------------------

    @app.get("/api/status")
    def get_status(request: Request):
        """Report whether the database is ready."""
        database: Database = request.app.state.db
        return {"status": "ok", "version": __version__, "database": database.initialized}

    @app.get("/api/loans")
    def list_loans(service: LoanService = Depends(get_service)):
        return [loan.to_dict() for loan in service.list_loans()]

    @app.post("/api/loans", status_code=201)
    def create_loan(body: LoanCreate, service: LoanService = Depends(get_service)):
        return service.create_loan(body.to_loan()).to_dict()

    @app.get("/api/loans/{loan_id}")
    def get_loan(loan_id: str, service: LoanService = Depends(get_service)):
        return service.get_loan(loan_id).to_dict()

    @app.put("/api/loans/{loan_id}")
    def update_loan(loan_id: str, body: LoanUpdate, service: LoanService = Depends(get_service)):
        """Partial update: only the fields present in the body change."""
        return service.update_loan(loan_id, body.to_patch()).to_dict()

    @app.delete("/api/loans/{loan_id}", status_code=204)
    def delete_loan(loan_id: str, service: LoanService = Depends(get_service)):
        service.delete_loan(loan_id)
        return Response(status_code=204)

    @app.get("/api/loans/{loan_id}/special-payments")
    def list_special_payments(loan_id: str, service: LoanService = Depends(get_service)):
        return [p.to_dict() for p in service.list_special_payments(loan_id)]

    @app.post("/api/loans/{loan_id}/special-payments", status_code=201)
    def create_special_payment(
        loan_id: str,
        body: SpecialPaymentCreate,
        service: LoanService = Depends(get_service),
    ):
        payment = service.create_special_payment(loan_id, body.to_payment())
        data = payment.to_dict()
        # The client addressed the loan in the URL already.
        data.pop("loanId", None)
        return data

    @app.delete("/api/loans/{loan_id}/special-payments/{payment_id}", status_code=204)
    def delete_special_payment(
        loan_id: str,
        payment_id: str,
        service: LoanService = Depends(get_service),
    ):
        service.delete_special_payment(loan_id, payment_id)
        return Response(status_code=204)

    # -- static single-page app ------------------------------------------------

    static_root = static_dir.resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    def serve_static(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            return _error(404, "not found")
        if full_path:
            candidate = (static_root / full_path).resolve()
            if candidate.is_file() and static_root in candidate.parents:
                return FileResponse(str(candidate))
        # Unknown paths fall back to index.html for client-side routing.
        index_path = static_root / "index.html"
        if index_path.is_file():
            return FileResponse(str(index_path))
        return HTMLResponse("<h1>loanbook</h1><p>Visit /docs for API documentation</p>")

    return app


app = create_app()
