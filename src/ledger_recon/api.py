from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .auth import limiter
from .reconciliation.api import router as reconciliation_router

app = FastAPI(title="Ledger Reconciliation API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(reconciliation_router)


@app.get("/health")
async def health():
    return {"ok": True}
