from fastapi import APIRouter, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from datetime import datetime, timedelta, timezone
import math
import os
import secrets

app = FastAPI(title="Mock Pushpay Server", version="1.0.0")
# Same path shape as the real API base URL
router = APIRouter(prefix="/v1")

CLIENT_ID = os.environ.get("MOCK_PUSHPAY_CLIENT_ID", "mock-client")
CLIENT_SECRET = os.environ.get("MOCK_PUSHPAY_CLIENT_SECRET", "mock-secret")
MERCHANT_KEY = os.environ.get("MOCK_PUSHPAY_MERCHANT_KEY", "mock-merchant")
TOKEN_TTL_SECONDS = int(os.environ.get("MOCK_PUSHPAY_TOKEN_TTL", "3600"))

issued_tokens: set[str] = set()

ANCHOR = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)

PAYMENTS = [
    {
        "transactionId": f"txn_{i:03d}",
        "amount": {"amount": amount, "currency": "USD"},
        "payer": {"fullName": name} if name else None,
        "createdOn": (ANCHOR - timedelta(days=i // 2, hours=i)).isoformat().replace("+00:00", "Z"),
        "status": "Success" if i % 5 else "Processing",
        "fund": {"key": fund, "name": fund.replace("-", " ").title()},
        "reference": f"REF-{i:04d}",
    }
    for i, (amount, name, fund) in enumerate(
        [
            (50.0, "Ada Lovelace", "building-fund"),
            (25.5, None, "building-fund"),
            (100.0, "Grace Hopper", "missions"),
            (10.0, "Alan Turing", "building-fund"),
            (75.25, "Ada Lovelace", "missions"),
            (20.0, None, "building-fund"),
            (5.0, "Katherine Johnson", "building-fund"),
            (200.0, "Grace Hopper", "missions"),
        ]
    )
]


@app.get("/health")
def health(): return {"status": "ok"}


@router.post("/oauth/token")
async def issue_token(request: Request):
    body = await request.json()
    if body.get("grant_type") != "client_credentials":
        raise HTTPException(status_code=400, detail="unsupported_grant_type")
    if body.get("client_id") != CLIENT_ID or body.get("client_secret") != CLIENT_SECRET:
        raise HTTPException(status_code=401, detail="invalid_client")
    token = secrets.token_urlsafe(16)
    issued_tokens.add(token)
    return {"access_token": token, "token_type": "Bearer", "expires_in": TOKEN_TTL_SECONDS}


@router.get("/merchant/{merchant_key}/payments")
def get_payments(
    merchant_key: str,
    fund: str | None = None,
    take: int = 50,
    page: int = 0,
    authorization: str | None = Header(default=None),
):
    if not authorization or authorization.removeprefix("Bearer ") not in issued_tokens:
        raise HTTPException(status_code=401, detail="invalid_token")
    if merchant_key != MERCHANT_KEY:
        raise HTTPException(status_code=404, detail="merchant not found")

    items = [p for p in PAYMENTS if fund is None or p["fund"]["key"] == fund]
    total_pages = max(1, math.ceil(len(items) / take))
    return JSONResponse(content={
        "items": items[page * take:(page + 1) * take],
        "page": page,
        "pageSize": take,
        "totalCount": len(items),
        "totalPages": total_pages,
    })


app.include_router(router)
