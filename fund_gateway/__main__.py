"""Run the gateway with uvicorn: ``python -m fund_gateway``"""

import uvicorn

from fund_gateway.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "fund_gateway.api.main:app",
        host="0.0.0.0",
        port=settings.port,
    )
