"""
NariCare consultation API.

Run locally:
  uvicorn naricare.main:app --reload --port 8001
"""

import logging

from fastapi import FastAPI

from naricare.api.v1.consultations import router as consultations_router
from naricare.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("consultation_id", "role", "status", "action", "counts", "error", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="NariCare Consultations", version="1.0.0")

app.include_router(consultations_router, prefix="/api/v1", tags=["consultations"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
