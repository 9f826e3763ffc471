from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import config
from app.features.illustrations.router import router as illustrations_router
from app.logger import configure_logging

configure_logging()

app = FastAPI(title="Story Illustrations API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials="*" not in config.allowed_origins,  # browsers reject credentials with "*"
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(illustrations_router)


@app.get("/healthz")
def healthz():
    return {"ok": True}
