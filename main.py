from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

from db import init_db
from eligibility.logic.config import get_settings
from eligibility.routes import router as eligibility_router

load_dotenv()

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logging.info("App starting with eligibility engine")

app = FastAPI(title="Scholarship Eligibility Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(eligibility_router)


@app.on_event("startup")
def on_startup():
    init_db()
    logging.info("✅ Database tables ready")


@app.get("/", tags=["meta"])
def root():
    return {"status": "ok", "service": "eligibility"}
