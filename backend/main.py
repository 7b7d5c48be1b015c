# backend/main.py
import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db
from utils.errors import ProductError

from routes.products import router as products_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialization
init_db()

app = FastAPI(title="Product QR API", version="1.0.0")

# Local buckets are served straight from disk
if settings.STORAGE_BACKEND == "local":
    Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR), name="storage")

# CORS Configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProductError)
async def product_error_handler(request: Request, exc: ProductError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Router registration
app.include_router(products_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Product QR API is running"}
