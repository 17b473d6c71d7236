# backend/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from config import settings
from database import init_db

from routes.auth import router as auth_router
from routes.product_types import router as product_types_router
from routes.products import router as products_router
from routes.competitor_prices import router as competitor_prices_router
from routes.kit_products import router as kit_products_router
from routes.imports import router as imports_router
from routes.dashboard import router as dashboard_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialisation
init_db()

app = FastAPI(title="Inventory API", version="1.0.0")

# CORS: local dev frontends plus the deployed one, if configured
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
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

# Router registration
app.include_router(auth_router)
app.include_router(product_types_router)
app.include_router(products_router)
app.include_router(competitor_prices_router)
app.include_router(kit_products_router)
app.include_router(imports_router)
app.include_router(dashboard_router)
app.include_router(logs_router)

logger.info("Inventory API ready (%d CORS origins)", len(origins))

@app.get("/")
def read_root():
    return {"message": "Inventory API is running"}
