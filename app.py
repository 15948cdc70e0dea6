import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth.events import AuthEvents
from auth.routes import router as auth_router
from auth.utils import RevokedTokens
from chat.registry import ChatRegistry
from chat.routes import router as chat_router
from config import settings
from database.migrate import apply_schema

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("medichat")


def _parse_origins(raw: str) -> list:
    raw = (raw or "").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


# ----------------------
# Startup / shutdown
# ----------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_HOST:
        apply_schema()

    app.state.auth_events = AuthEvents()
    app.state.revoked_tokens = RevokedTokens()
    app.state.chats = ChatRegistry(idle_ttl=settings.CHAT_IDLE_TTL)
    subscription = app.state.auth_events.subscribe(app.state.chats.on_auth_event)
    logger.info("MediChat backend started")
    try:
        yield
    finally:
        subscription.unsubscribe()
        app.state.auth_events.close()
        logger.info("MediChat backend stopped")


app = FastAPI(title="MediChat Backend", version="1.0", lifespan=lifespan)

# ----------------------
# CORS
# ----------------------
origins = _parse_origins(settings.CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    # Browsers reject "*" with credentials
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------
# Routers
# ----------------------
app.include_router(auth_router)
app.include_router(chat_router)


@app.get("/")
def home():
    return {"status": "MediChat Backend Running!"}


@app.get("/health")
def health():
    return {"status": "API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
