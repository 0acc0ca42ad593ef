"""FastAPI application: auth, record and sync routes."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from .database import Base, engine
from .routes import auth, data, sync

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="cipherkeep API",
    description="Zero-knowledge secret vault: stores and syncs client-encrypted records",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("Request: %s %s", request.method, request.url.path)
    response = await call_next(request)
    logger.info("Response: %d", response.status_code)
    return response


app.include_router(auth.router)
app.include_router(data.router)
app.include_router(sync.router)


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/security-info")
def security_info():
    """Algorithm names only; the server holds no keys."""
    return {
        "encryption": "AES-256-GCM",
        "kdf": "Argon2id",
        "key_size_bits": 256,
        "server_side_decryption": False,
    }


def run():
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
