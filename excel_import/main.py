from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from dotenv import load_dotenv
import os

# Load environment variables from .env.local file
load_dotenv(".env.local")

from excel_import.api import upload
from excel_import.api.dependencies import get_mongo_client
from excel_import.utils.logging_config import logger

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")

@asynccontextmanager
async def lifespan(app: FastAPI):
    get_mongo_client().ensure_email_index()
    yield
    get_mongo_client().close()

app = FastAPI(title="Excel Import", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload.router, tags=["upload"])

@app.get("/")
def root():
    """Serve the upload form."""
    return FileResponse(os.path.join(STATIC_DIR, "index.html"))

@app.get("/health")
def health():
    return {"status": "ok"}

def run():
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    logger.info(f"Server is running at http://{host}:{port}")
    uvicorn.run("excel_import.main:app", host=host, port=port)

if __name__ == "__main__":
    run()
