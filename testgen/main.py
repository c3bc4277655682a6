from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from testgen.routers import analysis

app = FastAPI(
    title="JSX Testgen Server",
    description="API for static component analysis and test generation.",
    version="0.1.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis.router)


@app.get("/api-status")
async def root():
    return {"message": "JSX Testgen Server is running. Visit /docs for API documentation."}
