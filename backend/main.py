import uvicorn
import os

if __name__ == "__main__":
    # Auto-reload only when RELOAD=true (local development)
    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "pathlab.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
