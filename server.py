# server.py (repo root)
from app.config import config
from app.main import app

# Local run; production goes through gunicorn_conf.py
if __name__ == "__main__":
    import os, uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8080")),
        log_level=config.log_level.lower(),
    )
