import argparse
import io
import os
import threading
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from scrubdb.config.loader import create_engine


class TextReq(BaseModel):
    text: str


def create_app(config_path: Optional[str] = None, seed: Optional[int] = None) -> FastAPI:
    """Create the FastAPI app around one shared ScrubEngine.

    The engine's relationship cache lives as long as the app, so the same
    original value gets the same replacement across requests.
    """

    engine = create_engine(config_path, seed=seed)
    # sync handlers run in a thread pool; the cache is not thread safe
    lock = threading.Lock()
    app = FastAPI(title="Scrub-DB Service", version="1.0.0")

    @app.get("/health")
    def health():
        return {"status": "ok", "rules": engine.rule_count}

    @app.post("/scrub")
    def scrub(req: TextReq):
        try:
            with lock:
                scrubbed = engine.process_text(req.text)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"scrubbed_text": scrubbed, "lines": scrubbed.count("\n")}

    @app.post("/scan")
    def scan(req: TextReq):
        return engine.scan(io.StringIO(req.text)).to_dict()

    app.state.engine = engine
    return app


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the Scrub-DB API")
    parser.add_argument("--config", default=os.getenv("SCRUB_DB_CONFIG"), help="Path to scrub-db.yaml")
    parser.add_argument("--host", default=os.getenv("SERVICE_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("SERVICE_PORT", "8000")))
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    app = create_app(args.config, seed=args.seed)
    import uvicorn

    uvicorn.run(app, host=args.host, port=args.port)
