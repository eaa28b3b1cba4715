#!/usr/bin/env python3
"""
mixdown-formatter Web 服务入口

Usage:
    python app.py
    python app.py --port 8000
    python app.py --host 0.0.0.0
"""

from __future__ import annotations

import argparse

import uvicorn
from fastapi import FastAPI

from mixdown import __version__
from web.api import router as api_router


app = FastAPI(title="mixdown-formatter", version=__version__, docs_url="/docs")

# Mount API routes
app.include_router(api_router)


@app.get("/")
async def index():
    """服务信息"""
    return {
        "name": "mixdown-formatter",
        "version": __version__,
        "endpoints": ["/api/format", "/api/upload", "/api/config", "/api/formatters"],
    }


def main():
    parser = argparse.ArgumentParser(description="mixdown-formatter Web Service")
    parser.add_argument("--port", "-p", type=int, default=8000, help="端口 (默认: 8000)")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="主机 (默认: 127.0.0.1)")
    args = parser.parse_args()

    print(f"\n  mixdown-formatter Web Service")
    print(f"  http://{args.host}:{args.port}\n")

    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
