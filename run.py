#!/usr/bin/env python3
"""Run script for rrulecodec."""

import uvicorn

from rrulecodec.config import HOST, PORT, RELOAD, configure_logging

if __name__ == "__main__":
    configure_logging()
    uvicorn.run(
        "rrulecodec.api.app:app",
        host=HOST,
        port=PORT,
        reload=RELOAD
    )
