#!/usr/bin/env python3
"""
Development server launcher for the moderation gateway.

Set OPENAI_API_KEY before starting; without it every moderation request
is answered with a 500 verdict.
"""

import copy
import os
import uvicorn
from uvicorn.config import LOGGING_CONFIG

if __name__ == "__main__":
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    # route the gateway's module loggers through uvicorn's handler
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["loggers"]["moderation_gateway"] = {
        "handlers": ["default"],
        "level": log_level.upper(),
        "propagate": False,
    }

    print("Starting moderation gateway development server")
    print("Server will be available at: http://localhost:8000")
    print("API documentation at: http://localhost:8000/docs")
    print("\n" + "="*50 + "\n")

    uvicorn.run(
        "moderation_gateway.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,     # Auto-reload on code changes (development only)
        reload_dirs=["moderation_gateway", "prompts", "config"],
        log_level=log_level,
        log_config=log_config
    )
